from django.core.management.base import BaseCommand

from notifications.tasks import check_overdue_borrowings


class Command(BaseCommand):
    help = "Report overdue borrowings to the librarians' Telegram chat"

    def add_arguments(self, parser):
        parser.add_argument(
            "--async",
            action="store_true",
            help="Queue the check on a Celery worker instead of running it here",
        )

    def handle(self, *args, **options):
        if options["async"]:
            task = check_overdue_borrowings.delay()
            self.stdout.write(self.style.SUCCESS(f"Overdue check queued as task {task.id}"))
            return

        result = check_overdue_borrowings.apply().get()

        if result["overdue_count"] == 0:
            self.stdout.write(self.style.SUCCESS("No overdue borrowings."))
            return

        self.stdout.write(
            f"{result['overdue_count']} overdue borrowings, "
            f"{result['successful_notifications']} alerts sent."
        )
        if result["failed_notifications"]:
            ids = ", ".join(str(pk) for pk in result["failed_borrowing_ids"])
            self.stdout.write(self.style.WARNING(f"Alerts failed for borrowings: {ids}"))
