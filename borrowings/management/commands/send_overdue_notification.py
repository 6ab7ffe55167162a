from django.core.management.base import BaseCommand, CommandError

from notifications.tasks import send_overdue_notification


class Command(BaseCommand):
    help = "Send the overdue alert for a single borrowing"

    def add_arguments(self, parser):
        parser.add_argument("borrowing_id", type=int)
        parser.add_argument(
            "--async",
            action="store_true",
            help="Queue the alert on a Celery worker instead of sending it here",
        )

    def handle(self, *args, **options):
        borrowing_id = options["borrowing_id"]

        if options["async"]:
            task = send_overdue_notification.delay(borrowing_id)
            self.stdout.write(self.style.SUCCESS(f"Alert queued as task {task.id}"))
            return

        result = send_overdue_notification(borrowing_id)
        status = result["status"]

        if status == "success":
            self.stdout.write(self.style.SUCCESS(f"Alert sent for borrowing {borrowing_id}."))
        elif status == "skipped":
            self.stdout.write(self.style.WARNING(f"Skipped: {result['reason']}"))
        else:
            raise CommandError(result["message"])
