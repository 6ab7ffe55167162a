from django.core.management.base import BaseCommand

from books.search import rebuild_search_vectors, supports_full_text


class Command(BaseCommand):
    help = "Recompute the full-text search vector of every book"

    def add_arguments(self, parser):
        parser.add_argument("--database", default="default")

    def handle(self, *args, **options):
        using = options["database"]
        if not supports_full_text(using):
            self.stdout.write(
                self.style.WARNING("Full-text search needs PostgreSQL; nothing to rebuild.")
            )
            return

        updated = rebuild_search_vectors(using)
        self.stdout.write(self.style.SUCCESS(f"Rebuilt search vectors for {updated} books."))
