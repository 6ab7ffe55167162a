from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from books import services
from books.models import Book

DEMO_PASSWORD = "library-demo"

DEMO_USERS = (
    ("librarian@library.local", "Olena", "Koval", "librarian"),
    ("member@library.local", "Taras", "Melnyk", "member"),
)

DEMO_BOOKS = (
    ("The Pragmatic Programmer", "Andrew Hunt", "Programming", "978-0-201-61622-4", 3),
    ("Eloquent Ruby", "Russ Olsen", "Programming", "978-0-321-58410-6", 2),
    ("Practical Object-Oriented Design in Ruby", "Sandi Metz", "Programming", "978-0-321-72133-4", 1),
    ("Dune", "Frank Herbert", "Science Fiction", "978-0-441-17271-9", 4),
    ("The Left Hand of Darkness", "Ursula K. Le Guin", "Science Fiction", "978-0-441-47812-5", 2),
    ("Kobzar", "Taras Shevchenko", "Poetry", "978-966-03-4263-6", 5),
)


class Command(BaseCommand):
    help = "Create demo users and books; running it again changes nothing"

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()

        for email, first_name, last_name, role in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    "first_name": first_name,
                    "last_name": last_name,
                    "role": role,
                    "is_staff": role == User.Role.LIBRARIAN,
                },
            )
            if created:
                user.set_password(DEMO_PASSWORD)
                user.save()
                self.stdout.write(f"Created {role} {email}")

        books_created = 0
        for title, author, genre, isbn, copies in DEMO_BOOKS:
            if services.find_by_isbn(isbn):
                continue
            services.create_book(
                title=title, author=author, genre=genre, isbn=isbn, total_copies=copies
            )
            books_created += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded {books_created} books; catalog now holds {Book.objects.count()}."
            )
        )
