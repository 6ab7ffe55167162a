"""
Read-only views over borrowings and books for dashboards and reports.

Nothing here writes; every figure is derived from the ledger and the catalog
at query time.
"""

from datetime import datetime, time, timedelta

import pytz
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone

from books.models import Book
from borrowings.models import Borrowing


def local_day_bounds(now=None):
    """Start and end (exclusive) of the library's current local day, as aware datetimes."""
    local_tz = pytz.timezone(settings.LIBRARY_TIME_ZONE)
    local_now = (now or timezone.now()).astimezone(local_tz)
    start = local_tz.localize(datetime.combine(local_now.date(), time.min))
    return start, start + timedelta(days=1)


def _with_relations(queryset):
    return queryset.select_related("book", "user")


def active_borrowings_for(user):
    return _with_relations(Borrowing.objects.active().filter(user=user)).order_by("due_at")


def borrowing_history_for(user, limit=10):
    return _with_relations(Borrowing.objects.returned().filter(user=user)).order_by(
        "-returned_at"
    )[:limit]


def overdue_borrowings(now=None):
    return _with_relations(Borrowing.objects.overdue(now)).order_by("due_at", "user__email")


def overdue_borrowings_for(user, now=None):
    return overdue_borrowings(now).filter(user=user)


def due_today(now=None):
    start, end = local_day_bounds(now)
    return _with_relations(Borrowing.objects.due_between(start, end)).order_by("due_at")


def due_this_week(now=None):
    now = now or timezone.now()
    return _with_relations(Borrowing.objects.due_between(now, now + timedelta(weeks=1))).order_by(
        "due_at"
    )


def due_soon_for(user, days=3, now=None):
    now = now or timezone.now()
    return (
        _with_relations(Borrowing.objects.due_between(now, now + timedelta(days=days)))
        .filter(user=user)
        .order_by("due_at")
    )


def recent_borrowings(limit=10):
    return _with_relations(Borrowing.objects.all()).order_by("-borrowed_at", "-id")[:limit]


def most_borrowed_books(limit=10):
    """Books ordered by how many times they were ever borrowed."""
    return (
        Book.objects.annotate(times_borrowed=Count("borrowings"))
        .filter(times_borrowed__gt=0)
        .order_by("-times_borrowed", "title")[:limit]
    )


def members_with_overdue_borrowings(now=None):
    """Members (librarians excluded) holding at least one overdue copy."""
    now = now or timezone.now()
    User = get_user_model()
    overdue = Q(borrowings__returned_at__isnull=True, borrowings__due_at__lt=now)
    return (
        User.objects.filter(role=User.Role.MEMBER)
        .annotate(overdue_count=Count("borrowings", filter=overdue))
        .filter(overdue_count__gt=0)
        .order_by("-overdue_count", "email")
    )


def librarian_dashboard(now=None):
    now = now or timezone.now()
    overdue = overdue_borrowings(now)

    return {
        "role": "librarian",
        "stats": {
            "total_books": Book.objects.count(),
            "total_borrowed_books": Borrowing.objects.active().count(),
            "books_due_today": due_today(now).count(),
            "books_due_this_week": due_this_week(now).count(),
            "overdue_books_count": overdue.count(),
        },
        "overdue_members": [
            {"id": user.id, "email": user.email, "overdue_count": user.overdue_count}
            for user in members_with_overdue_borrowings(now)
        ],
        "recent_borrowings": [
            {
                "id": borrowing.id,
                "book_title": borrowing.book.title,
                "user_email": borrowing.user.email,
                "borrowed_at": borrowing.borrowed_at,
            }
            for borrowing in recent_borrowings()
        ],
        "most_borrowed_books": [
            {"id": book.id, "title": book.title, "times_borrowed": book.times_borrowed}
            for book in most_borrowed_books(5)
        ],
    }


def member_dashboard(user, now=None):
    now = now or timezone.now()
    active = list(active_borrowings_for(user))
    due_soon_ids = set(due_soon_for(user, now=now).values_list("id", flat=True))

    return {
        "role": "member",
        "stats": {
            "my_borrowed_books": len(active),
            "my_books_due_soon": len(due_soon_ids),
            "my_overdue_books": sum(1 for b in active if b.is_overdue_at(now)),
        },
        "my_borrowings": [
            {
                "id": borrowing.id,
                "book_title": borrowing.book.title,
                "book_author": borrowing.book.author,
                "due_at": borrowing.due_at,
                "is_overdue": borrowing.is_overdue_at(now),
                "days_overdue": borrowing.days_overdue_at(now),
                "is_due_soon": borrowing.id in due_soon_ids,
            }
            for borrowing in active
        ],
        "my_borrowing_history": [
            {
                "id": borrowing.id,
                "book_title": borrowing.book.title,
                "book_author": borrowing.book.author,
                "returned_at": borrowing.returned_at,
            }
            for borrowing in borrowing_history_for(user)
        ],
    }
