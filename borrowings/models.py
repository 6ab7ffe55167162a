from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from books.models import Book


class BorrowingQuerySet(models.QuerySet):
    def active(self):
        return self.filter(returned_at__isnull=True)

    def returned(self):
        return self.filter(returned_at__isnull=False)

    def overdue(self, now=None):
        return self.active().filter(due_at__lt=now or timezone.now())

    def due_between(self, start, end):
        return self.active().filter(due_at__gte=start, due_at__lt=end)


class Borrowing(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="borrowings"
    )
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="borrowings")
    borrowed_at = models.DateTimeField(default=timezone.now)
    due_at = models.DateTimeField()
    returned_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BorrowingQuerySet.as_manager()

    class Meta:
        ordering = ["-borrowed_at", "-id"]
        verbose_name = "Borrowing"
        verbose_name_plural = "Borrowings"
        indexes = [
            models.Index(fields=["due_at"], name="borrowing_due_at_idx"),
            models.Index(fields=["returned_at"], name="borrowing_returned_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(due_at__gt=models.F("borrowed_at")),
                name="borrowing_due_after_borrowed",
                violation_error_message="Due date must be after the borrow date.",
            ),
            models.CheckConstraint(
                condition=models.Q(returned_at__isnull=True)
                | models.Q(returned_at__gte=models.F("borrowed_at")),
                name="borrowing_returned_after_borrowed",
                violation_error_message="Return date cannot be before the borrow date.",
            ),
            # A member holds at most one outstanding copy of each book
            models.UniqueConstraint(
                fields=["user", "book"],
                condition=models.Q(returned_at__isnull=True),
                name="borrowing_one_active_per_user_book",
            ),
        ]

    def __str__(self):
        return f"{self.user} borrowed {self.book.title} on {self.borrowed_at:%Y-%m-%d}"

    def clean(self):
        super().clean()

        if self.borrowed_at and self.due_at and self.due_at <= self.borrowed_at:
            raise ValidationError({"due_at": "Due date must be after the borrow date."})

        if self.borrowed_at and self.returned_at and self.returned_at < self.borrowed_at:
            raise ValidationError(
                {"returned_at": "Return date cannot be before the borrow date."}
            )

    @property
    def is_active(self):
        return self.returned_at is None

    @property
    def is_returned(self):
        return self.returned_at is not None

    def is_overdue_at(self, now):
        return self.is_active and self.due_at < now

    def days_overdue_at(self, now):
        """Whole days past the due date, 0 unless currently overdue."""
        if not self.is_overdue_at(now):
            return 0
        return (now - self.due_at).days

    @property
    def is_overdue(self):
        return self.is_overdue_at(timezone.now())

    @property
    def days_overdue(self):
        return self.days_overdue_at(timezone.now())
