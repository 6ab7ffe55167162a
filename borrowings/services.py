"""
Lending ledger: the borrow/return state machine.

A borrowing moves from active to returned exactly once. Every transition
that changes how many copies are on loan updates the book counter through
``books.services.adjust_availability`` in the same transaction, so the
counter and the borrowing rows are committed or rolled back together.
"""

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from books.services import adjust_availability, get_book
from borrowings.models import Borrowing
from lending_service.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALREADY_BORROWED = "You have already borrowed this book."
ALREADY_RETURNED = "This borrowing has already been returned."

UPDATE_FIELDS = ("due_at", "returned_at")


def _borrowing_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(f"Borrowing {value} not found.")


def _book_id(value):
    if value in (None, ""):
        raise ValidationError(details={"book_id": ["This field is required."]})
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(details={"book_id": ["A valid integer is required."]})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(details={"book_id": ["A valid integer is required."]})


def _aware(value, field):
    if not isinstance(value, datetime):
        raise ValidationError(details={field: ["A valid date and time is required."]})
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def _validate(borrowing):
    try:
        borrowing.full_clean(
            exclude=["user", "book"], validate_unique=False, validate_constraints=False
        )
    except DjangoValidationError as exc:
        raise ValidationError.from_django(exc) from exc


def get_borrowing(borrowing_id):
    try:
        return Borrowing.objects.select_related("book", "user").get(
            pk=_borrowing_id(borrowing_id)
        )
    except Borrowing.DoesNotExist:
        raise NotFoundError(f"Borrowing {borrowing_id} not found.")


def _locked(borrowing_id):
    try:
        return (
            Borrowing.objects.select_for_update()
            .select_related("book")
            .get(pk=_borrowing_id(borrowing_id))
        )
    except Borrowing.DoesNotExist:
        raise NotFoundError(f"Borrowing {borrowing_id} not found.")


def borrow_book(user, book_id, due_at=None):
    """
    Lend one copy of a book to ``user``.

    The availability check and the decrement are one conditional UPDATE, and
    the borrowing row is inserted in the same transaction. A concurrent
    duplicate borrow is stopped by the partial unique constraint on
    (user, book) and reported as a conflict.
    """
    book_id = _book_id(book_id)

    borrowed_at = timezone.now()
    if due_at is None:
        due_at = borrowed_at + timedelta(days=settings.BORROWING_PERIOD_DAYS)
    due_at = _aware(due_at, "due_at")
    if due_at <= borrowed_at:
        raise ValidationError(details={"due_at": ["Due date must be after the borrow date."]})

    book = get_book(book_id)

    if Borrowing.objects.active().filter(user=user, book=book).exists():
        logger.warning(f"User {user.pk} tried to borrow book {book.pk} twice")
        raise ConflictError(ALREADY_BORROWED)

    try:
        with transaction.atomic():
            adjust_availability(book.pk, -1)
            borrowing = Borrowing.objects.create(
                user=user, book=book, borrowed_at=borrowed_at, due_at=due_at
            )
    except IntegrityError as exc:
        logger.warning(f"User {user.pk} lost a race borrowing book {book.pk} twice")
        raise ConflictError(ALREADY_BORROWED) from exc
    except ConflictError:
        logger.warning(f"No copies of book {book.pk} left for user {user.pk}")
        raise

    book.refresh_from_db()
    logger.info(
        f"Borrowing {borrowing.pk}: user {user.pk} borrowed book {book.pk}, "
        f"{book.available_copies} copies left"
    )
    return borrowing


def return_borrowing(borrowing_id):
    """
    Mark a borrowing returned and put the copy back on the shelf.

    The returned_at write is conditional on the borrowing still being active,
    so a second return (even a concurrent one) changes nothing and fails.
    """
    pk = _borrowing_id(borrowing_id)
    now = timezone.now()

    with transaction.atomic():
        marked = Borrowing.objects.filter(pk=pk, returned_at__isnull=True).update(
            returned_at=now, updated_at=now
        )
        if not marked:
            if Borrowing.objects.filter(pk=pk).exists():
                raise ConflictError(ALREADY_RETURNED)
            raise NotFoundError(f"Borrowing {borrowing_id} not found.")

        borrowing = Borrowing.objects.select_related("book", "user").get(pk=pk)
        adjust_availability(borrowing.book_id, +1)

    borrowing.book.refresh_from_db()
    logger.info(f"Borrowing {pk}: book {borrowing.book_id} returned")
    return borrowing


def update_borrowing(borrowing_id, **fields):
    """
    Change the due date and, administratively, the return timestamp.

    Only the due-after-borrowed rule is re-checked; the one-per-book and
    availability rules apply when a borrowing is created. Setting
    ``returned_at`` on an active borrowing returns the copy. A returned
    borrowing cannot be reopened.
    """
    fields = {name: value for name, value in fields.items() if name in UPDATE_FIELDS}

    with transaction.atomic():
        borrowing = _locked(borrowing_id)
        was_active = borrowing.is_active

        if "due_at" in fields:
            borrowing.due_at = _aware(fields["due_at"], "due_at")

        if "returned_at" in fields:
            returned_at = fields["returned_at"]
            if returned_at is None:
                if not was_active:
                    raise ValidationError(
                        details={"returned_at": ["A returned borrowing cannot be reopened."]}
                    )
            else:
                borrowing.returned_at = _aware(returned_at, "returned_at")

        _validate(borrowing)
        borrowing.save()

        if was_active and borrowing.is_returned:
            adjust_availability(borrowing.book_id, +1)

    borrowing.book.refresh_from_db()
    logger.info(f"Borrowing {borrowing.pk} updated")
    return borrowing


def delete_borrowing(borrowing_id):
    """
    Remove a borrowing record.

    Deleting an outstanding borrowing gives its copy back; deleting a
    returned one leaves the counter alone.
    """
    with transaction.atomic():
        borrowing = _locked(borrowing_id)
        restore_copy = borrowing.is_active
        book_id = borrowing.book_id
        borrowing.delete()

        if restore_copy:
            adjust_availability(book_id, +1)

    logger.info(
        f"Borrowing {borrowing_id} deleted"
        + (f", copy of book {book_id} restored" if restore_copy else "")
    )
