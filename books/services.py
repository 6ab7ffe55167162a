"""
Catalog store: the only write path for books.

``available_copies`` changes after creation only through
``adjust_availability``, which the lending ledger calls inside its own
transaction.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from books.models import Book, normalize_isbn
from lending_service.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CREATE_FIELDS = ("title", "author", "genre", "isbn", "total_copies", "available_copies")
UPDATE_FIELDS = ("title", "author", "genre", "isbn", "total_copies")


def _pick(fields, allowed):
    return {name: value for name, value in fields.items() if name in allowed}


def _collect(errors, exc):
    for field, messages in ValidationError.from_django(exc).details.items():
        errors.setdefault(field, []).extend(messages)


def _validate(book, errors=None, exclude=None):
    """Run every field and constraint check, then raise all failures at once."""
    errors = errors or {}
    try:
        book.full_clean(exclude=exclude, validate_unique=False)
    except DjangoValidationError as exc:
        _collect(errors, exc)
    if errors:
        raise ValidationError(details=errors)

    if Book.objects.filter(isbn=book.isbn).exclude(pk=book.pk).exists():
        raise ConflictError(f"A book with ISBN {book.isbn} already exists.")


def _save(book):
    try:
        with transaction.atomic():
            book.save()
    except IntegrityError as exc:
        # lost a race against a concurrent write of the same ISBN
        if Book.objects.filter(isbn=book.isbn).exclude(pk=book.pk).exists():
            raise ConflictError(f"A book with ISBN {book.isbn} already exists.") from exc
        raise ConflictError("The book conflicts with its current stored state.") from exc


def get_book(book_id):
    try:
        return Book.objects.get(pk=book_id)
    except (Book.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Book {book_id} not found.")


def find_by_isbn(raw_isbn):
    return Book.objects.filter(isbn=normalize_isbn(raw_isbn)).first()


def create_book(**fields):
    book = Book(**_pick(fields, CREATE_FIELDS))
    _validate(book)
    _save(book)
    logger.info(f"Created book {book.pk} ({book.isbn}) with {book.total_copies} copies")
    return book


def update_book(book_id, **fields):
    """
    Update catalog fields of a book under a row lock.

    Changing ``total_copies`` moves ``available_copies`` by the same amount,
    so the number of copies on loan is preserved.
    """
    errors = {}
    if "available_copies" in fields:
        errors["available_copies"] = [
            "Available copies change only by borrowing and returning books."
        ]

    with transaction.atomic():
        try:
            book = Book.objects.select_for_update().get(pk=book_id)
        except (Book.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Book {book_id} not found.")

        on_loan = book.total_copies - book.available_copies
        for name, value in _pick(fields, UPDATE_FIELDS).items():
            setattr(book, name, value)

        exclude = set()
        if "total_copies" in fields:
            try:
                book.total_copies = Book._meta.get_field("total_copies").to_python(
                    book.total_copies
                )
            except DjangoValidationError as exc:
                errors["total_copies"] = list(exc.messages)
                exclude.add("total_copies")
            else:
                if book.total_copies is not None and book.total_copies < on_loan:
                    errors["total_copies"] = [
                        f"Total copies cannot be lower than the {on_loan} "
                        f"copies currently on loan."
                    ]
                    exclude.add("available_copies")
                elif book.total_copies is not None:
                    book.available_copies = book.total_copies - on_loan

        _validate(book, errors=errors, exclude=exclude or None)
        _save(book)

    logger.info(f"Updated book {book.pk}")
    return book


def delete_book(book_id):
    """Delete a book and its borrowing history unless a copy is still on loan."""
    with transaction.atomic():
        try:
            book = Book.objects.select_for_update().get(pk=book_id)
        except (Book.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Book {book_id} not found.")

        if book.borrowings.filter(returned_at__isnull=True).exists():
            raise ConflictError("Book has active borrowings and cannot be deleted.")

        book.delete()
    logger.info(f"Deleted book {book_id}")


@transaction.atomic
def adjust_availability(book_id, delta):
    """
    Move ``available_copies`` of one book by ``delta`` with a single
    conditional UPDATE, keeping 0 <= available_copies <= total_copies.

    Joins the caller's transaction. The bound is checked by the database
    against the committed row, never against a value read earlier.
    """
    if delta == 0:
        return

    books = Book.objects.filter(pk=book_id)
    if delta < 0:
        guarded = books.filter(available_copies__gte=-delta)
    else:
        guarded = books.filter(available_copies__lte=models.F("total_copies") - delta)

    updated = guarded.update(
        available_copies=models.F("available_copies") + delta,
        updated_at=timezone.now(),
    )
    if updated:
        return

    if not books.exists():
        raise NotFoundError(f"Book {book_id} not found.")
    if delta < 0:
        raise ConflictError("No copies of this book are available.")
    raise ConflictError("All copies of this book are already available.")
