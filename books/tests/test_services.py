"""
Catalog store tests: validation, ISBN handling and the copy-count invariant.
"""

import pytest

from books import services
from books.models import Book, normalize_isbn, validate_isbn
from borrowings import services as ledger
from borrowings.models import Borrowing
from lending_service.errors import ConflictError, NotFoundError, ValidationError


def assert_counts_within_bounds(book):
    book.refresh_from_db()
    assert 0 <= book.available_copies <= book.total_copies


@pytest.mark.django_db
def test_create_book_defaults_available_to_total():
    book = services.create_book(
        title="Ruby Programming",
        author="J. Doe",
        genre="Programming",
        isbn="9780596516178",
        total_copies=3,
    )

    assert book.pk is not None
    assert book.available_copies == 3
    assert book.borrowed_copies == 0
    assert book.is_available


@pytest.mark.django_db
def test_create_book_normalizes_isbn_and_rejects_duplicate():
    book = services.create_book(
        title="Ruby Programming", author="J. Doe", genre="Programming", isbn="978-0-596-51617-8"
    )
    assert book.isbn == "9780596516178"

    with pytest.raises(ConflictError):
        services.create_book(
            title="Another", author="Someone", genre="Fiction", isbn="9780596516178"
        )
    assert Book.objects.count() == 1


@pytest.mark.django_db
def test_create_book_reports_every_violated_rule():
    with pytest.raises(ValidationError) as excinfo:
        services.create_book(title="", author="", genre="", isbn="12-34", total_copies=0)

    details = excinfo.value.details
    assert excinfo.value.kind == "validation_error"
    assert {"title", "author", "genre", "isbn", "total_copies"} <= set(details)
    assert details["isbn"] == ["ISBN must be exactly 13 digits."]
    assert Book.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize(
    "isbn",
    [
        "٩٧٨٠٥٩٦٥١٦١٧٨",  # Arabic-Indic
        "９７８０５９６５１６１７８",  # fullwidth
        "978059651617٨",
    ],
)
def test_create_book_rejects_non_ascii_digits(isbn):
    with pytest.raises(ValidationError) as excinfo:
        services.create_book(title="Ruby", author="Matz", genre="Programming", isbn=isbn)

    assert "isbn" in excinfo.value.details
    assert Book.objects.count() == 0


def test_normalize_isbn_keeps_ascii_digits_only():
    assert normalize_isbn("978-0-596-51617-8") == "9780596516178"
    assert normalize_isbn("978٠596516178") == "978596516178"
    assert not validate_isbn.regex.match("٩٧٨٠٥٩٦٥١٦١٧٨")


@pytest.mark.django_db
def test_create_book_rejects_available_above_total():
    with pytest.raises(ValidationError) as excinfo:
        services.create_book(
            title="Dune",
            author="Frank Herbert",
            genre="Science Fiction",
            isbn="9780441172719",
            total_copies=2,
            available_copies=3,
        )

    assert excinfo.value.details == {
        "non_field_errors": ["Available copies cannot exceed total copies."]
    }


@pytest.mark.django_db
def test_create_book_rejects_overlong_title(make_book):
    with pytest.raises(ValidationError) as excinfo:
        make_book(title="x" * 256)

    assert "title" in excinfo.value.details


@pytest.mark.django_db
def test_get_book_missing():
    with pytest.raises(NotFoundError):
        services.get_book(999)
    with pytest.raises(NotFoundError):
        services.get_book("not-a-number")


@pytest.mark.django_db
def test_find_by_isbn_accepts_formatted_isbn(make_book):
    book = make_book(isbn="9780596516178")

    assert services.find_by_isbn("978-0-596-51617-8") == book
    assert services.find_by_isbn("9780000000000") is None


@pytest.mark.django_db
def test_update_book_changes_fields(book):
    updated = services.update_book(book.pk, title="Programming Ruby 1.9", genre="Ruby")

    assert updated.title == "Programming Ruby 1.9"
    assert updated.genre == "Ruby"
    book.refresh_from_db()
    assert book.title == "Programming Ruby 1.9"


@pytest.mark.django_db
def test_update_book_total_shifts_available(make_book, member):
    book = make_book(total_copies=2)
    ledger.borrow_book(member, book.pk)

    updated = services.update_book(book.pk, total_copies=5)

    assert updated.total_copies == 5
    assert updated.available_copies == 4
    assert updated.borrowed_copies == 1


@pytest.mark.django_db
def test_update_book_total_below_copies_on_loan(make_book, member, other_member):
    book = make_book(total_copies=2)
    ledger.borrow_book(member, book.pk)
    ledger.borrow_book(other_member, book.pk)

    with pytest.raises(ValidationError) as excinfo:
        services.update_book(book.pk, total_copies=1)

    assert "total_copies" in excinfo.value.details
    book.refresh_from_db()
    assert (book.total_copies, book.available_copies) == (2, 0)


@pytest.mark.django_db
def test_update_book_refuses_direct_available_change(book):
    with pytest.raises(ValidationError) as excinfo:
        services.update_book(book.pk, available_copies=0, title="")

    assert set(excinfo.value.details) == {"available_copies", "title"}
    book.refresh_from_db()
    assert book.available_copies == book.total_copies


@pytest.mark.django_db
def test_update_book_isbn_conflict(make_book):
    first = make_book(isbn="9780596516178")
    second = make_book(isbn="9780441172719")

    with pytest.raises(ConflictError):
        services.update_book(second.pk, isbn="978-0-596-51617-8")

    second.refresh_from_db()
    assert second.isbn == "9780441172719"
    assert first.isbn == "9780596516178"


@pytest.mark.django_db
def test_update_book_missing():
    with pytest.raises(NotFoundError):
        services.update_book(12345, title="Nothing")


@pytest.mark.django_db
def test_delete_book_blocked_by_active_borrowing(book, member):
    borrowing = ledger.borrow_book(member, book.pk)

    with pytest.raises(ConflictError):
        services.delete_book(book.pk)
    assert Book.objects.filter(pk=book.pk).exists()

    ledger.return_borrowing(borrowing.pk)
    services.delete_book(book.pk)

    assert not Book.objects.filter(pk=book.pk).exists()
    assert not Borrowing.objects.filter(book_id=book.pk).exists()


@pytest.mark.django_db
def test_delete_book_missing():
    with pytest.raises(NotFoundError):
        services.delete_book(4040)


@pytest.mark.django_db
def test_adjust_availability_stays_within_bounds(make_book):
    book = make_book(total_copies=1)

    services.adjust_availability(book.pk, -1)
    with pytest.raises(ConflictError, match="No copies"):
        services.adjust_availability(book.pk, -1)
    assert_counts_within_bounds(book)
    assert book.available_copies == 0

    services.adjust_availability(book.pk, +1)
    with pytest.raises(ConflictError, match="already available"):
        services.adjust_availability(book.pk, +1)
    assert_counts_within_bounds(book)
    assert book.available_copies == 1


@pytest.mark.django_db
def test_adjust_availability_missing_book():
    with pytest.raises(NotFoundError):
        services.adjust_availability(777, -1)


@pytest.mark.django_db
def test_copy_counts_hold_through_mixed_operations(make_book, member, other_member):
    book = make_book(total_copies=2)

    first = ledger.borrow_book(member, book.pk)
    assert_counts_within_bounds(book)
    services.update_book(book.pk, total_copies=3)
    assert_counts_within_bounds(book)
    second = ledger.borrow_book(other_member, book.pk)
    assert_counts_within_bounds(book)
    ledger.return_borrowing(first.pk)
    assert_counts_within_bounds(book)
    services.update_book(book.pk, total_copies=1)
    assert_counts_within_bounds(book)
    ledger.return_borrowing(second.pk)
    assert_counts_within_bounds(book)

    assert (book.total_copies, book.available_copies) == (1, 1)
