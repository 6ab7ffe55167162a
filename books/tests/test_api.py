import pytest
from django.urls import reverse
from rest_framework import status

from books.models import Book

BOOK_URL = reverse("books:books-list")


def detail_url(book_id):
    return reverse("books:books-detail", args=[book_id])


def book_payload(**overrides):
    payload = {
        "title": "The Pragmatic Programmer",
        "author": "Andrew Hunt",
        "genre": "Programming",
        "isbn": "978-0-201-61622-4",
        "total_copies": 3,
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_catalog_requires_authentication(api_client):
    response = api_client.get(BOOK_URL)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
def test_member_can_list_and_filter(member_client, make_book):
    make_book(title="Dune", genre="Science Fiction")
    make_book(title="Refactoring", genre="Programming")

    response = member_client.get(BOOK_URL, {"genre": "science"})

    assert response.status_code == status.HTTP_200_OK
    assert response.data["count"] == 1
    assert response.data["results"][0]["title"] == "Dune"
    assert response.data["results"][0]["is_available"] is True


@pytest.mark.django_db
def test_member_cannot_create_book(member_client):
    response = member_client.post(BOOK_URL, book_payload())

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert not Book.objects.exists()


@pytest.mark.django_db
def test_librarian_creates_book(librarian_client):
    response = librarian_client.post(BOOK_URL, book_payload())

    assert response.status_code == status.HTTP_201_CREATED
    assert response.data["isbn"] == "9780201616224"
    assert response.data["available_copies"] == 3
    assert response.data["borrowed_copies"] == 0


@pytest.mark.django_db
def test_create_reports_all_errors_as_unprocessable(librarian_client):
    response = librarian_client.post(
        BOOK_URL, book_payload(title="", isbn="123", total_copies=0)
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.data["kind"] == "validation_error"
    assert {"title", "isbn", "total_copies"} <= set(response.data["details"])
    assert "timestamp" in response.data


@pytest.mark.django_db
def test_duplicate_isbn_is_conflict(librarian_client, make_book):
    make_book(isbn="9780201616224")

    response = librarian_client.post(BOOK_URL, book_payload())

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.data["kind"] == "conflict"


@pytest.mark.django_db
def test_partial_update(librarian_client, book):
    response = librarian_client.patch(detail_url(book.pk), {"total_copies": 4})

    assert response.status_code == status.HTTP_200_OK
    assert response.data["total_copies"] == 4
    assert response.data["available_copies"] == 4


@pytest.mark.django_db
def test_update_missing_book_is_not_found(librarian_client):
    response = librarian_client.patch(detail_url(999), {"title": "Ghost"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data["kind"] == "not_found"


@pytest.mark.django_db
def test_delete_blocked_while_on_loan(librarian_client, book, member):
    from borrowings.services import borrow_book

    borrow_book(member, book.pk)

    response = librarian_client.delete(detail_url(book.pk))

    assert response.status_code == status.HTTP_409_CONFLICT
    assert Book.objects.filter(pk=book.pk).exists()


@pytest.mark.django_db
def test_delete_book(librarian_client, book):
    response = librarian_client.delete(detail_url(book.pk))

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert not Book.objects.filter(pk=book.pk).exists()


@pytest.mark.django_db
def test_search_endpoint(member_client, make_book):
    make_book(title="Ruby Programming", author="J. Doe")
    make_book(title="Python Basics", author="Ruby Smith")

    response = member_client.get(reverse("books:books-search"), {"q": "Ruby"})

    assert response.status_code == status.HTTP_200_OK
    assert response.data["query"] == "Ruby"
    assert [book["title"] for book in response.data["results"]] == [
        "Ruby Programming",
        "Python Basics",
    ]


@pytest.mark.django_db
def test_search_endpoint_requires_query(member_client):
    response = member_client.get(reverse("books:books-search"), {"q": "  "})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.data["details"] == {"q": ["This parameter is required."]}


@pytest.mark.django_db
def test_suggestions_endpoint(member_client, make_book):
    make_book(title="Ruby Programming", author="J. Doe")

    response = member_client.get(reverse("books:books-suggestions"), {"q": "rub", "limit": 3})

    assert response.status_code == status.HTTP_200_OK
    assert response.data == {"suggestions": ["Ruby Programming by J. Doe"], "query": "rub"}


@pytest.mark.django_db
def test_suggestions_endpoint_rejects_bad_limit(member_client):
    response = member_client.get(reverse("books:books-suggestions"), {"q": "a", "limit": "many"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.django_db
def test_advanced_search_endpoint(member_client, make_book):
    make_book(title="Dune", genre="Science Fiction", total_copies=1)
    make_book(title="Refactoring", genre="Programming")

    response = member_client.get(
        reverse("books:books-advanced-search"),
        {"genre": "science fiction", "available_only": "true"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert [book["title"] for book in response.data["results"]] == ["Dune"]
    assert response.data["filters"]["available_only"] is True
