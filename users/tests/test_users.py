import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status

REGISTER_URL = reverse("users:create")
ME_URL = reverse("users:manage")
TOKEN_URL = reverse("users:token_obtain_pair")


@pytest.mark.django_db
def test_register_creates_member(api_client):
    response = api_client.post(
        REGISTER_URL,
        {"email": "new@example.com", "password": "longpass", "first_name": "New"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert "password" not in response.data
    user = get_user_model().objects.get(email="new@example.com")
    assert user.check_password("longpass")
    assert user.role == "member"
    assert not user.is_librarian


@pytest.mark.django_db
def test_register_cannot_claim_librarian_role(api_client):
    api_client.post(
        REGISTER_URL,
        {"email": "sneaky@example.com", "password": "longpass", "role": "librarian"},
    )

    assert get_user_model().objects.get(email="sneaky@example.com").role == "member"


@pytest.mark.django_db
def test_token_login_and_profile(api_client, member):
    token = api_client.post(
        TOKEN_URL, {"email": member.email, "password": "secret-pass"}
    ).data["access"]
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    response = api_client.get(ME_URL)

    assert response.status_code == status.HTTP_200_OK
    assert response.data["email"] == member.email


@pytest.mark.django_db
def test_profile_update_rehashes_password(member_client, member):
    response = member_client.patch(ME_URL, {"password": "brand-new-pass"})

    assert response.status_code == status.HTTP_200_OK
    member.refresh_from_db()
    assert member.check_password("brand-new-pass")


@pytest.mark.django_db
def test_superuser_is_librarian():
    admin = get_user_model().objects.create_superuser("admin@example.com", "secret-pass")

    assert admin.role == "librarian"
    assert admin.is_librarian
    assert admin.full_name == "admin@example.com"


def test_email_is_required():
    with pytest.raises(ValueError):
        get_user_model().objects.create_user(email="", password="x")


@pytest.mark.django_db
def test_member_cannot_list_users(member_client):
    response = member_client.get(reverse("users:users-list"))

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
def test_librarian_lists_users_with_borrowing_counts(librarian_client, member, other_member, book):
    from borrowings.services import borrow_book

    borrow_book(member, book.pk)

    response = librarian_client.get(reverse("users:users-list"), {"role": "member"})

    assert response.status_code == status.HTTP_200_OK
    rows = {row["email"]: row for row in response.data["results"]}
    assert set(rows) == {member.email, other_member.email}
    assert rows[member.email]["active_borrowings_count"] == 1
    assert rows[member.email]["total_borrowings_count"] == 1
    assert rows[member.email]["overdue_borrowings_count"] == 0
    assert rows[other_member.email]["total_borrowings_count"] == 0


@pytest.mark.django_db
def test_librarian_searches_users_by_email(librarian_client, member, other_member):
    response = librarian_client.get(reverse("users:users-list"), {"search": "OTHER"})

    assert [row["email"] for row in response.data["results"]] == [other_member.email]


@pytest.mark.django_db
def test_librarian_views_single_user(librarian_client, member):
    response = librarian_client.get(reverse("users:users-detail", args=[member.pk]))

    assert response.status_code == status.HTTP_200_OK
    assert response.data["full_name"] == "Ada Lovelace"


@pytest.mark.django_db
def test_health_is_public(api_client):
    response = api_client.get(reverse("health"))

    assert response.status_code == status.HTTP_200_OK
    assert response.data["status"] == "ok"
