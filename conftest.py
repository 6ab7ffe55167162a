"""
Shared fixtures: users in both roles, a book factory and API clients.
"""

import itertools

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from books import services as catalog

_isbn_counter = itertools.count(1)


def next_isbn():
    return f"978{next(_isbn_counter):010d}"


@pytest.fixture(autouse=True)
def quiet_telegram(settings):
    """Telegram stays off unless a test turns it on."""
    settings.TELEGRAM_NOTIFICATIONS_ENABLED = False


@pytest.fixture
def make_user(db):
    User = get_user_model()

    def make(email, role=User.Role.MEMBER, **extra):
        return User.objects.create_user(email=email, password="secret-pass", role=role, **extra)

    return make


@pytest.fixture
def member(make_user):
    return make_user("member@example.com", first_name="Ada", last_name="Lovelace")


@pytest.fixture
def other_member(make_user):
    return make_user("other@example.com", first_name="Alan", last_name="Turing")


@pytest.fixture
def librarian(make_user):
    return make_user("librarian@example.com", role="librarian", first_name="Iryna")


@pytest.fixture
def make_book(db):
    def make(**fields):
        fields.setdefault("title", "Programming Ruby")
        fields.setdefault("author", "Dave Thomas")
        fields.setdefault("genre", "Programming")
        fields.setdefault("isbn", next_isbn())
        fields.setdefault("total_copies", 2)
        return catalog.create_book(**fields)

    return make


@pytest.fixture
def book(make_book):
    return make_book()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def member_client(member):
    client = APIClient()
    client.force_authenticate(user=member)
    return client


@pytest.fixture
def librarian_client(librarian):
    client = APIClient()
    client.force_authenticate(user=librarian)
    return client
