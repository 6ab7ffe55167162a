from datetime import timedelta
from io import StringIO
from unittest import mock

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from borrowings.models import Borrowing


def run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
def test_check_overdue_command_without_overdue(book):
    with mock.patch("notifications.tasks.send_telegram_message", return_value=True):
        output = run("check_overdue_borrowings")

    assert "No overdue borrowings." in output


@pytest.mark.django_db
def test_check_overdue_command_lists_failures(member, book):
    now = timezone.now()
    borrowing = Borrowing.objects.create(
        user=member, book=book, borrowed_at=now - timedelta(days=20), due_at=now - timedelta(days=6)
    )

    with mock.patch("notifications.tasks.send_telegram_message", return_value=False):
        output = run("check_overdue_borrowings")

    assert "1 overdue borrowings, 0 alerts sent." in output
    assert f"Alerts failed for borrowings: {borrowing.id}" in output


@pytest.mark.django_db
def test_check_overdue_command_async():
    with mock.patch("notifications.tasks.check_overdue_borrowings.delay") as delay:
        delay.return_value.id = "task-1"
        output = run("check_overdue_borrowings", "--async")

    assert "task-1" in output


@pytest.mark.django_db
def test_send_overdue_notification_command(member, book):
    borrowing = Borrowing.objects.create(
        user=member, book=book, due_at=timezone.now() + timedelta(days=2)
    )

    output = run("send_overdue_notification", str(borrowing.id))
    assert "Skipped: Not overdue yet" in output

    with pytest.raises(CommandError, match="Borrowing not found"):
        run("send_overdue_notification", "424242")
