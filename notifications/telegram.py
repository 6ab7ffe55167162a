import logging

import pytz
import requests
from django.conf import settings
from django.utils import timezone
from django.utils.html import escape

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/{method}"
REQUEST_TIMEOUT = 6


def local_now():
    return timezone.now().astimezone(pytz.timezone(settings.LIBRARY_TIME_ZONE))


def send_telegram_message(
    text: str,
    parse_mode: str | None = "HTML",
    disable_web_page_preview: bool = True,
    disable_notification: bool = False,
) -> bool:
    """
    Send a message to the configured chat. Returns True on success.

    Does nothing (and returns False) when notifications are disabled or the
    bot is not configured; delivery errors are logged, never raised.
    """
    if not settings.TELEGRAM_NOTIFICATIONS_ENABLED:
        return False

    token = settings.TELEGRAM_BOT_TOKEN
    chat_id = settings.TELEGRAM_CHAT_ID
    if not token or not chat_id:
        logger.warning("Telegram notifications enabled but bot token or chat id missing")
        return False

    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": parse_mode,
        "disable_web_page_preview": disable_web_page_preview,
        "disable_notification": disable_notification,
    }

    try:
        resp = requests.post(
            API_URL.format(token=token, method="sendMessage"),
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        return bool(resp.json().get("ok"))
    except (requests.RequestException, ValueError) as exc:
        logger.warning(f"Telegram sendMessage failed: {exc}")
        return False


def format_new_borrowing(borrowing):
    book = borrowing.book
    user = borrowing.user
    return (
        "<b>📚 New Borrowing</b>\n"
        f"👤 <b>User</b>: {escape(user.full_name)} ({escape(user.email)})\n"
        f"📖 <b>Book</b>: {escape(book.title)} by {escape(book.author)}\n"
        f"📅 <b>Borrowed</b>: {borrowing.borrowed_at:%Y-%m-%d}\n"
        f"🗓️ <b>Due</b>: {borrowing.due_at:%Y-%m-%d}\n"
        f"📦 <b>Copies left</b>: {book.available_copies} of {book.total_copies}\n"
        f"🧾 <b>Borrowing ID</b>: {borrowing.id}"
    )


def format_overdue_alert(borrowing, now):
    days = borrowing.days_overdue_at(now)
    return (
        "⚠️ <b>OVERDUE BORROWING ALERT</b>\n"
        f"📚 <b>Book</b>: {escape(borrowing.book.title)}\n"
        f"✍️ <b>Author</b>: {escape(borrowing.book.author)}\n"
        f"👤 <b>Borrower</b>: {escape(borrowing.user.full_name)}\n"
        f"📧 <b>Email</b>: {escape(borrowing.user.email)}\n"
        f"📅 <b>Borrowed</b>: {borrowing.borrowed_at:%Y-%m-%d}\n"
        f"🗓️ <b>Due Date</b>: {borrowing.due_at:%Y-%m-%d}\n"
        f"⏰ <b>Days Overdue</b>: {days} day{'s' if days != 1 else ''}\n"
        f"🧾 <b>Borrowing ID</b>: {borrowing.id}"
    )
