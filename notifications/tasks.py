import logging

from celery import shared_task
from django.utils import timezone

from borrowings.models import Borrowing
from borrowings.queries import overdue_borrowings
from notifications.telegram import format_overdue_alert, local_now, send_telegram_message

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def check_overdue_borrowings(self):
    """
    Send a Telegram alert for every overdue borrowing, then a summary.

    Overdue means still on loan with the due date in the past. When more
    alerts fail than succeed the task retries in five minutes.

    Returns:
        dict: Summary of the task execution
    """
    now = timezone.now()
    checked_at = local_now()
    borrowings = list(overdue_borrowings(now))
    overdue_count = len(borrowings)

    logger.info(
        f"Task {self.request.id}: Found {overdue_count} overdue borrowings "
        f"on {checked_at:%Y-%m-%d}"
    )

    if overdue_count == 0:
        send_telegram_message(
            "🎉 <b>No Overdue Borrowings Today!</b>\n"
            f"📅 <b>Date</b>: {checked_at:%Y-%m-%d}\n"
            f"🕘 <b>Checked at</b>: {checked_at:%H:%M}"
        )
        return {
            "task_id": self.request.id,
            "status": "success",
            "overdue_count": 0,
            "date": checked_at.date().isoformat(),
        }

    successful_notifications = 0
    failed_borrowing_ids = []

    for borrowing in borrowings:
        if send_telegram_message(format_overdue_alert(borrowing, now)):
            successful_notifications += 1
        else:
            failed_borrowing_ids.append(borrowing.id)
            logger.warning(
                f"Task {self.request.id}: Failed to send notification for borrowing {borrowing.id}"
            )

    failed_notifications = len(failed_borrowing_ids)
    summary = (
        "📊 <b>Daily Overdue Report</b>\n"
        f"📅 <b>Date</b>: {checked_at:%Y-%m-%d}\n"
        f"⚠️ <b>Total Overdue</b>: {overdue_count}\n"
        f"✅ <b>Notifications Sent</b>: {successful_notifications}\n"
        f"❌ <b>Failed Notifications</b>: {failed_notifications}"
    )
    if not send_telegram_message(summary):
        logger.warning(f"Task {self.request.id}: Failed to send summary message")

    logger.info(
        f"Task {self.request.id}: Overdue check completed. "
        f"{successful_notifications} successful, {failed_notifications} failed notifications."
    )

    if failed_notifications > successful_notifications and not self.request.is_eager:
        raise self.retry(countdown=300)

    return {
        "task_id": self.request.id,
        "status": "completed",
        "overdue_count": overdue_count,
        "successful_notifications": successful_notifications,
        "failed_notifications": failed_notifications,
        "failed_borrowing_ids": failed_borrowing_ids,
        "date": checked_at.date().isoformat(),
    }


@shared_task
def send_overdue_notification(borrowing_id):
    """Send the overdue alert for one borrowing, if it is still overdue."""
    try:
        borrowing = Borrowing.objects.select_related("book", "user").get(id=borrowing_id)
    except Borrowing.DoesNotExist:
        return {
            "borrowing_id": borrowing_id,
            "status": "error",
            "message": "Borrowing not found",
        }

    now = timezone.now()
    if borrowing.is_returned:
        return {"borrowing_id": borrowing_id, "status": "skipped", "reason": "Book already returned"}
    if not borrowing.is_overdue_at(now):
        return {"borrowing_id": borrowing_id, "status": "skipped", "reason": "Not overdue yet"}

    success = send_telegram_message(format_overdue_alert(borrowing, now))
    return {
        "borrowing_id": borrowing_id,
        "status": "success" if success else "failed",
        "message": (
            "Notification sent successfully" if success else "Failed to send notification"
        ),
    }
