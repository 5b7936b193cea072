import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def send_payment_reminders_task():
    """Runs hourly via Celery Beat. Sends only during the template's send hour."""
    from .scheduler import send_payment_reminders
    summary = send_payment_reminders()
    if summary['candidates']:
        logger.info('Payment reminders: %s', summary)
    return summary


@shared_task
def send_checkin_reminders_task():
    """Runs hourly. Pre-arrival reminder for paid, active bookings."""
    from .scheduler import send_checkin_reminders
    summary = send_checkin_reminders()
    if summary['candidates']:
        logger.info('Check-in reminders: %s', summary)
    return summary


@shared_task
def send_feedback_requests_task():
    """Runs hourly. Post-stay feedback request."""
    from .scheduler import send_feedback_requests
    summary = send_feedback_requests()
    if summary['candidates']:
        logger.info('Feedback requests: %s', summary)
    return summary


@shared_task
def cancel_expired_reservations_task():
    """Runs daily at AUTO_EXPIRE_HOUR local time. Cancels unpaid transfer
    bookings past their hold and emails the guest."""
    from .scheduler import cancel_expired_reservations
    summary = cancel_expired_reservations()
    if summary['cancelled']:
        logger.info('Expired reservations: %s', summary)
    return summary
