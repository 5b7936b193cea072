"""Hourly guest lifecycle evaluation.

Each evaluator picks the reservations whose trigger date is today (in
LIFECYCLE_TIME_ZONE), renders and sends one email per candidate, and
records the send in the delivery ledger. The day window only selects
candidates; the ledger check before sending is what keeps overlapping or
repeated ticks from mailing a guest twice.

One candidate's failure is logged and never stops the rest of the batch.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from . import ledger, store
from .models import NotificationKind, Reservation
from .notifications.dispatcher import build_dispatcher, get_delivery_config
from .services import (
    TemplateUnavailable, build_message, build_provider_context,
    get_enabled_template, held_days, render_reservation_email, schedule_for,
)

logger = logging.getLogger(__name__)


def _local(now):
    return (now or timezone.now()).astimezone(store.lifecycle_tz())


def _summary(**extra):
    return {'candidates': 0, 'sent': 0, 'skipped': 0, 'failed': 0, **extra}


def _send_batch(kind, template, candidates, provider, dispatcher, summary):
    """Render, dispatch and record ``kind`` for each candidate not yet in the ledger."""
    for reservation in candidates:
        summary['candidates'] += 1
        try:
            if ledger.has_sent(reservation.pk, kind):
                summary['skipped'] += 1
                continue
            rendered = render_reservation_email(template, reservation, provider)
            result = dispatcher.dispatch(build_message(kind, rendered, reservation.guest_email))
        except Exception:
            logger.exception('%s failed for %s', kind, reservation.booking_id)
            summary['failed'] += 1
            continue  # Never let one reservation block the batch

        summary['sent'] += 1
        try:
            ledger.mark_sent(reservation.pk, kind, provider=result.provider, message_id=result.message_id)
        except DatabaseError:
            # Sent but unrecorded: the next tick inside today's window may resend.
            logger.exception('Could not record %s for %s in ledger', kind, reservation.booking_id)
        logger.info('%s sent to %s via %s', kind, reservation.booking_id, result.provider)
    return summary


def _run_scheduled(kind, now, config, select):
    """Shared gate for the three reminder kinds.

    ``select(today, schedule_days)`` returns the candidate queryset.
    """
    local_now = _local(now)
    summary = _summary()
    try:
        template = get_enabled_template(kind)
    except TemplateUnavailable as exc:
        logger.info('Skipping %s: %s', kind, exc)
        return _summary(disabled=True)

    days, send_hour = schedule_for(template)
    if local_now.hour != send_hour:
        logger.debug('%s waits for %02d:00 (now %02d:00)', kind, send_hour, local_now.hour)
        return summary

    candidates = select(local_now.date(), days)
    provider = build_provider_context()
    dispatcher = build_dispatcher(config or get_delivery_config())
    return _send_batch(kind, template, candidates, provider, dispatcher, summary)


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------

def send_payment_reminders(now=None, config=None):
    """Transfer bookings whose hold ends today: created_at date + held days == today."""
    def select(today, days):
        return store.find_by_date_window(
            'created_at', today - timedelta(days=days),
            payment_method=Reservation.PaymentMethod.TRANSFER,
            payment_status=Reservation.PaymentStatus.PENDING,
            status=Reservation.Status.RESERVED,
        )
    return _run_scheduled(NotificationKind.PAYMENT_REMINDER, now, config, select)


def send_checkin_reminders(now=None, config=None):
    """Paid, active bookings checking in ``schedule_days`` from today."""
    def select(today, days):
        return store.find_by_date_window(
            'check_in_date', today + timedelta(days=days),
            status=Reservation.Status.ACTIVE,
            payment_status=Reservation.PaymentStatus.PAID,
        )
    return _run_scheduled(NotificationKind.CHECKIN_REMINDER, now, config, select)


def send_feedback_requests(now=None, config=None):
    """Active bookings that checked out ``schedule_days`` ago."""
    def select(today, days):
        return store.find_by_date_window(
            'check_out_date', today - timedelta(days=days),
            status=Reservation.Status.ACTIVE,
        )
    return _run_scheduled(NotificationKind.FEEDBACK_REQUEST, now, config, select)


def cancel_expired_reservations(now=None, config=None):
    """Cancel unpaid transfer bookings held past their deadline, then notify the guest.

    The status change is a conditional UPDATE, so a booking paid in the
    meantime or already cancelled by an earlier run is left alone. The
    cancellation stands even if the email cannot be sent.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=held_days())
    summary = _summary(cancelled=0)

    candidates = list(
        Reservation.objects.awaiting_transfer().filter(created_at__lt=cutoff).order_by('id')
    )
    if not candidates:
        return summary

    try:
        template = get_enabled_template(NotificationKind.CANCEL_NOTIFICATION)
    except TemplateUnavailable as exc:
        logger.info('Cancelling without notice: %s', exc)
        template = None

    notify = []
    for reservation in candidates:
        try:
            changed = store.update_fields(
                reservation.pk,
                expected={
                    'status': Reservation.Status.RESERVED,
                    'payment_status': Reservation.PaymentStatus.PENDING,
                },
                status=Reservation.Status.CANCELLED,
            )
        except DatabaseError:
            logger.exception('Could not cancel %s', reservation.booking_id)
            summary['failed'] += 1
            continue
        if not changed:
            continue
        summary['cancelled'] += 1
        reservation.status = Reservation.Status.CANCELLED
        logger.info('Cancelled %s: payment not received by deadline', reservation.booking_id)
        notify.append(reservation)

    if template is None or not notify:
        return summary

    provider = build_provider_context()
    dispatcher = build_dispatcher(config or get_delivery_config())
    return _send_batch(
        NotificationKind.CANCEL_NOTIFICATION, template, notify, provider, dispatcher, summary,
    )


def run_lifecycle_tick(now=None, config=None):
    """One hourly tick: the three reminders, plus expiry at AUTO_EXPIRE_HOUR local time."""
    now = now or timezone.now()
    results = {
        NotificationKind.PAYMENT_REMINDER.value: send_payment_reminders(now, config),
        NotificationKind.CHECKIN_REMINDER.value: send_checkin_reminders(now, config),
        NotificationKind.FEEDBACK_REQUEST.value: send_feedback_requests(now, config),
    }
    if _local(now).hour == settings.AUTO_EXPIRE_HOUR:
        results[NotificationKind.CANCEL_NOTIFICATION.value] = cancel_expired_reservations(now, config)
    return results
