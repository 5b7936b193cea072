import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from . import ledger, store
from .conf import get_setting
from .models import Addon, EmailTemplate, NotificationKind, Reservation
from .notifications.base import DeliveryError, OutgoingEmail
from .notifications.context import (
    DEFAULT_DAYS_RESERVED, ProviderContext, build_conditions, build_context, build_footer,
)
from .notifications.defaults import SCHEDULE_DEFAULTS, default_fields
from .notifications.dispatcher import send_email
from .notifications.renderer import render

logger = logging.getLogger(__name__)


class TemplateUnavailable(Exception):
    """Template missing or disabled; nothing is sent for it."""


class InvalidStatusTransition(Exception):
    pass


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def get_enabled_template(key):
    template = EmailTemplate.objects.filter(key=key).first()
    if template is None:
        raise TemplateUnavailable(f'Email template {key!r} does not exist')
    if not template.is_enabled:
        raise TemplateUnavailable(f'Email template {key!r} is disabled')
    return template


def schedule_for(template):
    """(schedule_days, send_hour) with stock defaults filling blanks."""
    default_days, default_hour = SCHEDULE_DEFAULTS.get(template.key, (0, 0))
    days = template.schedule_days if template.schedule_days is not None else default_days
    hour = template.send_hour if template.send_hour is not None else default_hour
    return days, hour


def held_days():
    """Days an unpaid transfer booking is held, from the payment_reminder template."""
    template = EmailTemplate.objects.filter(key=NotificationKind.PAYMENT_REMINDER).first()
    if template is None or template.schedule_days is None:
        return DEFAULT_DAYS_RESERVED
    return template.schedule_days


def reset_template(key):
    """Restore the stock subject, body and schedule for ``key``."""
    if key not in NotificationKind.values:
        raise TemplateUnavailable(f'Unknown email template {key!r}')
    template, _created = EmailTemplate.objects.update_or_create(
        key=key, defaults=default_fields(key),
    )
    logger.info('Email template %s reset to default', key)
    return template


# ---------------------------------------------------------------------------
# Rendering / sending
# ---------------------------------------------------------------------------

def build_provider_context(days_reserved=None):
    return ProviderContext(
        bank_name=get_setting('bank_name'),
        bank_branch=get_setting('bank_branch'),
        bank_account=get_setting('bank_account'),
        account_name=get_setting('account_name'),
        hotel_name=get_setting('hotel_name'),
        hotel_phone=get_setting('hotel_phone'),
        hotel_address=get_setting('hotel_address'),
        hotel_email=get_setting('hotel_email'),
        addon_names=dict(Addon.objects.values_list('name', 'display_name')),
        days_reserved=held_days() if days_reserved is None else days_reserved,
        time_zone=settings.LIFECYCLE_TIME_ZONE,
    )


def render_reservation_email(template, reservation, provider):
    context = build_context(reservation, provider)
    return render(
        template,
        context,
        footer=build_footer(provider),
        conditions=build_conditions(reservation, context),
    )


def render_template(key, reservation, provider=None):
    """Render the enabled template ``key`` for ``reservation``."""
    template = get_enabled_template(key)
    return render_reservation_email(template, reservation, provider or build_provider_context())


def build_message(kind, rendered, to):
    return OutgoingEmail(
        to=to,
        subject=rendered.subject,
        html=rendered.body,
        tags={'kind': str(kind)},
    )


def send_template_email(key, reservation, to=None, record=True, config=None):
    """Render and send ``key`` now, with no time gating.

    ``record=False`` is for test sends: the ledger is left untouched.
    Raises TemplateUnavailable or DeliveryError.
    """
    rendered = render_template(key, reservation)
    result = send_email(build_message(key, rendered, to or reservation.guest_email), config)
    if record and reservation.pk:
        try:
            ledger.mark_sent(reservation.pk, key, provider=result.provider, message_id=result.message_id)
        except DatabaseError:
            # Delivered but unrecorded; the send itself still succeeded.
            logger.exception('Could not record %s for %s in ledger', key, reservation.booking_id)
    logger.info(
        'Sent %s for %s via %s', key, reservation.booking_id, result.provider,
    )
    return result


def _send_quietly(key, reservation):
    """Event email that must never undo the state change that triggered it."""
    try:
        return send_template_email(key, reservation)
    except TemplateUnavailable as exc:
        logger.info('Skipping %s for %s: %s', key, reservation.booking_id, exc)
    except DeliveryError:
        logger.exception('Could not send %s for %s', key, reservation.booking_id)
    return None


# ---------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------

def generate_booking_id():
    """'BK' + last 8 digits of the millisecond clock, bumped past collisions."""
    stamp = int(timezone.now().timestamp() * 1000)
    for offset in range(1000):
        candidate = f'BK{(stamp + offset) % 10 ** 8:08d}'
        if not Reservation.objects.filter(booking_id=candidate).exists():
            return candidate
    raise RuntimeError('Could not allocate a free booking id')


def price_reservation(check_in_date, check_out_date, price_per_night, addons=None,
                      discount_amount=0, payment_amount=Reservation.PaymentAmount.FULL):
    """Monetary fields for a booking. Deposit bookings owe ``deposit_percentage`` now."""
    nights = max(1, (check_out_date - check_in_date).days)
    addons_total = sum(
        int(addon.get('price') or 0) * int(addon.get('quantity') or 1)
        for addon in addons or []
    )
    total = price_per_night * nights + addons_total
    payable = max(0, total - discount_amount)
    if payment_amount == Reservation.PaymentAmount.DEPOSIT:
        percentage = int(get_setting('deposit_percentage', 30))
        final = round(payable * percentage / 100)
    else:
        final = payable
    return {
        'nights': nights,
        'addons_total': addons_total,
        'total_amount': total,
        'discount_amount': discount_amount,
        'final_amount': final,
    }


def create_reservation(**data):
    """Persist a new booking and send its confirmation.

    Card and transfer bookings both start reserved/pending. A failed
    confirmation email is logged and never rolls the booking back.
    """
    pricing = price_reservation(
        data['check_in_date'], data['check_out_date'], data.get('price_per_night', 0),
        addons=data.get('addons'),
        discount_amount=data.get('discount_amount', 0),
        payment_amount=data.get('payment_amount', Reservation.PaymentAmount.FULL),
    )
    fields = {**data, **pricing}
    for _attempt in range(3):
        try:
            with transaction.atomic():
                reservation = Reservation.objects.create(
                    booking_id=generate_booking_id(),
                    status=Reservation.Status.RESERVED,
                    payment_status=Reservation.PaymentStatus.PENDING,
                    **fields,
                )
            break
        except IntegrityError:
            logger.warning('Booking id collision, retrying')
    else:
        raise RuntimeError('Could not create reservation')

    logger.info('Created reservation %s (%s)', reservation.booking_id, reservation.payment_method)
    _send_quietly(NotificationKind.BOOKING_CONFIRMATION, reservation)
    return reservation


def confirm_payment(reservation):
    """pending -> paid; reserved -> active. Transfer bookings get a payment receipt once.

    Cancelled and deleted bookings are never marked paid: raises
    InvalidStatusTransition.
    """
    payable = [Reservation.Status.RESERVED, Reservation.Status.ACTIVE]
    paid = store.update_fields(
        reservation.pk,
        expected={
            'payment_status': Reservation.PaymentStatus.PENDING,
            'status__in': payable,
        },
        payment_status=Reservation.PaymentStatus.PAID,
    )
    store.update_fields(
        reservation.pk,
        expected={'status': Reservation.Status.RESERVED},
        status=Reservation.Status.ACTIVE,
    )
    reservation.refresh_from_db()
    if reservation.status not in payable:
        raise InvalidStatusTransition(
            f'Cannot confirm payment for {reservation.booking_id}: reservation is {reservation.status}'
        )
    if not paid:
        return reservation

    logger.info('Payment confirmed for %s', reservation.booking_id)
    if (
        reservation.payment_method == Reservation.PaymentMethod.TRANSFER
        and not ledger.has_sent(reservation.pk, NotificationKind.PAYMENT_COMPLETED)
    ):
        _send_quietly(NotificationKind.PAYMENT_COMPLETED, reservation)
    return reservation


def change_status(reservation, new_status):
    if not reservation.can_transition_to(new_status):
        raise InvalidStatusTransition(
            f'Cannot move {reservation.booking_id} from {reservation.status} to {new_status}'
        )
    changed = store.update_fields(
        reservation.pk, expected={'status': reservation.status}, status=new_status,
    )
    if not changed:
        raise InvalidStatusTransition(f'{reservation.booking_id} changed concurrently')
    reservation.refresh_from_db()
    return reservation


def cancel_reservation(reservation):
    return change_status(reservation, Reservation.Status.CANCELLED)


def sample_reservation():
    """Unsaved reservation with fixed demo data, for previews and test sends."""
    today = timezone.localdate()
    check_in = today + timedelta(days=7)
    addons = [{'name': 'breakfast', 'price': 300, 'quantity': 2}]
    pricing = price_reservation(
        check_in, check_in + timedelta(days=2), 2800,
        addons=addons, payment_amount=Reservation.PaymentAmount.DEPOSIT,
    )
    return Reservation(
        booking_id='BK12345678',
        check_in_date=check_in,
        check_out_date=check_in + timedelta(days=2),
        room_type='Deluxe Double',
        guest_name='Sample Guest',
        guest_phone='0912-345-678',
        guest_email='guest@example.com',
        adults=2,
        price_per_night=2800,
        addons=addons,
        payment_method=Reservation.PaymentMethod.TRANSFER,
        payment_amount=Reservation.PaymentAmount.DEPOSIT,
        created_at=timezone.now(),
        **pricing,
    )
