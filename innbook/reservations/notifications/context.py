import html
import zoneinfo
from dataclasses import dataclass, field
from datetime import timedelta

DATE_FORMAT = '%Y/%m/%d'
DATETIME_FORMAT = '%Y/%m/%d %H:%M'

DEFAULT_DAYS_RESERVED = 3


@dataclass
class ProviderContext:
    """Install-level data merged into every template: bank account, hotel identity, addon names."""

    bank_name: str = ''
    bank_branch: str = ''
    bank_account: str = ''
    account_name: str = ''
    hotel_name: str = ''
    hotel_phone: str = ''
    hotel_address: str = ''
    hotel_email: str = ''
    addon_names: dict = field(default_factory=dict)  # addon slug -> display name
    days_reserved: int = DEFAULT_DAYS_RESERVED
    time_zone: str = 'UTC'

    @property
    def bank_info(self):
        """Bank details, or None when no account number is configured."""
        if not self.bank_account:
            return None
        return {
            'bankName': self.bank_name,
            'bankBranch': self.bank_branch,
            'bankAccount': self.bank_account,
            'accountName': self.account_name,
        }


def money(value):
    return f'{int(value or 0):,}'


def addons_summary(addons, addon_names):
    """'Breakfast x2 (NT$ 600), Late checkout x1 (NT$ 500)'."""
    parts = []
    for addon in addons or []:
        if not isinstance(addon, dict):
            continue
        name = addon.get('name', '')
        quantity = int(addon.get('quantity') or 1)
        line_total = int(addon.get('price') or 0) * quantity
        display = addon_names.get(name) or name
        parts.append(f'{display} x{quantity} (NT$ {money(line_total)})')
    return ', '.join(parts)


def amounts(reservation):
    """Raw monetary values under their placeholder names."""
    remaining = max(
        0,
        (reservation.total_amount or 0)
        - (reservation.discount_amount or 0)
        - (reservation.final_amount or 0),
    )
    return {
        'pricePerNight': reservation.price_per_night or 0,
        'totalAmount': reservation.total_amount or 0,
        'discountAmount': reservation.discount_amount or 0,
        'finalAmount': reservation.final_amount or 0,
        'remainingAmount': remaining,
        'addonsTotal': reservation.addons_total or 0,
    }


def build_context(reservation, provider: ProviderContext):
    """Placeholder map for one reservation.

    Derived camelCase fields first, then every raw model field under its own
    name for templates that reference columns directly. Amounts are display
    strings here; see build_conditions() for what ``{{#if}}`` tests.
    """
    tz = zoneinfo.ZoneInfo(provider.time_zone)
    created_local = reservation.created_at.astimezone(tz)
    deadline = created_local + timedelta(days=provider.days_reserved)

    nights = max(1, (reservation.check_out_date - reservation.check_in_date).days)
    is_deposit = reservation.payment_amount == 'deposit'
    is_transfer = reservation.payment_method == 'transfer'
    booking_id = reservation.booking_id or ''

    context = {
        'guestName': reservation.guest_name,
        'guestPhone': reservation.guest_phone,
        'guestEmail': reservation.guest_email,
        'bookingId': booking_id,
        'bookingIdLast5': booking_id[-5:],
        'checkInDate': reservation.check_in_date.strftime(DATE_FORMAT),
        'checkOutDate': reservation.check_out_date.strftime(DATE_FORMAT),
        'roomType': reservation.room_type,
        'nights': nights,
        'adults': reservation.adults,
        'children': reservation.children,
        'hasDiscount': bool(reservation.discount_amount),
        'addonsList': addons_summary(reservation.addons, provider.addon_names),
        'paymentMethod': reservation.get_payment_method_display(),
        'paymentAmount': reservation.get_payment_amount_display(),
        'paymentStatus': reservation.get_payment_status_display(),
        'isDeposit': is_deposit,
        'isTransfer': is_transfer,
        'isCard': not is_transfer,
        'isPaid': reservation.payment_status == 'paid',
        'bankName': provider.bank_name,
        'bankBranch': provider.bank_branch,
        'bankBranchDisplay': f' - {provider.bank_branch}' if provider.bank_branch else '',
        'bankAccount': provider.bank_account,
        'accountName': provider.account_name,
        'bankInfo': provider.bank_info,
        'daysReserved': provider.days_reserved,
        'paymentDeadline': deadline.strftime(DATE_FORMAT),
        'bookingDate': created_local.strftime(DATE_FORMAT),
        'bookingDateTime': created_local.strftime(DATETIME_FORMAT),
        'hotelName': provider.hotel_name,
        'hotelPhone': provider.hotel_phone,
        'hotelAddress': provider.hotel_address,
        'hotelEmail': provider.hotel_email,
    }
    context.update({name: money(value) for name, value in amounts(reservation).items()})

    for model_field in reservation._meta.concrete_fields:
        context.setdefault(model_field.name, getattr(reservation, model_field.attname))
    return context


def build_conditions(reservation, context):
    """``context`` with amounts as numbers, so a zero amount is falsy in ``{{#if}}``."""
    return {**context, **amounts(reservation)}


def build_footer(provider: ProviderContext):
    """Hotel contact block appended to every email; '' when nothing is configured."""
    lines = [
        (label, value) for label, value in (
            ('', provider.hotel_name),
            ('Phone', provider.hotel_phone),
            ('Address', provider.hotel_address),
            ('Email', provider.hotel_email),
        ) if value
    ]
    if not lines:
        return ''
    rows = []
    for label, value in lines:
        text = html.escape(value)
        if not label:
            rows.append(f'<p><strong>{text}</strong></p>')
        else:
            rows.append(f'<p>{label}: {text}</p>')
    return '<div class="footer">' + ''.join(rows) + '</div>'
