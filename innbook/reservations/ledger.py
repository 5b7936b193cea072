"""Per-reservation record of notification kinds confirmed sent.

Entries are only ever added. The (reservation, kind) unique constraint
makes concurrent ``mark_sent`` calls for the same pair collapse into one row.
"""
import logging

from django.db import IntegrityError, transaction

from .models import DeliveryLedgerEntry

logger = logging.getLogger(__name__)


def has_sent(reservation_id, kind):
    return DeliveryLedgerEntry.objects.filter(
        reservation_id=reservation_id, kind=kind,
    ).exists()


def sent_kinds(reservation_id):
    return set(
        DeliveryLedgerEntry.objects.filter(
            reservation_id=reservation_id,
        ).values_list('kind', flat=True)
    )


def mark_sent(reservation_id, kind, provider='', message_id=''):
    """Record ``kind`` as sent. Returns True if a new entry was written."""
    try:
        with transaction.atomic():
            _entry, created = DeliveryLedgerEntry.objects.get_or_create(
                reservation_id=reservation_id,
                kind=kind,
                defaults={
                    'provider': provider,
                    'provider_message_id': (message_id or '')[:200],
                },
            )
    except IntegrityError:
        # Lost the race against another writer for the same pair.
        created = False
    if not created:
        logger.debug('Ledger already holds %s for reservation %s', kind, reservation_id)
    return created
