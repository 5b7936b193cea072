"""Query surface over Reservation used by the lifecycle scheduler and services.

Everything goes through the ORM so the same calls run on PostgreSQL and
SQLite. Writes are plain UPDATEs: concurrent writers are last-write-wins,
and an optional ``expected`` filter turns a write into a conditional one.
"""
import zoneinfo
from datetime import datetime, time, timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from .models import Reservation


def lifecycle_tz():
    return zoneinfo.ZoneInfo(settings.LIFECYCLE_TIME_ZONE)


def local_day_bounds(on_date):
    """Aware [start, end) datetimes covering one calendar day in the lifecycle zone."""
    tz = lifecycle_tz()
    start = datetime.combine(on_date, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


def get(reservation_id):
    """Single reservation by primary key, or None."""
    return Reservation.objects.filter(pk=reservation_id).first()


def get_by_booking_id(booking_id):
    return Reservation.objects.filter(booking_id=booking_id).first()


def find_by_status(**predicate):
    """Reservations matching plain field equality, e.g. ``status='reserved'``."""
    return Reservation.objects.filter(**predicate).order_by('id')


def find_by_date_window(field, on_date, **predicate):
    """Reservations whose ``field`` falls on ``on_date`` (local calendar day).

    Date fields compare directly; datetime fields are matched against the
    day's bounds in the lifecycle time zone.
    """
    model_field = Reservation._meta.get_field(field)
    qs = find_by_status(**predicate)
    if isinstance(model_field, models.DateTimeField):
        start, end = local_day_bounds(on_date)
        return qs.filter(**{f'{field}__gte': start, f'{field}__lt': end})
    return qs.filter(**{field: on_date})


def update_fields(reservation_id, expected=None, **fields):
    """UPDATE the given fields, optionally only while ``expected`` still holds.

    Returns the number of rows changed (0 or 1).
    """
    qs = Reservation.objects.filter(pk=reservation_id)
    if expected:
        qs = qs.filter(**expected)
    fields.setdefault('updated_at', timezone.now())
    return qs.update(**fields)
