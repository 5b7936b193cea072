from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class NotificationKind(models.TextChoices):
    """Guest email kinds. Each kind is also the key of its EmailTemplate."""
    BOOKING_CONFIRMATION = 'booking_confirmation', 'Booking confirmation'
    PAYMENT_REMINDER = 'payment_reminder', 'Payment deadline reminder'
    CHECKIN_REMINDER = 'checkin_reminder', 'Check-in reminder'
    FEEDBACK_REQUEST = 'feedback_request', 'Feedback request'
    PAYMENT_COMPLETED = 'payment_completed', 'Payment received'
    CANCEL_NOTIFICATION = 'cancel_notification', 'Cancellation notice'


SCHEDULED_KINDS = {
    NotificationKind.PAYMENT_REMINDER,
    NotificationKind.CHECKIN_REMINDER,
    NotificationKind.FEEDBACK_REQUEST,
}


class ReservationQuerySet(models.QuerySet):

    def live(self):
        return self.exclude(status=Reservation.Status.DELETED)

    def awaiting_transfer(self):
        """Transfer bookings still held and unpaid."""
        return self.filter(
            payment_method=Reservation.PaymentMethod.TRANSFER,
            payment_status=Reservation.PaymentStatus.PENDING,
            status=Reservation.Status.RESERVED,
        )


class Reservation(models.Model):
    class Status(models.TextChoices):
        RESERVED = 'reserved', 'Reserved'
        ACTIVE = 'active', 'Active'
        CANCELLED = 'cancelled', 'Cancelled'
        DELETED = 'deleted', 'Deleted'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'

    class PaymentMethod(models.TextChoices):
        TRANSFER = 'transfer', 'Bank transfer'
        CARD = 'card', 'Card'

    class PaymentAmount(models.TextChoices):
        FULL = 'full', 'Full payment'
        DEPOSIT = 'deposit', 'Deposit'

    # cancelled and deleted are terminal for the lifecycle engine;
    # deleted is an administrator soft-delete.
    VALID_TRANSITIONS = {
        'reserved': ['active', 'cancelled', 'deleted'],
        'active': ['cancelled', 'deleted'],
        'cancelled': ['deleted'],
    }

    booking_id = models.CharField(max_length=20, unique=True, db_index=True)
    check_in_date = models.DateField()
    check_out_date = models.DateField()
    room_type = models.CharField(max_length=100)
    guest_name = models.CharField(max_length=200)
    guest_phone = models.CharField(max_length=30, blank=True)
    guest_email = models.EmailField()
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)

    price_per_night = models.PositiveIntegerField(default=0)
    nights = models.PositiveSmallIntegerField(default=1)
    total_amount = models.PositiveIntegerField(default=0, help_text='Subtotal before discount')
    discount_amount = models.PositiveIntegerField(default=0)
    final_amount = models.PositiveIntegerField(default=0, help_text='Amount due now')
    addons = models.JSONField(
        default=list, blank=True,
        help_text='List of {"name", "price", "quantity"} selected at booking',
    )
    addons_total = models.PositiveIntegerField(default=0)

    payment_amount = models.CharField(
        max_length=10, choices=PaymentAmount.choices, default=PaymentAmount.FULL,
    )
    payment_method = models.CharField(
        max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.TRANSFER,
    )
    payment_status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING,
    )
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.RESERVED,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['status', 'payment_status', 'created_at'], name='idx_resv_status_pay_created'),
            models.Index(fields=['status', 'check_in_date'], name='idx_resv_status_checkin'),
            models.Index(fields=['status', 'check_out_date'], name='idx_resv_status_checkout'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.booking_id} ({self.status})'

    def can_transition_to(self, new_status):
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    @property
    def delivery_ledger(self):
        """Set of notification kinds confirmed sent for this reservation."""
        if self.pk is None:
            return set()
        return set(self.ledger_entries.values_list('kind', flat=True))


class DeliveryLedgerEntry(models.Model):
    """Append-only record of a notification kind confirmed sent for a reservation."""

    reservation = models.ForeignKey(
        Reservation, on_delete=models.CASCADE, related_name='ledger_entries',
    )
    kind = models.CharField(max_length=40, choices=NotificationKind.choices)
    provider = models.CharField(max_length=20, blank=True)
    provider_message_id = models.CharField(max_length=200, blank=True)
    sent_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['reservation', 'kind'],
                name='uniq_ledger_reservation_kind',
            ),
        ]
        ordering = ['sent_at']
        verbose_name_plural = 'Delivery ledger entries'

    def __str__(self):
        return f'{self.reservation_id}:{self.kind}'


class EmailTemplate(models.Model):
    """Editable guest email. Scheduled kinds carry a day offset and a local send hour."""

    key = models.CharField(max_length=40, unique=True, choices=NotificationKind.choices)
    name = models.CharField(max_length=100)
    subject = models.CharField(max_length=300)
    content = models.TextField(help_text='HTML body with {{placeholders}} and {{#if}} blocks')
    is_enabled = models.BooleanField(default=True)
    schedule_days = models.PositiveSmallIntegerField(
        null=True, blank=True,
        help_text=(
            'payment_reminder: days a transfer booking is held. '
            'checkin_reminder: days before check-in. '
            'feedback_request: days after check-out.'
        ),
    )
    send_hour = models.PositiveSmallIntegerField(
        null=True, blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(23)],
        help_text='Local hour of day (0-23) the scheduled email goes out.',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return self.name

    @property
    def is_scheduled(self):
        return self.key in SCHEDULED_KINDS


class SiteSetting(models.Model):
    """Runtime-editable key/value settings. Takes precedence over Django settings."""

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True)
    description = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return self.key


class Addon(models.Model):
    """Purchasable extra shown in the booking form and the addon summary line."""

    name = models.SlugField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    price = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ['display_order', 'name']

    def __str__(self):
        return self.display_name
