"""Tests for reservation event emails and runtime settings.

Covers:
- create_reservation() pricing and booking confirmation
- confirm_payment() status moves and one-time payment receipt for transfers
- Event emails never undo the state change when delivery or the ledger write fails
- Cancelled bookings cannot be marked paid
- Template reset and settings lookup (SiteSetting over Django settings)
"""
from datetime import date
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase, override_settings

from reservations import ledger
from reservations.conf import get_setting
from reservations.models import EmailTemplate, NotificationKind, Reservation, SiteSetting
from reservations.notifications.base import DeliveryError, DeliveryResult
from reservations.services import (
    InvalidStatusTransition, TemplateUnavailable, cancel_reservation, confirm_payment,
    create_reservation, generate_booking_id, price_reservation, render_template,
    reset_template, sample_reservation,
)

BOOKING = dict(
    check_in_date=date(2024, 5, 1),
    check_out_date=date(2024, 5, 3),
    room_type='Twin',
    guest_name='Ann',
    guest_email='ann@example.com',
    price_per_night=2000,
)


def _sent_kinds(mock_send):
    return [call.args[0].tags['kind'] for call in mock_send.call_args_list]


# ---------------------------------------------------------------------------
# Pricing / creation
# ---------------------------------------------------------------------------

class PriceReservationTest(TestCase):

    def test_full_payment(self):
        pricing = price_reservation(
            date(2024, 5, 1), date(2024, 5, 3), 2000,
            addons=[{'name': 'breakfast', 'price': 300, 'quantity': 2}],
            discount_amount=100,
        )
        self.assertEqual(pricing['nights'], 2)
        self.assertEqual(pricing['addons_total'], 600)
        self.assertEqual(pricing['total_amount'], 4600)
        self.assertEqual(pricing['final_amount'], 4500)

    def test_deposit_uses_configured_percentage(self):
        pricing = price_reservation(
            date(2024, 5, 1), date(2024, 5, 2), 1000,
            payment_amount=Reservation.PaymentAmount.DEPOSIT,
        )
        self.assertEqual(pricing['final_amount'], 300)

        SiteSetting.objects.create(key='deposit_percentage', value='50')
        pricing = price_reservation(
            date(2024, 5, 1), date(2024, 5, 2), 1000,
            payment_amount=Reservation.PaymentAmount.DEPOSIT,
        )
        self.assertEqual(pricing['final_amount'], 500)


@patch('reservations.services.send_email')
class CreateReservationTest(TestCase):

    def test_creates_and_confirms(self, mock_send):
        mock_send.return_value = DeliveryResult(provider='resend', message_id='m1')
        reservation = create_reservation(**BOOKING)

        self.assertRegex(reservation.booking_id, r'^BK\d{8}$')
        self.assertEqual(reservation.status, Reservation.Status.RESERVED)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PENDING)
        self.assertEqual(_sent_kinds(mock_send), ['booking_confirmation'])
        self.assertEqual(mock_send.call_args.args[0].to, 'ann@example.com')
        self.assertTrue(ledger.has_sent(reservation.pk, NotificationKind.BOOKING_CONFIRMATION))

    def test_delivery_failure_keeps_booking(self, mock_send):
        mock_send.side_effect = DeliveryError('All email providers failed')
        reservation = create_reservation(**BOOKING)

        self.assertTrue(Reservation.objects.filter(pk=reservation.pk).exists())
        self.assertEqual(reservation.delivery_ledger, set())

    def test_disabled_confirmation_is_skipped(self, mock_send):
        EmailTemplate.objects.filter(key='booking_confirmation').update(is_enabled=False)
        create_reservation(**BOOKING)
        mock_send.assert_not_called()

    def test_booking_ids_are_unique(self, mock_send):
        mock_send.return_value = DeliveryResult(provider='resend', message_id='m1')
        first = create_reservation(**BOOKING)
        self.assertNotEqual(generate_booking_id(), first.booking_id)

    def test_ledger_write_failure_keeps_booking(self, mock_send):
        mock_send.return_value = DeliveryResult(provider='resend', message_id='m1')
        with patch('reservations.services.ledger.mark_sent', side_effect=DatabaseError('locked')):
            reservation = create_reservation(**BOOKING)

        self.assertTrue(Reservation.objects.filter(pk=reservation.pk).exists())
        mock_send.assert_called_once()


# ---------------------------------------------------------------------------
# Payment / status
# ---------------------------------------------------------------------------

@patch('reservations.services.send_email')
class ConfirmPaymentTest(TestCase):

    def _reservation(self, **overrides):
        fields = dict(BOOKING, booking_id='BK00000042', **overrides)
        return Reservation.objects.create(**fields)

    def test_transfer_receipt_sent_once(self, mock_send):
        mock_send.return_value = DeliveryResult(provider='smtp', message_id='m1')
        reservation = self._reservation()

        reservation = confirm_payment(reservation)
        confirm_payment(reservation)

        self.assertEqual(reservation.status, Reservation.Status.ACTIVE)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)
        self.assertEqual(_sent_kinds(mock_send), ['payment_completed'])
        self.assertTrue(ledger.has_sent(reservation.pk, NotificationKind.PAYMENT_COMPLETED))

    def test_card_payment_sends_nothing(self, mock_send):
        reservation = self._reservation(payment_method=Reservation.PaymentMethod.CARD)
        reservation = confirm_payment(reservation)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)
        mock_send.assert_not_called()

    def test_failed_receipt_keeps_payment(self, mock_send):
        mock_send.side_effect = DeliveryError('All email providers failed')
        reservation = confirm_payment(self._reservation())
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)
        self.assertFalse(ledger.has_sent(reservation.pk, NotificationKind.PAYMENT_COMPLETED))

    def test_cancelled_booking_never_marked_paid(self, mock_send):
        reservation = self._reservation(status=Reservation.Status.CANCELLED)
        with self.assertRaises(InvalidStatusTransition):
            confirm_payment(reservation)

        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PENDING)
        mock_send.assert_not_called()

    def test_ledger_write_failure_keeps_payment(self, mock_send):
        mock_send.return_value = DeliveryResult(provider='smtp', message_id='m1')
        with patch('reservations.services.ledger.mark_sent', side_effect=DatabaseError('locked')):
            reservation = confirm_payment(self._reservation())
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)

    def test_cancel_twice_rejected(self, mock_send):
        reservation = cancel_reservation(self._reservation())
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        with self.assertRaises(InvalidStatusTransition):
            cancel_reservation(reservation)


# ---------------------------------------------------------------------------
# Templates / settings
# ---------------------------------------------------------------------------

class TemplateServiceTest(TestCase):

    def test_reset_restores_stock_content(self):
        EmailTemplate.objects.filter(key='payment_reminder').update(
            subject='Custom', schedule_days=5, is_enabled=False,
        )
        template = reset_template('payment_reminder')
        self.assertIn('{{bookingId}}', template.subject)
        self.assertEqual(template.schedule_days, 3)
        self.assertEqual(template.send_hour, 9)
        self.assertTrue(template.is_enabled)

    def test_reset_unknown_key(self):
        with self.assertRaises(TemplateUnavailable):
            reset_template('nope')

    def test_render_disabled_template_refused(self):
        EmailTemplate.objects.filter(key='feedback_request').update(is_enabled=False)
        with self.assertRaises(TemplateUnavailable):
            render_template('feedback_request', sample_reservation())

    def test_sample_reservation_renders(self):
        rendered = render_template('booking_confirmation', sample_reservation())
        self.assertIn('BK12345678', rendered.subject)
        self.assertIn('Harbour Inn', rendered.body)


class GetSettingTest(TestCase):

    def test_falls_back_to_django_setting(self):
        self.assertEqual(get_setting('hotel_name'), 'Harbour Inn')

    def test_site_setting_wins(self):
        SiteSetting.objects.create(key='hotel_name', value='Bayside')
        self.assertEqual(get_setting('hotel_name'), 'Bayside')

    def test_blank_site_setting_falls_through(self):
        SiteSetting.objects.create(key='hotel_phone', value='')
        self.assertEqual(get_setting('hotel_phone'), '02-1234-5678')

    @override_settings(BANK_ACCOUNT='')
    def test_default_when_unset(self):
        self.assertEqual(get_setting('bank_account', 'n/a'), 'n/a')
