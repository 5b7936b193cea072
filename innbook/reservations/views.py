import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from . import ledger
from .models import DeliveryLedgerEntry, EmailTemplate, NotificationKind, Reservation
from .notifications.base import DeliveryError
from .notifications.dispatcher import send_email
from .serializers import (
    EmailTemplateSerializer, LedgerEntrySerializer, ReservationSerializer,
    TemplatePreviewSerializer, TemplateSendTestSerializer,
)
from .services import (
    InvalidStatusTransition, TemplateUnavailable, build_message,
    build_provider_context, cancel_reservation, confirm_payment, render_reservation_email,
    reset_template, sample_reservation, send_template_email,
)

logger = logging.getLogger(__name__)


def _delivery_failed(exc):
    return Response(
        {'detail': 'Email could not be delivered.', 'errors': [
            {'provider': name, 'error': str(error)[:300]} for name, error in exc.attempts
        ]},
        status=status.HTTP_502_BAD_GATEWAY,
    )


def _reservation_or_sample(booking_id):
    if not booking_id:
        return sample_reservation()
    reservation = Reservation.objects.filter(booking_id=booking_id).first()
    if reservation is None:
        raise NotFound(f'Reservation {booking_id} not found.')
    return reservation


# ---------------------------------------------------------------------------
# Email templates
# ---------------------------------------------------------------------------

class EmailTemplateList(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = EmailTemplateSerializer
    queryset = EmailTemplate.objects.all()
    pagination_class = None


class EmailTemplateDetail(generics.RetrieveUpdateAPIView):
    """GET / PATCH one template by key."""
    permission_classes = [IsAdminUser]
    serializer_class = EmailTemplateSerializer
    queryset = EmailTemplate.objects.all()
    lookup_field = 'key'
    http_method_names = ['get', 'patch', 'head', 'options']

    def perform_update(self, serializer):
        template = serializer.save()
        logger.info('Email template %s updated by %s', template.key, self.request.user)


class EmailTemplatePreview(APIView):
    """Render a template (enabled or not) against a booking or the sample booking."""
    permission_classes = [IsAdminUser]

    def post(self, request, key):
        template = get_object_or_404(EmailTemplate, key=key)
        serializer = TemplatePreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = _reservation_or_sample(serializer.validated_data.get('booking_id'))

        rendered = render_reservation_email(template, reservation, build_provider_context())
        return Response({'subject': rendered.subject, 'body': rendered.body})


class EmailTemplateSendTest(APIView):
    """Send a rendered template to an arbitrary address. Never touches the ledger."""
    permission_classes = [IsAdminUser]

    def post(self, request, key):
        template = get_object_or_404(EmailTemplate, key=key)
        serializer = TemplateSendTestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = _reservation_or_sample(serializer.validated_data.get('booking_id'))

        rendered = render_reservation_email(template, reservation, build_provider_context())
        message = build_message(key, rendered, serializer.validated_data['email'])
        try:
            result = send_email(message)
        except DeliveryError as exc:
            logger.warning('Test send of %s failed: %s', key, exc)
            return _delivery_failed(exc)
        return Response({'provider': result.provider, 'message_id': result.message_id})


class EmailTemplateReset(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, key):
        try:
            template = reset_template(key)
        except TemplateUnavailable as exc:
            raise NotFound(str(exc))
        return Response(EmailTemplateSerializer(template).data)


# ---------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------

class ReservationSendNow(APIView):
    """Send ``key`` to the guest immediately, bypassing the send-hour gate."""
    permission_classes = [IsAdminUser]

    def post(self, request, booking_id, key):
        if key not in NotificationKind.values:
            raise NotFound(f'Unknown email template {key!r}.')
        reservation = get_object_or_404(Reservation, booking_id=booking_id)
        try:
            result = send_template_email(key, reservation)
        except TemplateUnavailable as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except DeliveryError as exc:
            logger.warning('Manual send of %s for %s failed: %s', key, booking_id, exc)
            return _delivery_failed(exc)
        return Response({
            'provider': result.provider,
            'message_id': result.message_id,
            'delivery_ledger': sorted(ledger.sent_kinds(reservation.pk)),
        })


class ReservationConfirmPayment(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, booking_id):
        reservation = get_object_or_404(Reservation, booking_id=booking_id)
        try:
            reservation = confirm_payment(reservation)
        except InvalidStatusTransition as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ReservationSerializer(reservation).data)


class ReservationLedger(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request, booking_id):
        reservation = get_object_or_404(Reservation, booking_id=booking_id)
        entries = DeliveryLedgerEntry.objects.filter(reservation=reservation)
        return Response({
            'booking_id': reservation.booking_id,
            'entries': LedgerEntrySerializer(entries, many=True).data,
        })


class ReservationCancel(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, booking_id):
        reservation = get_object_or_404(Reservation, booking_id=booking_id)
        try:
            reservation = cancel_reservation(reservation)
        except InvalidStatusTransition as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info('Reservation %s cancelled by %s', booking_id, request.user)
        return Response(ReservationSerializer(reservation).data)
