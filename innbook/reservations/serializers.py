from rest_framework import serializers

from .models import DeliveryLedgerEntry, EmailTemplate, Reservation


class EmailTemplateSerializer(serializers.ModelSerializer):
    is_scheduled = serializers.BooleanField(read_only=True)

    class Meta:
        model = EmailTemplate
        fields = [
            'key', 'name', 'subject', 'content', 'is_enabled',
            'schedule_days', 'send_hour', 'is_scheduled', 'updated_at',
        ]
        read_only_fields = ['key', 'updated_at']

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError('Template body cannot be empty.')
        return value

    def validate(self, attrs):
        template = self.instance
        if template is not None and not template.is_scheduled:
            for field in ('schedule_days', 'send_hour'):
                if attrs.get(field) is not None:
                    raise serializers.ValidationError(
                        {field: f'{template.key} is event-triggered and has no schedule.'}
                    )
        return attrs


class TemplatePreviewSerializer(serializers.Serializer):
    """Optional real booking to render against; a sample booking otherwise."""
    booking_id = serializers.CharField(required=False, allow_blank=True)


class TemplateSendTestSerializer(TemplatePreviewSerializer):
    email = serializers.EmailField()


class LedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryLedgerEntry
        fields = ['kind', 'provider', 'provider_message_id', 'sent_at']


class ReservationSerializer(serializers.ModelSerializer):
    delivery_ledger = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            'booking_id', 'check_in_date', 'check_out_date', 'room_type',
            'guest_name', 'guest_phone', 'guest_email', 'adults', 'children',
            'price_per_night', 'nights', 'total_amount', 'discount_amount',
            'final_amount', 'addons', 'addons_total',
            'payment_amount', 'payment_method', 'payment_status', 'status',
            'created_at', 'delivery_ledger',
        ]

    def get_delivery_ledger(self, obj):
        return sorted(obj.delivery_ledger)
