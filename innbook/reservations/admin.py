from django.contrib import admin, messages

from .models import Addon, DeliveryLedgerEntry, EmailTemplate, Reservation, SiteSetting
from .services import reset_template


class DeliveryLedgerInline(admin.TabularInline):
    model = DeliveryLedgerEntry
    extra = 0
    can_delete = False
    readonly_fields = ['kind', 'provider', 'provider_message_id', 'sent_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = [
        'booking_id', 'guest_name', 'check_in_date', 'check_out_date',
        'payment_method', 'payment_status', 'status', 'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_method']
    search_fields = ['booking_id', 'guest_name', 'guest_email', 'guest_phone']
    readonly_fields = ['booking_id', 'created_at', 'updated_at']
    date_hierarchy = 'check_in_date'
    inlines = [DeliveryLedgerInline]


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ['key', 'name', 'is_enabled', 'schedule_days', 'send_hour', 'updated_at']
    list_filter = ['is_enabled']
    readonly_fields = ['key', 'created_at', 'updated_at']
    actions = ['reset_to_default']

    @admin.action(description='Reset selected templates to default')
    def reset_to_default(self, request, queryset):
        for template in queryset:
            reset_template(template.key)
        messages.success(request, f'{queryset.count()} template(s) reset.')


@admin.register(DeliveryLedgerEntry)
class DeliveryLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ['reservation', 'kind', 'provider', 'sent_at']
    list_filter = ['kind', 'provider']
    search_fields = ['reservation__booking_id', 'provider_message_id']
    readonly_fields = ['reservation', 'kind', 'provider', 'provider_message_id', 'sent_at']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'description', 'updated_at']
    search_fields = ['key']


@admin.register(Addon)
class AddonAdmin(admin.ModelAdmin):
    list_display = ['name', 'display_name', 'price', 'is_active', 'display_order']
    list_editable = ['is_active', 'display_order']
