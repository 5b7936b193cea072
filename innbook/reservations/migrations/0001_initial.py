import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Addon',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.SlugField(unique=True)),
                ('display_name', models.CharField(max_length=100)),
                ('price', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('display_order', models.PositiveSmallIntegerField(default=0)),
            ],
            options={
                'ordering': ['display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='EmailTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(choices=[('booking_confirmation', 'Booking confirmation'), ('payment_reminder', 'Payment deadline reminder'), ('checkin_reminder', 'Check-in reminder'), ('feedback_request', 'Feedback request'), ('payment_completed', 'Payment received'), ('cancel_notification', 'Cancellation notice')], max_length=40, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('subject', models.CharField(max_length=300)),
                ('content', models.TextField(help_text='HTML body with {{placeholders}} and {{#if}} blocks')),
                ('is_enabled', models.BooleanField(default=True)),
                ('schedule_days', models.PositiveSmallIntegerField(blank=True, help_text='payment_reminder: days a transfer booking is held. checkin_reminder: days before check-in. feedback_request: days after check-out.', null=True)),
                ('send_hour', models.PositiveSmallIntegerField(blank=True, help_text='Local hour of day (0-23) the scheduled email goes out.', null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(23)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['key'],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('booking_id', models.CharField(db_index=True, max_length=20, unique=True)),
                ('check_in_date', models.DateField()),
                ('check_out_date', models.DateField()),
                ('room_type', models.CharField(max_length=100)),
                ('guest_name', models.CharField(max_length=200)),
                ('guest_phone', models.CharField(blank=True, max_length=30)),
                ('guest_email', models.EmailField(max_length=254)),
                ('adults', models.PositiveSmallIntegerField(default=1)),
                ('children', models.PositiveSmallIntegerField(default=0)),
                ('price_per_night', models.PositiveIntegerField(default=0)),
                ('nights', models.PositiveSmallIntegerField(default=1)),
                ('total_amount', models.PositiveIntegerField(default=0, help_text='Subtotal before discount')),
                ('discount_amount', models.PositiveIntegerField(default=0)),
                ('final_amount', models.PositiveIntegerField(default=0, help_text='Amount due now')),
                ('addons', models.JSONField(blank=True, default=list, help_text='List of {"name", "price", "quantity"} selected at booking')),
                ('addons_total', models.PositiveIntegerField(default=0)),
                ('payment_amount', models.CharField(choices=[('full', 'Full payment'), ('deposit', 'Deposit')], default='full', max_length=10)),
                ('payment_method', models.CharField(choices=[('transfer', 'Bank transfer'), ('card', 'Card')], default='transfer', max_length=10)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid')], default='pending', max_length=10)),
                ('status', models.CharField(choices=[('reserved', 'Reserved'), ('active', 'Active'), ('cancelled', 'Cancelled'), ('deleted', 'Deleted')], default='reserved', max_length=10)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'payment_status', 'created_at'], name='idx_resv_status_pay_created'),
                    models.Index(fields=['status', 'check_in_date'], name='idx_resv_status_checkin'),
                    models.Index(fields=['status', 'check_out_date'], name='idx_resv_status_checkout'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SiteSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=100, unique=True)),
                ('value', models.TextField(blank=True)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['key'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryLedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('booking_confirmation', 'Booking confirmation'), ('payment_reminder', 'Payment deadline reminder'), ('checkin_reminder', 'Check-in reminder'), ('feedback_request', 'Feedback request'), ('payment_completed', 'Payment received'), ('cancel_notification', 'Cancellation notice')], max_length=40)),
                ('provider', models.CharField(blank=True, max_length=20)),
                ('provider_message_id', models.CharField(blank=True, max_length=200)),
                ('sent_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reservation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ledger_entries', to='reservations.reservation')),
            ],
            options={
                'verbose_name_plural': 'Delivery ledger entries',
                'ordering': ['sent_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('reservation', 'kind'), name='uniq_ledger_reservation_kind'),
                ],
            },
        ),
    ]
