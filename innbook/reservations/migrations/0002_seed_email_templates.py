from django.db import migrations

from reservations.notifications.defaults import DEFAULT_TEMPLATES, default_fields


def seed_templates(apps, schema_editor):
    EmailTemplate = apps.get_model('reservations', 'EmailTemplate')
    for key in DEFAULT_TEMPLATES:
        EmailTemplate.objects.get_or_create(key=str(key), defaults=default_fields(key))


def reverse_seed(apps, schema_editor):
    EmailTemplate = apps.get_model('reservations', 'EmailTemplate')
    EmailTemplate.objects.filter(key__in=[str(key) for key in DEFAULT_TEMPLATES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('reservations', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_templates, reverse_seed),
    ]
