from datetime import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone


class Command(BaseCommand):
    help = 'Run one guest lifecycle tick (or a single trigger) immediately'

    TRIGGERS = ('all', 'payment', 'checkin', 'feedback', 'expire')

    def add_arguments(self, parser):
        parser.add_argument(
            '--trigger',
            choices=self.TRIGGERS,
            default='all',
            help='Which evaluator to run (default: all, expiry only at AUTO_EXPIRE_HOUR)',
        )
        parser.add_argument(
            '--at',
            help='Evaluate as if it were this ISO timestamp (default: now)',
        )

    def handle(self, *args, **options):
        from reservations import scheduler

        now = timezone.now()
        if options['at']:
            try:
                now = datetime.fromisoformat(options['at'])
            except ValueError as exc:
                raise CommandError(f'Invalid --at timestamp: {exc}')
            if timezone.is_naive(now):
                now = timezone.make_aware(now, scheduler.store.lifecycle_tz())

        trigger = options['trigger']
        if trigger == 'all':
            results = scheduler.run_lifecycle_tick(now)
        else:
            evaluator = {
                'payment': scheduler.send_payment_reminders,
                'checkin': scheduler.send_checkin_reminders,
                'feedback': scheduler.send_feedback_requests,
                'expire': scheduler.cancel_expired_reservations,
            }[trigger]
            results = {trigger: evaluator(now)}

        for name, summary in results.items():
            self.stdout.write(self.style.SUCCESS(f'{name}: {summary}'))
