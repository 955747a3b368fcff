import threading

from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model

from apps.papers.models import ResearchPaper
from apps.papers.timers import ActionTimers

User = get_user_model()


class Command(BaseCommand):
    help = "Show the delete/revise countdowns of a student's unapproved papers"

    def add_arguments(self, parser):
        parser.add_argument('--username', required=True)
        parser.add_argument(
            '--watch', action='store_true',
            help='Keep ticking until every paper is locked'
        )
        parser.add_argument('--interval', type=float, default=None)

    def handle(self, *args, **options):
        try:
            student = User.objects.get(username=options['username'])
        except User.DoesNotExist:
            raise CommandError(f"No such user: {options['username']}")

        papers = ResearchPaper.objects.filter(student=student).order_by('-created_at')
        all_locked = threading.Event()
        timers = []

        def on_change(_changed):
            # Called from ticker threads; only signal, never unmount here
            if timers and all(t.gate.is_locked for t in timers):
                all_locked.set()

        for paper in papers:
            timer = ActionTimers.for_record(
                paper,
                on_delete=lambda p: None,
                on_open_revise_modal=lambda p: None,
                on_change=on_change,
                interval=options['interval'],
            )
            if timer is not None:
                timers.append(timer)

        if not timers:
            self.stdout.write('No unapproved papers.')
            return

        self._print(timers)
        if not options['watch'] or all(t.gate.is_locked for t in timers):
            return

        for timer in timers:
            timer.mount()
        try:
            while not all_locked.wait(timers[0].interval):
                self._print(timers)
        except KeyboardInterrupt:
            pass
        finally:
            for timer in timers:
                timer.unmount()
        self._print(timers)

    def _print(self, timers):
        for timer in timers:
            paper = timer.record
            if timer.gate.is_locked:
                line = self.style.WARNING(f'{paper.title}: {timer.lock_message}')
            else:
                line = f'{paper.title}: {timer.delete_label} | {timer.revise_label}'
            self.stdout.write(line)
