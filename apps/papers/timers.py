"""
Recurring countdown recomputation for open submission windows.

IntervalTicker is the one scheduling primitive: a daemon thread that calls
back every `interval` seconds until cancelled. ActionTimers owns a ticker
per record and re-evaluates the windows from scratch on every tick.
"""
import logging
import threading

from django.conf import settings
from django.utils import timezone

from .windows import DELETE, REVISE, ActionGate, evaluate, format_countdown

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 1.0


class IntervalTicker:
    """
    Calls `callback()` every `interval` seconds on a background thread.

    cancel() is deterministic: once it returns, no further tick runs.
    """

    def __init__(self, interval, callback, name=None):
        if interval <= 0:
            raise ValueError('interval must be positive')
        self.interval = interval
        self.callback = callback
        self.name = name or 'interval-ticker'
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and not self._stopped.is_set()

    def start(self):
        with self._lock:
            if self._thread is not None:
                return self
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        return self

    def cancel(self):
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            # Wait out an in-flight tick; later ticks see _stopped under the lock
            with self._lock:
                pass
            thread.join()

    def _run(self):
        while not self._stopped.wait(self.interval):
            with self._lock:
                if self._stopped.is_set():
                    break
                try:
                    self.callback()
                except Exception:
                    logger.exception('Ticker %s callback failed', self.name)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        return False


class ActionTimers:
    """
    Delete/revise countdowns for a single submitted paper.

    mount() evaluates immediately and then once per interval, unmount()
    stops the ticker. delete() and revise() forward to the callbacks only
    while the matching window is open.
    """

    def __init__(self, record, on_delete, on_open_revise_modal,
                 on_change=None, clock=None, interval=None,
                 delete_window=None, revise_window=None):
        self.record = record
        self.on_delete = on_delete
        self.on_open_revise_modal = on_open_revise_modal
        self.on_change = on_change
        self.clock = clock or timezone.now
        self.interval = interval or getattr(
            settings, 'PAPER_TIMER_INTERVAL_SECONDS', DEFAULT_INTERVAL_SECONDS
        )
        self.delete_window = delete_window
        self.revise_window = revise_window
        self.state = None
        self._ticker = None
        self.update()

    @classmethod
    def for_record(cls, record, *args, **kwargs):
        """Approved papers are not editable, so they get no timers at all."""
        if isinstance(record, dict):
            status = record.get('status')
        else:
            status = getattr(record, 'status', None)
        if status == 'approved':
            return None
        return cls(record, *args, **kwargs)

    def update(self):
        created_at = getattr(self.record, 'created_at', None)
        if created_at is None and isinstance(self.record, dict):
            created_at = self.record.get('created_at', self.record.get('createdAt'))
        self.state = evaluate(
            created_at, self.clock(), self.delete_window, self.revise_window
        )
        if self.on_change is not None:
            self.on_change(self)
        return self.state

    @property
    def gate(self):
        return ActionGate(self.state)

    @property
    def mounted(self):
        return self._ticker is not None and self._ticker.running

    def mount(self):
        if self._ticker is None:
            self.update()
            self._ticker = IntervalTicker(
                self.interval, self.update, name=f'action-timers-{self._record_id()}'
            ).start()
        return self

    def unmount(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def __enter__(self):
        return self.mount()

    def __exit__(self, exc_type, exc, tb):
        self.unmount()
        return False

    @property
    def delete_countdown(self):
        return format_countdown(self.state.delete_remaining)

    @property
    def revise_countdown(self):
        return format_countdown(self.state.revise_remaining)

    @property
    def delete_label(self):
        if not self.gate.can_delete:
            return 'Delete expired'
        return f'Delete ({self.delete_countdown})'

    @property
    def revise_label(self):
        if not self.gate.can_revise:
            return 'Revise expired'
        return f'Revise ({self.revise_countdown})'

    @property
    def lock_message(self):
        if not self.gate.is_locked:
            return ''
        return 'Locked'

    def delete(self):
        return self.gate.invoke(DELETE, self.on_delete, self.record)

    def revise(self):
        return self.gate.invoke(REVISE, self.on_open_revise_modal, self.record)

    def _record_id(self):
        if isinstance(self.record, dict):
            return self.record.get('id', self.record.get('_id', ''))
        return getattr(self.record, 'pk', '')
