"""
Time-windowed mutability rules for submitted papers.

Architecture:
- evaluate(): creation timestamp -> remaining seconds for each window
- ActionGate: remaining seconds -> enabled/disabled actions and "locked"
- format_countdown(): remaining seconds -> "M:SS" label

Everything here is pure given (created_at, now). The client countdown and
the server-side checks in views.py both go through these functions so the
two can never drift apart. The server result is the authoritative one.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


DELETE_WINDOW_SECONDS = 300
REVISE_WINDOW_SECONDS = 300

# Unparseable timestamps are treated as this instant, i.e. long expired
FAR_PAST = datetime.min.replace(tzinfo=dt_timezone.utc)

DELETE = 'delete'
REVISE = 'revise'


def delete_window_seconds():
    return getattr(settings, 'PAPER_DELETE_WINDOW_SECONDS', DELETE_WINDOW_SECONDS)


def revise_window_seconds():
    return getattr(settings, 'PAPER_REVISE_WINDOW_SECONDS', REVISE_WINDOW_SECONDS)


def parse_created_at(value):
    """
    Coerce a creation timestamp into an aware datetime.

    Accepts datetimes and ISO-8601 strings. Naive values are read as UTC.
    Anything missing or malformed collapses to FAR_PAST so it can never
    grant extra edit time.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                day = parse_date(text)
                parsed = datetime.combine(day, time.min) if day else None
        except ValueError:
            # Well formed but out of range, e.g. "2024-02-30"
            parsed = None
    else:
        parsed = None

    if parsed is None:
        return FAR_PAST
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def remaining_seconds(created_at, now, window_seconds):
    """max(0, window - elapsed). A created_at in the future counts as zero elapsed."""
    created = parse_created_at(created_at)
    if created == FAR_PAST:
        return 0.0
    if timezone.is_naive(now):
        now = now.replace(tzinfo=dt_timezone.utc)
    elapsed = max(0.0, (now - created).total_seconds())
    return max(0.0, float(window_seconds) - elapsed)


@dataclass(frozen=True)
class WindowState:
    delete_remaining: float
    revise_remaining: float

    @property
    def can_modify(self):
        return self.delete_remaining > 0 or self.revise_remaining > 0


def evaluate(created_at, now=None, delete_window=None, revise_window=None):
    now = now or timezone.now()
    if delete_window is None:
        delete_window = delete_window_seconds()
    if revise_window is None:
        revise_window = revise_window_seconds()
    return WindowState(
        delete_remaining=remaining_seconds(created_at, now, delete_window),
        revise_remaining=remaining_seconds(created_at, now, revise_window),
    )


def format_countdown(seconds):
    """125 -> '2:05'. Negative, missing or non-finite values render as '0:00'."""
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return '0:00'
    whole = int(math.floor(seconds))
    minutes, secs = divmod(whole, 60)
    return f'{minutes}:{secs:02d}'


def window_phrase(seconds):
    """Human wording for error messages: 300 -> "5 minutes", 90 -> "90 seconds"."""
    seconds = int(seconds)
    if seconds > 0 and seconds % 60 == 0:
        count, unit = seconds // 60, 'minute'
    else:
        count, unit = seconds, 'second'
    return f"{count} {unit}{'s' if count != 1 else ''}"


class ActionGate:
    """
    Decides which actions a record still allows.

    Invoking a denied action is a silent no-op: the affordance is already
    disabled in the UI, so a stale click that raced the timer is simply
    dropped. This is not a security boundary, the server re-checks.
    """

    def __init__(self, state):
        self.state = state

    @classmethod
    def for_record(cls, record, now=None, delete_window=None, revise_window=None):
        created_at = getattr(record, 'created_at', None)
        if created_at is None and isinstance(record, dict):
            created_at = record.get('created_at', record.get('createdAt'))
        return cls(evaluate(created_at, now, delete_window, revise_window))

    @property
    def can_delete(self):
        return self.state.delete_remaining > 0

    @property
    def can_revise(self):
        return self.state.revise_remaining > 0

    @property
    def can_modify(self):
        return self.can_delete or self.can_revise

    @property
    def is_locked(self):
        return not self.can_modify

    def allows(self, action):
        if action == DELETE:
            return self.can_delete
        if action == REVISE:
            return self.can_revise
        raise ValueError(f'Unknown action: {action!r}')

    def invoke(self, action, callback, record):
        """Fire callback(record) only when the action is still open."""
        if not self.allows(action):
            return False
        callback(record)
        return True
