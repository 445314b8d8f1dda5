from __future__ import annotations

from collections.abc import Sequence
from datetime import date as Date
from datetime import datetime, timezone, tzinfo

from mindconnect.schemas.moods import MoodCheckIn


def day_of(epoch_ms: int, tz: tzinfo = timezone.utc) -> Date:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=tz).date()


def _today(now: datetime, tz: tzinfo) -> Date:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def compute_streaks(
    *,
    check_ins: Sequence[MoodCheckIn],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> tuple[int, int]:
    """
    Returns ``(current_streak, longest_streak)`` in calendar days.

    ``check_ins`` must be ordered newest-first; the sequence is neither sorted
    nor modified here. Days are cut at midnight in ``tz`` (UTC unless the
    caller passes the configured streak timezone). A naive ``now`` is read as
    UTC.
    """
    if not check_ins:
        return 0, 0

    days = [day_of(c.created_at, tz) for c in check_ins]
    today = _today(now, tz)

    current = 1 if (today - days[0]).days <= 1 else 0
    longest = 0
    run = 1
    # True while the run still includes the most recent check-in.
    touches_latest = current > 0

    for newer, older in zip(days, days[1:]):
        gap = (newer - older).days
        if gap == 0:
            continue
        if gap == 1:
            run += 1
            if touches_latest:
                current = run
        else:
            longest = max(longest, run)
            run = 1
            touches_latest = False

    longest = max(longest, run, current)
    return current, longest
