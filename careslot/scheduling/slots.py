from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, NamedTuple, Protocol

from careslot.core import config

SLOT_DURATION = timedelta(minutes=config.SLOT_DURATION_MINUTES)


class TimeWindow(Protocol):
    start_time: time
    end_time: time


class Slot(NamedTuple):
    start_time: datetime
    end_time: datetime


def _window_bounds(window: TimeWindow, slot_date: date, tz: tzinfo | None) -> tuple[datetime, datetime]:
    start = datetime.combine(slot_date, window.start_time, tzinfo=tz)
    end = datetime.combine(slot_date, window.end_time, tzinfo=tz)
    if tz is None:
        return start, end
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def generate_slots(
    windows: Iterable[TimeWindow],
    slot_date: date,
    tz: tzinfo | None = None,
    duration: timedelta = SLOT_DURATION,
) -> list[Slot]:
    """Cut each window into back-to-back slots of ``duration`` on ``slot_date``.

    Windows are processed in the order given and their slots concatenated;
    a trailing remainder shorter than ``duration`` is dropped.

    With ``tz`` the window bounds are read as wall-clock times in that zone
    and the slots are stepped in UTC, so every slot lasts ``duration`` of
    real time across a daylight-saving change. Wall times the clock skips
    never appear; repeated wall times appear once per UTC instant. Bounds
    that fall in a skipped or repeated hour use the offset in force before
    the change.
    """
    slots: list[Slot] = []

    for window in windows:
        current, window_end = _window_bounds(window, slot_date, tz)

        while current + duration <= window_end:
            end = current + duration
            if tz is None:
                slots.append(Slot(current, end))
            else:
                slots.append(Slot(current.astimezone(tz), end.astimezone(tz)))
            current = end

    return slots
