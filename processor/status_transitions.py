"""Status transition engine advancing events from upcoming to live to past."""
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from processor.models import EventRecord, EventStatus, SweepResult
from storage.dynamodb_manager import DynamoDBManager

logger = logging.getLogger(__name__)

START_FILTER_INSTANT = 'instant'
START_FILTER_COMPOUND = 'compound'

TIME_FORMATS = ('%H:%M:%S', '%H:%M')


def _parse_time(time_str: str):
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(str(time_str).strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format: {time_str!r}")


def parse_start_instant(record: EventRecord, tz: tzinfo) -> datetime:
    """
    Combine an event's date and time-of-day into an aware datetime.

    Args:
        record: Event record
        tz: Timezone the stored date and time are expressed in

    Returns:
        Timezone-aware start instant

    Raises:
        ValueError: If date or time cannot be parsed
    """
    event_date = datetime.strptime(str(record.date).strip(), '%Y-%m-%d').date()
    return datetime.combine(event_date, _parse_time(record.time), tzinfo=tz)


def compute_end_instant(record: EventRecord, tz: tzinfo) -> datetime:
    """
    Compute the instant an event ends (start plus duration minutes).

    Raises:
        ValueError: If date, time or duration cannot be parsed
    """
    duration_minutes = int(str(record.duration).strip())
    return parse_start_instant(record, tz) + timedelta(minutes=duration_minutes)


def is_start_due(
    record: EventRecord,
    now: datetime,
    start_filter: str = START_FILTER_INSTANT
) -> bool:
    """
    Decide whether an upcoming event should go live at ``now``.

    With the ``instant`` filter the combined start instant is compared to
    ``now``. The ``compound`` filter reproduces the legacy rule, comparing
    the date and the ``HH:MM:SS`` time strings independently.

    Raises:
        ValueError: If the record cannot be parsed (``instant`` filter only)
    """
    if start_filter == START_FILTER_COMPOUND:
        today = now.date().isoformat()
        now_time = now.strftime('%H:%M:%S')
        return str(record.date) <= today and str(record.time) <= now_time

    return parse_start_instant(record, now.tzinfo) <= now


def is_finished(record: EventRecord, now: datetime) -> bool:
    """Return True once ``now`` is strictly after the event's end instant."""
    return now > compute_end_instant(record, now.tzinfo)


class StatusTransitioner:
    """Sweeps the events table and advances statuses to match the clock."""

    def __init__(
        self,
        store: DynamoDBManager,
        timezone: str = 'UTC',
        start_filter: str = START_FILTER_INSTANT
    ):
        """
        Initialize the transitioner.

        Args:
            store: Event store adapter
            timezone: IANA name of the timezone event dates and times use
            start_filter: 'instant' or 'compound' start-due policy
        """
        if start_filter not in (START_FILTER_INSTANT, START_FILTER_COMPOUND):
            raise ValueError(f"Unknown start filter: {start_filter}")

        self.store = store
        self.tz = ZoneInfo(timezone)
        self.start_filter = start_filter

    def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Run both transition phases once.

        Phase 1 (upcoming to live) finishes all of its writes before phase 2
        (live to past) reads, so an event whose whole run is already over
        passes through live to past in a single sweep.

        Store errors are not caught and abort the remaining work.

        Args:
            now: Current instant; defaults to the wall clock

        Returns:
            SweepResult with counts of committed transitions
        """
        if now is None:
            now = datetime.now(self.tz)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        else:
            now = now.astimezone(self.tz)

        logger.info(f"Starting status sweep at {now.isoformat()}")
        result = SweepResult(success=True, updated=0)

        self._promote_upcoming(now, result)
        self._retire_live(now, result)

        result.updated = result.went_live + result.went_past
        logger.info(
            f"Status sweep complete: {result.went_live} went live, "
            f"{result.went_past} went past, {result.skipped} skipped"
        )
        return result

    def _promote_upcoming(self, now: datetime, result: SweepResult) -> None:
        upcoming = self.store.get_events_by_status(
            EventStatus.UPCOMING.value,
            on_or_before=now.date().isoformat()
        )

        for record in upcoming:
            try:
                due = is_start_due(record, now, self.start_filter)
            except ValueError as e:
                self._skip(record, e, result)
                continue

            if due and self.store.update_status(
                record.event_id,
                EventStatus.LIVE.value,
                expected_status=EventStatus.UPCOMING.value
            ):
                logger.info(f"Event {record.event_id} is now live")
                result.went_live += 1

    def _retire_live(self, now: datetime, result: SweepResult) -> None:
        live = self.store.get_events_by_status(EventStatus.LIVE.value)

        for record in live:
            try:
                finished = is_finished(record, now)
            except ValueError as e:
                self._skip(record, e, result)
                continue

            if finished and self.store.update_status(
                record.event_id,
                EventStatus.PAST.value,
                expected_status=EventStatus.LIVE.value
            ):
                logger.info(f"Event {record.event_id} is now past")
                result.went_past += 1

    def _skip(self, record: EventRecord, error: Exception, result: SweepResult) -> None:
        message = f"Skipping event {record.event_id}: {error}"
        logger.warning(message)
        result.skipped += 1
        result.errors.append(message)
