"""Data models for event status transitions."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class EventStatus(Enum):
    """Lifecycle status of a webinar event."""
    UPCOMING = 'upcoming'
    LIVE = 'live'
    PAST = 'past'


@dataclass
class EventRecord:
    """Event as stored in the events table."""
    event_id: str
    status: str
    date: str
    time: str
    duration: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SweepResult:
    """Result of a status sweep."""
    success: bool
    updated: int
    went_live: int = 0
    went_past: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
