"""Data models for event landing pages."""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List


class EventType(str, Enum):
    """Kind of event listed on the landing pages."""
    CONFERENCE = 'wordcamp'
    MEETUP = 'meetup'


@dataclass
class Event:
    """Normalized event record, as stored in the landing caches."""
    id: int
    title: str
    url: str
    location: str
    latitude: float
    longitude: float
    timestamp: int
    tz_offset: int = 0
    meetup: str = ''
    type: EventType = EventType.CONFERENCE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['type'] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        """Rebuild the matching event variant from its cached dict."""
        event_type = EventType(data['type'])
        variant = MeetupEvent if event_type is EventType.MEETUP else ConferenceEvent
        values = {k: v for k, v in data.items() if k != 'type'}
        return variant(**values)


@dataclass
class ConferenceEvent(Event):
    """Multi-day event tied to its own sub-site."""
    type: EventType = EventType.CONFERENCE


@dataclass
class MeetupEvent(Event):
    """Meetup group event from the shared events table."""
    type: EventType = EventType.MEETUP


@dataclass
class Site:
    """Sub-site entry from the network's site directory."""
    blog_id: int
    path: str


@dataclass
class ConferencePost:
    """Scheduled conference post and its metadata."""
    post_id: int
    title: str
    meta: Dict[str, str] = field(default_factory=dict)


@dataclass
class PrimeResult:
    """Result of a cache priming run."""
    global_events: int
    uris_primed: int
    uris_failed: int
    errors: List[str]
