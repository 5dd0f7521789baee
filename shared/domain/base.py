"""
Base Domain Classes

Building blocks shared by the rental domains:
- Entity: object with identity assigned by the store
- ValueObject: immutable object compared by value
- Aggregate: consistency boundary that records domain events
- DomainEvent: fact that happened inside an aggregate
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass
class Entity(ABC):
    """
    Base class for all entities

    The identity is the primary key handed out by the store, so a freshly
    built entity has ``id=None`` until it is inserted. Two persisted entities
    are equal when their ids match.
    """
    id: Optional[int] = None
    created_at: datetime = field(default_factory=timezone.now)
    updated_at: datetime = field(default_factory=timezone.now)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self):
        return hash((self.__class__.__name__, self.id if self.id is not None else id(self)))


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, identity-less object. Equality is attribute equality."""


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    Transitions append events; the unit of work drains them after a
    successful commit.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Snapshot of pending events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """
    Base class for domain events

    ``aggregate_id`` may be ``None`` for events raised before the aggregate
    was first stored; the unit of work back-fills it when collecting.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=timezone.now)
    aggregate_id: Optional[int] = None

    def to_dict(self) -> dict:
        data = {'event_type': self.__class__.__name__}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, UUID):
                value = str(value)
            data[item.name] = value
        return data
