"""
Unit of Work Pattern

Wraps one database transaction and publishes the domain events collected
during it only once the transaction has committed.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import Aggregate, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Transaction boundary for command handlers

    Usage:
        with DjangoUnitOfWork() as uow:
            reservation = repo.get(reservation_id)
            reservation.reject(owner_id, now)
            repo.save(reservation, expected_status=...)
            uow.collect_events(reservation)
        # events are published after commit

    Leaving the block with an exception rolls the transaction back and drops
    the collected events.
    """

    def __init__(self, using=None):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic(using=using)
        self._using = using

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            else:
                self._discard()
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, aggregate: Aggregate):
        new_events = aggregate.events
        if new_events:
            for event in new_events:
                if event.aggregate_id is None:
                    event.aggregate_id = aggregate.id
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                "Collected %d events from %s %s",
                len(new_events),
                aggregate.__class__.__name__,
                aggregate.id,
            )

    def _schedule_publish(self):
        events = self._events.copy()
        self._events.clear()
        if events:
            transaction.on_commit(lambda: self._publish(events), using=self._using)

    def _discard(self):
        if self._events:
            logger.debug("Rolling back, discarding %d events", len(self._events))
        self._events.clear()

    @staticmethod
    def _publish(events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.debug("Publishing %d domain events after commit", len(events))
        message_bus.publish_events(events)
