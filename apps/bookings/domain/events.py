"""
Booking Domain Events

Facts recorded by the Reservation aggregate. The unit of work publishes them
after the transaction that produced them commits.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from shared.domain.base import DomainEvent


@dataclass
class ReservationCreated(DomainEvent):
    """A direct booking was placed and waits for the owner."""
    equipment_id: Optional[int] = None
    renter_id: Optional[int] = None
    dates: List[str] = field(default_factory=list)
    total_amount: str = '0.00'


@dataclass
class PaymentHoldPlaced(DomainEvent):
    """Capacity is held while the renter pays."""
    equipment_id: Optional[int] = None
    renter_id: Optional[int] = None
    dates: List[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None


@dataclass
class PaymentConfirmed(DomainEvent):
    payment_method: str = ''
    transaction_id: str = ''


@dataclass
class PaymentFailed(DomainEvent):
    reason: str = ''


@dataclass
class PaymentCancelled(DomainEvent):
    pass


@dataclass
class PaymentHoldExpired(DomainEvent):
    equipment_id: Optional[int] = None


@dataclass
class ReservationAccepted(DomainEvent):
    owner_id: Optional[int] = None


@dataclass
class ReservationRejected(DomainEvent):
    """Rejected by the owner; its dates are free again."""
    owner_id: Optional[int] = None
    dates: List[str] = field(default_factory=list)


@dataclass
class ReservationCompleted(DomainEvent):
    owner_id: Optional[int] = None


@dataclass
class ReservationUpdated(DomainEvent):
    previous_status: str = ''
    status: str = ''
    previous_dates: List[str] = field(default_factory=list)
    dates: List[str] = field(default_factory=list)


@dataclass
class ReservationDatesCancelled(DomainEvent):
    cancelled_dates: List[str] = field(default_factory=list)
    remaining_dates: List[str] = field(default_factory=list)
    total_amount: str = '0.00'
