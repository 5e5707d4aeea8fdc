"""Application-side reconciliation of bookings with halls and profiles.

The record store cannot express multi-table joins reliably, so bookings,
halls and profiles are fetched separately and joined here through
identifier-keyed maps. A missing hall or profile never fails resolution; the
booking is kept with placeholder display fields instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from hall_analytics.domain.errors import UnresolvedReferenceWarning
from hall_analytics.domain.models import (
    EnrichedBooking,
    Hall,
    NormalizedBooking,
    UNKNOWN_DEPARTMENT,
    UserProfile,
)
from hall_analytics.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class ReferenceIds:
    hall_ids: tuple[str, ...]
    user_ids: tuple[str, ...]


@dataclass(frozen=True)
class ResolutionResult:
    bookings: list[EnrichedBooking]
    unresolved_hall_ids: tuple[str, ...] = field(default_factory=tuple)
    unresolved_user_ids: tuple[str, ...] = field(default_factory=tuple)


def collect_reference_ids(bookings: Iterable[NormalizedBooking]) -> ReferenceIds:
    """Deduplicate hall and user ids in first-seen order for batch lookups."""
    hall_ids: dict[str, None] = {}
    user_ids: dict[str, None] = {}
    for booking in bookings:
        if booking.hall_id:
            hall_ids.setdefault(booking.hall_id, None)
        if booking.user_id:
            user_ids.setdefault(booking.user_id, None)
    return ReferenceIds(hall_ids=tuple(hall_ids), user_ids=tuple(user_ids))


def build_hall_map(halls: Iterable[Hall]) -> dict[str, Hall]:
    return {hall.hall_id: hall for hall in halls}


def build_user_map(users: Iterable[UserProfile]) -> dict[str, UserProfile]:
    return {user.user_id: user for user in users}


def enrich_booking(
    booking: NormalizedBooking,
    hall_map: Mapping[str, Hall],
    user_map: Mapping[str, UserProfile],
) -> EnrichedBooking:
    hall = hall_map.get(booking.hall_id) if booking.hall_id else None
    user = user_map.get(booking.user_id) if booking.user_id else None

    hall_fields: dict[str, object] = {}
    if hall is not None:
        hall_fields = {
            "hall_name": hall.name,
            "hall_capacity": hall.capacity,
            "hall_location": hall.location,
            "hall_type": hall.hall_type,
            "hall_resolved": True,
        }
    user_fields: dict[str, object] = {}
    if user is not None:
        user_fields = {
            "user_name": user.name,
            "user_email": user.email,
            "user_phone": user.phone,
            "user_department": user.department or UNKNOWN_DEPARTMENT,
            "user_resolved": True,
        }
    return EnrichedBooking(booking=booking, **hall_fields, **user_fields)


def resolve_bookings(
    bookings: Sequence[NormalizedBooking],
    halls: Iterable[Hall],
    users: Iterable[UserProfile],
) -> ResolutionResult:
    """Produce one enriched booking per input booking, in input order."""
    hall_map = build_hall_map(halls)
    user_map = build_user_map(users)
    references = collect_reference_ids(bookings)

    enriched = [enrich_booking(booking, hall_map, user_map) for booking in bookings]

    unresolved_halls = tuple(
        hall_id for hall_id in references.hall_ids if hall_id not in hall_map
    )
    unresolved_users = tuple(
        user_id for user_id in references.user_ids if user_id not in user_map
    )
    if unresolved_halls or unresolved_users:
        logger.warning(
            "%s: %s hall id(s) and %s user id(s) resolved to placeholders "
            "(halls=%s, users=%s)",
            UnresolvedReferenceWarning.__name__,
            len(unresolved_halls),
            len(unresolved_users),
            list(unresolved_halls),
            list(unresolved_users),
        )

    return ResolutionResult(
        bookings=enriched,
        unresolved_hall_ids=unresolved_halls,
        unresolved_user_ids=unresolved_users,
    )
