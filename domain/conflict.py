"""Room conflict detection.

A single detector used by every create, update and room re-assignment path.
Overlap rules depend on the reservation types being compared:

* dayUse / dayUse: exact timestamps, touching endpoints allowed.
* dayUse / stay (either order): compared by the civil days each one holds.
* stay / stay: exact timestamps, checkout == check-in allowed.

Reservations checked out early are ignored along with cancelled ones. Their
room is already vacated, and room assignment treats them the same way.
"""
from typing import Iterable, Optional

from pydantic import BaseModel

from config.logging import get_logger
from domain.entities import Reservation
from domain.exceptions import InvalidDateError
from domain.value_objects import OccupancyInterval

logger = get_logger(__name__)


class ConflictResult(BaseModel):
    """Outcome of a conflict check"""
    conflict: bool
    with_reservation: Optional[Reservation] = None

    def __bool__(self) -> bool:
        return self.conflict


def intervals_conflict(
    candidate: OccupancyInterval,
    candidate_is_day_use: bool,
    other: OccupancyInterval,
    other_is_day_use: bool,
) -> bool:
    """Pair-wise overlap test with the granularity the two types call for"""
    if candidate_is_day_use and other_is_day_use:
        return candidate.overlaps(other)

    if candidate_is_day_use or other_is_day_use:
        cand_days = candidate.to_day_span(candidate_is_day_use)
        other_days = other.to_day_span(other_is_day_use)
        return cand_days.start < other_days.end and cand_days.end > other_days.start

    return (
        candidate.start < other.end
        and candidate.end > other.start
        and candidate.start != other.end
    )


def detect_conflict(
    candidate: Reservation,
    target_room_number: str,
    live_reservations: Iterable[Reservation],
    exclude_id: Optional[str] = None,
) -> ConflictResult:
    """Find the first live reservation in ``target_room_number`` that overlaps ``candidate``.

    Args:
        candidate: Reservation being written; its own dates must be valid.
        target_room_number: Room under test.
        live_reservations: Non-cancelled reservations of the same hotel, in a
            stable order. Entries for other rooms, the candidate itself,
            ``exclude_id`` and cancelled ones are skipped. Reservations
            checked out early (``manually_checked_out``) are skipped as a
            deliberate extension of the live/cancelled split, so that the
            detector agrees with room assignment about a vacated room.
        exclude_id: Additional reservation id to ignore.

    Returns:
        ConflictResult carrying the blocking reservation, if any.

    Raises:
        InvalidDateError: candidate check-in/check-out missing or inverted.
    """
    candidate_span = candidate.occupancy()

    for reservation in live_reservations:
        if (
            reservation.room_number != target_room_number
            or reservation.reservation_id == candidate.reservation_id
            or (exclude_id is not None and reservation.reservation_id == exclude_id)
            or reservation.is_cancelled
            or reservation.manually_checked_out
        ):
            continue

        try:
            other_span = reservation.occupancy()
        except InvalidDateError:
            logger.warning(
                "Skipping reservation with unparseable dates",
                hotel_id=reservation.hotel_id,
                reservation_id=reservation.reservation_id,
            )
            continue

        if intervals_conflict(candidate_span, candidate.is_day_use, other_span, reservation.is_day_use):
            logger.info(
                "Room conflict detected",
                hotel_id=candidate.hotel_id,
                room_number=target_room_number,
                candidate_id=candidate.reservation_id,
                conflicting_id=reservation.reservation_id,
            )
            return ConflictResult(conflict=True, with_reservation=reservation)

    return ConflictResult(conflict=False)
