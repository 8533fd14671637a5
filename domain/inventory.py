"""Room grid lookups and automatic room assignment"""
import re
from typing import Iterable, List, Optional, Tuple

from config.logging import get_logger
from domain.conflict import detect_conflict
from domain.entities import Container, GridSettings, Reservation
from domain.enums import AssignmentStrategy

logger = get_logger(__name__)

_CHUNKS = re.compile(r"(\d+)")


def natural_sort_key(value: str) -> Tuple[Tuple[int, int, str], ...]:
    """Numeric-aware key so "9" sorts before "10" and "A2" before "A10"."""
    key = []
    for chunk in _CHUNKS.split(value or ""):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk), ""))
        else:
            key.append((1, 0, chunk.lower()))
    return tuple(key)


def active_containers_of_type(grid: Optional[GridSettings], room_type_key: str) -> List[Container]:
    """Active containers tagged with ``room_type_key``, naturally sorted by room number.

    Floors are flattened; a grid carrying only the legacy flat container list
    is read as is. A grid with neither yields an empty list.
    """
    if grid is None:
        return []
    containers = grid.all_containers()
    if containers is None:
        logger.warning("Grid has neither floors nor containers")
        return []

    target = (room_type_key or "").lower()
    matched = [
        c for c in containers
        if (c.room_info or "").lower() == target and c.is_active is not False
    ]
    return sorted(matched, key=lambda c: natural_sort_key(c.room_number))


def occupied_room_numbers(reservations: Iterable[Reservation], hotel_id: str) -> set:
    """Rooms held by live reservations that have not been checked out manually"""
    return {
        r.room_number for r in reservations
        if r.hotel_id == hotel_id
        and not r.is_cancelled
        and not r.manually_checked_out
        and r.room_number
    }


def assign_room(
    candidate: Reservation,
    hotel_id: str,
    grid: Optional[GridSettings],
    reservations: Iterable[Reservation],
    strategy: AssignmentStrategy = AssignmentStrategy.DATE_AWARE,
) -> str:
    """Pick the first free room of the candidate's room type.

    Returns the candidate's own room number untouched when it already has
    one. Otherwise walks the naturally sorted active containers and returns
    the first one that is either not held by any live reservation or whose
    reservations do not overlap the candidate's dates. The coarse strategy
    skips the date check and is used automatically when the candidate has
    no usable dates.

    Returns:
        Room number, or "" when the grid is missing or every room is taken.
    """
    if candidate.room_number and candidate.room_number.strip():
        return candidate.room_number

    if grid is None:
        logger.warning("Hotel grid settings not found", hotel_id=hotel_id)
        return ""

    containers = active_containers_of_type(grid, candidate.room_info)
    if not containers:
        logger.warning("No containers match room type", hotel_id=hotel_id, room_info=candidate.room_info)
        return ""

    in_room = [
        r for r in reservations
        if r.hotel_id == hotel_id and not r.is_cancelled and not r.manually_checked_out
    ]
    assigned = occupied_room_numbers(in_room, hotel_id)

    date_aware = strategy == AssignmentStrategy.DATE_AWARE
    if date_aware and not candidate.has_valid_dates:
        logger.warning(
            "Falling back to coarse assignment, candidate dates unusable",
            hotel_id=hotel_id,
            reservation_id=candidate.reservation_id,
        )
        date_aware = False

    for container in containers:
        if container.room_number not in assigned:
            return container.room_number
        if date_aware and not detect_conflict(candidate, container.room_number, in_room):
            return container.room_number

    logger.warning(
        "Room type sold out",
        hotel_id=hotel_id,
        room_info=candidate.room_info,
        check_in=candidate.check_in.isoformat() if candidate.check_in else None,
        check_out=candidate.check_out.isoformat() if candidate.check_out else None,
    )
    return ""
