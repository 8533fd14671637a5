"""Availability Calculator - remaining stock per room type per date"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from config.logging import get_logger
from domain.dates import DateInput, format_date, iter_days, parse_datetime
from domain.entities import GridSettings, Reservation, RoomType
from domain.exceptions import InvalidDateError
from domain.inventory import active_containers_of_type
from domain.value_objects import AvailabilityByDate, RoomAvailability

logger = get_logger(__name__)

DEFAULT_PRICE_TOLERANCE = 1


def _as_date(value: DateInput, field: str) -> date:
    parsed = parse_datetime(value)
    if parsed is None:
        raise InvalidDateError(value, field)
    return parsed.date()


def _type_lookup(room_types: Iterable[RoomType]) -> Dict[str, str]:
    """room_info and aliases (lower-cased) -> room type key"""
    lookup = {}
    for room_type in room_types:
        for alias in room_type.aliases:
            lookup.setdefault(alias.lower(), room_type.key)
        lookup[room_type.key] = room_type.key
    return lookup


def occupied_days(reservation: Reservation) -> List[date]:
    """Calendar days a reservation counts against inventory"""
    span = reservation.occupancy().to_day_span(reservation.is_day_use)
    return list(iter_days(span.start.date(), span.end.date()))


def compute_availability(
    live_reservations: Iterable[Reservation],
    room_types: Iterable[RoomType],
    from_date: DateInput,
    to_date: DateInput,
    grid_settings: Optional[GridSettings] = None,
) -> AvailabilityByDate:
    """Remaining rooms for every date in [from_date, to_date) and every room type.

    ``remain`` is the room type's stock minus the live reservations holding
    that date. It is not clamped: a negative value means overbooking.
    Reservations whose dates cannot be parsed are skipped.
    """
    start = _as_date(from_date, "from_date")
    end = _as_date(to_date, "to_date")
    room_types = list(room_types)
    lookup = _type_lookup(room_types)
    days = list(iter_days(start, end))

    if grid_settings is not None:
        for room_type in room_types:
            physical = len(active_containers_of_type(grid_settings, room_type.room_info))
            if physical < room_type.stock:
                logger.warning(
                    "Room type stock exceeds active rooms",
                    room_info=room_type.room_info,
                    stock=room_type.stock,
                    active_rooms=physical,
                )

    occupied: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for reservation in live_reservations:
        if reservation.is_cancelled:
            continue
        type_key = lookup.get((reservation.room_info or "").lower())
        if type_key is None:
            continue
        try:
            held = occupied_days(reservation)
        except InvalidDateError:
            logger.warning(
                "Skipping reservation with unparseable dates",
                hotel_id=reservation.hotel_id,
                reservation_id=reservation.reservation_id,
            )
            continue
        for day in held:
            if start <= day < end:
                occupied[format_date(day)][type_key] += 1

    availability: AvailabilityByDate = {}
    for day in days:
        day_key = format_date(day)
        availability[day_key] = {}
        for room_type in room_types:
            count = occupied[day_key][room_type.key] if day_key in occupied else 0
            availability[day_key][room_type.key] = RoomAvailability(
                remain=room_type.stock - count,
                stock=room_type.stock,
                occupied=count,
            )
    return availability


def minimum_remaining(
    availability: AvailabilityByDate,
    room_type: RoomType,
    from_date: DateInput,
    to_date: DateInput,
) -> int:
    """Fewest rooms left on any night of [from_date, to_date).

    Dates missing from ``availability`` count as the room type's full stock.
    """
    start = _as_date(from_date, "from_date")
    end = _as_date(to_date, "to_date")
    lowest = room_type.stock
    for day in iter_days(start, end):
        daily = availability.get(format_date(day), {}).get(room_type.key)
        remain = daily.remain if daily is not None else room_type.stock
        lowest = min(lowest, remain)
    return lowest


def sold_out_dates(availability: AvailabilityByDate, room_type_key: str) -> List[str]:
    """Dates on which ``room_type_key`` has no room left"""
    key = room_type_key.lower()
    return sorted(
        day for day, types in availability.items()
        if key in types and types[key].is_sold_out
    )


def expected_total(room_type: RoomType, nights: int) -> int:
    return room_type.price * nights


def price_matches(
    room_type: RoomType,
    nights: int,
    submitted: float,
    tolerance: int = DEFAULT_PRICE_TOLERANCE,
) -> bool:
    """Submitted total equals rate * nights within ``tolerance`` currency units"""
    return abs(float(submitted) - expected_total(room_type, nights)) <= tolerance
