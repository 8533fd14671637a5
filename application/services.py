"""Application Services - Business use cases"""
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from config.logging import get_logger
from config.settings import settings as app_settings
from domain.availability import compute_availability, minimum_remaining, price_matches, sold_out_dates
from domain.cancellation import is_cancelled_status
from domain.conflict import ConflictResult, detect_conflict
from domain.dates import DateInput, DateParseCache, HOTEL_TZ, require_datetime
from domain.entities import Container, GridSettings, HotelSettings, Reservation, RoomType
from domain.enums import OTASite, PaymentMethod, ReservationEvent, ReservationType
from domain.exceptions import (
    ConfigurationMissingError,
    InvalidDateError,
    NoRoomAvailableError,
    ReservationConflictError,
    ReservationNotMovableError,
    RoomNotInGridError,
)
from domain.inventory import active_containers_of_type, assign_room, natural_sort_key
from domain.repositories import HotelSettingsRepository, ReservationRepository
from domain.value_objects import AvailabilityByDate
from infrastructure.events import ReservationEventHub
from infrastructure.locks import RoomLockRegistry
from infrastructure.tenancy import HotelRegistry

logger = get_logger(__name__)

DIRECT_SITE_NAME = "단잠"
WALK_IN_SITE_NAME = "현장예약"


def sanitize_phone_number(phone_number: Optional[str]) -> str:
    """Keep digits only"""
    return re.sub(r"\D", "", phone_number or "")


def parse_price(value: Any) -> int:
    """Read "₩120,000" style OTA prices; anything unreadable is 0"""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = re.search(r"\d[\d,]*", str(value))
    if not match:
        return 0
    return int(match.group(0).replace(",", ""))


class HotelSettingsService:
    """Service for hotel configuration use cases"""

    def __init__(self, repository: HotelSettingsRepository, registry: Optional[HotelRegistry] = None):
        self.repository = repository
        self.registry = registry or HotelRegistry()

    async def save_settings(
        self,
        hotel_id: str,
        room_types: List[RoomType],
        grid_settings: Optional[GridSettings] = None,
        check_in_time: Optional[str] = None,
        check_out_time: Optional[str] = None,
        total_rooms: int = 50,
    ) -> HotelSettings:
        """Create or replace a hotel's room types and grid"""
        if not room_types:
            raise ValueError("At least one room type is required")

        containers = grid_settings.all_containers() if grid_settings else None
        seen = set()
        for container in containers or []:
            if container.room_number in seen:
                raise ValueError(f"Duplicate room number in grid: {container.room_number}")
            seen.add(container.room_number)

        self.registry.ensure_initialized(hotel_id)
        existing = await self.repository.find_by_hotel_id(hotel_id)
        hotel_settings = HotelSettings(
            hotel_id=hotel_id,
            total_rooms=total_rooms,
            room_types=room_types,
            grid_settings=grid_settings,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            version=existing.version + 1 if existing else 1,
        )
        logger.info("Saved hotel settings", hotel_id=hotel_id, room_types=len(room_types), rooms=len(seen))
        return await self.repository.save(hotel_settings)

    async def get_settings(self, hotel_id: str) -> HotelSettings:
        """Get a hotel's settings; raises ConfigurationMissingError when absent"""
        hotel_settings = await self.repository.find_by_hotel_id(hotel_id)
        if hotel_settings is None:
            raise ConfigurationMissingError(hotel_id)
        return hotel_settings

    async def get_active_rooms(self, hotel_id: str, room_info: str) -> List[Container]:
        """Bookable containers of one room type in assignment order"""
        grid = await self.repository.get_grid(hotel_id)
        return active_containers_of_type(grid, room_info)


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self,
                 repository: ReservationRepository,
                 settings_repo: HotelSettingsRepository,
                 locks: Optional[RoomLockRegistry] = None,
                 registry: Optional[HotelRegistry] = None,
                 events: Optional[ReservationEventHub] = None,
                 parse_cache: Optional[DateParseCache] = None,
                 price_tolerance: Optional[int] = None):
        self.repository = repository
        self.settings_repo = settings_repo
        self.locks = locks or RoomLockRegistry()
        self.registry = registry or HotelRegistry()
        self.events = events or ReservationEventHub()
        self.parse_cache = parse_cache or DateParseCache()
        self.price_tolerance = app_settings.price_tolerance if price_tolerance is None else price_tolerance

    # ==================== HELPERS ====================
    def _default_times(self, hotel_settings: Optional[HotelSettings]) -> Tuple[str, str]:
        check_in_time = (hotel_settings.check_in_time if hotel_settings else None) or app_settings.hotel.check_in_time
        check_out_time = (hotel_settings.check_out_time if hotel_settings else None) or app_settings.hotel.check_out_time
        return check_in_time, check_out_time

    def _parse_range(
        self,
        check_in: DateInput,
        check_out: DateInput,
        hotel_settings: Optional[HotelSettings],
    ) -> Tuple[datetime, datetime]:
        check_in_time, check_out_time = self._default_times(hotel_settings)
        return (
            require_datetime(check_in, "check_in", check_in_time, self.parse_cache),
            require_datetime(check_out, "check_out", check_out_time, self.parse_cache),
        )

    def _publish(self, reservation: Reservation, event: ReservationEvent) -> None:
        self.events.publish(reservation.hotel_id, event, reservation.model_dump(mode="json"))

    async def _write_into_room(
        self,
        reservation: Reservation,
        room_number: str,
        is_new: bool,
    ) -> Reservation:
        """Final conflict check and persist, serialised per room"""
        async with self.locks.for_room(reservation.hotel_id, room_number):
            live = await self.repository.find_live(reservation.hotel_id)
            result = detect_conflict(reservation, room_number, live)
            if result.conflict:
                raise ReservationConflictError(room_number, result.with_reservation)
            if is_new:
                reservation.room_number = room_number
                return await self.repository.save(reservation)
            reservation.assign_room(room_number)
            return await self.repository.update(reservation)

    async def _require_room(
        self,
        hotel_id: str,
        room_number: str,
        room_info: Optional[str] = None,
    ) -> Container:
        """Grid container for ``room_number``; it must be active and, when
        ``room_info`` is given, hold that room type."""
        grid = await self.settings_repo.get_grid(hotel_id)
        containers = grid.all_containers() if grid else None
        container = next((c for c in containers or [] if c.room_number == room_number), None)
        if container is None or container.is_active is False:
            raise RoomNotInGridError(room_number)
        if room_info is not None and (container.room_info or "").lower() != room_info.lower():
            raise RoomNotInGridError(
                room_number, f"Room {room_number} is a {container.room_info or 'untyped'} room, not {room_info}"
            )
        return container

    async def _place(self, reservation: Reservation, is_new: bool = True) -> Reservation:
        """Assign a room when needed, then write under the room lock"""
        if reservation.room_number:
            await self._require_room(reservation.hotel_id, reservation.room_number, reservation.room_info)
            return await self._write_into_room(reservation, reservation.room_number, is_new)

        async with self.locks.for_room_type(reservation.hotel_id, reservation.room_info):
            grid = await self.settings_repo.get_grid(reservation.hotel_id)
            live = await self.repository.find_live(reservation.hotel_id)
            room_number = assign_room(reservation, reservation.hotel_id, grid, live)
            if not room_number:
                raise NoRoomAvailableError(reservation.room_info)
            return await self._write_into_room(reservation, room_number, is_new)

    async def _ensure_capacity(
        self,
        hotel_settings: Optional[HotelSettings],
        room_type: Optional[RoomType],
        reservation: Reservation,
        exclude_id: Optional[str] = None,
    ) -> None:
        if hotel_settings is None or room_type is None:
            raise NoRoomAvailableError(reservation.room_info)
        live = [
            r for r in await self.repository.find_live(reservation.hotel_id)
            if exclude_id is None or r.reservation_id != exclude_id
        ]
        span = reservation.occupancy().to_day_span(reservation.is_day_use)
        availability = compute_availability(
            live, hotel_settings.room_types, span.start, span.end, hotel_settings.grid_settings
        )
        remaining = minimum_remaining(availability, room_type, span.start, span.end)
        if remaining <= 0:
            logger.warning(
                "No capacity left",
                hotel_id=reservation.hotel_id,
                room_info=reservation.room_info,
                remaining=remaining,
                sold_out=sold_out_dates(availability, room_type.key),
            )
            raise NoRoomAvailableError(reservation.room_info)

    async def _require(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        return await self.repository.find_by_id(hotel_id, reservation_id)

    async def _ensure_new_id(self, hotel_id: str, reservation_id: str) -> None:
        if await self.repository.find_by_id(hotel_id, reservation_id) is not None:
            raise ValueError(f"Reservation {reservation_id} already exists")

    # ==================== CREATION ====================
    async def create_reservation(
        self,
        hotel_id: str,
        room_info: str,
        check_in: DateInput,
        check_out: DateInput,
        price: Optional[int] = None,
        site_name: str = DIRECT_SITE_NAME,
        external_no: Optional[str] = None,
        customer_name: str = "",
        phone_number: str = "",
        room_number: str = "",
        special_requests: Optional[str] = None,
        payment_method: str = PaymentMethod.ON_SITE.value,
        validate_price: bool = True,
    ) -> Reservation:
        """Book a stay: capacity check, room assignment, conflict check, persist"""
        self.registry.ensure_initialized(hotel_id)
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        room_type = hotel_settings.find_room_type(room_info) if hotel_settings else None
        start, end = self._parse_range(check_in, check_out, hotel_settings)

        reservation = Reservation.create(
            reservation_id=f"{site_name}-{external_no or uuid4()}",
            hotel_id=hotel_id,
            room_info=room_type.room_info if room_type else room_info,
            check_in=start,
            check_out=end,
            reservation_type=ReservationType.STAY,
            site_name=site_name,
            customer_name=customer_name,
            phone_number=sanitize_phone_number(phone_number),
            room_number=room_number,
            special_requests=special_requests,
            payment_method=payment_method,
            price=price if price is not None else 0,
        )

        if room_type is None:
            raise ValueError(f"Unknown room type: {room_info}")
        await self._ensure_new_id(hotel_id, reservation.reservation_id)

        nights = reservation.nights()
        if nights <= 0:
            raise InvalidDateError(f"{start.isoformat()} ~ {end.isoformat()}", "date range")
        if validate_price:
            if price is None or not price_matches(room_type, nights, price, self.price_tolerance):
                raise ValueError(
                    f"Requested total {price} does not match {room_type.price} x {nights} nights"
                )

        await self._ensure_capacity(hotel_settings, room_type, reservation)
        saved = await self._place(reservation)
        logger.info(
            "Created reservation",
            hotel_id=hotel_id,
            reservation_id=saved.reservation_id,
            room_number=saved.room_number,
        )
        self._publish(saved, ReservationEvent.CREATED)
        return saved

    async def create_day_use_reservation(
        self,
        hotel_id: str,
        room_info: str,
        check_in: DateInput = None,
        duration_hours: Optional[int] = None,
        site_name: str = WALK_IN_SITE_NAME,
        external_no: Optional[str] = None,
        customer_name: str = "",
        phone_number: str = "",
        room_number: str = "",
        price: Any = 0,
        payment_method: str = PaymentMethod.PENDING.value,
    ) -> Reservation:
        """Book an hourly session starting now unless ``check_in`` is given"""
        self.registry.ensure_initialized(hotel_id)
        duration = duration_hours or app_settings.hotel.day_use_hours
        if duration <= 0:
            raise ValueError("Day-use duration must be at least 1 hour")

        start = datetime.now(HOTEL_TZ).replace(microsecond=0) if check_in is None else require_datetime(
            check_in, "check_in", cache=self.parse_cache
        )
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        room_type = hotel_settings.find_room_type(room_info) if hotel_settings else None
        reservation = Reservation.create(
            reservation_id=f"{site_name}-{external_no or uuid4().hex[:12]}",
            hotel_id=hotel_id,
            room_info=room_type.room_info if room_type else room_info,
            check_in=start,
            check_out=start + timedelta(hours=duration),
            reservation_type=ReservationType.DAY_USE,
            duration=duration,
            site_name=site_name,
            customer_name=customer_name or f"대실:{start:%H:%M:%S}",
            phone_number=sanitize_phone_number(phone_number),
            room_number=room_number,
            price=parse_price(price),
            payment_method=payment_method,
        )

        await self._ensure_new_id(hotel_id, reservation.reservation_id)
        saved = await self._place(reservation)
        logger.info(
            "Created day-use reservation",
            hotel_id=hotel_id,
            reservation_id=saved.reservation_id,
            room_number=saved.room_number,
        )
        self._publish(saved, ReservationEvent.CREATED)
        return saved

    async def upsert_ota_reservations(
        self,
        hotel_id: str,
        site_name: str,
        rows: List[Dict[str, Any]],
    ) -> List[str]:
        """Ingest scraped OTA bookings; returns ids of newly created reservations.

        Rows without a reservation number or with unusable dates are skipped.
        Existing reservations keep their room. A booking that cannot be placed
        into a room is stored unassigned rather than rejected, since the OTA
        has already sold it.
        """
        self.registry.ensure_initialized(hotel_id)
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        created_ids: List[str] = []

        for row in rows:
            reservation_no = str(row.get("reservationNo") or "").strip()
            if not reservation_no or reservation_no == "N/A":
                logger.warning("Skipping OTA row without reservation number", hotel_id=hotel_id, site_name=site_name)
                continue

            reservation_id = f"{site_name}-{reservation_no}"
            try:
                start, end = self._parse_range(row.get("checkIn"), row.get("checkOut"), hotel_settings)
            except InvalidDateError as e:
                logger.warning("Skipping OTA row with invalid dates", hotel_id=hotel_id, reservation_id=reservation_id, error=str(e))
                continue
            if start >= end:
                logger.warning("Skipping OTA row with inverted dates", hotel_id=hotel_id, reservation_id=reservation_id)
                continue

            room_info = row.get("roomInfo") or ""
            room_type = hotel_settings.find_room_type(room_info) if hotel_settings else None
            fields = dict(
                site_name=site_name,
                customer_name=row.get("customerName") or "",
                phone_number=sanitize_phone_number(row.get("phoneNumber")),
                room_info=room_type.room_info if room_type else room_info,
                original_room_info=room_info,
                check_in=start,
                check_out=end,
                reservation_status=row.get("reservationStatus") or "Pending",
                price=parse_price(row.get("price")),
                special_requests=row.get("specialRequests"),
                payment_method=self._ota_payment_method(site_name, row.get("paymentMethod")),
                is_cancelled=is_cancelled_status(
                    row.get("reservationStatus"), row.get("customerName"), room_info, reservation_no
                ),
            )

            existing = await self.repository.find_by_id(hotel_id, reservation_id)
            if existing is not None:
                await self._refresh_ota_reservation(existing, fields)
                continue

            reservation = Reservation(
                reservation_id=reservation_id,
                hotel_id=hotel_id,
                room_number=(row.get("roomNumber") or "").strip(),
                **fields,
            )
            if reservation.is_cancelled:
                saved = await self.repository.save(reservation)
            else:
                try:
                    saved = await self._place(reservation)
                except (NoRoomAvailableError, ReservationConflictError, RoomNotInGridError) as e:
                    logger.warning("Storing OTA reservation unassigned", hotel_id=hotel_id, reservation_id=reservation_id, reason=str(e))
                    reservation.room_number = ""
                    saved = await self.repository.save(reservation)
            logger.info("Created OTA reservation", hotel_id=hotel_id, reservation_id=reservation_id, room_number=saved.room_number)
            created_ids.append(reservation_id)
            self._publish(saved, ReservationEvent.CREATED)

        return created_ids

    @staticmethod
    def _ota_payment_method(site_name: str, payment_method: Optional[str]) -> str:
        if site_name in {site.value for site in OTASite}:
            return (payment_method or "").strip() or PaymentMethod.OTA.value
        return payment_method or PaymentMethod.PENDING.value

    async def _refresh_ota_reservation(self, existing: Reservation, fields: Dict[str, Any]) -> None:
        dates_changed = existing.check_in != fields["check_in"] or existing.check_out != fields["check_out"]
        existing.apply_changes(**fields)
        if existing.is_cancelled:
            existing.reservation_status = "Cancelled"
        if existing.room_number and existing.is_live and dates_changed:
            try:
                await self._write_into_room(existing, existing.room_number, is_new=False)
            except ReservationConflictError as e:
                logger.warning("Unassigning OTA reservation after date change", hotel_id=existing.hotel_id, reservation_id=existing.reservation_id, reason=str(e))
                existing.room_number = ""
                await self.repository.update(existing)
        else:
            await self.repository.update(existing)
        logger.info("Updated OTA reservation", hotel_id=existing.hotel_id, reservation_id=existing.reservation_id)
        self._publish(existing, ReservationEvent.UPDATED)

    # ==================== QUERIES ====================
    async def get_reservation(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(hotel_id, reservation_id)

    async def get_live_reservations(self, hotel_id: str, name: Optional[str] = None) -> List[Reservation]:
        """Non-cancelled reservations, newest first, optionally by exact guest name"""
        reservations = await self.repository.find_live(hotel_id)
        if name:
            reservations = [r for r in reservations if r.customer_name.lower() == name.lower()]
        return sorted(reservations, key=lambda r: r.created_at, reverse=True)

    async def get_cancelled_reservations(self, hotel_id: str) -> List[Reservation]:
        """Cancelled reservations"""
        return await self.repository.find_cancelled(hotel_id)

    async def check_conflict(
        self,
        hotel_id: str,
        room_number: str,
        check_in: DateInput,
        check_out: DateInput,
        reservation_type: ReservationType = ReservationType.STAY,
        exclude_id: Optional[str] = None,
    ) -> ConflictResult:
        """Dry-run conflict check for a prospective booking"""
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        start, end = self._parse_range(check_in, check_out, hotel_settings)
        probe = Reservation(
            reservation_id=f"probe-{uuid4()}",
            hotel_id=hotel_id,
            check_in=start,
            check_out=end,
            type=reservation_type,
        )
        live = await self.repository.find_live(hotel_id)
        return detect_conflict(probe, room_number, live, exclude_id=exclude_id)

    # ==================== MODIFICATION ====================
    async def update_reservation(
        self,
        hotel_id: str,
        reservation_id: str,
        changes: Dict[str, Any],
    ) -> Optional[Reservation]:
        """Apply field changes.

        New dates or a new room type go through the same night and capacity
        checks as a new booking. A non-empty room number must be an active
        container of the reservation's room type, and is re-checked for
        conflicts. A cancelling status cancels the reservation outright.
        """
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None

        changes = {k: v for k, v in changes.items() if v is not None}
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        rescheduled = "check_in" in changes or "check_out" in changes
        if rescheduled:
            start, end = self._parse_range(
                changes.pop("check_in", reservation.check_in),
                changes.pop("check_out", reservation.check_out),
                hotel_settings,
            )
            reservation.reschedule(start, end)
            if not reservation.is_day_use and reservation.nights() <= 0:
                raise InvalidDateError(f"{start.isoformat()} ~ {end.isoformat()}", "date range")
        if "phone_number" in changes:
            changes["phone_number"] = sanitize_phone_number(changes["phone_number"])
        if "price" in changes:
            changes["price"] = parse_price(changes["price"])

        retyped = False
        if "room_info" in changes:
            room_type = hotel_settings.find_room_type(changes["room_info"]) if hotel_settings else None
            if room_type is None:
                raise ValueError(f"Unknown room type: {changes['room_info']}")
            changes["room_info"] = room_type.room_info
            retyped = room_type.room_info.lower() != reservation.room_info.lower()

        cancelling = is_cancelled_status(changes.get("reservation_status"))
        if cancelling:
            changes.pop("reservation_status")

        new_room = changes.pop("room_number", reservation.room_number)
        reservation.apply_changes(**changes)
        if cancelling and not reservation.is_cancelled:
            reservation.cancel()

        if reservation.is_live and not reservation.is_day_use and (rescheduled or retyped):
            room_type = hotel_settings.find_room_type(reservation.room_info) if hotel_settings else None
            if room_type is None:
                logger.warning(
                    "Skipping capacity check for unmapped room type",
                    hotel_id=hotel_id,
                    reservation_id=reservation_id,
                    room_info=reservation.room_info,
                )
            else:
                await self._ensure_capacity(hotel_settings, room_type, reservation, exclude_id=reservation_id)

        if reservation.is_live and new_room:
            await self._require_room(hotel_id, new_room, reservation.room_info)
            saved = await self._write_into_room(reservation, new_room, is_new=False)
        else:
            reservation.room_number = new_room
            saved = await self.repository.update(reservation)
        logger.info("Updated reservation", hotel_id=hotel_id, reservation_id=reservation_id)
        self._publish(saved, ReservationEvent.UPDATED)
        return saved

    async def update_day_use_reservation(
        self,
        hotel_id: str,
        reservation_id: str,
        changes: Dict[str, Any],
    ) -> Optional[Reservation]:
        """Change a day-use session; check-out follows check-in + duration"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None
        if not reservation.is_day_use:
            raise ValueError(f"Reservation {reservation_id} is not a day-use reservation")

        changes = {k: v for k, v in changes.items() if v is not None}
        duration_hours = changes.pop("duration_hours", None)
        if "check_in" in changes or duration_hours is not None:
            start = require_datetime(changes.pop("check_in", reservation.check_in), "check_in", cache=self.parse_cache)
            duration = duration_hours or reservation.duration or app_settings.hotel.day_use_hours
            changes["check_in"] = start
            changes["check_out"] = start + timedelta(hours=duration)
        return await self.update_reservation(hotel_id, reservation_id, changes)

    async def move_reservation(
        self,
        hotel_id: str,
        reservation_id: str,
        target_room_number: str,
        selected_date: DateInput = None,
        now: Optional[datetime] = None,
    ) -> Optional[Reservation]:
        """Drag a reservation into another room of the grid"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None
        if reservation.is_cancelled:
            raise ReservationNotMovableError("Cannot move a cancelled reservation")

        span = reservation.occupancy()
        if reservation.is_past_checkout(now):
            raise ReservationNotMovableError(
                f"Reservation {reservation_id} checked out on {span.end:%Y-%m-%d} and cannot be moved"
            )
        if selected_date is not None and reservation.nights() > 0:
            selected = require_datetime(selected_date, "selected_date", cache=self.parse_cache)
            if span.start.date() < selected.date():
                raise ReservationNotMovableError(
                    f"Multi-night reservation {reservation_id} can only be moved from its check-in day"
                )

        target = await self._require_room(hotel_id, target_room_number)
        if target.room_info and target.room_info.lower() != reservation.room_info.lower():
            reservation.room_info = target.room_info
        saved = await self._write_into_room(reservation, target_room_number, is_new=False)
        logger.info("Moved reservation", hotel_id=hotel_id, reservation_id=reservation_id, room_number=target_room_number)
        self._publish(saved, ReservationEvent.UPDATED)
        return saved

    async def confirm_reservation(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Confirm reservation"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None
        try:
            reservation.confirm()
        except ValueError as e:
            raise ValueError(f"Cannot confirm reservation: {str(e)}")
        saved = await self.repository.update(reservation)
        self._publish(saved, ReservationEvent.UPDATED)
        return saved

    async def cancel_reservation(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Cancel reservation; its room and dates free up immediately"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None
        try:
            reservation.cancel()
        except ValueError as e:
            raise ValueError(f"Cannot cancel reservation: {str(e)}")
        saved = await self.repository.update(reservation)
        logger.info("Cancelled reservation", hotel_id=hotel_id, reservation_id=reservation_id)
        self._publish(saved, ReservationEvent.UPDATED)
        return saved

    async def check_out_reservation(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Manual early checkout"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return None
        try:
            reservation.check_out_manually()
        except ValueError as e:
            raise ValueError(f"Cannot check out: {str(e)}")
        saved = await self.repository.update(reservation)
        self._publish(saved, ReservationEvent.UPDATED)
        return saved

    async def delete_reservation(self, hotel_id: str, reservation_id: str) -> bool:
        """Delete reservation"""
        reservation = await self._require(hotel_id, reservation_id)
        if not reservation:
            return False
        deleted = await self.repository.delete(hotel_id, reservation_id)
        if deleted:
            self._publish(reservation, ReservationEvent.DELETED)
        return deleted


class AvailabilityService:
    """Service for Availability business use cases"""

    def __init__(self, repository: ReservationRepository, settings_repo: HotelSettingsRepository):
        self.repository = repository
        self.settings_repo = settings_repo

    async def get_availability(self, hotel_id: str, from_date: DateInput, to_date: DateInput) -> AvailabilityByDate:
        """Remaining rooms per date and room type for [from_date, to_date)"""
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        if hotel_settings is None:
            logger.warning("Hotel settings not found, nothing available", hotel_id=hotel_id)
            room_types, grid = [], None
        else:
            room_types, grid = hotel_settings.room_types, hotel_settings.grid_settings
        live = await self.repository.find_live(hotel_id)
        return compute_availability(live, room_types, from_date, to_date, grid)

    async def get_summary(self, hotel_id: str, from_date: DateInput, to_date: DateInput) -> List[Dict[str, Any]]:
        """Per room type: rooms bookable for every night of the range"""
        availability = await self.get_availability(hotel_id, from_date, to_date)
        room_types = await self.settings_repo.get_room_types(hotel_id)
        summary = []
        for room_type in room_types:
            summary.append({
                "room_info": room_type.room_info,
                "name_kor": room_type.name_kor,
                "name_eng": room_type.name_eng,
                "price": room_type.price,
                "stock": room_type.stock,
                "available_rooms": minimum_remaining(availability, room_type, from_date, to_date),
                "sold_out_dates": sold_out_dates(availability, room_type.key),
            })
        return sorted(summary, key=lambda s: natural_sort_key(s["room_info"]))

    async def get_remaining(self, hotel_id: str, room_info: str, from_date: DateInput, to_date: DateInput) -> int:
        """Fewest rooms of ``room_info`` left on any night of the range"""
        hotel_settings = await self.settings_repo.find_by_hotel_id(hotel_id)
        room_type = hotel_settings.find_room_type(room_info) if hotel_settings else None
        if room_type is None:
            return 0
        availability = await self.get_availability(hotel_id, from_date, to_date)
        return minimum_remaining(availability, room_type, from_date, to_date)
