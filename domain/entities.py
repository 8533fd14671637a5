"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, validator
from datetime import datetime, timedelta
from typing import Optional, List

from domain.dates import parse_datetime, start_of_day, HOTEL_TZ
from domain.enums import ReservationType, ReservationStatus, PaymentMethod
from domain.exceptions import InvalidDateError
from domain.value_objects import OccupancyInterval


def _now() -> datetime:
    return datetime.now(HOTEL_TZ)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity: "{site_name}-{external number}"
    reservation_id: str
    hotel_id: str
    site_name: str = "현장예약"

    # Guest
    customer_name: str = ""
    phone_number: str = ""

    # Room
    room_info: str = ""
    original_room_info: str = ""
    room_number: str = ""

    # Occupancy; None when stored data could not be parsed
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    type: ReservationType = ReservationType.STAY
    duration: Optional[int] = None

    # Commercial
    reservation_status: str = ReservationStatus.PENDING.value
    price: int = Field(ge=0, default=0)
    payment_method: str = PaymentMethod.PENDING.value
    special_requests: Optional[str] = None

    # Lifecycle flags
    is_cancelled: bool = False
    is_checked_in: bool = False
    is_checked_out: bool = False
    manually_checked_out: bool = False

    # Metadata
    reservation_date: datetime = Field(default_factory=_now)
    created_at: datetime = Field(default_factory=_now)
    modified_at: datetime = Field(default_factory=_now)
    version: int = 1

    class Config:
        from_attributes = True

    @validator('check_in', 'check_out', pre=True)
    def normalise_timestamp(cls, v):
        if v is None or v == "":
            return None
        return parse_datetime(v)

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        reservation_id: str,
        hotel_id: str,
        room_info: str,
        check_in: datetime,
        check_out: datetime,
        reservation_type: ReservationType = ReservationType.STAY,
        **fields,
    ) -> "Reservation":
        """Create new reservation with validation"""
        reservation = Reservation(
            reservation_id=reservation_id,
            hotel_id=hotel_id,
            room_info=room_info,
            original_room_info=fields.pop("original_room_info", room_info),
            check_in=check_in,
            check_out=check_out,
            type=reservation_type,
            **fields,
        )
        reservation.occupancy()
        return reservation

    # ==================== QUERY METHODS ====================
    @property
    def is_live(self) -> bool:
        return not self.is_cancelled

    @property
    def is_day_use(self) -> bool:
        return self.type == ReservationType.DAY_USE

    @property
    def has_valid_dates(self) -> bool:
        return (
            self.check_in is not None
            and self.check_out is not None
            and self.check_in < self.check_out
        )

    def occupancy(self) -> OccupancyInterval:
        """Occupied span; raises InvalidDateError for missing or inverted dates"""
        if self.check_in is None:
            raise InvalidDateError(self.check_in, "check_in")
        if self.check_out is None:
            raise InvalidDateError(self.check_out, "check_out")
        if self.check_out <= self.check_in:
            raise InvalidDateError(
                f"{self.check_in.isoformat()} ~ {self.check_out.isoformat()}", "date range"
            )
        return OccupancyInterval(start=self.check_in, end=self.check_out)

    def nights(self) -> int:
        """Calendar nights between check-in and check-out day"""
        span = self.occupancy()
        return (start_of_day(span.end) - start_of_day(span.start)).days

    def is_past_checkout(self, now: Optional[datetime] = None) -> bool:
        """True once the checkout day is behind today"""
        today = start_of_day(now or _now())
        return today > start_of_day(self.occupancy().end)

    # ==================== MODIFICATION METHODS ====================
    def assign_room(self, room_number: str) -> None:
        """Place reservation into a concrete room"""
        self.room_number = room_number
        self._touch()

    def reschedule(self, check_in: datetime, check_out: datetime) -> None:
        """Move the reservation to new dates"""
        self.check_in = parse_datetime(check_in)
        self.check_out = parse_datetime(check_out)
        self.occupancy()
        if self.is_day_use:
            self.duration = int((self.check_out - self.check_in) / timedelta(hours=1))
        self._touch()

    def apply_changes(self, **changes) -> None:
        """Overwrite plain fields from an update request"""
        for key, value in changes.items():
            if key in ("reservation_id", "hotel_id"):
                raise ValueError(f"{key} is immutable")
            setattr(self, key, value)
        self._touch()

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self) -> None:
        """Confirm reservation"""
        if self.is_cancelled:
            raise ValueError("Cannot confirm a cancelled reservation")
        if self.reservation_status == ReservationStatus.CONFIRMED.value:
            raise ValueError("Reservation is already confirmed")
        self.reservation_status = ReservationStatus.CONFIRMED.value
        self._touch()

    def cancel(self) -> None:
        """Cancel reservation; it stops counting against inventory"""
        if self.is_cancelled:
            raise ValueError("Reservation is already cancelled")
        self.is_cancelled = True
        self.reservation_status = ReservationStatus.CANCELLED.value
        self._touch()

    def check_out_manually(self) -> None:
        """Vacate the room early"""
        if self.is_cancelled:
            raise ValueError("Cannot check out a cancelled reservation")
        if self.manually_checked_out:
            raise ValueError("Reservation is already checked out")
        self.is_checked_out = True
        self.manually_checked_out = True
        self._touch()

    def _touch(self) -> None:
        self.modified_at = _now()
        self.version += 1


class RoomType(BaseModel):
    """Commercial room category"""
    room_info: str
    name_kor: str = ""
    name_eng: str = ""
    price: int = Field(ge=0, default=0)
    stock: int = Field(ge=0, default=0)
    aliases: List[str] = []

    class Config:
        from_attributes = True

    @property
    def key(self) -> str:
        return self.room_info.lower()


class Container(BaseModel):
    """Physical, addressable room slot"""
    container_id: str
    room_info: str = ""
    room_number: str
    is_active: Optional[bool] = True
    price: int = 0

    class Config:
        from_attributes = True


class Floor(BaseModel):
    """One storey of the room grid"""
    floor_num: int
    containers: List[Container] = []

    class Config:
        from_attributes = True


class GridSettings(BaseModel):
    """Room grid; either floors or the legacy flat container list"""
    floors: Optional[List[Floor]] = None
    containers: Optional[List[Container]] = None

    class Config:
        from_attributes = True

    def all_containers(self) -> Optional[List[Container]]:
        """Flatten floors; None when the grid has neither shape"""
        if self.floors:
            return [c for floor in self.floors for c in floor.containers]
        if self.containers is not None:
            return list(self.containers)
        return None


class HotelSettings(BaseModel):
    """Per-tenant hotel configuration Aggregate"""
    hotel_id: str
    total_rooms: int = Field(ge=1, default=50)
    room_types: List[RoomType] = []
    grid_settings: Optional[GridSettings] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None

    # Metadata
    updated_at: datetime = Field(default_factory=_now)
    version: int = 1

    class Config:
        from_attributes = True

    def find_room_type(self, room_info: str) -> Optional[RoomType]:
        """Case-insensitive lookup, aliases included"""
        key = (room_info or "").lower()
        for room_type in self.room_types:
            if room_type.key == key or key in [a.lower() for a in room_type.aliases]:
                return room_type
        return None
