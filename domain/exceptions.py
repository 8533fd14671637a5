"""Domain Exceptions"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from domain.entities import Reservation


class HotelInventoryError(ValueError):
    """Base class for booking engine errors"""


class InvalidDateError(HotelInventoryError):
    """Check-in/check-out of the reservation being written cannot be parsed"""

    def __init__(self, value: object, field: str = "date"):
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field}: {value!r}")


class ReservationConflictError(HotelInventoryError):
    """Target room is already occupied by another live reservation"""

    def __init__(self, room_number: str, conflicting: "Reservation"):
        self.room_number = room_number
        self.conflicting = conflicting
        super().__init__(
            f"Room {room_number} is already booked by {conflicting.reservation_id} "
            f"({conflicting.check_in:%Y-%m-%d %H:%M} ~ {conflicting.check_out:%Y-%m-%d %H:%M})"
        )


class NoRoomAvailableError(HotelInventoryError):
    """Every container of the room type is occupied for the requested range"""

    def __init__(self, room_info: str, detail: Optional[str] = None):
        self.room_info = room_info
        super().__init__(detail or f"No {room_info} rooms available for the requested dates")


class ConfigurationMissingError(HotelInventoryError):
    """Hotel has no grid or room type configuration yet"""

    def __init__(self, hotel_id: str):
        self.hotel_id = hotel_id
        super().__init__(f"Hotel settings not found for {hotel_id}")


class ReservationNotMovableError(HotelInventoryError):
    """Reservation cannot be dragged to another room"""


class RoomNotInGridError(HotelInventoryError):
    """Room number is not an active container of the grid, or holds another room type"""

    def __init__(self, room_number: str, detail: Optional[str] = None):
        self.room_number = room_number
        super().__init__(detail or f"Room {room_number} is not an active room")
