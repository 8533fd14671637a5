"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict, Tuple

from domain.repositories import ReservationRepository, HotelSettingsRepository
from domain.entities import Reservation, HotelSettings, GridSettings, RoomType


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository.

    One store for every hotel, keyed by (hotel_id, reservation_id). Insertion
    order is kept so conflict scans see a stable sequence. Entities are copied
    in and out so a rejected write never leaks into storage.
    """

    def __init__(self):
        self._storage: Dict[Tuple[str, str], Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[(reservation.hotel_id, reservation.reservation_id)] = reservation.model_copy(deep=True)
        return reservation

    async def find_by_id(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get((hotel_id, reservation_id))
        return reservation.model_copy(deep=True) if reservation else None

    async def find_live(self, hotel_id: str, room_number: Optional[str] = None) -> List[Reservation]:
        """Find non-cancelled reservations, optionally for one room"""
        return [
            r.model_copy(deep=True) for (h_id, _), r in self._storage.items()
            if h_id == hotel_id
            and not r.is_cancelled
            and (room_number is None or r.room_number == room_number)
        ]

    async def find_cancelled(self, hotel_id: str) -> List[Reservation]:
        """Find cancelled reservations"""
        return [r.model_copy(deep=True) for (h_id, _), r in self._storage.items() if h_id == hotel_id and r.is_cancelled]

    async def find_all(self, hotel_id: str) -> List[Reservation]:
        """Find all reservations of a hotel"""
        return [r.model_copy(deep=True) for (h_id, _), r in self._storage.items() if h_id == hotel_id]

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        key = (reservation.hotel_id, reservation.reservation_id)
        if key in self._storage:
            self._storage[key] = reservation.model_copy(deep=True)
            return reservation
        raise ValueError("Reservation not found")

    async def delete(self, hotel_id: str, reservation_id: str) -> bool:
        """Delete reservation"""
        if (hotel_id, reservation_id) in self._storage:
            del self._storage[(hotel_id, reservation_id)]
            return True
        return False


class InMemoryHotelSettingsRepository(HotelSettingsRepository):
    """In-memory implementation of HotelSettingsRepository"""

    def __init__(self):
        self._storage: Dict[str, HotelSettings] = {}

    async def save(self, hotel_settings: HotelSettings) -> HotelSettings:
        """Save hotel settings to memory"""
        self._storage[hotel_settings.hotel_id] = hotel_settings
        return hotel_settings

    async def find_by_hotel_id(self, hotel_id: str) -> Optional[HotelSettings]:
        """Find settings of a hotel"""
        return self._storage.get(hotel_id)

    async def get_grid(self, hotel_id: str) -> Optional[GridSettings]:
        """Room grid of a hotel"""
        hotel_settings = self._storage.get(hotel_id)
        return hotel_settings.grid_settings if hotel_settings else None

    async def get_room_types(self, hotel_id: str) -> List[RoomType]:
        """Room type catalog of a hotel"""
        hotel_settings = self._storage.get(hotel_id)
        return list(hotel_settings.room_types) if hotel_settings else []
