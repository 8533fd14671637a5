"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List

from domain.entities import Reservation, HotelSettings, GridSettings, RoomType


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate, partitioned by hotel_id"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, hotel_id: str, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_live(self, hotel_id: str, room_number: Optional[str] = None) -> List[Reservation]:
        """Find non-cancelled reservations, optionally for one room"""
        pass

    @abstractmethod
    async def find_cancelled(self, hotel_id: str) -> List[Reservation]:
        """Find cancelled reservations"""
        pass

    @abstractmethod
    async def find_all(self, hotel_id: str) -> List[Reservation]:
        """Find all reservations of a hotel"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass

    @abstractmethod
    async def delete(self, hotel_id: str, reservation_id: str) -> bool:
        """Delete reservation"""
        pass


class HotelSettingsRepository(ABC):
    """Repository interface for HotelSettings Aggregate"""

    @abstractmethod
    async def save(self, hotel_settings: HotelSettings) -> HotelSettings:
        """Save hotel settings"""
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: str) -> Optional[HotelSettings]:
        """Find settings of a hotel"""
        pass

    @abstractmethod
    async def get_grid(self, hotel_id: str) -> Optional[GridSettings]:
        """Room grid of a hotel"""
        pass

    @abstractmethod
    async def get_room_types(self, hotel_id: str) -> List[RoomType]:
        """Room type catalog of a hotel"""
        pass
