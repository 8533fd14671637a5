"""Per-room serialisation of read-check-write booking paths"""
import asyncio
from typing import Dict, Tuple


class RoomLockRegistry:
    """Hands out one asyncio.Lock per (hotel_id, key).

    ``key`` is a room number for writes into a known room, or
    "type:{room_info}" while a room is being auto-assigned. Holding the lock
    across "load reservations, check conflict, save" keeps two requests from
    booking the same room for overlapping dates.
    """

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    def for_room(self, hotel_id: str, room_number: str) -> asyncio.Lock:
        return self._locks.setdefault((hotel_id, room_number), asyncio.Lock())

    def for_room_type(self, hotel_id: str, room_info: str) -> asyncio.Lock:
        return self._locks.setdefault((hotel_id, f"type:{(room_info or '').lower()}"), asyncio.Lock())

    def reset(self) -> None:
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._locks)
