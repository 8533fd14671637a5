"""Tenant bootstrap tracking"""
from typing import Set

from config.logging import get_logger

logger = get_logger(__name__)


class HotelRegistry:
    """Remembers which hotels have been initialised in this process"""

    def __init__(self):
        self._initialized: Set[str] = set()

    def ensure_initialized(self, hotel_id: str) -> bool:
        """Initialise ``hotel_id`` once; returns True on the first call"""
        if not hotel_id:
            raise ValueError("hotel_id is required")
        if hotel_id in self._initialized:
            logger.debug("Hotel already initialized", hotel_id=hotel_id)
            return False
        self._initialized.add(hotel_id)
        logger.info("Initialized hotel", hotel_id=hotel_id)
        return True

    def is_initialized(self, hotel_id: str) -> bool:
        return hotel_id in self._initialized

    def reset(self) -> None:
        self._initialized.clear()
