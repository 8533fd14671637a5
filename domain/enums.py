"""Domain Enums"""
from enum import Enum


class ReservationType(str, Enum):
    STAY = "stay"
    DAY_USE = "dayUse"


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    CARD = "Card"
    CASH = "Cash"
    ACCOUNT_TRANSFER = "Account Transfer"
    PENDING = "Pending"
    OTA = "OTA"
    ON_SITE = "현장결제"


class OTASite(str, Enum):
    YANOLJA = "Yanolja"
    GOOD_HOTEL = "GoodHotel"
    GOOD_MOTEL = "GoodMotel"
    AGODA = "Agoda"
    COOL_STAY = "CoolStay"
    BOOKING = "Booking"
    EXPEDIA = "Expedia"


class AssignmentStrategy(str, Enum):
    DATE_AWARE = "DATE_AWARE"
    COARSE = "COARSE"


class ReservationEvent(str, Enum):
    CREATED = "reservationCreated"
    UPDATED = "reservationUpdated"
    DELETED = "reservationDeleted"
