"""Cancellation detection for OTA-scraped reservations"""
from typing import Optional

CANCEL_KEYWORDS = (
    "취소",
    "예약취소",
    "고객취소",
    "취소된 예약",
    "canceled",
    "cancelled",
    "キャンセル",
    "annulé",
    "anulado",
    "abgebrochen",
)


def _mentions_cancel(value: Optional[str]) -> bool:
    text = (value or "").lower()
    return any(keyword in text for keyword in CANCEL_KEYWORDS)


def is_cancelled_status(
    reservation_status: Optional[str],
    customer_name: Optional[str] = None,
    room_info: Optional[str] = None,
    reservation_no: Optional[str] = None,
) -> bool:
    """True when any scraped field marks the booking as cancelled.

    OTA sites mask the guest name with "*" once a booking is cancelled, so a
    masked name counts as well.
    """
    return (
        _mentions_cancel(reservation_status)
        or "*" in (customer_name or "")
        or _mentions_cancel(room_info)
        or _mentions_cancel(reservation_no)
    )
