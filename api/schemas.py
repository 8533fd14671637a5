"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.enums import ReservationType


# ============================================================================
# HOTEL SETTINGS SCHEMAS
# ============================================================================

class RoomTypeRequest(BaseModel):
    """Room type DTO"""
    room_info: str = Field(min_length=1)
    name_kor: str = ""
    name_eng: str = ""
    price: int = Field(ge=0)
    stock: int = Field(ge=0)
    aliases: List[str] = []


class ContainerRequest(BaseModel):
    """Grid container DTO"""
    container_id: str
    room_info: str = ""
    room_number: str = Field(min_length=1)
    is_active: Optional[bool] = True
    price: int = 0


class FloorRequest(BaseModel):
    """Grid floor DTO"""
    floor_num: int
    containers: List[ContainerRequest] = []


class GridSettingsRequest(BaseModel):
    """Grid DTO: floors, or the legacy flat container list"""
    floors: Optional[List[FloorRequest]] = None
    containers: Optional[List[ContainerRequest]] = None


class SaveHotelSettingsRequest(BaseModel):
    """Create/replace hotel settings request DTO"""
    total_rooms: int = Field(ge=1, default=50)
    room_types: List[RoomTypeRequest] = Field(min_length=1)
    grid_settings: Optional[GridSettingsRequest] = None
    check_in_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    check_out_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")


class HotelSettingsResponse(BaseModel):
    """Hotel settings response DTO"""
    hotel_id: str
    total_rooms: int
    room_types: List[RoomTypeRequest]
    grid_settings: Optional[GridSettingsRequest] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    updated_at: datetime
    version: int


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create stay reservation request DTO"""
    room_info: str
    check_in: str
    check_out: str
    price: Optional[int] = Field(None, ge=0)
    customer_name: str = ""
    phone_number: str = ""
    room_number: str = ""
    special_requests: Optional[str] = None
    site_name: str = "단잠"
    external_no: Optional[str] = None
    validate_price: bool = True


class CreateDayUseReservationRequest(BaseModel):
    """Create day-use reservation request DTO"""
    room_info: str
    check_in: Optional[str] = None
    duration_hours: Optional[int] = Field(None, ge=1, le=24)
    customer_name: str = ""
    phone_number: str = ""
    room_number: str = ""
    price: Any = 0
    site_name: str = "현장예약"
    external_no: Optional[str] = None


class UpdateDayUseReservationRequest(BaseModel):
    """Update day-use reservation request DTO"""
    check_in: Optional[str] = None
    duration_hours: Optional[int] = Field(None, ge=1, le=24)
    room_number: Optional[str] = None
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    price: Optional[Any] = None
    payment_method: Optional[str] = None


class UpsertOTAReservationsRequest(BaseModel):
    """Batch of scraped OTA bookings (camelCase rows as scraped)"""
    site_name: str = Field(min_length=1)
    reservations: List[Dict[str, Any]]


class UpsertOTAReservationsResponse(BaseModel):
    """OTA batch result DTO"""
    message: str
    created_reservation_ids: List[str]


class UpdateReservationRequest(BaseModel):
    """Update reservation request DTO"""
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    room_info: Optional[str] = None
    room_number: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    price: Optional[Any] = None
    special_requests: Optional[str] = None
    payment_method: Optional[str] = None
    reservation_status: Optional[str] = None


class MoveReservationRequest(BaseModel):
    """Drag-to-room request DTO"""
    room_number: str = Field(min_length=1)
    selected_date: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: str
    hotel_id: str
    site_name: str
    customer_name: str
    phone_number: str
    room_info: str
    original_room_info: str
    room_number: str
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    type: str
    duration: Optional[int] = None
    reservation_status: str
    price: int
    payment_method: str
    special_requests: Optional[str] = None
    is_cancelled: bool
    is_checked_out: bool
    manually_checked_out: bool
    created_at: datetime
    modified_at: datetime
    version: int


# ============================================================================
# CONFLICT & AVAILABILITY SCHEMAS
# ============================================================================

class ConflictCheckRequest(BaseModel):
    """Dry-run conflict check request DTO"""
    room_number: str = Field(min_length=1)
    check_in: str
    check_out: str
    type: ReservationType = ReservationType.STAY
    exclude_id: Optional[str] = None


class ConflictResponse(BaseModel):
    """Conflict check response DTO"""
    conflict: bool
    room_number: str
    conflicting_reservation_id: Optional[str] = None
    conflicting_customer_name: Optional[str] = None
    conflicting_check_in: Optional[datetime] = None
    conflicting_check_out: Optional[datetime] = None


class RoomAvailabilityResponse(BaseModel):
    """Remaining rooms of one type on one date"""
    remain: int
    stock: int
    occupied: int


class AvailabilitySummaryResponse(BaseModel):
    """Bookable rooms per room type for a whole stay"""
    room_info: str
    name_kor: str
    name_eng: str
    price: int
    stock: int
    available_rooms: int
    sold_out_dates: List[str]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None
    hotel_id: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    hotel_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
