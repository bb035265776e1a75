from pydantic import BaseModel, field_validator
from typing import Optional


class BookingCreateRequest(BaseModel):
    # Business rules (required fields, ordering) are checked by the booking
    # validator so callers get its fail-fast messages instead of a 422.
    room_id:      Optional[int] = None
    date:         Optional[str] = None
    end_date:     Optional[str] = None
    start_time:   Optional[str] = None
    end_time:     Optional[str] = None
    is_multi_day: bool          = False
    all_day:      bool          = False
    purpose:      Optional[str] = None
    description:  Optional[str] = None

    @field_validator("purpose", "description")
    @classmethod
    def strip_text(cls, v):
        if v is None: return v
        return v.strip() or None


class BookingUpdateRequest(BaseModel):
    room_id:       Optional[int]  = None
    date:          Optional[str]  = None
    end_date:      Optional[str]  = None
    start_time:    Optional[str]  = None
    end_time:      Optional[str]  = None
    is_multi_day:  Optional[bool] = None
    all_day:       Optional[bool] = None
    purpose:       Optional[str]  = None
    description:   Optional[str]  = None
    status:        Optional[str]  = None
    admin_remarks: Optional[str]  = None

    @field_validator("purpose")
    @classmethod
    def check_purpose(cls, v):
        if v is not None and not v.strip(): raise ValueError("Purpose cannot be empty")
        return v.strip() if v is not None else v


class StatusUpdateRequest(BaseModel):
    status:        str
    admin_remarks: Optional[str] = None

    @field_validator("status")
    @classmethod
    def lower_status(cls, v):
        return v.strip().lower()
