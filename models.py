from sqlmodel import SQLModel, Field
from pydantic import ConfigDict, ValidationError as PydanticValidationError, field_validator
from typing import List, Optional, Union
from datetime import datetime
from dateutil import parser
import re

import errors

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class Service(SQLModel):
    description: str
    cost: Union[int, float]

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description is required")
        return v


class AppointmentBase(SQLModel):
    name: str
    phone: Optional[str] = None
    date: str
    time: str
    services: List[Service] = Field(default_factory=list)
    confirmationSent: bool = False
    reviewSent: bool = False
    billupdateflag: bool = False

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("phone")
    @classmethod
    def trim_phone(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("date")
    @classmethod
    def date_format(cls, v: str) -> str:
        if not DATE_RE.fullmatch(v):
            raise ValueError("date must be YYYY-MM-DD")
        return v

    @field_validator("time")
    @classmethod
    def time_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("time is required")
        return v


class AppointmentCreate(AppointmentBase):
    model_config = ConfigDict(extra="forbid")


class AppointmentUpdate(SQLModel):
    """Partial update. Read-only fields echoed back by clients are accepted and dropped."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    services: Optional[List[Service]] = None
    confirmationSent: Optional[bool] = None
    reviewSent: Optional[bool] = None
    billupdateflag: Optional[bool] = None
    id: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"id", "createdAt", "updatedAt"})


class Appointment(AppointmentBase):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class BillDetails(SQLModel):
    patientName: str
    billDate: str
    services: List[Service]


class LoginRequest(SQLModel):
    username: str
    password: str


class Token(SQLModel):
    token: str


def describe_errors(exc_errors) -> str:
    parts = []
    for err in exc_errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


def validate_appointment(data: dict) -> dict:
    """Check a full record against the field constraints; returns the cleaned fields."""
    try:
        return AppointmentBase.model_validate(data).model_dump()
    except PydanticValidationError as e:
        raise errors.ValidationError(describe_errors(e.errors()))


def check_date(value: Optional[str]) -> str:
    if not value or not DATE_RE.fullmatch(value):
        raise errors.InvalidArgument("Invalid date format. Use YYYY-MM-DD.")
    return value


def sort_key(appointment: Appointment) -> datetime:
    # zones are dropped so naive and zoned times compare; unparseable sorts last
    try:
        return parser.parse(f"{appointment.date} {appointment.time}").replace(tzinfo=None)
    except (ValueError, OverflowError):
        return datetime.min


def newest_first(appointments: List[Appointment]) -> List[Appointment]:
    return sorted(appointments, key=sort_key, reverse=True)
