# blueprints/students/schemas.py
from __future__ import annotations
import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models import CourseType

_AADHAR_RE = re.compile(r"^\d{12}$")
_PHONE_RE = re.compile(r"^\+?\d{10,15}$")


def normalize_aadhar(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = re.sub(r"\s+", "", str(v))
    if not v:
        return None
    if not _AADHAR_RE.match(v):
        raise ValueError("aadhar number must be 12 digits")
    return v


class StudentIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    class_id: int
    parent_phone: str
    parent_name: Optional[str] = Field(default=None, max_length=255)
    father_name: Optional[str] = Field(default=None, max_length=255)
    mother_name: Optional[str] = Field(default=None, max_length=255)
    aadhar_number: Optional[str] = None
    course_type: CourseType = CourseType.MONTHLY
    enrollment_date: Optional[date] = None
    admission_fee_paid: bool = False
    so_center_id: Optional[int] = None

    @field_validator("parent_phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        v = v.strip().replace(" ", "")
        if not _PHONE_RE.match(v):
            raise ValueError("invalid phone number")
        return v

    @field_validator("aadhar_number")
    @classmethod
    def _aadhar(cls, v: Optional[str]) -> Optional[str]:
        return normalize_aadhar(v)


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    class_id: Optional[int] = None
    parent_phone: Optional[str] = None
    parent_name: Optional[str] = Field(default=None, max_length=255)
    father_name: Optional[str] = Field(default=None, max_length=255)
    mother_name: Optional[str] = Field(default=None, max_length=255)
    aadhar_number: Optional[str] = None
    course_type: Optional[CourseType] = None
    enrollment_date: Optional[date] = None
    admission_fee_paid: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("parent_phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().replace(" ", "")
        if not _PHONE_RE.match(v):
            raise ValueError("invalid phone number")
        return v

    @field_validator("aadhar_number")
    @classmethod
    def _aadhar(cls, v: Optional[str]) -> Optional[str]:
        return normalize_aadhar(v)


class AadharCheckIn(BaseModel):
    aadhar_number: str
    exclude_student_id: Optional[int] = None

    @field_validator("aadhar_number")
    @classmethod
    def _aadhar(cls, v: str) -> str:
        v = normalize_aadhar(v)
        if v is None:
            raise ValueError("aadhar number must be 12 digits")
        return v
