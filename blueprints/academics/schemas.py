# blueprints/academics/schemas.py
from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, Field


class ClassIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: bool = True


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class SubjectIn(BaseModel):
    class_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ChapterIn(BaseModel):
    subject_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: int = Field(default=0, ge=0)
    is_active: bool = True


class ChapterUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class TopicIn(BaseModel):
    chapter_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: int = Field(default=0, ge=0)
    is_important: bool = False
    is_moderate: bool = False
    is_active: bool = True


class TopicUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: Optional[int] = Field(default=None, ge=0)
    is_important: Optional[bool] = None
    is_moderate: Optional[bool] = None
    is_active: Optional[bool] = None


class TopicFlagsIn(BaseModel):
    is_important: Optional[bool] = None
    is_moderate: Optional[bool] = None
