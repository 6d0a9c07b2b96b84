"""Class and inspection item catalog schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Class name")
    description: str | None = Field(default=None, description="Class description")


class ClassUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class ClassResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    student_count: int = 0
    report_count: int = 0
    created_at: datetime
    updated_at: datetime


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Item name")
    description: str = Field(default="", description="Item description")


class ItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class ItemResponse(BaseModel):
    id: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
