from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


CampaignMode = Literal["programmatic", "non_programmatic"]
MediaType = Literal["dooh", "ctv", "ooh"]

MEDIA_TYPES_BY_MODE: dict[str, frozenset[str]] = {
    "programmatic": frozenset({"dooh", "ctv"}),
    "non_programmatic": frozenset({"dooh", "ooh"}),
}


def media_type_allowed(mode: str | None, media_type: str | None) -> bool:
    if mode is None or media_type is None:
        return True
    return media_type in MEDIA_TYPES_BY_MODE.get(mode, frozenset())


def _dedupe(values: list[str]) -> list[str]:
    cleaned: list[str] = []
    for value in values:
        item = value.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


class BriefCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    product_name: str | None = None
    brand_id: str | None = None
    agency_id: str | None = None
    contact_person_id: UUID | None = None
    mode_of_campaign: CampaignMode | None = None
    media_type: MediaType | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    assign_user_id: str | None = None
    brief_status: str | None = None
    priority: str | None = None
    comment: str | None = None
    submission_date: datetime | None = None

    @model_validator(mode="after")
    def validate_media_type(self) -> "BriefCreate":
        if not media_type_allowed(self.mode_of_campaign, self.media_type):
            raise ValueError(f"media_type '{self.media_type}' is not available for {self.mode_of_campaign} campaigns")
        return self


class BriefUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    product_name: str | None = None
    brand_id: str | None = None
    agency_id: str | None = None
    contact_person_id: UUID | None = None
    mode_of_campaign: CampaignMode | None = None
    media_type: MediaType | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    assign_user_id: str | None = None
    brief_status: str | None = None
    priority: str | None = None
    comment: str | None = None
    submission_date: datetime | None = None
    note: str | None = Field(default=None, max_length=2000)


class BriefRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    product_name: str | None
    brand_id: str | None
    agency_id: str | None
    contact_person_id: UUID | None
    mode_of_campaign: str | None
    media_type: str | None
    budget: Decimal | None
    assign_user_id: str | None
    brief_status: str | None
    priority: str | None
    comment: str | None
    submission_date: datetime | None
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


class LeadCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    mobile_numbers: list[str] = Field(default_factory=list)
    profile_url: str | None = None
    lead_type: str | None = None
    brand_id: str | None = None
    agency_id: str | None = None
    current_assign_user: str | None = None
    lead_status: str | None = None
    call_status: str | None = None
    priority: str | None = None
    call_attempt: int = Field(default=0, ge=0)
    comment: str | None = None

    @field_validator("mobile_numbers")
    @classmethod
    def normalize_mobile_numbers(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class LeadUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    mobile_numbers: list[str] | None = None
    profile_url: str | None = None
    lead_type: str | None = None
    brand_id: str | None = None
    agency_id: str | None = None
    current_assign_user: str | None = None
    lead_status: str | None = None
    call_status: str | None = None
    priority: str | None = None
    call_attempt: int | None = Field(default=None, ge=0)
    comment: str | None = None
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("mobile_numbers")
    @classmethod
    def normalize_mobile_numbers(cls, value: list[str] | None) -> list[str] | None:
        return _dedupe(value) if value is not None else None


class LeadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None
    mobile_numbers: list[str]
    profile_url: str | None
    lead_type: str | None
    brand_id: str | None
    agency_id: str | None
    current_assign_user: str | None
    lead_status: str | None
    call_status: str | None
    priority: str | None
    call_attempt: int
    comment: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


class PlannerCreate(BaseModel):
    brief_id: UUID
    planner_status: str | None = None
    submitted_plan: list[str] = Field(default_factory=list)
    backup_plan: str | None = None
    comment: str | None = None

    @field_validator("submitted_plan")
    @classmethod
    def normalize_submitted_plan(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class PlannerUpdate(BaseModel):
    planner_status: str | None = None
    submitted_plan: list[str] | None = None
    backup_plan: str | None = None
    comment: str | None = None
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("submitted_plan")
    @classmethod
    def normalize_submitted_plan(cls, value: list[str] | None) -> list[str] | None:
        return _dedupe(value) if value is not None else None


class PlannerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    brief_id: UUID
    planner_status: str | None
    submitted_plan: list[str]
    backup_plan: str | None
    comment: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
