import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, DateTime, Text
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    full_name: str | None = Field(default=None, max_length=255)


class UserRegister(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)


class UserUpdateDomain(SQLModel):
    custom_domain: str | None = Field(default=None, max_length=255)


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    custom_domain: str | None = Field(default=None, max_length=255)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    landing_pages: list["LandingPage"] = Relationship(back_populates="owner", cascade_delete=True)


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    custom_domain: str | None = None
    created_at: datetime | None = None


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


# Landing pages

class LandingPage(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(sa_type=Text)
    slug: str = Field(unique=True, index=True, max_length=255)
    meta_description: str = Field(default="", sa_type=Text)
    template_key: str = Field(default="default", max_length=50)
    # Snapshot of the generation form, re-read when the page is regenerated.
    content: dict = Field(default_factory=dict, sa_type=JSON)
    html_content: str = Field(default="", sa_type=Text)
    css_content: str = Field(default="", sa_type=Text)
    js_content: str = Field(default="", sa_type=Text)
    is_published: bool = False
    is_listed: bool = False
    published_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    owner_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    owner: User | None = Relationship(back_populates="landing_pages")
    leads: list["Lead"] = Relationship(back_populates="landing_page", cascade_delete=True)


class Lead(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(default="", sa_type=Text)
    email: str = Field(default="", sa_type=Text)
    phone: str = Field(default="", sa_type=Text)
    instagram: str = Field(default="", sa_type=Text)
    additional_info: dict = Field(default_factory=dict, sa_type=JSON)
    status: str = Field(default="new", max_length=50)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    landing_page_id: uuid.UUID = Field(
        foreign_key="landingpage.id", nullable=False, ondelete="CASCADE", index=True
    )
    landing_page: LandingPage | None = Relationship(back_populates="leads")


class FormSubmissionBase(SQLModel):
    business_info: str = Field(default="", sa_type=Text)
    webinar_content: str = Field(default="", sa_type=Text)
    target_audience: str = Field(default="", sa_type=Text)
    webinar_info: str = Field(default="", sa_type=Text)
    instructor_creds: str = Field(default="", sa_type=Text)
    contact_fields: list[str] = Field(default_factory=list, sa_type=JSON)
    visual_style: str = Field(default="", sa_type=Text)
    brand_colors: str = Field(default="", sa_type=Text)
    unique_selling_points: str = Field(default="", sa_type=Text)
    upsell_products: str = Field(default="", sa_type=Text)
    special_requirements: str = Field(default="", sa_type=Text)
    photos: list[str] = Field(default_factory=list, sa_type=JSON)


class FormSubmission(FormSubmissionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    owner_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    landing_page_id: uuid.UUID | None = Field(
        default=None, foreign_key="landingpage.id", nullable=True, ondelete="SET NULL"
    )


# Wire shapes. The page scripts and dashboard speak camelCase.

class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LandingPageSummary(CamelModel):
    id: uuid.UUID
    title: str
    meta_description: str = ""
    created_at: datetime | None = None


class LandingPageListItem(LandingPageSummary):
    slug: str
    template_key: str
    is_published: bool = False
    is_listed: bool = False
    published_at: datetime | None = None
    updated_at: datetime | None = None


class LandingPagePublic(LandingPageListItem):
    content: dict[str, Any] = {}
    html_content: str = ""
    css_content: str = ""
    js_content: str = ""


class LandingPageUpdate(CamelModel):
    title: str | None = None
    meta_description: str | None = None
    html_content: str | None = None
    css_content: str | None = None
    js_content: str | None = None
    published: bool | None = None
    listed: bool | None = None

    # Omit a field to leave it unchanged; the columns themselves are not nullable.
    @field_validator("title", "meta_description", "html_content", "css_content", "js_content")
    @classmethod
    def _reject_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("cannot be null")
        return value


class LeadCreate(CamelModel):
    page_id: str | None = None
    name: str | None = ""
    email: str | None = ""
    phone: str | None = ""
    instagram: str | None = ""
    additional_info: Any = None

    # Page scripts may send numbers (a phone typed into a number input); keep them as text.
    @field_validator("page_id", "name", "email", "phone", "instagram", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)


class LeadPublic(CamelModel):
    id: uuid.UUID
    landing_page_id: uuid.UUID
    name: str
    email: str
    phone: str
    instagram: str
    additional_info: dict[str, Any] = {}
    status: str
    created_at: datetime | None = None


class LeadWithPage(LeadPublic):
    page_title: str | None = None


class FormSubmissionCreate(CamelModel):
    business_info: str = ""
    webinar_content: str = ""
    target_audience: str = ""
    webinar_info: str = ""
    instructor_creds: str = ""
    contact_fields: list[str] = []
    visual_style: str = ""
    brand_colors: str = ""
    unique_selling_points: str = ""
    upsell_products: str = ""
    special_requirements: str = ""
    landing_page_id: uuid.UUID | None = None


class FormSubmissionPublic(FormSubmissionCreate):
    id: uuid.UUID
    photos: list[str] = []
    created_at: datetime | None = None


class MarketplacePage(CamelModel):
    id: uuid.UUID
    title: str
    meta_description: str = ""
    template_key: str
    is_published: bool
    created_at: datetime | None = None
    owner_name: str | None = None


class RegeneratePageRequest(CamelModel):
    page_id: str | None = None


class RefineBlockRequest(CamelModel):
    block_type: str | None = ""
    current_content: str | None = ""
    user_instructions: str | None = ""
    page_context: dict[str, Any] | None = None


# Response envelopes: every JSON reply carries ``success``.

class SuccessResponse(CamelModel):
    success: bool = True


class MessageResponse(SuccessResponse):
    message: str


class LandingPageCreated(SuccessResponse):
    landing_page: LandingPageSummary


class LandingPageResponse(SuccessResponse):
    data: LandingPagePublic


class LandingPagesResponse(SuccessResponse):
    data: list[LandingPageListItem]


class LeadResponse(SuccessResponse):
    data: LeadPublic


class LeadsResponse(SuccessResponse):
    data: list[LeadWithPage]


class RefineBlockResponse(SuccessResponse):
    refined_content: str
    block_type: str
    original_content: str


class MarketplaceResponse(SuccessResponse):
    pages: list[MarketplacePage]


class FormSubmissionResponse(SuccessResponse):
    submission: FormSubmissionPublic


class FormSubmissionsResponse(SuccessResponse):
    submissions: list[FormSubmissionPublic]


class UserResponse(SuccessResponse):
    user: UserPublic
