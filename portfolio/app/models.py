"""
Data Models Module

This module defines Pydantic models for request/response validation
and data serialization throughout the service.

Models are organized by functional area:
- Authentication models (exchange responses)
- Profile and content models (admin forms, public listings)
- Feedback and categorization models
- Upload and error models

Field names follow the camelCase keys used by the site's front end.
"""

from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator


TAG_VOCABULARY = (
    "Repost",
    "Original",
    "Technology",
    "Government",
    "International",
    "Domestic",
    "Quantitative",
    "Qualitative",
)

CONTENT_COLLECTIONS = ("opinions", "publications", "ongoing")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _non_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty or only whitespace")
    return v


# ============================================================================
# Authentication Models
# ============================================================================

class StatusResponse(BaseModel):
    """Response of the login/logout exchange."""
    status: str = Field(default="success")


class ErrorResponse(BaseModel):
    """Error body of the login/logout exchange."""
    error: str = Field(..., description="Error message")


# ============================================================================
# Profile Models
# ============================================================================

class Tool(BaseModel):
    """A tool shown on the profile, e.g. 'Jupyter'."""
    name: str = Field(..., min_length=1, description="Tool name")
    imageUrl: str = Field(..., min_length=1, description="Logo URL or site path")


class Profile(BaseModel):
    """Profile shown on the home page."""
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    tools: List[Tool] = Field(default_factory=list)
    imageUrl: Optional[HttpUrl] = Field(None, description="Profile picture URL")

    @field_validator("imageUrl", mode="before")
    @classmethod
    def empty_image_is_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("name", "description")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _non_blank(v)


# ============================================================================
# Content Models
# ============================================================================

class ContentBase(BaseModel):
    title: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1, description="At least one tag")
    imageUrl: HttpUrl = Field(..., description="Cover image URL")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _non_blank(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        tags = [tag.strip() for tag in v if tag and tag.strip()]
        if not tags:
            raise ValueError("Select at least one tag")
        return tags


class OpinionCreate(ContentBase):
    postedOn: str = Field(..., min_length=1, description="Posting date, e.g. 2024-05-01")
    content: str = Field(..., min_length=1)


class PublicationCreate(ContentBase):
    publishedOn: str = Field(..., min_length=1, description="Publication period, e.g. 'Q2 2024'")
    description: str = Field(..., min_length=1)
    fileUrl: HttpUrl
    status: Literal["public", "private"]


class OngoingCreate(ContentBase):
    startedOn: date
    description: str = Field(..., min_length=1)

    @field_validator("startedOn", mode="before")
    @classmethod
    def timestamp_to_date(cls, v):
        """Accept full timestamps (e.g. from a date picker) and keep the calendar day."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            try:
                return datetime.fromisoformat(v.strip().replace("Z", "+00:00")).date()
            except ValueError:
                return v
        return v


class ContentCreated(BaseModel):
    success: bool = True
    message: str
    id: str


class ActionResult(BaseModel):
    success: bool
    message: str


class HomePageData(BaseModel):
    profile: dict
    opinions: List[dict]
    publications: List[dict]
    ongoingResearches: List[dict]


# ============================================================================
# Feedback Models
# ============================================================================

class FeedbackRequest(BaseModel):
    """Feedback form submission."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)

    @field_validator("name", "message")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _non_blank(v)


# ============================================================================
# Categorization Models
# ============================================================================

class CategorizeRequest(BaseModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class CategorizeResponse(BaseModel):
    suggestedTags: List[str] = Field(default_factory=list)
    error: Optional[str] = None


# ============================================================================
# Upload Models
# ============================================================================

class UploadResponse(BaseModel):
    url: str = Field(..., description="Public URL of the stored image")
    path: str = Field(..., description="Object path inside the bucket")
    size: int = Field(..., description="Stored size in bytes")
    percentage: float = Field(..., description="Share of the file stored when the response was sent; 100 for a completed upload")
    speed: str = Field(..., description="Transfer speed, e.g. '512.00 KB/s'")
