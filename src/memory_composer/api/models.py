"""Pydantic models for API request payloads."""

from uuid import UUID

from pydantic import BaseModel, Field

from memory_composer.domain.generation import Orientation


class PhotoUpload(BaseModel):
    """Photo upload payload with base64 encoded content."""

    name: str
    media_type: str = "image/jpeg"
    content_base64: str


class StylePayload(BaseModel):
    """Advanced style controls."""

    cultural_style: str = "western"
    time_period: str = "modern"
    clothing_style: str = "formal"
    location_style: str = "indoor"


class GenerationPayload(BaseModel):
    """Request to generate one scenario."""

    scenario_id: str
    orientation: Orientation = Orientation.LANDSCAPE
    style: StylePayload | None = None


class VariationPayload(BaseModel):
    """Request to regenerate an existing image."""

    orientation: Orientation = Orientation.LANDSCAPE
    style: StylePayload | None = None


class EditPayload(BaseModel):
    """Natural-language edit of a generated image."""

    edit_text: str = Field(min_length=1)
    orientation: Orientation = Orientation.LANDSCAPE


class ExternalEditPayload(BaseModel):
    """Natural-language edit of a caller supplied base64 image."""

    image_base64: str
    edit_text: str = Field(min_length=1)
    orientation: Orientation = Orientation.LANDSCAPE


class EnhancePayload(BaseModel):
    """Optional custom restoration prompt."""

    prompt: str | None = None


class BatchItemPayload(BaseModel):
    """One scenario of a batch run."""

    scenario_id: str
    photo_ids: list[UUID] | None = None


class BatchPayload(BaseModel):
    """Request to run several scenarios sequentially."""

    items: list[BatchItemPayload] = Field(min_length=1)
    orientation: Orientation = Orientation.LANDSCAPE
    style: StylePayload | None = None
