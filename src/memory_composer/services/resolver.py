"""Turns image service replies into displayable results."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from memory_composer.domain.errors import NoContentInResponseError
from memory_composer.domain.generation import (
    GeneratedImage,
    ImageBlock,
    ImagePayload,
    ServiceResponse,
    TextBlock,
)
from memory_composer.services.placeholders import (
    SVG_MEDIA_TYPE,
    render_scene_placeholder,
)

_logger = logging.getLogger(__name__)

QUALITY_LIVE = "AI-Enhanced"
QUALITY_PLACEHOLDER = "Preview"
QUALITY_DEMO = "High"

LIVE_FEATURES = (
    "AI Image Generation",
    "Family Photo Fusion",
    "Scene Synthesis",
    "Character Consistency",
)
DEMO_FEATURES = (
    "Character Consistency",
    "Multi-Image Fusion",
    "World Knowledge",
    "Natural Language",
)


@dataclass(frozen=True)
class ResolutionContext:
    """What the resolver needs to know about the request that was sent."""

    scenario_id: str | None
    scenario_title: str
    historical_count: int
    current_count: int
    default_description: str
    processing_time: str
    cost: float
    expected_people_count: int | None = None
    edit_history: list[str] = field(default_factory=list)
    supersedes: UUID | None = None
    caption: str | None = None


def find_image_block(response: ServiceResponse) -> ImageBlock | None:
    """Return the first inline image block of the reply, if any."""
    for block in response.blocks:
        if (
            isinstance(block, ImageBlock)
            and block.data
            and block.media_type.startswith("image/")
        ):
            return block
    return None


def extract_text(response: ServiceResponse) -> str:
    """Join the non-empty text blocks of the reply."""
    texts = [
        block.text.strip()
        for block in response.blocks
        if isinstance(block, TextBlock) and block.text.strip()
    ]
    return "\n".join(texts)


def resolve(response: ServiceResponse, context: ResolutionContext) -> GeneratedImage:
    """Build a GeneratedImage from a reply, synthesizing a graphic if needed."""
    image_block = find_image_block(response)
    text = extract_text(response)

    if image_block is not None:
        payload = ImagePayload(data=image_block.data, media_type=image_block.media_type)
        quality = QUALITY_DEMO if response.simulated else QUALITY_LIVE
    elif text:
        _logger.info(
            "No image in reply, synthesizing placeholder for %s",
            context.scenario_title,
        )
        payload = ImagePayload(
            data=render_scene_placeholder(
                scenario_id=context.scenario_id,
                title=context.scenario_title,
                historical_count=context.historical_count,
                current_count=context.current_count,
                caption=context.caption,
            ),
            media_type=SVG_MEDIA_TYPE,
            synthesized=True,
        )
        quality = QUALITY_PLACEHOLDER
    else:
        raise NoContentInResponseError("The image service returned no image or text")

    features = DEMO_FEATURES if response.simulated else LIVE_FEATURES
    return GeneratedImage(
        id=uuid4(),
        scenario_title=context.scenario_title,
        description=text or context.default_description,
        payload=payload,
        created_at=datetime.now(tz=UTC),
        historical_photos_used=context.historical_count,
        current_photos_used=context.current_count,
        quality=quality,
        processing_time=context.processing_time,
        features=list(features),
        cost=context.cost,
        ai_description=text or None,
        edit_history=list(context.edit_history),
        expected_people_count=context.expected_people_count,
        supersedes=context.supersedes,
    )
