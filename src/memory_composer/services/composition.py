"""Composite-scene request construction."""

from memory_composer.domain.errors import PreconditionFailedError
from memory_composer.domain.generation import (
    ContentBlock,
    GenerationRequest,
    ImageBlock,
    Orientation,
    RequestKind,
    TextBlock,
)
from memory_composer.domain.photos import Photo, PhotoRole, StyleSettings
from memory_composer.domain.scenarios import Scenario

HISTORICAL_REFERENCE = "the people from the historical photos"
# Scenario templates use singular verbs after the placeholder.
SCENE_SUBJECT = "everyone from the historical photos"

ASPECT_RATIOS: dict[Orientation, tuple[str, str]] = {
    Orientation.LANDSCAPE: ("16:9", "wide horizontal landscape framing"),
    Orientation.PORTRAIT: ("9:16", "tall vertical portrait framing"),
    Orientation.SQUARE: ("1:1", "balanced square framing"),
}


def required_people_count(historical: list[Photo], current: list[Photo]) -> int:
    """Return the number of people the generated scene must contain.

    Background photos never contribute people; when present they relocate every
    subject, so the count is the union of historical and current photos.
    """
    return len(historical) + len(current)


def build_generation_request(  # noqa: PLR0913
    historical: list[Photo],
    current: list[Photo],
    background: list[Photo],
    scenario: Scenario,
    orientation: Orientation,
    style: StyleSettings,
    *,
    kind: RequestKind = RequestKind.GENERATION,
    temperature: float = 0.7,
    max_output_tokens: int = 1290,
) -> GenerationRequest:
    """Build the ordered attachments and instruction text for a generation."""
    if not current:
        raise PreconditionFailedError(PhotoRole.CURRENT)
    if not historical:
        raise PreconditionFailedError(PhotoRole.HISTORICAL)

    base, *other_current = current
    blocks: list[ContentBlock] = [_image_block(base)]
    blocks.extend(_image_block(photo) for photo in other_current)
    blocks.extend(_image_block(photo) for photo in historical)
    blocks.extend(_image_block(photo) for photo in background)

    people_count = required_people_count(historical, current)
    blocks.append(
        TextBlock(
            build_instruction(
                scenario=scenario,
                orientation=orientation,
                style=style,
                historical_count=len(historical),
                current_count=len(current),
                background_count=len(background),
            )
        )
    )
    return GenerationRequest(
        kind=kind,
        blocks=blocks,
        orientation=orientation,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        scenario=scenario,
        style=style,
        expected_people_count=people_count,
    )


def build_instruction(  # noqa: PLR0913
    *,
    scenario: Scenario,
    orientation: Orientation,
    style: StyleSettings,
    historical_count: int,
    current_count: int,
    background_count: int,
) -> str:
    """Render the instruction text that accompanies the attached photos."""
    people_count = historical_count + current_count
    ratio, framing = ASPECT_RATIOS[orientation]
    lines = [
        (
            f"Using the first image as the base photograph, create a photorealistic "
            f"{orientation.value} image: {scenario.fill(SCENE_SUBJECT)}."
        ),
        (
            f"The first {_shows(current_count)} the current family. Keep every "
            "person shown exactly as they appear: same faces, hair, age and build."
        ),
        (
            f"The next {_shows(historical_count)} {HISTORICAL_REFERENCE}. Add "
            "each of them to the scene with the same facial features, hair, age and "
            "appearance as in their photo."
        ),
    ]
    if background_count:
        lines.append(
            f"The last {_shows(background_count)} the target setting. Relocate "
            "all people, current and historical, into that setting."
        )
    lines.extend(
        [
            (
                f"Required head count: the final image must contain exactly "
                f"{people_count} people ({historical_count} from the historical "
                f"photos and {current_count} from the current photos)."
            ),
            (
                f"Orientation: {orientation.value}, {ratio} aspect ratio with "
                f"{framing}."
            ),
            f"Cultural style: {style.cultural_style}.",
            f"Time period: {style.time_period}.",
            f"Clothing style: {style.clothing_style}.",
            f"Location style: {style.location_style}.",
            (
                f"Set it as a {scenario.emotional_tone} {scenario.title.lower()} "
                "scene with natural lighting."
            ),
            (
                f"Do not introduce any additional or generic people beyond the "
                f"{people_count} people supplied."
            ),
        ]
    )
    return "\n".join(lines)


def _image_block(photo: Photo) -> ImageBlock:
    return ImageBlock(data=photo.content, media_type=photo.media_type)


def _shows(count: int) -> str:
    return "image shows" if count == 1 else f"{count} images show"
