"""Follow-up edit requests that preserve established people."""

import base64
import binascii
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from memory_composer.domain.errors import (
    CorruptedImageDataError,
    InvalidImageDataError,
)
from memory_composer.domain.generation import (
    EntryType,
    GenerationRequest,
    ImageBlock,
    ImagePayload,
    Orientation,
    RequestKind,
    TextBlock,
)
from memory_composer.services.ledger import ConversationLedger

_logger = logging.getLogger(__name__)

CONTEXT_EDIT_LIMIT = 3
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_DATA_URL_PATTERN = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,")
_UNUSABLE_MESSAGE = "The image has no usable data; generate a variation instead"
_CORRUPTED_MESSAGE = "The image data is corrupted; generate a variation instead"


class EditIntent(StrEnum):
    """Sub-intent of a free-text edit instruction."""

    BLEND_FIX = "blend_fix"
    ADD_MISSING_PERSON = "add_missing_person"
    GENERIC = "generic"


@dataclass(frozen=True)
class EditRule:
    """Predicate and instruction template for one edit intent."""

    intent: EditIntent
    matches: Callable[[str], bool]
    render: Callable[[str, Orientation], str]


BLEND_KEYWORDS = (
    "blend",
    "lighting",
    "shadow",
    "natural",
    "skin tone",
    "artificial",
    "cutout",
)
PERSON_KEYWORDS = ("person", "historical", "missing")


def _mentions_blend_fix(text: str) -> bool:
    return any(keyword in text for keyword in BLEND_KEYWORDS)


def _mentions_missing_person(text: str) -> bool:
    return re.search(r"\badd", text) is not None and any(
        keyword in text for keyword in PERSON_KEYWORDS
    )


def _blend_fix_instruction(edit_text: str, orientation: Orientation) -> str:
    return (
        f"Improve how the people in this image blend into the scene: {edit_text}. "
        "Keep exactly the same number of people with the same faces. Make lighting "
        "direction, shadows and skin tones consistent across everyone so nobody "
        "looks cut out or artificial. Do not remove, crop, hide or obscure anyone. "
        f"Keep the {orientation.value} orientation."
    )


def _add_missing_person_instruction(edit_text: str, orientation: Orientation) -> str:
    return (
        "A person from the historical photos was lost in an earlier edit. "
        f"{edit_text}. Reinsert that person into the scene beside the others and "
        "blend them in with matching lighting, scale and perspective. Keep everyone "
        "already in the image exactly as they are. "
        f"Keep the {orientation.value} orientation."
    )


def _generic_instruction(edit_text: str, orientation: Orientation) -> str:
    return (
        f"{edit_text}. Keep exactly the same set of people as in this image, with "
        "the same faces and appearance. Do not add or remove anyone; change only "
        f"what was requested. Keep the {orientation.value} orientation."
    )


EDIT_RULES: list[EditRule] = [
    EditRule(EditIntent.BLEND_FIX, _mentions_blend_fix, _blend_fix_instruction),
    EditRule(
        EditIntent.ADD_MISSING_PERSON,
        _mentions_missing_person,
        _add_missing_person_instruction,
    ),
]
FALLBACK_RULE = EditRule(EditIntent.GENERIC, lambda _: True, _generic_instruction)


def select_rule(edit_text: str, rules: list[EditRule] | None = None) -> EditRule:
    """Return the first rule whose predicate matches the lowercased text."""
    lowered = edit_text.lower()
    for rule in EDIT_RULES if rules is None else rules:
        if rule.matches(lowered):
            return rule
    return FALLBACK_RULE


def classify_edit(edit_text: str) -> EditIntent:
    """Return the intent of an edit instruction."""
    return select_rule(edit_text).intent


def coerce_base_image(
    source: ImagePayload | str, media_type: str = "image/png"
) -> ImagePayload:
    """Validate the image an edit starts from.

    Accepts a payload or base64 text, optionally as a ``data:`` URL.
    """
    if isinstance(source, ImagePayload):
        if not source.data or not source.media_type.startswith("image/"):
            raise InvalidImageDataError(_UNUSABLE_MESSAGE)
        return source

    text = source.strip()
    match = _DATA_URL_PATTERN.match(text)
    if match:
        media_type = match.group("media_type")
        text = text[match.end() :]
    if not text or not media_type.startswith("image/"):
        raise InvalidImageDataError(_UNUSABLE_MESSAGE)
    if not _BASE64_PATTERN.match(text):
        raise CorruptedImageDataError(_CORRUPTED_MESSAGE)
    try:
        data = base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise CorruptedImageDataError(_CORRUPTED_MESSAGE) from exc
    if not data:
        raise InvalidImageDataError(_UNUSABLE_MESSAGE)
    return ImagePayload(data=data, media_type=media_type)


@dataclass
class EditOrchestrator:
    """Builds self-contained edit requests from the conversation so far."""

    temperature: float = 0.6
    max_output_tokens: int = 1290

    def build_edit_request(
        self,
        base_image: ImagePayload | str,
        edit_text: str,
        history: ConversationLedger,
        orientation: Orientation,
        *,
        expected_people_count: int | None = None,
    ) -> GenerationRequest:
        """Build an edit request whose only attachment is the prior image."""
        payload = coerce_base_image(base_image)
        rule = select_rule(edit_text)
        instruction = rule.render(edit_text.strip(), orientation)

        recent_edits = history.recent(CONTEXT_EDIT_LIMIT, EntryType.EDIT)
        previous = [entry.content for entry in recent_edits]
        if previous:
            instruction = (
                f"Following previous edits ({', '.join(previous)}), now: {instruction}"
            )
        _logger.info("Edit intent=%s previous_edits=%s", rule.intent, len(previous))

        return GenerationRequest(
            kind=RequestKind.EDIT,
            blocks=[
                ImageBlock(data=payload.data, media_type=payload.media_type),
                TextBlock(instruction),
            ],
            orientation=orientation,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            expected_people_count=expected_people_count,
        )
