"""Domain models for generation requests, service replies and results."""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from memory_composer.domain.photos import StyleSettings
from memory_composer.domain.scenarios import Scenario


class Orientation(StrEnum):
    """Requested framing of the generated image."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


class RequestKind(StrEnum):
    """Action class that produced a request."""

    GENERATION = "generation"
    VARIATION = "variation"
    EDIT = "edit"
    ENHANCEMENT = "enhancement"


class EntryType(StrEnum):
    """Type of a conversation ledger entry."""

    SYSTEM = "system"
    GENERATION = "generation"
    EDIT = "edit"
    VARIATION = "variation"


@dataclass(frozen=True)
class ImageBlock:
    """Inline binary image content."""

    data: bytes
    media_type: str


@dataclass(frozen=True)
class TextBlock:
    """Plain text content."""

    text: str


ContentBlock = ImageBlock | TextBlock


@dataclass(frozen=True)
class GenerationRequest:
    """Unit of work sent to the external image service."""

    kind: RequestKind
    blocks: list[ContentBlock]
    orientation: Orientation
    temperature: float
    max_output_tokens: int
    scenario: Scenario | None = None
    style: StyleSettings | None = None
    expected_people_count: int | None = None

    @property
    def instruction(self) -> str:
        """Return the text of the final instruction block."""
        texts = [block.text for block in self.blocks if isinstance(block, TextBlock)]
        return texts[-1] if texts else ""

    @property
    def images(self) -> list[ImageBlock]:
        """Return attached images in request order."""
        return [block for block in self.blocks if isinstance(block, ImageBlock)]


@dataclass(frozen=True)
class ServiceResponse:
    """Normalized reply from the image service."""

    blocks: list[ContentBlock]
    simulated: bool = False


@dataclass(frozen=True)
class ImagePayload:
    """Displayable image content, either returned by the service or synthesized."""

    data: bytes
    media_type: str
    synthesized: bool = False

    @property
    def base64_data(self) -> str:
        """Return the payload encoded as base64 text."""
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        """Return the payload as a data URL."""
        return f"data:{self.media_type};base64,{self.base64_data}"


@dataclass(frozen=True)
class GeneratedImage:
    """A result shown to the user; edits produce new records."""

    id: UUID
    scenario_title: str
    description: str
    payload: ImagePayload
    created_at: datetime
    historical_photos_used: int
    current_photos_used: int
    quality: str
    processing_time: str
    features: list[str]
    cost: float
    ai_description: str | None = None
    edit_history: list[str] = field(default_factory=list)
    expected_people_count: int | None = None
    supersedes: UUID | None = None

    @property
    def last_edit(self) -> str | None:
        """Return the most recent edit applied to this lineage."""
        return self.edit_history[-1] if self.edit_history else None


@dataclass(frozen=True)
class ConversationEntry:
    """One append-only ledger record."""

    type: EntryType
    content: str
    timestamp: datetime
