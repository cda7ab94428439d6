"""Domain models for uploaded photos."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class PhotoRole(StrEnum):
    """Semantic role of an uploaded photo in the composite scene."""

    CURRENT = "current"
    HISTORICAL = "historical"
    BACKGROUND = "background"

    def next(self) -> "PhotoRole":
        """Return the role that follows this one in the manual override cycle."""
        return _ROLE_CYCLE[self]


_ROLE_CYCLE = {
    PhotoRole.CURRENT: PhotoRole.HISTORICAL,
    PhotoRole.HISTORICAL: PhotoRole.BACKGROUND,
    PhotoRole.BACKGROUND: PhotoRole.CURRENT,
}


@dataclass(frozen=True)
class Photo:
    """An uploaded image owned by a single session."""

    id: UUID
    name: str
    content: bytes
    media_type: str
    role: PhotoRole
    auto_detected: bool = True
    enhanced: bool = False


@dataclass(frozen=True)
class StyleSettings:
    """Advanced style controls applied to a generation."""

    cultural_style: str = "western"
    time_period: str = "modern"
    clothing_style: str = "formal"
    location_style: str = "indoor"
