"""Canned sample photo sets loaded when demo mode is activated."""

import io
import random
from dataclasses import dataclass
from uuid import uuid4

from PIL import Image, ImageDraw

from memory_composer.domain.photos import Photo, PhotoRole

Color = tuple[int, int, int]

_SEPIA_BACKDROP: Color = (150, 120, 85)
_SEPIA_SKIN: Color = (205, 170, 130)
_SEPIA_CLOTHES: Color = (95, 70, 45)


@dataclass(frozen=True)
class SamplePhoto:
    """Recipe for one rendered sample photo."""

    name: str
    role: PhotoRole
    backdrop: Color
    skin: Color | None = None
    clothes: Color | None = None

    def render(self) -> bytes:
        """Render the sample as PNG bytes."""
        image = Image.new("RGB", (256, 256), self.backdrop)
        draw = ImageDraw.Draw(image)
        if self.skin is None or self.clothes is None:
            draw.rectangle((0, 170, 256, 256), fill=_shade(self.backdrop, -12))
        else:
            draw.rectangle((68, 150, 188, 256), fill=self.clothes)
            draw.ellipse((88, 50, 168, 150), fill=self.skin)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def to_photo(self) -> Photo:
        """Render the sample into a session photo."""
        return Photo(
            id=uuid4(),
            name=self.name,
            content=self.render(),
            media_type="image/png",
            role=self.role,
        )


def _historical(name: str) -> SamplePhoto:
    return SamplePhoto(
        name=name,
        role=PhotoRole.HISTORICAL,
        backdrop=_SEPIA_BACKDROP,
        skin=_SEPIA_SKIN,
        clothes=_SEPIA_CLOTHES,
    )


def _current(name: str, backdrop: Color, clothes: Color) -> SamplePhoto:
    return SamplePhoto(
        name=name,
        role=PhotoRole.CURRENT,
        backdrop=backdrop,
        skin=(235, 190, 160),
        clothes=clothes,
    )


def _background(name: str, backdrop: Color) -> SamplePhoto:
    return SamplePhoto(name=name, role=PhotoRole.BACKGROUND, backdrop=backdrop)


SAMPLE_SETS: tuple[tuple[SamplePhoto, ...], ...] = (
    (
        _historical("einstein_1947.png"),
        _current("professional_portrait.png", (70, 160, 230), (200, 40, 60)),
        _historical("marie_curie_1920s.png"),
        _background("paris_background.png", (195, 195, 200)),
    ),
    (
        _historical("grandmother_1962.png"),
        _current("family_today.png", (240, 110, 180), (30, 120, 200)),
    ),
    (
        _historical("grandfather_1955.png"),
        _current("graduate_2024.png", (60, 200, 120), (120, 40, 200)),
        _background("beach_background.png", (205, 205, 210)),
    ),
)


def load_sample_set(rng: random.Random | None = None) -> list[Photo]:
    """Pick one sample set at random and render it."""
    chooser = rng or random.Random()
    sample_set = chooser.choice(SAMPLE_SETS)
    return [sample.to_photo() for sample in sample_set]


def _shade(color: Color, delta: int) -> Color:
    r, g, b = color
    return (
        max(0, min(255, r + delta)),
        max(0, min(255, g + delta)),
        max(0, min(255, b + delta)),
    )
