"""Heuristic photo role classification from pixel statistics."""

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from memory_composer.domain.errors import UnsupportedImageError
from memory_composer.domain.photos import PhotoRole

_logger = logging.getLogger(__name__)

ANALYSIS_MAX_SIZE = 100
SEPIA_RATIO_THRESHOLD = 0.3
DARK_BRIGHTNESS_THRESHOLD = 100
FLAT_VARIANCE_THRESHOLD = 20


@dataclass(frozen=True)
class ImageStatistics:
    """Aggregate pixel statistics over the downsampled raster."""

    average_brightness: float
    average_channel_variance: float
    sepia_ratio: float


@dataclass
class PhotoClassifier:
    """Assigns an uploaded photo its default role."""

    analysis_size: int = ANALYSIS_MAX_SIZE

    def classify(self, image_bytes: bytes) -> PhotoRole:
        """Return the heuristic role for the image."""
        stats = self.analyze(image_bytes)
        role = decide_role(stats)
        _logger.info(
            "Classified photo: role=%s brightness=%.1f variance=%.1f sepia=%.2f",
            role.value,
            stats.average_brightness,
            stats.average_channel_variance,
            stats.sepia_ratio,
        )
        return role

    def analyze(self, image_bytes: bytes) -> ImageStatistics:
        """Decode, downsample and measure the image."""
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image.load()
                raster = _downsample(image.convert("RGB"), self.analysis_size)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as exc:
            raise UnsupportedImageError(f"Could not decode image: {exc}") from exc
        return measure(np.asarray(raster, dtype=np.int16))


def decide_role(stats: ImageStatistics) -> PhotoRole:
    """Apply the ordered decision policy to image statistics."""
    if (
        stats.sepia_ratio > SEPIA_RATIO_THRESHOLD
        or stats.average_brightness < DARK_BRIGHTNESS_THRESHOLD
    ):
        return PhotoRole.HISTORICAL
    if stats.average_channel_variance < FLAT_VARIANCE_THRESHOLD:
        return PhotoRole.BACKGROUND
    return PhotoRole.CURRENT


def measure(pixels: np.ndarray) -> ImageStatistics:
    """Compute brightness, channel variance and sepia ratio of an RGB array."""
    rgb = np.asarray(pixels, dtype=np.int16).reshape(-1, 3)
    if rgb.shape[0] == 0:
        raise UnsupportedImageError("Image has no pixels")

    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    sepia = (r > g) & (g > b) & (r - b > 30) & (g - b > 10)  # noqa: PLR2004
    variance = np.abs(r - g) + np.abs(g - b) + np.abs(r - b)
    return ImageStatistics(
        average_brightness=float(rgb.mean()),
        average_channel_variance=float(variance.mean()),
        sepia_ratio=float(sepia.mean()),
    )


def _downsample(image: Image.Image, max_size: int) -> Image.Image:
    """Scale the image so its longer side equals ``max_size``."""
    ratio = min(max_size / image.width, max_size / image.height)
    width = max(1, int(image.width * ratio))
    height = max(1, int(image.height * ratio))
    return image.resize((width, height))
