"""OpenAI Responses API client for image generation and editing."""

import base64
import binascii
import logging
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from memory_composer.domain.generation import (
    ContentBlock,
    GenerationRequest,
    ImageBlock,
    ImagePayload,
    Orientation,
    RequestKind,
    ServiceResponse,
    TextBlock,
)
from memory_composer.services.studio import ImageClient

_logger = logging.getLogger(__name__)

IMAGE_SIZES = {
    Orientation.LANDSCAPE: "1536x1024",
    Orientation.PORTRAIT: "1024x1536",
    Orientation.SQUARE: "1024x1024",
}


@dataclass
class OpenAIImageClient(ImageClient):
    """Image client backed by the Responses API image generation tool."""

    client: AsyncOpenAI
    model: str
    image_quality: str = "auto"
    store: bool = False
    cost_per_operation: float = 0.0387
    min_request_interval: float = 1.0

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        model: str,
        *,
        image_quality: str = "auto",
        store: bool = False,
        timeout_seconds: float = 120.0,
        cost_per_operation: float = 0.0387,
        min_request_interval: float = 1.0,
    ) -> "OpenAIImageClient":
        """Create a client with a managed httpx session."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                http_client=httpx.AsyncClient(timeout=timeout_seconds),
            ),
            model=model,
            image_quality=image_quality,
            store=store,
            cost_per_operation=cost_per_operation,
            min_request_interval=min_request_interval,
        )

    async def generate(self, request: GenerationRequest) -> ServiceResponse:
        """Send the ordered content blocks and normalize the reply."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [_to_input_part(block) for block in request.blocks],
                }
            ],
            "tools": [
                {
                    "type": "image_generation",
                    "size": IMAGE_SIZES[request.orientation],
                    "quality": self.image_quality,
                }
            ],
            "max_output_tokens": request.max_output_tokens,
            "temperature": request.temperature,
            "store": self.store,
        }
        _logger.info(
            "Calling image service: kind=%s images=%s model=%s",
            request.kind.value,
            len(request.images),
            self.model,
        )
        response = await self.client.responses.create(**request_payload)
        return ServiceResponse(blocks=_to_blocks(getattr(response, "output", None)))

    def cost_of(self, kind: RequestKind) -> float:
        """Return the fixed per-call price."""
        return self.cost_per_operation

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _to_input_part(block: ContentBlock) -> dict[str, str]:
    if isinstance(block, ImageBlock):
        payload = ImagePayload(data=block.data, media_type=block.media_type)
        return {"type": "input_image", "image_url": payload.data_url}
    return {"type": "input_text", "text": block.text}


def _to_blocks(output: object) -> list[ContentBlock]:
    """Flatten Responses API output items into content blocks."""
    blocks: list[ContentBlock] = []
    for item in output or []:
        item_type = _field(item, "type")
        if item_type == "image_generation_call":
            image = _decode_image(item)
            if image is not None:
                blocks.append(image)
        elif item_type == "message":
            for part in _field(item, "content") or []:
                if _field(part, "type") == "output_text":
                    blocks.append(TextBlock(str(_field(part, "text") or "")))
    return blocks


def _decode_image(item: object) -> ImageBlock | None:
    result = _field(item, "result")
    if not isinstance(result, str) or not result:
        return None
    try:
        data = base64.b64decode(result, validate=True)
    except binascii.Error:
        _logger.warning("Image service returned undecodable image data")
        return None
    output_format = _field(item, "output_format") or "png"
    return ImageBlock(data=data, media_type=f"image/{output_format}")


def _field(obj: object, name: str) -> object:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)
