"""Shared test fixtures."""

import io
from dataclasses import dataclass, field

import pytest
from PIL import Image

from memory_composer.adapters.demo_image_client import DemoImageClient
from memory_composer.config import Settings
from memory_composer.containers import AppContainer
from memory_composer.domain.generation import (
    GenerationRequest,
    ImageBlock,
    RequestKind,
    ServiceResponse,
    TextBlock,
)
from memory_composer.services.classifier import PhotoClassifier
from memory_composer.services.edits import EditOrchestrator
from memory_composer.services.session import CompositionSession
from memory_composer.services.studio import CompositionService, ImageClient

SEPIA = (200, 150, 100)
DARK = (40, 40, 40)
FLAT = (200, 200, 200)
COLORFUL = (30, 120, 220)
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-generated-image"


def make_image(color: tuple[int, int, int], size: tuple[int, int] = (64, 48)) -> bytes:
    """Render a solid-color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_response(text: str | None = "A warm family scene") -> ServiceResponse:
    blocks: list[ImageBlock | TextBlock] = [
        ImageBlock(data=PNG_BYTES, media_type="image/png")
    ]
    if text:
        blocks.append(TextBlock(text))
    return ServiceResponse(blocks=blocks)


@dataclass
class FakeImageClient(ImageClient):
    """Fake image client that records requests and replays canned replies."""

    responses: list[ServiceResponse] = field(default_factory=list)
    error: Exception | None = None
    requests: list[GenerationRequest] = field(default_factory=list)
    per_call_cost: float = 0.0387
    min_request_interval: float = 1.0

    async def generate(self, request: GenerationRequest) -> ServiceResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return image_response()

    def cost_of(self, kind: RequestKind) -> float:
        return self.per_call_cost


@dataclass
class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that records delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_service(
    client: FakeImageClient | None = None,
    *,
    demo_mode: bool = False,
    sleep: RecordingSleep | None = None,
) -> CompositionService:
    """Build a composition service around fakes."""
    recording_sleep = sleep or RecordingSleep()
    return CompositionService(
        client=client or FakeImageClient(),
        demo_client=DemoImageClient(sleep=recording_sleep),
        session=CompositionSession(demo_mode=demo_mode),
        classifier=PhotoClassifier(),
        edit_orchestrator=EditOrchestrator(),
        sleep=recording_sleep,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key", environment="test")


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def service(image_client: FakeImageClient) -> CompositionService:
    return make_service(image_client)


@pytest.fixture
def container(settings: Settings, service: CompositionService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        composition_service=service,
        close_resources=close_resources,
    )
