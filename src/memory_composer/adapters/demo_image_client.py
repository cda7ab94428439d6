"""Simulated image client used when no backend credential is configured."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from memory_composer.domain.generation import (
    ContentBlock,
    GenerationRequest,
    ImageBlock,
    RequestKind,
    ServiceResponse,
    TextBlock,
)
from memory_composer.services.costs import DEMO_GENERATION_COST
from memory_composer.services.placeholders import (
    SVG_MEDIA_TYPE,
    render_banner,
    render_demo_scene,
)
from memory_composer.services.studio import ImageClient

_logger = logging.getLogger(__name__)


@dataclass
class DemoImageClient(ImageClient):
    """Deterministic stand-in for the image service with a fixed latency."""

    delay_seconds: float = 2.0
    edit_delay_seconds: float = 1.5
    min_request_interval: float = 0.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def generate(self, request: GenerationRequest) -> ServiceResponse:
        """Wait the simulated latency and return a canned reply."""
        is_edit = request.kind == RequestKind.EDIT
        await self.sleep(self.edit_delay_seconds if is_edit else self.delay_seconds)
        _logger.info("Simulated %s reply", request.kind.value)
        return ServiceResponse(blocks=_demo_blocks(request), simulated=True)

    def cost_of(self, kind: RequestKind) -> float:
        """Generations carry a demo estimate; edits and enhancements are free."""
        if kind in {RequestKind.GENERATION, RequestKind.VARIATION}:
            return DEMO_GENERATION_COST
        return 0.0


def _demo_blocks(request: GenerationRequest) -> list[ContentBlock]:
    if request.kind == RequestKind.EDIT:
        return [
            ImageBlock(
                data=render_banner("Demo Edit", request.instruction),
                media_type=SVG_MEDIA_TYPE,
            )
        ]
    if request.kind == RequestKind.ENHANCEMENT:
        return [
            ImageBlock(
                data=render_banner(
                    "Enhanced",
                    "Demo Mode - Add API key for real enhancement",
                    width=400,
                    height=300,
                ),
                media_type=SVG_MEDIA_TYPE,
            )
        ]

    scenario = request.scenario
    scenario_id = scenario.id if scenario else None
    title = scenario.title if scenario else "Family Memory"
    tone = scenario.emotional_tone if scenario else "warm"
    return [
        ImageBlock(
            data=render_demo_scene(scenario_id, title), media_type=SVG_MEDIA_TYPE
        ),
        TextBlock(
            f"A beautiful {tone} family scene where loved ones from the historical "
            "photos are naturally integrated with the current family, keeping every "
            "face consistent."
        ),
    ]
