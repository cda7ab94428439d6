"""Orchestration of generation, variation, edit and enhancement actions."""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Protocol
from uuid import UUID, uuid4

from memory_composer.domain.errors import (
    CompositionError,
    EnhancementFailedError,
    ServiceCallError,
    UnknownScenarioError,
)
from memory_composer.domain.generation import (
    EntryType,
    GeneratedImage,
    GenerationRequest,
    ImageBlock,
    Orientation,
    RequestKind,
    ServiceResponse,
    TextBlock,
)
from memory_composer.domain.photos import Photo, PhotoRole, StyleSettings
from memory_composer.domain.scenarios import Scenario, find_by_title, get_scenario
from memory_composer.services.classifier import PhotoClassifier
from memory_composer.services.composition import build_generation_request
from memory_composer.services.costs import (
    COST_PER_OPERATION,
    CostEstimate,
    calculate_cost,
)
from memory_composer.services.edits import EditOrchestrator
from memory_composer.services.resolver import (
    ResolutionContext,
    find_image_block,
    resolve,
)
from memory_composer.services.samples import load_sample_set
from memory_composer.services.session import CompositionSession

_logger = logging.getLogger(__name__)

DEFAULT_ENHANCEMENT_PROMPT = (
    "Restore and enhance this historical photograph. Improve sharpness and clarity "
    "while keeping the person exactly the same."
)
EXTERNAL_IMAGE_TITLE = "Edited Image"


class ImageClient(Protocol):
    """Interface for the external image generation service."""

    min_request_interval: float

    async def generate(self, request: GenerationRequest) -> ServiceResponse:
        """Send a request and return the normalized reply."""

    def cost_of(self, kind: RequestKind) -> float:
        """Return the price of one call of the given kind."""


@dataclass(frozen=True)
class BatchItem:
    """One scenario of a batch run, optionally limited to some photos."""

    scenario_id: str
    photo_ids: list[UUID] | None = None


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one batch item."""

    scenario_id: str
    success: bool
    image: GeneratedImage | None = None
    error_code: str | None = None
    error: str | None = None


@dataclass
class CompositionService:
    """Application service driving one composition session."""

    client: ImageClient
    demo_client: ImageClient
    session: CompositionSession
    classifier: PhotoClassifier = field(default_factory=PhotoClassifier)
    edit_orchestrator: EditOrchestrator = field(default_factory=EditOrchestrator)
    temperature: float = 0.7
    enhance_temperature: float = 0.3
    max_output_tokens: int = 1290
    cost_per_operation: float = COST_PER_OPERATION
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    rng: random.Random | None = None

    @property
    def active_client(self) -> ImageClient:
        """Return the client for the current mode."""
        return self.demo_client if self.session.demo_mode else self.client

    # Photo set

    def upload_photo(self, name: str, content: bytes, media_type: str) -> Photo:
        """Classify an upload and add it to the session."""
        role = self.classifier.classify(content)
        photo = Photo(
            id=uuid4(),
            name=name,
            content=content,
            media_type=media_type,
            role=role,
        )
        self.session.add_photo(photo)
        return photo

    def replace_photo(
        self, photo_id: UUID, name: str, content: bytes, media_type: str
    ) -> Photo:
        """Swap a photo's content and re-run classification."""
        existing = self.session.get_photo(photo_id)
        role = self.classifier.classify(content)
        updated = replace(
            existing,
            name=name,
            content=content,
            media_type=media_type,
            role=role,
            auto_detected=True,
            enhanced=False,
        )
        self.session.update_photo(updated)
        return updated

    def cycle_photo_role(self, photo_id: UUID) -> Photo:
        """Manually advance a photo's role."""
        return self.session.cycle_role(photo_id)

    def remove_photo(self, photo_id: UUID) -> None:
        """Remove a photo from the session."""
        self.session.remove_photo(photo_id)

    # Generation

    async def generate(
        self,
        scenario_id: str,
        orientation: Orientation = Orientation.LANDSCAPE,
        style: StyleSettings | None = None,
    ) -> GeneratedImage | None:
        """Generate a composite scene from the current photo set."""
        scenario = _require_scenario(scenario_id)
        request, counts = self._generation_request(
            scenario, orientation, style or StyleSettings(), RequestKind.GENERATION
        )
        outcome = await self._dispatch("generate", request)
        if outcome is None:
            return None
        response, elapsed = outcome
        image = self._resolve_generation(response, request, scenario, counts, elapsed)
        self.session.add_image(image)
        self._record_generation(scenario, counts)
        return image

    async def generate_variation(
        self,
        image_id: UUID,
        orientation: Orientation = Orientation.LANDSCAPE,
        style: StyleSettings | None = None,
    ) -> GeneratedImage | None:
        """Re-run the generation behind an existing image."""
        original = self.session.get_image(image_id)
        scenario = find_by_title(original.scenario_title)
        if scenario is None:
            raise UnknownScenarioError(
                f"No scenario titled {original.scenario_title!r}"
            )
        request, counts = self._generation_request(
            scenario, orientation, style or StyleSettings(), RequestKind.VARIATION
        )
        outcome = await self._dispatch("variation", request)
        if outcome is None:
            return None
        response, elapsed = outcome
        image = self._resolve_generation(response, request, scenario, counts, elapsed)
        image = replace(
            image,
            description=f"{image.ai_description or original.description} (Variation)",
        )
        self.session.add_image(image)
        self.session.ledger.record(
            EntryType.VARIATION, f"Generated variation of {scenario.title} scene"
        )
        return image

    async def batch_generate(
        self,
        items: list[BatchItem],
        orientation: Orientation = Orientation.LANDSCAPE,
        style: StyleSettings | None = None,
    ) -> list[BatchResult]:
        """Run several scenarios one after another, isolating failures."""
        results: list[BatchResult] = []
        for index, item in enumerate(items):
            if index:
                await self._pause(self.active_client.min_request_interval)
            try:
                scenario = _require_scenario(item.scenario_id)
                request, counts = self._generation_request(
                    scenario,
                    orientation,
                    style or StyleSettings(),
                    RequestKind.GENERATION,
                    photo_ids=item.photo_ids,
                )
                response, elapsed = await self._call(request)
                image = self._resolve_generation(
                    response, request, scenario, counts, elapsed
                )
            except CompositionError as exc:
                _logger.warning(
                    "Batch scenario %s failed: %s %s",
                    item.scenario_id,
                    exc.code,
                    exc.message,
                )
                results.append(
                    BatchResult(
                        scenario_id=item.scenario_id,
                        success=False,
                        error_code=exc.code,
                        error=exc.message,
                    )
                )
                continue
            self.session.add_image(image)
            self._record_generation(scenario, counts)
            results.append(
                BatchResult(scenario_id=item.scenario_id, success=True, image=image)
            )
        return results

    # Edits

    async def edit(
        self,
        image_id: UUID,
        edit_text: str,
        orientation: Orientation = Orientation.LANDSCAPE,
    ) -> GeneratedImage | None:
        """Apply a natural-language edit to a generated image."""
        prior = self.session.get_image(image_id)
        request = self.edit_orchestrator.build_edit_request(
            prior.payload,
            edit_text,
            self.session.ledger,
            orientation,
            expected_people_count=prior.expected_people_count,
        )
        outcome = await self._dispatch("edit", request)
        if outcome is None:
            return None
        response, elapsed = outcome
        image = resolve(
            response,
            ResolutionContext(
                scenario_id=_scenario_id_for(prior.scenario_title),
                scenario_title=prior.scenario_title,
                historical_count=prior.historical_photos_used,
                current_count=prior.current_photos_used,
                default_description="AI-edited family reunion image",
                processing_time=_format_elapsed(elapsed),
                cost=self.active_client.cost_of(RequestKind.EDIT),
                expected_people_count=prior.expected_people_count,
                edit_history=[*prior.edit_history, edit_text],
                supersedes=prior.id,
                caption=edit_text,
            ),
        )
        self.session.add_image(image)
        self.session.ledger.record(EntryType.EDIT, edit_text)
        return image

    async def edit_external(
        self,
        base_image: str,
        edit_text: str,
        orientation: Orientation = Orientation.LANDSCAPE,
    ) -> GeneratedImage | None:
        """Apply an edit to a base64 image that did not come from this session."""
        request = self.edit_orchestrator.build_edit_request(
            base_image, edit_text, self.session.ledger, orientation
        )
        outcome = await self._dispatch("edit", request)
        if outcome is None:
            return None
        response, elapsed = outcome
        image = resolve(
            response,
            ResolutionContext(
                scenario_id=None,
                scenario_title=EXTERNAL_IMAGE_TITLE,
                historical_count=0,
                current_count=0,
                default_description="AI-edited image",
                processing_time=_format_elapsed(elapsed),
                cost=self.active_client.cost_of(RequestKind.EDIT),
                edit_history=[edit_text],
                caption=edit_text,
            ),
        )
        self.session.add_image(image)
        self.session.ledger.record(EntryType.EDIT, edit_text)
        return image

    # Enhancement

    async def enhance_photo(
        self, photo_id: UUID, custom_prompt: str | None = None
    ) -> Photo | None:
        """Restore a photo through the image service and store the result."""
        photo = self.session.get_photo(photo_id)
        request = GenerationRequest(
            kind=RequestKind.ENHANCEMENT,
            blocks=[
                ImageBlock(data=photo.content, media_type=photo.media_type),
                TextBlock(custom_prompt or DEFAULT_ENHANCEMENT_PROMPT),
            ],
            orientation=Orientation.SQUARE,
            temperature=self.enhance_temperature,
            max_output_tokens=self.max_output_tokens,
        )
        outcome = await self._dispatch(f"enhance:{photo_id}", request)
        if outcome is None:
            return None
        response, _ = outcome
        block = find_image_block(response)
        if block is None:
            raise EnhancementFailedError("Enhancement failed - no image returned")
        enhanced = replace(
            self.session.get_photo(photo_id),
            content=block.data,
            media_type=block.media_type,
            enhanced=True,
        )
        self.session.update_photo(enhanced)
        return enhanced

    # Demo mode

    def activate_demo(self) -> list[Photo]:
        """Switch to the simulated client and load a sample photo set."""
        self.session.reset()
        self.session.demo_mode = True
        photos = load_sample_set(self.rng)
        for photo in photos:
            self.session.add_photo(photo)
        self.session.ledger.record(
            EntryType.SYSTEM,
            "Demo mode activated - sample photos loaded for a simulated session",
        )
        return photos

    def exit_demo(self) -> None:
        """Leave demo mode and clear the session."""
        self.session.reset()
        self.session.demo_mode = False

    def cost(self, operations: int) -> CostEstimate:
        """Return the live price of a number of operations in any mode."""
        return calculate_cost(operations, self.cost_per_operation)

    # Internals

    def _generation_request(
        self,
        scenario: Scenario,
        orientation: Orientation,
        style: StyleSettings,
        kind: RequestKind,
        *,
        photo_ids: list[UUID] | None = None,
    ) -> tuple[GenerationRequest, tuple[int, int]]:
        photos = (
            self.session.photos()
            if photo_ids is None
            else [self.session.get_photo(photo_id) for photo_id in photo_ids]
        )
        historical = [p for p in photos if p.role == PhotoRole.HISTORICAL]
        current = [p for p in photos if p.role == PhotoRole.CURRENT]
        background = [p for p in photos if p.role == PhotoRole.BACKGROUND]
        request = build_generation_request(
            historical,
            current,
            background,
            scenario,
            orientation,
            style,
            kind=kind,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        return request, (len(historical), len(current))

    def _resolve_generation(
        self,
        response: ServiceResponse,
        request: GenerationRequest,
        scenario: Scenario,
        counts: tuple[int, int],
        elapsed: float,
    ) -> GeneratedImage:
        historical_count, current_count = counts
        return resolve(
            response,
            ResolutionContext(
                scenario_id=scenario.id,
                scenario_title=scenario.title,
                historical_count=historical_count,
                current_count=current_count,
                default_description=(
                    f"AI-generated {scenario.emotional_tone} family reunion scene"
                ),
                processing_time=_format_elapsed(elapsed),
                cost=self.active_client.cost_of(request.kind),
                expected_people_count=request.expected_people_count,
            ),
        )

    def _record_generation(self, scenario: Scenario, counts: tuple[int, int]) -> None:
        historical_count, current_count = counts
        self.session.ledger.record(
            EntryType.GENERATION,
            (
                f"Generated {scenario.title} scene using {historical_count} "
                f"historical and {current_count} current photos"
            ),
        )

    async def _dispatch(
        self, slot: str, request: GenerationRequest
    ) -> tuple[ServiceResponse, float] | None:
        """Call the service under a fresh token, dropping superseded results."""
        token = self.session.begin(slot)
        try:
            outcome = await self._call(request)
        except CompositionError:
            if not self.session.finish(slot, token):
                _logger.info("Ignoring failure of superseded %s call", slot)
                return None
            raise
        if not self.session.finish(slot, token):
            _logger.info("Discarding superseded %s result", slot)
            return None
        return outcome

    async def _call(self, request: GenerationRequest) -> tuple[ServiceResponse, float]:
        started = time.perf_counter()
        try:
            response = await self.active_client.generate(request)
        except CompositionError:
            raise
        except Exception as exc:
            _logger.exception("Image service call failed: kind=%s", request.kind)
            raise ServiceCallError(str(exc) or type(exc).__name__) from exc
        return response, time.perf_counter() - started

    async def _pause(self, seconds: float) -> None:
        if seconds > 0:
            await self.sleep(seconds)


def _require_scenario(scenario_id: str) -> Scenario:
    scenario = get_scenario(scenario_id)
    if scenario is None:
        raise UnknownScenarioError(f"Unknown scenario {scenario_id!r}")
    return scenario


def _scenario_id_for(title: str) -> str | None:
    scenario = find_by_title(title)
    return scenario.id if scenario else None


def _format_elapsed(seconds: float) -> str:
    return f"{seconds:.1f} seconds"
