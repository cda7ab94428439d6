"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from memory_composer.api.models import (
    BatchPayload,
    EditPayload,
    EnhancePayload,
    ExternalEditPayload,
    GenerationPayload,
    PhotoUpload,
    StylePayload,
    VariationPayload,
)
from memory_composer.app_logging import configure_logging
from memory_composer.containers import AppContainer
from memory_composer.domain.errors import (
    CompositionError,
    EnhancementFailedError,
    ImageNotFoundError,
    NoContentInResponseError,
    PhotoNotFoundError,
    ServiceCallError,
    UnsupportedImageError,
)
from memory_composer.domain.generation import (
    ConversationEntry,
    GeneratedImage,
    RequestKind,
)
from memory_composer.domain.photos import Photo, StyleSettings
from memory_composer.domain.scenarios import SCENARIOS
from memory_composer.services.studio import BatchItem, BatchResult

_NOT_FOUND_ERRORS = (PhotoNotFoundError, ImageNotFoundError)
_UPSTREAM_ERRORS = (
    ServiceCallError,
    NoContentInResponseError,
    EnhancementFailedError,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(CompositionError)
    async def composition_error(
        request: Request, exc: CompositionError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        logger.warning(
            "Request %s %s failed: %s %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Simple health check endpoint."""
        state_container: AppContainer = request.app.state.container
        session = state_container.composition_service.session
        return {
            "status": "ok",
            "demo_mode": session.demo_mode,
            "busy": session.is_busy(),
        }

    @app.get("/scenarios")
    async def list_scenarios() -> dict[str, object]:
        """Return the scenario catalog."""
        return {
            "scenarios": [
                {
                    "id": scenario.id,
                    "title": scenario.title,
                    "description": scenario.description,
                    "emotional_tone": scenario.emotional_tone,
                }
                for scenario in SCENARIOS
            ]
        }

    @app.get("/photos")
    async def list_photos(request: Request) -> dict[str, object]:
        """Return the session photos in upload order."""
        state_container: AppContainer = request.app.state.container
        photos = state_container.composition_service.session.photos()
        return {"photos": [_format_photo(photo) for photo in photos]}

    @app.post("/photos", status_code=status.HTTP_201_CREATED)
    async def upload_photo(payload: PhotoUpload, request: Request) -> dict[str, object]:
        """Upload a photo and classify its role."""
        state_container: AppContainer = request.app.state.container
        photo = state_container.composition_service.upload_photo(
            payload.name, _decode_upload(payload.content_base64), payload.media_type
        )
        return _format_photo(photo)

    @app.put("/photos/{photo_id}")
    async def replace_photo(
        photo_id: UUID, payload: PhotoUpload, request: Request
    ) -> dict[str, object]:
        """Replace a photo's content and re-run classification."""
        state_container: AppContainer = request.app.state.container
        photo = state_container.composition_service.replace_photo(
            photo_id,
            payload.name,
            _decode_upload(payload.content_base64),
            payload.media_type,
        )
        return _format_photo(photo)

    @app.post("/photos/{photo_id}/cycle")
    async def cycle_photo_role(photo_id: UUID, request: Request) -> dict[str, object]:
        """Advance a photo to the next role."""
        state_container: AppContainer = request.app.state.container
        photo = state_container.composition_service.cycle_photo_role(photo_id)
        return _format_photo(photo)

    @app.delete("/photos/{photo_id}")
    async def remove_photo(photo_id: UUID, request: Request) -> dict[str, str]:
        """Remove a photo from the session."""
        state_container: AppContainer = request.app.state.container
        state_container.composition_service.remove_photo(photo_id)
        return {"status": "ok"}

    @app.post("/photos/{photo_id}/enhance")
    async def enhance_photo(
        photo_id: UUID, request: Request, payload: EnhancePayload | None = None
    ) -> dict[str, object]:
        """Restore a photo through the image service."""
        state_container: AppContainer = request.app.state.container
        photo = await state_container.composition_service.enhance_photo(
            photo_id, payload.prompt if payload else None
        )
        if photo is None:
            return {"status": "superseded"}
        return {"status": "ok", "photo": _format_photo(photo)}

    @app.post("/generations")
    async def generate(
        payload: GenerationPayload, request: Request
    ) -> dict[str, object]:
        """Generate a composite scene for one scenario."""
        state_container: AppContainer = request.app.state.container
        image = await state_container.composition_service.generate(
            payload.scenario_id, payload.orientation, _to_style(payload.style)
        )
        return _format_outcome(image)

    @app.post("/images/{image_id}/variations")
    async def generate_variation(
        image_id: UUID, request: Request, payload: VariationPayload | None = None
    ) -> dict[str, object]:
        """Regenerate the scene behind an existing image."""
        state_container: AppContainer = request.app.state.container
        options = payload or VariationPayload()
        image = await state_container.composition_service.generate_variation(
            image_id, options.orientation, _to_style(options.style)
        )
        return _format_outcome(image)

    @app.post("/images/{image_id}/edits")
    async def edit_image(
        image_id: UUID, payload: EditPayload, request: Request
    ) -> dict[str, object]:
        """Apply a natural-language edit to a generated image."""
        state_container: AppContainer = request.app.state.container
        image = await state_container.composition_service.edit(
            image_id, payload.edit_text, payload.orientation
        )
        return _format_outcome(image)

    @app.post("/edits")
    async def edit_external_image(
        payload: ExternalEditPayload, request: Request
    ) -> dict[str, object]:
        """Apply a natural-language edit to a supplied image."""
        state_container: AppContainer = request.app.state.container
        image = await state_container.composition_service.edit_external(
            payload.image_base64, payload.edit_text, payload.orientation
        )
        return _format_outcome(image)

    @app.post("/batches")
    async def batch_generate(
        payload: BatchPayload, request: Request
    ) -> dict[str, object]:
        """Generate several scenarios sequentially."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.composition_service.batch_generate(
            [
                BatchItem(scenario_id=item.scenario_id, photo_ids=item.photo_ids)
                for item in payload.items
            ],
            payload.orientation,
            _to_style(payload.style),
        )
        return {
            "results": [_format_batch_result(result) for result in results],
            "succeeded": sum(1 for result in results if result.success),
        }

    @app.get("/images")
    async def current_images(request: Request) -> dict[str, object]:
        """Return the newest version of every image lineage."""
        state_container: AppContainer = request.app.state.container
        images = state_container.composition_service.session.current_images()
        return {"images": [_format_image(image) for image in images]}

    @app.get("/history")
    async def history(request: Request, limit: int = 20) -> dict[str, object]:
        """Return generated images and recent ledger entries."""
        state_container: AppContainer = request.app.state.container
        session = state_container.composition_service.session
        return {
            "images": [_format_image(image) for image in session.history()],
            "entries": [
                _format_entry(entry) for entry in session.ledger.recent(limit)
            ],
        }

    @app.get("/cost")
    async def cost(request: Request, operations: int = 1) -> dict[str, object]:
        """Return the cost estimate for a number of service calls."""
        state_container: AppContainer = request.app.state.container
        service = state_container.composition_service
        estimate = service.cost(max(operations, 0))
        return {
            "count": estimate.count,
            "per_operation": estimate.per_operation,
            "total": estimate.total,
            "currency": estimate.currency,
            "active_per_generation": service.active_client.cost_of(
                RequestKind.GENERATION
            ),
        }

    @app.post("/demo")
    async def activate_demo(request: Request) -> dict[str, object]:
        """Switch to demo mode with a sample photo set."""
        state_container: AppContainer = request.app.state.container
        photos = state_container.composition_service.activate_demo()
        logger.info("Demo mode activated with %s sample photos", len(photos))
        return {
            "status": "ok",
            "demo_mode": True,
            "photos": [_format_photo(photo) for photo in photos],
        }

    @app.delete("/demo")
    async def exit_demo(request: Request) -> dict[str, object]:
        """Leave demo mode and clear the session."""
        state_container: AppContainer = request.app.state.container
        state_container.composition_service.exit_demo()
        return {"status": "ok", "demo_mode": False}

    return app


def _status_for(exc: CompositionError) -> int:
    if isinstance(exc, _NOT_FOUND_ERRORS):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, _UPSTREAM_ERRORS):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_422_UNPROCESSABLE_ENTITY


def _decode_upload(content_base64: str) -> bytes:
    """Decode uploaded base64 content, rejecting anything malformed."""
    try:
        return base64.b64decode(content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UnsupportedImageError("Uploaded content is not valid base64") from exc


def _to_style(payload: StylePayload | None) -> StyleSettings | None:
    if payload is None:
        return None
    return StyleSettings(**payload.model_dump())


def _format_photo(photo: Photo) -> dict[str, object]:
    return {
        "id": str(photo.id),
        "name": photo.name,
        "media_type": photo.media_type,
        "role": photo.role.value,
        "auto_detected": photo.auto_detected,
        "enhanced": photo.enhanced,
        "size_bytes": len(photo.content),
    }


def _format_image(image: GeneratedImage) -> dict[str, object]:
    return {
        "id": str(image.id),
        "scenario": image.scenario_title,
        "description": image.description,
        "ai_description": image.ai_description,
        "image_url": image.payload.data_url,
        "media_type": image.payload.media_type,
        "synthesized": image.payload.synthesized,
        "created_at": image.created_at.isoformat(),
        "historical_photos_used": image.historical_photos_used,
        "current_photos_used": image.current_photos_used,
        "expected_people_count": image.expected_people_count,
        "quality": image.quality,
        "processing_time": image.processing_time,
        "features": list(image.features),
        "cost": image.cost,
        "edit_history": list(image.edit_history),
        "last_edit": image.last_edit,
        "supersedes": str(image.supersedes) if image.supersedes else None,
    }


def _format_outcome(image: GeneratedImage | None) -> dict[str, object]:
    """Wrap an action result; superseded calls carry no image."""
    if image is None:
        return {"status": "superseded"}
    return {"status": "ok", "image": _format_image(image)}


def _format_batch_result(result: BatchResult) -> dict[str, object]:
    return {
        "scenario_id": result.scenario_id,
        "success": result.success,
        "image": _format_image(result.image) if result.image else None,
        "error_code": result.error_code,
        "error": result.error,
    }


def _format_entry(entry: ConversationEntry) -> dict[str, str]:
    return {
        "type": entry.type.value,
        "content": entry.content,
        "timestamp": entry.timestamp.isoformat(),
    }
