"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from memory_composer.adapters.demo_image_client import DemoImageClient
from memory_composer.adapters.openai_image_client import OpenAIImageClient
from memory_composer.config import Settings
from memory_composer.services.classifier import PhotoClassifier
from memory_composer.services.edits import EditOrchestrator
from memory_composer.services.session import CompositionSession
from memory_composer.services.studio import CompositionService, ImageClient

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    composition_service: CompositionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    demo_client = DemoImageClient(
        delay_seconds=resolved_settings.demo_delay_seconds,
        edit_delay_seconds=resolved_settings.demo_edit_delay_seconds,
    )
    openai_client: OpenAIImageClient | None = None
    client: ImageClient = demo_client
    if resolved_settings.live_backend_configured:
        openai_client = OpenAIImageClient.create(
            api_key=str(resolved_settings.openai_api_key),
            model=resolved_settings.openai_model,
            image_quality=resolved_settings.openai_image_quality,
            store=resolved_settings.openai_store,
            timeout_seconds=resolved_settings.request_timeout_seconds,
            cost_per_operation=resolved_settings.cost_per_operation,
            min_request_interval=resolved_settings.batch_delay_seconds,
        )
        client = openai_client
    else:
        _logger.warning("No image service credential configured; using demo mode")

    composition_service = CompositionService(
        client=client,
        demo_client=demo_client,
        session=CompositionSession(demo_mode=resolved_settings.demo_mode),
        classifier=PhotoClassifier(),
        edit_orchestrator=EditOrchestrator(
            temperature=resolved_settings.edit_temperature,
            max_output_tokens=resolved_settings.max_output_tokens,
        ),
        temperature=resolved_settings.temperature,
        enhance_temperature=resolved_settings.enhance_temperature,
        max_output_tokens=resolved_settings.max_output_tokens,
        cost_per_operation=resolved_settings.cost_per_operation,
    )

    async def close_resources() -> None:
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        composition_service=composition_service,
        close_resources=close_resources,
    )
