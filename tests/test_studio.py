"""Tests for the composition service."""

import asyncio
import base64
import random
from dataclasses import dataclass, field

import httpx
import pytest

from memory_composer.domain.errors import (
    CorruptedImageDataError,
    EnhancementFailedError,
    PreconditionFailedError,
    ServiceCallError,
    UnknownScenarioError,
    UnsupportedImageError,
)
from memory_composer.domain.generation import (
    EntryType,
    GenerationRequest,
    Orientation,
    RequestKind,
    ServiceResponse,
    TextBlock,
)
from memory_composer.domain.photos import PhotoRole
from memory_composer.services.studio import BatchItem, CompositionService
from tests.conftest import (
    COLORFUL,
    FLAT,
    PNG_BYTES,
    SEPIA,
    FakeImageClient,
    RecordingSleep,
    image_response,
    make_image,
    make_service,
)


def _seed(service: CompositionService) -> tuple:
    historical = service.upload_photo("grandpa.png", make_image(SEPIA), "image/png")
    current = service.upload_photo("family.png", make_image(COLORFUL), "image/png")
    return historical, current


@dataclass
class GatedImageClient(FakeImageClient):
    """Client whose first call waits until released."""

    gate: asyncio.Event | None = None
    fail_first: bool = False
    calls: int = 0

    async def generate(self, request: GenerationRequest) -> ServiceResponse:
        self.calls += 1
        self.requests.append(request)
        if self.calls == 1:
            await self.gate.wait()
            if self.fail_first:
                raise httpx.ConnectError("connection reset")
        return image_response()


@dataclass
class SequenceRng:
    picks: list[int] = field(default_factory=lambda: [0])

    def choice(self, options):
        return options[self.picks.pop(0)]


def test_upload_classifies_photos(service) -> None:
    historical, current = _seed(service)
    background = service.upload_photo("room.png", make_image(FLAT), "image/png")

    assert historical.role == PhotoRole.HISTORICAL
    assert current.role == PhotoRole.CURRENT
    assert background.role == PhotoRole.BACKGROUND
    assert historical.auto_detected is True


def test_upload_rejects_undecodable_content(service) -> None:
    with pytest.raises(UnsupportedImageError):
        service.upload_photo("broken.png", b"garbage", "image/png")

    assert service.session.photos() == []


def test_replace_photo_reclassifies_and_clears_override(service) -> None:
    _, current = _seed(service)
    service.cycle_photo_role(current.id)

    replaced = service.replace_photo(
        current.id, "new.png", make_image(FLAT), "image/png"
    )

    assert replaced.role == PhotoRole.BACKGROUND
    assert replaced.auto_detected is True
    assert service.session.get_photo(current.id).name == "new.png"


def test_generate_sends_ordered_request_and_records(service, image_client) -> None:
    historical, current = _seed(service)

    image = asyncio.run(service.generate("wedding"))

    request = image_client.requests[0]
    assert [block.data for block in request.images] == [
        current.content,
        historical.content,
    ]
    assert request.kind == RequestKind.GENERATION
    assert image.payload.data == PNG_BYTES
    assert image.quality == "AI-Enhanced"
    assert image.cost == pytest.approx(0.0387)
    assert image.expected_people_count == 2
    assert image.processing_time.endswith(" seconds")
    assert image.scenario_title == "Wedding Celebration"
    entries = service.session.ledger.entries()
    assert entries[-1].type == EntryType.GENERATION
    assert entries[-1].content == (
        "Generated Wedding Celebration scene using 1 historical and 1 current photos"
    )


def test_generate_without_historical_issues_no_call(service, image_client) -> None:
    service.upload_photo("family.png", make_image(COLORFUL), "image/png")

    with pytest.raises(PreconditionFailedError) as excinfo:
        asyncio.run(service.generate("wedding"))

    assert excinfo.value.missing_role == PhotoRole.HISTORICAL
    assert image_client.requests == []
    assert service.session.history() == []


def test_generate_unknown_scenario(service) -> None:
    _seed(service)

    with pytest.raises(UnknownScenarioError):
        asyncio.run(service.generate("moon-landing"))


def test_text_only_reply_yields_placeholder(service, image_client) -> None:
    _seed(service)
    image_client.responses.append(
        ServiceResponse(blocks=[TextBlock("A warm holiday evening")])
    )

    image = asyncio.run(service.generate("holiday", Orientation.SQUARE))

    assert image.quality == "Preview"
    assert image.payload.synthesized is True
    assert image.description == "A warm holiday evening"


def test_transport_failure_becomes_service_error(service, image_client) -> None:
    _seed(service)
    image_client.error = httpx.ConnectError("connection refused")

    with pytest.raises(ServiceCallError) as excinfo:
        asyncio.run(service.generate("wedding"))

    assert excinfo.value.code == "UNKNOWN_ERROR"
    assert "connection refused" in excinfo.value.message
    assert service.session.is_busy() is False


def test_variation_reuses_scenario(service, image_client) -> None:
    _seed(service)
    original = asyncio.run(service.generate("graduation"))

    variation = asyncio.run(service.generate_variation(original.id))

    assert image_client.requests[-1].kind == RequestKind.VARIATION
    assert variation.scenario_title == "Graduation Day"
    assert variation.description.endswith("(Variation)")
    last = service.session.ledger.entries()[-1]
    assert last.type == EntryType.VARIATION
    assert last.content == "Generated variation of Graduation Day scene"


def test_edit_supersedes_prior_image(service, image_client) -> None:
    _seed(service)
    original = asyncio.run(service.generate("wedding"))

    edited = asyncio.run(service.edit(original.id, "fix the lighting"))
    again = asyncio.run(service.edit(edited.id, "make the sky pink"))

    assert edited.supersedes == original.id
    assert again.edit_history == ["fix the lighting", "make the sky pink"]
    assert again.expected_people_count == 2
    assert service.session.current_images() == [again]
    assert len(service.session.history()) == 3
    edit_request = image_client.requests[-1]
    assert len(edit_request.images) == 1
    assert edit_request.images[0].data == edited.payload.data
    assert edit_request.instruction.startswith(
        "Following previous edits (fix the lighting), now: "
    )
    edits = service.session.ledger.recent(5, EntryType.EDIT)
    assert [entry.content for entry in edits] == [
        "fix the lighting",
        "make the sky pink",
    ]


def test_edit_of_placeholder_image(service, image_client) -> None:
    _seed(service)
    image_client.responses.append(ServiceResponse(blocks=[TextBlock("scene")]))
    placeholder = asyncio.run(service.generate("birthday"))

    edited = asyncio.run(service.edit(placeholder.id, "make the sky pink"))

    assert image_client.requests[-1].images[0].media_type == "image/svg+xml"
    assert edited.payload.data == PNG_BYTES


def test_external_edit_rejects_corrupted_data(service, image_client) -> None:
    with pytest.raises(CorruptedImageDataError):
        asyncio.run(service.edit_external("%%%not-base64%%%", "make the sky pink"))

    assert image_client.requests == []


def test_external_edit_accepts_base64(service) -> None:
    encoded = base64.b64encode(make_image(COLORFUL)).decode()

    edited = asyncio.run(service.edit_external(encoded, "make the sky pink"))

    assert edited.scenario_title == "Edited Image"
    assert edited.edit_history == ["make the sky pink"]


def test_enhance_photo_replaces_content(service, image_client) -> None:
    historical, _ = _seed(service)

    enhanced = asyncio.run(service.enhance_photo(historical.id))

    request = image_client.requests[0]
    assert request.kind == RequestKind.ENHANCEMENT
    assert request.temperature == pytest.approx(0.3)
    assert request.images[0].data == historical.content
    assert request.instruction.startswith("Restore and enhance")
    assert enhanced.enhanced is True
    assert service.session.get_photo(historical.id).content == PNG_BYTES


def test_enhance_without_image_fails(service, image_client) -> None:
    historical, _ = _seed(service)
    image_client.responses.append(ServiceResponse(blocks=[TextBlock("Sorry")]))

    with pytest.raises(EnhancementFailedError) as excinfo:
        asyncio.run(service.enhance_photo(historical.id, "sharpen"))

    assert excinfo.value.message == "Enhancement failed - no image returned"
    assert service.session.get_photo(historical.id).enhanced is False


def test_batch_isolates_failures_and_paces_calls(image_client) -> None:
    sleep = RecordingSleep()
    service = make_service(image_client, sleep=sleep)
    _, current = _seed(service)

    results = asyncio.run(
        service.batch_generate(
            [
                BatchItem("wedding"),
                BatchItem("graduation", photo_ids=[current.id]),
                BatchItem("holiday"),
            ]
        )
    )

    assert [result.success for result in results] == [True, False, True]
    assert results[1].error_code == "PRECONDITION_FAILED"
    assert results[1].image is None
    assert len(image_client.requests) == 2
    assert sleep.delays == [1.0, 1.0]
    assert len(service.session.history()) == 2


def test_demo_generation_needs_no_live_client(image_client) -> None:
    sleep = RecordingSleep()
    service = make_service(image_client, sleep=sleep)
    service.rng = random.Random(7)

    photos = service.activate_demo()
    image = asyncio.run(service.generate("birthday"))

    assert photos
    assert image_client.requests == []
    assert image.quality == "High"
    assert image.cost == pytest.approx(0.039)
    assert sleep.delays == [2.0]
    first = service.session.ledger.entries()[0]
    assert first.type == EntryType.SYSTEM


def test_demo_batch_skips_pacing(image_client) -> None:
    sleep = RecordingSleep()
    service = make_service(image_client, sleep=sleep)
    service.rng = SequenceRng([1])
    service.activate_demo()

    results = asyncio.run(
        service.batch_generate([BatchItem("wedding"), BatchItem("vacation")])
    )

    assert all(result.success for result in results)
    assert sleep.delays == [2.0, 2.0]


def test_demo_sample_set_roles(service) -> None:
    service.rng = SequenceRng([0])

    photos = service.activate_demo()

    roles = [photo.role for photo in photos]
    assert roles.count(PhotoRole.HISTORICAL) == 2
    assert roles.count(PhotoRole.CURRENT) == 1
    assert roles.count(PhotoRole.BACKGROUND) == 1


def test_exit_demo_clears_session(service) -> None:
    service.activate_demo()
    old_ledger = service.session.ledger

    service.exit_demo()

    assert service.session.demo_mode is False
    assert service.session.photos() == []
    assert service.session.ledger is not old_ledger
    assert service.active_client is service.client


def test_cost_uses_live_price_in_demo_mode(service) -> None:
    service.activate_demo()

    estimate = service.cost(10)

    assert estimate.total == pytest.approx(0.387)


def test_superseded_generation_result_is_discarded() -> None:
    async def scenario() -> tuple:
        client = GatedImageClient(gate=asyncio.Event())
        service = make_service(client)
        _seed(service)
        first = asyncio.create_task(service.generate("wedding"))
        await asyncio.sleep(0)
        second = await service.generate("holiday")
        client.gate.set()
        return await first, second, service

    first, second, service = asyncio.run(scenario())

    assert first is None
    assert second is not None
    assert service.session.history() == [second]
    assert service.session.is_busy() is False


def test_superseded_failure_is_ignored() -> None:
    async def scenario() -> tuple:
        client = GatedImageClient(gate=asyncio.Event(), fail_first=True)
        service = make_service(client)
        _seed(service)
        first = asyncio.create_task(service.generate("wedding"))
        await asyncio.sleep(0)
        second = await service.generate("wedding")
        client.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is None
    assert second is not None
