"""Tests for composite-scene request construction."""

from uuid import uuid4

import pytest

from memory_composer.domain.errors import PreconditionFailedError
from memory_composer.domain.generation import ImageBlock, Orientation, RequestKind
from memory_composer.domain.photos import Photo, PhotoRole, StyleSettings
from memory_composer.domain.scenarios import (
    HISTORICAL_PLACEHOLDER,
    SCENARIOS,
    get_scenario,
)
from memory_composer.services.composition import build_generation_request


def _photo(name: str, role: PhotoRole) -> Photo:
    return Photo(
        id=uuid4(),
        name=name,
        content=name.encode(),
        media_type="image/jpeg",
        role=role,
    )


def _build(historical, current, background=(), orientation=Orientation.LANDSCAPE):
    return build_generation_request(
        list(historical),
        list(current),
        list(background),
        get_scenario("wedding"),
        orientation,
        StyleSettings(),
    )


def test_attachments_follow_role_order() -> None:
    current = [_photo("c1", PhotoRole.CURRENT), _photo("c2", PhotoRole.CURRENT)]
    historical = [_photo("h1", PhotoRole.HISTORICAL)]
    background = [_photo("b1", PhotoRole.BACKGROUND)]

    request = _build(historical, current, background)

    assert [block.data for block in request.images] == [b"c1", b"c2", b"h1", b"b1"]
    assert not isinstance(request.blocks[-1], ImageBlock)
    assert request.kind == RequestKind.GENERATION


def test_instruction_states_exact_head_count() -> None:
    current = [_photo("c1", PhotoRole.CURRENT)]
    historical = [
        _photo("h1", PhotoRole.HISTORICAL),
        _photo("h2", PhotoRole.HISTORICAL),
    ]

    request = _build(historical, current)

    assert "exactly 3 people" in request.instruction
    assert "(2 from the historical photos and 1 from the current photos)" in (
        request.instruction
    )
    assert request.expected_people_count == 3


def test_background_photos_do_not_add_people() -> None:
    current = [_photo("c1", PhotoRole.CURRENT)]
    historical = [_photo("h1", PhotoRole.HISTORICAL)]
    background = [
        _photo("b1", PhotoRole.BACKGROUND),
        _photo("b2", PhotoRole.BACKGROUND),
    ]

    request = _build(historical, current, background)

    assert "exactly 2 people" in request.instruction
    assert "Relocate all people" in request.instruction


def test_no_relocation_text_without_background() -> None:
    request = _build(
        [_photo("h1", PhotoRole.HISTORICAL)], [_photo("c1", PhotoRole.CURRENT)]
    )

    assert "Relocate" not in request.instruction


def test_missing_current_photo_is_reported_first() -> None:
    with pytest.raises(PreconditionFailedError) as excinfo:
        _build([], [])

    assert excinfo.value.missing_role == PhotoRole.CURRENT
    assert excinfo.value.code == "PRECONDITION_FAILED"


def test_missing_historical_photo() -> None:
    with pytest.raises(PreconditionFailedError) as excinfo:
        _build([], [_photo("c1", PhotoRole.CURRENT)])

    assert excinfo.value.missing_role == PhotoRole.HISTORICAL


def test_wedding_text_mentions_no_other_scenario() -> None:
    request = _build(
        [_photo("h1", PhotoRole.HISTORICAL)], [_photo("c1", PhotoRole.CURRENT)]
    )
    text = request.instruction

    assert HISTORICAL_PLACEHOLDER not in text
    assert "landscape" in text
    assert "16:9" in text
    for scenario in SCENARIOS:
        if scenario.id != "wedding":
            assert scenario.title not in text
            assert scenario.title.lower() not in text


def test_style_and_orientation_lines() -> None:
    request = build_generation_request(
        [_photo("h1", PhotoRole.HISTORICAL)],
        [_photo("c1", PhotoRole.CURRENT)],
        [],
        get_scenario("vacation"),
        Orientation.PORTRAIT,
        StyleSettings(cultural_style="japanese", location_style="outdoor"),
    )

    assert "Cultural style: japanese." in request.instruction
    assert "Location style: outdoor." in request.instruction
    assert "9:16" in request.instruction
    assert request.orientation == Orientation.PORTRAIT
    assert request.temperature == pytest.approx(0.7)
    assert request.max_output_tokens == 1290


def test_filled_templates_agree_with_singular_verbs() -> None:
    current = [_photo("c1", PhotoRole.CURRENT)]
    historical = [_photo("h1", PhotoRole.HISTORICAL)]

    wedding = _build(historical, current).instruction
    birthday = build_generation_request(
        historical,
        current,
        [],
        get_scenario("birthday"),
        Orientation.SQUARE,
        StyleSettings(),
    ).instruction

    assert "where everyone from the historical photos is present" in wedding
    assert "everyone from the historical photos joins" in birthday
    assert "the people from the historical photos is" not in wedding
