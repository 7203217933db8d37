import json

import httpx
import pytest
import respx

from rugfilter.filter_types import FilterContext, FilterSettings
from rugfilter.metadata_checker import (
    MODULE_NAME,
    MetadataChecker,
    NameTracker,
    detect_spam_pattern,
    score_metadata_document,
)

URI = "https://meta.example.com/token.json"


class FakeClock:
    def __init__(self) -> None:
        self.now = 50.0

    def __call__(self) -> float:
        return self.now


def make_ctx(mint="Mint1", name="Pepe Coin", symbol="PEPE", uri=URI):
    return FilterContext(mint=mint, creator="Creator1", name=name, symbol=symbol, uri=uri)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("AAAA", "All same character repeated: 'A'"),
        ("123456", "Numeric-only name"),
        ("Pepe", None),
        ("ab", None),
    ],
)
def test_detect_spam_pattern(text, expected):
    assert detect_spam_pattern(text) == expected


def test_detect_spam_special_characters():
    reason = detect_spam_pattern("$$#@x")
    assert reason is not None
    assert reason.startswith("High special char ratio")


def test_score_invalid_json():
    delta, warnings = score_metadata_document("not json")
    assert delta == 15.0
    assert warnings[0].startswith("URI JSON parse failed")


def test_score_non_string_field_is_parse_failure():
    delta, warnings = score_metadata_document(json.dumps({"image": 5}))
    assert delta == 15.0
    assert len(warnings) == 1


def test_score_empty_document_flags_missing_image():
    delta, warnings = score_metadata_document("{}")
    assert delta == 5.0
    assert warnings == ["No image in metadata"]


def test_score_complete_document_is_clamped():
    body = json.dumps(
        {
            "image": "https://img.example.com/a.png",
            "description": "A community token with a long description",
            "twitter": "@pepe",
            "telegram": "pepechat",
            "website": "https://pepe.example.com",
        }
    )
    delta, warnings = score_metadata_document(body)
    assert delta == -15.0
    assert warnings == []


def test_name_tracker_duplicates():
    tracker = NameTracker()
    assert tracker.check_and_register("pepe", "m1") is False
    assert tracker.check_and_register("pepe", "m2") is True
    assert tracker.check_and_register("other", "m3") is False


def test_name_tracker_same_mint_not_duplicate():
    tracker = NameTracker()
    tracker.check_and_register("pepe", "m1")
    assert tracker.check_and_register("pepe", "m1") is False


def test_name_tracker_expiry_and_cleanup():
    clock = FakeClock()
    tracker = NameTracker(clock=clock)
    tracker.check_and_register("pepe", "m1")
    clock.now += 301
    assert tracker.check_and_register("pepe", "m2") is False
    clock.now += 301
    tracker.cleanup()
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_disabled_checker_passes():
    checker = MetadataChecker(FilterSettings(metadata_checker_enabled=False))
    result = await checker.check(make_ctx(name="", symbol="", uri=""))
    assert result.passed and result.reason == "OK"


@pytest.mark.asyncio
async def test_all_empty_fields_pass():
    result = await MetadataChecker().check(make_ctx(name="", symbol="", uri=""))
    assert result.passed
    assert result.module_name == MODULE_NAME


@pytest.mark.asyncio
async def test_clean_token_passes():
    result = await MetadataChecker().check(make_ctx())
    assert result.passed and result.risk_score == 0.0


@pytest.mark.asyncio
async def test_missing_uri_skip_action_fails():
    checker = MetadataChecker(FilterSettings(metadata_empty_action="skip"))
    result = await checker.check(make_ctx(uri=""))
    assert not result.passed
    assert result.risk_score == 30.0
    assert result.reason == "No metadata URI — likely scam/rug"


@pytest.mark.asyncio
async def test_missing_uri_warn_action_warns():
    checker = MetadataChecker(FilterSettings(metadata_empty_action="warn"))
    result = await checker.check(make_ctx(uri=""))
    assert result.passed
    assert result.risk_score == 20.0
    assert result.reason == "No metadata URI"


@pytest.mark.asyncio
async def test_missing_uri_allow_action_passes():
    checker = MetadataChecker(FilterSettings(metadata_empty_action="allow"))
    result = await checker.check(make_ctx(uri=""))
    assert result.passed and result.risk_score == 0.0


@pytest.mark.asyncio
async def test_short_name_and_symbol_rejected_with_skip():
    checker = MetadataChecker(FilterSettings(metadata_empty_action="skip"))
    result = await checker.check(make_ctx(name="X", symbol="Y"))
    assert not result.passed
    assert "Name too short" in result.reason
    assert "Symbol too short" in result.reason


@pytest.mark.asyncio
async def test_duplicate_name_warns():
    checker = MetadataChecker()
    first = await checker.check(make_ctx(mint="m1"))
    second = await checker.check(make_ctx(mint="m2"))
    assert first.passed and first.risk_score == 0.0
    assert second.passed
    assert second.risk_score == 20.0
    assert "Duplicate name" in second.reason


@pytest.mark.asyncio
async def test_fetched_complete_metadata_keeps_pass():
    body = {
        "image": "https://img.example.com/a.png",
        "description": "A community token with a long description",
        "twitter": "@pepe",
    }
    checker = MetadataChecker(FilterSettings(fetch_uri_content=True))
    with respx.mock:
        respx.get(URI).mock(return_value=httpx.Response(200, json=body))
        result = await checker.check(make_ctx())
    assert result.passed and result.reason == "OK"


@pytest.mark.asyncio
async def test_fetch_http_error_status_adds_risk():
    checker = MetadataChecker(FilterSettings(fetch_uri_content=True))
    with respx.mock:
        respx.get(URI).mock(return_value=httpx.Response(404))
        result = await checker.check(make_ctx())
    assert result.passed
    assert result.risk_score == 10.0
    assert "URI returned HTTP 404" in result.reason


@pytest.mark.asyncio
async def test_fetch_unreachable_adds_risk():
    checker = MetadataChecker(FilterSettings(fetch_uri_content=True))
    with respx.mock:
        respx.get(URI).mock(side_effect=httpx.ConnectError("boom"))
        delta, warnings = await checker.fetch_and_score(URI)
    assert delta == 10.0
    assert warnings[0].startswith("URI unreachable")