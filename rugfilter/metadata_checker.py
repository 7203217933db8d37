"""Token name, symbol and metadata-document checks."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from typing import Callable, Optional

import httpx

from rugfilter.filter_types import FilterContext, FilterResult, FilterSettings

log = logging.getLogger(__name__)

MODULE_NAME = "METADATA_CHECKER"

#: How long a seen token name counts for duplicate detection, in seconds.
NAME_TRACKER_TTL_SECS = 300.0

#: Cumulative risk at which the "skip" action turns a warning into a rejection.
METADATA_REJECT_THRESHOLD = 25.0

_METADATA_FIELDS = (
    "name",
    "symbol",
    "description",
    "image",
    "external_url",
    "twitter",
    "telegram",
    "website",
)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def detect_spam_pattern(text: str) -> Optional[str]:
    """Return why ``text`` looks like spam, or None if it looks normal."""
    length = len(text)
    if length < 3:
        return None
    if all(c == text[0] for c in text):
        return f"All same character repeated: '{text[0]}'"
    special = sum(1 for c in text if not c.isalnum() and not c.isspace())
    if special / length > 0.5:
        return f"High special char ratio: {special}/{length}"
    if all(c in "0123456789" for c in text):
        return "Numeric-only name"
    return None


def _parse_metadata(body: str) -> dict[str, str]:
    document = json.loads(body)
    if not isinstance(document, dict):
        raise ValueError("invalid type: expected a JSON object")
    fields = {}
    for key in _METADATA_FIELDS:
        value = document.get(key, "")
        if not isinstance(value, str):
            raise ValueError(f"invalid type for field `{key}`: expected a string")
        fields[key] = value
    return fields


def score_metadata_document(body: str) -> tuple[float, list[str]]:
    """Score a metadata JSON document; a negative delta lowers total risk."""
    try:
        meta = _parse_metadata(body)
    except ValueError as exc:
        return 15.0, [f"URI JSON parse failed: {exc}"]

    delta = 0.0
    warnings: list[str] = []
    lowered = body.lower()

    if meta["image"].strip():
        delta -= 5.0
    else:
        delta += 5.0
        warnings.append("No image in metadata")

    if _byte_len(meta["description"].strip()) > 20:
        delta -= 5.0

    if meta["twitter"].strip() or "twitter.com" in lowered or "x.com" in lowered:
        delta -= 10.0

    if meta["telegram"].strip() or "t.me" in lowered:
        delta -= 5.0

    if meta["website"].strip() or meta["external_url"].strip() or "website" in lowered:
        delta -= 5.0

    return max(delta, -15.0), warnings


class NameTracker:
    """Remembers recently seen token names to spot copycat launches."""

    def __init__(
        self,
        ttl: float = NAME_TRACKER_TTL_SECS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._names: dict[str, list[tuple[str, float]]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)

    def check_and_register(self, name_lower: str, mint: str) -> bool:
        """Register ``mint`` under the name; True if another mint used it recently."""
        now = self._clock()
        with self._lock:
            entries = self._names.get(name_lower)
            if entries is None:
                self._names[name_lower] = [(mint, now)]
                return False
            entries[:] = [(m, ts) for m, ts in entries if now - ts < self.ttl]
            duplicate = any(m != mint for m, _ in entries)
            entries.append((mint, now))
            return duplicate

    def cleanup(self) -> None:
        """Drop expired entries and names with none left."""
        now = self._clock()
        with self._lock:
            kept: dict[str, list[tuple[str, float]]] = {}
            for name, entries in self._names.items():
                live = [(m, ts) for m, ts in entries if now - ts < self.ttl]
                if live:
                    kept[name] = live
            self._names = kept


class MetadataChecker:
    """Scores a token's name, symbol and metadata URI for rug-pull signals."""

    def __init__(
        self,
        settings: Optional[FilterSettings] = None,
        name_tracker: Optional[NameTracker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or FilterSettings()
        self.name_tracker = name_tracker if name_tracker is not None else NameTracker()
        self._http_client = http_client

    async def check(self, ctx: FilterContext) -> FilterResult:
        """Run the synchronous checks and, if enabled, the URI content check."""
        s = self.settings
        if not s.metadata_checker_enabled:
            return FilterResult.passed_ok(MODULE_NAME)

        name = ctx.name.strip()
        symbol = ctx.symbol.strip()
        uri = ctx.uri.strip()
        if not name and not symbol and not uri:
            return FilterResult.passed_ok(MODULE_NAME)

        risk = 0.0
        warnings: list[str] = []

        if not uri and s.require_metadata_uri:
            if s.metadata_empty_action == "skip":
                log.info("[%s] REJECT: %s | No metadata URI — likely scam", MODULE_NAME, ctx.mint)
                return FilterResult.fail(MODULE_NAME, "No metadata URI — likely scam/rug", 30.0)
            if s.metadata_empty_action == "warn":
                risk += 20.0
                warnings.append("No metadata URI")

        name_len = _byte_len(name)
        if name_len < s.min_name_length:
            risk += 15.0
            warnings.append(
                f"Name too short: '{name}' (len={name_len} < {s.min_name_length})"
            )

        symbol_len = _byte_len(symbol)
        if symbol_len < s.min_symbol_length:
            risk += 15.0
            warnings.append(
                f"Symbol too short: '{symbol}' (len={symbol_len} < {s.min_symbol_length})"
            )

        if name_len >= 3:
            spam = detect_spam_pattern(name)
            if spam:
                risk += 10.0
                warnings.append(f"Suspicious name: {spam}")

        if symbol_len >= 2:
            spam = detect_spam_pattern(symbol)
            if spam:
                risk += 5.0
                warnings.append(f"Suspicious symbol: {spam}")

        name_lower = name.lower()
        if name_lower and self.name_tracker.check_and_register(name_lower, ctx.mint):
            risk += 20.0
            warnings.append(f"Duplicate name '{name}' — possible copycat")

        if s.fetch_uri_content and uri:
            try:
                delta, uri_warnings = await asyncio.wait_for(
                    self.fetch_and_score(uri), timeout=s.uri_timeout_ms / 1000.0
                )
            except asyncio.TimeoutError:
                risk += 5.0
                warnings.append(f"URI fetch timeout ({s.uri_timeout_ms}ms)")
            else:
                risk += delta
                warnings.extend(uri_warnings)

        if risk >= METADATA_REJECT_THRESHOLD and s.metadata_empty_action == "skip":
            reason = "; ".join(warnings)
            log.info(
                "[%s] REJECT: %s | name='%s' sym='%s' | risk=%.0f | %s",
                MODULE_NAME, ctx.mint, name, symbol, risk, reason,
            )
            return FilterResult.fail(MODULE_NAME, reason, risk)
        if risk > 0.0:
            return FilterResult.warn(MODULE_NAME, "; ".join(warnings), risk)
        return FilterResult.passed_ok(MODULE_NAME)

    async def fetch_and_score(self, uri: str) -> tuple[float, list[str]]:
        """Fetch the metadata document at ``uri`` and score its completeness."""
        if self._http_client is not None:
            return await self._fetch_with(self._http_client, uri)
        timeout = httpx.Timeout(self.settings.uri_timeout_ms / 1000.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._fetch_with(client, uri)

    async def _fetch_with(self, client: httpx.AsyncClient, uri: str) -> tuple[float, list[str]]:
        try:
            async with client.stream("GET", uri) as response:
                if not response.is_success:
                    return 10.0, [
                        f"URI returned HTTP {response.status_code} {response.reason_phrase}"
                    ]
                try:
                    await response.aread()
                except httpx.HTTPError as exc:
                    return 5.0, [f"Failed to read URI body: {exc}"]
                body = response.text
        except httpx.HTTPError as exc:
            return 10.0, [f"URI unreachable: {exc}"]
        return score_metadata_document(body)