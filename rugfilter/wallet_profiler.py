"""Risk profiling of a token creator's wallet from its transaction history."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

import httpx

from rugfilter.filter_types import FilterResult, FilterSettings
from rugfilter.known_cex_wallets import identify_cex_wallet

log = logging.getLogger(__name__)

MODULE_NAME = "WALLET_PROFILER"

#: How long a profiling result stays cached, in seconds.
CACHE_TTL_SECS = 300.0

_CEX_MEMO_MARKERS = ("binance", "okx", "bybit", "kucoin")


class RpcError(Exception):
    """The RPC node answered with an error or an unusable response."""


@dataclass(frozen=True)
class SignatureInfo:
    """One entry of a ``getSignaturesForAddress`` response."""

    signature: str
    slot: int = 0
    block_time: Optional[int] = None
    memo: Optional[str] = None
    err: Any = None

    @classmethod
    def from_json(cls, entry: dict) -> SignatureInfo:
        """Build from the JSON object the RPC node returns."""
        if not isinstance(entry, dict) or "signature" not in entry:
            raise RpcError(f"malformed signature entry: {entry!r}")
        return cls(
            signature=str(entry["signature"]),
            slot=int(entry.get("slot") or 0),
            block_time=entry.get("blockTime"),
            memo=entry.get("memo"),
            err=entry.get("err"),
        )


class _SignatureSource(Protocol):
    async def get_signatures_for_address(self, address: str) -> Sequence[SignatureInfo]:
        ...


class SolanaRpc:
    """Minimal JSON-RPC client for the calls the profiler needs."""

    def __init__(
        self,
        url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._http_client = http_client

    async def _post(self, payload: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.url, json=payload)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload)

    async def get_signatures_for_address(self, address: str) -> list[SignatureInfo]:
        """Signatures touching ``address``, newest first."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getSignaturesForAddress",
            "params": [address],
        }
        response = await self._post(payload)
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise RpcError(f"invalid JSON response: {exc}") from exc
        if not isinstance(body, dict):
            raise RpcError("invalid JSON-RPC response")
        if "error" in body:
            raise RpcError(f"RPC error: {body['error']}")
        result = body.get("result")
        if not isinstance(result, list):
            raise RpcError("missing result in JSON-RPC response")
        return [SignatureInfo.from_json(entry) for entry in result]


@dataclass
class _CachedProfile:
    result: FilterResult
    cached_at: float


class WalletProfiler:
    """Scores a creator wallet's age, history and funding for rug-pull signals."""

    def __init__(
        self,
        rpc: _SignatureSource,
        settings: Optional[FilterSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.rpc = rpc
        self.settings = settings or FilterSettings()
        self._clock = clock
        self._wall_clock = wall_clock
        self._cache: dict[str, _CachedProfile] = {}
        self._lock = threading.Lock()

    def evaluate_signatures(
        self, creator: str, signatures: Sequence[SignatureInfo], now: float
    ) -> FilterResult:
        """Score a creator from its signatures (newest first) at unix time ``now``."""
        s = self.settings
        risk = 0.0
        warnings: list[str] = []
        tx_count = len(signatures)

        if tx_count < s.min_historical_tx_count:
            risk += 30.0
            warnings.append(f"Low TX history: {tx_count} < {s.min_historical_tx_count} min")

        if signatures:
            oldest = signatures[-1]
            if oldest.block_time is not None:
                age_hours = max(int(now) - int(oldest.block_time), 0) // 3600
                if age_hours < s.min_wallet_age_hours:
                    risk += 40.0
                    warnings.append(
                        f"Fresh wallet: {age_hours}h old < {s.min_wallet_age_hours}h min"
                    )
            else:
                risk += 10.0
                warnings.append("No block_time available on oldest TX")
        else:
            risk += 50.0
            warnings.append("ZERO transaction history — brand new wallet")

        if s.block_cex_funded and signatures:
            for info in list(reversed(signatures))[:5]:
                if info.memo is None:
                    continue
                memo_lower = info.memo.lower()
                if any(marker in memo_lower for marker in _CEX_MEMO_MARKERS):
                    risk += 20.0
                    warnings.append(f"CEX-related memo detected: '{info.memo[:50]}'")
                    break
            exchange = identify_cex_wallet(creator)
            if exchange is not None:
                risk += 20.0
                warnings.append(f"Creator IS a known {exchange} hot wallet")

        successful = sum(1 for info in signatures if info.err is None)
        if 0 < tx_count < 50 and successful > 5 and risk > 0.0:
            risk += 15.0
            warnings.append(
                f"Suspicious activity pattern: {successful} TXs from low-history wallet"
            )

        if risk >= 50.0:
            reason = "; ".join(warnings)
            log.info(
                "[%s] REJECT creator: %s | risk: %.0f | %s", MODULE_NAME, creator, risk, reason
            )
            return FilterResult.fail(MODULE_NAME, reason, risk)
        if risk > 0.0:
            return FilterResult.warn(MODULE_NAME, "; ".join(warnings), risk)
        return FilterResult.passed_ok(MODULE_NAME)

    async def _run_deep_profiling(self, creator: str) -> FilterResult:
        try:
            signatures = await self.rpc.get_signatures_for_address(creator)
        except (RpcError, httpx.HTTPError, OSError) as exc:
            return FilterResult.warn(
                MODULE_NAME,
                f"RPC error fetching signatures for {creator}: {exc}",
                5.0,
            )
        return self.evaluate_signatures(creator, list(signatures), self._wall_clock())

    async def profile(self, creator: str) -> FilterResult:
        """Profile ``creator`` within the RPC timeout, using cached results."""
        s = self.settings
        if not s.wallet_profiler_enabled:
            return FilterResult.passed_ok(MODULE_NAME)

        with self._lock:
            cached = self._cache.get(creator)
            if cached is not None and self._clock() - cached.cached_at < CACHE_TTL_SECS:
                return cached.result

        try:
            result = await asyncio.wait_for(
                self._run_deep_profiling(creator), timeout=s.wallet_rpc_timeout_ms / 1000.0
            )
        except asyncio.TimeoutError:
            result = FilterResult.warn(
                MODULE_NAME,
                f"RPC timeout ({s.wallet_rpc_timeout_ms}ms) profiling wallet {creator}",
                5.0,
            )

        with self._lock:
            self._cache[creator] = _CachedProfile(result=result, cached_at=self._clock())
        return result

    def cleanup(self) -> int:
        """Drop expired cache entries; return how many were removed."""
        now = self._clock()
        with self._lock:
            before = len(self._cache)
            self._cache = {
                key: entry
                for key, entry in self._cache.items()
                if now - entry.cached_at < CACHE_TTL_SECS
            }
            return before - len(self._cache)