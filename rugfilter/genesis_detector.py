"""Detection of coordinated or bundled buys in a token's genesis window."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from rugfilter.filter_types import (
    FilterResult,
    FilterSettings,
    GenesisBuyRecord,
    GenesisTrackingData,
)

log = logging.getLogger(__name__)

MODULE_NAME = "GENESIS_DETECTOR"

#: Tracking entries older than this many seconds are dropped by ``cleanup``.
TRACKING_TTL_SECS = 300.0


class GenesisDetector:
    """Tracks early buys per mint and flags supply concentration and clustering."""

    def __init__(
        self,
        settings: Optional[FilterSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or FilterSettings()
        self._clock = clock
        self._tracked: dict[str, GenesisTrackingData] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracked)

    def register_mint(
        self, mint: str, creator: str, total_supply: int, creation_slot: int
    ) -> None:
        """Start tracking genesis buys for a newly created mint."""
        if not self.settings.genesis_filter_enabled:
            return
        data = GenesisTrackingData(
            creation_slot=creation_slot,
            total_supply=total_supply,
            creator=creator,
            created_at=self._clock(),
        )
        with self._lock:
            self._tracked[mint] = data

    def record_buy(
        self, mint: str, buyer: str, token_amount: int, sol_amount: int, slot: int
    ) -> None:
        """Record a buy on a tracked mint if it falls inside the genesis window."""
        s = self.settings
        if not s.genesis_filter_enabled:
            return
        with self._lock:
            data = self._tracked.get(mint)
            if data is None:
                return
            if not data.is_within_genesis_window(slot, s.genesis_slot_window):
                return
            if len(data.buy_records) >= s.max_genesis_buy_tracking:
                return
            data.buy_records.append(
                GenesisBuyRecord(
                    buyer=buyer, token_amount=token_amount, sol_amount=sol_amount, slot=slot
                )
            )

    def check(self, mint: str) -> FilterResult:
        """Evaluate concentration, whale and clustering checks for ``mint``."""
        s = self.settings
        if not s.genesis_filter_enabled:
            return FilterResult.passed_ok(MODULE_NAME)

        with self._lock:
            tracked = self._tracked.get(mint)
            if tracked is None:
                return FilterResult.passed_ok(MODULE_NAME)
            records = list(tracked.buy_records)
            data = GenesisTrackingData(
                creation_slot=tracked.creation_slot,
                total_supply=tracked.total_supply,
                creator=tracked.creator,
                created_at=tracked.created_at,
                buy_records=records,
            )

        if not records:
            return FilterResult.passed_ok(MODULE_NAME)

        slot_span = max(0, records[-1].slot - data.creation_slot)
        genesis_pct = data.genesis_buy_percent()

        if genesis_pct > s.max_genesis_buy_percent:
            reason = (
                f"Genesis supply concentration: {genesis_pct:.1f}% > "
                f"{s.max_genesis_buy_percent:.1f}% limit | "
                f"{data.unique_buyer_count()} unique buyers, "
                f"{len(records)} buys in {slot_span} slots"
            )
            log.info("[%s] REJECT MINT: %s | %s", MODULE_NAME, mint, reason)
            return FilterResult.fail(MODULE_NAME, reason, 50.0)

        largest_pct = data.largest_single_buyer_percent()
        if largest_pct > s.max_single_wallet_percent:
            reason = (
                f"Single whale bought {largest_pct:.1f}% > "
                f"{s.max_single_wallet_percent:.1f}% limit | "
                f"total genesis: {genesis_pct:.1f}%"
            )
            log.info("[%s] REJECT MINT: %s | %s", MODULE_NAME, mint, reason)
            return FilterResult.fail(MODULE_NAME, reason, 45.0)

        non_creator = data.non_creator_buyer_count()
        if non_creator >= s.max_clustered_wallets:
            same_slot_buys = sum(
                1
                for r in records
                if r.slot == data.creation_slot and r.buyer != data.creator
            )
            if same_slot_buys >= s.max_clustered_wallets:
                reason = (
                    f"Clustered genesis buys: {same_slot_buys} wallets bought in "
                    f"creation slot (slot {data.creation_slot}) | "
                    f"{non_creator} total non-creator buyers | {genesis_pct:.1f}% supply"
                )
                log.info("[%s] REJECT MINT: %s | %s", MODULE_NAME, mint, reason)
                return FilterResult.fail(MODULE_NAME, reason, 40.0)

            reason = (
                f"High genesis buyer count: {non_creator} non-creator wallets >= "
                f"{s.max_clustered_wallets} limit | {genesis_pct:.1f}% supply "
                f"across {slot_span + 1} slots"
            )
            log.info("[%s] WARN MINT: %s | %s", MODULE_NAME, mint, reason)
            return FilterResult.warn(MODULE_NAME, reason, 25.0)

        if genesis_pct > s.max_genesis_buy_percent * 0.6:
            reason = (
                f"Elevated genesis buy: {genesis_pct:.1f}% "
                f"(threshold: {s.max_genesis_buy_percent:.1f}%) | "
                f"{data.unique_buyer_count()} buyers"
            )
            return FilterResult.warn(MODULE_NAME, reason, 15.0)

        return FilterResult.passed_ok(MODULE_NAME)

    def cleanup(self) -> int:
        """Drop tracking entries older than five minutes; return how many went."""
        now = self._clock()
        with self._lock:
            before = len(self._tracked)
            self._tracked = {
                mint: data
                for mint, data in self._tracked.items()
                if now - data.created_at < TRACKING_TTL_SECS
            }
            removed = before - len(self._tracked)
            after = len(self._tracked)
        if removed:
            log.info(
                "[%s] Cleanup: removed %d stale entries (%d -> %d)",
                MODULE_NAME, removed, before, after,
            )
        return removed