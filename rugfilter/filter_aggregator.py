"""Runs the pre-buy filter modules and combines them into one decision."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from rugfilter.filter_logger import FilterLogger
from rugfilter.filter_types import AggregatedFilterResult, FilterContext, FilterResult
from rugfilter.live_settings import BotState, BotStats

log = logging.getLogger(__name__)

BOT_CONTROL_MODULE = "BOT_CONTROL"


class _MetadataCheck(Protocol):
    async def check(self, ctx: FilterContext) -> FilterResult:
        ...


class _WalletCheck(Protocol):
    async def profile(self, creator: str) -> FilterResult:
        ...


class FilterPipeline:
    """Combines metadata and dev-wallet checks into a buy/skip decision with sizing."""

    def __init__(
        self,
        metadata_checker: _MetadataCheck,
        wallet_profiler: _WalletCheck,
        state: Optional[BotState] = None,
        stats: Optional[BotStats] = None,
        logger: Optional[FilterLogger] = None,
        notifier: Any = None,
    ) -> None:
        self.metadata_checker = metadata_checker
        self.wallet_profiler = wallet_profiler
        self.state = state if state is not None else BotState()
        self.stats = stats if stats is not None else BotStats()
        self.logger = logger
        self.notifier = notifier
        self._background: set[asyncio.Task] = set()

    async def _maybe_metadata(self, ctx: FilterContext) -> Optional[FilterResult]:
        if not self.state.enable_m5_metadata:
            return None
        return await self.metadata_checker.check(ctx)

    async def _maybe_wallet(self, ctx: FilterContext) -> Optional[FilterResult]:
        if not self.state.enable_m3_dev:
            return None
        return await self.wallet_profiler.profile(ctx.creator)

    def _multiplier(self, should_buy: bool, total_risk: float) -> float:
        if not should_buy:
            return 0.0
        if self.state.dynamic_sizing() and total_risk > 0.0:
            max_risk = self.state.max_risk()
            raw = 1.0 - total_risk / max_risk if max_risk > 0.0 else float("-inf")
            return min(max(raw, self.state.settings.min_buy_multiplier), 1.0)
        return 1.0

    async def run(self, ctx: FilterContext) -> AggregatedFilterResult:
        """Evaluate ``ctx`` with every enabled module and decide whether to buy."""
        state = self.state
        metadata_result, wallet_result = await asyncio.gather(
            self._maybe_metadata(ctx), self._maybe_wallet(ctx)
        )
        results = [r for r in (metadata_result, wallet_result) if r is not None]

        any_hard_fail = any(not r.passed for r in results)
        total_risk = max(sum(r.risk_score for r in results), 0.0)

        should_buy = not any_hard_fail and total_risk < state.max_risk()
        if state.warn_only_mode:
            should_buy = True

        if not state.bot_is_running:
            should_buy = False
            results.append(
                FilterResult.fail(
                    BOT_CONTROL_MODULE, "Bot is manually STOPPED from Telegram", 100.0
                )
            )

        aggregated = AggregatedFilterResult(
            should_buy=should_buy,
            total_risk_score=total_risk,
            buy_amount_multiplier=self._multiplier(should_buy, total_risk),
            results=results,
        )
        self._record(ctx, aggregated)

        if self.logger is not None:
            self.logger.log(ctx, aggregated)

        if state.bot_is_running and self.notifier is not None:
            reasons = [f"[{r.module_name}] {r.reason}" for r in results if r.is_flagged]
            task = asyncio.create_task(
                self.notifier.send_filter_result(
                    str(ctx.mint),
                    str(ctx.creator),
                    ctx.name,
                    should_buy,
                    total_risk,
                    aggregated.buy_amount_multiplier,
                    reasons,
                )
            )
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        return aggregated

    def _record(self, ctx: FilterContext, aggregated: AggregatedFilterResult) -> None:
        self.stats.scanned += 1
        risk = aggregated.total_risk_score
        if aggregated.should_buy:
            if risk > 0.0:
                self.stats.warned += 1
                log.info(
                    "[FILTER_PASS_WARN] MINT: %s | creator: %s | name: '%s' | risk: %.1f | "
                    "mul: %.2fx | %s",
                    ctx.mint, ctx.creator, ctx.name, risk,
                    aggregated.buy_amount_multiplier, aggregated.rejection_summary(),
                )
            else:
                self.stats.passed += 1
                log.info(
                    "[FILTER_PASS] MINT: %s | creator: %s | name: '%s' | CLEAN",
                    ctx.mint, ctx.creator, ctx.name,
                )
        else:
            self.stats.rejected += 1
            log.info(
                "[FILTER_REJECT] MINT: %s | creator: %s | name: '%s' | risk: %.1f | %s",
                ctx.mint, ctx.creator, ctx.name, risk, aggregated.rejection_summary(),
            )