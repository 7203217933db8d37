import asyncio
import csv
from dataclasses import replace

import pytest

from rugfilter.filter_aggregator import FilterPipeline
from rugfilter.filter_logger import FilterLogger
from rugfilter.filter_types import FilterContext, FilterResult, FilterSettings
from rugfilter.live_settings import BotState, BotStats


class FakeMetadata:
    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def check(self, ctx):
        self.calls += 1
        return self.result


class FakeWallet:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def profile(self, creator):
        self.calls.append(creator)
        return self.result


class FakeNotifier:
    def __init__(self):
        self.calls = []

    async def send_filter_result(self, *args):
        self.calls.append(args)
        return True


def ctx():
    return FilterContext(mint="MintAddr111", creator="CreatorAddr111", name="Token", symbol="TKN")


def pipeline(meta, wallet, **state_kwargs):
    state = BotState(bot_is_running=True, **state_kwargs)
    return FilterPipeline(FakeMetadata(meta), FakeWallet(wallet), state=state, stats=BotStats())


@pytest.mark.asyncio
async def test_clean_token_buys_full_size():
    p = pipeline(FilterResult.passed_ok("METADATA_CHECKER"), FilterResult.passed_ok("WALLET_PROFILER"))
    result = await p.run(ctx())
    assert result.should_buy is True
    assert result.buy_amount_multiplier == 1.0
    assert result.total_risk_score == 0.0
    assert [r.module_name for r in result.results] == ["METADATA_CHECKER", "WALLET_PROFILER"]
    assert (p.stats.scanned, p.stats.passed, p.stats.warned, p.stats.rejected) == (1, 1, 0, 0)
    assert p.wallet_profiler.calls == ["CreatorAddr111"]


@pytest.mark.asyncio
async def test_hard_fail_rejects():
    p = pipeline(FilterResult.fail("METADATA_CHECKER", "bad", 30.0), FilterResult.passed_ok("WALLET_PROFILER"))
    result = await p.run(ctx())
    assert result.should_buy is False
    assert result.buy_amount_multiplier == 0.0
    assert p.stats.rejected == 1


@pytest.mark.asyncio
async def test_warning_scales_position():
    p = pipeline(FilterResult.warn("METADATA_CHECKER", "meh", 15.0), FilterResult.warn("WALLET_PROFILER", "hm", 15.0))
    result = await p.run(ctx())
    max_risk = FilterSettings().max_total_risk_score
    assert result.should_buy is True
    assert result.total_risk_score == 30.0
    assert result.buy_amount_multiplier == pytest.approx(1.0 - 30.0 / max_risk)
    assert p.stats.warned == 1


@pytest.mark.asyncio
async def test_multiplier_clamped_to_minimum():
    p = pipeline(FilterResult.warn("METADATA_CHECKER", "meh", 55.0), FilterResult.passed_ok("WALLET_PROFILER"))
    result = await p.run(ctx())
    assert result.should_buy is True
    assert result.buy_amount_multiplier == FilterSettings().min_buy_multiplier


@pytest.mark.asyncio
async def test_no_dynamic_sizing_keeps_full_size():
    p = pipeline(
        FilterResult.warn("METADATA_CHECKER", "meh", 20.0),
        FilterResult.passed_ok("WALLET_PROFILER"),
        dynamic_sizing_override=False,
    )
    result = await p.run(ctx())
    assert result.buy_amount_multiplier == 1.0


@pytest.mark.asyncio
async def test_risk_at_max_rejects():
    p = pipeline(
        FilterResult.warn("METADATA_CHECKER", "a", 30.0),
        FilterResult.warn("WALLET_PROFILER", "b", 30.0),
        max_risk_override=60,
    )
    result = await p.run(ctx())
    assert result.should_buy is False
    assert "[METADATA_CHECKER] a (risk: 30.0)" in result.rejection_summary()


@pytest.mark.asyncio
async def test_warn_only_mode_buys_despite_failure():
    p = pipeline(
        FilterResult.fail("METADATA_CHECKER", "bad", 30.0),
        FilterResult.passed_ok("WALLET_PROFILER"),
        warn_only_mode=True,
    )
    result = await p.run(ctx())
    assert result.should_buy is True
    assert 0.0 < result.buy_amount_multiplier <= 1.0


@pytest.mark.asyncio
async def test_negative_risk_clamped_to_zero():
    p = pipeline(FilterResult.warn("METADATA_CHECKER", "good", -10.0), FilterResult.passed_ok("WALLET_PROFILER"))
    result = await p.run(ctx())
    assert result.total_risk_score == 0.0
    assert result.buy_amount_multiplier == 1.0


@pytest.mark.asyncio
async def test_stopped_bot_rejects_and_skips_notification():
    notifier = FakeNotifier()
    p = FilterPipeline(
        FakeMetadata(FilterResult.passed_ok("METADATA_CHECKER")),
        FakeWallet(FilterResult.passed_ok("WALLET_PROFILER")),
        state=BotState(bot_is_running=False),
        notifier=notifier,
    )
    result = await p.run(ctx())
    await asyncio.sleep(0)
    assert result.should_buy is False
    assert result.results[-1].module_name == "BOT_CONTROL"
    assert result.results[-1].risk_score == 100.0
    assert notifier.calls == []


@pytest.mark.asyncio
async def test_disabled_modules_are_not_run():
    p = pipeline(
        FilterResult.passed_ok("METADATA_CHECKER"),
        FilterResult.passed_ok("WALLET_PROFILER"),
        enable_m5_metadata=False,
        enable_m3_dev=False,
    )
    result = await p.run(ctx())
    assert result.results == []
    assert p.metadata_checker.calls == 0
    assert p.wallet_profiler.calls == []
    assert result.should_buy is True


@pytest.mark.asyncio
async def test_notifier_receives_flagged_reasons():
    notifier = FakeNotifier()
    p = FilterPipeline(
        FakeMetadata(FilterResult.warn("METADATA_CHECKER", "short name", 15.0)),
        FakeWallet(FilterResult.passed_ok("WALLET_PROFILER")),
        state=BotState(bot_is_running=True),
        notifier=notifier,
    )
    await p.run(ctx())
    for _ in range(3):
        await asyncio.sleep(0)
    assert len(notifier.calls) == 1
    mint, creator, name, passed, risk, _mul, reasons = notifier.calls[0]
    assert (mint, creator, name, passed, risk) == ("MintAddr111", "CreatorAddr111", "Token", True, 15.0)
    assert reasons == ["[METADATA_CHECKER] short name"]


@pytest.mark.asyncio
async def test_logger_writes_one_row_per_result(tmp_path):
    settings = replace(FilterSettings(), filter_log_dir=str(tmp_path))
    logger = FilterLogger(settings, today=lambda: "2024-01-01")
    p = FilterPipeline(
        FakeMetadata(FilterResult.passed_ok("METADATA_CHECKER")),
        FakeWallet(FilterResult.fail("WALLET_PROFILER", "fresh", 50.0)),
        state=BotState(bot_is_running=True),
        logger=logger,
    )
    result = await p.run(ctx())
    logger.close()
    assert result.should_buy is False
    assert result.total_risk_score == 50.0
    with open(tmp_path / "filter_audit_2024-01-01.csv", newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [r["module_name"] for r in rows] == ["METADATA_CHECKER", "WALLET_PROFILER"]
    assert {r["final_decision"] for r in rows} == {"SKIP"}
    assert len(rows) == len(result.results)