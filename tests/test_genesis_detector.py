import pytest

from rugfilter.filter_types import FilterSettings
from rugfilter.genesis_detector import MODULE_NAME, GenesisDetector

MINT = "MintAddress1111"
CREATOR = "CreatorWallet111"
SUPPLY = 1000
SLOT = 100


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def detector():
    d = GenesisDetector(FilterSettings())
    d.register_mint(MINT, CREATOR, SUPPLY, SLOT)
    return d


def test_unregistered_mint_passes():
    result = GenesisDetector().check("unknown")
    assert result.passed
    assert result.reason == "OK"
    assert result.module_name == MODULE_NAME


def test_no_buys_passes(detector):
    result = detector.check(MINT)
    assert result.passed and result.risk_score == 0.0


def test_disabled_filter_tracks_nothing():
    d = GenesisDetector(FilterSettings(genesis_filter_enabled=False))
    d.register_mint(MINT, CREATOR, SUPPLY, SLOT)
    assert len(d) == 0
    assert d.check(MINT).passed


def test_supply_concentration_fails(detector):
    for i in range(6):
        detector.record_buy(MINT, f"buyer{i}", 100, 1, SLOT + 1)
    result = detector.check(MINT)
    assert not result.passed
    assert result.risk_score == 50.0
    assert result.reason.startswith("Genesis supply concentration")


def test_single_whale_fails(detector):
    detector.record_buy(MINT, "whale", 300, 1, SLOT)
    result = detector.check(MINT)
    assert not result.passed
    assert result.risk_score == 45.0
    assert "Single whale" in result.reason


def test_clustered_same_slot_buys_fail(detector):
    for i in range(5):
        detector.record_buy(MINT, f"buyer{i}", 10, 1, SLOT)
    result = detector.check(MINT)
    assert not result.passed
    assert result.risk_score == 40.0
    assert "Clustered genesis buys" in result.reason


def test_many_buyers_across_slots_warns(detector):
    for i in range(5):
        detector.record_buy(MINT, f"buyer{i}", 10, 1, SLOT + 1)
    result = detector.check(MINT)
    assert result.passed
    assert result.risk_score == 25.0
    assert "High genesis buyer count" in result.reason


def test_creator_buys_not_counted_as_cluster(detector):
    detector.record_buy(MINT, CREATOR, 10, 1, SLOT)
    for i in range(4):
        detector.record_buy(MINT, f"buyer{i}", 10, 1, SLOT)
    result = detector.check(MINT)
    assert result.passed
    assert result.risk_score == 0.0


def test_elevated_buy_warns(detector):
    detector.record_buy(MINT, "a", 175, 1, SLOT + 1)
    detector.record_buy(MINT, "b", 175, 1, SLOT + 2)
    result = detector.check(MINT)
    assert result.passed
    assert result.risk_score == 15.0
    assert result.reason.startswith("Elevated genesis buy")


def test_buys_outside_window_are_ignored(detector):
    detector.record_buy(MINT, "whale", 900, 1, SLOT + 3)
    result = detector.check(MINT)
    assert result.passed and result.risk_score == 0.0


def test_tracking_limit_drops_extra_buys():
    d = GenesisDetector(FilterSettings(max_genesis_buy_tracking=2))
    d.register_mint(MINT, CREATOR, SUPPLY, SLOT)
    d.record_buy(MINT, "a", 1, 1, SLOT)
    d.record_buy(MINT, "b", 1, 1, SLOT)
    d.record_buy(MINT, "whale", 900, 1, SLOT)
    assert d.check(MINT).passed


def test_cleanup_removes_stale_entries():
    clock = FakeClock()
    d = GenesisDetector(FilterSettings(), clock=clock)
    d.register_mint(MINT, CREATOR, SUPPLY, SLOT)
    clock.now += 299
    assert d.cleanup() == 0
    assert len(d) == 1
    clock.now += 2
    assert d.cleanup() == 1
    assert len(d) == 0


def test_reregistering_resets_buys(detector):
    detector.record_buy(MINT, "whale", 300, 1, SLOT)
    detector.register_mint(MINT, CREATOR, SUPPLY, SLOT)
    assert detector.check(MINT).passed
    assert len(detector) == 1