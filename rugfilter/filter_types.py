"""Data types shared by the pre-buy filter pipeline."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field

AUDIT_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "mint",
    "creator",
    "token_name",
    "token_symbol",
    "module_name",
    "passed",
    "risk_score",
    "reason",
    "total_risk_score",
    "final_decision",
    "buy_multiplier",
)


@dataclass(frozen=True)
class FilterSettings:
    """Configuration values consumed by the filter modules."""

    # Genesis bundle detection
    genesis_filter_enabled: bool = True
    genesis_slot_window: int = 2
    max_genesis_buy_tracking: int = 200
    max_genesis_buy_percent: float = 50.0
    max_single_wallet_percent: float = 20.0
    max_clustered_wallets: int = 5

    # Metadata verification
    metadata_checker_enabled: bool = True
    require_metadata_uri: bool = True
    metadata_empty_action: str = "warn"
    min_name_length: int = 2
    min_symbol_length: int = 2
    fetch_uri_content: bool = False
    uri_timeout_ms: int = 1500

    # Dev wallet profiling
    wallet_profiler_enabled: bool = True
    wallet_rpc_timeout_ms: int = 1500
    min_historical_tx_count: int = 10
    min_wallet_age_hours: int = 24
    block_cex_funded: bool = True

    # Aggregation and sizing
    max_total_risk_score: float = 60.0
    enable_dynamic_sizing: bool = True
    min_buy_multiplier: float = 0.3

    # Audit log
    filter_log_enabled: bool = True
    filter_log_dir: str = "logs"

    # Trading defaults that live overrides fall back to
    buy_amount_sol: float = 0.01
    stop_loss: float = 0.5
    tp_trailing: float = 2.0
    trailing_stop: float = 0.85


@dataclass
class FilterContext:
    """Everything a filter module needs to evaluate a freshly minted token."""

    mint: str
    creator: str
    name: str = ""
    symbol: str = ""
    uri: str = ""
    total_supply: int = 0
    creation_slot: int = 0
    initial_price: float = 0.0
    created_at: float = field(default_factory=time.monotonic)


@dataclass
class FilterResult:
    """Outcome of a single filter module."""

    passed: bool
    reason: str
    risk_score: float
    module_name: str

    @classmethod
    def passed_ok(cls, module: str) -> FilterResult:
        """The token passed this filter with zero risk."""
        return cls(passed=True, reason="OK", risk_score=0.0, module_name=module)

    @classmethod
    def fail(cls, module: str, reason: str, risk: float) -> FilterResult:
        """The token failed this filter and is rejected regardless of the rest."""
        return cls(passed=False, reason=str(reason), risk_score=float(risk), module_name=module)

    @classmethod
    def warn(cls, module: str, reason: str, risk: float) -> FilterResult:
        """The token passed but contributes to the total risk."""
        return cls(passed=True, reason=str(reason), risk_score=float(risk), module_name=module)

    @property
    def is_flagged(self) -> bool:
        """True when the result failed or carries positive risk."""
        return not self.passed or self.risk_score > 0.0


@dataclass
class AggregatedFilterResult:
    """Combined outcome of every filter module for one token."""

    should_buy: bool
    total_risk_score: float
    buy_amount_multiplier: float
    results: list[FilterResult] = field(default_factory=list)

    def rejection_summary(self) -> str:
        """Human-readable list of the results that failed or raised risk."""
        return " | ".join(
            f"[{r.module_name}] {r.reason} (risk: {r.risk_score:.1f})"
            for r in self.results
            if r.is_flagged
        )


def _csv_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


@dataclass
class FilterAuditRecord:
    """One row of the filter audit CSV log."""

    timestamp: str
    mint: str
    creator: str
    token_name: str
    token_symbol: str
    module_name: str
    passed: bool
    risk_score: float
    reason: str
    total_risk_score: float
    final_decision: str
    buy_multiplier: float

    def as_row(self) -> list[str]:
        """Field values as CSV cells, in the order of AUDIT_COLUMNS."""
        return [_csv_value(getattr(self, name)) for name in AUDIT_COLUMNS]


@dataclass(frozen=True)
class GenesisBuyRecord:
    """A single buy observed inside the genesis window."""

    buyer: str
    token_amount: int
    sol_amount: int
    slot: int


@dataclass
class GenesisTrackingData:
    """Genesis-window buy activity for one mint."""

    creation_slot: int
    total_supply: int
    creator: str
    created_at: float = field(default_factory=time.monotonic)
    buy_records: list[GenesisBuyRecord] = field(default_factory=list)

    def total_tokens_bought(self) -> int:
        """Total tokens bought across all recorded genesis buys."""
        return sum(record.token_amount for record in self.buy_records)

    def genesis_buy_percent(self) -> float:
        """Percentage of total supply bought in the genesis window."""
        if self.total_supply == 0:
            return 0.0
        return self.total_tokens_bought() / self.total_supply * 100.0

    def unique_buyer_count(self) -> int:
        """Number of distinct buyer wallets."""
        return len({record.buyer for record in self.buy_records})

    def non_creator_buyer_count(self) -> int:
        """Number of distinct buyer wallets other than the creator."""
        return len({r.buyer for r in self.buy_records if r.buyer != self.creator})

    def is_within_genesis_window(self, buy_slot: int, max_slots: int) -> bool:
        """Whether a buy at ``buy_slot`` falls inside the genesis window."""
        return buy_slot <= self.creation_slot + max_slots

    def largest_single_buyer_percent(self) -> float:
        """Share of supply held by the single largest genesis buyer."""
        if self.total_supply == 0:
            return 0.0
        per_buyer: Counter[str] = Counter()
        for record in self.buy_records:
            per_buyer[record.buyer] += record.token_amount
        largest = max(per_buyer.values(), default=0)
        return largest / self.total_supply * 100.0