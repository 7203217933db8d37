"""Per-pattern buy sizing that reacts to streaks of wins and losses."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DynamicBuySettings:
    """Streak lengths, step factors and bounds for dynamic buy sizing."""

    enabled: bool = False
    profit_sequence: int = 2
    profit_multiply: float = 1.2
    loss_sequence: int = 2
    loss_multiply: float = 0.8
    max_buy_amount_multiply: float = 2.0
    min_buy_amount_multiply: float = 0.5


@dataclass
class _PatternState:
    consecutive_losses: int = 0
    consecutive_wins: int = 0
    multiplier: float = 1.0


class DynamicBuyTracker:
    """Tracks trade outcomes per pattern and scales buy amounts accordingly."""

    def __init__(self, settings: Optional[DynamicBuySettings] = None) -> None:
        self.settings = settings or DynamicBuySettings()
        self._states: dict[str, _PatternState] = {}
        self._lock = threading.Lock()

    def _active(self, pattern_label: str) -> bool:
        return self.settings.enabled and bool(pattern_label)

    def record_outcome(self, pattern_label: str, mint: str, is_profit: bool) -> None:
        """Record a completed trade for ``pattern_label``."""
        if not self._active(pattern_label):
            return
        s = self.settings
        with self._lock:
            state = self._states.setdefault(pattern_label, _PatternState())
            old = state.multiplier
            if is_profit:
                state.consecutive_losses = 0
                state.consecutive_wins += 1
                if state.consecutive_wins >= s.profit_sequence:
                    state.multiplier = min(
                        state.multiplier * s.profit_multiply, s.max_buy_amount_multiply
                    )
                    state.consecutive_wins = 0
                    log.info(
                        "[DYNAMIC_BUY] %d consecutive wins | pattern=%s | mint=%s | "
                        "multiplier %.3f -> %.3f",
                        s.profit_sequence, pattern_label, mint, old, state.multiplier,
                    )
            else:
                state.consecutive_wins = 0
                state.consecutive_losses += 1
                if state.consecutive_losses >= s.loss_sequence:
                    state.multiplier *= s.loss_multiply
                    state.consecutive_losses = 0
                    log.info(
                        "[DYNAMIC_BUY] %d consecutive losses | pattern=%s | mint=%s | "
                        "multiplier %.3f -> %.3f",
                        s.loss_sequence, pattern_label, mint, old, state.multiplier,
                    )

    def multiplier(self, pattern_label: str) -> float:
        """Current raw multiplier for a pattern (1.0 when unseen)."""
        with self._lock:
            state = self._states.get(pattern_label)
            return state.multiplier if state else 1.0

    def adjusted_buy_amount(self, pattern_label: str, initial_buy_sol: float) -> float:
        """Buy amount scaled by the pattern's multiplier, clamped to the bounds."""
        if not self._active(pattern_label):
            return initial_buy_sol
        lower = initial_buy_sol * self.settings.min_buy_amount_multiply
        upper = initial_buy_sol * self.settings.max_buy_amount_multiply
        if lower > upper:
            raise ValueError(f"invalid buy bounds: min {lower} > max {upper}")
        return min(max(initial_buy_sol * self.multiplier(pattern_label), lower), upper)