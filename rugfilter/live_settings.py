"""Live-adjustable bot state, run statistics and their Telegram views."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from rugfilter.filter_types import FilterSettings

LAMPORTS_PER_SOL = 1_000_000_000

ON_LABEL = "✅ ON"
OFF_LABEL = "❌ OFF"


class InputState(enum.IntEnum):
    """What a free-text message from the operator is expected to set."""

    NONE = 0
    BUY_AMOUNT = 1
    STOP_LOSS = 2
    MAX_RISK = 3
    IMPORT_KEY = 4
    TP_TRAILING = 5
    TRAILING_STOP = 6


@dataclass
class BotState:
    """Switches and live overrides an operator can change while the bot runs.

    Overrides are stored in the integer units they are entered in; zero means
    "use the configured default".
    """

    settings: FilterSettings = field(default_factory=FilterSettings)
    bot_is_running: bool = False
    master_switch: bool = True
    warn_only_mode: bool = False
    enable_m1_holder: bool = True
    enable_m2_panic: bool = True
    enable_m3_dev: bool = True
    enable_m4_genesis: bool = True
    enable_m5_metadata: bool = True
    live_holder_pct: int = 30
    live_dev_age: int = 6
    live_dev_txs: int = 10
    buy_amount_lamports: int = 0
    stop_loss_bps: int = 0
    max_risk_override: int = 0
    dynamic_sizing_override: Optional[bool] = None
    tp_trailing_milli: int = 0
    trailing_stop_milli: int = 0
    input_state: InputState = InputState.NONE

    def buy_amount_sol(self) -> float:
        """Buy amount in SOL: the live override or the configured default."""
        if self.buy_amount_lamports > 0:
            return self.buy_amount_lamports / LAMPORTS_PER_SOL
        return self.settings.buy_amount_sol

    def stop_loss(self) -> float:
        """Stop-loss as a fraction of the buy price (0.5 = 50%)."""
        if self.stop_loss_bps > 0:
            return self.stop_loss_bps / 10_000.0
        return self.settings.stop_loss

    def max_risk(self) -> float:
        """Total risk score at or above which a token is rejected."""
        if self.max_risk_override > 0:
            return float(self.max_risk_override)
        return self.settings.max_total_risk_score

    def dynamic_sizing(self) -> bool:
        """Whether position size shrinks with risk."""
        if self.dynamic_sizing_override is None:
            return self.settings.enable_dynamic_sizing
        return self.dynamic_sizing_override

    def tp_trailing(self) -> float:
        """Take-profit multiplier of the buy price (2.0 = 2x)."""
        if self.tp_trailing_milli > 0:
            return self.tp_trailing_milli / 1_000.0
        return self.settings.tp_trailing

    def trailing_stop(self) -> float:
        """Fraction of the peak price below which a position is sold."""
        if self.trailing_stop_milli > 0:
            return self.trailing_stop_milli / 1_000.0
        return self.settings.trailing_stop


@dataclass
class BotStats:
    """Running counters shown on the dashboard; amounts are in lamports."""

    scanned: int = 0
    passed: int = 0
    rejected: int = 0
    warned: int = 0
    skipped: int = 0
    realized_pnl: int = 0
    total_spent: int = 0
    total_received: int = 0
    wins: int = 0
    losses: int = 0
    buys_attempted: int = 0
    buys_success: int = 0
    buys_failed: int = 0
    total_sells: int = 0


def _rate(part: int, whole: int) -> float:
    return part / whole * 100.0 if whole > 0 else 0.0


def build_dashboard_text(stats: BotStats, period: str) -> str:
    """Dashboard message with PnL, trade activity and filter statistics."""
    pnl = stats.realized_pnl / LAMPORTS_PER_SOL
    pnl_icon = "🟢" if pnl >= 0.0 else "🔴"
    pnl_sign = "+" if pnl >= 0.0 else ""
    spent = stats.total_spent / LAMPORTS_PER_SOL
    received = stats.total_received / LAMPORTS_PER_SOL
    total_trades = stats.wins + stats.losses
    win_rate = _rate(stats.wins, total_trades)
    buy_rate = _rate(stats.buys_success, stats.buys_attempted)
    pass_rate = _rate(stats.passed, stats.scanned)

    return (
        f"📊 {period}\n"
        "───────────────\n"
        "💰 PNL Summary\n"
        f"├ {pnl_icon} Realized PNL: {pnl_sign}{pnl:.4f} SOL\n"
        f"├ 💼 Total spent: {spent:.4f} SOL\n"
        f"├ 💸 Total received: {received:.4f} SOL\n"
        f"├ 🏆 Win rate: {win_rate:.1f}% ({stats.wins}/{total_trades})\n"
        f"├ ✅ Wins: {stats.wins}\n"
        f"└ ❌ Losses: {stats.losses}\n\n"
        "💹 Trade Activity\n"
        f"├ Total buys: {stats.buys_attempted} "
        f"(✅ {stats.buys_success} / ❌ {stats.buys_failed})\n"
        f"├ Buy success rate: {buy_rate:.1f}%\n"
        f"└ Total sells: {stats.total_sells}\n\n"
        "🛡️ Anti-Rug Filter\n"
        f"├ Scanned: {stats.scanned}\n"
        f"├ ✅ Passed: {stats.passed}\n"
        f"├ ❌ Rejected: {stats.rejected}\n"
        f"├ ⚠️ Warned: {stats.warned}\n"
        f"├ 🚫 Skipped: {stats.skipped}\n"
        f"└ Pass rate: {pass_rate:.1f}%"
    )


def build_dashboard_inline_keyboard() -> dict[str, Any]:
    """Inline keyboard for choosing the dashboard period."""
    return {
        "inline_keyboard": [
            [{"text": "📊 Select time period for stats:", "callback_data": "ignore"}],
            [
                {"text": "📊 Today", "callback_data": "time_today"},
                {"text": "📈 7 Days", "callback_data": "time_7d"},
            ],
            [
                {"text": "📅 30 Days", "callback_data": "time_30d"},
                {"text": "🌐 All Time", "callback_data": "time_all"},
            ],
        ]
    }


def build_reply_keyboard(state: BotState) -> dict[str, Any]:
    """Persistent reply keyboard; the run button reflects whether the bot runs."""
    run_button = "⏹️ Stop" if state.bot_is_running else "▶️ Start"
    return {
        "keyboard": [
            [{"text": "📊 Dashboard"}],
            [{"text": "💰 Wallet management"}, {"text": "⚙️ Trading parameters"}],
            [{"text": "🛡️ Anti-Rug"}, {"text": run_button}, {"text": "📤 Sell All"}],
        ],
        "resize_keyboard": True,
        "is_persistent": True,
    }


def _mark(flag: bool) -> str:
    return "✅" if flag else "❌"


def build_settings_text(state: BotState) -> str:
    """Anti-rug settings overview."""
    mode = (
        "⚠️ WARN ONLY — buys risky tokens"
        if state.warn_only_mode
        else "🛡️ BLOCK risky tokens"
    )
    return (
        "🛡️ Anti-Rug Intelligence\n"
        "───────────────\n\n"
        f"{_mark(state.master_switch)} Master Switch\n"
        f"{mode}\n\n"
        "┌ Modules\n"
        f"│ {_mark(state.enable_m1_holder)} M1 — Holder Analyzer "
        f"(top10 <= {state.live_holder_pct}%)\n"
        f"│ {_mark(state.enable_m2_panic)} M2 — Panic-Sell Monitor\n"
        f"│ {_mark(state.enable_m3_dev)} M3 — Dev Wallet "
        f"(age >= {state.live_dev_age}h, tx >= {state.live_dev_txs})\n"
        f"│ {_mark(state.enable_m4_genesis)} M4 — Genesis Detector\n"
        f"└ {_mark(state.enable_m5_metadata)} M5 — Metadata Checker\n\n"
        "⏱️ Timeout: 1500ms • 💎 Jito tip: 0.0010 SOL"
    )


def _choice(label: str, value: int, current: int) -> str:
    return f"• {label}" if value == current else label


def build_settings_keyboard(state: BotState) -> dict[str, Any]:
    """Inline keyboard for module toggles and threshold presets."""
    h, a, t = state.live_holder_pct, state.live_dev_age, state.live_dev_txs

    def holder(v: int) -> dict[str, str]:
        return {"text": _choice(f"{v}%", v, h), "callback_data": f"set_h{v}"}

    def age(v: int) -> dict[str, str]:
        return {"text": _choice(f"{v}h", v, a), "callback_data": f"set_a{v}"}

    def txs(v: int) -> dict[str, str]:
        return {"text": _choice(f"{v} TXs", v, t), "callback_data": f"set_t{v}"}

    return {
        "inline_keyboard": [
            [
                {"text": "🔌 Master ON/OFF", "callback_data": "toggle_master"},
                {"text": "⚠️ Warn / Block", "callback_data": "toggle_warn"},
            ],
            [
                {"text": "📊 M1 Holder", "callback_data": "toggle_m1"},
                {"text": "🚨 M2 Panic", "callback_data": "toggle_m2"},
            ],
            [
                {"text": "👤 M3 Dev", "callback_data": "toggle_m3"},
                {"text": "🔍 M4 Genesis", "callback_data": "toggle_m4"},
            ],
            [
                {"text": "📝 M5 Metadata", "callback_data": "toggle_m5"},
                {"text": "← Back", "callback_data": "ignore"},
            ],
            [{"text": "📋 View Skipped Tokens", "callback_data": "ignore"}],
            [holder(30), holder(40), holder(50)],
            [age(0), age(3), age(6)],
            [age(12), age(24)],
            [txs(0), txs(5), txs(10)],
        ]
    }