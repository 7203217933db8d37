"""Trading-parameter menus and the state changes an operator's input triggers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from rugfilter.live_settings import (
    LAMPORTS_PER_SOL,
    OFF_LABEL,
    ON_LABEL,
    BotState,
    InputState,
)

HTML = "HTML"
LIVE_NOTE = "\n\n💡 Live — no restart needed."

_U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class Reply:
    """A message to send back to the operator's chat."""

    text: str
    parse_mode: Optional[str] = None
    reply_markup: Optional[dict[str, Any]] = None

    def payload(self, chat_id: str) -> dict[str, Any]:
        """Body of a Bot API ``sendMessage`` request for this reply."""
        body: dict[str, Any] = {"chat_id": chat_id, "text": self.text}
        if self.parse_mode is not None:
            body["parse_mode"] = self.parse_mode
        if self.reply_markup is not None:
            body["reply_markup"] = self.reply_markup
        return body


def _to_u64(value: float) -> int:
    """Saturating float-to-unsigned conversion with truncation toward zero."""
    if math.isnan(value) or value <= 0.0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def _parse_float(text: str) -> Optional[float]:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _on_off(flag: bool) -> str:
    return ON_LABEL if flag else OFF_LABEL


def _button(text: str, data: str) -> dict[str, str]:
    return {"text": text, "callback_data": data}


def _back_row() -> list[dict[str, str]]:
    return [_button("🔙 Back", "ignore")]


# ── Menus ────────────────────────────────────────────────────────────


def trading_parameters_view(state: BotState) -> Reply:
    """Overview of the live trading parameters with a button for each."""
    buy = state.buy_amount_sol()
    sl = state.stop_loss() * 100.0
    risk = state.max_risk()
    dynamic = _on_off(state.dynamic_sizing())
    tp = state.tp_trailing()
    trail = state.trailing_stop() * 100.0
    text = (
        "⚙️ Trading Parameters\n───────────────\n"
        f"💸 Buy Amount: {buy:.4f} SOL\n"
        f"🛑 Stop Loss: {sl:.0f}%\n"
        f"🎯 Take Profit: {tp:.1f}x\n"
        f"📉 Trailing Stop: {trail:.0f}%\n"
        f"📈 Dynamic Sizing: {dynamic}\n"
        f"🛡️ Max Risk Score: {risk:.0f}\n\n"
        "Tap any button to change live!"
    )
    keyboard = {
        "inline_keyboard": [
            [_button(f"💸 Buy Amount: {buy:.4f} SOL", "menu_buy_amount")],
            [_button(f"🛑 Stop Loss: {sl:.0f}%", "menu_stop_loss")],
            [_button(f"🎯 Take Profit: {tp:.1f}x", "menu_tp")],
            [_button(f"📉 Trailing Stop: {trail:.0f}%", "menu_trailing")],
            [_button(f"🛡️ Max Risk: {risk:.0f}", "menu_max_risk")],
            [_button(f"📈 Dynamic Sizing: {dynamic}", "toggle_dynamic")],
            [_button("🔙 Close", "ignore")],
        ]
    }
    return Reply(text=text, reply_markup=keyboard)


def buy_amount_menu(state: BotState) -> Reply:
    """Preset and custom choices for the buy amount."""
    keyboard = {
        "inline_keyboard": [
            [_button("0.001 SOL", "buy_0.001"), _button("0.005 SOL", "buy_0.005")],
            [_button("0.01 SOL", "buy_0.01"), _button("0.05 SOL", "buy_0.05")],
            [_button("0.1 SOL", "buy_0.1"), _button("0.5 SOL", "buy_0.5")],
            [_button("✏️ Custom (type amount)", "buy_custom")],
            _back_row(),
        ]
    }
    text = (
        "💸 <b>Set Buy Amount</b>\n──────────────────\n"
        f"📌 Current: <b>{state.buy_amount_sol():.4f} SOL</b>\n\n"
        "Select or type amount:"
    )
    return Reply(text=text, parse_mode=HTML, reply_markup=keyboard)


def stop_loss_menu(state: BotState) -> Reply:
    """Preset and custom choices for the stop loss."""
    keyboard = {
        "inline_keyboard": [
            [_button("20%", "sl_20"), _button("30%", "sl_30"), _button("40%", "sl_40")],
            [_button("50%", "sl_50"), _button("60%", "sl_60"), _button("70%", "sl_70")],
            [_button("✏️ Custom (type %)", "sl_custom")],
            _back_row(),
        ]
    }
    text = (
        "🛑 <b>Set Stop Loss</b>\n──────────────────\n"
        f"📌 Current: <b>{state.stop_loss() * 100.0:.0f}%</b>\n\n"
        "Select or type %:"
    )
    return Reply(text=text, parse_mode=HTML, reply_markup=keyboard)


def max_risk_menu(state: BotState) -> Reply:
    """Preset and custom choices for the maximum total risk score."""
    keyboard = {
        "inline_keyboard": [
            [_button("30", "risk_30"), _button("50", "risk_50"), _button("70", "risk_70")],
            [_button("80", "risk_80"), _button("90", "risk_90"), _button("100", "risk_100")],
            [_button("✏️ Custom (type value)", "risk_custom")],
            _back_row(),
        ]
    }
    text = (
        "🛡️ <b>Set Max Risk Score</b>\n──────────────────\n"
        f"📌 Current: <b>{state.max_risk():.0f}</b>\n\n"
        "Higher = allow riskier tokens:"
    )
    return Reply(text=text, parse_mode=HTML, reply_markup=keyboard)


def take_profit_menu(state: BotState) -> Reply:
    """Preset and custom choices for the take-profit multiplier."""
    keyboard = {
        "inline_keyboard": [
            [_button("1.5x", "tp_1.5"), _button("2.0x", "tp_2.0"), _button("3.0x", "tp_3.0")],
            [_button("5.0x", "tp_5.0"), _button("10.0x", "tp_10.0"), _button("20.0x", "tp_20.0")],
            [_button("✏️ Custom (type multiplier)", "tp_custom")],
            _back_row(),
        ]
    }
    text = (
        "🎯 <b>Set Take Profit</b>\n──────────────────\n"
        f"📌 Current: <b>{state.tp_trailing():.1f}x</b>\n\n"
        "Select multiplier (e.g. 2.0 = sell at 2x buy price):"
    )
    return Reply(text=text, parse_mode=HTML, reply_markup=keyboard)


def trailing_stop_menu(state: BotState) -> Reply:
    """Preset and custom choices for the trailing stop."""
    keyboard = {
        "inline_keyboard": [
            [_button("70%", "trail_70"), _button("80%", "trail_80"), _button("85%", "trail_85")],
            [_button("90%", "trail_90"), _button("95%", "trail_95")],
            [_button("✏️ Custom (type %)", "trail_custom")],
            _back_row(),
        ]
    }
    text = (
        "📉 <b>Set Trailing Stop</b>\n──────────────────\n"
        f"📌 Current: <b>{state.trailing_stop() * 100.0:.0f}%</b>\n\n"
        "Sell if price drops below this % of peak:"
    )
    return Reply(text=text, parse_mode=HTML, reply_markup=keyboard)


# ── Free-text numeric input ──────────────────────────────────────────


def apply_numeric_input(state: BotState, text: str) -> Optional[Reply]:
    """Apply a typed number to the parameter the operator is currently setting.

    Returns the confirmation or error reply, or None when the text is not a
    number or a private-key import is pending.
    """
    if state.input_state is InputState.IMPORT_KEY:
        return None
    val = _parse_float(text.strip())
    if val is None:
        return None

    mode = state.input_state
    if mode is InputState.STOP_LOSS:
        if 0.0 < val <= 100.0:
            state.stop_loss_bps = _to_u64(val / 100.0 * 10_000.0)
            state.input_state = InputState.NONE
            return Reply(f"✅ Stop Loss set to <b>{val:.0f}%</b>{LIVE_NOTE}", HTML)
        return Reply("❌ Invalid. Enter 1 - 100 (%)")
    if mode is InputState.MAX_RISK:
        if 0.0 <= val <= 100.0:
            state.max_risk_override = _to_u64(val)
            state.input_state = InputState.NONE
            return Reply(f"✅ Max Risk Score set to <b>{val:.0f}</b>{LIVE_NOTE}", HTML)
        return Reply("❌ Invalid. Enter 0 - 100")
    if mode is InputState.TP_TRAILING:
        if 1.0 < val <= 100.0:
            state.tp_trailing_milli = _to_u64(val * 1_000.0)
            state.input_state = InputState.NONE
            return Reply(f"✅ Take Profit set to <b>{val:.1f}x</b>{LIVE_NOTE}", HTML)
        return Reply("❌ Invalid. Enter 1.1 - 100.0 (multiplier)")
    if mode is InputState.TRAILING_STOP:
        if 0.0 < val <= 100.0:
            state.trailing_stop_milli = _to_u64(val / 100.0 * 1_000.0)
            state.input_state = InputState.NONE
            return Reply(f"✅ Trailing Stop set to <b>{val:.0f}%</b>{LIVE_NOTE}", HTML)
        return Reply("❌ Invalid. Enter 1 - 100 (%)")

    if 0.0 < val <= 10.0:
        state.buy_amount_lamports = _to_u64(val * LAMPORTS_PER_SOL)
        return Reply(f"✅ Buy amount set to <b>{val:.4f} SOL</b>{LIVE_NOTE}", HTML)
    return Reply("❌ Invalid. Enter 0.0001 - 10.0 SOL")


# ── Callback presets ─────────────────────────────────────────────────


@dataclass(frozen=True)
class _Preset:
    prefix: str
    custom_state: InputState
    custom_prompt: str
    apply: Callable[[BotState, float], None]
    confirm: Callable[[float], str]


def _set_buy(state: BotState, v: float) -> None:
    state.buy_amount_lamports = _to_u64(v * 1e9)


def _set_sl(state: BotState, v: float) -> None:
    state.stop_loss_bps = _to_u64(v / 100.0 * 10_000.0)


def _set_risk(state: BotState, v: float) -> None:
    state.max_risk_override = _to_u64(v)


def _set_tp(state: BotState, v: float) -> None:
    state.tp_trailing_milli = _to_u64(v * 1_000.0)


def _set_trail(state: BotState, v: float) -> None:
    state.trailing_stop_milli = _to_u64(v / 100.0 * 1_000.0)


_PRESETS: tuple[_Preset, ...] = (
    _Preset(
        "buy_",
        InputState.NONE,
        "✏️ <b>Custom Buy Amount</b>\n\nType the amount in SOL (e.g. <code>0.005</code>):",
        _set_buy,
        lambda v: f"✅ Buy amount: <b>{v:.4f} SOL</b> 💡 Live",
    ),
    _Preset(
        "sl_",
        InputState.STOP_LOSS,
        "✏️ <b>Custom Stop Loss</b>\n\nType percent (e.g. <code>45</code>):",
        _set_sl,
        lambda v: f"✅ Stop Loss: <b>{v:.0f}%</b> 💡 Live",
    ),
    _Preset(
        "risk_",
        InputState.MAX_RISK,
        "✏️ <b>Custom Max Risk</b>\n\nType score 0-100 (e.g. <code>60</code>):",
        _set_risk,
        lambda v: f"✅ Max Risk Score: <b>{v:.0f}</b> 💡 Live",
    ),
    _Preset(
        "tp_",
        InputState.TP_TRAILING,
        "✏️ <b>Custom Take Profit</b>\n\nType multiplier (e.g. <code>2.5</code> for 2.5x):",
        _set_tp,
        lambda v: f"✅ Take Profit: <b>{v:.1f}x</b> 💡 Live",
    ),
    _Preset(
        "trail_",
        InputState.TRAILING_STOP,
        "✏️ <b>Custom Trailing Stop</b>\n\n"
        "Type percent (e.g. <code>85</code> = sell if drops below 85% of peak):",
        _set_trail,
        lambda v: f"✅ Trailing Stop: <b>{v:.0f}%</b> 💡 Live",
    ),
)


def apply_preset(state: BotState, data: str) -> Optional[Reply]:
    """Apply a trading-parameter callback (preset, custom prompt or dynamic toggle).

    Returns the reply to send, or None when ``data`` is not such a callback.
    """
    if data == "toggle_dynamic":
        current = state.dynamic_sizing()
        state.dynamic_sizing_override = not current
        return Reply(f"📈 Dynamic Sizing: <b>{_on_off(not current)}</b>{LIVE_NOTE}", HTML)

    for preset in _PRESETS:
        if not data.startswith(preset.prefix):
            continue
        if data == f"{preset.prefix}custom":
            state.input_state = preset.custom_state
            return Reply(preset.custom_prompt, HTML)
        value = _parse_float(data[len(preset.prefix):])
        if value is None:
            return None
        preset.apply(state, value)
        return Reply(preset.confirm(value), HTML)
    return None


# ── Anti-rug settings toggles ────────────────────────────────────────

_TOGGLES: dict[str, str] = {
    "toggle_master": "master_switch",
    "toggle_warn": "warn_only_mode",
    "toggle_m1": "enable_m1_holder",
    "toggle_m2": "enable_m2_panic",
    "toggle_m3": "enable_m3_dev",
    "toggle_m4": "enable_m4_genesis",
    "toggle_m5": "enable_m5_metadata",
}

_SETTERS: dict[str, tuple[str, int]] = {
    **{f"set_h{v}": ("live_holder_pct", v) for v in (30, 40, 50)},
    **{f"set_a{v}": ("live_dev_age", v) for v in (0, 3, 6, 12, 24)},
    **{f"set_t{v}": ("live_dev_txs", v) for v in (0, 5, 10)},
}


def apply_toggle(state: BotState, data: str) -> bool:
    """Apply an anti-rug settings callback; True if ``data`` was one.

    The caller refreshes the settings menu when this returns True.
    """
    attr = _TOGGLES.get(data)
    if attr is not None:
        setattr(state, attr, not getattr(state, attr))
        return True
    setter = _SETTERS.get(data)
    if setter is not None:
        name, value = setter
        setattr(state, name, value)
        return True
    return False