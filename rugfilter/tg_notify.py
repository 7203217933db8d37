"""Telegram notifications for filter decisions, trades and price events."""

from __future__ import annotations

import logging
import os
from typing import Optional, Sequence

import httpx

log = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"
SEND_TIMEOUT_SECS = 5.0


def shorten_mint(mint: str) -> str:
    """Abbreviate long addresses to their first six and last four characters."""
    if len(mint) > 12:
        return f"{mint[:6]}...{mint[-4:]}"
    return mint


def format_filter_result(
    mint: str,
    creator: str,
    token_name: str,
    passed: bool,
    risk_score: float,
    buy_multiplier: float,
    reasons: Sequence[str],
) -> str:
    """HTML message describing a filter decision."""
    if not passed:
        emoji, status = "🔴", "REJECTED"
    elif risk_score > 0.0:
        emoji, status = "🟡", "PASS (WARN)"
    else:
        emoji, status = "🟢", "PASS (CLEAN)"

    reasons_text = "\n".join(f"• {r}" for r in reasons) if reasons else "No issues"
    multiplier_text = (
        f"\n💰 <b>Buy Multiplier:</b> {buy_multiplier * 100.0:.0f}%"
        if passed and buy_multiplier < 1.0
        else ""
    )
    label = token_name or shorten_mint(mint)
    return (
        f"{emoji} <b>Phase 2 Filter: {status}</b>\n\n"
        f"🪙 <b>Token:</b> {label}\n"
        f"🔑 <b>Mint:</b> <code>{mint}</code>\n"
        f"👤 <b>Creator:</b> <code>{creator}</code>\n"
        f"⚠️ <b>Risk Score:</b> {risk_score:.0f}\n"
        f"{multiplier_text}\n"
        f"📋 <b>Details:</b>\n{reasons_text}\n\n"
        f"🔗 <a href=\"https://pump.fun/{mint}\">Pump.fun</a> | "
        f"<a href=\"https://solscan.io/token/{mint}\">Solscan</a>"
    )


def _field_after(tag: str, marker: str) -> Optional[str]:
    parts = tag.split(marker)
    if len(parts) < 2:
        return None
    return parts[1].split(" |")[0]


def format_trade_result(action: str, success: bool, signature: str, tag: str) -> str:
    """HTML message for a confirmed or failed BUY/SELL transaction."""
    emoji, status = ("✅", "SUCCESS") if success else ("❌", "FAILED")
    mint_info = _field_after(tag, "MINT: ")
    if mint_info is None:
        mint_info = tag.split(" |")[0]
    sol_info = _field_after(tag, "Buy: ")
    if sol_info is None:
        sol_info = _field_after(tag, "AMT: ") or ""
    return (
        f"{emoji} <b>{action} {status}</b>\n\n"
        f"🔑 <b>Mint:</b> <code>{mint_info}</code>\n"
        f"💰 <b>Amount:</b> {sol_info}\n"
        f"🔗 <a href=\"https://solscan.io/tx/{signature}\">View on Solscan</a>"
    )


_PRICE_EVENTS = {
    "SL": ("🔴", "Stop Loss Triggered"),
    "TP": ("🟢", "Take Profit Triggered"),
    "TRAILING": ("🟡", "Trailing Stop Triggered"),
}


def format_price_event(
    event: str, mint: str, buy_price: float, current_price: float, extra: str
) -> str:
    """HTML message for a stop-loss, take-profit or trailing-stop trigger."""
    pnl_pct = (current_price / buy_price - 1.0) * 100.0 if buy_price > 0.0 else 0.0
    emoji, title = _PRICE_EVENTS.get(event, ("⚪", event))
    sign = "+" if pnl_pct >= 0.0 else ""
    return (
        f"{emoji} <b>{title}</b>\n\n"
        f"🔑 <b>Mint:</b> <code>{shorten_mint(mint)}</code>\n"
        f"📋 <b>Detail:</b> {extra}\n"
        f"📈 <b>PnL:</b> {sign}{pnl_pct:.1f}%\n"
        f"🔗 <a href=\"https://solscan.io/token/{mint}\">View on Solscan</a>"
    )


class TelegramNotifier:
    """Sends HTML messages to one Telegram chat through the Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        http_client: Optional[httpx.AsyncClient] = None,
        api_base: str = DEFAULT_API_BASE,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self._http_client = http_client

    @classmethod
    def from_env(cls) -> TelegramNotifier:
        """Build from the TG_BOT_TOKEN and TG_CHAT_ID environment variables."""
        return cls(os.environ.get("TG_BOT_TOKEN", ""), os.environ.get("TG_CHAT_ID", ""))

    @property
    def enabled(self) -> bool:
        """True when both the bot token and the chat id are set."""
        return bool(self.bot_token) and bool(self.chat_id)

    async def send(self, text: str) -> bool:
        """Send ``text``; True if Telegram accepted it. Failures are only logged."""
        if not self.enabled:
            return False
        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=payload, timeout=SEND_TIMEOUT_SECS
                )
            else:
                async with httpx.AsyncClient(timeout=SEND_TIMEOUT_SECS) as client:
                    response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            log.debug("Telegram send failed: %s", exc)
            return False
        return response.is_success

    async def send_filter_result(
        self,
        mint: str,
        creator: str,
        token_name: str,
        passed: bool,
        risk_score: float,
        buy_multiplier: float,
        reasons: Sequence[str],
    ) -> bool:
        """Notify about a filter decision."""
        if not self.enabled:
            return False
        return await self.send(
            format_filter_result(
                mint, creator, token_name, passed, risk_score, buy_multiplier, reasons
            )
        )

    async def send_trade_result(
        self, action: str, success: bool, signature: str, tag: str
    ) -> bool:
        """Notify about a BUY or SELL transaction outcome."""
        if not self.enabled:
            return False
        return await self.send(format_trade_result(action, success, signature, tag))

    async def send_price_event(
        self, event: str, mint: str, buy_price: float, current_price: float, extra: str
    ) -> bool:
        """Notify about a stop-loss, take-profit or trailing-stop trigger."""
        if not self.enabled:
            return False
        return await self.send(format_price_event(event, mint, buy_price, current_price, extra))