"""Telegram bot that lets an operator control the sniper from a chat."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from rugfilter.live_settings import (
    BotState,
    BotStats,
    InputState,
    build_dashboard_inline_keyboard,
    build_dashboard_text,
    build_reply_keyboard,
    build_settings_keyboard,
    build_settings_text,
)
from rugfilter.telegram_menus import (
    Reply,
    apply_numeric_input,
    apply_preset,
    apply_toggle,
    buy_amount_menu,
    max_risk_menu,
    stop_loss_menu,
    take_profit_menu,
    trading_parameters_view,
    trailing_stop_menu,
)

log = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"
LONG_POLL_SECS = 30
HTTP_TIMEOUT_SECS = LONG_POLL_SECS + 10.0

_PERIODS = {
    "time_today": "Today",
    "time_7d": "7 Days",
    "time_30d": "30 Days",
    "time_all": "All Time",
}

_MENUS: dict[str, Callable[[BotState], Reply]] = {
    "menu_buy_amount": buy_amount_menu,
    "menu_stop_loss": stop_loss_menu,
    "menu_max_risk": max_risk_menu,
    "menu_tp": take_profit_menu,
    "menu_trailing": trailing_stop_menu,
}


def _chat_id_of(obj: Any) -> str:
    """Chat id of a message object as text; "0" when missing."""
    chat = obj.get("chat") if isinstance(obj, dict) else None
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    if isinstance(chat_id, int) and not isinstance(chat_id, bool):
        return str(chat_id)
    return "0"


def _str_field(obj: Any, key: str) -> str:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, str) else ""


async def _nothing_to_sell() -> int:
    return 0


class TelegramControlBot:
    """Long-polls the Bot API and applies the operator's commands to the bot state.

    ``held_positions`` reports how many purchased tokens are still monitored;
    ``sell_all`` submits sells for every held token and returns how many.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        state: Optional[BotState] = None,
        stats: Optional[BotStats] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        api_base: str = DEFAULT_API_BASE,
        held_positions: Optional[Callable[[], int]] = None,
        sell_all: Optional[Callable[[], Awaitable[int]]] = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = str(chat_id)
        self.state = state if state is not None else BotState()
        self.stats = stats if stats is not None else BotStats()
        self.api_base = api_base.rstrip("/")
        self.poll_interval = poll_interval
        self.offset = 0
        self._http_client = http_client
        self._held_positions = held_positions or (lambda: 0)
        self._sell_all = sell_all or _nothing_to_sell

    # ── HTTP ─────────────────────────────────────────────────────────

    async def _request(
        self,
        verb: str,
        method: str,
        params: Optional[dict[str, Any]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> Optional[httpx.Response]:
        url = f"{self.api_base}/bot{self.bot_token}/{method}"
        try:
            if self._http_client is not None:
                return await self._http_client.request(verb, url, params=params, json=payload)
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECS) as client:
                return await client.request(verb, url, params=params, json=payload)
        except httpx.HTTPError as exc:
            log.error("[TG_CONTROL] HTTP request failed: %s", exc)
            return None

    async def _send(self, reply: Reply) -> None:
        await self._request("POST", "sendMessage", payload=reply.payload(self.chat_id))

    async def _send_with_keyboard(self, text: str) -> None:
        await self._send(Reply(text=text, reply_markup=build_reply_keyboard(self.state)))

    async def _get_updates(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        response = await self._request("GET", "getUpdates", params=params)
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            log.error("[TG_CONTROL] Failed to parse JSON response")
            return None
        return body if isinstance(body, dict) else None

    # ── Views ────────────────────────────────────────────────────────

    async def _send_dashboard(self, period: str) -> None:
        await self._send(
            Reply(
                text=build_dashboard_text(self.stats, period),
                parse_mode="Markdown",
                reply_markup=build_dashboard_inline_keyboard(),
            )
        )
        await self._send_with_keyboard("Options loaded below 👇")

    async def _update_dashboard(self, message_id: int, period: str) -> None:
        payload = {
            "chat_id": self.chat_id,
            "message_id": message_id,
            "text": build_dashboard_text(self.stats, period),
            "parse_mode": "Markdown",
            "reply_markup": build_dashboard_inline_keyboard(),
        }
        await self._request("POST", "editMessageText", payload=payload)

    async def _send_settings_menu(self) -> None:
        await self._send(
            Reply(
                text=build_settings_text(self.state),
                reply_markup=build_settings_keyboard(self.state),
            )
        )

    async def _update_settings_menu(self, message_id: int) -> None:
        payload = {
            "chat_id": self.chat_id,
            "message_id": message_id,
            "text": build_settings_text(self.state),
            "reply_markup": build_settings_keyboard(self.state),
        }
        await self._request("POST", "editMessageText", payload=payload)

    # ── Handlers ─────────────────────────────────────────────────────

    async def handle_text(self, text: str) -> None:
        """React to a text message or reply-keyboard button from the operator."""
        state = self.state
        if text.startswith("/start") or "Dashboard" in text:
            await self._send_dashboard("Today")
        elif "Trading parameters" in text:
            await self._send(trading_parameters_view(state))
        elif "Anti-Rug" in text:
            await self._send_settings_menu()
        elif text.startswith("/stats"):
            await self._send_dashboard("Today")
        elif "Start" in text:
            state.bot_is_running = True
            await self._send_with_keyboard("✅ Bot is STARTED. Ready to snipe!")
        elif "Stop" in text or text.startswith("/stop"):
            state.bot_is_running = False
            held = self._held_positions()
            if held > 0:
                msg = (
                    "🛑 Bot STOPPED — no new buys.\n\n"
                    f"📊 Monitoring {held} token(s) (SL/TP/timeout still active).\n\n"
                    "💡 Press 📤 Sell All to dump everything."
                )
            else:
                msg = "🛑 Bot STOPPED. No tokens held."
            await self._send_with_keyboard(msg)
        elif text.startswith("/sell_all") or "Sell All" in text:
            count = await self._sell_all()
            msg = f"📤 Selling all {count} token(s)..." if count > 0 else "✅ No tokens to sell."
            await self._send_with_keyboard(msg)
        elif state.input_state is InputState.IMPORT_KEY:
            # Key imports are not handled here; drop the pending request.
            state.input_state = InputState.NONE
        else:
            reply = apply_numeric_input(state, text)
            if reply is not None:
                await self._send(reply)

    async def handle_callback(self, message_id: int, data: str) -> None:
        """React to an inline-keyboard button press."""
        period = _PERIODS.get(data)
        if period is not None:
            await self._update_dashboard(message_id, period)
            return
        menu = _MENUS.get(data)
        if menu is not None:
            await self._send(menu(self.state))
            return
        if apply_toggle(self.state, data):
            await self._update_settings_menu(message_id)
            return
        reply = apply_preset(self.state, data)
        if reply is not None:
            await self._send(reply)

    async def handle_update(self, update: dict[str, Any]) -> None:
        """Process one update object; only the configured chat is obeyed."""
        update_id = update.get("update_id")
        if isinstance(update_id, int) and not isinstance(update_id, bool):
            self.offset = update_id + 1

        message = update.get("message")
        if isinstance(message, dict):
            text = _str_field(message, "text")
            sender = _chat_id_of(message)
            log.info("[TG_CONTROL] Received msg: '%s' from chat_id: %s", text, sender)
            if sender == self.chat_id:
                await self.handle_text(text)
            else:
                log.info(
                    "[TG_CONTROL] Ignored msg from unauthorized chat_id: %s (expected: %s)",
                    sender, self.chat_id,
                )

        callback = update.get("callback_query")
        if isinstance(callback, dict):
            data = _str_field(callback, "data")
            callback_id = _str_field(callback, "id")
            cb_message = callback.get("message")
            sender = _chat_id_of(cb_message)
            message_id = cb_message.get("message_id") if isinstance(cb_message, dict) else None
            if not isinstance(message_id, int):
                message_id = 0
            if sender == self.chat_id:
                await self.handle_callback(message_id, data)
                await self._request(
                    "POST",
                    "answerCallbackQuery",
                    payload={"callback_query_id": callback_id},
                )

    # ── Polling ──────────────────────────────────────────────────────

    async def flush_pending(self) -> int:
        """Skip updates queued before start-up; return the new offset."""
        body = await self._get_updates({"offset": -1, "limit": 1})
        results = body.get("result") if body else None
        if isinstance(results, list) and results:
            last_id = results[-1].get("update_id") if isinstance(results[-1], dict) else None
            if isinstance(last_id, int):
                self.offset = last_id + 1
                log.info("[TG_CONTROL] Flushed old updates, starting from offset %d", self.offset)
        return self.offset

    async def poll_once(self) -> int:
        """Fetch and handle one batch of updates; return how many were handled."""
        body = await self._get_updates({"offset": self.offset, "timeout": LONG_POLL_SECS})
        if body is None:
            return 0
        results = body.get("result")
        if not isinstance(results, list):
            if "description" in body:
                log.error("[TG_CONTROL] API Error: %s", body["description"])
            return 0
        handled = 0
        for update in results:
            if isinstance(update, dict):
                await self.handle_update(update)
                handled += 1
        return handled

    async def run(self) -> None:
        """Poll for updates forever."""
        log.info("Telegram Control Bot Task Started...")
        await self.flush_pending()
        while True:
            await self.poll_once()
            await asyncio.sleep(self.poll_interval)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the control bot using TG_BOT_TOKEN and TG_CHAT_ID from the environment."""
    parser = argparse.ArgumentParser(description="Telegram control bot for the sniper.")
    parser.add_argument("--api-base", default=DEFAULT_API_BASE, help="Bot API base URL")
    parser.add_argument(
        "--poll-interval", type=float, default=1.0, help="seconds between polls"
    )
    args = parser.parse_args(argv)

    bot_token = os.environ.get("TG_BOT_TOKEN", "")
    chat_id = os.environ.get("TG_CHAT_ID", "")
    if not bot_token or not chat_id:
        log.error("TG_BOT_TOKEN and TG_CHAT_ID must be set")
        return 1

    logging.basicConfig(level=logging.INFO)
    bot = TelegramControlBot(
        bot_token, chat_id, api_base=args.api_base, poll_interval=args.poll_interval
    )
    try:
        asyncio.run(bot.run())
    except KeyboardInterrupt:
        pass
    return 0