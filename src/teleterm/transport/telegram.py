"""Telegram Bot API transport.

Speaks the HTTPS Bot API directly with httpx: long-polls ``getUpdates``
for private messages and button presses and sends replies with
``sendMessage``. Only the handful of methods the bot needs are covered.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from teleterm.domain.models import InboundRequest
from teleterm.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


def parse_update(update: dict[str, Any]) -> InboundRequest | None:
    """Turn a raw update into an InboundRequest, or None if irrelevant."""
    callback = update.get("callback_query")
    if callback is not None:
        sender = callback.get("from") or {}
        message = callback.get("message") or {}
        chat = message.get("chat") or {}
        return InboundRequest(
            sender_id=sender.get("id", 0),
            sender_username=sender.get("username", ""),
            chat_id=chat.get("id", sender.get("id", 0)),
            is_callback=True,
            callback_id=str(callback.get("id", "")),
            callback_data=callback.get("data", ""),
        )

    message = update.get("message")
    if message is None or "text" not in message:
        return None
    chat = message.get("chat") or {}
    if chat.get("type", "private") != "private":
        logger.debug("Ignoring non-private message in chat %s", chat.get("id"))
        return None
    sender = message.get("from") or {}
    return InboundRequest(
        sender_id=sender.get("id", 0),
        sender_username=sender.get("username", ""),
        chat_id=chat.get("id", 0),
        text=message["text"],
    )


class TelegramTransport(Transport):
    """Bot API client using long polling."""

    def __init__(
        self,
        token: str,
        api_base_url: str = "https://api.telegram.org",
        poll_timeout: int = 30,
        http_timeout: float = 45.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"{api_base_url.rstrip('/')}/bot{token}"
        self._poll_timeout = poll_timeout
        self._http_timeout = http_timeout
        self._http_transport = http_transport
        self._client: httpx.AsyncClient | None = None
        self._offset = 0

    async def connect(self) -> None:
        """Create the HTTP client and check the token with ``getMe``."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._http_timeout,
            transport=self._http_transport,
        )
        try:
            me = await self._call("getMe")
        except TransportError:
            await self._client.aclose()
            self._client = None
            raise
        logger.info("Connected to Telegram as @%s", me.get("username", "?"))

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Telegram")

    async def _call(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        """POST a Bot API method and return its ``result``."""
        if self._client is None:
            raise TransportError("Not connected", method=method)
        try:
            resp = await self._client.post(f"/{method}", json=payload or {})
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError(f"{method} failed: {e}", method=method) from e
        if not data.get("ok"):
            raise TransportError(
                f"{method} failed: {data.get('description', resp.status_code)}", method=method
            )
        return data.get("result")

    async def poll(self) -> list[InboundRequest]:
        updates = await self._call(
            "getUpdates",
            {
                "offset": self._offset,
                "timeout": self._poll_timeout,
                "allowed_updates": ALLOWED_UPDATES,
            },
        )
        requests: list[InboundRequest] = []
        for update in updates or []:
            self._offset = max(self._offset, update.get("update_id", 0) + 1)
            request = parse_update(update)
            if request is not None:
                requests.append(request)
        return requests

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        button: tuple[str, str] | None = None,
    ) -> int:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if button is not None:
            label, data = button
            payload["reply_markup"] = {
                "inline_keyboard": [[{"text": label, "callback_data": data}]]
            }
        result = await self._call("sendMessage", payload)
        message_id = int(result["message_id"])
        logger.debug("Sent message %d to chat %d", message_id, chat_id)
        return message_id

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def answer_callback(self, callback_id: str) -> None:
        await self._call("answerCallbackQuery", {"callback_query_id": callback_id})
