import time
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from .dispatcher import CommandDispatcher

INTERNAL_ERROR_REPLY = "Internal error."


class TelegramPoller:
    """
    Long-polling transport for the Telegram Bot API.
    Each text message goes through the dispatcher and gets exactly one reply.
    Poll failures back off (1s doubling, 10s cap) and never stop the loop.
    """

    def __init__(
        self,
        bot_token: str,
        dispatcher: CommandDispatcher,
        api_base: str = "https://api.telegram.org",
        poll_timeout_sec: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.dispatcher = dispatcher
        self.poll_timeout_sec = poll_timeout_sec
        self.session = session or requests.Session()
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self._offset: Optional[int] = None
        self._backoff = 1.0

    def _call(self, method: str, payload: Dict[str, Any], timeout: float) -> Any:
        r = self.session.post(f"{self._url}/{method}", json=payload, timeout=timeout)
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, dict):
            raise requests.RequestException(f"telegram {method} returned malformed body")
        if not data.get("ok"):
            raise requests.RequestException(f"telegram {method} failed: {data.get('description')}")
        return data.get("result")

    def fetch_updates(self) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"timeout": self.poll_timeout_sec, "allowed_updates": ["message"]}
        if self._offset is not None:
            payload["offset"] = self._offset
        updates = self._call("getUpdates", payload, timeout=self.poll_timeout_sec + 10) or []
        if not isinstance(updates, list):
            raise requests.RequestException("telegram getUpdates returned malformed result")
        updates = [u for u in updates if isinstance(u, dict)]
        if updates:
            self._offset = max(u.get("update_id", 0) for u in updates) + 1
        return updates

    def send_message(self, chat_id, text: str) -> None:
        self._call("sendMessage", {"chat_id": chat_id, "text": text}, timeout=10)

    def handle_update(self, update: Dict[str, Any]) -> Optional[str]:
        msg = update.get("message") or {}
        text = msg.get("text")
        chat_id = (msg.get("chat") or {}).get("id")
        if chat_id is None:
            return None
        sender = (msg.get("from") or {}).get("id")
        requester_id = "" if sender is None else str(sender)
        try:
            if text:
                reply = self.dispatcher.handle(requester_id, text).reply
            else:
                # stickers, photos: nothing to run, but strangers still get the denial
                denied = self.dispatcher.screen(requester_id)
                if denied is None:
                    return None
                reply = denied.reply
        except Exception:
            # one broken command must not take the bot down
            logger.exception("Unhandled error for message {!r}", text)
            reply = INTERNAL_ERROR_REPLY
        try:
            self.send_message(chat_id, reply)
        except requests.RequestException as exc:
            logger.error("Failed to send reply to chat {}: {}", chat_id, exc)
        return reply

    def poll_once(self) -> int:
        """Fetch one batch of updates and answer them. Returns the number handled."""
        try:
            updates = self.fetch_updates()
        except requests.RequestException as exc:
            logger.warning("Telegram poll failed: {} (retry {:.0f}s)", exc, self._backoff)
            time.sleep(self._backoff)
            self._backoff = min(self._backoff * 2.0, 10.0)
            return 0
        self._backoff = 1.0
        handled = 0
        for update in updates:
            if self.handle_update(update) is not None:
                handled += 1
        return handled

    def run_forever(self) -> None:
        logger.info("Bot started")
        try:
            while True:
                self.poll_once()
        except KeyboardInterrupt:
            logger.info("Stopped.")
