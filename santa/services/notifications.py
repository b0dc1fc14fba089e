# santa/services/notifications.py
# -----------------------------------------------------------------------------
# Уведомления в Telegram (python-telegram-bot).
# Отправляются только ПОСЛЕ commit, как BackgroundTasks FastAPI. Ошибка отправки
# пишется в лог и ничего не откатывает.
#
# Нотификатор создаётся на старте приложения (santa.main) и лежит в app.state;
# в ручки попадает через зависимость get_notifier.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import os
from html import escape
from typing import List, Optional, Tuple

from fastapi import Request
from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

log = logging.getLogger(__name__)

# (telegram_id, имя получателя)
DrawDelivery = Tuple[int, str]


class Notifier:
    """Интерфейс: реализации ниже. Методы не бросают исключений."""

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def draw_completed(self, event_name: str, deliveries: List[DrawDelivery]) -> int:
        raise NotImplementedError

    async def gift_reserved(self, telegram_id: int, item_title: str, reserved_by: str) -> bool:
        raise NotImplementedError


class NullNotifier(Notifier):
    """Уведомления выключены: только debug-лог."""

    async def draw_completed(self, event_name: str, deliveries: List[DrawDelivery]) -> int:
        log.debug("notifications disabled: draw_completed %r for %d givers", event_name, len(deliveries))
        return 0

    async def gift_reserved(self, telegram_id: int, item_title: str, reserved_by: str) -> bool:
        log.debug("notifications disabled: gift_reserved for %s", telegram_id)
        return False


class TelegramNotifier(Notifier):
    def __init__(self, bot: Bot):
        self._bot = bot

    async def start(self) -> None:
        try:
            await self._bot.initialize()
        except TelegramError as e:
            # без сети бот не инициализируется; send_message тогда падает в лог
            log.warning("telegram bot initialize failed: %s", e)

    async def stop(self) -> None:
        try:
            await self._bot.shutdown()
        except TelegramError as e:
            log.warning("telegram bot shutdown failed: %s", e)

    async def _send(self, telegram_id: int, text: str) -> bool:
        try:
            await self._bot.send_message(chat_id=telegram_id, text=text, parse_mode=ParseMode.HTML)
            return True
        except TelegramError as e:
            log.warning("DM failed to %s: %s", telegram_id, e)
            return False

    async def draw_completed(self, event_name: str, deliveries: List[DrawDelivery]) -> int:
        sent = 0
        for telegram_id, receiver_name in deliveries:
            text = (
                "🎅 <b>Жеребьёвка завершена!</b>\n\n"
                f"Событие: \"{escape(event_name)}\"\n\n"
                f"Вы дарите подарок: <b>{escape(receiver_name)}</b>\n\n"
                "Откройте приложение, чтобы увидеть вишлист получателя! 🎁"
            )
            if await self._send(telegram_id, text):
                sent += 1
        log.info("draw notifications for %r: %d/%d sent", event_name, sent, len(deliveries))
        return sent

    async def gift_reserved(self, telegram_id: int, item_title: str, reserved_by: str) -> bool:
        text = (
            "🎁 <b>Подарок зарезервирован!</b>\n\n"
            f"Пользователь <b>{escape(reserved_by)}</b> зарезервировал ваш подарок:\n"
            f"\"{escape(item_title)}\"\n\n"
            "Скоро вы получите свой подарок! 🎉"
        )
        return await self._send(telegram_id, text)


def build_notifier() -> Notifier:
    """
    NOTIFICATIONS_ENABLED=1 и TELEGRAM_BOT_TOKEN - реальный бот,
    иначе NullNotifier.
    """
    token: Optional[str] = os.getenv("TELEGRAM_BOT_TOKEN")
    if os.getenv("NOTIFICATIONS_ENABLED") != "1" or not token:
        log.info("telegram notifications disabled")
        return NullNotifier()
    return TelegramNotifier(Bot(token=token))


def get_notifier(request: Request) -> Notifier:
    """FastAPI-зависимость: нотификатор из app.state (создаётся на startup)."""
    notifier = getattr(request.app.state, "notifier", None)
    return notifier if notifier is not None else NullNotifier()
