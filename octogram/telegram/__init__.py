"""Telegram delivery."""

from octogram.telegram.sender import TelegramSender

__all__ = ["TelegramSender"]
