"""Outbound alert delivery."""

from radar.notify.telegram import TelegramNotifier

__all__ = ["TelegramNotifier"]
