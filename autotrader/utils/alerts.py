"""
Status Reporting

Reporters are plain callables taking one line of human-readable text.
They may be sync or async. DiscordAlerter is the webhook-backed reporter
used by the CLI.

Sends notifications to Discord for:
- Trade executions and failures
- Supervised-mode decisions
- Redemptions
- Controller lifecycle
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional
import asyncio
import inspect
import logging
import os

import requests

logger = logging.getLogger(__name__)

Reporter = Callable[[str], Any]

GREEN = 0x00ff00
RED = 0xff0000
YELLOW = 0xffff00
BLUE = 0x3498db


async def deliver(reporter: Optional[Reporter], text: str) -> None:
    """Send text to a reporter. Reporter failures are logged, never raised."""
    if reporter is None:
        return
    try:
        result = reporter(text)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Status report failed: {e}")


def _color_for(text: str) -> int:
    upper = text.upper()
    if "FAILED" in upper or "ERROR" in upper:
        return RED
    if "[MONITOR]" in upper:
        return YELLOW
    if "EXECUTED" in upper or "REDEEMED" in upper:
        return GREEN
    return BLUE


class DiscordAlerter:
    """Send trading alerts to a Discord webhook."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 10.0):
        self.webhook_url = webhook_url or os.getenv("DISCORD_WEBHOOK_URL")
        self.timeout = timeout

        if not self.webhook_url:
            logger.info("No Discord webhook URL configured; alerts go to the log only")

    def send_alert(self, title: str, description: str, color: int = GREEN, fields: Optional[list] = None) -> bool:
        """
        Send a Discord embed.

        Args:
            title: Alert title
            description: Alert description
            color: Embed color
            fields: List of {"name": str, "value": str, "inline": bool}

        Returns:
            True when the webhook accepted the message
        """
        if not self.webhook_url:
            return False

        embed = {
            "title": title,
            "description": description[:4000],
            "color": color,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "fields": fields or [],
        }

        try:
            response = requests.post(self.webhook_url, json={"embeds": [embed]}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Discord alert error: {e}")
            return False

        if response.status_code not in (200, 204):
            logger.warning(f"Discord alert failed: {response.status_code}")
            return False
        return True

    async def report(self, text: str) -> None:
        """Reporter entry point: log the line and forward it to Discord."""
        logger.info(f"REPORT: {text}")
        title = text.split(":", 1)[0][:256] if ":" in text else "Autonomous Trader"
        await asyncio.to_thread(self.send_alert, title, text, _color_for(text))
