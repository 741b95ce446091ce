"""
Password-reset link delivery.

The auth service hands the plaintext reset link to a delivery object exactly
once. No mail transport ships with the service; the default delivery records
that a link was issued and, outside production, logs the link so it can be
used during development.
"""

from __future__ import annotations

import logging
from typing import Protocol

from fastapi import Depends

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ResetLinkDelivery(Protocol):
    def send_reset_link(self, email: str, reset_url: str) -> None:
        ...


class LoggingResetLinkDelivery:
    def __init__(self, expose_links: bool) -> None:
        self.expose_links = expose_links

    def send_reset_link(self, email: str, reset_url: str) -> None:
        if self.expose_links:
            logger.warning(
                "No mail transport configured. Password reset link for %s: %s",
                email,
                reset_url,
            )
        else:
            logger.warning(
                "No mail transport configured; reset link for %s was not delivered",
                email,
            )


def get_reset_delivery(
    settings: Settings = Depends(get_settings),
) -> ResetLinkDelivery:
    return LoggingResetLinkDelivery(expose_links=not settings.is_production)
