"""
Notification Dispatcher - posts restriction notices to a chat webhook.

Responsibilities:
- Build the notice payload (preformatted text block or flat fields)
- Send a single JSON POST to the configured incoming webhook
- Log failures; never raise to the caller and never retry
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from core.config import NotificationSettings

logger = logging.getLogger(__name__)


@dataclass
class RestrictionNotice:
    """Everything a restriction notification reports."""

    associate_name: Optional[str]
    associate_login: Optional[str]
    home_path: Optional[str]
    restrictions: Optional[str]
    recommendation: Optional[str]
    requestor_login: Optional[str]
    shift_code: str
    shift_count: int
    seated_total: int
    document_url: Optional[str] = None


def _show(value: Any) -> str:
    return "" if value is None else str(value)


class NotificationDispatcher:
    """Service for sending restriction notices to an incoming webhook."""

    def __init__(
        self,
        config: NotificationSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport

    @staticmethod
    def build_text(notice: RestrictionNotice) -> str:
        """Render the notice as the channel message block."""
        lines = [
            f"We have received restrictions for {_show(notice.associate_name)} "
            f"({_show(notice.associate_login)})",
            "@channel",
            "",
            f"Home Path: {_show(notice.home_path)}",
            f"Restrictions: {_show(notice.restrictions)}",
            f"Recommendation: {_show(notice.recommendation)}",
            "",
            f"This is an automated message sent out by: {_show(notice.requestor_login)}",
            "",
            f"Current seated spots for {notice.shift_code} : {notice.shift_count}",
            f"Total Seated accommodations: {notice.seated_total}",
        ]
        if notice.document_url:
            lines.append(f"Supporting document: {notice.document_url}")
        return "\n".join(lines)

    @staticmethod
    def build_fields(notice: RestrictionNotice) -> Dict[str, Any]:
        """Render the notice as flat camelCase fields."""
        return {
            "associateName": notice.associate_name,
            "associateLogin": notice.associate_login,
            "homePath": notice.home_path,
            "restrictions": notice.restrictions,
            "recommendation": notice.recommendation,
            "requestorLogin": notice.requestor_login,
            "shiftCode": notice.shift_code,
            "shiftCount": notice.shift_count,
            "seatedTotal": notice.seated_total,
            "documentUrl": notice.document_url,
        }

    def build_payload(self, notice: RestrictionNotice) -> Dict[str, Any]:
        if self.config.payload_style == "fields":
            return self.build_fields(notice)
        return {"text": self.build_text(notice)}

    async def dispatch(self, notice: RestrictionNotice) -> bool:
        """
        Send a notice to the webhook.

        Returns:
            True if delivered, False if skipped or failed
        """
        if not self.config.webhook_url:
            logger.warning(
                f"Notification webhook URL not configured, skipping notice "
                f"for {notice.associate_login}"
            )
            return False

        payload = self.build_payload(notice)

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self.config.webhook_url, json=payload)
                response.raise_for_status()

            logger.info(
                f"Notification sent for {notice.associate_login} "
                f"(status={response.status_code}, shift={notice.shift_code})"
            )
            return True

        except Exception as e:
            logger.error(
                f"Failed to send notification for {notice.associate_login}: {e}",
                exc_info=True,
            )
            return False
