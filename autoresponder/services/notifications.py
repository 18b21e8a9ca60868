"""
Periodic operator notifications: high generation volume and recent errors.

At most one notification per category per check. Each notification sent is
recorded in the audit log together with whether delivery succeeded.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
import logging

from autoresponder.constants import ERROR_WINDOW_HOURS, HIGH_VOLUME_WINDOW_HOURS
from autoresponder.models import AuditAction, ERROR_ACTIONS
from autoresponder.options import ResponderOptions
from autoresponder.services.store import ResponseStore
from autoresponder.services.webhook import send_webhook_sync

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(
        self,
        options: ResponderOptions,
        store: ResponseStore,
        site_name: str = "",
        send: Callable[[str, dict[str, Any]], bool] = send_webhook_sync,
    ):
        self.options = options
        self.store = store
        self.site_name = site_name
        self._send = send

    def _deliver(self, event: str, payload: dict[str, Any]) -> bool:
        settings = self.options.notification_settings
        if not settings.webhook_url:
            logger.info(f"No notification webhook configured, {event} notification recorded only")
            return False
        return self._send(settings.webhook_url, {
            "event": event,
            "site": self.site_name,
            "recipient": settings.notification_email,
            **payload,
        })

    def check(self) -> dict[str, bool]:
        settings = self.options.notification_settings
        sent = {"high_volume": False, "errors": False}
        if not settings.notifications_enabled:
            return sent

        now = datetime.now(timezone.utc)

        if settings.notify_on_high_volume:
            count = self.store.count_responses_since(now - timedelta(hours=HIGH_VOLUME_WINDOW_HOURS))
            if count >= settings.high_volume_threshold:
                payload = {"count": count, "threshold": settings.high_volume_threshold}
                delivered = self._deliver("high_volume", {
                    **payload,
                    "message": f"{count} responses were generated in the last 24 hours.",
                })
                self.store.log(
                    AuditAction.HIGH_VOLUME_NOTIFICATION,
                    details={**payload, "email": settings.notification_email, "delivered": delivered},
                )
                sent["high_volume"] = True

        if settings.notify_on_errors:
            count = self.store.count_logs(ERROR_ACTIONS, since=now - timedelta(hours=ERROR_WINDOW_HOURS))
            if count >= settings.error_threshold:
                delivered = self._deliver("errors", {
                    "error_count": count,
                    "message": f"{count} errors were recorded in the last hour. Check the audit log for details.",
                })
                self.store.log(
                    AuditAction.ERROR_NOTIFICATION,
                    details={"error_count": count, "email": settings.notification_email, "delivered": delivered},
                )
                sent["errors"] = True

        return sent
