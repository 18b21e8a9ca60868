from typing import Any, Optional
import httpx
import logging
from autoresponder.utils.security import UnsafeURLError, validate_webhook_url_no_ssrf

logger = logging.getLogger(__name__)


def send_webhook_sync(
    webhook_url: str,
    payload: dict[str, Any],
    timeout: float = 30.0,
    http_client: Optional[httpx.Client] = None,
) -> bool:
    """
    Send a webhook POST request synchronously (for use in Celery tasks).
    Re-validates the webhook URL for SSRF protection before sending.

    Returns:
        True if successful, False otherwise
    """
    # Re-validate at delivery time; DNS may have changed since the URL was saved
    try:
        validate_webhook_url_no_ssrf(webhook_url)
    except UnsafeURLError as e:
        logger.warning(f"Webhook URL validation failed for {webhook_url}: {e}")
        return False

    client = http_client or httpx.Client(timeout=timeout)
    try:
        response = client.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        logger.info(f"Webhook sent successfully to {webhook_url}")
        return True
    except httpx.HTTPError as e:
        logger.warning(f"Failed to send webhook to {webhook_url}: {e}")
        return False
    finally:
        if http_client is None:
            client.close()
