from typing import Any, Optional, Protocol, runtime_checkable
import html
import re
import logging

import httpx

from autoresponder.constants import PROVIDER_USER_AGENT
from autoresponder.errors import ProviderError
from autoresponder.options import ResponderOptions

logger = logging.getLogger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")


@runtime_checkable
class ProviderClient(Protocol):
    name: str

    def generate(self, prompt: str, context: Optional[dict[str, Any]] = None) -> str: ...

    def is_available(self) -> bool: ...

    def model_name(self) -> str: ...


def strip_markup(text: str) -> str:
    """Remove HTML tags (and script/style bodies) and decode entities."""
    text = _SCRIPT_STYLE_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    return html.unescape(text)


def sanitize_response(text: str, max_length: int) -> str:
    """Strip markup, trim, then hard-truncate to ``max_length`` characters."""
    cleaned = strip_markup(text).strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip()
    return cleaned


def with_response_guidelines(prompt: str, options: ResponderOptions) -> str:
    """Append the guideline block every vendor receives after the review prompt."""
    advanced = options.advanced_settings
    lines = [
        prompt,
        "",
        "Response Guidelines:",
        "- Keep the response relevant to the review content",
        "- Do not include any personal customer information",
        "- If the review appears to be spam, provide a polite, generic response",
        "- If there are complaints, offer to help resolve issues",
        "- Suggest contacting customer support for specific issues",
    ]
    if advanced.include_product_links:
        lines.append("- You may reference related products where it helps the customer")
    if advanced.include_contact_info:
        lines.append("- Invite the customer to contact support for further help")
    lines.append(
        f"- Maximum response length: {advanced.max_response_length} characters"
    )
    return "\n".join(lines)


def extract_error_message(response: httpx.Response) -> str:
    """Pull the vendor's error message out of a failed response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if body.get("message"):
            return str(body["message"])
    return response.reason_phrase or "Unknown error"


def post_json(
    client: httpx.Client,
    provider: str,
    url: str,
    payload: dict[str, Any],
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """
    POST ``payload`` and return the decoded JSON body.

    Raises ``ProviderError`` on transport failures, non-2xx statuses and bodies
    that are not a JSON object.
    """
    request_headers = {"Content-Type": "application/json", "User-Agent": PROVIDER_USER_AGENT}
    request_headers.update(headers or {})
    try:
        response = client.post(url, json=payload, headers=request_headers)
    except httpx.HTTPError as e:
        raise ProviderError(provider, f"Request failed: {e}") from e

    if not response.is_success:
        raise ProviderError(provider, extract_error_message(response), status_code=response.status_code)

    try:
        body = response.json()
    except ValueError as e:
        raise ProviderError(provider, "Invalid JSON response from API", status_code=response.status_code) from e
    if not isinstance(body, dict):
        raise ProviderError(provider, "Invalid JSON response from API", status_code=response.status_code)
    return body
