"""
Security utilities for SSRF protection and URL validation.
"""
from urllib.parse import urlparse
import ipaddress
import socket


class UnsafeURLError(ValueError):
    """URL is malformed, unresolvable, or points at a private address."""


def validate_webhook_url_no_ssrf(webhook_url: str) -> None:
    """
    Validate that a webhook URL does not resolve to private/reserved IPs.

    Raises:
        UnsafeURLError: If the URL is invalid or resolves to a private IP
    """
    if not webhook_url.startswith(("http://", "https://")):
        raise UnsafeURLError("Webhook URL must start with http:// or https://")

    hostname = urlparse(webhook_url).hostname
    if not hostname:
        raise UnsafeURLError("Webhook URL has no hostname")

    try:
        resolved_ips = socket.getaddrinfo(hostname, None)
    except (socket.gaierror, UnicodeError) as e:
        raise UnsafeURLError("Could not resolve webhook URL hostname") from e

    for _, _, _, _, sockaddr in resolved_ips:
        ip = ipaddress.ip_address(sockaddr[0])
        if ip.is_private or ip.is_reserved or ip.is_loopback or ip.is_link_local:
            raise UnsafeURLError("Webhook URL must not resolve to a private or internal IP address")
