"""Request utility functions for handling common request operations."""

import ipaddress
import logging

from fastapi import Request

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str | None:
    """Get the client IP address from a request.

    X-Real-IP is only honoured when the direct peer is a local reverse
    proxy. X-Forwarded-For is never trusted as it is trivially spoofed.
    """
    if request.client and request.client.host in ("127.0.0.1", "::1", "localhost"):
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            else:
                logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if request.client:
        return request.client.host

    return None


def extract_bearer_token(request: Request, cookie_name: str) -> str | None:
    """Extract a bearer token from the request.

    Checks ``Authorization: Bearer <token>`` first, then the auth cookie.
    Returns None when neither carries a non-empty token.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX) :].strip()
        if token:
            return token

    cookie_token = request.cookies.get(cookie_name)
    if cookie_token:
        return cookie_token

    return None
