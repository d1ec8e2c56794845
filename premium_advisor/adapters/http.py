"""Shared ``requests`` plumbing for REST backed providers."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from .base import DataNotFound, NotConfigured, ProviderTimeout, ProviderUnavailable, RateLimited


def get_json(
    session: requests.Session,
    url: str,
    *,
    provider: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
) -> Dict[str, Any]:
    """GET ``url`` and decode a JSON object, mapping failures onto provider errors."""

    try:
        response = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.Timeout as exc:
        raise ProviderTimeout(f"{provider} request timed out after {timeout}s") from exc
    except requests.RequestException as exc:
        raise ProviderUnavailable(f"{provider} request failed: {exc}") from exc

    status = response.status_code
    if status in (401, 403):
        raise NotConfigured(f"{provider} rejected the configured credentials ({status})")
    if status == 429:
        raise RateLimited(f"{provider} rate limit exceeded")
    if status == 404:
        raise DataNotFound(f"{provider} has no data at {url}")
    if status >= 400:
        raise ProviderUnavailable(f"{provider} responded with HTTP {status}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderUnavailable(f"{provider} returned a non-JSON body") from exc
    if not isinstance(payload, dict):
        raise ProviderUnavailable(f"{provider} returned an unexpected payload")
    return payload


__all__ = ["get_json"]
