"""
HTTP request layer, error normalization, and security helpers for canvas-mcp.
"""

from __future__ import annotations

import hashlib
import json
import re
import sys
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid
from dataclasses import dataclass, field
from typing import Any

from canvas_mcp import config
from canvas_mcp.exceptions import CanvasAPIError, HTTPError, TransportError

_RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_url_for_log(url):
    """Mask sensitive query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = []
    for key, value in pairs:
        if key.lower() in {"access_token", "token"}:
            masked.append((key, "***"))
        else:
            masked.append((key, value))
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


# ---------------------------------------------------------------------------
# Structured HTTP logging
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _is_sampled_request(request_id):
    """Decide if a request should be logged based on sample rate."""
    rate = config.HTTP_LOG_SAMPLE_RATE
    if rate <= 0:
        return False
    if rate >= 1:
        return True
    if not request_id:
        return False
    digest = hashlib.sha256(request_id.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big") / 4294967295.0
    return bucket < rate


def _error_envelope(message, status=None, request_id=None, retryable=None, detail=None):
    """Build a consistent HTTP error message."""
    meta = []
    if status is not None:
        meta.append(f"status={status}")
    if request_id:
        meta.append(f"request_id={request_id}")
    if retryable is not None:
        meta.append(f"retryable={'yes' if retryable else 'no'}")
    suffix = f" ({', '.join(meta)})" if meta else ""
    body = f"[ERROR] {message}{suffix}"
    if detail:
        body += f"\n{detail}"
    return body


def _parse_retry_after(headers):
    """Return Retry-After seconds from response headers, or None."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        secs = int(str(value).strip())
    except ValueError:
        return None
    return max(0, secs)


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Response:
    """One decoded HTTP response. Header names are stored lower-cased."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def link(self) -> str | None:
        return self.header("link")


def _decode_body(raw, content_type):
    if not raw.strip():
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        if content_type and "json" not in content_type.lower():
            raise TransportError(
                f"[ERROR] Unexpected Content-Type from server ({content_type}). "
                "This may be a proxy or network issue."
            ) from None
        raise TransportError("[ERROR] Unexpected response from Canvas API (not valid JSON).") from None


def _http_request(url, data=None, headers=None, method="GET", idempotent=False):
    """Make an HTTP request with standard error handling.
    Returns a Response on 2xx.
    Raises HTTPError for HTTP errors (caller normalizes them).
    Raises TransportError when no usable response arrives."""
    body = json.dumps(data).encode("utf-8") if data is not None else None
    request_id = (headers or {}).get("X-Request-Id")
    safe_url = _sanitize_url_for_log(url)
    sampled = _is_sampled_request(request_id)
    max_attempts = 1 + max(0, config.HTTP_MAX_RETRIES if idempotent else 0)
    timeout = max(1, config.HTTP_TIMEOUT_SECONDS)
    last_error = None

    for attempt in range(max_attempts):
        start = time.perf_counter()
        req = urllib.request.Request(url, data=body, headers=headers or {}, method=method)
        if sampled:
            _log_http_event(
                phase="request",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                idempotent=idempotent,
                request_id=request_id,
                timeout_seconds=timeout,
            )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                content_type = resp.headers.get("Content-Type", "")
                raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
                if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                    raise TransportError(
                        "[ERROR] Response too large from Canvas API "
                        f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                    )
                status = getattr(resp, "status", 200)
                if sampled:
                    _log_http_event(
                        phase="response",
                        method=method,
                        url=safe_url,
                        attempt=attempt + 1,
                        status=status,
                        content_type=content_type,
                        bytes=len(raw),
                        paginated=bool(resp.headers.get("Link")),
                        latency_ms=round((time.perf_counter() - start) * 1000, 2),
                        request_id=request_id,
                    )
                return Response(
                    status=status,
                    data=_decode_body(raw, content_type),
                    headers={k.lower(): v for k, v in resp.headers.items()},
                )
        except urllib.error.HTTPError as e:
            error_body = (
                e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
                if e.fp
                else ""
            )
            retryable = e.code in _RETRYABLE_HTTP_CODES
            can_retry = idempotent and attempt < max_attempts - 1 and retryable
            if sampled:
                _log_http_event(
                    phase="response",
                    method=method,
                    url=safe_url,
                    attempt=attempt + 1,
                    status=e.code,
                    retryable=retryable,
                    will_retry=can_retry,
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
            if can_retry:
                retry_after = _parse_retry_after(getattr(e, "headers", None))
                if retry_after is None:
                    retry_after = config.HTTP_RETRY_BASE_SECONDS * (2**attempt)
                time.sleep(retry_after)
                continue
            raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
        except (TimeoutError, urllib.error.URLError, ConnectionError) as e:
            if isinstance(e, TimeoutError):
                last_error = f"Request timed out after {timeout} seconds. Is Canvas reachable?"
            else:
                last_error = f"Connection failed: {getattr(e, 'reason', e)}"
            will_retry = idempotent and attempt < max_attempts - 1
            if sampled:
                _log_http_event(
                    phase="network_error",
                    method=method,
                    url=safe_url,
                    attempt=attempt + 1,
                    error=last_error,
                    will_retry=will_retry,
                    request_id=request_id,
                )
            if will_retry:
                time.sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt))
                continue
            raise TransportError(
                _error_envelope(last_error, request_id=request_id, retryable=False)
            ) from e

    raise TransportError(
        _error_envelope(last_error or "Request failed.", request_id=request_id)
    )


def _encode_params(params):
    """Encode query params the way Canvas expects: lists become key[]=a&key[]=b."""
    pairs = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((f"{key}[]", str(v)) for v in value)
        elif isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        else:
            pairs.append((key, str(value)))
    return urllib.parse.urlencode(pairs)


def _remote_message(payload, raw_body):
    """Pick the human-readable part of a Canvas error body."""
    if isinstance(payload, dict):
        if payload.get("message"):
            return str(payload["message"])
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            if errors[0].get("message"):
                return str(errors[0]["message"])
    if payload is not None:
        return json.dumps(payload)
    return _sanitize_error(raw_body)


def normalize_http_error(e):
    """Convert a raw HTTPError into the single remote-api error kind."""
    try:
        payload = json.loads(e.body) if e.body else None
    except json.JSONDecodeError:
        payload = None
    message = _remote_message(payload, e.body)
    return CanvasAPIError(
        f"Canvas API Error ({e.code}): {message}",
        status_code=e.code,
        response=payload if payload is not None else e.body,
    )


class Channel:
    """Authenticated HTTP channel to one Canvas instance.

    Built once per client and reused for every call. Each request carries its
    own method, URL and body, so sharing the channel between calls is safe.
    """

    def __init__(self, token: str, domain: str):
        self._token = token
        self.domain = config.normalize_domain(domain)
        self.base_url = f"https://{self.domain}{config.API_PATH}"

    def __repr__(self):
        return f"Channel(base_url={self.base_url!r}, token={_mask_token(self._token)!r})"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Request-Id": str(uuid.uuid4()),
        }

    def url_for(self, path_or_url: str, params: dict | None = None) -> str:
        """Join a path onto the API base. Absolute URLs are kept verbatim."""
        if path_or_url.startswith(("https://", "http://")):
            url = path_or_url
        else:
            url = self.base_url + path_or_url
        query = _encode_params(params)
        if query:
            url += ("&" if "?" in url else "?") + query
        return url

    def request(
        self,
        method: str,
        path_or_url: str,
        *,
        params: dict | None = None,
        data: Any = None,
    ) -> Response:
        """Perform one HTTP round trip.

        Raises CanvasAPIError on non-2xx and TransportError when Canvas could
        not be reached.
        """
        url = self.url_for(path_or_url, params)
        try:
            return _http_request(
                url, data, self._headers(), method, idempotent=method == "GET"
            )
        except HTTPError as e:
            raise normalize_http_error(e) from e
