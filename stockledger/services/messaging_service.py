import json
import logging
from urllib import error, request
from urllib.parse import urlparse

from stockledger.config import get_settings

logger = logging.getLogger(__name__)

_ALLOWED_HTTP_SCHEMES = {"http", "https"}
_MAX_TEXT_LENGTH = 5000


def build_payload(api_url, text, channel_id):
    text = str(text)[:_MAX_TEXT_LENGTH]
    if "api.line.me" in api_url.lower():
        return {"to": channel_id, "messages": [{"type": "text", "text": text}]}
    return {"to": channel_id, "message": text}


def validate_api_url(api_url):
    parsed = urlparse(api_url)
    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_HTTP_SCHEMES or not parsed.netloc:
        raise RuntimeError("CHANNEL_API_URL must be an absolute HTTP(S) URL")
    return api_url


def _raise_http_error(exc):
    body = ""
    try:
        body_bytes = exc.read()
        if body_bytes:
            body = body_bytes.decode("utf-8", errors="replace").strip()
    except (OSError, ValueError):
        body = ""

    if body:
        raise RuntimeError("Channel API error: HTTP {} {}".format(exc.code, body)) from exc
    raise RuntimeError("Channel API error: HTTP {}".format(exc.code)) from exc


def send_channel_message(text, channel_id):
    settings = get_settings()

    api_url = (settings.CHANNEL_API_URL or "").strip()
    access_token = (settings.CHANNEL_ACCESS_TOKEN or "").strip()
    if not api_url:
        raise RuntimeError("CHANNEL_API_URL is not configured")
    if not access_token:
        raise RuntimeError("CHANNEL_ACCESS_TOKEN is not configured")
    api_url = validate_api_url(api_url)

    text = "" if text is None else str(text).strip()
    channel_id = "" if channel_id is None else str(channel_id).strip()
    if not text:
        raise ValueError("text is required")
    if not channel_id:
        raise ValueError("channel_id is required")

    payload = json.dumps(build_payload(api_url, text, channel_id)).encode("utf-8")
    if access_token.lower().startswith("bearer "):
        auth_header = access_token
    else:
        auth_header = "Bearer {}".format(access_token)

    req = request.Request(
        api_url,
        data=payload,
        method="POST",
        headers={
            "Content-Type": "application/json",
            "Authorization": auth_header,
        },
    )

    try:
        with request.urlopen(req, timeout=15) as response:  # nosec B310
            status_code = response.getcode()
            if status_code < 200 or status_code >= 300:
                raise RuntimeError("Channel API error: HTTP {}".format(status_code))
    except error.HTTPError as exc:
        _raise_http_error(exc)
    except error.URLError as exc:
        raise RuntimeError("Channel API error: {}".format(exc.reason)) from exc


def notify_channel(text, channel_id) -> bool:
    """Best-effort send used after a movement has committed."""
    try:
        send_channel_message(text, channel_id)
    except (RuntimeError, ValueError):
        logger.exception("Channel message to %s failed", channel_id)
        return False
    return True


__all__ = ["build_payload", "notify_channel", "send_channel_message", "validate_api_url"]
