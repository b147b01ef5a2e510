import json
import logging
import os
import sys
from typing import Any

from gis_backend.util.time import iso_z, utcnow


# Debug toggle: allow more verbose logging locally, but still never log secrets.
_DEBUG_LOG_PAYLOADS = os.getenv("GIS_DEBUG_LOG_PAYLOADS", "false").lower() in (
    "1",
    "true",
    "yes",
    "on",
)

# Deny-list of keys that should never be logged raw.
_DENY_KEYS = {
    "body",
    "request_body",
    "headers",
    "authorization",
    "token",
    "password",
    "secret",
    "database_url",
    "data",
}


def get_logger(component: str) -> logging.Logger:
    """
    Message-only JSONL logger for a component, without duplicate propagation.
    """
    logger = logging.getLogger(f"gis_backend.{component}")
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(h)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def _truncate_str(s: str, max_len: int = 800) -> str:
    return s if len(s) <= max_len else s[:max_len] + "...<truncated>"


def _sanitize_value(v: Any, depth: int = 0, max_depth: int = 3) -> Any:
    if depth > max_depth:
        return "<max_depth>"

    if v is None or isinstance(v, (int, float, bool)):
        return v

    if isinstance(v, str):
        return _truncate_str(v)

    if isinstance(v, bytes):
        return f"<{len(v)} bytes>"

    if isinstance(v, (list, tuple)):
        return [_sanitize_value(x, depth + 1, max_depth) for x in list(v)[:50]]

    if isinstance(v, dict):
        out: dict[str, Any] = {}
        for k, vv in v.items():
            if str(k).lower() in _DENY_KEYS:
                out[str(k)] = "<redacted>"
            else:
                out[str(k)] = _sanitize_value(vv, depth + 1, max_depth)
        return out

    return _truncate_str(str(v))


def log_event(
    logger: logging.Logger,
    *,
    level: str,
    event: str,
    msg: str,
    **fields: Any,
) -> None:
    component = logger.name.rsplit(".", 1)[-1]
    payload: dict[str, Any] = {
        "ts": iso_z(utcnow()),
        "level": level.upper(),
        "component": component,
        "event": event,
        "msg": msg,
    }

    for k, v in fields.items():
        if str(k).lower() in _DENY_KEYS:
            if _DEBUG_LOG_PAYLOADS:
                payload[k] = "<redacted>"
            continue
        payload[k] = _sanitize_value(v)

    line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    lvl = (level or "").upper()
    if lvl == "ERROR":
        logger.error(line)
    elif lvl in ("WARN", "WARNING"):
        logger.warning(line)
    else:
        logger.info(line)
