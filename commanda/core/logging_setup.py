from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from commanda.core.config import LOG_LEVEL
from commanda.core.request_context import get_auth_scheme, get_request_id, get_tenant_id, get_user_id

# Segredos que nunca podem aparecer em log: tokens de instância, api keys,
# segredo interno dos jobs e credenciais do gateway.
_SECRET_KEYS = r"(?:x-instance-token|x-api-key|x-inngest-secret|instance_token|instancetoken|api_key|apikey|admintoken|token|password|secret|cookie)"

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(rf"(['\"]{_SECRET_KEYS}['\"]\s*:\s*['\"])([^'\"]+)", re.IGNORECASE),
    re.compile(rf"(\b{_SECRET_KEYS}\s*[:=]\s*)([^\s\",}}']+)", re.IGNORECASE),
]

REDACTED_HEADERS = frozenset(
    {
        "x-instance-token",
        "x-api-key",
        "x-inngest-secret",
        "token",
        "admintoken",
        "authorization",
        "cookie",
    }
)


def mask_secrets(value: str) -> str:
    masked = value
    for pattern in _SENSITIVE_PATTERNS:
        masked = pattern.sub(r"\1***", masked)
    return masked


def redact_headers(headers) -> dict[str, str]:
    return {
        key: ("***" if key.lower() in REDACTED_HEADERS else value)
        for key, value in dict(headers).items()
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "tenant_id": getattr(record, "tenant_id", None) or get_tenant_id(),
            "user_id": getattr(record, "user_id", None) or get_user_id(),
            "auth_scheme": getattr(record, "auth_scheme", None) or get_auth_scheme(),
            "module": record.name,
            "message": mask_secrets(record.getMessage()),
            "duration_ms": getattr(record, "duration_ms", None),
        }
        for field in ("endpoint", "method", "status_code", "event_name"):
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = mask_secrets(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(LOG_LEVEL)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter("%(message)s"))
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(LOG_LEVEL)
    # httpx loga a URL completa de cada chamada; mantemos só avisos
    logging.getLogger("httpx").setLevel(logging.WARNING)
