# apps/backend/app/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Loguear de forma:
- Parseable (JSON)
- Correlacionable (request_id / method / path)
- Segura: PINs, hashes, passwords y tokens NUNCA llegan al log en claro

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear logs como JSON
  - Enriquecer con contexto (request_id, path, method)
  - Redactar campos sensibles y limitar tamaños

Colaboradores:
  - app/context.py (ContextVars)
  - crosscutting/config.py (nivel y formato)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Campos internos del LogRecord que NO queremos copiar como "extra".
_INTERNAL_LOGRECORD_KEYS: set[str] = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "taskName",
}


class _Redactor:
    """
    Redacta claves sensibles y recorta valores gigantes.

    El token de firma NO es secreto (es un identificador de auditoría), por eso
    "signature_token" no está en la lista; "token" a secas sí (JWT).
    """

    SENSITIVE_KEYS = {
        "pin",
        "pin_hash",
        "new_pin",
        "current_pin",
        "pin_actual",
        "password",
        "password_hash",
        "secret",
        "pin_salt",
        "jwt_secret",
        "token",
        "access_token",
        "authorization",
        "cookie",
    }

    def __init__(self, max_str: int = 4_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, depth: int = 0, key: str | None = None) -> Any:
        if key and key.lower() in self.SENSITIVE_KEYS:
            return "***REDACTADO***"

        if depth > self._max_depth:
            return "***TRUNCADO***"

        if isinstance(value, str):
            if len(value) <= self._max_str:
                return value
            return value[: self._max_str] + "…(truncado)"

        if isinstance(value, (bytes, bytearray)):
            return f"<bytes {len(value)}B>"

        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, depth=depth + 1, key=str(k))
                for k, v in value.items()
            }

        if isinstance(value, (list, tuple)):
            return [self.sanitize(v, depth=depth + 1, key=key) for v in value]

        try:
            json.dumps(value, default=str)
            return value
        except (TypeError, ValueError):
            return str(value)


class JSONFormatter(logging.Formatter):
    """LogRecord -> JSON de una línea, con contexto de request y stacktrace."""

    def __init__(self):
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
        }

        from ..context import get_context_dict

        payload.update(get_context_dict())

        for k, v in record.__dict__.items():
            if k in _INTERNAL_LOGRECORD_KEYS:
                continue
            payload[k] = self._redactor.sanitize(v, key=k)

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else None
            exc_msg = str(record.exc_info[1]) if record.exc_info[1] else None
            payload["exception"] = {
                "type": exc_type,
                "message": exc_msg,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(
            payload, ensure_ascii=False, default=str, separators=(",", ":")
        )


def setup_logger(name: str = "firmas-api") -> logging.Logger:
    """
    Crea y configura el logger global.

    - Evita duplicación de handlers en reimport
    - Respeta log_level / log_json desde Settings
    """
    from .config import get_settings

    settings = get_settings()

    log = logging.getLogger(name)
    log.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if settings.log_json
            else logging.Formatter("%(levelname)s %(message)s")
        )
        log.addHandler(handler)

    return log


# Instancia global (import-friendly)
logger = setup_logger()
