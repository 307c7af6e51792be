"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from memoria.config.settings import settings

logger = logging.getLogger("memoria.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"

# Probes and scrapes would drown out real traffic.
_QUIET_PATHS = frozenset({"/health", "/metrics"})


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one colourised log line per HTTP request."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        log_payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover - defensive
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = self._elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(self._format_console_message(log_payload))
            raise

        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = self._elapsed_ms(start_time)
        if request.url.path in _QUIET_PATHS:
            logger.debug(self._format_console_message(log_payload))
        else:
            logger.info(self._format_console_message(log_payload))
        await self._persist_log(log_payload)
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        """Return elapsed milliseconds rounded to two decimals."""

        return round((time.perf_counter() - start_time) * 1000, 2)

    async def _persist_log(self, payload: dict[str, Any]) -> None:
        """Store the request as a ``RequestLog`` row when enabled."""

        if not settings.persist_request_logs:
            return

        status_code = payload.get("status_code")
        if status_code == 307:
            logger.debug(
                "Skipping persistence for redirect response",
                extra={"status_code": status_code, "url": payload.get("url")},
            )
            return

        from memoria.database import session_scope
        from memoria.models.log import RequestLog

        timestamp_value = datetime.fromisoformat(payload["timestamp"])
        if timestamp_value.tzinfo is not None:
            timestamp_value = timestamp_value.astimezone(timezone.utc).replace(tzinfo=None)

        async with session_scope() as session:
            session.add(
                RequestLog(
                    timestamp=timestamp_value,
                    method=payload.get("method"),
                    url=payload.get("url"),
                    status_code=status_code or 0,
                    client_ip=payload.get("client_ip"),
                    duration_ms=payload.get("duration_ms"),
                )
            )
            try:
                await session.commit()
            except Exception:  # pragma: no cover - defensive
                await session.rollback()
                logger.exception("Failed to persist request log entry")

    @staticmethod
    def _format_console_message(payload: dict[str, Any]) -> str:
        """Return minimal request metadata wrapped with ANSI color codes."""

        status = payload.get("status_code") or 0
        if 200 <= status < 300:
            color = COLOR_GREEN
        elif 400 <= status < 500:
            color = COLOR_YELLOW
        elif status >= 500:
            color = COLOR_RED
        else:
            color = COLOR_CYAN

        fields = [
            ("timestamp", payload.get("timestamp")),
            ("method", payload.get("method")),
            ("url", payload.get("url")),
            ("status", payload.get("status_code")),
            ("duration_ms", payload.get("duration_ms")),
            ("client_ip", payload.get("client_ip")),
        ]
        message = ", ".join(
            f"{name}={value if value is not None else '-'}" for name, value in fields
        )

        return f"{color}{message}{COLOR_RESET}"
