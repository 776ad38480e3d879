"""Audit logging middleware with KYC field masking."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from registry.core.config import Settings

# Compared after lowercasing and dropping underscores, so ``panNumber`` and ``pan_number`` match.
_SENSITIVE_KEYS = {
    "pan",
    "pannumber",
    "aadhaar",
    "aadhaarnumber",
    "accountnumber",
    "bankaccountnumber",
    "mobilenumber",
    "phone",
    "email",
    "emailid",
    "password",
    "newpassword",
    "accesstoken",
}


def _normalise_key(key: str) -> str:
    return key.replace("_", "").lower()


def mask_payload(value: Any) -> Any:
    """Return ``value`` with sensitive fields replaced, recursing into dicts and lists."""
    if isinstance(value, dict):
        masked: dict[str, Any] = {}
        for key, item in value.items():
            if _normalise_key(str(key)) in _SENSITIVE_KEYS and not isinstance(item, (dict, list)):
                masked[key] = _mask_scalar(item, reveal_tail="password" not in _normalise_key(str(key)))
            else:
                masked[key] = mask_payload(item)
        return masked
    if isinstance(value, list):
        return [mask_payload(item) for item in value]
    return value


def _mask_scalar(value: Any, *, reveal_tail: bool = True) -> str | None:
    if value is None:
        return None
    text = str(value)
    if reveal_tail and len(text) > 4:
        return f"***{text[-4:]}"
    return "***"


@dataclass(slots=True)
class AuditLogRecord:
    """Structured log entry emitted by the middleware."""

    timestamp: str
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None
    role: str | None
    ip_address: str | None
    query: dict[str, Any]
    body: Any

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str)


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs one masked record per request and optionally archives it to S3."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._settings = settings
        self._logger = logger or logging.getLogger("audit")
        self._s3_client_factory = s3_client_factory or self._default_client_factory
        self._s3_client: Any | None = None

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        body_bytes = await request.body()
        masked_body: Any = None
        if body_bytes:
            try:
                masked_body = mask_payload(json.loads(body_bytes))
            except (json.JSONDecodeError, UnicodeDecodeError):
                masked_body = "<binary>"

        response = await call_next(request)

        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            actor=getattr(request.state, "actor", None),
            role=getattr(request.state, "role", None),
            ip_address=request.client.host if request.client else None,
            query=mask_payload(dict(request.query_params.multi_items())),
            body=masked_body,
        )
        self._logger.info(record.to_json())
        self._archive(record)

        response.headers["X-Request-ID"] = request_id
        return response

    def _default_client_factory(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _archive(self, record: AuditLogRecord) -> None:
        bucket = self._settings.audit_log_bucket
        if not bucket or self._settings.audit_log_sample_rate <= 0:
            return
        if self._settings.audit_log_sample_rate < 1 and random.random() > self._settings.audit_log_sample_rate:
            return

        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        try:
            self._s3_client.put_object(
                Bucket=bucket,
                Key=self.object_key(record),
                Body=record.to_json().encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            self._logger.error("failed to archive audit record", extra={"error": str(exc)})

    def object_key(self, record: AuditLogRecord) -> str:
        prefix = self._settings.audit_log_prefix.rstrip("/")
        day = record.timestamp[:10].replace("-", "/")
        return f"{prefix}/{day}/{record.request_id}.json"


__all__ = ["AuditLogRecord", "AuditMiddleware", "mask_payload"]
