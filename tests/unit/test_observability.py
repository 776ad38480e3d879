from __future__ import annotations

import json
import logging
from typing import Any

import pytest
from botocore.exceptions import ClientError
from fastapi import APIRouter, FastAPI, Request
from fastapi.testclient import TestClient
from opentelemetry import trace

from registry.core.config import Settings
from registry.obs import (
    AuditLogRecord,
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    mask_payload,
    metrics_router,
    service_span,
)


class RecordingS3Client:
    def __init__(self, *, fail: bool = False) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self._fail = fail

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **_: object) -> dict[str, str]:
        if self._fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.objects[(Bucket, Key)] = Body
        return {"ETag": "in-memory"}


def _audited_app(settings: Settings, s3_client: RecordingS3Client | None = None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        AuditMiddleware,
        settings=settings,
        logger=logging.getLogger("tests.audit"),
        s3_client_factory=(lambda: s3_client) if s3_client is not None else None,
    )

    @app.post("/api/client-profiles")
    async def create(request: Request) -> dict[str, Any]:
        request.state.actor = "employee"
        request.state.role = "EMPLOYEE"
        return {"ok": True}

    return app


def test_mask_payload_hides_kyc_fields() -> None:
    masked = mask_payload(
        {
            "clientId": "C100",
            "panNumber": "ABCDE1234F",
            "aadhaarNumber": "123456789012",
            "emailId": "asha@example.com",
            "bankDetails": {"accountNumber": "9876543210", "bankName": "HDFC"},
            "nominee": {"pan": "PQRSX5678K", "name": "Ravi"},
            "password": "supersecret",
            "companies": [{"companyName": "Acme Ltd", "isinNumber": "IN000000001"}],
        }
    )

    assert masked["clientId"] == "C100"
    assert masked["panNumber"] == "***234F"
    assert masked["aadhaarNumber"] == "***9012"
    assert masked["emailId"] == "***.com"
    assert masked["bankDetails"] == {"accountNumber": "***3210", "bankName": "HDFC"}
    assert masked["nominee"] == {"pan": "***678K", "name": "Ravi"}
    assert masked["password"] == "***"
    assert masked["companies"] == [{"companyName": "Acme Ltd", "isinNumber": "IN000000001"}]


def test_mask_payload_matches_snake_case_and_short_values() -> None:
    assert mask_payload({"pan_number": "AB1", "new_password": "longer-than-four"}) == {
        "pan_number": "***",
        "new_password": "***",
    }
    assert mask_payload({"mobileNumber": None}) == {"mobileNumber": None}


def test_audit_middleware_logs_masked_record(caplog: pytest.LogCaptureFixture) -> None:
    client = TestClient(_audited_app(Settings(audit_log_bucket=None)))

    with caplog.at_level(logging.INFO, logger="tests.audit"):
        response = client.post(
            "/api/client-profiles",
            json={"clientId": "C100", "panNumber": "ABCDE1234F"},
            headers={"X-Request-ID": "req-1"},
        )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-1"
    (audit_record,) = [item for item in caplog.records if item.name == "tests.audit"]
    record = json.loads(audit_record.getMessage())
    assert record["request_id"] == "req-1"
    assert record["path"] == "/api/client-profiles"
    assert record["status"] == 200
    assert record["actor"] == "employee"
    assert record["role"] == "EMPLOYEE"
    assert record["body"] == {"clientId": "C100", "panNumber": "***234F"}
    assert "ABCDE1234F" not in caplog.text


def test_audit_middleware_archives_to_s3() -> None:
    s3_client = RecordingS3Client()
    settings = Settings(audit_log_bucket="audit-bucket", audit_log_prefix="audit/records/")
    client = TestClient(_audited_app(settings, s3_client))

    client.post("/api/client-profiles", json={"panNumber": "ABCDE1234F"}, headers={"X-Request-ID": "req-2"})

    ((bucket, key), body) = next(iter(s3_client.objects.items()))
    assert bucket == "audit-bucket"
    assert key.startswith("audit/records/")
    assert key.endswith("/req-2.json")
    assert json.loads(body)["body"] == {"panNumber": "***234F"}


def test_audit_archive_failure_does_not_break_request(caplog: pytest.LogCaptureFixture) -> None:
    settings = Settings(audit_log_bucket="audit-bucket")
    client = TestClient(_audited_app(settings, RecordingS3Client(fail=True)))

    with caplog.at_level(logging.ERROR, logger="tests.audit"):
        response = client.post("/api/client-profiles", json={})

    assert response.status_code == 200
    assert "failed to archive audit record" in caplog.text


def test_audit_object_key_is_partitioned_by_day() -> None:
    middleware = AuditMiddleware(FastAPI(), settings=Settings(audit_log_prefix="audit/records"))
    record = AuditLogRecord(
        timestamp="2026-10-19T08:00:00+00:00",
        request_id="abc",
        method="GET",
        path="/api/healthz",
        status=200,
        duration_ms=1.0,
        actor=None,
        role=None,
        ip_address=None,
        query={},
        body=None,
    )

    assert middleware.object_key(record) == "audit/records/2026/10/19/abc.json"


def test_metrics_endpoint_exposes_request_counters() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(metrics_router)

    @app.get("/api/client-profiles/{profile_id}")
    def read(profile_id: str) -> dict[str, str]:
        return {"id": profile_id}

    client = TestClient(app)
    client.get("/api/client-profiles/abc")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "registry_http_requests_total" in response.text
    assert 'route="/api/client-profiles/{profile_id}"' in response.text
    assert "registry_client_profiles_created_total" in response.text


def test_metrics_label_nested_routes_with_full_template() -> None:
    profiles = APIRouter()
    users = APIRouter()

    @profiles.get("")
    def list_profiles() -> list[str]:
        return []

    @profiles.get("/{profile_id}")
    def read_profile(profile_id: str) -> dict[str, str]:
        return {"id": profile_id}

    @users.get("/{user_id}")
    def read_user(user_id: str) -> dict[str, str]:
        return {"id": user_id}

    api = APIRouter(prefix="/api")
    api.include_router(profiles, prefix="/holders")
    api.include_router(users, prefix="/accounts")
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(api)
    app.include_router(metrics_router)

    client = TestClient(app)
    client.get("/api/holders")
    client.get("/api/holders/p-1")
    client.get("/api/accounts/u-1")
    text = client.get("/metrics").text

    assert 'route="/api/holders"' in text
    assert 'route="/api/holders/{profile_id}"' in text
    assert 'route="/api/accounts/{user_id}"' in text
    assert 'route="/api/holders/p-1"' not in text


def test_service_span_records_attributes() -> None:
    initialise_tracing(service_name="unit-test-service")

    with service_span("profiles.create", client_id="C100", skipped=None) as span:
        assert span.get_span_context().is_valid
        assert trace.get_current_span() is span
