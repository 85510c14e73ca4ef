"""
Integration tests for trace ID propagation.

Tests verify:
- Trace ID is generated for requests without X-Trace-ID header
- Trace ID is taken from X-Trace-ID (or X-Request-ID) when present
- Trace and request IDs are returned in response headers, errors included
"""
import uuid

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


class TestTraceIDPropagation:

    def test_trace_id_generated_when_missing(self):
        response = client.get("/health/")

        assert response.status_code == 200
        trace_id = response.headers["X-Trace-ID"]
        assert len(trace_id) == 36
        assert trace_id.count("-") == 4
        uuid.UUID(trace_id)

    def test_trace_id_extracted_from_header(self):
        custom_trace_id = str(uuid.uuid4())

        response = client.get("/health/", headers={"X-Trace-ID": custom_trace_id})

        assert response.headers["X-Trace-ID"] == custom_trace_id

    def test_trace_id_extracted_from_request_id_header(self):
        custom_trace_id = str(uuid.uuid4())

        response = client.get("/health/", headers={"X-Request-ID": custom_trace_id})

        assert response.headers["X-Trace-ID"] == custom_trace_id

    def test_request_ids_are_unique(self):
        response1 = client.get("/health/")
        response2 = client.get("/health/")

        request_id1 = response1.headers["X-Request-ID"]
        assert len(request_id1) == 36
        assert request_id1 != response2.headers["X-Request-ID"]

    def test_trace_id_in_error_responses(self):
        custom_trace_id = str(uuid.uuid4())

        response = client.post(
            "/api/kawasan",
            json={},
            headers={"X-Trace-ID": custom_trace_id},
        )

        assert response.status_code == 400
        assert response.headers.get("X-Trace-ID") == custom_trace_id

    def test_trace_id_in_http_exception_responses(self):
        custom_trace_id = str(uuid.uuid4())

        response = client.post(
            "/api/kpr/simulate",
            json={"housePrice": 0},
            headers={"X-Trace-ID": custom_trace_id},
        )

        assert response.status_code == 400
        assert response.headers.get("X-Trace-ID") == custom_trace_id
        assert response.json()["trace_id"] == custom_trace_id

    def test_concurrent_requests_have_different_trace_ids(self):
        responses = [client.get("/health/") for _ in range(5)]

        trace_ids = [r.headers["X-Trace-ID"] for r in responses]
        request_ids = [r.headers["X-Request-ID"] for r in responses]
        assert len(set(trace_ids)) == len(trace_ids)
        assert len(set(request_ids)) == len(request_ids)
