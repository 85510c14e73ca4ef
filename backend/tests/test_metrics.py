"""
Unit tests for Prometheus metrics collection.

Tests verify:
- RED metrics (Rate, Errors, Duration) are recorded correctly
- AI metrics (attempts, failovers, retry delays, invalid responses) are recorded
- Resource metrics (CPU, memory) are updated correctly
- The metrics endpoint returns Prometheus text format
"""
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from app.core.metrics import (
    floorplan_fallbacks_total,
    get_metrics,
    get_metrics_content_type,
    http_errors_total,
    http_request_duration_seconds,
    http_requests_total,
    kpr_simulations_total,
    llm_attempts_total,
    llm_credential_failovers_total,
    llm_errors_total,
    llm_invalid_responses_total,
    llm_requests_total,
    llm_retry_delay_seconds,
    normalize_endpoint,
    record_floorplan_fallback,
    record_http_request,
    record_kpr_simulation,
    record_llm_attempt,
    record_llm_error,
    record_llm_failover,
    record_llm_invalid_response,
    record_llm_request,
    record_llm_retry_delay,
    system_cpu_usage_percent,
    system_memory_usage_bytes,
    update_resource_metrics,
)


def _sample_value(metric, name_suffix="_total", **labels):
    for family in metric.collect():
        for sample in family.samples:
            if not sample.name.endswith(name_suffix):
                continue
            if all(sample.labels.get(k) == v for k, v in labels.items()):
                return sample.value
    return 0.0


class TestEndpointNormalization:

    def test_strips_query_string(self):
        assert normalize_endpoint("/api/ai-chat?debug=1") == "/api/ai-chat"

    def test_floor_plan_paths_are_not_rewritten(self):
        assert (
            normalize_endpoint("/api/generate-floorplan/download/fp_1700000000000_abc123xyz")
            == "/api/generate-floorplan/download/fp_1700000000000_abc123xyz"
        )

    def test_other_endpoints_unchanged(self):
        assert normalize_endpoint("/api/generate-floorplan") == "/api/generate-floorplan"
        assert normalize_endpoint("/health/ai") == "/health/ai"


class TestREDMetrics:

    def test_record_http_request_success(self):
        before = _sample_value(http_requests_total, method="POST", endpoint="/api/kawasan", status="200")

        record_http_request("POST", "/api/kawasan", 200, 0.1)

        after = _sample_value(http_requests_total, method="POST", endpoint="/api/kawasan", status="200")
        assert after == before + 1
        duration_samples = list(http_request_duration_seconds.collect()[0].samples)
        assert any(s.labels.get("endpoint") == "/api/kawasan" for s in duration_samples)

    def test_record_http_request_error(self):
        before = _sample_value(
            http_errors_total, method="POST", endpoint="/api/ai-chat", status_code="503"
        )

        record_http_request("POST", "/api/ai-chat", 503, 0.2)

        after = _sample_value(
            http_errors_total, method="POST", endpoint="/api/ai-chat", status_code="503"
        )
        assert after == before + 1


class TestAIMetrics:

    def test_llm_request_and_error(self):
        before = _sample_value(llm_requests_total, agent="chat", model="gemini-test")
        errors_before = _sample_value(llm_errors_total, agent="chat", error_type="status_429")

        record_llm_request("chat", "gemini-test", 350.0)
        record_llm_error("chat", "status_429")

        assert _sample_value(llm_requests_total, agent="chat", model="gemini-test") == before + 1
        assert (
            _sample_value(llm_errors_total, agent="chat", error_type="status_429")
            == errors_before + 1
        )

    def test_attempts_by_credential_and_outcome(self):
        labels = {"agent": "chat", "credential": "fallback", "outcome": "capacity"}
        before = _sample_value(llm_attempts_total, **labels)

        record_llm_attempt("chat", "fallback", "capacity")

        assert _sample_value(llm_attempts_total, **labels) == before + 1

    def test_failover_and_retry_delay(self):
        before = _sample_value(llm_credential_failovers_total, agent="floorplan")
        delay_count_before = _sample_value(llm_retry_delay_seconds, "_count", agent="floorplan")

        record_llm_failover("floorplan")
        record_llm_retry_delay("floorplan", 2.0)

        assert _sample_value(llm_credential_failovers_total, agent="floorplan") == before + 1
        assert (
            _sample_value(llm_retry_delay_seconds, "_count", agent="floorplan")
            == delay_count_before + 1
        )

    def test_invalid_response_and_business_counters(self):
        invalid_before = _sample_value(llm_invalid_responses_total, agent="kawasan")
        fallback_before = _sample_value(floorplan_fallbacks_total)
        kpr_before = _sample_value(kpr_simulations_total, bank="BCA")

        record_llm_invalid_response("kawasan")
        record_floorplan_fallback()
        record_kpr_simulation("BCA")

        assert _sample_value(llm_invalid_responses_total, agent="kawasan") == invalid_before + 1
        assert _sample_value(floorplan_fallbacks_total) == fallback_before + 1
        assert _sample_value(kpr_simulations_total, bank="BCA") == kpr_before + 1


class TestResourceMetrics:

    @patch("app.core.metrics.psutil.cpu_percent")
    @patch("app.core.metrics.psutil.virtual_memory")
    def test_update_resource_metrics(self, mock_memory, mock_cpu):
        mock_cpu.return_value = 45.5
        mock_memory_obj = MagicMock()
        mock_memory_obj.used = 1024 * 1024 * 512
        mock_memory.return_value = mock_memory_obj

        update_resource_metrics()

        assert system_cpu_usage_percent._value.get() == 45.5
        assert system_memory_usage_bytes._value.get() == 1024 * 1024 * 512

    @patch("app.core.metrics.psutil.cpu_percent")
    def test_update_resource_metrics_handles_errors(self, mock_cpu):
        mock_cpu.side_effect = Exception("CPU error")

        # Should not raise
        update_resource_metrics()


class TestMetricsEndpoint:

    def test_get_metrics_contains_ai_metrics(self):
        record_llm_attempt("chat", "primary", "success")

        metrics_data = get_metrics().decode("utf-8")

        assert "llm_attempts_total" in metrics_data
        assert "http_requests_total" in metrics_data
        assert "system_cpu_usage_percent" in metrics_data

    def test_content_type(self):
        assert "text/plain" in get_metrics_content_type()

    def test_metrics_route(self):
        from app.main import app

        response = TestClient(app).get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "llm_requests_total" in response.text
