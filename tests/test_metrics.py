"""Tests for the CloudWatch metrics client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from gymscout.services.metrics import MAX_BATCH_SIZE, MetricsClient, timed_call


def _make_client(*, enabled: bool = False) -> MetricsClient:
    with patch.dict("os.environ", {"METRICS_ENABLED": str(enabled).lower()}):
        with patch.object(MetricsClient, "_start_flush_thread"):
            return MetricsClient()


def _dims(point: dict) -> dict[str, str]:
    return {d["Name"]: d["Value"] for d in point["Dimensions"]}


class TestMetricsRecording:
    def test_success_buffers_count_and_latency(self):
        client = _make_client()
        client.record_success("airtable", "GET Gyms", latency_ms=123.4)
        names = [m["MetricName"] for m in client._buffer]
        assert names == ["ExternalAPI/RequestCount", "ExternalAPI/Latency"]

    def test_failure_without_latency_buffers_two_points(self):
        client = _make_client()
        client.record_failure("llm", "chat_invoke", error_type="timeout")
        names = {m["MetricName"] for m in client._buffer}
        assert names == {"ExternalAPI/RequestCount", "ExternalAPI/ErrorCount"}

    def test_failure_with_latency_buffers_three_points(self):
        client = _make_client()
        client.record_failure("stripe", "checkout.Session.create", error_type="CardError", latency_ms=80.0)
        assert len(client._buffer) == 3

    def test_dimensions(self):
        client = _make_client()
        client.record_success("airtable", "POST Waitlist", latency_ms=50.0)
        client.record_failure("llm", "chat_invoke", error_type="RateLimitError")
        count, latency, _, error = client._buffer
        assert _dims(count) == {"Service": "airtable", "Status": "success"}
        assert _dims(latency) == {"Service": "airtable", "Operation": "POST Waitlist"}
        assert _dims(error) == {"Service": "llm", "ErrorType": "RateLimitError"}


class TestTimedCall:
    def test_records_success(self):
        client = _make_client()
        with timed_call("stripe", "checkout.Session.create", client=client):
            pass
        assert _dims(client._buffer[0])["Status"] == "success"

    def test_records_failure_and_reraises(self):
        client = _make_client()
        with pytest.raises(RuntimeError):
            with timed_call("llm", "chat_invoke", client=client):
                raise RuntimeError("model down")
        error = next(m for m in client._buffer if m["MetricName"] == "ExternalAPI/ErrorCount")
        assert _dims(error)["ErrorType"] == "RuntimeError"


class TestMetricsFlush:
    def test_flush_when_disabled_sends_nothing_and_clears(self):
        client = _make_client(enabled=False)
        client.record_success("airtable", "GET Gyms", latency_ms=100.0)
        assert client.flush() == 0
        assert client._buffer == []

    def test_flush_when_enabled_calls_put_metric_data(self):
        client = _make_client(enabled=True)
        mock_cw = MagicMock()
        client._cw_client = mock_cw

        client.record_success("airtable", "GET Gyms", latency_ms=100.0)
        assert client.flush() == 2

        kwargs = mock_cw.put_metric_data.call_args[1]
        assert kwargs["Namespace"] == "MuayThaiScout"
        assert len(kwargs["MetricData"]) == 2

    def test_flush_chunks_large_batches(self):
        client = _make_client(enabled=True)
        mock_cw = MagicMock()
        client._cw_client = mock_cw
        for _ in range(MAX_BATCH_SIZE):
            client.record_success("airtable", "GET Gyms", latency_ms=1.0)
        assert client.flush() == 2 * MAX_BATCH_SIZE
        assert mock_cw.put_metric_data.call_count == 2

    def test_flush_empty_buffer_returns_zero(self):
        assert _make_client(enabled=True).flush() == 0

    def test_flush_swallows_cloudwatch_errors(self):
        client = _make_client(enabled=True)
        mock_cw = MagicMock()
        mock_cw.put_metric_data.side_effect = RuntimeError("throttled")
        client._cw_client = mock_cw
        client.record_success("airtable", "GET Gyms", latency_ms=1.0)
        assert client.flush() == 0
