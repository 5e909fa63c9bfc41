import json
import logging

from gemini_gateway.observability import JsonLogFormatter


def test_health_reports_configured_model(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "model": "test-model"}


def test_root_serves_static_index(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "/generate-from-image" in response.text


def test_unknown_static_path_is_404(client) -> None:
    response = client.get("/missing.css")

    assert response.status_code == 404


def test_json_log_formatter_includes_request_fields() -> None:
    record = logging.LogRecord(
        name="gemini_gateway.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="request_complete",
        args=(),
        exc_info=None,
    )
    record.request_id = "abc"
    record.status_code = 200
    record.path = "/generate-text"

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["message"] == "request_complete"
    assert payload["logger"] == "gemini_gateway.access"
    assert payload["request_id"] == "abc"
    assert payload["status_code"] == 200
    assert payload["path"] == "/generate-text"
    assert "latency_ms" not in payload
