import io
import logging
from unittest.mock import Mock, patch

import pytest
import requests

import config as config_module
from config import Config, ConfigurationError, get_config
from src.utils.http_utils import RobustHTTPSession, error_detail
from src.utils.logging_utils import setup_logging, ColoredFormatter


class TestRobustHTTPSession:

    def test_single_attempt_returns_none_on_connection_error(self):
        http = RobustHTTPSession()
        with patch.object(http.session, "request",
                          side_effect=requests.exceptions.ConnectionError("reset")) as request, \
                patch("src.utils.http_utils.time.sleep") as sleep:
            assert http.post("https://example.test", max_attempts=1) is None

        assert request.call_count == 1
        sleep.assert_not_called()

    def test_connection_error_retried_up_to_max_attempts(self):
        http = RobustHTTPSession()
        ok = Mock(status_code=200)
        with patch.object(http.session, "request",
                          side_effect=[requests.exceptions.ConnectionError("reset"), ok]) as request, \
                patch("src.utils.http_utils.time.sleep"):
            assert http.get("https://example.test") is ok

        assert request.call_count == 2

    def test_proxies_applied_to_session(self):
        proxies = {"https": "http://proxy.example.test:8080"}
        http = RobustHTTPSession(proxies=proxies)
        assert http.session.proxies["https"] == "http://proxy.example.test:8080"


def _response(payload=None, text="", status_code=500):
    response = Mock(status_code=status_code, text=text, reason="Server Error")
    if payload is None:
        response.json.side_effect = ValueError
    else:
        response.json.return_value = payload
    return response


def test_error_detail_reads_microsoft_error_payload():
    response = _response({"error": {"code": "Forbidden", "message": "Missing role"}})
    assert error_detail(response) == "Forbidden: Missing role"


def test_error_detail_falls_back_to_body_text():
    assert error_detail(_response(text="<html>Bad gateway</html>")) == "<html>Bad gateway</html>"


def test_get_config_reads_environment(monkeypatch):
    monkeypatch.setenv("AZURE_TENANT_ID", "tenant-1")
    monkeypatch.setenv("AZURE_CLIENT_ID", "client-1")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "30")
    monkeypatch.delenv("DEFENDER_API_BASE_URL", raising=False)

    config = get_config()

    assert config.authority == "https://login.microsoftonline.com/tenant-1"
    assert config.http_timeout_seconds == 30
    assert config.defender_api_base_url == config_module.DEFAULT_DEFENDER_API_BASE_URL
    config.validate()


def test_invalid_timeout_rejected(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ConfigurationError):
        get_config()


def test_validate_names_missing_settings():
    with pytest.raises(ConfigurationError) as exc_info:
        Config(azure_client_id="client-1").validate()
    assert "AZURE_TENANT_ID" in str(exc_info.value)
    assert "AZURE_CLIENT_ID" not in str(exc_info.value)


def test_proxies_only_when_configured():
    assert Config().proxies is None
    assert Config(https_proxy_url="http://proxy:8080").proxies == {
        "http": "http://proxy:8080", "https": "http://proxy:8080"
    }


def test_console_logging_colors_warnings():
    stream = io.StringIO()
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(stream=stream)
        logging.getLogger("tests.console").warning("web02 not found in Defender")
        assert "\033[33m" in stream.getvalue()
        assert isinstance(root.handlers[0].formatter, ColoredFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
