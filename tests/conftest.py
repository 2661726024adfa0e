from unittest.mock import Mock

import pytest

from services.azure_auth import TaggingSession


def _build_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Error"
    response.text = text
    response.content = b"{}" if payload is not None else b""
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def make_response():
    """Factory for stand-ins of requests.Response"""
    return _build_response


@pytest.fixture
def session():
    """An authenticated session whose HTTP layer is a Mock"""
    return TaggingSession(
        authenticator=Mock(),
        http=Mock(),
        graph_token="graph-token",
        defender_token="defender-token",
    )
