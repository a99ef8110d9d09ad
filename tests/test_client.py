"""
Stats API client tests.

urllib.request.urlopen is replaced with a fake so no request ever leaves
the process.
"""

import io
import json
import urllib.error
import urllib.request

import pytest

from plausible.client import PlausibleClient
from plausible.config import PlausibleConfig
from plausible.errors import PlausibleApiError, PlausibleNetworkError
from plausible.query import parse_query

QUERY = parse_query({"site_id": "example.com", "metrics": ["visitors"], "date_range": "7d"})
CONFIG = PlausibleConfig(api_key="secret-key", api_url="https://stats.example.com/api/v2/", timeout=5)


class FakeResponse:
    def __init__(self, body: bytes):
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _http_error(status: int, body: bytes) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        CONFIG.query_url, status, "error", hdrs=None, fp=io.BytesIO(body)
    )


@pytest.fixture
def urlopen(monkeypatch):
    """Install a fake urlopen; the test sets .result to a body or an exception."""

    class Fake:
        result: object = b"{}"
        calls: list = []

        def __call__(self, request, timeout=None):
            self.calls.append((request, timeout))
            if isinstance(self.result, BaseException):
                raise self.result
            return FakeResponse(self.result)

    fake = Fake()
    fake.calls = []
    monkeypatch.setattr(urllib.request, "urlopen", fake)
    return fake


class TestExecuteQuery:
    def test_request_shape(self, urlopen):
        urlopen.result = b'{"results": [], "meta": {}}'
        PlausibleClient(CONFIG).execute_query(QUERY)

        request, timeout = urlopen.calls[0]
        assert request.full_url == "https://stats.example.com/api/v2/query"
        assert request.get_method() == "POST"
        assert request.get_header("Authorization") == "Bearer secret-key"
        assert request.get_header("Content-type") == "application/json"
        assert json.loads(request.data) == {
            "site_id": "example.com",
            "metrics": ["visitors"],
            "date_range": "7d",
        }
        assert timeout == 5

    def test_response_is_annotated_with_query(self, urlopen):
        urlopen.result = json.dumps(
            {"results": [{"dimensions": [], "metrics": [42]}], "meta": {"imports_included": False}}
        ).encode()
        data = PlausibleClient(CONFIG).execute_query(QUERY)
        assert data["results"] == [{"dimensions": [], "metrics": [42]}]
        assert data["meta"] == {"imports_included": False}
        assert data["query"]["site_id"] == "example.com"

    def test_api_error_uses_error_field(self, urlopen):
        urlopen.result = _http_error(400, b'{"error": "Invalid metric \\"foo\\""}')
        with pytest.raises(PlausibleApiError) as exc:
            PlausibleClient(CONFIG).execute_query(QUERY)
        assert str(exc.value) == 'Invalid metric "foo"'
        assert exc.value.status == 400

    def test_api_error_falls_back_to_body(self, urlopen):
        urlopen.result = _http_error(502, b"Bad Gateway")
        with pytest.raises(PlausibleApiError) as exc:
            PlausibleClient(CONFIG).execute_query(QUERY)
        assert str(exc.value) == "Bad Gateway"
        assert exc.value.status == 502

    def test_api_error_with_empty_body(self, urlopen):
        urlopen.result = _http_error(401, b"")
        with pytest.raises(PlausibleApiError) as exc:
            PlausibleClient(CONFIG).execute_query(QUERY)
        assert str(exc.value) == "API request failed with status 401"

    @pytest.mark.parametrize(
        "error",
        [urllib.error.URLError("Name or service not known"), TimeoutError("timed out")],
    )
    def test_network_errors(self, urlopen, error):
        urlopen.result = error
        with pytest.raises(PlausibleNetworkError) as exc:
            PlausibleClient(CONFIG).execute_query(QUERY)
        assert str(exc.value).startswith("Could not reach Plausible API")

    @pytest.mark.parametrize("body", [b"<html>oops</html>", b"[1, 2]", b"\xff\xfe{"])
    def test_unreadable_body(self, urlopen, body):
        urlopen.result = body
        with pytest.raises(PlausibleApiError) as exc:
            PlausibleClient(CONFIG).execute_query(QUERY)
        assert exc.value.status is None
