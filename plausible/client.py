# =============================================================================
# plausible/client.py  -  Stats API client (the only module that does I/O)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   POSTs a validated Query to {api_url}/query and returns the response
#   body, annotated with the query that produced it so the agent can see
#   exactly what was asked.
#
# WHAT IT DOES NOT DO:
#   - Validate.  Callers pass a Query that already went through
#     validation.validate_all_parameters().
#   - Retry.  A failure is raised once, as PlausibleNetworkError or
#     PlausibleApiError, and the tool layer reports it to the agent.
#   - Read the environment.  It gets a PlausibleConfig in its constructor.
# =============================================================================

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from plausible.config import PlausibleConfig
from plausible.errors import PlausibleApiError, PlausibleNetworkError
from plausible.models import Query
from plausible.query import query_to_payload

logger = logging.getLogger(__name__)


class PlausibleClient:
    """Thin wrapper around POST /api/v2/query."""

    def __init__(self, config: PlausibleConfig):
        self.config = config

    def execute_query(self, query: Query) -> dict[str, Any]:
        """Run a query against the Stats API.

        Returns:
            The decoded response ({"results": [...], "meta": {...}}) with a
            "query" key holding the request body that was sent.

        Raises:
            PlausibleNetworkError: the API could not be reached.
            PlausibleApiError: non-2xx status, or a body that is not a JSON object.
        """
        payload = query_to_payload(query)
        request = urllib.request.Request(
            self.config.query_url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        logger.debug("POST %s %s", self.config.query_url, json.dumps(payload))

        try:
            with urllib.request.urlopen(request, timeout=self.config.timeout) as response:
                raw_body = response.read()
        except urllib.error.HTTPError as e:
            # HTTPError is a URLError subclass, so it has to be caught first.
            text = e.read().decode("utf-8", errors="replace")
            logger.debug("Plausible API answered %s: %s", e.code, text)
            raise PlausibleApiError(_error_message(e.code, text), status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise PlausibleNetworkError(f"Could not reach Plausible API: {reason}") from e

        try:
            data = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PlausibleApiError("Plausible API returned a response that is not valid JSON") from e
        if not isinstance(data, dict):
            raise PlausibleApiError("Plausible API returned an unexpected response shape")

        logger.debug("Plausible API returned %d rows", len(data.get("results") or []))
        return {**data, "query": payload}


def _error_message(status: int, body: str) -> str:
    """Prefer the API's own {"error": "..."} text, then the raw body."""
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    if body:
        return body
    return f"API request failed with status {status}"
