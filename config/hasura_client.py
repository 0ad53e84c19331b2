"""
config/hasura_client.py
GraphQL client for the Hasura endpoint.

Requests made on behalf of a signed-in user forward that user's Firebase
ID token so Hasura's row-level permissions apply. Server-side jobs (Celery)
authenticate with the admin secret instead.
"""

import logging
import re
from typing import Any, Optional

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)

_OPERATION_RE = re.compile(r"\b(?:query|mutation)\s+(\w+)")


class HasuraError(Exception):
    """Raised when Hasura answers with an `errors` array or the request itself fails."""

    def __init__(self, message: str, errors: Optional[list] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.status_code = status_code

    @property
    def code(self) -> Optional[str]:
        if self.errors:
            return (self.errors[0].get("extensions") or {}).get("code")
        return None


def operation_name(document: str) -> Optional[str]:
    match = _OPERATION_RE.search(document)
    return match.group(1) if match else None


def _headers(token: Optional[str] = None, as_admin: bool = False) -> dict:
    headers = {"Content-Type": "application/json"}
    if as_admin and settings.HASURA_ADMIN_SECRET:
        headers["x-hasura-admin-secret"] = settings.HASURA_ADMIN_SECRET
    elif token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _payload(document: str, variables: Optional[dict]) -> dict:
    return {
        "query": document,
        "variables": variables or {},
        "operationName": operation_name(document),
    }


def _parse_response(response: httpx.Response, op: Optional[str]) -> dict:
    try:
        body = response.json()
    except ValueError:
        raise HasuraError(
            f"Invalid GraphQL response (HTTP {response.status_code})",
            status_code=response.status_code,
        )

    errors = body.get("errors")
    if errors:
        message = errors[0].get("message", "GraphQL error")
        logger.warning(f"GraphQL {op} failed: {message}")
        raise HasuraError(message, errors=errors, status_code=response.status_code)

    if response.status_code >= 400:
        raise HasuraError(f"GraphQL endpoint returned HTTP {response.status_code}", status_code=response.status_code)

    return body.get("data") or {}


class HasuraClient:
    """One pooled HTTP client per process. Each call is a single POST; no retries."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def execute(
        self,
        document: str,
        variables: Optional[dict] = None,
        token: Optional[str] = None,
        as_admin: bool = False,
    ) -> dict[str, Any]:
        op = operation_name(document)
        try:
            response = await self._client.post(
                self.endpoint,
                json=_payload(document, variables),
                headers=_headers(token, as_admin),
            )
        except httpx.HTTPError as e:
            logger.error(f"GraphQL {op} connection error: {e}")
            raise HasuraError(f"connection error: {e}") from e
        return _parse_response(response, op)

    async def ping(self) -> None:
        await self.execute("query HealthCheck { __typename }", as_admin=True)

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Global client (initialized on startup) ───────────────────
hasura_client: Optional[HasuraClient] = None


async def init_hasura() -> None:
    global hasura_client
    hasura_client = HasuraClient(
        settings.HASURA_GRAPHQL_ENDPOINT,
        timeout=settings.HASURA_TIMEOUT_SECONDS,
    )


async def close_hasura() -> None:
    global hasura_client
    if hasura_client:
        await hasura_client.aclose()


def get_hasura() -> HasuraClient:
    """FastAPI dependency to get the GraphQL client."""
    if not hasura_client:
        raise RuntimeError("Hasura client not initialized. Call init_hasura() first.")
    return hasura_client


def execute_sync(document: str, variables: Optional[dict] = None) -> dict[str, Any]:
    """Blocking admin-secret call for Celery tasks (workers run sync)."""
    op = operation_name(document)
    with httpx.Client(timeout=settings.HASURA_TIMEOUT_SECONDS) as client:
        try:
            response = client.post(
                settings.HASURA_GRAPHQL_ENDPOINT,
                json=_payload(document, variables),
                headers=_headers(as_admin=True),
            )
        except httpx.HTTPError as e:
            logger.error(f"GraphQL {op} connection error: {e}")
            raise HasuraError(f"connection error: {e}") from e
    return _parse_response(response, op)


# ── Error mapping ─────────────────────────────────────────────

def friendly_error_message(exc: Exception, fallback: str = "Something went wrong. Please try again.") -> str:
    """Map raw GraphQL/transport errors to text that is safe to show a user."""
    message = str(exc)
    if "connection" in message:
        return "Please check your internet connection and try again."
    if "row-level security" in message or "permission" in message:
        return "You do not have permission to perform this action."
    if "JWT" in message:
        return "Your session has expired. Please log in again."
    return fallback


def error_status_code(exc: Exception) -> int:
    message = str(exc)
    if "connection" in message:
        return 503
    if "row-level security" in message or "permission" in message:
        return 403
    if "JWT" in message:
        return 401
    return 502
