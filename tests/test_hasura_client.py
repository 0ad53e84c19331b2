"""
tests/test_hasura_client.py
GraphQL client: headers, error handling and error-message mapping.
"""

import json

import httpx
import pytest

from config.hasura_client import (
    HasuraClient,
    HasuraError,
    error_status_code,
    friendly_error_message,
    operation_name,
)
from config.settings import settings

ENDPOINT = "http://hasura.test/v1/graphql"


def _client(handler) -> HasuraClient:
    return HasuraClient(ENDPOINT, transport=httpx.MockTransport(handler))


def test_operation_name():
    assert operation_name("query GetMaids($limit: Int) { x }") == "GetMaids"
    assert operation_name("\nmutation UpdateMaidStatus { y }") == "UpdateMaidStatus"
    assert operation_name("{ __typename }") is None


@pytest.mark.asyncio
async def test_execute_forwards_user_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["admin"] = request.headers.get("x-hasura-admin-secret")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"maid_profiles": []}})

    gql = _client(handler)
    data = await gql.execute("query GetMaids { maid_profiles { id } }", {"limit": 5}, token="abc")
    await gql.aclose()

    assert data == {"maid_profiles": []}
    assert seen["auth"] == "Bearer abc"
    assert seen["admin"] is None
    assert seen["body"]["operationName"] == "GetMaids"
    assert seen["body"]["variables"] == {"limit": 5}


@pytest.mark.asyncio
async def test_execute_as_admin_uses_secret():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["admin"] = request.headers.get("x-hasura-admin-secret")
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"data": {"__typename": "query_root"}})

    gql = _client(handler)
    await gql.ping()
    await gql.aclose()

    assert seen["admin"] == settings.HASURA_ADMIN_SECRET
    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_graphql_errors_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "errors": [{"message": "field 'x' not found", "extensions": {"code": "validation-failed"}}],
        })

    gql = _client(handler)
    with pytest.raises(HasuraError) as exc_info:
        await gql.execute("query Broken { x }")
    await gql.aclose()

    assert exc_info.value.code == "validation-failed"
    assert "not found" in str(exc_info.value)


@pytest.mark.asyncio
async def test_http_error_status_raises():
    gql = _client(lambda request: httpx.Response(500, json={}))
    with pytest.raises(HasuraError):
        await gql.execute("query Anything { x }")
    await gql.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    gql = _client(handler)
    with pytest.raises(HasuraError) as exc_info:
        await gql.execute("query Anything { x }")
    await gql.aclose()

    assert error_status_code(exc_info.value) == 503
    assert friendly_error_message(exc_info.value) == "Please check your internet connection and try again."


def test_error_mapping():
    rls = HasuraError('new row violates row-level security policy for table "maid_profiles"')
    jwt = HasuraError("Could not verify JWT: JWTExpired")
    other = HasuraError("unexpected null value")

    assert error_status_code(rls) == 403
    assert error_status_code(jwt) == 401
    assert error_status_code(other) == 502
    assert friendly_error_message(jwt) == "Your session has expired. Please log in again."
    assert friendly_error_message(other, "Could not save.") == "Could not save."
