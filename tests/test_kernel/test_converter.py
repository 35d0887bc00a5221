"""
Tests for the endpoint converter.

Covers request validation, hook interplay, context precedence, API
error capture and response shaping.
"""

import asyncio
import json

import pytest
from pydantic import BaseModel
from starlette.responses import Response

from consentry.errors import APIError
from consentry.kernel.context import ConsentContext, EndpointContext
from consentry.kernel.converter import ApiFunction, resolve_context, to_endpoints
from consentry.kernel.endpoint import EndpointResult, create_endpoint
from consentry.kernel.hooks import AfterResult, Continue, Hook, Respond


class EchoBody(BaseModel):
    value: str


calls: list[str] = []


@create_endpoint("/echo", method="POST", body=EchoBody)
async def echo(ctx: EndpointContext):
    calls.append(ctx.body.value)
    ctx.set_header("X-Handler", "echo")
    return {
        "value": ctx.body.value,
        "user": ctx.context.extras.get("user"),
        "ip": ctx.context.ip_address,
    }


@create_endpoint("/missing", method="GET")
async def missing(ctx: EndpointContext):
    raise APIError("NOT_FOUND", code="POLICY_NOT_FOUND", headers={"X-Reason": "gone"})


@pytest.fixture(autouse=True)
def reset_calls():
    calls.clear()


def _api(endpoint, *hooks: Hook) -> ApiFunction:
    return ApiFunction(endpoint, ConsentContext(hooks=list(hooks)))


class TestApiFunction:
    """Tests for ApiFunction calls."""

    @pytest.mark.asyncio
    async def test_direct_call_returns_value(self):
        result = await _api(echo)(body={"value": "hi"})

        assert result == {"value": "hi", "user": None, "ip": None}
        assert calls == ["hi"]

    @pytest.mark.asyncio
    async def test_invalid_body_raises_validation_error(self):
        with pytest.raises(APIError) as exc_info:
            await _api(echo)(body={})

        error = exc_info.value
        assert error.status_code == 422
        assert error.code == "INPUT_VALIDATION_FAILED"
        assert "value" in error.meta["fieldErrors"]
        assert calls == []

    @pytest.mark.asyncio
    async def test_before_respond_skips_handler(self):
        hook = Hook(before=lambda ctx: Respond({"cached": True}))

        result = await _api(echo, hook)(body={"value": "hi"})

        assert result == {"cached": True}
        assert calls == []

    @pytest.mark.asyncio
    async def test_hook_patch_reaches_request_context(self):
        hook = Hook(before=lambda ctx: Continue({"user": "alice"}))

        result = await _api(echo, hook)(body={"value": "hi"})

        assert result["user"] == "alice"

    @pytest.mark.asyncio
    async def test_hook_patch_overrides_body(self):
        hook = Hook(before=lambda ctx: Continue({"body": {"value": "patched"}}))

        result = await _api(echo, hook)(body={"value": "hi"})

        assert result["value"] == "patched"

    @pytest.mark.asyncio
    async def test_call_context_applied(self):
        result = await _api(echo)(body={"value": "hi"}, context={"ip_address": "198.51.100.1"})

        assert result["ip"] == "198.51.100.1"

    @pytest.mark.asyncio
    async def test_hook_context_beats_call_context(self):
        hook = Hook(before=lambda ctx: Continue({"ip_address": "203.0.113.9"}))

        result = await _api(echo, hook)(body={"value": "hi"}, context={"ip_address": "198.51.100.1"})

        assert result["ip"] == "203.0.113.9"

    @pytest.mark.asyncio
    async def test_api_error_visible_to_after_hooks_then_raised(self):
        seen = []

        def after(ctx):
            seen.append(ctx.context.returned)

        with pytest.raises(APIError) as exc_info:
            await _api(missing, Hook(after=after))()

        assert exc_info.value.code == "POLICY_NOT_FOUND"
        assert len(seen) == 1
        assert isinstance(seen[0], APIError)

    @pytest.mark.asyncio
    async def test_raised_api_error_carries_hook_headers(self):
        hook = Hook(after=lambda ctx: AfterResult(headers={"X-After": "1"}))

        with pytest.raises(APIError) as exc_info:
            await _api(missing, hook)()

        headers = {key.lower(): value for key, value in exc_info.value.headers.items()}
        assert headers == {"x-reason": "gone", "x-after": "1"}

    @pytest.mark.asyncio
    async def test_after_hook_replaces_error(self):
        hook = Hook(after=lambda ctx: AfterResult(response={"recovered": True}))

        result = await _api(missing, hook)()

        assert result == {"recovered": True}

    @pytest.mark.asyncio
    async def test_after_hook_sees_returned_value(self):
        seen = []
        hook = Hook(after=lambda ctx: seen.append(ctx.context.returned))

        await _api(echo, hook)(body={"value": "hi"})

        assert seen == [{"value": "hi", "user": None, "ip": None}]

    @pytest.mark.asyncio
    async def test_as_response(self):
        response = await _api(echo)(body={"value": "hi"}, as_response=True)

        assert isinstance(response, Response)
        assert response.status_code == 200
        assert response.headers["x-handler"] == "echo"
        assert json.loads(response.body)["value"] == "hi"

    @pytest.mark.asyncio
    async def test_as_response_renders_error(self):
        response = await _api(missing)(as_response=True)

        assert response.status_code == 404
        assert response.headers["x-reason"] == "gone"
        assert json.loads(response.body) == {
            "error": True,
            "code": "POLICY_NOT_FOUND",
            "message": "Policy not found",
        }

    @pytest.mark.asyncio
    async def test_after_hook_headers_merged(self):
        hook = Hook(after=lambda ctx: AfterResult(headers={"X-After": "1"}))

        response = await _api(echo, hook)(body={"value": "hi"}, as_response=True)

        assert response.headers["x-after"] == "1"
        assert response.headers["x-handler"] == "echo"

    @pytest.mark.asyncio
    async def test_return_headers(self):
        result = await _api(echo)(body={"value": "hi"}, return_headers=True)

        assert isinstance(result, EndpointResult)
        assert result.response["value"] == "hi"
        assert result.headers["x-handler"] == "echo"

    @pytest.mark.asyncio
    async def test_shared_context_not_mutated(self):
        context = ConsentContext(hooks=[Hook(before=lambda ctx: Continue({"user": "alice"}))])
        api = ApiFunction(echo, context)

        await api(body={"value": "hi"})

        assert context.extras == {}
        assert context.returned is None


class TestResolveContext:
    """Tests for context sources."""

    @pytest.mark.asyncio
    async def test_plain_context(self):
        context = ConsentContext()

        assert await resolve_context(context) is context

    @pytest.mark.asyncio
    async def test_async_callable(self):
        context = ConsentContext()

        async def source():
            return context

        assert await resolve_context(source) is context

    @pytest.mark.asyncio
    async def test_future_resolves_repeatedly(self):
        context = ConsentContext()
        future = asyncio.get_running_loop().create_future()
        future.set_result(context)

        assert await resolve_context(future) is context
        assert await resolve_context(future) is context

    @pytest.mark.asyncio
    async def test_wrong_type_rejected(self):
        with pytest.raises(TypeError):
            await resolve_context(lambda: "not a context")


def test_to_endpoints_wraps_each_endpoint():
    api = to_endpoints({"echo": echo, "missing": missing}, ConsentContext())

    assert set(api) == {"echo", "missing"}
    assert api["echo"].path == "/echo"
    assert api["missing"].methods == ["GET"]
