import httpx
import pytest

from routine_builder.chat_client import FALLBACK_REPLY, ChatClient, extract_error, extract_reply
from routine_builder.errors import ServiceError, TransportError

ENDPOINT = "https://chat.test/v1/chat"
MESSAGES = [{"role": "system", "content": "persona"}, {"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_complete_posts_whole_log_and_returns_reply(make_http, chat_calls):
    http = make_http(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "Hello!"}}]}))
    client = ChatClient(ENDPOINT, http_client=http)
    assert await client.complete(MESSAGES) == "Hello!"
    assert chat_calls == [{"messages": MESSAGES}]
    await http.aclose()


@pytest.mark.asyncio
async def test_error_string_raises_service_error(make_http):
    http = make_http(lambda request: httpx.Response(200, json={"error": "rate limited"}))
    client = ChatClient(ENDPOINT, http_client=http)
    with pytest.raises(ServiceError) as excinfo:
        await client.complete(MESSAGES)
    assert excinfo.value.message == "rate limited"
    await http.aclose()


@pytest.mark.asyncio
async def test_error_object_on_failed_status_raises_service_error(make_http):
    http = make_http(lambda request: httpx.Response(429, json={"error": {"message": "slow down"}}))
    client = ChatClient(ENDPOINT, http_client=http)
    with pytest.raises(ServiceError, match="slow down"):
        await client.complete(MESSAGES)
    await http.aclose()


@pytest.mark.asyncio
async def test_non_json_body_raises_transport_error(make_http):
    http = make_http(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))
    client = ChatClient(ENDPOINT, http_client=http)
    with pytest.raises(TransportError):
        await client.complete(MESSAGES)
    await http.aclose()


@pytest.mark.asyncio
async def test_failed_status_without_error_raises_transport_error(make_http):
    http = make_http(lambda request: httpx.Response(500, json={"detail": "boom"}))
    client = ChatClient(ENDPOINT, http_client=http)
    with pytest.raises(TransportError, match="HTTP 500"):
        await client.complete(MESSAGES)
    await http.aclose()


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    client = ChatClient(ENDPOINT, http_client=http)
    with pytest.raises(TransportError, match="connection refused"):
        await client.complete(MESSAGES)
    await http.aclose()


@pytest.mark.asyncio
async def test_missing_endpoint_raises_transport_error(make_http, chat_calls):
    http = make_http(lambda request: httpx.Response(200, json={}))
    client = ChatClient("", http_client=http)
    with pytest.raises(TransportError):
        await client.complete(MESSAGES)
    assert chat_calls == []
    await http.aclose()


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open(make_http):
    http = make_http(lambda request: httpx.Response(200, json={}))
    client = ChatClient(ENDPOINT, http_client=http)
    await client.aclose()
    assert not http.is_closed
    await http.aclose()


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"choices": []},
        {"choices": [{}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": {"content": None}}]},
        ["not", "an", "object"],
    ],
)
def test_unexpected_shapes_fall_back(data):
    assert extract_reply(data) == FALLBACK_REPLY


def test_extract_error_shapes():
    assert extract_error({"error": "quota"}) == "quota"
    assert extract_error({"error": {"message": "bad key"}}) == "bad key"
    assert extract_error({"error": {"code": 7}}) == '{"code": 7}'
    assert extract_error({"choices": []}) is None
    assert extract_error("text") is None
