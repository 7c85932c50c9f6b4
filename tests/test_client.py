import asyncio

import httpx
import pytest

from app.connectors.bitable.client import BitablePushClient, PushClientError, signature_headers
from app.core.signature import extract_signature_headers, verify_signature
from app.main import app
from conftest import TOKEN


def run(coro):
    return asyncio.run(coro)


def test_signature_headers_verify():
    headers = signature_headers(TOKEN)
    assert verify_signature(extract_signature_headers(headers), TOKEN) is True


def test_send_records_signs_and_tags_table():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["headers"] = dict(request.headers)
        seen["body"] = request.read()
        return httpx.Response(200, json={"code": 0, "data": {"processed_count": 1, "total_stored": 1}})

    async def go():
        async with BitablePushClient(
            "http://bridge", token=TOKEN, transport=httpx.MockTransport(handler)
        ) as client:
            return await client.send_records([{"fields": {"金额": 1}}], table_id="tbl_x")

    result = run(go())
    assert result["code"] == 0
    assert seen["path"] == "/api/receive-data"
    assert verify_signature(extract_signature_headers(seen["headers"]), TOKEN)
    assert b"tbl_x" in seen["body"]


def test_unsigned_client_sends_no_signature():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = dict(request.headers)
        return httpx.Response(200, json={"code": 0, "data": {}})

    async def go():
        async with BitablePushClient(
            "http://bridge", sign=False, transport=httpx.MockTransport(handler)
        ) as client:
            await client.send_payload({"a": 1})

    run(go())
    assert "x-lark-signature" not in seen["headers"]


def test_error_envelope_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"code": 401, "message": "Invalid signature", "error": "x"})

    async def go():
        async with BitablePushClient("http://bridge", transport=httpx.MockTransport(handler)) as client:
            await client.clear()

    with pytest.raises(PushClientError) as exc_info:
        run(go())
    assert exc_info.value.status_code == 401
    assert exc_info.value.code == 401
    assert str(exc_info.value) == "Invalid signature"


def test_against_running_app(client, expense_payload):
    # `client` fixture installs the temp store/settings overrides on the app
    async def go():
        transport = httpx.ASGITransport(app=app)
        async with BitablePushClient("http://testserver", token=TOKEN, transport=transport) as push:
            assert await push.ping() is True
            await push.send_payload(expense_payload)
            records = await push.list_records()
            await push.clear()
            return records, await push.list_records()

    records, after_clear = run(go())
    assert len(records) == 1
    assert records[0]["fields"]["金额"] == 50
    assert after_clear == []


def test_wrong_token_rejected_by_app(client, expense_payload):
    async def go():
        transport = httpx.ASGITransport(app=app)
        async with BitablePushClient("http://testserver", token="wrong", transport=transport) as push:
            await push.send_payload(expense_payload)

    with pytest.raises(PushClientError) as exc_info:
        run(go())
    assert exc_info.value.status_code == 401
