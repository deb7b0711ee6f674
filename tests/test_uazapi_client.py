import json

import httpx
import pytest

from commanda.core.errors import CommandaError, UpstreamFailure
from commanda.integrations.uazapi import UazapiClient, UazapiError, extract_code


def _client(handler, **kwargs):
    return UazapiClient(
        base_url="https://uazapi.test",
        admin_token="admin-token",
        transport=httpx.MockTransport(handler),
        sleep=lambda _: None,
        **kwargs,
    )


def test_init_instance_uses_admin_token_and_returns_instance_token():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["admintoken"] = request.headers.get("admintoken")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"token": "tok-new", "instance": {"id": "inst-1", "name": "tenant_aaaaaaaa"}})

    instance = _client(handler).init_instance("tenant_aaaaaaaa", admin_field_01="tenant-a", admin_field_02="user-a")

    assert seen["path"] == "/instance/init"
    assert seen["admintoken"] == "admin-token"
    assert seen["body"] == {
        "name": "tenant_aaaaaaaa",
        "systemName": "commanda",
        "adminField01": "tenant-a",
        "adminField02": "user-a",
    }
    assert instance.id == "inst-1"
    assert instance.token == "tok-new"


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"instance": {"qrcode": "data:qr1"}}, "data:qr1"),
        ({"instance": {"qr_code": "data:qr2"}}, "data:qr2"),
        ({"instance": {"qrCode": "data:qr3"}}, "data:qr3"),
        ({"qrcode": "data:qr4", "instance": {}}, "data:qr4"),
        ({"base64": "data:qr5"}, "data:qr5"),
        ({"instance": {"status": "connecting"}}, None),
    ],
)
def test_qrcode_aliases(payload, expected):
    assert extract_code(payload, ("qrcode", "qr_code", "qrCode", "base64")) == expected


def test_connect_sends_instance_token_and_phone():
    seen = {}

    def handler(request):
        seen["token"] = request.headers.get("token")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"connected": False, "loggedIn": False, "jid": None, "instance": {"id": "inst-1", "qr_code": "data:qr", "paircode": "ABCD-1234"}},
        )

    connection = _client(handler).connect("tok-a", phone="5511999990000")

    assert seen == {"token": "tok-a", "body": {"phone": "5511999990000"}}
    assert connection.instance.qrcode == "data:qr"
    assert connection.instance.paircode == "ABCD-1234"
    assert connection.connected is False


def test_connect_with_retry_polls_status_until_qrcode_appears():
    calls = []
    sleeps = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/instance/connect":
            return httpx.Response(200, json={"instance": {"id": "inst-1", "status": "connecting"}})
        if len([c for c in calls if c == "/instance/status"]) < 3:
            return httpx.Response(200, json={"instance": {"id": "inst-1", "status": "connecting"}})
        return httpx.Response(200, json={"instance": {"id": "inst-1", "qrCode": "data:qr-late"}})

    client = UazapiClient(
        base_url="https://uazapi.test",
        admin_token="admin-token",
        transport=httpx.MockTransport(handler),
        sleep=sleeps.append,
    )
    connection = client.connect_with_retry("tok-a", max_retries=5, interval_seconds=2)

    assert connection.instance.qrcode == "data:qr-late"
    assert calls == ["/instance/connect", "/instance/status", "/instance/status", "/instance/status"]
    assert sleeps == [2, 2, 2]


def test_connect_with_retry_falls_back_to_qrcode_endpoint():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path == "/instance/qrcode":
            return httpx.Response(200, json={"base64": "data:qr-fallback"})
        if request.url.path == "/instance/status":
            return httpx.Response(503, json={"message": "indisponível"})
        return httpx.Response(200, json={"instance": {"id": "inst-1"}})

    connection = _client(handler).connect_with_retry("tok-a", max_retries=2)

    assert connection.instance.qrcode == "data:qr-fallback"
    assert calls == ["/instance/connect", "/instance/status", "/instance/status", "/instance/qrcode"]


def test_connect_with_retry_returns_without_qrcode_when_nothing_works():
    def handler(request):
        if request.url.path == "/instance/qrcode":
            return httpx.Response(404)
        return httpx.Response(200, json={"instance": {"id": "inst-1"}})

    connection = _client(handler).connect_with_retry("tok-a", max_retries=1)

    assert connection.instance.qrcode is None


def test_non_2xx_raises_uazapi_error_with_gateway_message():
    def handler(request):
        return httpx.Response(401, json={"message": "invalid token"})

    with pytest.raises(UazapiError) as exc:
        _client(handler).disconnect("tok-a")

    assert isinstance(exc.value, UpstreamFailure)
    assert exc.value.upstream_status == 401
    assert "invalid token" in exc.value.message


def test_delete_uses_http_delete_on_instance_route():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["token"] = request.headers.get("token")
        return httpx.Response(200, json={"response": "Instance Deleted"})

    assert _client(handler).delete_instance("tok-a") == {"response": "Instance Deleted"}
    assert seen == {"method": "DELETE", "path": "/instance", "token": "tok-a"}


def test_configure_webhook_payload():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "wh-1"})

    _client(handler).configure_webhook("tok-a", "https://n8n.test/webhook", ["messages", "connection"])

    assert seen["body"]["url"] == "https://n8n.test/webhook"
    assert seen["body"]["enabled"] is True
    assert seen["body"]["events"] == ["messages", "connection"]
    assert seen["body"]["excludeMessages"] == ["wasSentByApi"]


def test_missing_base_url_fails_at_call_time():
    client = UazapiClient(base_url="", admin_token="x", transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(CommandaError) as exc:
        client.disconnect("tok-a")

    assert exc.value.message == "URL da API não configurada"
