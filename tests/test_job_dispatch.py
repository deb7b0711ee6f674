import json

import httpx
import pytest

from commanda.core.errors import UpstreamFailure
from commanda.services import subscription_jobs
from commanda.services.event_bus import EventBus, event_bus
from commanda.services.job_dispatcher import InngestDispatcher, LocalDispatcher, build_dispatcher
from tests.fixtures_data import TENANT_A


def test_inngest_dispatcher_posts_event_with_key():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ids": ["evt-1"], "status": 200})

    dispatcher = InngestDispatcher("https://inn.test", "event-key", transport=httpx.MockTransport(handler))
    dispatcher.send("subscription/expired", {"tenantId": TENANT_A})

    assert seen["url"] == "https://inn.test/e/event-key"
    assert seen["body"] == {"name": "subscription/expired", "data": {"tenantId": TENANT_A}}


def test_inngest_dispatcher_raises_on_rejection():
    dispatcher = InngestDispatcher(
        "https://inn.test",
        "event-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "bad key"})),
    )

    with pytest.raises(UpstreamFailure):
        dispatcher.send("subscription/expired", {"tenantId": TENANT_A})


def test_inngest_dispatcher_requires_event_key():
    with pytest.raises(UpstreamFailure):
        InngestDispatcher("https://inn.test", "").send("subscription/expired", {})


def test_local_dispatcher_delivers_on_event_bus():
    bus = EventBus()
    received = []
    bus.subscribe("subscription/expired", received.append)

    LocalDispatcher(bus).send("subscription/expired", {"tenantId": TENANT_A})

    assert received == [{"tenantId": TENANT_A}]


def _failing_handler(data):
    raise UpstreamFailure("Erro ao desconectar WhatsApp")


def test_local_dispatcher_reports_handler_failure():
    bus = EventBus()
    received = []
    bus.subscribe("subscription/expired", _failing_handler)
    bus.subscribe("subscription/expired", received.append)

    with pytest.raises(UpstreamFailure) as exc:
        LocalDispatcher(bus).send("subscription/expired", {"tenantId": TENANT_A})

    assert exc.value.message == "Erro ao processar evento"
    # os demais handlers ainda recebem o evento
    assert received == [{"tenantId": TENANT_A}]


def test_local_dispatcher_without_handler_is_a_noop():
    LocalDispatcher(EventBus()).send("subscription/expired", {"tenantId": TENANT_A})


def test_build_dispatcher_by_kind():
    assert isinstance(build_dispatcher("local"), LocalDispatcher)
    assert isinstance(build_dispatcher("inngest"), InngestDispatcher)
    with pytest.raises(ValueError):
        build_dispatcher("kafka")


def test_subscription_jobs_are_registered_on_the_event_bus():
    assert subscription_jobs.disconnect_whatsapp in event_bus.handlers_for("subscription/expired")
    assert subscription_jobs.delete_whatsapp_instance in event_bus.handlers_for("subscription/cancelled")
    assert subscription_jobs.reconnect_whatsapp in event_bus.handlers_for("subscription/reactivated")


def _recording_transport(calls, status_code=200):
    def handler(request):
        calls.append(
            {
                "url": str(request.url),
                "secret": request.headers.get("x-inngest-secret"),
                "body": json.loads(request.content),
            }
        )
        return httpx.Response(status_code, json={"success": status_code < 400})

    return httpx.MockTransport(handler)


@pytest.mark.parametrize(
    "job, data, path",
    [
        (subscription_jobs.disconnect_whatsapp, {"tenantId": TENANT_A}, "/api/whatsapp/disconnect"),
        (subscription_jobs.delete_whatsapp_instance, {"tenantId": TENANT_A}, "/api/whatsapp/delete"),
        (subscription_jobs.reconnect_whatsapp, {"tenantId": TENANT_A, "wasDeleted": True}, "/api/whatsapp/create"),
        (subscription_jobs.reconnect_whatsapp, {"tenantId": TENANT_A, "wasDeleted": False}, "/api/whatsapp/qrcode"),
    ],
)
def test_jobs_call_back_with_internal_secret(job, data, path):
    calls = []

    result = job(data, transport=_recording_transport(calls))

    assert result["success"] is True
    assert calls == [
        {
            "url": f"https://app.test{path}",
            "secret": "internal-secret",
            "body": {"tenantId": TENANT_A},
        }
    ]


def test_job_raises_on_non_2xx_so_runner_retries():
    with pytest.raises(UpstreamFailure) as exc:
        subscription_jobs.disconnect_whatsapp({"tenantId": TENANT_A}, transport=_recording_transport([], status_code=500))

    assert exc.value.message.startswith("Erro ao desconectar")
