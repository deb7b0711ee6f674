from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/api/orders/{order_id}/accept",
    "/api/orders/{order_id}/complete",
    "/api/orders/{order_id}/reject",
    "/api/tenant/info",
    "/api/tenant/products",
    "/api/tenant/menu",
    "/api/tenant/orders",
    "/api/tenant/payments",
    "/api/public/menu/{slug}",
    "/api/whatsapp/create",
    "/api/whatsapp/qrcode",
    "/api/whatsapp/disconnect",
    "/api/whatsapp/delete",
    "/api/webhooks/subscription",
    "/api/webhooks/uazapi",
}


def test_api_startup_and_router_registration(monkeypatch):
    from commanda import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = {route.path for route in main.app.routes}
    assert REQUIRED_ROUTES.issubset(paths)


def test_uazapi_webhook_health_check(monkeypatch):
    from commanda import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/api/webhooks/uazapi")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message"] == "Webhook Uazapi está ativo"
