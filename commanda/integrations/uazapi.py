"""Cliente HTTP do gateway Uazapi.

Fluxo de criação de uma instância:

1. ``init_instance`` (admintoken) cria a instância e devolve o token dela;
2. ``connect_with_retry`` pede a conexão e espera o QR code aparecer;
3. ``configure_webhook`` aponta os eventos para a automação.

As demais rotas usam o token da instância no header ``token``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from commanda.core.config import (
    UAZAPI_ADMIN_TOKEN,
    UAZAPI_API_URL,
    UAZAPI_CONNECT_MAX_RETRIES,
    UAZAPI_POLL_INTERVAL_SECONDS,
    UAZAPI_SYSTEM_NAME,
    UAZAPI_TIMEOUT_SECONDS,
)
from commanda.core.errors import CommandaError, UpstreamFailure

logger = logging.getLogger(__name__)

QRCODE_KEYS = ("qrcode", "qr_code", "qrCode", "base64")
PAIRCODE_KEYS = ("paircode", "pair_code", "pairCode")
DEFAULT_WEBHOOK_EVENTS = ("messages", "connection")


class UazapiError(UpstreamFailure):
    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        super().__init__(message)


@dataclass
class UazapiInstance:
    id: str | None
    token: str | None
    name: str | None = None
    status: str | None = None
    qrcode: str | None = None
    paircode: str | None = None
    profile_name: str | None = None
    profile_pic_url: str | None = None
    is_business: bool = False
    owner: str | None = None


@dataclass
class UazapiConnection:
    connected: bool
    logged_in: bool
    jid: str | None
    instance: UazapiInstance


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return None


def extract_code(data: dict[str, Any] | None, keys: tuple[str, ...]) -> str | None:
    """Procura o código primeiro dentro de ``instance`` e depois no topo."""
    if not isinstance(data, dict):
        return None
    nested = data.get("instance")
    if isinstance(nested, dict):
        found = _first_present(nested, keys)
        if found:
            return found
    return _first_present(data, keys)


def _parse_instance(data: dict[str, Any], token: str | None) -> UazapiInstance:
    raw = data.get("instance") if isinstance(data.get("instance"), dict) else {}
    return UazapiInstance(
        id=raw.get("id"),
        token=token or data.get("token"),
        name=raw.get("name"),
        status=raw.get("status") or "disconnected",
        qrcode=extract_code(data, QRCODE_KEYS),
        paircode=extract_code(data, PAIRCODE_KEYS),
        profile_name=raw.get("profileName"),
        profile_pic_url=raw.get("profilePicUrl"),
        is_business=bool(raw.get("isBusiness")),
        owner=raw.get("owner"),
    )


def _parse_connection(data: dict[str, Any], token: str) -> UazapiConnection:
    return UazapiConnection(
        connected=bool(data.get("connected")),
        logged_in=bool(data.get("loggedIn")),
        jid=data.get("jid"),
        instance=_parse_instance(data, token),
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.reason_phrase or str(response.status_code)
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or str(response.status_code)


class UazapiClient:
    def __init__(
        self,
        base_url: str | None = None,
        admin_token: str | None = None,
        *,
        timeout: float = UAZAPI_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = (UAZAPI_API_URL if base_url is None else base_url).rstrip("/")
        self.admin_token = UAZAPI_ADMIN_TOKEN if admin_token is None else admin_token
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        if not self.base_url:
            raise CommandaError("URL da API não configurada")
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, url, headers=headers, json=json_body)
        except httpx.HTTPError as exc:
            logger.error("uazapi %s transport error: %s", operation, exc)
            raise UazapiError(f"Erro na Uazapi ({operation}): {exc}") from exc

        logger.debug("uazapi %s status=%s", operation, response.status_code)
        return response

    def _checked(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        if not response.is_success:
            detail = _error_detail(response)
            logger.error("uazapi %s failed status=%s detail=%s", operation, response.status_code, detail)
            raise UazapiError(
                f"Erro na Uazapi ({operation}): {detail}",
                upstream_status=response.status_code,
            )
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            return {}
        return data if isinstance(data, dict) else {"data": data}

    # Rotas com admintoken

    def init_instance(
        self,
        name: str,
        *,
        system_name: str = UAZAPI_SYSTEM_NAME,
        admin_field_01: str | None = None,
        admin_field_02: str | None = None,
    ) -> UazapiInstance:
        body: dict[str, Any] = {"name": name, "systemName": system_name}
        if admin_field_01:
            body["adminField01"] = admin_field_01
        if admin_field_02:
            body["adminField02"] = admin_field_02

        response = self._request(
            "POST",
            "/instance/init",
            operation="init",
            headers={"admintoken": self.admin_token},
            json_body=body,
        )
        data = self._checked(response, "init")
        instance = _parse_instance(data, data.get("token"))
        if not instance.id or not instance.token:
            raise UazapiError("Erro na Uazapi (init): resposta sem id ou token da instância")
        logger.info("uazapi instance created instance_id=%s name=%s", instance.id, name)
        return instance

    # Rotas com token da instância

    def connect(self, instance_token: str, phone: str | None = None) -> UazapiConnection:
        body = {"phone": phone} if phone else {}
        response = self._request(
            "POST",
            "/instance/connect",
            operation="connect",
            headers={"token": instance_token},
            json_body=body,
        )
        connection = _parse_connection(self._checked(response, "connect"), instance_token)
        if not connection.instance.qrcode:
            logger.warning("uazapi connect returned no qrcode")
        return connection

    def get_status(self, instance_token: str) -> UazapiConnection:
        response = self._request(
            "GET",
            "/instance/status",
            operation="status",
            headers={"token": instance_token},
        )
        return _parse_connection(self._checked(response, "status"), instance_token)

    def fetch_qrcode(self, instance_token: str) -> str | None:
        try:
            response = self._request(
                "GET",
                "/instance/qrcode",
                operation="qrcode",
                headers={"token": instance_token},
            )
        except UazapiError:
            return None
        if not response.is_success:
            logger.warning("uazapi /instance/qrcode indisponível status=%s", response.status_code)
            return None
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            return None
        return extract_code(data, QRCODE_KEYS)

    def connect_with_retry(
        self,
        instance_token: str,
        phone: str | None = None,
        max_retries: int = UAZAPI_CONNECT_MAX_RETRIES,
        interval_seconds: float = UAZAPI_POLL_INTERVAL_SECONDS,
    ) -> UazapiConnection:
        connection = self.connect(instance_token, phone)
        if connection.instance.qrcode:
            return connection

        for attempt in range(1, max_retries + 1):
            self._sleep(interval_seconds)
            try:
                status = self.get_status(instance_token)
            except UazapiError:
                logger.warning("uazapi status poll failed attempt=%s/%s", attempt, max_retries)
                continue
            if status.instance.qrcode:
                logger.info("uazapi qrcode ready after %s polls", attempt)
                return status

        logger.warning("uazapi qrcode not ready after %s polls; trying /instance/qrcode", max_retries)
        qrcode = self.fetch_qrcode(instance_token)
        if qrcode:
            connection.instance.qrcode = qrcode
        return connection

    def configure_webhook(
        self,
        instance_token: str,
        webhook_url: str,
        events: tuple[str, ...] | list[str] = DEFAULT_WEBHOOK_EVENTS,
    ) -> dict[str, Any]:
        response = self._request(
            "POST",
            "/webhook",
            operation="webhook",
            headers={"token": instance_token},
            json_body={
                "url": webhook_url,
                "enabled": True,
                "events": list(events),
                "excludeMessages": ["wasSentByApi"],
                "addUrlEvents": False,
                "addUrlTypesMessages": False,
            },
        )
        return self._checked(response, "webhook")

    def disconnect(self, instance_token: str) -> dict[str, Any]:
        response = self._request(
            "POST",
            "/instance/disconnect",
            operation="disconnect",
            headers={"token": instance_token},
        )
        return self._checked(response, "disconnect")

    def delete_instance(self, instance_token: str) -> dict[str, Any]:
        response = self._request(
            "DELETE",
            "/instance",
            operation="delete",
            headers={"token": instance_token},
        )
        return self._checked(response, "delete")
