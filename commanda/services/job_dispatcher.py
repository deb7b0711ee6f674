from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from commanda.core.config import INNGEST_BASE_URL, INNGEST_EVENT_KEY, JOB_DISPATCHER
from commanda.core.errors import UpstreamFailure
from commanda.services.event_bus import EventBus, event_bus

logger = logging.getLogger(__name__)


class JobDispatcher(Protocol):
    def send(self, name: str, data: dict[str, Any]) -> None:
        ...


class InngestDispatcher:
    """Envia eventos para a API de eventos do Inngest."""

    def __init__(
        self,
        base_url: str = INNGEST_BASE_URL,
        event_key: str = INNGEST_EVENT_KEY,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.event_key = event_key
        self.timeout = timeout
        self._transport = transport

    def send(self, name: str, data: dict[str, Any]) -> None:
        if not self.event_key:
            raise UpstreamFailure("INNGEST_EVENT_KEY não configurada")
        url = f"{self.base_url}/e/{self.event_key}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json={"name": name, "data": data})
        except httpx.HTTPError as exc:
            logger.error("inngest send failed event=%s error=%s", name, exc, extra={"event_name": name})
            raise UpstreamFailure("Erro ao enviar evento") from exc

        if not response.is_success:
            logger.error(
                "inngest send rejected event=%s status=%s",
                name,
                response.status_code,
                extra={"event_name": name},
            )
            raise UpstreamFailure("Erro ao enviar evento")
        logger.info("event sent %s", name, extra={"event_name": name})


class LocalDispatcher:
    """Entrega o evento no barramento em processo (dev e testes)."""

    def __init__(self, bus: EventBus = event_bus) -> None:
        self.bus = bus

    def send(self, name: str, data: dict[str, Any]) -> None:
        expected = len(self.bus.handlers_for(name))
        if not expected:
            logger.warning("event %s had no handler", name, extra={"event_name": name})
            return
        delivered = self.bus.emit(name, data)
        if delivered < expected:
            logger.error(
                "event %s failed in %s of %s handlers",
                name,
                expected - delivered,
                expected,
                extra={"event_name": name},
            )
            raise UpstreamFailure("Erro ao processar evento")


def build_dispatcher(kind: str = JOB_DISPATCHER) -> JobDispatcher:
    if kind == "local":
        return LocalDispatcher()
    if kind == "inngest":
        return InngestDispatcher()
    raise ValueError(f"JOB_DISPATCHER inválido: {kind}")
