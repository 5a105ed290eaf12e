"""Cliente pull del servicio de mensajería (API REST push/pull)."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ...core.domain.errors import MalformedRecordError
from .config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceivedMessage:
    """Mensaje recibido de una suscripción."""
    ack_id: str
    message_id: str
    data: bytes
    attributes: dict[str, str] = field(default_factory=dict)
    publish_time: Optional[str] = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "ReceivedMessage":
        msg = item.get("message") or {}
        try:
            data = base64.b64decode(msg.get("data") or "", validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedRecordError(f"message data is not base64: {e}", source="sync")
        ack_id = item.get("ackId")
        if not ack_id:
            raise MalformedRecordError("received message without ackId", source="sync")
        return cls(
            ack_id=str(ack_id),
            message_id=str(msg.get("messageId") or ""),
            data=data,
            attributes={str(k): str(v) for k, v in (msg.get("attributes") or {}).items()},
            publish_time=msg.get("publishTime"),
        )


class MessagingClient:
    """Pull + acknowledge sobre ``/v1/projects/{project}/subscriptions/{sub}``.

    Uso:
        with MessagingClient(cfg) as client:
            msgs = client.pull(10)
            client.acknowledge([m.ack_id for m in msgs])
    """

    def __init__(self, cfg: SyncConfig, http: Optional[httpx.Client] = None) -> None:
        self._cfg = cfg
        self._http = http or httpx.Client(
            base_url=cfg.base_url,
            timeout=cfg.timeout_seconds,
            verify=cfg.verify_tls,
        )

    @property
    def _sub_path(self) -> str:
        return f"/v1/projects/{self._cfg.project}/subscriptions/{self._cfg.subscription}"

    def pull(self, max_messages: int) -> list[ReceivedMessage]:
        resp = self._http.post(
            f"{self._sub_path}:pull",
            params={"key": self._cfg.token},
            json={"maxMessages": str(max_messages), "returnImmediately": "true"},
        )
        resp.raise_for_status()
        messages: list[ReceivedMessage] = []
        for item in resp.json().get("receivedMessages") or []:
            try:
                messages.append(ReceivedMessage.from_api(item))
            except MalformedRecordError as e:
                # sin ack: el servicio lo volverá a entregar
                logger.warning("[SYNC] Skipping malformed message: %s", e)
        return messages

    def acknowledge(self, ack_ids: list[str]) -> None:
        if not ack_ids:
            return
        resp = self._http.post(
            f"{self._sub_path}:acknowledge",
            params={"key": self._cfg.token},
            json={"ackIds": ack_ids},
        )
        resp.raise_for_status()

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MessagingClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
