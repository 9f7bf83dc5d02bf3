from __future__ import annotations

import logging
from typing import Any

import httpx
from pymarc import Record

from marcfix.services.records import get_record_id, record_from_marcxml, record_to_marcxml
from marcfix.services.validation import UpdateFailedError, require

logger = logging.getLogger(__name__)


class CatalogClient:
    """Thin client for the catalog REST API (``/bib/<id>`` resources, MARCXML bodies)."""

    def __init__(
        self,
        base_url: str,
        *,
        user: str = "",
        password: str = "",
        timeout: float = 30,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        auth = (user, password) if user and password else None
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=auth,
            timeout=timeout,
            headers={"User-Agent": "marcfix/0.1", "Accept": "application/xml, application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CatalogClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def load_record(self, record_id: str) -> Record | None:
        logger.debug("Fetching record %s", record_id)
        response = self._client.get(f"/bib/{record_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return record_from_marcxml(response.content)

    def update_record(self, record: Record) -> dict[str, Any]:
        record_id = get_record_id(record)
        require(bool(record_id), "Record has no 001 control field, cannot update", UpdateFailedError)
        try:
            response = self._client.put(
                f"/bib/{record_id}",
                content=record_to_marcxml(record).encode("utf-8"),
                headers={"Content-Type": "application/xml"},
            )
        except httpx.HTTPError as exc:
            raise UpdateFailedError(f"Updating record {record_id} failed: {exc}") from exc
        if response.is_error:
            raise UpdateFailedError(f"Updating record {record_id} failed ({response.status_code}): {response.text.strip()}")
        return _parse_update_response(response)


def _parse_update_response(response: httpx.Response) -> dict[str, Any]:
    if "json" in response.headers.get("content-type", ""):
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            messages = payload.get("messages")
            payload["messages"] = messages if isinstance(messages, list) else []
            return payload
    text = response.text.strip()
    return {"messages": [{"message": text}] if text else []}


def update_messages(response: dict[str, Any]) -> list[str]:
    return [str(item.get("message", "")) for item in response.get("messages", []) if isinstance(item, dict)]
