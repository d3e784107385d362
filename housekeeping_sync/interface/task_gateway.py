"""HTTP client for the remote cleaning task API using httpx."""

import logging
from datetime import datetime
from typing import Any

import httpx

from housekeeping_sync.core.config import constants, settings
from housekeeping_sync.core.errors import RemoteFailureError
from housekeeping_sync.domain.page import CachePage, FilterSignature
from housekeeping_sync.domain.task import CleaningTask


logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    """Return the JSON body if there is one, the raw text otherwise."""
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def _error_message(status_code: int, body: Any) -> str:
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error")
        if detail:
            return str(detail)
    return f"Error {status_code}"


class TaskGateway:
    """Thin wrapper over the ``/tasks`` endpoints.

    Every non-2xx response is raised as :class:`RemoteFailureError` carrying
    the raw status and body; transport failures are raised the same way with
    ``status_code=None``.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "TaskGateway":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        task_id: int | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.TransportError as e:
            logger.warning("remote_request_failed", extra={"method": method, "url": url, "error": str(e)})
            raise RemoteFailureError(f"Failed to reach task API: {e!s}", task_id=task_id) from e

        body = _parse_body(response)
        if not response.is_success:
            logger.warning(
                "remote_request_rejected",
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
            raise RemoteFailureError(
                _error_message(response.status_code, body),
                status_code=response.status_code,
                body=body,
                task_id=task_id,
            )
        return body

    async def list_tasks(self, signature: FilterSignature) -> CachePage:
        """Fetch one page of tasks for ``signature``."""
        payload = await self._request("GET", "/tasks", params=signature.query_params())
        return CachePage.from_payload(payload)

    async def get_task(self, task_id: int) -> CleaningTask:
        payload = await self._request("GET", f"/tasks/{task_id}", task_id=task_id)
        return CleaningTask.model_validate(payload["data"])

    async def create_task(self, fields: dict[str, Any]) -> CleaningTask:
        payload = await self._request("POST", "/tasks", json=fields)
        return CleaningTask.model_validate(payload["data"])

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> CleaningTask:
        """Send a partial update; server-side validation rules are authoritative."""
        payload = await self._request("PATCH", f"/tasks/{task_id}", json=fields, task_id=task_id)
        return CleaningTask.model_validate(payload["data"])

    async def finalize_task(self, task_id: int, *, finished_at: datetime, notes: str | None = None) -> CleaningTask:
        """Mark a task clean.

        Servers without the dedicated ``/finalize`` route answer 404; those get
        a plain PATCH that sets the finish time and the clean status instead.
        """
        body = {"finished_at": finished_at.isoformat(), "notes": notes}
        try:
            payload = await self._request("PATCH", f"/tasks/{task_id}/finalize", json=body, task_id=task_id)
        except RemoteFailureError as e:
            if e.status_code != constants.HTTP_NOT_FOUND:
                raise
            logger.info("finalize_route_missing_fallback", extra={"task_id": task_id})
            return await self.update_task(task_id, {**body, "status_id": constants.STATUS_CLEAN_ID})
        return CleaningTask.model_validate(payload["data"])

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}", task_id=task_id)
