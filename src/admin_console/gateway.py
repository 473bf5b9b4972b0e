# This file implements the remote gateway for one admin resource type.
# It exists so list/detail/mutation/export calls share auth, envelope validation, and error mapping.
# The gateway never holds view state; its only memory is the shared response cache.
# Calls are synchronous and are offloaded to worker threads by the collection controller.

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO, Generic

from pydantic import ValidationError

from src.admin_console.api_client import AdminApiClient, ApiResponse
from src.admin_console.auth import CredentialProvider
from src.admin_console.errors import (
    MalformedResponseError,
    ServerError,
    UnauthorizedError,
    ValidationFailedError,
)
from src.admin_console.models import FilterCriteria, ResourcePage, ResourceT
from src.admin_console.normalizers import normalize_page
from src.admin_console.resources import ResourceSpec, Route
from src.admin_console.response_cache import ResponseCache
from src.admin_console.schemas import Envelope, ErrorBody

LOGGER = logging.getLogger("admin_console.gateway")

UNAUTHORIZED_STATUSES = frozenset({401, 403})


@dataclass(frozen=True)
class ExportPayload:
    stream: BinaryIO
    content_type: str
    size: int


class ResourceGateway(Generic[ResourceT]):
    def __init__(
        self,
        *,
        spec: ResourceSpec[ResourceT],
        client: AdminApiClient,
        auth: CredentialProvider,
        cache: ResponseCache | None = None,
    ) -> None:
        self.spec = spec
        self.client = client
        self.auth = auth
        self.cache = cache or ResponseCache(ttl_seconds=0)

    @property
    def name(self) -> str:
        return self.spec.name

    def list(self, criteria: FilterCriteria, *, use_cache: bool = True) -> ResourcePage[ResourceT]:
        cache_key = criteria.cache_key()
        if use_cache:
            cached = self.cache.get(self.name, "list", cache_key)
            if cached is not None:
                LOGGER.debug("list cache hit resource=%s key=%s", self.name, cache_key)
                return cached

        query = criteria.to_query(self.spec.filter_fields)
        response = self._send(self.spec.list_route, query=query)
        envelope = self._envelope(response)
        page = normalize_page(envelope.data, self.spec.normalize, requested=criteria)
        self.cache.set(self.name, "list", cache_key, page)
        LOGGER.info(
            "list loaded resource=%s page=%s limit=%s total=%s items=%s",
            self.name,
            page.pagination.page,
            page.pagination.limit,
            page.pagination.total,
            len(page.items),
        )
        return page

    def get_by_id(self, resource_id: str, *, use_cache: bool = True) -> ResourceT:
        resource_id = str(resource_id)
        if use_cache:
            cached = self.cache.get(self.name, "detail", resource_id)
            if cached is not None:
                return cached

        response = self._send(self.spec.detail_route, resource_id=resource_id)
        record = self._record(self._envelope(response).data)
        resource = self.spec.normalize(record)
        self.cache.set(self.name, "detail", resource_id, resource)
        return resource

    def create(self, body: Mapping[str, Any]) -> ResourceT:
        route = self._require_route(self.spec.create_route, "create")
        response = self._send(route, body=dict(body))
        return self.spec.normalize(self._record(self._envelope(response).data))

    def update(self, resource_id: str, body: Mapping[str, Any]) -> ResourceT:
        route = self._require_route(self.spec.update_route, "update")
        response = self._send(route, resource_id=str(resource_id), body=dict(body))
        return self.spec.normalize(self._record(self._envelope(response).data))

    def remove(self, resource_id: str) -> None:
        route = self._require_route(self.spec.delete_route, "delete")
        response = self._send(route, resource_id=str(resource_id))
        self._acknowledge(response)

    def perform_action(self, resource_id: str, action: str) -> None:
        if action == "delete":
            self.remove(resource_id)
            return
        route = self.spec.actions.get(action)
        if route is None:
            supported = ", ".join(self.spec.action_names()) or "none"
            raise ValidationFailedError(
                f"Unsupported {self.name} action '{action}'. Supported actions: {supported}"
            )
        response = self._send(route, resource_id=str(resource_id))
        self._acknowledge(response)

    def export(self, criteria: FilterCriteria) -> ExportPayload:
        route = self._require_route(self.spec.export_route, "export")
        query = criteria.to_query(self.spec.filter_fields)
        # Exports cover the whole filtered set, not only the visible page.
        query.pop("page", None)
        query.pop("limit", None)
        response = self._send(route, query=query)

        if response.is_json:
            envelope = self._envelope(response)
            if not isinstance(envelope.data, str):
                raise MalformedResponseError(
                    f"{self.name} export returned JSON without CSV content",
                    status_code=response.status,
                )
            content = envelope.data.encode("utf-8")
            content_type = "text/csv"
        else:
            content = response.content
            content_type = response.content_type or "application/octet-stream"

        return ExportPayload(
            stream=io.BytesIO(content),
            content_type=content_type,
            size=len(content),
        )

    def summary(self) -> dict[str, Any]:
        route = self._require_route(self.spec.summary_route, "summary")
        envelope = self._envelope(self._send(route))
        if not isinstance(envelope.data, Mapping):
            raise MalformedResponseError(f"{self.name} summary data is not an object")
        return dict(envelope.data)

    def invalidate(self, resource_id: str | None = None) -> int:
        target_id = None if resource_id is None else str(resource_id)
        dropped = self.cache.invalidate(self.name, target_id)
        LOGGER.debug(
            "cache invalidated resource=%s id=%s entries=%s", self.name, target_id, dropped
        )
        return dropped

    def _require_route(self, route: Route | None, operation: str) -> Route:
        if route is None:
            raise ValidationFailedError(f"{self.name} does not support {operation}")
        return route

    def _send(
        self,
        route: Route,
        *,
        resource_id: str | None = None,
        query: Mapping[str, Any] | None = None,
        body: Any | None = None,
    ) -> ApiResponse:
        token = self.auth.get_credential()
        if not token:
            self.auth.on_unauthorized()
            raise UnauthorizedError(f"No credential available for {self.name} request")

        merged_query = {**route.query, **(query or {})}
        response = self.client.request(
            route.method,
            route.render_path(resource_id),
            query=merged_query or None,
            body=body,
            headers={"Authorization": f"Bearer {token}"},
        )

        if response.status in UNAUTHORIZED_STATUSES:
            LOGGER.warning(
                "request rejected resource=%s method=%s status=%s",
                self.name,
                route.method,
                response.status,
            )
            self.auth.on_unauthorized()
            raise UnauthorizedError(
                _error_message(response) or "Credential was rejected",
                status_code=response.status,
            )
        if not response.ok:
            message = _error_message(response) or f"HTTP {response.status}"
            LOGGER.error(
                "request failed resource=%s method=%s status=%s message=%s",
                self.name,
                route.method,
                response.status,
                message,
            )
            raise ServerError(message, status_code=response.status, details=response.body)
        return response

    def _envelope(self, response: ApiResponse) -> Envelope:
        if not isinstance(response.body, Mapping):
            raise MalformedResponseError(
                f"{self.name} response is not a JSON object",
                status_code=response.status,
            )
        try:
            envelope = Envelope.model_validate(response.body)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"{self.name} response does not match the envelope shape",
                status_code=response.status,
                details=str(exc),
            ) from exc
        if not envelope.success:
            raise ServerError(
                envelope.message or f"{self.name} request was not successful",
                status_code=response.status,
                details=envelope.errors,
            )
        return envelope

    def _acknowledge(self, response: ApiResponse) -> None:
        # 204 and empty bodies count as success; a JSON body must still be a valid envelope.
        if response.body is None and not response.content.strip():
            return
        self._envelope(response)

    def _record(self, data: Any) -> Mapping[str, Any]:
        if isinstance(data, Mapping) and self.spec.detail_key:
            nested = data.get(self.spec.detail_key)
            if isinstance(nested, Mapping):
                return nested
        if not isinstance(data, Mapping):
            raise MalformedResponseError(f"{self.name} response data is not an object")
        return data


def _error_message(response: ApiResponse) -> str | None:
    if isinstance(response.body, Mapping):
        try:
            return ErrorBody.model_validate(response.body).describe()
        except ValidationError:
            return None
    return None
