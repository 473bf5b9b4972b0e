# This file describes each admin resource type as data: routes, filters, normalizer, and payload models.
# It exists so one generic gateway and controller serve users, transactions, and predictions alike.
# Adding a resource means adding a ResourceSpec here rather than copying controller code.
# Route templates use `{id}` placeholders that the gateway fills with URL-quoted identifiers.

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic
from urllib.parse import quote

from pydantic import BaseModel

from src.admin_console.models import Prediction, ResourceT, Transaction, User
from src.admin_console.normalizers import (
    normalize_prediction,
    normalize_transaction,
    normalize_user,
)
from src.admin_console.payloads import (
    CreatePredictionPayload,
    CreateUserPayload,
    UpdatePredictionPayload,
    UpdateTransactionPayload,
)


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)

    def render_path(self, resource_id: str | None = None) -> str:
        if "{id}" not in self.path:
            return self.path
        if resource_id is None:
            raise ValueError(f"Route {self.path} needs a resource id")
        return self.path.replace("{id}", quote(str(resource_id), safe=""))


@dataclass(frozen=True)
class ResourceSpec(Generic[ResourceT]):
    name: str
    normalize: Callable[[Mapping[str, Any]], ResourceT]
    list_route: Route
    detail_route: Route
    export_route: Route | None = None
    summary_route: Route | None = None
    create_route: Route | None = None
    update_route: Route | None = None
    delete_route: Route | None = None
    actions: Mapping[str, Route] = field(default_factory=dict)
    filter_fields: Mapping[str, str] = field(default_factory=dict)
    create_model: type[BaseModel] | None = None
    update_model: type[BaseModel] | None = None
    detail_key: str | None = None

    def action_names(self) -> tuple[str, ...]:
        names = set(self.actions)
        if self.delete_route is not None:
            names.add("delete")
        return tuple(sorted(names))


def _status_action(action: str) -> Route:
    return Route("POST", "/api/v1/admin/users/{id}/status", MappingProxyType({"action": action}))


USERS: ResourceSpec[User] = ResourceSpec(
    name="users",
    normalize=normalize_user,
    list_route=Route("GET", "/api/v1/admin/users"),
    detail_route=Route("GET", "/api/v1/admin/users/{id}"),
    export_route=Route("GET", "/api/v1/admin/users/export"),
    summary_route=Route("GET", "/api/v1/admin/users/summary"),
    create_route=Route("POST", "/api/v1/admin/users/create"),
    # The users API has no DELETE endpoint; deletion is a status action.
    delete_route=_status_action("delete"),
    actions=MappingProxyType(
        {
            "activate": _status_action("activate"),
            "deactivate": _status_action("deactivate"),
            "suspend": _status_action("suspend"),
        }
    ),
    filter_fields=MappingProxyType(
        {
            "search": "search",
            "status": "status",
            "plan": "plan",
            "role": "role",
            "from_date": "FromUtc",
            "to_date": "ToUtc",
        }
    ),
    create_model=CreateUserPayload,
    detail_key="user",
)

TRANSACTIONS: ResourceSpec[Transaction] = ResourceSpec(
    name="transactions",
    normalize=normalize_transaction,
    list_route=Route("GET", "/api/v1/transactions"),
    detail_route=Route("GET", "/api/v1/transactions/{id}"),
    export_route=Route("GET", "/api/v1/admin/transactions/export"),
    summary_route=Route("GET", "/api/v1/transactions/summary"),
    update_route=Route("PUT", "/api/v1/admin/transactions/{id}"),
    actions=MappingProxyType(
        {
            "retry": Route("POST", "/api/v1/transactions/{id}/retry"),
            "refund": Route("POST", "/api/v1/transactions/{id}/refund"),
            "mark_completed": Route(
                "PATCH",
                "/api/v1/transactions/{id}/status",
                MappingProxyType({"status": "completed"}),
            ),
        }
    ),
    filter_fields=MappingProxyType(
        {
            "search": "search",
            "status": "status",
            "payment_method": "paymentMethod",
            "type": "type",
            "min_amount": "minAmount",
            "max_amount": "maxAmount",
            "from_date": "startDate",
            "to_date": "endDate",
        }
    ),
    update_model=UpdateTransactionPayload,
)

PREDICTIONS: ResourceSpec[Prediction] = ResourceSpec(
    name="predictions",
    normalize=normalize_prediction,
    list_route=Route("GET", "/api/v1/prediction"),
    detail_route=Route("GET", "/api/v1/prediction/{id}"),
    export_route=Route("GET", "/api/v1/prediction/export"),
    summary_route=Route("GET", "/api/v1/prediction/analytics"),
    create_route=Route("POST", "/api/v1/prediction"),
    update_route=Route("PUT", "/api/v1/prediction/{id}"),
    delete_route=Route("DELETE", "/api/v1/prediction/{id}"),
    actions=MappingProxyType({"cancel": Route("POST", "/api/v1/prediction/{id}/cancel")}),
    filter_fields=MappingProxyType(
        {
            "search": "search",
            "status": "status",
            "type": "type",
            "accuracy": "accuracy",
            "from_date": "startDate",
            "to_date": "endDate",
        }
    ),
    create_model=CreatePredictionPayload,
    update_model=UpdatePredictionPayload,
)

RESOURCE_SPECS: Mapping[str, ResourceSpec[Any]] = MappingProxyType(
    {spec.name: spec for spec in (USERS, TRANSACTIONS, PREDICTIONS)}
)


def get_resource_spec(name: str) -> ResourceSpec[Any]:
    try:
        return RESOURCE_SPECS[name]
    except KeyError as exc:
        supported = ", ".join(sorted(RESOURCE_SPECS))
        raise ValueError(
            f"Unsupported resource '{name}'. Supported resources: {supported}"
        ) from exc
