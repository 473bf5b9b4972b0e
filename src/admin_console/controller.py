# This file implements the generic collection controller behind every admin list view.
# It exists so users, transactions, and predictions share one filter/page/selection/refresh state machine.
# Gateway calls run in worker threads; every commit back into state happens on the event loop thread.
# Refresh cycles carry sequence numbers so only the most recently initiated request can update the view.

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Generic

import requests

from src.admin_console.api_client import AdminApiClient
from src.admin_console.auth import CredentialProvider
from src.admin_console.console_config import ConsoleConfig
from src.admin_console.debounce import DebouncedSearch
from src.admin_console.errors import (
    ErrorKind,
    MutationOutcome,
    ValidationFailedError,
    error_kind_of,
    error_message_of,
)
from src.admin_console.export import ExportSink, export_filename, items_to_csv
from src.admin_console.gateway import ResourceGateway
from src.admin_console.models import PAGINATION_KEYS, FilterCriteria, PaginationMeta, ResourceT
from src.admin_console.payloads import validate_payload
from src.admin_console.resources import ResourceSpec
from src.admin_console.response_cache import ResponseCache
from src.admin_console.store import CollectionStateStore

LOGGER = logging.getLogger("admin_console.controller")


class ControllerState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


@dataclass(frozen=True)
class CollectionView(Generic[ResourceT]):
    items: tuple[ResourceT, ...]
    pagination: PaginationMeta | None
    is_loading: bool
    error: ErrorKind | None
    error_message: str | None
    criteria: FilterCriteria
    selected_ids: frozenset[str]
    typed_search: str
    state: ControllerState

    @property
    def is_empty(self) -> bool:
        """True zero-result state, distinct from a failed load."""

        return not self.items and self.error is None and self.state is ControllerState.READY


Listener = Callable[[CollectionView[Any]], None]


def _utc_today() -> date:
    return datetime.now(tz=UTC).date()


class CollectionController(Generic[ResourceT]):
    def __init__(
        self,
        *,
        gateway: ResourceGateway[ResourceT],
        store: CollectionStateStore[ResourceT] | None = None,
        export_sink: ExportSink | None = None,
        debounce_seconds: float = 0.3,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self.gateway = gateway
        self.spec: ResourceSpec[ResourceT] = gateway.spec
        self.store = store or CollectionStateStore()
        self.export_sink = export_sink
        self._today = today
        self._debounce = DebouncedSearch(
            delay_seconds=debounce_seconds,
            on_settle=self._apply_search,
        )
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._latest_seq = 0
        self._loading = False
        self._loaded = False
        self._error: ErrorKind | None = None
        self._error_message: str | None = None
        self._disposed = False
        self.last_outcome: MutationOutcome | None = None

    @classmethod
    def from_config(
        cls,
        *,
        spec: ResourceSpec[ResourceT],
        config: ConsoleConfig,
        auth: CredentialProvider,
        export_sink: ExportSink | None = None,
        cache: ResponseCache | None = None,
        session: requests.Session | None = None,
        timeout_seconds: float | None = None,
    ) -> CollectionController[ResourceT]:
        client = AdminApiClient(
            base_url=config.api_base_url,
            timeout_seconds=timeout_seconds or config.request_timeout_seconds,
            session=session,
        )
        gateway = ResourceGateway(
            spec=spec,
            client=client,
            auth=auth,
            cache=cache or ResponseCache(ttl_seconds=config.list_cache_ttl_seconds),
        )
        store: CollectionStateStore[ResourceT] = CollectionStateStore(
            default_limit=config.default_page_size,
            max_limit=config.max_page_size,
        )
        return cls(
            gateway=gateway,
            store=store,
            export_sink=export_sink,
            debounce_seconds=config.search_debounce_seconds,
        )

    # -- view-facing state -------------------------------------------------

    @property
    def items(self) -> tuple[ResourceT, ...]:
        return self.store.items

    @property
    def pagination(self) -> PaginationMeta | None:
        return self.store.pagination

    @property
    def criteria(self) -> FilterCriteria:
        return self.store.criteria

    @property
    def selected_ids(self) -> frozenset[str]:
        return self.store.selected_ids

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> ErrorKind | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def typed_search(self) -> str:
        return self._debounce.typed_text

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def state(self) -> ControllerState:
        if self._loading:
            return ControllerState.LOADING
        if self._error is not None:
            return ControllerState.ERRORED
        if self._loaded:
            return ControllerState.READY
        return ControllerState.IDLE

    @property
    def is_empty(self) -> bool:
        return self.snapshot().is_empty

    def snapshot(self) -> CollectionView[ResourceT]:
        return CollectionView(
            items=self.store.items,
            pagination=self.store.pagination,
            is_loading=self._loading,
            error=self._error,
            error_message=self._error_message,
            criteria=self.store.criteria,
            selected_ids=self.store.selected_ids,
            typed_search=self._debounce.typed_text,
            state=self.state,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- filter, search, pagination ----------------------------------------

    def search(self, text: str) -> None:
        if self._disposed:
            return
        self._debounce.on_input(text)
        self._notify()

    def set_filter(self, changes: Mapping[str, Any]) -> asyncio.Task[None] | None:
        if self._disposed:
            return None
        unknown = sorted(set(changes) - set(self.spec.filter_fields) - PAGINATION_KEYS)
        if unknown:
            self._record_error(
                ValidationFailedError(
                    f"Unsupported {self.spec.name} filters: {', '.join(unknown)}"
                )
            )
            self._notify()
            return None
        try:
            changed = self.store.set_filter(changes)
        except ValidationFailedError as exc:
            self._report(exc)
            return None
        if not changed:
            return None
        return self._schedule_refresh(use_cache=True)

    def clear_filter(self) -> asyncio.Task[None] | None:
        if self._disposed:
            return None
        self._debounce.reset()
        if not self.store.clear_filter():
            self._notify()
            return None
        return self._schedule_refresh(use_cache=True)

    def change_page(self, page: int) -> asyncio.Task[None] | None:
        if self._disposed:
            return None
        try:
            changed = self.store.set_page(page)
        except ValidationFailedError as exc:
            self._report(exc)
            return None
        if not changed:
            return None
        return self._schedule_refresh(use_cache=True)

    def _apply_search(self, text: str) -> None:
        self.set_filter({"search": text})

    # -- selection ---------------------------------------------------------

    def toggle_selection(self, resource_id: str) -> None:
        if self._disposed:
            return
        self.store.toggle_selection(resource_id)
        self._notify()

    def select_all(self, resource_ids: Iterable[str] | None = None) -> None:
        if self._disposed:
            return
        ids = [item.id for item in self.store.items] if resource_ids is None else resource_ids
        self.store.select_all(ids)
        self._notify()

    def clear_selection(self) -> None:
        if self._disposed:
            return
        self.store.clear_selection()
        self._notify()

    # -- refresh cycle -----------------------------------------------------

    async def load(self) -> None:
        if self._disposed:
            return
        await self._schedule_refresh(use_cache=True)

    async def refresh(self) -> None:
        """Bypass the cached list for the current criteria and re-issue `list`."""

        if self._disposed:
            return
        await self._schedule_refresh(use_cache=False)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule_refresh(self, *, use_cache: bool) -> asyncio.Task[None]:
        self._latest_seq += 1
        seq = self._latest_seq
        criteria = self.store.criteria
        self._loading = True
        self._notify()

        task = asyncio.get_running_loop().create_task(
            self._run_cycle(seq, criteria, use_cache=use_cache)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_cycle(self, seq: int, criteria: FilterCriteria, *, use_cache: bool) -> None:
        LOGGER.debug(
            "refresh started resource=%s seq=%s query=%s",
            self.spec.name,
            seq,
            criteria.cache_key(),
        )
        try:
            page = await asyncio.to_thread(self.gateway.list, criteria, use_cache=use_cache)
        except Exception as exc:
            if self._accepts(seq):
                self._record_error(exc)
        else:
            if self._accepts(seq):
                self.store.replace_snapshot(page.items, page.pagination)
                self._loaded = True
                self._clear_error()
        finally:
            self._settle(seq)

    def _accepts(self, seq: int) -> bool:
        if self._disposed:
            LOGGER.debug("dropping response after dispose resource=%s seq=%s", self.spec.name, seq)
            return False
        if seq != self._latest_seq:
            LOGGER.debug(
                "discarding stale response resource=%s seq=%s latest=%s",
                self.spec.name,
                seq,
                self._latest_seq,
            )
            return False
        return True

    def _settle(self, seq: int) -> None:
        if self._disposed or seq != self._latest_seq:
            return
        self._loading = False
        self._notify()

    # -- mutations ---------------------------------------------------------

    async def remove(self, resource_id: str) -> bool:
        resource_id = str(resource_id)
        return await self._mutate(
            "remove",
            lambda: self.gateway.remove(resource_id),
            invalidate_ids=[resource_id],
            deselect_ids=[resource_id],
        )

    async def create(self, payload: Mapping[str, Any]) -> bool:
        try:
            body = validate_payload(self.spec.create_model, payload)
        except ValidationFailedError as exc:
            return self._fail("create", exc)
        return await self._mutate("create", lambda: self.gateway.create(body))

    async def update(self, resource_id: str, payload: Mapping[str, Any]) -> bool:
        resource_id = str(resource_id)
        try:
            body = validate_payload(self.spec.update_model, payload)
        except ValidationFailedError as exc:
            return self._fail("update", exc)
        return await self._mutate(
            "update",
            lambda: self.gateway.update(resource_id, body),
            invalidate_ids=[resource_id],
        )

    async def bulk_action(self, resource_ids: Iterable[str], action: str) -> bool:
        if self._disposed:
            return False
        ids = list(dict.fromkeys(str(resource_id) for resource_id in resource_ids))
        if not ids:
            return self._fail(action, ValidationFailedError("No items selected"))
        if action not in self.spec.action_names():
            supported = ", ".join(self.spec.action_names()) or "none"
            return self._fail(
                action,
                ValidationFailedError(
                    f"Unsupported {self.spec.name} action '{action}'. "
                    f"Supported actions: {supported}"
                ),
            )

        succeeded: list[str] = []
        failures: list[BaseException] = []
        for resource_id in ids:
            if self._disposed:
                break
            try:
                await asyncio.to_thread(self.gateway.perform_action, resource_id, action)
            except Exception as exc:
                LOGGER.warning(
                    "bulk item failed resource=%s action=%s id=%s error=%s",
                    self.spec.name,
                    action,
                    resource_id,
                    error_message_of(exc),
                )
                failures.append(exc)
            else:
                succeeded.append(resource_id)

        LOGGER.info(
            "bulk action finished resource=%s action=%s succeeded=%s failed=%s",
            self.spec.name,
            action,
            len(succeeded),
            len(failures),
        )
        # Any succeeded item changed server state, even when others failed.
        if succeeded:
            self._invalidate(succeeded)
        if self._disposed:
            LOGGER.debug("dropping bulk result after dispose resource=%s", self.spec.name)
            return False
        if succeeded:
            if action == "delete":
                self.store.deselect(succeeded)
            await self._schedule_refresh(use_cache=False)
            if self._disposed:
                return False
        if failures:
            return self._fail(action, failures[0], count=len(failures), total=len(ids))
        self.last_outcome = MutationOutcome.ok(f"{action} applied to {len(ids)} {self.spec.name}")
        return True

    async def _mutate(
        self,
        operation: str,
        call: Callable[[], Any],
        *,
        invalidate_ids: Iterable[str] = (),
        deselect_ids: Iterable[str] = (),
    ) -> bool:
        if self._disposed:
            return False
        try:
            await asyncio.to_thread(call)
        except Exception as exc:
            return self._fail(operation, exc)

        LOGGER.info("mutation applied resource=%s operation=%s", self.spec.name, operation)
        self._invalidate(list(invalidate_ids))
        if self._disposed:
            LOGGER.debug(
                "dropping mutation result after dispose resource=%s operation=%s",
                self.spec.name,
                operation,
            )
            return False
        self.store.deselect(deselect_ids)
        self.last_outcome = MutationOutcome.ok()
        await self._schedule_refresh(use_cache=False)
        return True

    def _invalidate(self, resource_ids: list[str]) -> None:
        self.gateway.invalidate()
        for resource_id in resource_ids:
            self.gateway.invalidate(resource_id)

    def _fail(
        self,
        operation: str,
        exc: BaseException,
        *,
        count: int | None = None,
        total: int | None = None,
    ) -> bool:
        if self._disposed:
            return False
        outcome = MutationOutcome.failed(exc)
        if count is not None and total is not None:
            outcome = MutationOutcome(
                success=False,
                error_kind=outcome.error_kind,
                message=(
                    f"{count} of {total} {self.spec.name} failed to {operation}: "
                    f"{outcome.message}"
                ),
            )
        self.last_outcome = outcome
        self._record_error(exc)
        self._notify()
        return False

    # -- detail, summary, export -------------------------------------------

    async def get_detail(self, resource_id: str) -> ResourceT | None:
        if self._disposed:
            return None
        try:
            return await asyncio.to_thread(self.gateway.get_by_id, str(resource_id))
        except Exception as exc:
            self._report(exc)
            return None

    async def load_summary(self) -> dict[str, Any] | None:
        if self._disposed:
            return None
        try:
            return await asyncio.to_thread(self.gateway.summary)
        except Exception as exc:
            self._report(exc)
            return None

    async def export_current_view(self) -> bool:
        """Export every row matching the active filters and hand it to the download sink."""

        if self._disposed:
            return False
        sink = self.export_sink
        if sink is None:
            self._report(ValidationFailedError("No export sink is configured"))
            return False
        criteria = self.store.criteria
        filename = export_filename(self.spec.name, on=self._today())
        try:
            payload = await asyncio.to_thread(self.gateway.export, criteria)
            await asyncio.to_thread(sink.save, payload.stream, filename)
        except Exception as exc:
            self._report(exc)
            return False
        LOGGER.info(
            "export completed resource=%s filename=%s bytes=%s",
            self.spec.name,
            filename,
            payload.size,
        )
        return True

    def export_loaded_items(self) -> bool:
        """Write the currently loaded page as CSV without another API call."""

        if self._disposed:
            return False
        if self.export_sink is None:
            self._report(ValidationFailedError("No export sink is configured"))
            return False
        if not self.store.items:
            LOGGER.warning("nothing to export resource=%s", self.spec.name)
            return False
        content = items_to_csv(self.store.items)
        filename = export_filename(self.spec.name, on=self._today())
        self.export_sink.save(io.BytesIO(content), filename)
        return True

    def _report(self, exc: BaseException) -> None:
        if self._disposed:
            return
        self._record_error(exc)
        self._notify()

    # -- lifecycle ---------------------------------------------------------

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._debounce.cancel()
        self._listeners.clear()
        LOGGER.debug(
            "controller disposed resource=%s pending_tasks=%s",
            self.spec.name,
            len(self._tasks),
        )

    # -- internals ---------------------------------------------------------

    def _record_error(self, exc: BaseException) -> None:
        kind = error_kind_of(exc)
        if kind is ErrorKind.UNKNOWN:
            LOGGER.error(
                "unexpected failure resource=%s",
                self.spec.name,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            LOGGER.warning(
                "collection error resource=%s kind=%s message=%s",
                self.spec.name,
                kind.value,
                error_message_of(exc),
            )
        self._error = kind
        self._error_message = error_message_of(exc)

    def _clear_error(self) -> None:
        self._error = None
        self._error_message = None

    def _notify(self) -> None:
        if self._disposed or not self._listeners:
            return
        view = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                LOGGER.exception("collection listener failed resource=%s", self.spec.name)
