"""Draft Reconciler: the authoritative draft invoice of one booking.

Holds the in-memory DraftInvoiceState and keeps it consistent with the
remote invoice store. Every edit goes through one primitive,
``DraftReconciler._mutate``, which:

1. snapshots the current state and builds the edit from it,
2. applies the change locally (totals refolded from the items),
3. issues the remote call,
4. restores the snapshot if the call fails, or reconciles the
   server-authoritative row back into the state if it succeeds.

Mutations of one booking, and the terminal commit, are serialized by a
lock held across the remote call; different bookings use different
reconcilers and never contend.
"""

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from flight_billing.calculators.line_item_factory import reprice_item
from flight_billing.models.invoice import (
    DraftInvoiceState,
    InvoiceItemRecord,
    InvoiceTotals,
    ItemUpdate,
    LineItem,
    fold_totals,
)
from flight_billing.models.result import Err, ErrorKind, Ok, Result
from flight_billing.services.gateways import (
    GatewayError,
    InvoiceItemStore,
    VersionConflictError,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class _Change:
    """A prepared edit: the new item tuple and how to persist it."""

    items: tuple
    remote: Optional[Callable[[], Any]]
    reconcile: Callable[[DraftInvoiceState, Any], DraftInvoiceState]


class DraftReconciler:
    """
    Draft invoice of a single booking with optimistic remote persistence.

    Recalculation replaces computed items only; manual items (chargeables
    added by staff) survive it. New computed items take over the local and
    remote ids of the previous computed item with the same charge key, so
    persisted rows are updated instead of duplicated.

    Example:
        >>> draft = DraftReconciler("bk-1", item_store)
        >>> draft.initialize(plan.items)
        >>> result = draft.add(landing_fee)
        >>> draft.totals().total
        Decimal('304.75')
    """

    def __init__(self, booking_id: str, item_store: InvoiceItemStore):
        self.booking_id = booking_id
        self.item_store = item_store
        self._state = DraftInvoiceState()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def state(self) -> DraftInvoiceState:
        """Current draft; reflects an in-flight mutation optimistically."""
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._closed

    def totals(self) -> InvoiceTotals:
        """Fold of the current line items, recomputed on every call."""
        return fold_totals(self._state.line_items)

    # ------------------------------------------------------------------
    # Local (re)initialisation
    # ------------------------------------------------------------------

    def initialize(self, items: Iterable[LineItem]) -> Result[DraftInvoiceState]:
        """
        Replace the computed items of the draft with a new calculation.

        Manual items are kept in their current order after the new computed
        items. Nothing is sent to the store; the commit carries the final
        items.

        Args:
            items: Computed items of the new calculation

        Returns:
            Ok with the new state, or Err ALREADY_COMPLETED after close()
        """
        with self._lock:
            if self._closed:
                return self._closed_error()

            previous_by_key: Dict[str, LineItem] = {
                item.charge_key: item
                for item in self._state.computed_items
                if item.charge_key
            }

            computed: List[LineItem] = []
            for item in items:
                previous = None
                if item.charge_key:
                    previous = previous_by_key.pop(item.charge_key, None)
                if previous is not None:
                    item = item.model_copy(
                        update={"id": previous.id, "remote_id": previous.remote_id}
                    )
                computed.append(item)

            if previous_by_key:
                logger.debug(
                    f"Recalculation dropped computed items "
                    f"{sorted(previous_by_key)} for booking {self.booking_id}"
                )

            self._state = DraftInvoiceState.from_items(
                computed + list(self._state.manual_items), self._state.version
            )
            logger.info(
                f"Draft initialized for booking {self.booking_id}: "
                f"{len(computed)} computed, {len(self._state.manual_items)} manual, "
                f"total {self._state.totals.total}"
            )
            return Ok(self._state)

    def hydrate(
        self, records: Iterable[InvoiceItemRecord], version: Optional[int] = None
    ) -> Result[DraftInvoiceState]:
        """
        Load a previously persisted invoice as the current draft.

        Returns:
            Ok with the hydrated state, or Err ALREADY_COMPLETED after the
            draft was committed
        """
        with self._lock:
            if self._closed:
                return self._closed_error()

            items = [record.to_line_item() for record in records]
            self._state = DraftInvoiceState.from_items(items, version)
            logger.info(
                f"Draft hydrated for booking {self.booking_id}: "
                f"{len(items)} item(s), version {version}"
            )
            return Ok(self._state)

    def close(self) -> None:
        """Mark the draft as superseded by a completed commit."""
        with self._lock:
            self._closed = True

    def commit_with(
        self, commit: Callable[[DraftInvoiceState], Result[R]]
    ) -> Result[R]:
        """
        Run a terminal commit against the settled draft.

        The lock is held across ``commit``, so the committed state is never
        one an in-flight mutation may still roll back, and no mutation can
        start until the commit has resolved. The draft closes when the
        commit succeeds.

        Args:
            commit: Receives the current state and returns the commit outcome

        Returns:
            The outcome of ``commit``
        """
        with self._lock:
            result = commit(self._state)
            if isinstance(result, Ok):
                self._closed = True
            return result

    # ------------------------------------------------------------------
    # Remote mutations
    # ------------------------------------------------------------------

    def add(self, item: LineItem) -> Result[DraftInvoiceState]:
        """Append an item and persist it."""

        def prepare(state: DraftInvoiceState) -> Result[Optional[_Change]]:
            if state.find(item.id) is not None:
                return Err(
                    ErrorKind.INVALID_CHARGE_INPUT,
                    f"Line item {item.id} already exists",
                )
            return Ok(
                _Change(
                    items=state.line_items + (item,),
                    remote=partial(self.item_store.create_item, self.booking_id, item),
                    reconcile=lambda applied, record: self._merge_record(
                        applied, item, record
                    ),
                )
            )

        return self._mutate(f"add {item.id}", prepare)

    def update(self, item_id: str, changes: ItemUpdate) -> Result[DraftInvoiceState]:
        """
        Apply a partial edit to an item and persist it.

        Unpersisted items are created remotely instead of patched. The item
        is repriced from the settled state, never from another mutation's
        unconfirmed values.

        Returns:
            Ok with the new state, or Err ITEM_NOT_FOUND, INVALID_CHARGE_INPUT,
            REMOTE_MUTATION_FAILED or VERSION_CONFLICT (state rolled back)
        """

        def prepare(state: DraftInvoiceState) -> Result[Optional[_Change]]:
            current = state.find(item_id)
            if current is None:
                return Err(ErrorKind.ITEM_NOT_FOUND, f"Line item {item_id} not found")
            if changes.is_empty:
                return Ok(None)

            repriced = reprice_item(
                current,
                quantity=changes.quantity,
                unit_price=changes.unit_price,
                description=changes.description,
            )
            if isinstance(repriced, Err):
                return repriced
            updated = repriced.value

            if updated.is_persisted:
                remote = partial(
                    self.item_store.update_item,
                    self.booking_id,
                    updated.remote_id,
                    updated,
                )
            else:
                remote = partial(self.item_store.create_item, self.booking_id, updated)

            return Ok(
                _Change(
                    items=tuple(
                        updated if i.id == item_id else i for i in state.line_items
                    ),
                    remote=remote,
                    reconcile=lambda applied, record: self._merge_record(
                        applied, updated, record
                    ),
                )
            )

        return self._mutate(f"update {item_id}", prepare)

    def delete(self, item_id: str) -> Result[DraftInvoiceState]:
        """Remove an item; unpersisted items need no remote call."""

        def prepare(state: DraftInvoiceState) -> Result[Optional[_Change]]:
            current = state.find(item_id)
            if current is None:
                return Err(ErrorKind.ITEM_NOT_FOUND, f"Line item {item_id} not found")

            remote = None
            if current.is_persisted:
                remote = partial(
                    self.item_store.delete_item, self.booking_id, current.remote_id
                )
            return Ok(
                _Change(
                    items=tuple(i for i in state.line_items if i.id != item_id),
                    remote=remote,
                    reconcile=lambda applied, version: (
                        applied
                        if version is None
                        else DraftInvoiceState.from_items(applied.line_items, version)
                    ),
                )
            )

        return self._mutate(f"delete {item_id}", prepare)

    def _mutate(
        self,
        operation: str,
        prepare: Callable[[DraftInvoiceState], Result[Optional[_Change]]],
    ) -> Result[DraftInvoiceState]:
        """
        Snapshot, apply locally, call remote, then rollback or reconcile.

        ``prepare`` runs under the lock against the snapshot, so lookups and
        repricing only ever see settled state.

        Args:
            operation: Label for logs and error details
            prepare: Builds the change from the snapshot; Ok(None) means
                nothing to do, Err rejects the edit without touching state

        Returns:
            Ok with the state after the mutation, or Err with the snapshot
            restored
        """
        with self._lock:
            if self._closed:
                return self._closed_error()

            snapshot = self._state
            prepared = prepare(snapshot)
            if isinstance(prepared, Err):
                return prepared
            change = prepared.value
            if change is None:
                return Ok(snapshot)

            self._state = DraftInvoiceState.from_items(change.items, snapshot.version)
            if change.remote is None:
                logger.info(f"Draft {operation} applied locally for {self.booking_id}")
                return Ok(self._state)

            try:
                response = change.remote()
            except VersionConflictError as e:
                self._state = snapshot
                logger.warning(
                    f"Draft {operation} rolled back for {self.booking_id}: {e}"
                )
                return Err(
                    ErrorKind.VERSION_CONFLICT,
                    f"Invoice was changed elsewhere, reload before editing: {e}",
                )
            except GatewayError as e:
                self._state = snapshot
                logger.warning(
                    f"Draft {operation} rolled back for {self.booking_id}: {e}"
                )
                return Err(
                    ErrorKind.REMOTE_MUTATION_FAILED,
                    f"Could not {operation}: {e}",
                )
            except BaseException:
                self._state = snapshot
                raise

            self._state = change.reconcile(self._state, response)
            logger.info(
                f"Draft {operation} persisted for {self.booking_id}, "
                f"total {self._state.totals.total}"
            )
            return Ok(self._state)

    @staticmethod
    def _merge_record(
        state: DraftInvoiceState, local: LineItem, record: InvoiceItemRecord
    ) -> DraftInvoiceState:
        """Replace ``local`` with the server row, keeping local id and origin."""
        merged = record.to_line_item(local_id=local.id).model_copy(
            update={"origin": local.origin, "charge_key": local.charge_key}
        )
        items = tuple(merged if i.id == local.id else i for i in state.line_items)
        version = (
            record.invoice_version
            if record.invoice_version is not None
            else state.version
        )
        return DraftInvoiceState.from_items(items, version)

    def _closed_error(self) -> Err:
        return Err(
            ErrorKind.ALREADY_COMPLETED,
            f"Booking {self.booking_id} is already completed",
        )
