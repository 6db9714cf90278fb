from __future__ import annotations

import json
import logging
from typing import Callable, FrozenSet, Iterable, List, Set

from .errors import StorageParseError, StorageWriteError
from .local_storage import LocalStorage
from .models import Product

logger = logging.getLogger("routine_builder.selection")

Listener = Callable[["SelectionManager"], None]


def decode_selection(raw: str) -> Set[int]:
    """Purpose: Decode a persisted selection value into a set of product ids.
    Inputs/Outputs: Input is the stored JSON text; output is a set of ints.
    Side Effects / State: None; pure function.
    Dependencies: Uses json.loads.
    Failure Modes: Raises StorageParseError for invalid JSON, a non-list value,
        or non-integer items.
    If Removed: Saved selections cannot be restored.
    Testing Notes: Feed garbage, objects, and string ids and expect StorageParseError.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageParseError(f"Saved selection is not JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StorageParseError("Saved selection is not a list")
    ids: Set[int] = set()
    for value in data:
        # bool is an int subclass; true/false are not product ids.
        if isinstance(value, bool) or not isinstance(value, int):
            raise StorageParseError(f"Saved selection holds a non-integer id: {value!r}")
        ids.add(value)
    return ids


def encode_selection(ids: Iterable[int]) -> str:
    return json.dumps(sorted(ids))


class SelectionManager:
    """Owns the selected product ids and keeps local storage in sync."""

    def __init__(self, storage: LocalStorage, key: str) -> None:
        """Purpose: Initialize the selection and restore it from local storage.
        Inputs/Outputs: Inputs are a LocalStorage and the storage key; no return value.
        Side Effects / State: Reads the saved selection once.
        Dependencies: Calls _restore.
        Failure Modes: Corrupt saved data is logged and ignored; never raises.
        If Removed: Product selection and routine generation stop working.
        Testing Notes: Seed storage with valid and corrupt values and inspect ids.
        """
        self._storage = storage
        self._key = key
        self._ids: Set[int] = set()
        self._listeners: List[Listener] = []
        self._restore()

    def _restore(self) -> None:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return
        try:
            self._ids = decode_selection(raw)
        except StorageParseError as exc:
            logger.warning("selection restore skipped key=%s error=%s", self._key, exc)
            self._ids = set()
            return
        logger.info("selection restored key=%s count=%d", self._key, len(self._ids))

    @property
    def ids(self) -> FrozenSet[int]:
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def is_selected(self, product_id: int) -> bool:
        return product_id in self._ids

    def toggle(self, product_id: int) -> bool:
        """Purpose: Add the id when absent, remove it when present.
        Inputs/Outputs: Input is a product id; output is True if it is now selected.
        Side Effects / State: Persists the selection and notifies listeners.
        Dependencies: Uses _commit.
        Failure Modes: Raises StorageWriteError when the write fails; the
            selection is then left exactly as it was.
        If Removed: Cards and the remove buttons have nothing to call.
        Testing Notes: Toggling twice restores the original selection.
        """
        ids = set(self._ids)
        selected = product_id not in ids
        if selected:
            ids.add(product_id)
        else:
            ids.discard(product_id)
        self._commit(ids)
        logger.info("selection toggle id=%s selected=%s count=%d", product_id, selected, len(self._ids))
        return selected

    def clear(self) -> None:
        self._commit(set())
        logger.info("selection cleared")

    def selected_products(self, catalog: Iterable[Product]) -> List[Product]:
        # Catalog order, not click order; ids missing from the catalog are skipped.
        return [product for product in catalog if product.id in self._ids]

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _commit(self, ids: Set[int]) -> None:
        # Write first; memory and listeners only see a durable state.
        try:
            self._storage.set_item(self._key, encode_selection(ids))
        except OSError as exc:
            logger.error("selection write failed key=%s error=%s", self._key, exc)
            raise StorageWriteError(f"Selection could not be saved: {exc}") from exc
        self._ids = ids
        for listener in list(self._listeners):
            listener(self)
