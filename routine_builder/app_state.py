from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from .catalog_store import CatalogStore
from .chat_client import ChatClient
from .config import Settings
from .conversation import ConversationLog
from .errors import LoadError
from .filter_engine import apply
from .local_storage import LocalStorage
from .models import FilterCriteria, Product
from .orchestrator import ChatOrchestrator
from .render import (
    render_load_error,
    render_placeholder,
    render_products,
    render_selected,
)
from .selection import SelectionManager

logger = logging.getLogger("routine_builder.state")


class AppState:
    """Everything one browsing session owns, built at startup and closed at shutdown."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> None:
        """Purpose: Construct the catalog, selection, conversation, and chat components.
        Inputs/Outputs: Inputs are Settings and an optional AsyncClient for tests;
            no return value.
        Side Effects / State: Restores the saved selection from local storage.
        Dependencies: Uses every component module.
        Failure Modes: Never fails on a bad catalog or corrupt storage; those
            surface later as rendered messages.
        If Removed: Routes fall back to module globals with no lifecycle.
        Testing Notes: Build with tmp_path settings and a MockTransport client.
        """
        self.settings = settings
        self.catalog = CatalogStore(settings.catalog_path)
        self.storage = LocalStorage(settings.storage_path)
        self.selection = SelectionManager(self.storage, settings.selection_key)
        self._selected: Optional[List[Product]] = None
        self.selection.subscribe(self._on_selection_change)
        self.conversation = ConversationLog(settings.persona)
        self.client = ChatClient(
            settings.chat_endpoint_url,
            timeout=settings.chat_timeout_seconds,
            http_client=http_client,
        )
        self.orchestrator = ChatOrchestrator(
            conversation=self.conversation,
            selection=self.selection,
            catalog=self.catalog.load,
            client=self.client,
        )

    def filtered_products(self, criteria: FilterCriteria) -> List[Product]:
        return apply(self.catalog.load(), criteria)

    def products_html(self, criteria: FilterCriteria) -> str:
        """Purpose: Render the product grid for the given criteria.
        Inputs/Outputs: Input is FilterCriteria; output is grid HTML.
        Side Effects / State: May trigger the first catalog load.
        Dependencies: Uses filter_engine.apply and the render layer.
        Failure Modes: LoadError is rendered inline instead of raised.
        If Removed: The page cannot show products.
        Testing Notes: No criteria renders the placeholder, not the empty state.
        """
        # Nothing chosen yet is not the same as an empty result.
        if not (criteria.category or "").strip() and not (criteria.search_term or "").strip():
            return render_placeholder()
        try:
            products = self.filtered_products(criteria)
        except LoadError as exc:
            return render_load_error(exc)
        return render_products(products, self.selection.ids, criteria.category, criteria.search_term)

    def selected_products(self) -> List[Product]:
        # Projected once per selection change; a failed catalog load is not kept.
        if self._selected is None:
            try:
                self._selected = self.selection.selected_products(self.catalog.load())
            except LoadError:
                return []
        return list(self._selected)

    def selected_html(self, criteria: Optional[FilterCriteria] = None) -> str:
        criteria = criteria or FilterCriteria()
        return render_selected(self.selected_products(), criteria.category, criteria.search_term)

    def _on_selection_change(self, selection: SelectionManager) -> None:
        self._selected = None
        logger.debug("selected list refresh count=%d", len(selection))

    def categories(self) -> List[str]:
        try:
            return self.catalog.categories()
        except LoadError:
            return []

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("session closed selected=%d messages=%d", len(self.selection), len(self.conversation))
