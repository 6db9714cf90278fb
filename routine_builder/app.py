from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional
from urllib.parse import urlencode

import httpx
from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from .app_state import AppState
from .config import BASE_DIR, Settings, load_settings
from .errors import ChatBusyError, LoadError, StorageWriteError
from .models import (
    ChatRequest,
    ConversationResponse,
    FilterCriteria,
    ProductsResponse,
    SelectionResponse,
    TurnResponse,
)
from .render import render_page, render_products, render_transcript

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)

logger = logging.getLogger("routine_builder.app")

PAGE_TITLE = "L'Oréal Routine Builder"

router = APIRouter()


def configure_logging(level_name: str) -> None:
    log_level = getattr(logging, level_name, logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("routine_builder").setLevel(log_level)


def get_state(request: Request) -> AppState:
    return request.app.state.session


def _selection_payload(state: AppState) -> SelectionResponse:
    products = state.selected_products()
    return SelectionResponse(
        selected_ids=sorted(state.selection.ids),
        products=products,
        html=state.selected_html(),
    )


def _turn_payload(state: AppState, events) -> TurnResponse:
    return TurnResponse(
        events=events,
        state=state.orchestrator.state,
        can_submit=state.orchestrator.can_submit,
    )


def _require_product(state: AppState, product_id: int) -> None:
    try:
        product = state.catalog.get(product_id)
    except LoadError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if product is None:
        raise HTTPException(status_code=404, detail=f"Unknown product {product_id}")


def _toggle(state: AppState, product_id: int) -> None:
    _require_product(state, product_id)
    try:
        state.selection.toggle(product_id)
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _clear(state: AppState) -> None:
    try:
        state.selection.clear()
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _page_url(category: Optional[str], search: Optional[str], anchor: str = "") -> str:
    # Back to the page with the filter the form was posted from.
    query = {name: value for name, value in (("category", category), ("search", search)) if value}
    url = "/?" + urlencode(query) if query else "/"
    return f"{url}#{anchor}" if anchor else url


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(
    category: Optional[str] = None,
    search: Optional[str] = None,
    state: AppState = Depends(get_state),
) -> HTMLResponse:
    """Purpose: Serve the full page: filters, product grid, selection, and chat.
    Inputs/Outputs: Query params category/search; returns HTML.
    Side Effects / State: May trigger the first catalog load.
    Dependencies: Uses AppState views and render_page.
    Failure Modes: Catalog errors render inline; never 500s on a bad catalog.
    If Removed: There is no page to browse.
    Testing Notes: GET "/" with and without a category.
    """
    criteria = FilterCriteria(category=category, search_term=search)
    html = render_page(
        title=PAGE_TITLE,
        categories=state.categories(),
        category=category,
        search=search,
        products_html=state.products_html(criteria),
        selected_html=state.selected_html(criteria),
        chat_html=render_transcript(event.html for event in state.orchestrator.transcript),
        can_submit=state.orchestrator.can_submit,
    )
    return HTMLResponse(html)


@router.get("/health")
def health(state: AppState = Depends(get_state)) -> dict:
    try:
        size = len(state.catalog.load())
    except LoadError:
        size = 0
    return {"status": "ok", "catalog_size": size}


@router.get("/api/products", response_model=ProductsResponse)
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    state: AppState = Depends(get_state),
) -> ProductsResponse:
    """Purpose: Return the filtered catalog with its rendered grid.
    Inputs/Outputs: Query params category/search; returns ProductsResponse.
    Side Effects / State: None beyond the first catalog load.
    Dependencies: Uses filter_engine via AppState.
    Failure Modes: LoadError maps to 503.
    If Removed: Clients cannot refresh the grid after a filter change.
    Testing Notes: category=all returns every product.
    """
    criteria = FilterCriteria(category=category, search_term=search)
    try:
        products = state.filtered_products(criteria)
    except LoadError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ProductsResponse(
        products=products,
        html=render_products(products, state.selection.ids, category, search),
        criteria=criteria,
    )


@router.get("/api/categories")
def list_categories(state: AppState = Depends(get_state)) -> List[str]:
    try:
        return state.catalog.categories()
    except LoadError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/api/selection", response_model=SelectionResponse)
def get_selection(state: AppState = Depends(get_state)) -> SelectionResponse:
    return _selection_payload(state)


@router.post("/api/selection/{product_id}/toggle", response_model=SelectionResponse)
def toggle_selection(product_id: int, state: AppState = Depends(get_state)) -> SelectionResponse:
    _toggle(state, product_id)
    return _selection_payload(state)


@router.delete("/api/selection", response_model=SelectionResponse)
def clear_selection(state: AppState = Depends(get_state)) -> SelectionResponse:
    _clear(state)
    return _selection_payload(state)


@router.post("/api/chat", response_model=TurnResponse)
async def chat(payload: ChatRequest, state: AppState = Depends(get_state)) -> TurnResponse:
    """Purpose: Run one free-text chat turn.
    Inputs/Outputs: Input is ChatRequest; output is the appended events.
    Side Effects / State: Updates the conversation log and transcript.
    Dependencies: Uses ChatOrchestrator.submit_question.
    Failure Modes: ChatBusyError maps to 409; chat failures come back as events.
    If Removed: Follow-up questions are unavailable.
    Testing Notes: Mock the endpoint and verify the assistant event.
    """
    try:
        events = await state.orchestrator.submit_question(payload.message)
    except ChatBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _turn_payload(state, events)


@router.post("/api/routine", response_model=TurnResponse)
async def routine(state: AppState = Depends(get_state)) -> TurnResponse:
    try:
        events = await state.orchestrator.generate_routine()
    except ChatBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _turn_payload(state, events)


@router.get("/api/conversation", response_model=ConversationResponse)
def get_conversation(state: AppState = Depends(get_state)) -> ConversationResponse:
    return ConversationResponse(
        messages=state.conversation.messages,
        state=state.orchestrator.state,
        can_submit=state.orchestrator.can_submit,
    )


# Plain HTML form handlers for the server-rendered page. Each form posts the
# current category/search back so the redirect keeps the filter.


@router.post("/selection/{product_id}/toggle", include_in_schema=False)
def toggle_selection_form(
    product_id: int,
    category: str = Form(""),
    search: str = Form(""),
    state: AppState = Depends(get_state),
) -> RedirectResponse:
    _toggle(state, product_id)
    return RedirectResponse(_page_url(category, search), status_code=303)


@router.post("/selection/clear", include_in_schema=False)
def clear_selection_form(
    category: str = Form(""),
    search: str = Form(""),
    state: AppState = Depends(get_state),
) -> RedirectResponse:
    _clear(state)
    return RedirectResponse(_page_url(category, search), status_code=303)


@router.post("/chat", include_in_schema=False)
async def chat_form(
    message: str = Form(""),
    category: str = Form(""),
    search: str = Form(""),
    state: AppState = Depends(get_state),
) -> RedirectResponse:
    try:
        await state.orchestrator.submit_question(message)
    except ChatBusyError:
        logger.info("form chat ignored reason=busy")
    return RedirectResponse(_page_url(category, search, anchor="chatWindow"), status_code=303)


@router.post("/routine", include_in_schema=False)
async def routine_form(
    category: str = Form(""),
    search: str = Form(""),
    state: AppState = Depends(get_state),
) -> RedirectResponse:
    try:
        await state.orchestrator.generate_routine()
    except ChatBusyError:
        logger.info("form routine ignored reason=busy")
    return RedirectResponse(_page_url(category, search, anchor="chatWindow"), status_code=303)


# Served with: uvicorn --factory routine_builder.app:create_app
def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Purpose: Build the FastAPI app around a single AppState.
    Inputs/Outputs: Optional Settings and AsyncClient overrides; returns the app.
    Side Effects / State: Configures logging and restores the saved selection.
    Dependencies: Uses load_settings, AppState, and the module router.
    Failure Modes: Invalid numeric env values raise ValueError.
    If Removed: Nothing serves the routes.
    Testing Notes: Pass tmp_path settings and a MockTransport client.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    state = AppState(settings, http_client=http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await state.close()

    app = FastAPI(title="Routine Builder", lifespan=lifespan)
    app.state.session = state
    app.include_router(router)
    logger.info(
        "app ready catalog=%s storage=%s endpoint=%s",
        settings.catalog_path,
        settings.storage_path,
        settings.chat_endpoint_url or "<unset>",
    )
    return app

