import json

import httpx
import pytest

from routine_builder.config import DEFAULT_PERSONA, DEFAULT_SELECTION_KEY, Settings
from routine_builder.models import Product

# Small catalog shared by the store, filter, orchestrator and web tests
PRODUCTS = [
    {
        "id": 1,
        "name": "Revitalift Serum",
        "brand": "L'Oréal Paris",
        "category": "skincare",
        "image": "serum.jpg",
        "description": "Hyaluronic acid serum that replumps skin.",
    },
    {
        "id": 2,
        "name": "Lash Paradise Mascara",
        "brand": "Maybelline New York",
        "category": "makeup",
        "image": "mascara.jpg",
        "description": "Volumizing mascara with a soft wavy brush.",
    },
    {
        "id": 3,
        "name": "Elvive Shampoo",
        "brand": "L'Oréal Paris",
        "category": "haircare",
        "image": "shampoo.jpg",
        "description": "Repairs damaged hair.",
    },
]


@pytest.fixture
def catalog():
    return [Product.model_validate(record) for record in PRODUCTS]


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps({"products": PRODUCTS}), encoding="utf-8")
    return path


@pytest.fixture
def storage_path(tmp_path):
    return tmp_path / "state" / "local_storage.json"


@pytest.fixture
def settings(catalog_path, storage_path):
    return Settings(
        catalog_path=catalog_path,
        storage_path=storage_path,
        selection_key=DEFAULT_SELECTION_KEY,
        chat_endpoint_url="https://chat.test/v1/chat",
        chat_timeout_seconds=None,
        persona=DEFAULT_PERSONA,
        log_level="DEBUG",
    )


@pytest.fixture
def chat_calls():
    # Every request the fake endpoint sees, decoded
    return []


@pytest.fixture
def make_http(chat_calls):
    """Build an AsyncClient whose transport answers with `respond(request)`."""

    def factory(respond):
        def handler(request):
            chat_calls.append(json.loads(request.content))
            return respond(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
