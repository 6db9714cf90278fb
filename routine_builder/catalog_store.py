"""Catalog store for the static products file.

The catalog is read once and cached for the lifetime of the process. Only a
successful load is cached, so a missing or broken file is re-read on the next
call instead of pinning the failure.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from .errors import LoadError
from .models import Product

logger = logging.getLogger("routine_builder.catalog")


class CatalogStore:
    def __init__(self, path: Path) -> None:
        """Purpose: Configure the store with the catalog file path.
        Inputs/Outputs: Input is a Path to products.json; no return value.
        Side Effects / State: Stores the path; nothing is read until load().
        Dependencies: None beyond Path usage.
        Failure Modes: None at init; load() raises LoadError.
        If Removed: Nothing can be rendered or selected.
        Testing Notes: Instantiate with a temp path and call load().
        """
        self._path = path
        self._products: Optional[List[Product]] = None
        self._by_id: Dict[int, Product] = {}

    def load(self) -> List[Product]:
        """Purpose: Load and validate the catalog, caching the first success.
        Inputs/Outputs: No inputs; returns the product list in file order.
        Side Effects / State: Reads the catalog file once and caches products.
        Dependencies: Uses json and the Product model.
        Failure Modes: Raises LoadError when the file is unreadable, is not JSON,
            lacks a "products" list, or holds an invalid product.
        If Removed: Filter and render steps have no data source.
        Testing Notes: Verify caching and each malformed-input branch.
        """
        if self._products is not None:
            return list(self._products)

        try:
            raw = self._path.read_text(encoding="utf-8-sig")
        except OSError as exc:
            logger.error("catalog unreachable path=%s error=%s", self._path, exc)
            raise LoadError(f"Catalog is unreachable: {self._path}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("catalog malformed path=%s error=%s", self._path, exc)
            raise LoadError("Catalog is not valid JSON") from exc

        records = data.get("products") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise LoadError('Catalog has no "products" list')

        products: List[Product] = []
        seen: set[int] = set()
        for record in records:
            try:
                product = Product.model_validate(record)
            except ValidationError as exc:
                raise LoadError(f"Catalog holds an invalid product: {exc.errors()[0]['msg']}") from exc
            if product.id in seen:
                raise LoadError(f"Catalog repeats product id {product.id}")
            seen.add(product.id)
            products.append(product)

        self._products = products
        self._by_id = {product.id: product for product in products}
        logger.info("catalog loaded path=%s products=%d", self._path, len(products))
        return list(products)

    def get(self, product_id: int) -> Optional[Product]:
        self.load()
        return self._by_id.get(product_id)

    def categories(self) -> List[str]:
        # Distinct categories for the category picker.
        return sorted({product.category for product in self.load()}, key=str.lower)
