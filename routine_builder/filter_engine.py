from __future__ import annotations

from typing import Iterable, List

from .models import FilterCriteria, Product

ALL_CATEGORIES = "all"


def searchable_text(product: Product) -> str:
    """Purpose: Build the lowercase text a search term is matched against.
    Inputs/Outputs: Input is a Product; output is name, brand, category and
        description joined by spaces and lowercased.
    Side Effects / State: None; pure function.
    Dependencies: Used by apply().
    Failure Modes: None.
    If Removed: Free-text search has nothing to match against.
    Testing Notes: Ensure a term spanning only the description still matches.
    """
    return " ".join([product.name, product.brand, product.category, product.description]).lower()


def is_category_filter(category: str | None) -> bool:
    if not category:
        return False
    cleaned = category.strip()
    return bool(cleaned) and cleaned.lower() != ALL_CATEGORIES


def apply(catalog: Iterable[Product], criteria: FilterCriteria) -> List[Product]:
    """Purpose: Derive the visible catalog subset from category and search term.
    Inputs/Outputs: Inputs are products and FilterCriteria; output is the
        products passing both filters, in input order.
    Side Effects / State: None; pure function.
    Dependencies: Uses searchable_text and is_category_filter.
    Failure Modes: None; an empty result is valid.
    If Removed: The product grid cannot be narrowed.
    Testing Notes: "all" returns the input unchanged; filters compose by AND.
    """
    out = list(catalog)
    if is_category_filter(criteria.category):
        wanted = criteria.category.strip().lower()
        out = [product for product in out if product.category.lower() == wanted]
    term = (criteria.search_term or "").strip().lower()
    if term:
        out = [product for product in out if term in searchable_text(product)]
    return out
