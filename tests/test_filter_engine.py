from routine_builder.filter_engine import apply, is_category_filter, searchable_text
from routine_builder.models import FilterCriteria


def ids(products):
    return [product.id for product in products]


# "all" and an empty criteria both leave the catalog untouched
def test_all_category_returns_catalog_unchanged(catalog):
    assert ids(apply(catalog, FilterCriteria(category="all"))) == [1, 2, 3]
    assert ids(apply(catalog, FilterCriteria(category="ALL"))) == [1, 2, 3]
    assert ids(apply(catalog, FilterCriteria())) == [1, 2, 3]


def test_category_match_is_case_insensitive(catalog):
    assert ids(apply(catalog, FilterCriteria(category="skincare"))) == [1]
    assert ids(apply(catalog, FilterCriteria(category="MakeUp"))) == [2]


def test_unknown_category_yields_empty_list(catalog):
    assert apply(catalog, FilterCriteria(category="fragrance")) == []


# Search spans name, brand, category and description
def test_search_matches_any_searchable_field(catalog):
    assert ids(apply(catalog, FilterCriteria(search_term="serum"))) == [1]
    assert ids(apply(catalog, FilterCriteria(search_term="maybelline"))) == [2]
    assert ids(apply(catalog, FilterCriteria(search_term="DAMAGED"))) == [3]
    assert ids(apply(catalog, FilterCriteria(search_term="l'oréal"))) == [1, 3]


def test_blank_search_term_is_ignored(catalog):
    assert ids(apply(catalog, FilterCriteria(search_term=""))) == [1, 2, 3]
    assert ids(apply(catalog, FilterCriteria(search_term="   "))) == [1, 2, 3]


def test_category_and_search_compose(catalog):
    out = apply(catalog, FilterCriteria(category="haircare", search_term="l'oréal"))
    assert ids(out) == [3]
    assert apply(catalog, FilterCriteria(category="makeup", search_term="shampoo")) == []


def test_search_result_is_subset_in_input_order(catalog):
    reversed_catalog = list(reversed(catalog))
    out = apply(reversed_catalog, FilterCriteria(search_term="paris"))
    assert ids(out) == [3, 1]
    for product in out:
        assert "paris" in searchable_text(product)


def test_is_category_filter():
    assert is_category_filter("skincare")
    assert not is_category_filter("all")
    assert not is_category_filter(" All ")
    assert not is_category_filter("")
    assert not is_category_filter(None)
