from routine_builder.app_state import AppState
from routine_builder.models import FilterCriteria
from routine_builder.render import PLACEHOLDER_TEXT


def test_selected_list_follows_selection_changes(settings):
    state = AppState(settings)
    assert state.selected_products() == []

    state.selection.toggle(3)
    assert [product.id for product in state.selected_products()] == [3]
    assert "Elvive Shampoo" in state.selected_html()

    state.selection.toggle(1)
    assert [product.id for product in state.selected_products()] == [1, 3]

    state.selection.clear()
    assert state.selected_products() == []


def test_products_html_placeholder_and_filter(settings):
    state = AppState(settings)
    assert PLACEHOLDER_TEXT in state.products_html(FilterCriteria())
    assert PLACEHOLDER_TEXT in state.products_html(FilterCriteria(search_term="  "))

    state.selection.toggle(2)
    html = state.products_html(FilterCriteria(category="makeup"))
    assert 'class="product-card selected"' in html
    assert '<input type="hidden" name="category" value="makeup">' in html
