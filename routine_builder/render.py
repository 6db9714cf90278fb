"""HTML fragments for the product grid, selected list, and chat window.

Every function here is a pure projection of its arguments; none of them reads
or writes application state.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Sequence

from jinja2 import DictLoader, Environment, select_autoescape
from markupsafe import Markup

from .models import Product

PLACEHOLDER_TEXT = "Select a category to view products"
EMPTY_RESULTS_TEXT = "No products match your filters."
EMPTY_SELECTION_TEXT = "No products selected yet."
PENDING_TEXT = "✨ Generating your routine..."
THINKING_TEXT = "Thinking..."

TEMPLATES = {
    # Hidden inputs that carry the current filter through a form post.
    "filter_fields.html": (
        "{% macro filter_fields(category, search) %}"
        '<input type="hidden" name="category" value="{{ category or \'\' }}">'
        '<input type="hidden" name="search" value="{{ search or \'\' }}">'
        "{% endmacro %}"
    ),
    "placeholder.html": '<div class="placeholder-message">{{ text }}</div>',
    "load_error.html": '<div class="placeholder-message load-error">Could not load products. {{ detail }}</div>',
    "products.html": (
        '{% from "filter_fields.html" import filter_fields %}'
        "{% for product in products %}"
        '<div class="product-card{% if product.id in selected_ids %} selected{% endif %}"'
        ' data-id="{{ product.id }}" aria-pressed="{{ \'true\' if product.id in selected_ids else \'false\' }}">'
        '<img src="{{ product.image }}" alt="{{ product.name }}">'
        '<div class="product-info"><h3>{{ product.name }}</h3><p>{{ product.brand }}</p></div>'
        '<div class="desc-box">{{ product.description }}</div>'
        '<form method="post" action="/selection/{{ product.id }}/toggle">'
        "{{ filter_fields(category, search) }}"
        '<button type="submit" class="toggle-btn">{{ "Remove" if product.id in selected_ids else "Select" }}</button>'
        "</form>"
        "</div>"
        "{% else %}"
        '<div class="placeholder-message">{{ empty_text }}</div>'
        "{% endfor %}"
    ),
    "selected.html": (
        '{% from "filter_fields.html" import filter_fields %}'
        "{% if products %}"
        "{% for product in products %}"
        '<div class="selected-item" data-id="{{ product.id }}">{{ product.name }}'
        '<form method="post" action="/selection/{{ product.id }}/toggle">{{ filter_fields(category, search) }}'
        '<button type="submit" class="remove-btn" data-id="{{ product.id }}">x</button></form>'
        "</div>"
        "{% endfor %}"
        '<form method="post" action="/selection/clear">{{ filter_fields(category, search) }}<button type="submit" class="clear-btn">Clear all</button></form>'
        "{% else %}"
        '<div class="selected-empty">{{ empty_text }}</div>'
        "{% endif %}"
    ),
    "message.html": '<div class="{{ css_class }}">{{ text }}</div>',
    "page.html": (
        '{% from "filter_fields.html" import filter_fields %}'
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8"><title>{{ title }}</title></head><body>'
        '<div class="page-wrapper">'
        '<form class="search-section" method="get" action="/">'
        '<select id="categoryFilter" name="category">'
        '<option value="">Choose a Category</option>'
        '<option value="all"{% if category and category.lower() == "all" %} selected{% endif %}>All</option>'
        "{% for value in categories %}"
        '<option value="{{ value }}"{% if category and category.lower() == value.lower() %} selected{% endif %}>{{ value }}</option>'
        "{% endfor %}"
        "</select>"
        '<input type="search" id="productSearch" name="search" value="{{ search or \'\' }}" placeholder="Search products">'
        '<button type="submit">Filter</button>'
        "</form>"
        '<div id="productsContainer" class="products-grid">{{ products_html }}</div>'
        '<section class="selected-products"><h2>Selected Products</h2>'
        '<div id="selectedProductsList">{{ selected_html }}</div>'
        '<form method="post" action="/routine">{{ filter_fields(category, search) }}'
        '<button id="generateRoutine" type="submit"'
        '{% if not can_submit %} disabled{% endif %}>Generate Routine</button></form>'
        "</section>"
        '<section class="chatbox"><div id="chatWindow" class="chat-window">{{ chat_html }}</div>'
        '<form id="chatForm" method="post" action="/chat">{{ filter_fields(category, search) }}'
        '<input type="text" id="userInput" name="message" placeholder="Ask me about products or routines…"'
        '{% if not can_submit %} disabled{% endif %} required>'
        '<button type="submit" id="sendBtn"{% if not can_submit %} disabled{% endif %}>Send</button>'
        "</form></section>"
        "</div></body></html>"
    ),
}

_env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(default=True))


def render_placeholder(text: str = PLACEHOLDER_TEXT) -> str:
    return _env.get_template("placeholder.html").render(text=text)


def render_load_error(error: Exception) -> str:
    return _env.get_template("load_error.html").render(detail=str(error))


def render_products(
    products: Sequence[Product],
    selected_ids: AbstractSet[int],
    category: str | None = None,
    search: str | None = None,
) -> str:
    """Purpose: Render product cards, marking the selected ones.
    Inputs/Outputs: Inputs are the visible products and the selected ids;
        output is the grid HTML. category/search are echoed into each toggle
        form so the page comes back with the same filter.
    Side Effects / State: None.
    Dependencies: Uses the products.html template.
    Failure Modes: None; an empty list renders the empty-state message.
    If Removed: The catalog cannot be displayed.
    Testing Notes: A card carries "selected" iff its id is in selected_ids.
    """
    return _env.get_template("products.html").render(
        products=products,
        selected_ids=selected_ids,
        category=category,
        search=search,
        empty_text=EMPTY_RESULTS_TEXT,
    )


def render_selected(products: Sequence[Product], category: str | None = None, search: str | None = None) -> str:
    # Each row's remove button maps back to the toggle endpoint.
    return _env.get_template("selected.html").render(
        products=products,
        category=category,
        search=search,
        empty_text=EMPTY_SELECTION_TEXT,
    )


def render_message(role: str, text: str) -> str:
    css_class = "msg-user" if role == "user" else "msg-ai"
    return _env.get_template("message.html").render(css_class=css_class, text=text)


def render_pending(text: str = PENDING_TEXT) -> str:
    return _env.get_template("message.html").render(css_class="msg-ai msg-pending", text=text)


def render_notice(text: str) -> str:
    return _env.get_template("message.html").render(css_class="msg-ai msg-notice", text=text)


def render_error(text: str) -> str:
    return _env.get_template("message.html").render(css_class="msg-ai msg-error", text=text)


def render_transcript(html_parts: Iterable[str]) -> str:
    """Purpose: Compose the chat window for a full page load.
    Inputs/Outputs: Input is the already-rendered conversation items in display
        order; output is the chat window HTML.
    Side Effects / State: None.
    Dependencies: Fed by the orchestrator transcript.
    Failure Modes: None.
    If Removed: Reloading the page loses the visible chat.
    Testing Notes: Items keep their order.
    """
    return "".join(html_parts)


def render_page(
    *,
    title: str,
    categories: Sequence[str],
    category: str | None,
    search: str | None,
    products_html: str,
    selected_html: str,
    chat_html: str,
    can_submit: bool,
) -> str:
    # Fragments are already escaped; mark them safe for the page template.
    return _env.get_template("page.html").render(
        title=title,
        categories=categories,
        category=category,
        search=search,
        products_html=Markup(products_html),
        selected_html=Markup(selected_html),
        chat_html=Markup(chat_html),
        can_submit=can_submit,
    )
