from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]
EventKind = Literal["user", "assistant", "notice", "error", "pending"]


class Product(BaseModel):
    """Catalog record; immutable once loaded."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    brand: str
    category: str
    image: str = ""
    description: str = ""


class Message(BaseModel):
    """Role-tagged conversation entry sent verbatim to the chat endpoint."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class FilterCriteria(BaseModel):
    """Ephemeral catalog filter built from the current UI input."""
    category: Optional[str] = None
    search_term: Optional[str] = None


class ChatEvent(BaseModel):
    """Rendered conversation item the view appends after a turn."""
    kind: EventKind
    text: str
    html: str


class ChatRequest(BaseModel):
    """Request payload for the free-text chat API."""
    message: str


class TurnResponse(BaseModel):
    """Response payload for chat and routine turns."""
    events: List[ChatEvent]
    state: str
    can_submit: bool


class ProductsResponse(BaseModel):
    """Filtered catalog plus its rendered grid."""
    products: List[Product]
    html: str
    criteria: FilterCriteria


class SelectionResponse(BaseModel):
    """Current selection plus its rendered compact list."""
    selected_ids: List[int]
    products: List[Product]
    html: str


class ConversationResponse(BaseModel):
    """Full conversation log and orchestrator state."""
    messages: List[Message]
    state: str
    can_submit: bool = Field(default=True)
