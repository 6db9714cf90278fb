from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SELECTION_KEY = "lorealSelections"

DEFAULT_PERSONA = (
    "You are a L'Oréal Routine Builder Assistant.\n"
    "You ONLY answer questions about L'Oréal brands, skincare, haircare, makeup, fragrance, and routines.\n"
    "Always use the selected products when generating routines."
)


@dataclass(frozen=True)
class Settings:
    """Configuration container for catalog, storage, and chat endpoint."""
    catalog_path: Path
    storage_path: Path
    selection_key: str
    chat_endpoint_url: str
    chat_timeout_seconds: Optional[float]
    persona: str
    log_level: str


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses os.getenv and BASE_DIR for default paths.
    Failure Modes: Invalid CHAT_TIMEOUT_SECONDS raises ValueError.
    If Removed: App cannot locate its catalog, storage, or chat endpoint.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve data paths, then build Settings.
    catalog_path = os.getenv("CATALOG_PATH")
    storage_path = os.getenv("STORAGE_PATH")
    timeout_raw = os.getenv("CHAT_TIMEOUT_SECONDS", "").strip()

    return Settings(
        catalog_path=Path(catalog_path) if catalog_path else BASE_DIR / "data" / "products.json",
        storage_path=Path(storage_path) if storage_path else BASE_DIR / "data" / "local_storage.json",
        selection_key=os.getenv("SELECTION_KEY") or DEFAULT_SELECTION_KEY,
        chat_endpoint_url=os.getenv("CHAT_ENDPOINT_URL", "").strip(),
        chat_timeout_seconds=float(timeout_raw) if timeout_raw else None,
        persona=os.getenv("ASSISTANT_PERSONA") or DEFAULT_PERSONA,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
