"""Session helpers for the dashboard that survive ``st.rerun()``.

They take any mutable mapping, so ``st.session_state`` in the app and a
plain dict in tests.
"""
from typing import Any, Dict, MutableMapping, Optional, Tuple

FLASH_KEY = "flash"


def push_flash(state: MutableMapping[str, Any], message: str, level: str = "success"):
    """Queue a message to show on the next run."""
    state[FLASH_KEY] = (level, message)


def pop_flash(state: MutableMapping[str, Any]) -> Optional[Tuple[str, str]]:
    """Take the queued (level, message), if any."""
    return state.pop(FLASH_KEY, None)


def clamp_page(page: int, pagination: Dict[str, Any]) -> int:
    """Pull a page that fell past the end (e.g. after deleting its last row) back to the last page."""
    last_page = max(1, pagination.get("totalPages", 0))
    return min(max(1, page), last_page)
