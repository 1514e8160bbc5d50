from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from termgate.config.models import TerminalConfig


class TerminalConfigCell:
    """
    Holder for the terminal configuration pushed by the control plane.

    Reads and writes share one lock. Readers always get a deep copy, and
    writers replace the whole value.
    """

    def __init__(self, initial: Optional[TerminalConfig] = None):
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> Optional[TerminalConfig]:
        """Return a copy of the current value, or None if nothing was published yet."""
        with self._lock:
            value = self._value
            if value is None:
                return None
            return value.model_copy(deep=True)

    def update(self, conf: TerminalConfig) -> None:
        with self._lock:
            self._value = conf
