from __future__ import annotations

from typing import Sequence


class ConfigError(Exception):
    """Base error for configuration resolution."""


class ConfigDocumentError(ConfigError, ValueError):
    """
    A YAML document (file or environment-derived) could not be applied.

    `invalid_keys` lists the keys whose values were rejected; it is empty when
    the document itself could not be parsed.
    """

    def __init__(self, source: str, message: str, invalid_keys: Sequence[str] = ()):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.invalid_keys = tuple(invalid_keys)
