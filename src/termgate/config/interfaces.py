from __future__ import annotations

from typing import Optional, Protocol

from termgate.config.models import Config, ConfigLoadRequest


class ConfigLoader(Protocol):
    """
    Loads effective runtime configuration.

    Precedence, lowest to highest: compiled-in defaults, environment, file.
    Implementations mutate and return `config` when one is given, so layers
    applied before an error are kept by the caller.
    """

    def load(self, request: ConfigLoadRequest = ConfigLoadRequest(), config: Optional[Config] = None) -> Config:
        ...
