from termgate.config.errors import ConfigDocumentError, ConfigError
from termgate.config.loader import YamlConfigLoader
from termgate.config.models import Config, ConfigLoadRequest, TerminalConfig, default_name
from termgate.config.runtime import TerminalConfigCell

__all__ = [
    "Config",
    "ConfigDocumentError",
    "ConfigError",
    "ConfigLoadRequest",
    "TerminalConfig",
    "TerminalConfigCell",
    "YamlConfigLoader",
    "default_name",
]
