from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import dotenv_values

from termgate.config.coercion import parse_flag, parse_int, parse_list, parse_uint
from termgate.config.errors import ConfigDocumentError
from termgate.config.models import Config, ConfigLoadRequest

logger = logging.getLogger(__name__)

ENV_SOURCE = "<environment>"

# Environment keys that bypass the YAML merge and get bespoke coercion.
# A coercer returning None leaves the field unchanged.
TYPED_ENV_KEYS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "SFTP_SHOW_HIDDEN_FILE": ("show_hidden_file", parse_flag),
    "REUSE_CONNECTION": ("reuse_connection", parse_flag),
    "UPLOAD_FAILED_REPLAY_ON_START": ("upload_failed_replay", parse_flag),
    "SSH_TIMEOUT": ("ssh_timeout", parse_int),
    "REDIS_DB_ROOM": ("redis_db_index", parse_uint),
    "REDIS_CLUSTERS": ("redis_clusters", parse_list),
}


def _read_dotenv(dotenv_path: Path) -> Dict[str, str]:
    if not dotenv_path.exists():
        return {}
    return {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None}


def _read_config_file(path: Path) -> Optional[str]:
    try:
        if not path.is_file():
            logger.info("config.file_missing path=%s", path)
            return None
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("config.file_unreadable path=%s error=%s", path, e)
        return None


class YamlConfigLoader:
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def load(self, request: ConfigLoadRequest = ConfigLoadRequest(), config: Optional[Config] = None) -> Config:
        """
        Resolve configuration onto `config` (a fresh default Config if omitted).

        Environment values are applied first, then the YAML file. A malformed
        document raises ConfigDocumentError after logging; whatever was applied
        before it stays on `config`.
        """
        if config is None:
            config = Config()

        environ: Dict[str, str] = {}
        if request.dotenv_path is not None:
            environ.update(_read_dotenv(Path(request.dotenv_path)))
        environ.update(os.environ if self._environ is None else self._environ)

        env_error: Optional[ConfigDocumentError] = None
        try:
            logger.info("config.load_env")
            try:
                self.apply_environment(config, environ)
            except ConfigDocumentError as e:
                env_error = e

            body = _read_config_file(Path(request.yaml_path))
            if body is not None:
                logger.info("config.load_file path=%s", request.yaml_path)
                config.load_from_yaml(body, source=request.yaml_path)
        finally:
            config.ensure_valid()

        if env_error is not None:
            raise env_error
        return config

    def apply_environment(self, config: Config, environ: Mapping[str, str]) -> None:
        generic: Dict[str, str] = {}
        for key, value in environ.items():
            typed = TYPED_ENV_KEYS.get(key)
            if typed is None:
                generic[key] = value
                continue
            field_name, coerce = typed
            coerced = coerce(value)
            if coerced is None:
                logger.debug("config.env_value_ignored key=%s", key)
                continue
            setattr(config, field_name, coerced)

        document = yaml.safe_dump(generic, allow_unicode=True)
        config.load_from_yaml(document, source=ENV_SOURCE)
