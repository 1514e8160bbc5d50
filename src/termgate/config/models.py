from __future__ import annotations

import logging
import os
import socket
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from termgate.config.errors import ConfigDocumentError
from termgate.config.runtime import TerminalConfigCell

logger = logging.getLogger(__name__)

NAME_PREFIX = "[TermGate]"
MAX_NAME_LENGTH = 32
DEFAULT_LANGUAGE_CODE = "zh"
REDACTED = "******"

_NULL_TAG = "tag:yaml.org,2002:null"


class TextLoader(yaml.SafeLoader):
    """
    SafeLoader that resolves only nulls implicitly.

    Plain scalars stay text, so `0123`, `12:30` or `yes` reach string fields
    verbatim; typed fields are coerced by the model.
    """


TextLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag == _NULL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def default_name(hostname: Optional[str] = None) -> str:
    """
    Build the service identity from a fixed prefix and the host name.

    Names longer than MAX_NAME_LENGTH code points keep their first and last
    halves so that long host names still stay recognizable.
    """
    if hostname is None:
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = ""
    candidate = NAME_PREFIX + hostname
    if len(candidate) <= MAX_NAME_LENGTH:
        return candidate
    half = MAX_NAME_LENGTH // 2
    return candidate[:half] + candidate[-half:]


class TerminalConfig(BaseModel):
    """
    Terminal settings published by the control plane.

    The control plane owns this schema; keys not listed here are kept as-is.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    asset_list_page_size: str = Field(default="", alias="TERMINAL_ASSET_LIST_PAGE_SIZE")
    asset_list_sort_by: str = Field(default="", alias="TERMINAL_ASSET_LIST_SORT_BY")
    header_title: str = Field(default="", alias="TERMINAL_HEADER_TITLE")
    password_auth: bool = Field(default=True, alias="TERMINAL_PASSWORD_AUTH")
    public_key_auth: bool = Field(default=True, alias="TERMINAL_PUBLIC_KEY_AUTH")
    command_storage: Dict[str, Any] = Field(default_factory=dict, alias="TERMINAL_COMMAND_STORAGE")
    replay_storage: Dict[str, Any] = Field(default_factory=dict, alias="TERMINAL_REPLAY_STORAGE")
    session_keep_duration: int = Field(default=0, alias="TERMINAL_SESSION_KEEP_DURATION")
    telnet_regex: str = Field(default="", alias="TERMINAL_TELNET_REGEX")
    max_idle_time: int = Field(default=0, alias="SECURITY_MAX_IDLE_TIME")
    heartbeat_interval: int = Field(default=0, alias="TERMINAL_HEARTBEAT_INTERVAL")
    host_key: str = Field(default="", alias="TERMINAL_HOST_KEY")
    enable_session_share: bool = Field(default=False, alias="ENABLE_SESSION_SHARE")


class Config(BaseModel):
    """
    Effective runtime configuration after applying all precedence rules.

    Each field's alias is its external key, shared by environment variables and
    the YAML file. The instance is mutated in place by the loader at startup and
    then only read; the terminal configuration lives in a separate locked cell.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # Identity
    name: str = Field(default_factory=default_name, alias="NAME")
    root_path: str = Field(default_factory=os.getcwd, alias="ROOT_PATH")
    language_code: str = Field(default=DEFAULT_LANGUAGE_CODE, alias="LANGUAGE_CODE")

    # Network binding
    core_host: str = Field(default="http://localhost:8080", alias="CORE_HOST")
    bootstrap_token: str = Field(default="", alias="BOOTSTRAP_TOKEN")
    bind_host: str = Field(default="0.0.0.0", alias="BIND_HOST")
    sshd_port: str = Field(default="2222", alias="SSHD_PORT")
    httpd_port: str = Field(default="5000", alias="HTTPD_PORT")
    access_key: str = Field(default="", alias="ACCESS_KEY")
    access_key_file: str = Field(default="data/keys/.access_key", alias="ACCESS_KEY_FILE")
    host_key_file: str = Field(default="data/keys/host_key", alias="HOST_KEY_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Behavior flags
    show_hidden_file: bool = Field(default=False, alias="SFTP_SHOW_HIDDEN_FILE")
    reuse_connection: bool = Field(default=True, alias="REUSE_CONNECTION")
    upload_failed_replay: bool = Field(default=True, alias="UPLOAD_FAILED_REPLAY_ON_START")
    asset_load_policy: str = Field(default="", alias="ASSET_LOAD_POLICY")
    zip_max_size: str = Field(default="1024M", alias="ZIP_MAX_SIZE")
    zip_tmp_path: str = Field(default="/tmp", alias="ZIP_TMP_PATH")

    # Tunables; ssh_timeout is in seconds
    ssh_timeout: int = Field(default=15, alias="SSH_TIMEOUT")
    client_alive_interval: int = Field(default=30, ge=0, alias="CLIENT_ALIVE_INTERVAL")
    retry_alive_count_max: int = Field(default=3, alias="RETRY_ALIVE_COUNT_MAX")

    # Shared session backend
    share_room_type: str = Field(default="local", alias="SHARE_ROOM_TYPE")
    redis_host: str = Field(default="127.0.0.1", alias="REDIS_HOST")
    redis_port: str = Field(default="6379", alias="REDIS_PORT")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_db_index: int = Field(default=0, ge=0, alias="REDIS_DB_ROOM")
    redis_clusters: List[str] = Field(default_factory=list, alias="REDIS_CLUSTERS")

    _terminal: TerminalConfigCell = PrivateAttr(default_factory=TerminalConfigCell)

    @classmethod
    def field_keys(cls) -> Dict[str, str]:
        """Map external key -> field name."""
        return {field.alias or name: name for name, field in cls.model_fields.items()}

    @classmethod
    def secret_keys(cls) -> frozenset[str]:
        return frozenset({"BOOTSTRAP_TOKEN", "ACCESS_KEY", "REDIS_PASSWORD"})

    def ensure_valid(self) -> None:
        if not self.language_code:
            self.language_code = DEFAULT_LANGUAGE_CODE

    def apply_document(self, document: Mapping[str, Any]) -> Dict[str, str]:
        """
        Overwrite the fields whose keys are present in `document`.

        Each value is validated on its own; values that validate are assigned
        and the rest leave their field unchanged. Unknown keys and null values
        are ignored. Returns the rejected keys mapped to the validation message.
        """
        known = self.field_keys()
        current = self.model_dump(by_alias=True)
        rejected: Dict[str, str] = {}
        for key, value in document.items():
            if key not in known or value is None:
                continue
            try:
                updated = type(self).model_validate({**current, key: value})
            except ValidationError as e:
                rejected[key] = "; ".join(err["msg"] for err in e.errors())
                continue
            field_name = known[key]
            setattr(self, field_name, getattr(updated, field_name))
        return rejected

    def load_from_yaml(self, body: str, source: str = "<string>") -> None:
        try:
            data = yaml.load(body, Loader=TextLoader)
        except yaml.YAMLError as e:
            logger.error("config.yaml_parse_error source=%s error=%s", source, e)
            raise ConfigDocumentError(source, f"invalid YAML: {e}") from e

        if data is None:
            return
        if not isinstance(data, dict):
            logger.error("config.yaml_not_mapping source=%s type=%s", source, type(data).__name__)
            raise ConfigDocumentError(source, f"top-level YAML must be a mapping, got: {type(data).__name__}")

        rejected = self.apply_document(data)
        if rejected:
            logger.error("config.yaml_invalid source=%s keys=%s", source, ",".join(rejected))
            details = "; ".join(f"{key}: {msg}" for key, msg in rejected.items())
            raise ConfigDocumentError(source, f"invalid values: {details}", invalid_keys=list(rejected))

    def access_key_file_full_path(self) -> str:
        if os.path.isabs(self.access_key_file):
            return self.access_key_file
        return os.path.join(self.root_path, self.access_key_file)

    def get_terminal_config(self) -> Optional[TerminalConfig]:
        return self._terminal.get()

    def update_terminal_config(self, conf: TerminalConfig) -> None:
        self._terminal.update(conf)

    def redacted(self) -> Dict[str, Any]:
        """Dump by external key with credentials masked."""
        data = self.model_dump(by_alias=True)
        for key in self.secret_keys():
            if data.get(key):
                data[key] = REDACTED
        return data


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Inputs for a configuration loader.

    `dotenv_path` entries are layered below the process environment.
    """

    yaml_path: str = "config.yml"
    dotenv_path: Optional[str] = None
