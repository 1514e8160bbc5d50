from __future__ import annotations

import logging

from termgate.config import ConfigLoadRequest, TerminalConfig, YamlConfigLoader
from termgate.logging import init_logging


def main() -> None:
    config = YamlConfigLoader().load(ConfigLoadRequest(yaml_path="examples/config.yml"))
    init_logging(config.log_level)

    logger = logging.getLogger("smoke")
    logger.info("Config loaded name=%s sshd=%s:%s", config.name, config.bind_host, config.sshd_port)
    logger.info("Access key file=%s", config.access_key_file_full_path())

    config.update_terminal_config(TerminalConfig(TERMINAL_HEADER_TITLE="Smoke"))
    logger.info("Terminal header=%s", config.get_terminal_config().header_title)


if __name__ == "__main__":
    main()
