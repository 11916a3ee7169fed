"""Process-wide logging setup from LoggingConfig."""

import logging
import sys

from gatekeeper.config.settings import LoggingConfig
from gatekeeper.observability.alerts import AlertSender, ErrorSpikeAlertHandler
from gatekeeper.observability.log_rotation import (
    DailyRotatingLogFileHandler,
    RotatingLogFileHandler,
    parse_file_size,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marks handlers installed here so a second setup_logging() replaces them
_OWNED_ATTR = "_gatekeeper_owned"


def setup_logging(
    config: LoggingConfig,
    alert_sender: AlertSender | None = None,
    root: logging.Logger | None = None,
) -> list[logging.Handler]:
    """
    Configure the root logger: console output, a rotating log file (the
    fixed file, or daily rolling files in log_dir) and an optional error
    spike alert. Returns the installed handlers.
    """
    root = root or logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _OWNED_ATTR, False):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(config.level)
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    handlers.append(console)

    max_bytes = parse_file_size(config.max_file_size)
    file_handler: RotatingLogFileHandler | None = None
    if config.file:
        file_handler = RotatingLogFileHandler(
            config.file, max_bytes=max_bytes, max_files=config.max_files_per_day
        )
    elif config.log_dir:
        file_handler = DailyRotatingLogFileHandler(
            config.log_dir, max_bytes=max_bytes, max_files=config.max_files_per_day
        )
    if file_handler is not None:
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    alert_config = config.alert_on_error_spike
    if alert_config.enabled and alert_sender is not None:
        handlers.append(ErrorSpikeAlertHandler(alert_config, alert_sender))

    for handler in handlers:
        setattr(handler, _OWNED_ATTR, True)
        root.addHandler(handler)

    # httpx logs every Bot API call URL, which embeds the bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handlers
