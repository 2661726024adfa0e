import logging
import sys

# Setup logger for this module
logger = logging.getLogger(__name__)

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to console output"""

    def format(self, record):
        log_message = super().format(record)

        # Only colorize WARNING and ERROR levels, leave INFO as default
        if record.levelname == 'WARNING':
            return f"\033[33m{log_message}\033[0m"  # Yellow
        elif record.levelname == 'ERROR':
            return f"\033[31m{log_message}\033[0m"  # Red
        elif record.levelname == 'CRITICAL':
            return f"\033[35m{log_message}\033[0m"  # Magenta
        else:
            return log_message


def setup_logging(log_level=logging.INFO, quiet_modules: list[str] = None, stream=None):
    """
    Configure console logging for the tagging run.

    The console is the only diagnostic channel, so there is no file handler.

    Args:
        log_level: Logging level for root logger (default: logging.INFO)
        quiet_modules: Module names to hold at WARNING (chatty third-party libraries)
        stream: Stream for the console handler (default: stderr)

    Returns:
        logging.Logger: Root logger instance (configured)
    """
    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers (force=True equivalent)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    for module_name in quiet_modules or ["msal", "urllib3"]:
        logging.getLogger(module_name).setLevel(logging.WARNING)

    return root_logger
