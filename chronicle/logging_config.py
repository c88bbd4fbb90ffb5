import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s | %(message)s'


class ColorFormatter(logging.Formatter):
    COLOR_CODES = {
        logging.DEBUG: '\033[36m',     # Cyan
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[31;1m' # Bold Red
    }
    RESET_CODE = '\033[0m'

    def format(self, record):
        filename = os.path.basename(record.pathname)
        func_info = f":{record.funcName}()" if record.funcName and record.funcName != "<module>" else ""

        color = self.COLOR_CODES.get(record.levelno, '')
        message = super().format(record)
        return f"{color}{filename}{func_info} | {message}{self.RESET_CODE}"


def setup_logging(level='INFO', log_file=None):
    """Configure the root logger for the application.

    Console output is colorized. When log_file is given, a rotating file
    handler with the plain format is added as well. Safe to call more than
    once (e.g. one app per test); handlers are only attached the first time.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if getattr(root, '_chronicle_configured', False):
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColorFormatter('%(levelname)s | %(message)s'))
    root.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=3)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(file_handler)

    # Reduce third-party noise
    for noisy in ('httpx', 'httpcore', 'openai', 'urllib3', 'werkzeug'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root._chronicle_configured = True
