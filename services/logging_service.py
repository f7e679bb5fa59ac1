# services/logging_service.py
import logging

from config import LOG_LEVEL, LOG_FILE

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

_configured = False


def setup_logging(level=LOG_LEVEL, log_file=LOG_FILE):
    """Install the stream and file handlers on the root logger (once per process)."""
    global _configured
    if _configured:
        return
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT, handlers=handlers)
    _configured = True
