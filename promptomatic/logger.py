import logging
import json
from logging.handlers import RotatingFileHandler

from .config import LOG_FILE


def setup_logger():
    """
    Sets up a logger to output structured JSON logs to a rotating file.
    """
    logger = logging.getLogger("promptomatic")
    logger.setLevel(logging.INFO)
    logger.propagate = False  # Prevent logs from being duplicated by the root logger

    # Use a rotating file handler to prevent the log file from growing indefinitely
    handler = RotatingFileHandler(LOG_FILE, maxBytes=10485760, backupCount=5, delay=True)  # 10MB per file

    class JsonFormatter(logging.Formatter):
        def format(self, record):
            log_object = {
                "timestamp": self.formatTime(record, self.datefmt),
                "level": record.levelname,
                "logger": record.name,
            }
            # If the message is a dictionary, merge it into the log object
            if isinstance(record.msg, dict):
                log_object.update(record.msg)
            else:
                log_object["message"] = record.getMessage()

            if record.exc_info:
                log_object["exception"] = self.formatException(record.exc_info)

            return json.dumps(log_object)

    handler.setFormatter(JsonFormatter())

    # Avoid adding handlers multiple times
    if not logger.handlers:
        logger.addHandler(handler)

    return logger


# Initialize and export the logger
chat_logger = setup_logger()
