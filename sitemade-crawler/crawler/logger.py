import logging
import sys
from datetime import datetime


class CompanyFormatter(logging.Formatter):
    """
    Formatter for the company log format:
    [ Tue Jan 06 05:32:41 AM UTC 2026 ] : INFO : crawler.frontier : Message
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")

        # Context is either an explicit 'context' extra or the logger name
        context = getattr(record, 'context', record.name)

        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logger(name="crawler", log_file=None, level=logging.INFO):
    """
    Sets up a logger with the company standard format.
    Called once by the entry point; components receive child loggers.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers if setup_logger is called multiple times
    if logger.handlers:
        return logger

    # Child loggers propagate to the root 'crawler' logger
    if name != "crawler":
        logger.propagate = True
        setup_logger("crawler", log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Only the root 'crawler' logger gets a FileHandler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(component):
    """Child logger of the 'crawler' logger for a component."""
    return logging.getLogger(f"crawler.{component}")
