"""
Structured Logging Configuration

Supports both human-readable and JSON formats for log analysis.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Literal


# Extra record fields copied into JSON output
EXTRA_FIELDS = ("step", "attempt", "run_id", "run_number", "pipeline_id")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for terminal output"""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Копия, чтобы цвет не попал в другие handlers
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING",
    log_dir: Optional[str] = None,
    json_format: bool = False,
    log_file: Optional[str] = None,
    quiet: bool = True
) -> logging.Logger:
    """Setup logging configuration

    Console output goes to stderr so it never mixes with the report
    printed on stdout.

    Args:
        level: Console log level
        log_dir: Directory for log files
        json_format: Use JSON format for file logs
        log_file: Specific log file name (auto-generated if None)
        quiet: Suppress noisy library logs (httpx, etc)

    Returns:
        Root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_dir else getattr(logging, level))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level))
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    if sys.stderr.isatty():
        console_formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S")
    else:
        console_formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if quiet:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = f"piperika_{timestamp}.log"

        file_handler = logging.FileHandler(
            log_path / log_file,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(fmt))

        root_logger.addHandler(file_handler)

    return root_logger


class LogContext:
    """Context manager for adding extra fields to log records"""

    def __init__(self, **kwargs):
        self.extra = kwargs
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()
        old_factory = self._old_factory
        extra = self.extra

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in extra.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._old_factory)
        return False
