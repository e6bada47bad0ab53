"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "sentence_transformers", "urllib3")


def setup_logging(
    log_file: Optional[str] = "logs/cascade-rank.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    keep_sessions: int = 5,
) -> Optional[Path]:
    """
    Configure logging for applications embedding the rankers.

    - Console: brief logs (INFO by default: stage timings, cascade narrowing)
    - File: detailed logs (DEBUG by default: per-document scores) with rotation

    Rotation policy:
    - New log file per session (timestamp-based naming)
    - Keep last `keep_sessions` log files (cleanup on startup)
    - Rotate when a file reaches 10MB

    Args:
        log_file: Base path to log file, or None for console only
        console_level: Console logging level
        file_level: File logging level
        keep_sessions: Number of session log files to retain

    Returns:
        Path of the session log file (None when file logging is disabled)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filter in handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    session_log = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Newest first; the session about to start takes one slot
        log_pattern = str(log_path.parent / f"{log_path.stem}_*.log")
        existing_logs = sorted(glob.glob(log_pattern), reverse=True)
        for old_log in existing_logs[max(keep_sessions - 1, 0):]:
            try:
                Path(old_log).unlink()
            except OSError:
                pass  # Another process may hold or have removed it

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

        file_handler = RotatingFileHandler(
            session_log,
            mode='a',
            maxBytes=10*1024*1024,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    # Third-party libraries log only warnings and above
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log or 'disabled'} ({logging.getLevelName(file_level)})"
    )
    return session_log
