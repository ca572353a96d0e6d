import logging
import logging.handlers
import time
from datetime import datetime
from pathlib import Path
from typing import Optional
from timetrack.config import get_settings

# Component loggers that also get a file of their own
COMPONENT_LOGS = {
    "timetrack.services.timesheet_service": "timesheet_service.log",
    "timetrack.services.auth_service": "auth.log",
    "timetrack.routers": "api.log",
}


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter, max_mb: int, backups: int):
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> Path:
    """
    Configure logging for the timesheet service.
    Creates separate log files for different components with rotation.
    """
    settings = get_settings()
    logs_dir = Path(log_dir or settings.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    root_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    # Define log format
    log_format = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    # Console handler (for container logs)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(log_format)
    root_logger.addHandler(console_handler)

    # Main application log file
    root_logger.addHandler(_rotating_handler(logs_dir / "app.log", root_level, log_format, 10, 5))

    for name, file_name in COMPONENT_LOGS.items():
        component_logger = logging.getLogger(name)
        component_logger.handlers.clear()
        component_logger.addHandler(_rotating_handler(logs_dir / file_name, logging.DEBUG, log_format, 5, 3))
        component_logger.setLevel(logging.DEBUG)

    # Error-only log file for critical issues
    root_logger.addHandler(_rotating_handler(logs_dir / "errors.log", logging.ERROR, log_format, 5, 5))

    # Suppress noisy third-party loggers
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configuration completed")
    logger.info(f"Log files will be saved to: {logs_dir.absolute()}")

    return logs_dir


def get_log_files_info(log_dir: Optional[str] = None):
    """
    Get information about current log files for debugging.
    """
    logs_dir = Path(log_dir or get_settings().log_dir)
    if not logs_dir.exists():
        return {"status": "No logs directory found"}

    log_files = {}
    for log_file in logs_dir.glob("*.log"):
        stat = log_file.stat()
        log_files[log_file.name] = {
            "size_mb": round(stat.st_size / (1024*1024), 2),
            "modified": datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        }

    return log_files


def cleanup_old_logs(days_to_keep=30, log_dir: Optional[str] = None):
    """
    Clean up log files older than specified days.
    """
    logs_dir = Path(log_dir or get_settings().log_dir)
    if not logs_dir.exists():
        return []

    cutoff_time = time.time() - (days_to_keep * 24 * 60 * 60)

    cleaned_files = []
    for log_file in logs_dir.glob("*.log*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                cleaned_files.append(log_file.name)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Failed to clean up {log_file}: {e}")

    if cleaned_files:
        logging.getLogger(__name__).info(f"Cleaned up old log files: {cleaned_files}")
    return cleaned_files
