import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


def get_log_dir() -> Path:
    """
    Get the log directory path.

    Returns:
        Path: log directory, ~/.remotefs/logs unless REMOTEFS_LOG_DIR is set
    """
    override = os.getenv("REMOTEFS_LOG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".remotefs" / "logs"


def _load_log_config(config_path: Optional[str]) -> dict:
    """Merge defaults with a YAML ``logging:`` section or the LOG_* environment variables."""
    default_config = {
        'console_level': 'INFO',
        'file_level': 'DEBUG',
        'rotation': '1 day',
        'retention': '1 week',
        'compression': 'zip',
    }

    log_config = default_config.copy()

    if config_path and Path(config_path).exists():
        try:
            import yaml
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
            log_config.update(config.get('logging', {}))
        except Exception as e:
            print(f"Warning: Could not load logging config from {config_path}: {e}", file=sys.stderr)
            print("Using default logging configuration", file=sys.stderr)
    else:
        log_config.update({
            'console_level': os.getenv('LOG_CONSOLE_LEVEL', default_config['console_level']),
            'file_level': os.getenv('LOG_FILE_LEVEL', default_config['file_level']),
            'rotation': os.getenv('LOG_ROTATION', default_config['rotation']),
            'retention': os.getenv('LOG_RETENTION', default_config['retention']),
            'compression': os.getenv('LOG_COMPRESSION', default_config['compression']),
        })

    return log_config


def setup_logging(config_path: Optional[str] = None, log_to_files: bool = True) -> None:
    """
    Configure loguru sinks for the server.

    Args:
        config_path: Optional YAML file with a ``logging`` section
        log_to_files: Also write app.log / err.log under the log directory
    """
    log_config = _load_log_config(config_path)

    logger.remove()
    logger.configure(extra={"name": "RemoteFS"})

    # stdout carries the MCP stdio protocol; colour codes would corrupt JSON responses
    logger.add(
        sys.stderr,
        level=log_config.get('console_level', 'INFO'),
        format=LOG_FORMAT,
        colorize=False
    )

    if not log_to_files:
        return

    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    def app_log_filter(record):
        """Everything except errors, which go to err.log."""
        return record["level"].name != "ERROR"

    logger.add(
        str(log_dir / "app.log"),
        rotation=log_config.get('rotation', '1 day'),
        retention=log_config.get('retention', '1 week'),
        compression=log_config.get('compression', 'zip'),
        level=log_config.get('file_level', 'DEBUG'),
        format=LOG_FORMAT,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        filter=app_log_filter
    )

    def error_log_filter(record):
        return record["level"].name == "ERROR"

    # diagnose stays off: frame variables could include passwords or private keys
    logger.add(
        str(log_dir / "err.log"),
        rotation=log_config.get('rotation', '1 day'),
        retention=log_config.get('retention', '1 week'),
        compression=log_config.get('compression', 'zip'),
        level="ERROR",
        format=LOG_FORMAT,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        filter=error_log_filter
    )


def get_logger(name: str = None):
    """
    Get a logger bound to a component name.

    Args:
        name: component name, e.g. "RemoteFS.Registry"

    Returns:
        loguru.Logger: bound logger
    """
    if name:
        return logger.bind(name=name)
    return logger
