"""Logging setup for cmdwire.

Every module logs through ``structlog.get_logger("cmdwire.<subsystem>")``.
``setup_logging`` routes those records through stdlib ``logging``:

    root                      console
      cmdwire                 logs/cmdwire.log (everything below)
        cmdwire.registry      logs/registry.log   reflection, registration
        cmdwire.dispatch      logs/dispatch.log   routing, handler failures
        cmdwire.session       logs/session.log    transport-facing errors

Records from plain stdlib loggers go through the same processors, so
they are timestamped and scrubbed like structlog events.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, NamedTuple

import structlog

SUBSYSTEMS = ("registry", "dispatch", "session")

LOGGER_PREFIX = "cmdwire"

_REDACTED = "***REDACTED***"

_SECRET_PATTERNS = (
    re.compile(r"Bot\s+[A-Za-z0-9_.-]{20,}"),
    re.compile(r"Bearer\s+[A-Za-z0-9_./-]{20,}"),
    # id.timestamp.hmac bot tokens
    re.compile(r"[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{4,}\.[A-Za-z0-9_-]{20,}"),
)


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        for pattern in _SECRET_PATTERNS:
            value = pattern.sub(_REDACTED, value)
        return value
    if isinstance(value, dict):
        return {k: _scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(v) for v in value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that masks bot tokens and bearer credentials.

    Strings nested in dicts, lists and tuples are scrubbed too.
    """
    return {key: _scrub(value) for key, value in event_dict.items()}


class _Settings(NamedTuple):
    log_dir: Path
    level: int
    subsystem_levels: Dict[str, Any]
    max_bytes: int
    backup_count: int
    cache: bool


def _level(name: Any, default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _settings(config) -> _Settings:
    if config is None:
        # Loggers stay uncached so a later call with a real config wins.
        return _Settings(
            log_dir=Path.cwd() / "logs",
            level=logging.INFO,
            subsystem_levels={},
            max_bytes=10 * 1024 * 1024,
            backup_count=5,
            cache=False,
        )
    return _Settings(
        log_dir=config.log_dir,
        level=_level(config.logging_level, logging.INFO),
        subsystem_levels=config.logging_subsystem_levels or {},
        max_bytes=config.logging_max_file_size_mb * 1024 * 1024,
        backup_count=config.logging_backup_count,
        cache=True,
    )


def _shared_processors() -> List[Any]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitize_secrets,
    ]


def _formatter(colors: bool) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _rotating_handler(
    path: Path, level: int, settings: _Settings, formatter: logging.Formatter
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _reset(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = True


def setup_logging(config=None) -> None:
    """Configure structlog and the stdlib handlers behind it.

    Safe to call more than once; existing cmdwire handlers are closed
    and replaced. If the log directory can't be created, logging goes
    to the console only.

    Args:
        config: ``Config`` to read levels, rotation and ``log_dir``
            from. Defaults apply without one.
    """
    settings = _settings(config)

    try:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        to_files = True
    except OSError as exc:
        print(
            f"WARNING: cannot create log directory {settings.log_dir}: {exc}; "
            "logging to the console only",
            file=sys.stderr,
        )
        to_files = False

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.level)
    console.setFormatter(_formatter(colors=sys.stdout.isatty()))
    root.addHandler(console)

    plain = _formatter(colors=False)

    combined = logging.getLogger(LOGGER_PREFIX)
    _reset(combined, logging.DEBUG)
    if to_files:
        combined.addHandler(_rotating_handler(
            settings.log_dir / f"{LOGGER_PREFIX}.log", settings.level, settings, plain,
        ))

    for subsystem in SUBSYSTEMS:
        level = _level(settings.subsystem_levels.get(subsystem), settings.level)
        sub_logger = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}")
        _reset(sub_logger, level)
        if to_files:
            sub_logger.addHandler(_rotating_handler(
                settings.log_dir / f"{subsystem}.log", level, settings, plain,
            ))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.cache,
    )
