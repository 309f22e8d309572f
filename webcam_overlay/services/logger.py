"""
Logging capabilities decorator for adding consistent logging functionality to any class
Every service logs through a `logger(message, level)` callable, with console fallback
"""

import time
from typing import Callable, Optional, Dict, List
from enum import Enum


class LogLevel(Enum):
    """Standard logging levels"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


LEVEL_PRIORITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4
}

MAX_HISTORY = 1000


class LoggingConfig:
    """Configuration for logging behavior"""

    def __init__(self):
        self.log_prefix: str = ""
        self.min_log_level: LogLevel = LogLevel.DEBUG


def console_logger(message: str, level: str = "info"):
    """Fallback logger callable, prints every message"""
    print(f"[{level.upper()}] {message}")


def make_console_logger(min_level: LogLevel = LogLevel.INFO) -> Callable[[str, str], None]:
    """Console logger callable that drops messages below min_level"""

    def logger(message: str, level: str = "info"):
        try:
            priority = LEVEL_PRIORITY[LogLevel(level)]
        except ValueError:
            priority = LEVEL_PRIORITY[LogLevel.INFO]
        if priority >= LEVEL_PRIORITY[min_level]:
            console_logger(message, level)

    return logger


def with_logging(
        logger: Optional[Callable] = None,
        prefix: str = "",
        min_level: LogLevel = LogLevel.DEBUG
):
    """
    Decorator to add logging capabilities to a class.

    The logger can also be handed to the decorated class as a `logger=`
    keyword argument, which is picked up after the original __init__ runs.

    Usage:
        @with_logging(prefix="MyClass")
        class MyClass:
            pass
    """

    def decorator(cls):
        original_init = cls.__init__

        config = LoggingConfig()
        config.log_prefix = prefix or cls.__name__
        config.min_log_level = min_level

        def enhanced_init(self, *args, **kwargs):
            self._logger = logger
            self._logging_config = config
            self._log_history: List[Dict] = []

            original_init(self, *args, **kwargs)

            if not self._logger:
                self._auto_detect_logger(kwargs)

            self.log(f"{config.log_prefix} initialized", LogLevel.DEBUG)

        cls.__init__ = enhanced_init

        cls.log = _log
        cls.set_logger = _set_logger
        cls.get_log_history = _get_log_history
        cls.clear_log_history = _clear_log_history
        cls.log_debug = lambda self, msg: self.log(msg, LogLevel.DEBUG)
        cls.log_info = lambda self, msg: self.log(msg, LogLevel.INFO)
        cls.log_warning = lambda self, msg: self.log(msg, LogLevel.WARNING)
        cls.log_error = lambda self, msg: self.log(msg, LogLevel.ERROR)
        cls._auto_detect_logger = _auto_detect_logger

        return cls

    return decorator


def _log(self, message: str, level: LogLevel = LogLevel.INFO, category: str = "general"):
    """
    Log a message with specified level and category

    Args:
        message: Message to log
        level: Log level (LogLevel enum or its string value)
        category: Category for organizing logs
    """
    if not isinstance(level, LogLevel):
        try:
            level = LogLevel(str(level).lower())
        except ValueError:
            level = LogLevel.INFO

    if LEVEL_PRIORITY[level] < LEVEL_PRIORITY[self._logging_config.min_log_level]:
        return

    formatted_message = f"{self._logging_config.log_prefix}: {message}"

    self._log_history.append({
        'timestamp': time.time(),
        'level': level.value,
        'category': category,
        'message': message,
        'formatted_message': formatted_message,
        'class': self.__class__.__name__
    })
    if len(self._log_history) > MAX_HISTORY:
        self._log_history = self._log_history[-MAX_HISTORY:]

    if self._logger:
        try:
            self._logger(formatted_message, level.value)
        except Exception as e:
            # External logger broke; keep the message visible
            print(f"[Logger Error] {e}")
            print(f"[{level.value.upper()}] {formatted_message}")
    else:
        console_logger(formatted_message, level.value)


def _set_logger(self, logger: Callable):
    """Set or update the logger function"""
    self._logger = logger
    self.log("Logger updated", LogLevel.DEBUG)


def _get_log_history(self, level: Optional[LogLevel] = None, category: Optional[str] = None,
                     limit: Optional[int] = None):
    """
    Get log history with optional filtering

    Args:
        level: Filter by log level
        category: Filter by category
        limit: Maximum number of entries to return (most recent)
    """
    history = self._log_history.copy()

    if level:
        history = [entry for entry in history if entry['level'] == level.value]

    if category:
        history = [entry for entry in history if entry['category'] == category]

    if limit:
        history = history[-limit:]

    return history


def _clear_log_history(self):
    """Clear the log history"""
    self._log_history.clear()


def _auto_detect_logger(self, kwargs):
    """Pick up a logger passed as a constructor keyword"""
    for name in ('logger', 'log_func', 'log_callback'):
        if name in kwargs and callable(kwargs[name]):
            self._logger = kwargs[name]
            return
