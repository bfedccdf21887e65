"""
Logging for chain execution.

The functions that execute chains take a `logger` argument of type
LoggerBase, so that the caller decides where the report of the
execution goes: to the console, to a file, or to a list kept in memory
that can be inspected after the chain has run.

Usage:
    ```python
    from lmchain.utils.logging import (
        get_logger,
        ConsoleLogger,
        FileLogger,
        LoglistLogger,
    )

    console_logger = ConsoleLogger(__name__)
    file_logger = FileLogger(__name__, "chain.log")

    # keeps the messages in memory
    list_logger = LoglistLogger()
    report = await execute_chain(links, logger=list_logger)
    warnings = list_logger.get_logs(level=1)
    ```
"""

import logging
import sys
from pathlib import Path
from abc import ABC, abstractmethod

LOG_FORMAT = '%(levelname)s - %(name)s - %(message)s'
FILE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


class LoggerBase(ABC):
    """
    Abstract interface for logging functionality.
    """

    @abstractmethod
    def set_level(self, level: int) -> None:
        """Set the logging level for the logger."""
        pass

    @abstractmethod
    def get_level(self) -> int:
        """Get the current logging level"""
        pass

    @abstractmethod
    def info(self, msg: str) -> None:
        """Log an informational message."""
        pass

    @abstractmethod
    def error(self, msg: str) -> None:
        """Log an error message."""
        pass

    @abstractmethod
    def warning(self, msg: str) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def critical(self, msg: str) -> None:
        """Log a critical message."""
        pass


class ConsoleLogger(LoggerBase):
    """
    Logs to the console through a logging.Logger delegate.
    """

    def __init__(self, name: str | None = None) -> None:
        """
        Args:
            name: the logger name, typically __name__. The root
                logger is used if no name is given.
        """
        self.logger = logging.getLogger(name or None)
        self.logger.setLevel(logging.INFO)

        if not self.logger.hasHandlers():
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def get_level(self) -> int:
        return self.logger.level

    def info(self, msg: str) -> None:
        self.logger.info(msg)

    def error(self, msg: str) -> None:
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        self.logger.warning(msg)

    def critical(self, msg: str) -> None:
        self.logger.critical(msg, stack_info=True)


class FileLogger(LoggerBase):
    """
    Logs to a file through a logging.Logger delegate. Messages are not
    propagated to the console.
    """

    def __init__(
        self, name: str = "", log_file: str | Path = "chain.log"
    ) -> None:
        """
        Args:
            name: the logger name, typically __name__
            log_file: path to the file where messages are written
        """
        self.logger = logging.getLogger(f"{name}_file")
        self.logger.setLevel(logging.INFO)

        # avoid duplicate handlers if created twice with same name
        self.logger.handlers.clear()

        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def get_level(self) -> int:
        return self.logger.level

    def info(self, msg: str) -> None:
        self.logger.info(msg)

    def error(self, msg: str) -> None:
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        self.logger.warning(msg)

    def critical(self, msg: str) -> None:
        self.logger.critical(msg, stack_info=True)


class LoglistLogger(LoggerBase):
    """
    Keeps the logged messages in a list that can be inspected by the
    object creator, for example to see how many attempts a model link
    needed.
    """

    def __init__(self) -> None:
        self.logs: list[dict[str, str]] = []

    def set_level(self, level: int) -> None:
        pass

    def get_level(self) -> int:
        return 0

    def info(self, msg: str) -> None:
        self.logs.append({'info': msg})

    def error(self, msg: str) -> None:
        self.logs.append({'error': msg})

    def warning(self, msg: str) -> None:
        self.logs.append({'warning': msg})

    def critical(self, msg: str) -> None:
        self.logs.append({'critical': msg})

    def get_logs(self, level: int = 0) -> list[str]:
        """
        Returns a list of strings with the log messages.

        Args:
           level: a filter on the logs. Possible values:
                0 or less: returns all messages
                1: omit info
                2 or more: only errors and critical
        """
        logs: list[str] = []
        for entry in self.logs:
            match entry:
                case {'info': msg}:
                    if level < 1:
                        logs.append("INFO - " + msg)
                case {'warning': msg}:
                    if level < 2:
                        logs.append("WARNING - " + msg)
                case {'error': msg}:
                    logs.append("ERROR - " + msg)
                case {'critical': msg}:
                    logs.append("CRITICAL - " + msg)
                case _:
                    logs.append(str(entry))
        return logs

    def count_logs(self, level: int = 0) -> int:
        """The number of recorded logs at the given level."""
        return len(self.get_logs(level))

    def clear_logs(self) -> None:
        self.logs.clear()

    def print_logs(self, level: int = 0) -> None:
        for log in self.get_logs(level):
            print(log)


class ExceptionConsoleLogger(ConsoleLogger):
    """
    A console logger that raises a RuntimeError after logging errors
    and critical messages.
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(f"{name}_exception")

    def error(self, msg: str) -> None:
        self.logger.error(msg)
        raise RuntimeError(f"Error: {msg}")

    def critical(self, msg: str) -> None:
        self.logger.critical(msg)
        raise RuntimeError(f"Critical error: {msg}")


def get_logger(name: str) -> LoggerBase:
    """
    Get a console logger with the specified name.

    Args:
        name: The name of the logger, typically __name__ to use the
            module name
    """
    return ConsoleLogger(name)
