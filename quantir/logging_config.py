# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Logging configuration for quantir.

When quantir is used as a library, logging is disabled by default
(NullHandler), allowing applications to configure logging as needed.

Example usage:
    >>> import quantir
    >>> # Show parser warnings and diagnostics
    >>> quantir.setup_logging(level="WARNING")
    >>> # Trace interning and parsed instructions to a file
    >>> quantir.setup_logging(level="DEBUG", filename="quantir.log", stream=False)
"""

import logging
import sys
from typing import Any, Literal

# Root logger for all quantir components
QUANTIR_LOGGER_NAME = "quantir"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(
    level: LogLevel = "INFO",
    format: str | None = None,
    date_format: str | None = None,
    filename: str | None = None,
    stream: Any = None,
    force: bool = False,
    propagate: bool = False,
) -> None:
    """
    Configure the ``quantir`` logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default is INFO.
        format: Custom log format string. If None, uses default format.
        date_format: Custom date format string. If None, uses default format.
        filename: If provided, log to this file in addition to stream output.
        stream: Stream to log to. Default is sys.stderr. Set to False to
                disable stream output (only use file or propagation).
        force: If True, remove existing handlers before adding new ones.
        propagate: If True, let records reach the application's loggers
                   instead of managing handlers here.
    """
    logger = logging.getLogger(QUANTIR_LOGGER_NAME)

    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    # A lone NullHandler is only a library-mode placeholder
    if propagate and not force:
        if len(logger.handlers) == 1 and isinstance(
            logger.handlers[0], logging.NullHandler
        ):
            force = True

    if force:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    logger.propagate = propagate

    if propagate and not filename and stream is None:
        return

    formatter = logging.Formatter(
        format or DEFAULT_FORMAT, datefmt=date_format or DEFAULT_DATE_FORMAT
    )

    if stream is not False:
        if stream is None:
            stream = sys.stderr
        stream_handler = logging.StreamHandler(stream)
        stream_handler.setLevel(log_level)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def disable_logging() -> None:
    """Remove all quantir handlers and silence output with a NullHandler."""
    logger = logging.getLogger(QUANTIR_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Library mode until the application calls setup_logging()
_root_logger = logging.getLogger(QUANTIR_LOGGER_NAME)
if not _root_logger.handlers:
    _root_logger.addHandler(logging.NullHandler())
