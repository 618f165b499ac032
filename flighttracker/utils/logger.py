# Copyright 2026 Firefly Software Solutions Inc
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

"""Logging configuration for flighttracker."""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


class LogFormat(str, Enum):
    """Output formats supported by configure_logging."""

    JSON = "json"
    HUMAN = "human"


HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logger(
    name: str = "flighttracker",
    level: int = logging.INFO,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Setup and configure a logger for flighttracker.

    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string for log messages

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string or HUMAN_FORMAT))
    logger.addHandler(handler)

    return logger


def configure_logging(
    level: Union[int, str] = logging.INFO,
    human_readable: bool = False,
    name: str = "flighttracker",
) -> logging.Logger:
    """
    Reconfigure the package logger for CLI or service use.

    Args:
        level: Logging level as an int or a name such as "DEBUG"
        human_readable: Use the plain text format instead of JSON lines
        name: Logger name to configure

    Returns:
        The reconfigured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    target = logging.getLogger(name)
    target.setLevel(level)
    target.handlers.clear()

    # stderr keeps stdout free for JSON results
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if human_readable:
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())
    target.addHandler(handler)

    return target


# Default logger instance
logger = setup_logger()
