# Copyright 2025 iGenius S.p.A
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

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler


def _rich_handler(level: int, console: Console, *, tracebacks: bool) -> RichHandler:
    return RichHandler(
        level=level,
        console=console,
        rich_tracebacks=tracebacks,
        markup=True,
        show_time=True,
        show_level=True,
        show_path=False,
    )


def resolve_level(level: int | str) -> int:
    """Accept either a logging constant or a name such as ``"debug"``."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logger(
    name: str = "vcx_agent",
    level: int | str = logging.INFO,
    console: Console | None = None,
    to_stderr: bool = False,
) -> logging.Logger:
    machine_mode = not sys.stdout.isatty()
    to_stderr = to_stderr or machine_mode
    level = resolve_level(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # Avoid duplicate logs

    if logger.handlers:
        return logger

    stderr_console = Console(stderr=True)

    if to_stderr:
        logger.addHandler(_rich_handler(level, stderr_console, tracebacks=True))
        return logger

    # Info and below → stdout, warnings and above → stderr
    stdout_handler = _rich_handler(logging.DEBUG, console or Console(), tracebacks=False)
    stdout_handler.addFilter(lambda record: record.levelno <= logging.INFO)

    logger.addHandler(stdout_handler)
    logger.addHandler(_rich_handler(logging.WARNING, stderr_console, tracebacks=True))

    return logger


def set_level(level: int | str, prefix: str = "vcx_agent") -> None:
    """Apply ``level`` to every already configured ``vcx_agent`` logger."""
    resolved = resolve_level(level)
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if name == prefix or name.startswith(prefix + "."):
            if isinstance(candidate, logging.Logger):
                candidate.setLevel(resolved)
