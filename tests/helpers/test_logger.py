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

import pytest
from rich.console import Console
from rich.logging import RichHandler

from vcx_agent.helpers.logger import resolve_level, set_level, setup_logger


def test_setup_logger_splits_stdout_and_stderr(monkeypatch):
    """Interactive mode routes info to stdout and warnings to stderr."""
    monkeypatch.setattr("sys.stdout.isatty", lambda: True)
    logger = setup_logger(name="vcx_agent.test_logger.split", level=logging.INFO, console=Console())

    levels = sorted(h.level for h in logger.handlers)
    assert levels == [logging.DEBUG, logging.WARNING]
    assert all(isinstance(h, RichHandler) for h in logger.handlers)
    assert logger.propagate is False


def test_setup_logger_machine_mode_uses_single_stderr_handler(monkeypatch):
    monkeypatch.setattr("sys.stdout.isatty", lambda: False)
    logger = setup_logger(name="vcx_agent.test_logger.machine", level="debug")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_setup_logger_idempotent():
    """Returns existing logger when handlers are already configured."""
    name = "vcx_agent.test_logger.idempotent"
    logger_first = setup_logger(name=name, level=logging.INFO)
    handler_count = len(logger_first.handlers)
    logger_second = setup_logger(name=name, level=logging.DEBUG)
    assert logger_second is logger_first
    assert len(logger_second.handlers) == handler_count


def test_resolve_level():
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("DEBUG") == logging.DEBUG


def test_resolve_level_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown log level"):
        resolve_level("chatty")


def test_set_level_only_touches_package_loggers():
    ours = setup_logger(name="vcx_agent.test_logger.set_level", level=logging.INFO)
    other = logging.getLogger("someone_else.test_logger")
    other.setLevel(logging.INFO)

    set_level("error")

    assert ours.level == logging.ERROR
    assert other.level == logging.INFO
    set_level(logging.INFO)
