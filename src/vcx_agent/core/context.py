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

from collections.abc import Awaitable, Callable
import json
from typing import Any

from vcx_agent.core.plugins import init_null_payment
from vcx_agent.exceptions import CollaboratorError, VcxAgentError
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.protocols import NativeLibrary

logger = setup_logger(__name__)


class NativeContext:
    """
    Owns the process-wide native library initialization.

    Build one at process start and pass it to every component that talks to
    the native library. Lifecycle: ``initialize`` once, use, ``close`` at exit.
    Re-initializing or using a closed context raises.

    Example:
        >>> async with NativeContext(native) as ctx:
        ...     await provision_agent(identity, ctx)
    """

    def __init__(
        self,
        native: NativeLibrary,
        *,
        log_level: str = "error",
        init_payment: Callable[[], Awaitable[None]] = init_null_payment,
    ):
        self._native = native
        self.log_level = log_level
        self._init_payment = init_payment
        self._initialized = False
        self._closed = False

    @property
    def initialized(self) -> bool:
        return self._initialized and not self._closed

    @property
    def native(self) -> NativeLibrary:
        if not self.initialized:
            raise VcxAgentError("NativeContext is not initialized (or already closed).")
        return self._native

    async def initialize(self) -> "NativeContext":
        if self._closed:
            raise VcxAgentError("NativeContext was closed and cannot be re-initialized.")
        if self._initialized:
            raise VcxAgentError("NativeContext is already initialized.")
        await self._init_payment()
        try:
            await self._native.init_logger(self.log_level)
        except Exception as e:
            raise CollaboratorError("init_logger", e) from e
        self._initialized = True
        logger.debug(f"Native library initialized (log level {self.log_level})")
        return self

    async def use_credentials(self, credentials: dict[str, Any]) -> None:
        """Open the agent's wallet and agency connection from stored credentials."""
        try:
            await self.native.init_with_config(json.dumps(credentials))
        except VcxAgentError:
            raise
        except Exception as e:
            raise CollaboratorError("init_with_config", e) from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._initialized:
            try:
                await self._native.shutdown()
            except Exception as e:
                logger.error(f"Error during native shutdown: {e}")

    async def __aenter__(self) -> "NativeContext":
        return await self.initialize()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
