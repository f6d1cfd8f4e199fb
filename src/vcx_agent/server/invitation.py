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

"""HTTP surface exposing a connection invitation while a workflow runs.

The server shares the workflow's event loop, so it keeps answering while the
workflow is suspended in a poll.
"""

import asyncio
from typing import Callable

from fastapi import FastAPI
import uvicorn

from vcx_agent.helpers.logger import setup_logger

logger = setup_logger(__name__)


def create_invitation_app(invitation: str) -> FastAPI:
    app = FastAPI(title="vcx-agent invitation", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/")
    async def get_invitation() -> dict[str, str]:
        return {"invitationString": invitation}

    return app


class InvitationServer:
    """Serve ``GET /`` with the cached invitation string on ``port``.

    Use as an async context manager so the listening socket is released on
    every exit path.
    """

    def __init__(
        self,
        invitation: str,
        port: int,
        *,
        host: str = "0.0.0.0",
        server_factory: Callable[[uvicorn.Config], uvicorn.Server] = uvicorn.Server,
        startup_poll_s: float = 0.05,
    ):
        self.invitation = invitation
        self.port = port
        self.host = host
        self._server_factory = server_factory
        self._startup_poll_s = startup_poll_s
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def bound_port(self) -> int | None:
        """Port actually listened on; differs from ``port`` when that is 0."""
        if self._server is None or not self._server.started:
            return None
        for listener in getattr(self._server, "servers", []):
            for sock in listener.sockets:
                return sock.getsockname()[1]
        return self.port

    async def _serve(self) -> None:
        assert self._server is not None
        try:
            await self._server.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind
            raise OSError(f"uvicorn exited with status {e.code}") from e

    async def start(self) -> None:
        config = uvicorn.Config(
            create_invitation_app(self.invitation),
            host=self.host,
            port=self.port,
            log_level="warning",
            lifespan="off",
        )
        self._server = self._server_factory(config)
        self._task = asyncio.create_task(self._serve())
        while not self._server.started:
            if self._task.done():
                # serve() returned or raised before binding
                exc = self._task.exception()
                self._task = None
                raise RuntimeError(f"Invitation server failed to start on port {self.port}") from exc
            await asyncio.sleep(self._startup_poll_s)
        logger.info(f"The invitation is also available on port {self.bound_port}")

    async def close(self) -> None:
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._task = None
            logger.debug(f"Invitation server on port {self.port} closed")

    async def __aenter__(self) -> "InvitationServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
