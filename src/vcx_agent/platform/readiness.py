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

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from vcx_agent.exceptions import DependencyUnavailable, ReadinessCancelled
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.http_probe import probe_http, probe_tcp

logger = setup_logger(__name__)

READINESS_INTERVAL_MS = 1000


@dataclass(frozen=True)
class ReadinessTarget:
    """A remote dependency that must answer before startup continues.

    With ``port`` set the check is a TCP connect to ``host:port``; otherwise
    ``host`` is a base URL and the check is an HTTP GET on ``health_path``.
    """

    host: str
    port: int | None = None
    health_path: str = "/agency"

    @classmethod
    def for_agency(cls, agency_url: str) -> "ReadinessTarget":
        return cls(host=agency_url.rstrip("/"), port=None, health_path="/agency")

    @property
    def health_url(self) -> str:
        return f"{self.host}{self.health_path}"

    def describe(self) -> str:
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return f"HTTP GET {self.health_url}"


ReadinessProbe = Callable[[ReadinessTarget], Awaitable[None]]


async def default_probe(target: ReadinessTarget) -> None:
    if target.port is not None:
        await asyncio.to_thread(probe_tcp, target.host, target.port)
    else:
        await asyncio.to_thread(probe_http, target.health_url)


async def await_ready(
    target: ReadinessTarget,
    *,
    cancel: asyncio.Event | None = None,
    probe: ReadinessProbe = default_probe,
    interval_ms: int = READINESS_INTERVAL_MS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Block until ``target`` answers, retrying forever at a constant interval.

    There is no attempt budget: the only way out besides success is the
    optional ``cancel`` event, checked before every probe. Without it the wait
    ends only when the process is interrupted.

    Raises:
        ReadinessCancelled: ``cancel`` was set before the target came up.
    """
    attempt = 0
    while True:
        if cancel is not None and cancel.is_set():
            raise ReadinessCancelled(
                f"Stopped waiting for {target.describe()} after {attempt} attempts."
            )
        attempt += 1
        try:
            await probe(target)
        except DependencyUnavailable as e:
            logger.warning(
                f"{target.describe()} should be reachable, but returns error: {e}. Sleeping."
            )
            await sleep(interval_ms / 1000.0)
            continue
        logger.debug(f"{target.describe()} is ready after {attempt} attempt(s).")
        return
