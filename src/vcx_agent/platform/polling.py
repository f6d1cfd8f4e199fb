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

"""Bounded retry polling.

A probe is an async callable returning a :class:`PollOutcome`. :func:`poll`
calls it once immediately and then every ``interval_ms`` until it reports
``is_finished`` or ``max_attempts`` probes have been made. Running out of
attempts is a normal :class:`Exhausted` result, never an exception. Errors
raised by the probe itself are not retried and propagate unchanged.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
from typing import Generic, TypeVar, Union

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_fixed

from vcx_agent.exceptions import ValidationError
from vcx_agent.helpers.logger import setup_logger

T = TypeVar("T")

logger = setup_logger(__name__, level=logging.INFO)


@dataclass(frozen=True)
class PollOutcome(Generic[T]):
    """Result of a single probe invocation.

    ``result`` is only meaningful when ``is_finished`` is true.
    """

    result: T | None = None
    is_finished: bool = False

    @classmethod
    def done(cls, result: T) -> "PollOutcome[T]":
        return cls(result=result, is_finished=True)

    @classmethod
    def pending(cls, result: T | None = None) -> "PollOutcome[T]":
        return cls(result=result, is_finished=False)


@dataclass(frozen=True)
class PollConfig:
    max_attempts: int = 10
    interval_ms: int = 2000
    description: str = ""

    def __post_init__(self):
        if isinstance(self.max_attempts, bool) or self.max_attempts < 1:
            raise ValidationError(
                "max_attempts", f"must be an integer >= 1, got {self.max_attempts!r}"
            )
        if self.interval_ms < 0:
            raise ValidationError("interval_ms", f"must be >= 0, got {self.interval_ms!r}")

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Exhausted:
    attempts_made: int
    last_description: str


PollResult = Union[Success[T], Exhausted]

Probe = Callable[[], Awaitable[PollOutcome[T]]]
Sleep = Callable[[float], Awaitable[None]]


async def poll(
    probe: Probe[T],
    config: PollConfig,
    *,
    sleep: Sleep = asyncio.sleep,
    log: logging.Logger | None = None,
) -> PollResult[T]:
    """Call ``probe`` until it finishes or the attempt budget is spent.

    Args:
        probe: async callable, invoked with no arguments.
        config: attempt budget, sleep interval and a description for logs.
        sleep: awaitable sleeper, ``asyncio.sleep`` outside tests.
        log: where progress notifications go.

    Returns:
        ``Success(result)`` from the first finished outcome, or ``Exhausted``
        after exactly ``config.max_attempts`` unfinished probes.
    """
    log = log or logger

    def _announce(retry_state: RetryCallState) -> None:
        if retry_state.attempt_number > 1:
            log.info(
                f"Trying to do: {config.description} "
                f"Attempt {retry_state.attempt_number}/{config.max_attempts}."
            )

    def _exhausted(retry_state: RetryCallState) -> Exhausted:
        log.debug(
            f"Gave up on: {config.description} after {retry_state.attempt_number} attempts."
        )
        return Exhausted(
            attempts_made=retry_state.attempt_number, last_description=config.description
        )

    retrying = AsyncRetrying(
        sleep=sleep,
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_fixed(config.interval_s),
        retry=retry_if_result(lambda outcome: not outcome.is_finished),
        before=_announce,
        retry_error_callback=_exhausted,
    )
    outcome = await retrying(probe)
    if isinstance(outcome, Exhausted):
        return outcome
    return Success(outcome.result)
