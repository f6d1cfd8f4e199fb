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
from typing import TypeVar

from vcx_agent.exceptions import CollaboratorError, ConvergenceExhausted
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.polling import Exhausted, PollConfig, PollOutcome, PollResult, Success, poll
from vcx_agent.platform.protocols import (
    ConnectionState,
    IssuerCredentialState,
    NativeLibrary,
    ProofProtocolState,
    ProtocolHandle,
)

S = TypeVar("S")

logger = setup_logger(__name__)


async def poll_to_terminal_state(
    handle: ProtocolHandle[S],
    terminal_predicate: Callable[[S], bool],
    config: PollConfig,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollResult[S]:
    """Refresh ``handle`` until its state satisfies ``terminal_predicate``.

    Every probe advances the handle before reading it, so even a handle whose
    cached state already looks terminal is refreshed once.
    """

    async def _probe() -> PollOutcome[S]:
        await handle.advance()
        state = await handle.query_state()
        logger.debug(f"{config.description}: state={state}")
        return PollOutcome(result=state, is_finished=terminal_predicate(state))

    return await poll(_probe, config, sleep=sleep)


def require_terminal(result: PollResult[S], failure_message: str) -> S:
    """Unwrap a state poll, turning exhaustion into ConvergenceExhausted."""
    if isinstance(result, Success):
        return result.value
    if not isinstance(result, Exhausted):
        raise TypeError(f"Expected Success or Exhausted, got {type(result).__name__}")
    raise ConvergenceExhausted(
        f"{failure_message} (gave up after {result.attempts_made} attempts: "
        f"{result.last_description})",
        attempts_made=result.attempts_made,
    )


def connection_accepted(state: ConnectionState) -> bool:
    return state == ConnectionState.ACCEPTED


def credential_request_received(state: IssuerCredentialState) -> bool:
    return state in (IssuerCredentialState.REQUEST_RECEIVED, IssuerCredentialState.ACCEPTED)


def credential_accepted(state: IssuerCredentialState) -> bool:
    return state == IssuerCredentialState.ACCEPTED


def proof_accepted(state: ProofProtocolState) -> bool:
    # revoked credentials still end in ACCEPTED; validity is checked afterwards
    return state == ProofProtocolState.ACCEPTED


class _NativeHandle:
    _advance_op: str
    _query_op: str

    def __init__(self, native: NativeLibrary, handle: int):
        self.native = native
        self.handle = handle

    async def _call(self, operation: str):
        try:
            return await getattr(self.native, operation)(self.handle)
        except Exception as e:
            raise CollaboratorError(operation, e) from e

    async def advance(self) -> None:
        await self._call(self._advance_op)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(handle={self.handle})"


class ConnectionHandle(_NativeHandle):
    _advance_op = "advance_connection"
    _query_op = "query_connection_state"

    async def query_state(self) -> ConnectionState:
        return ConnectionState(await self._call(self._query_op))


class ProofHandle(_NativeHandle):
    _advance_op = "advance_proof"
    _query_op = "query_proof_state"

    async def query_state(self) -> ProofProtocolState:
        return ProofProtocolState(await self._call(self._query_op))


class IssuerCredentialHandle(_NativeHandle):
    _advance_op = "advance_issuer_credential"
    _query_op = "query_issuer_credential_state"

    async def query_state(self) -> IssuerCredentialState:
        return IssuerCredentialState(await self._call(self._query_op))
