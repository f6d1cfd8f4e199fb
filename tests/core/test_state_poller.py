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

import pytest

from tests.fakes import FakeNative
from vcx_agent.core.state_poller import (
    ConnectionHandle,
    IssuerCredentialHandle,
    ProofHandle,
    connection_accepted,
    credential_accepted,
    credential_request_received,
    poll_to_terminal_state,
    proof_accepted,
    require_terminal,
)
from vcx_agent.exceptions import CollaboratorError, ConvergenceExhausted
from vcx_agent.platform.polling import Exhausted, PollConfig, Success
from vcx_agent.platform.protocols import (
    ConnectionState,
    IssuerCredentialState,
    ProofProtocolState,
)


class _CountingHandle:
    def __init__(self, state):
        self.state = state
        self.advances = 0
        self.queries = 0

    async def advance(self):
        self.advances += 1

    async def query_state(self):
        self.queries += 1
        return self.state


@pytest.mark.asyncio
async def test_already_terminal_state_still_advances_once(recording_sleep):
    handle = _CountingHandle(ConnectionState.ACCEPTED)

    result = await poll_to_terminal_state(
        handle, connection_accepted, PollConfig(max_attempts=3, interval_ms=0), sleep=recording_sleep
    )

    assert result == Success(ConnectionState.ACCEPTED)
    assert handle.advances == 1
    assert handle.queries == 1


@pytest.mark.asyncio
async def test_connection_reaches_accepted(recording_sleep):
    native = FakeNative(
        connection_states=[
            ConnectionState.OFFER_SENT,
            ConnectionState.REQUEST_RECEIVED,
            ConnectionState.ACCEPTED,
        ]
    )

    result = await poll_to_terminal_state(
        ConnectionHandle(native, 7),
        connection_accepted,
        PollConfig(max_attempts=5, interval_ms=3000),
        sleep=recording_sleep,
    )

    assert result == Success(ConnectionState.ACCEPTED)
    assert native.names().count("advance_connection") == 3
    assert recording_sleep.calls == [3.0, 3.0]
    # every probe refreshes before it reads
    assert native.names()[:2] == ["advance_connection", "query_connection_state"]


@pytest.mark.asyncio
async def test_connection_never_accepted_is_exhausted(recording_sleep):
    native = FakeNative(connection_states=[ConnectionState.OFFER_SENT])
    cfg = PollConfig(max_attempts=4, interval_ms=0, description="connection")

    result = await poll_to_terminal_state(
        ConnectionHandle(native, 7), connection_accepted, cfg, sleep=recording_sleep
    )

    assert result == Exhausted(attempts_made=4, last_description="connection")
    assert native.names().count("advance_connection") == 4


@pytest.mark.asyncio
async def test_proof_handle_polls_proof_state(recording_sleep):
    native = FakeNative(proof_states=[ProofProtocolState.SENT, ProofProtocolState.ACCEPTED])

    result = await poll_to_terminal_state(
        ProofHandle(native, 11),
        proof_accepted,
        PollConfig(max_attempts=3, interval_ms=0),
        sleep=recording_sleep,
    )

    assert result == Success(ProofProtocolState.ACCEPTED)
    assert ("advance_proof", 11) in native.calls


@pytest.mark.asyncio
async def test_native_failure_is_wrapped_with_operation_name(recording_sleep):
    class _Broken(FakeNative):
        async def advance_connection(self, handle):
            raise RuntimeError("agency returned 500")

    with pytest.raises(CollaboratorError) as excinfo:
        await poll_to_terminal_state(
            ConnectionHandle(_Broken(), 7),
            connection_accepted,
            PollConfig(max_attempts=3, interval_ms=0),
            sleep=recording_sleep,
        )

    assert excinfo.value.operation == "advance_connection"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert recording_sleep.calls == []


@pytest.mark.asyncio
async def test_query_state_coerces_raw_values():
    class _RawNative(FakeNative):
        async def query_connection_state(self, handle):
            return "ACCEPTED"

    assert await ConnectionHandle(_RawNative(), 1).query_state() is ConnectionState.ACCEPTED


def test_require_terminal_unwraps_success():
    assert require_terminal(Success(ConnectionState.ACCEPTED), "x") is ConnectionState.ACCEPTED


def test_require_terminal_raises_on_exhaustion():
    with pytest.raises(ConvergenceExhausted, match="Connection with alice was not established") as e:
        require_terminal(Exhausted(30, "connection"), "Connection with alice was not established.")
    assert e.value.attempts_made == 30


def test_require_terminal_rejects_other_results():
    with pytest.raises(TypeError, match="Success or Exhausted"):
        require_terminal(ConnectionState.ACCEPTED, "x")


@pytest.mark.asyncio
async def test_issuer_credential_handle_polls_issuer_state(recording_sleep):
    native = FakeNative(
        issuer_states=[IssuerCredentialState.OFFER_SENT, IssuerCredentialState.REQUEST_RECEIVED]
    )

    result = await poll_to_terminal_state(
        IssuerCredentialHandle(native, 5),
        credential_request_received,
        PollConfig(max_attempts=3, interval_ms=0),
        sleep=recording_sleep,
    )

    assert result == Success(IssuerCredentialState.REQUEST_RECEIVED)
    assert native.names().count("advance_issuer_credential") == 2
    assert not credential_accepted(IssuerCredentialState.REQUEST_RECEIVED)
    assert credential_accepted(IssuerCredentialState.ACCEPTED)
