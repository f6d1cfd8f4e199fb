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

"""Verifier run: connect to a holder, issue it a credential, verify its proof.

The holder side runs elsewhere; this workflow drives the issuer and verifier
half of the connection, credential and proof exchanges to convergence.
"""

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
import time
from typing import Any

from vcx_agent.config import Settings, get_settings
from vcx_agent.config.provision import AgentIdentity
from vcx_agent.core.context import NativeContext
from vcx_agent.core.issuance import (
    DEFAULT_CREDENTIAL_POLL,
    DEMO_CREDENTIAL,
    issue_credential,
    prepare_credential_definition,
)
from vcx_agent.core.provisioning import provision_or_load
from vcx_agent.core.state_poller import (
    ConnectionHandle,
    ProofHandle,
    connection_accepted,
    poll_to_terminal_state,
    proof_accepted,
    require_terminal,
)
from vcx_agent.core.verification import (
    VerificationPredicate,
    check_proof_verification,
    expected_verification,
)
from vcx_agent.exceptions import (
    CollaboratorError,
    ConvergenceExhausted,
    ProofVerificationMismatch,
    ValidationError,
)
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.polling import PollConfig
from vcx_agent.platform.protocols import CredentialStorage, ProofVerificationState
from vcx_agent.platform.readiness import READINESS_INTERVAL_MS, ReadinessTarget, await_ready
from vcx_agent.server.invitation import InvitationServer

logger = setup_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PROOF_MISMATCH = 2
EXIT_NOT_CONVERGED = 3
EXIT_INVALID_INPUT = 4

DEFAULT_CONNECTION_POLL = PollConfig(
    max_attempts=30, interval_ms=3000, description="wait for connection to be Accepted"
)
DEFAULT_PROOF_POLL = PollConfig(
    max_attempts=30, interval_ms=2000, description="wait for proof to be Accepted"
)


def build_proof_request(issuer_did: str | None, *, now_ms: int | None = None) -> dict[str, Any]:
    restriction = [{"issuer_did": issuer_did}] if issuer_did else []
    return {
        "source_id": "proof-for-holder",
        "name": "proofForAlice",
        "attrs": [
            {"names": ["name", "last_name", "sex"], "restrictions": restriction},
            {"name": "date", "restrictions": restriction},
            {"name": "degree", "restrictions": [{"attr::degree::value": "maths"}]},
            {"name": "nickname", "self_attest_allowed": True},
        ],
        "preds": [
            {"name": "age", "p_type": ">=", "p_value": 20, "restrictions": restriction},
        ],
        "revocation_interval": {"to": now_ms if now_ms is not None else int(time.time() * 1000)},
    }


@dataclass
class VerifierOptions:
    identity: AgentIdentity
    revocation: bool = False
    expose_invitation_port: int | None = None
    connection_poll: PollConfig | None = None
    proof_poll: PollConfig | None = None
    credential_poll: PollConfig | None = None
    credential_attributes: dict[str, str] = field(default_factory=lambda: dict(DEMO_CREDENTIAL))
    readiness_interval_ms: int = READINESS_INTERVAL_MS
    accept_verification: VerificationPredicate | None = None
    proof_request: dict[str, Any] | None = None
    provision_kwargs: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, identity: AgentIdentity, settings: Settings | None = None, **kwargs):
        s = settings or get_settings()
        kwargs.setdefault(
            "connection_poll",
            PollConfig(
                max_attempts=s.connection_poll_attempts,
                interval_ms=s.connection_poll_interval_ms,
                description="wait for connection to be Accepted",
            ),
        )
        kwargs.setdefault(
            "proof_poll",
            PollConfig(
                max_attempts=s.proof_poll_attempts,
                interval_ms=s.proof_poll_interval_ms,
                description="wait for proof to be Accepted",
            ),
        )
        kwargs.setdefault(
            "credential_poll",
            PollConfig(
                max_attempts=s.credential_poll_attempts,
                interval_ms=s.credential_poll_interval_ms,
                description="wait for credential exchange",
            ),
        )
        kwargs.setdefault("readiness_interval_ms", s.readiness_interval_ms)
        return cls(identity=identity, **kwargs)


async def run_verifier(
    ctx: NativeContext,
    options: VerifierOptions,
    storage: CredentialStorage,
    *,
    readiness: Callable[..., Awaitable[None]] = await_ready,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    server_factory: Callable[[str, int], InvitationServer] = InvitationServer,
) -> ProofVerificationState:
    """Run the verifier workflow once and return the accepted verification state.

    Raises:
        ConvergenceExhausted: connection, credential or proof never reached ACCEPTED.
        ProofVerificationMismatch: the proof arrived but its validity differs
            from ``options.accept_verification``.
    """
    identity = options.identity
    identity.validate_complete()
    logger.info(f"Starting. Revocation enabled={options.revocation}")

    await readiness(
        ReadinessTarget.for_agency(identity.agency_url),
        interval_ms=options.readiness_interval_ms,
    )
    credentials = await provision_or_load(
        identity, ctx.native, storage, readiness=readiness, **options.provision_kwargs
    )
    await ctx.use_credentials(credentials)
    native = ctx.native
    cred_def = await prepare_credential_definition(native)

    connection_name = f"{identity.agent_name}-connection"
    try:
        connection_handle, invitation = await native.create_connection(connection_name)
    except Exception as e:
        raise CollaboratorError("create_connection", e) from e
    logger.info("Invitation for the holder (share it over an existing secure channel):")
    logger.info(invitation)

    async with AsyncExitStack() as stack:
        if options.expose_invitation_port:
            try:
                await stack.enter_async_context(
                    server_factory(invitation, options.expose_invitation_port)
                )
            except (OSError, RuntimeError) as e:
                logger.error(
                    f"Error trying to expose connection invitation on port "
                    f"{options.expose_invitation_port}: {e}"
                )

        connection_poll = options.connection_poll or DEFAULT_CONNECTION_POLL
        result = await poll_to_terminal_state(
            ConnectionHandle(native, connection_handle),
            connection_accepted,
            connection_poll,
            sleep=sleep,
        )
        require_terminal(result, f"Connection {connection_name} was not established.")
        logger.info(f"Connection {connection_name} was Accepted!")

        await issue_credential(
            native,
            cred_def,
            connection_handle,
            options.credential_attributes,
            revoke=options.revocation,
            poll_config=options.credential_poll or DEFAULT_CREDENTIAL_POLL,
            sleep=sleep,
        )

        proof_request = options.proof_request or build_proof_request(
            credentials.get("institution_did")
        )
        try:
            proof_handle = await native.request_proof(proof_request, connection_handle)
        except Exception as e:
            raise CollaboratorError("request_proof", e) from e

        logger.info("Poll agency and wait for the holder to provide proof")
        proof_poll = options.proof_poll or DEFAULT_PROOF_POLL
        result = await poll_to_terminal_state(
            ProofHandle(native, proof_handle), proof_accepted, proof_poll, sleep=sleep
        )
        require_terminal(result, "Proof was not received.")

        try:
            verification = await native.get_proof_verification(proof_handle)
        except Exception as e:
            raise CollaboratorError("get_proof_verification", e) from e

        accept = options.accept_verification or expected_verification(options.revocation)
        return check_proof_verification(verification, accept)


def exit_code_for(error: BaseException | None) -> int:
    """Map a workflow outcome to a process exit status."""
    if error is None:
        return EXIT_OK
    if isinstance(error, ValidationError):
        return EXIT_INVALID_INPUT
    if isinstance(error, ProofVerificationMismatch):
        return EXIT_PROOF_MISMATCH
    if isinstance(error, ConvergenceExhausted):
        return EXIT_NOT_CONVERGED
    return EXIT_FAILURE


async def run_verifier_to_exit_code(
    ctx: NativeContext,
    options: VerifierOptions,
    storage: CredentialStorage,
    **kwargs,
) -> int:
    """Run the workflow, log any failure with its traceback, return an exit status."""
    error: BaseException | None = None
    try:
        state = await run_verifier(ctx, options, storage, **kwargs)
        logger.info(f"Proof verification finished as {state.value}.")
    except Exception as e:
        error = e
        logger.exception(f"Verifier encountered error: {e}")
    finally:
        await ctx.close()
    code = exit_code_for(error)
    logger.info(f"Exiting process with code {code}")
    return code
