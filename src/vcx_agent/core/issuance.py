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


"""Issuer side of a credential exchange.

The verifier run issues its own demo credential to the holder before asking
for a proof, and revokes it when the run exercises revocation.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import random

from vcx_agent.core.state_poller import (
    IssuerCredentialHandle,
    credential_accepted,
    credential_request_received,
    poll_to_terminal_state,
    require_terminal,
)
from vcx_agent.exceptions import CollaboratorError
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.polling import PollConfig
from vcx_agent.platform.protocols import NativeLibrary

logger = setup_logger(__name__)

SCHEMA_NAME = "FaberVcx"
SCHEMA_ATTRIBUTES = ["name", "last_name", "sex", "date", "degree", "age"]
CRED_DEF_NAME = "DemoCredential123"
DEMO_CREDENTIAL = {
    "name": "alice",
    "last_name": "clark",
    "sex": "female",
    "date": "05-2018",
    "degree": "maths",
    "age": "25",
}

DEFAULT_CREDENTIAL_POLL = PollConfig(
    max_attempts=30, interval_ms=2000, description="wait for credential exchange"
)


@dataclass(frozen=True)
class CredentialDefinition:
    schema_id: str
    name: str
    handle: int


async def _native_call(operation: str, fn: Callable[..., Awaitable], *args, **kwargs):
    try:
        return await fn(*args, **kwargs)
    except Exception as e:
        raise CollaboratorError(operation, e) from e


def schema_version(rng: random.Random | None = None) -> str:
    # the ledger rejects a second schema with the same name and version
    rng = rng or random.Random()
    return ".".join(str(rng.randint(1, 100)) for _ in range(3))


async def prepare_credential_definition(
    native: NativeLibrary,
    *,
    name: str = CRED_DEF_NAME,
    version: str | None = None,
) -> CredentialDefinition:
    """Publish a schema and a revocable credential definition on top of it."""
    version = version or schema_version()
    schema_id = await _native_call(
        "create_schema", native.create_schema, SCHEMA_NAME, version, SCHEMA_ATTRIBUTES
    )
    logger.info(f"Created schema {SCHEMA_NAME} {version}: {schema_id}")
    handle = await _native_call(
        "create_credential_definition",
        native.create_credential_definition,
        schema_id,
        name,
        support_revocation=True,
    )
    logger.info(f"Created credential definition {name}")
    return CredentialDefinition(schema_id=schema_id, name=name, handle=handle)


async def issue_credential(
    native: NativeLibrary,
    cred_def: CredentialDefinition,
    connection_handle: int,
    attributes: dict[str, str],
    *,
    revoke: bool = False,
    poll_config: PollConfig | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Offer a credential, wait for the request, send it and wait for the ack.

    Returns:
        The issuer credential handle.

    Raises:
        ConvergenceExhausted: the holder never requested or accepted it.
        CollaboratorError: a native call failed.
    """
    poll_config = poll_config or DEFAULT_CREDENTIAL_POLL
    handle = await _native_call(
        "offer_credential", native.offer_credential, cred_def.handle, attributes, connection_handle
    )
    logger.info(f"Sent credential offer for {cred_def.name}")
    issuer_credential = IssuerCredentialHandle(native, handle)

    result = await poll_to_terminal_state(
        issuer_credential, credential_request_received, poll_config, sleep=sleep
    )
    require_terminal(result, "Credential request was not received.")

    await _native_call("send_credential", native.send_credential, handle, connection_handle)
    logger.info("Issued credential, waiting for the holder to accept it")
    result = await poll_to_terminal_state(
        issuer_credential, credential_accepted, poll_config, sleep=sleep
    )
    require_terminal(result, "Credential was not accepted.")

    if revoke:
        await _native_call("revoke_credential", native.revoke_credential, handle)
        logger.info("Revoked the issued credential")
    return handle
