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

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

StateT = TypeVar("StateT", covariant=True)


class ConnectionState(str, Enum):
    """Connection handshake states reported by the native library."""

    NONE = "NONE"
    INITIAL = "INITIAL"
    OFFER_SENT = "OFFER_SENT"
    REQUEST_RECEIVED = "REQUEST_RECEIVED"
    ACCEPTED = "ACCEPTED"


class ProofProtocolState(str, Enum):
    """Proof exchange protocol states (not the proof's validity)."""

    NONE = "NONE"
    INITIAL = "INITIAL"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"


class IssuerCredentialState(str, Enum):
    """Issuer side of a credential exchange."""

    NONE = "NONE"
    INITIAL = "INITIAL"
    OFFER_SENT = "OFFER_SENT"
    REQUEST_RECEIVED = "REQUEST_RECEIVED"
    ACCEPTED = "ACCEPTED"


class ProofVerificationState(str, Enum):
    """Validity of a received proof, inspected only once the exchange is ACCEPTED."""

    VERIFIED = "VERIFIED"
    INVALID = "INVALID"
    NOT_AVAILABLE = "NOT_AVAILABLE"


@dataclass(frozen=True)
class ProofVerification:
    proof_state: ProofVerificationState
    proof: bytes | None


@runtime_checkable
class ProtocolHandle(Protocol[StateT]):
    """Caller-owned reference to a native stateful object (connection, proof).

    ``advance`` refreshes the local view of the remote state and may perform
    network I/O; ``query_state`` reads the refreshed state.
    """

    async def advance(self) -> None: ...

    async def query_state(self) -> StateT: ...


@runtime_checkable
class NativeLibrary(Protocol):
    """Asynchronous facade over the native credential-exchange library.

    Handles are opaque integers owned by the native side.
    """

    async def init_logger(self, level: str) -> None: ...

    async def init_with_config(self, config_json: str) -> None: ...

    async def provision(self, request_json: str) -> str: ...

    async def create_connection(self, name: str) -> tuple[int, str]: ...

    async def advance_connection(self, handle: int) -> None: ...

    async def query_connection_state(self, handle: int) -> ConnectionState: ...

    async def create_schema(self, name: str, version: str, attributes: list[str]) -> str: ...

    async def create_credential_definition(
        self, schema_id: str, name: str, *, support_revocation: bool
    ) -> int: ...

    async def offer_credential(
        self, cred_def_handle: int, attributes: dict[str, str], connection_handle: int
    ) -> int: ...

    async def advance_issuer_credential(self, handle: int) -> None: ...

    async def query_issuer_credential_state(self, handle: int) -> IssuerCredentialState: ...

    async def send_credential(self, handle: int, connection_handle: int) -> None: ...

    async def revoke_credential(self, handle: int) -> None: ...

    async def request_proof(self, proof_request: dict[str, Any], connection_handle: int) -> int: ...

    async def advance_proof(self, handle: int) -> None: ...

    async def query_proof_state(self, handle: int) -> ProofProtocolState: ...

    async def get_proof_verification(self, handle: int) -> ProofVerification: ...

    async def shutdown(self) -> None: ...


@runtime_checkable
class CredentialStorage(Protocol):
    """Persistence for provisioned agent credentials."""

    def exists(self) -> bool: ...

    def save(self, credentials: dict[str, Any]) -> None: ...

    def load(self) -> dict[str, Any]: ...
