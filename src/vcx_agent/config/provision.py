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

from enum import Enum
import json
from pathlib import Path
from typing import IO, Any

from pydantic import BaseModel, ConfigDict, field_validator
import yaml

from vcx_agent.exceptions import ValidationError


class ProtocolType(str, Enum):
    """Protocol versions understood by the native library."""

    V1 = "1.0"
    V2 = "2.0"
    V3 = "3.0"
    V4 = "4.0"

    @classmethod
    def allowed(cls) -> list[str]:
        return [member.value for member in cls]


class WalletType(str, Enum):
    BUILTIN = "default"
    POSTGRES = "postgres_storage"


class AgentIdentity(BaseModel):
    """Inputs required to provision an agent in the agency.

    Every field is optional at construction time so that incomplete identities
    can be loaded from files or CLI flags; :meth:`validate_complete` is the gate
    that runs before any network interaction.
    """

    model_config = ConfigDict(frozen=True)

    agent_name: str | None = None
    protocol_type: str | None = None
    agency_url: str | None = None
    seed: str | None = None
    webhook_url: str | None = None
    use_postgres_wallet: bool = False

    @field_validator("protocol_type", mode="before")
    @classmethod
    def _stringify_version(cls, v: Any) -> Any:
        # YAML reads an unquoted 4.0 as a float
        return str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v

    def validate_complete(self) -> ProtocolType:
        """Check required fields in declaration order.

        Returns:
            ProtocolType: the parsed protocol version.

        Raises:
            ValidationError: naming the first missing or disallowed field.
        """
        for field in ("agent_name", "protocol_type", "agency_url", "seed", "webhook_url"):
            if not (getattr(self, field) or "").strip():
                raise ValidationError(field)
        if self.protocol_type not in ProtocolType.allowed():
            raise ValidationError(
                "protocol_type",
                f"{self.protocol_type!r} is not allowed. "
                f"Only {json.dumps(ProtocolType.allowed())} are allowed.",
            )
        return ProtocolType(self.protocol_type)


class ProvisionConfig(BaseModel):
    """Every field the native ``provision`` call recognizes.

    Serialized with :meth:`to_native_json` only at the native boundary.
    """

    agency_url: str
    agency_did: str
    agency_verkey: str
    wallet_name: str
    wallet_key: str
    payment_method: str = "null"
    enterprise_seed: str
    protocol_type: ProtocolType
    # alternate wallet backend; unset means the built-in one
    wallet_type: WalletType | None = None
    storage_config: str | None = None
    storage_credentials: str | None = None
    # push notifications; unset when the webhook is unreachable
    webhook_url: str | None = None

    def to_native_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    def redacted(self) -> dict[str, Any]:
        """Snapshot safe for logging."""
        data = self.model_dump(mode="json", exclude_none=True)
        for secret in ("wallet_key", "enterprise_seed", "storage_credentials"):
            if secret in data:
                data[secret] = "**********"
        return data


def load_identity(source: str | Path | IO[str]) -> AgentIdentity:
    """Read an :class:`AgentIdentity` from a YAML mapping."""
    if isinstance(source, (str, Path)):
        text = Path(source).read_text()
    else:
        text = source.read()
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValidationError("identity", "must be a YAML mapping")
    return AgentIdentity(**data)
