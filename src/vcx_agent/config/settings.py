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

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized environment configuration for vcx-agent.

    Env var naming: VCX_AGENT_<FIELD_NAME>.
    A .env file in CWD or ~/.vcx_agent/.env is read automatically.
    """

    model_config = SettingsConfigDict(
        env_prefix="VCX_AGENT_",
        env_file=(".env", "~/.vcx_agent/.env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # --- General -------------------------------------------------------------
    log_level: str = "INFO"
    home: Path = Field(
        default=Path("~/.vcx_agent").expanduser(),
        description="Directory holding stored agent provisions",
    )
    genesis_path: Path = Field(
        default_factory=lambda data: data["home"] / "docker.txn",
        description="Genesis transactions file attached to every provisioned agent",
    )

    # --- Native library ------------------------------------------------------
    native_factory: str | None = Field(
        default=None,
        description="'module:callable' returning a NativeLibrary implementation",
    )  # VCX_AGENT_NATIVE_FACTORY
    native_log_level: str = Field(
        default="error",
        description="Log level forwarded to the native library's own logger",
    )

    # --- Agency / endpoints --------------------------------------------------
    agency_url: str = "http://localhost:8080"
    agency_did: str = "VsKV7grR1BUE29mG2Fm2kX"
    agency_verkey: str = "Hezce2UWMZ3wUhVkh2LfKSs8nDzWwzs2Win7EzNN3YaR"
    webhook_base_url: str = Field(
        default="http://localhost:7209/notifications",
        description="Agent name is appended to build the per-agent webhook URL",
    )
    wallet_key: SecretStr = SecretStr("123")

    # --- PostgreSQL wallet plugin --------------------------------------------
    postgres_url: str = "localhost:5432"
    postgres_account: str = "postgres"
    postgres_password: SecretStr = SecretStr("mysecretpassword")
    postgres_admin_account: str = "postgres"
    postgres_admin_password: SecretStr = SecretStr("mysecretpassword")

    # --- Polling budgets -----------------------------------------------------
    readiness_interval_ms: int = Field(default=1000, ge=0)
    connection_poll_attempts: int = Field(default=30, ge=1)
    connection_poll_interval_ms: int = Field(default=3000, ge=0)
    proof_poll_attempts: int = Field(default=30, ge=1)
    proof_poll_interval_ms: int = Field(default=2000, ge=0)
    credential_poll_attempts: int = Field(default=30, ge=1)
    credential_poll_interval_ms: int = Field(default=2000, ge=0)

    def webhook_url_for(self, agent_name: str) -> str:
        return f"{self.webhook_base_url.rstrip('/')}/{agent_name}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached accessor. Call this wherever you need settings.
    Tests can `cache_clear()` before reading to pick up monkeypatched env.
    """
    return Settings()


def reload_settings_cache() -> None:
    get_settings.cache_clear()  # type: ignore[attr-defined]
