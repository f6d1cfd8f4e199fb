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
import json
from typing import Any

from vcx_agent.config import Settings, get_settings
from vcx_agent.config.provision import AgentIdentity, ProvisionConfig
from vcx_agent.core.plugins import PostgresWalletPlugin
from vcx_agent.exceptions import CollaboratorError
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.http_probe import is_port_reachable
from vcx_agent.platform.protocols import CredentialStorage, NativeLibrary
from vcx_agent.platform.readiness import ReadinessTarget, await_ready

logger = setup_logger(__name__)

INSTITUTION_LOGO_URL = "https://example.org"


async def webhook_reachable(url: str) -> bool:
    return await asyncio.to_thread(is_port_reachable, url)


async def provision_agent(
    identity: AgentIdentity,
    native: NativeLibrary,
    *,
    settings: Settings | None = None,
    readiness: Callable[..., Awaitable[None]] = await_ready,
    webhook_check: Callable[[str], Awaitable[bool]] = webhook_reachable,
    wallet_plugin: PostgresWalletPlugin | None = None,
) -> dict[str, Any]:
    """
    Provision a new agent in the agency and return its credentials.

    Steps, in order:
    1. Validate the identity (no I/O happens before this passes).
    2. Wait, without a retry budget, for the agency to answer.
    3. Initialize the PostgreSQL wallet plugin if requested; the wallet
       backend chosen here is fixed for the lifetime of the credentials.
    4. Probe the webhook once; include it only if it is reachable.
    5. Issue the native ``provision`` call.

    Returns:
        The native response, unchanged, plus ``institution_name``,
        ``institution_logo_url`` and ``genesis_path``.

    Raises:
        ValidationError: a required identity field is missing or invalid.
        CollaboratorError: the native library or a plugin failed.
    """
    protocol_type = identity.validate_complete()
    settings = settings or get_settings()

    await readiness(
        ReadinessTarget.for_agency(identity.agency_url),
        interval_ms=settings.readiness_interval_ms,
    )

    config = ProvisionConfig(
        agency_url=identity.agency_url,
        agency_did=settings.agency_did,
        agency_verkey=settings.agency_verkey,
        wallet_name=identity.agent_name,
        wallet_key=settings.wallet_key.get_secret_value(),
        enterprise_seed=identity.seed,
        protocol_type=protocol_type,
    )

    if identity.use_postgres_wallet:
        plugin = wallet_plugin or PostgresWalletPlugin(settings)
        await plugin.initialize()
        config = plugin.augment(config)
    else:
        logger.info("Running with builtin wallet.")

    if await webhook_check(identity.webhook_url):
        config = config.model_copy(update={"webhook_url": identity.webhook_url})
        logger.info(
            f"Running with webhook notifications enabled! Webhook url = {identity.webhook_url}"
        )
    else:
        logger.info("Webhook url will not be used, push notifications are disabled.")

    logger.info(
        f"Using following config to create agent provision: {json.dumps(config.redacted(), indent=2)}"
    )
    try:
        response = await native.provision(config.to_native_json())
        credentials = json.loads(response)
    except Exception as e:
        raise CollaboratorError("provision", e) from e

    credentials["institution_name"] = identity.agent_name
    credentials["institution_logo_url"] = INSTITUTION_LOGO_URL
    credentials["genesis_path"] = str(settings.genesis_path)
    logger.info(f"Agent provision created for {identity.agent_name}.")
    logger.debug(f"Agent provision: {json.dumps(credentials, indent=2)}")
    return credentials


def _storage_call(operation: str, fn: Callable, *args):
    try:
        return fn(*args)
    except Exception as e:
        raise CollaboratorError(operation, e) from e


async def provision_or_load(
    identity: AgentIdentity,
    native: NativeLibrary,
    storage: CredentialStorage,
    **provision_kwargs,
) -> dict[str, Any]:
    """Provision only when ``storage`` holds nothing yet, then return what it holds."""
    identity.validate_complete()
    if not _storage_call("storage.exists", storage.exists):
        credentials = await provision_agent(identity, native, **provision_kwargs)
        _storage_call("storage.save", storage.save, credentials)
    else:
        logger.info(f"Reusing stored agent provision for {identity.agent_name}.")
    return _storage_call("storage.load", storage.load)
