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
import logging
from pathlib import Path
from typing import Any, Optional
import uuid

from rich.console import Console
from rich.table import Table
import typer
from typing_extensions import Annotated

from ..config import get_settings
from ..config.provision import AgentIdentity, ProtocolType, load_identity
from ..core.context import NativeContext
from ..core.provisioning import provision_or_load
from ..core.storage import FileCredentialStorage
from ..exceptions import ReadinessCancelled, ValidationError, VcxAgentError
from ..helpers.logger import set_level, setup_logger
from ..platform.readiness import ReadinessTarget, await_ready
from ..utils.imports import load_native_library
from ..utils.version import get_version
from ..workflows.verifier import (
    EXIT_FAILURE,
    EXIT_INVALID_INPUT,
    VerifierOptions,
    run_verifier_to_exit_code,
)

app = typer.Typer(name="vcx-agent CLI", no_args_is_help=True)

console = Console()
logger = setup_logger("vcx_agent.cli", level=logging.INFO, console=console)

DEFAULT_SEED = "000000000000000000000000Trustee1"

IdentityOpt = Annotated[
    Optional[Path],
    typer.Option(
        "--identity",
        "-i",
        exists=True,
        dir_okay=False,
        help="YAML file with agent_name, protocol_type, agency_url, seed, webhook_url",
    ),
]
NameOpt = Annotated[Optional[str], typer.Option("--name", "-n", help="Agent name")]
ProtocolOpt = Annotated[
    Optional[str],
    typer.Option(
        "--protocol-type",
        help=f"Protocol type. Possible values: {', '.join(ProtocolType.allowed())}. Default is 4.0",
    ),
]
SeedOpt = Annotated[Optional[str], typer.Option("--seed", help="Enterprise seed")]
AgencyOpt = Annotated[Optional[str], typer.Option("--agency-url", help="Agency base URL")]
WebhookOpt = Annotated[
    Optional[str],
    typer.Option("--webhook-url", help="Webhook for push notifications (defaults per agent)"),
]
PostgresOpt = Annotated[
    Optional[bool],
    typer.Option("--postgres/--no-postgres", help="Use the PostgreSQL wallet plugin"),
]
NativeOpt = Annotated[
    Optional[str],
    typer.Option("--native", help="'module:factory' returning the native library binding"),
]


@app.callback()
def main_callback():
    set_level(get_settings().log_level)


def _build_identity(
    identity_file: Path | None,
    name: str | None,
    protocol_type: str | None,
    seed: str | None,
    agency_url: str | None,
    webhook_url: str | None,
    postgres: bool | None,
) -> AgentIdentity:
    """Merge an optional identity file with CLI flags; flags win."""
    settings = get_settings()
    base: dict[str, Any] = load_identity(identity_file).model_dump() if identity_file else {}
    overrides = {
        "agent_name": name,
        "protocol_type": protocol_type,
        "seed": seed,
        "agency_url": agency_url,
        "webhook_url": webhook_url,
        "use_postgres_wallet": postgres,
    }
    base.update({k: v for k, v in overrides.items() if v is not None})
    base.setdefault("agent_name", None)
    if not base["agent_name"]:
        base["agent_name"] = f"agent-{uuid.uuid4()}"
    if not base.get("protocol_type"):
        base["protocol_type"] = ProtocolType.V4.value
    if not base.get("seed"):
        base["seed"] = DEFAULT_SEED
    if not base.get("agency_url"):
        base["agency_url"] = settings.agency_url
    if not base.get("webhook_url"):
        base["webhook_url"] = settings.webhook_url_for(base["agent_name"])
    return AgentIdentity(**base)


def _validated_identity(*args) -> AgentIdentity:
    identity = _build_identity(*args)
    try:
        identity.validate_complete()
    except ValidationError as e:
        console.print(f"[red1]Invalid input: {e}")
        raise typer.Exit(code=EXIT_INVALID_INPUT)
    return identity


def _render_credentials(credentials: dict[str, Any], storage: FileCredentialStorage) -> None:
    table = Table(title=f"Agent {credentials.get('institution_name', '?')}")
    table.add_column("field")
    table.add_column("value")
    for key in ("institution_name", "institution_did", "institution_verkey", "genesis_path"):
        if key in credentials:
            table.add_row(key, str(credentials[key]))
    table.add_row("stored at", str(storage.path))
    console.print(table)


@app.command("version", short_help="Show the version of the vcx-agent CLI")
def version(short: bool = False):
    v = get_version()
    print(v if short else f"vcx-agent CLI Version: {v}")
    raise typer.Exit()


@app.command("wait-agency", short_help="Block until the agency answers its health check")
def wait_agency(agency_url: AgencyOpt = None):
    target = ReadinessTarget.for_agency(agency_url or get_settings().agency_url)
    try:
        asyncio.run(await_ready(target, interval_ms=get_settings().readiness_interval_ms))
    except KeyboardInterrupt:
        typer.echo("Stopped waiting for the agency")
        raise typer.Abort()
    except ReadinessCancelled as e:
        logger.error(str(e))
        raise typer.Exit(code=EXIT_FAILURE)
    typer.echo(f"✅ Agency is ready: {target.health_url}")


@app.command("provision", short_help="Provision an agent in the agency and store its credentials")
def provision(
    identity_file: IdentityOpt = None,
    name: NameOpt = None,
    protocol_type: ProtocolOpt = None,
    seed: SeedOpt = None,
    agency_url: AgencyOpt = None,
    webhook_url: WebhookOpt = None,
    postgres: PostgresOpt = None,
    native: NativeOpt = None,
):
    """
    Provision an agent unless credentials for it are already stored.

    The agency must answer before provisioning starts; this command waits for
    it without a time limit.
    """
    identity = _validated_identity(
        identity_file, name, protocol_type, seed, agency_url, webhook_url, postgres
    )
    settings = get_settings()
    storage = FileCredentialStorage(identity.agent_name, settings.home)

    async def _run() -> dict[str, Any]:
        library = load_native_library(native or settings.native_factory)
        async with NativeContext(library, log_level=settings.native_log_level) as ctx:
            return await provision_or_load(identity, ctx.native, storage, settings=settings)

    try:
        credentials = asyncio.run(_run())
    except KeyboardInterrupt:
        raise typer.Abort()
    except (VcxAgentError, ImportError, RuntimeError, ValueError) as e:
        logger.error(f"Provisioning failed: {e}")
        raise typer.Exit(code=EXIT_FAILURE)
    _render_credentials(credentials, storage)


@app.command("verify", short_help="Connect to a holder and verify the proof it presents")
def verify(
    identity_file: IdentityOpt = None,
    name: NameOpt = None,
    protocol_type: ProtocolOpt = None,
    seed: SeedOpt = None,
    agency_url: AgencyOpt = None,
    webhook_url: WebhookOpt = None,
    postgres: PostgresOpt = None,
    native: NativeOpt = None,
    revocation: Annotated[
        bool,
        typer.Option(
            "--revocation/--no-revocation",
            help="Revoke the issued credential before requesting the proof (proof must be invalid)",
        ),
    ] = False,
    expose_invitation_port: Annotated[
        Optional[int],
        typer.Option(
            "--expose-invitation-port",
            help="If specified, the invitation will be exposed on this port via HTTP",
        ),
    ] = None,
):
    identity = _validated_identity(
        identity_file, name, protocol_type, seed, agency_url, webhook_url, postgres
    )
    settings = get_settings()
    try:
        library = load_native_library(native or settings.native_factory)
    except (ImportError, RuntimeError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(code=EXIT_FAILURE)

    options = VerifierOptions.from_settings(
        identity,
        settings,
        revocation=revocation,
        expose_invitation_port=expose_invitation_port,
        provision_kwargs={"settings": settings},
    )

    async def _run() -> int:
        ctx = NativeContext(library, log_level=settings.native_log_level)
        try:
            await ctx.initialize()
        except VcxAgentError as e:
            logger.error(f"Native library initialization failed: {e}")
            await ctx.close()
            return EXIT_FAILURE
        return await run_verifier_to_exit_code(
            ctx, options, FileCredentialStorage(identity.agent_name, settings.home)
        )

    try:
        code = asyncio.run(_run())
    except KeyboardInterrupt:
        raise typer.Abort()
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
