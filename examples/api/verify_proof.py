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


"""Drive a verifier run from Python instead of the CLI.

Point ``VCX_AGENT_NATIVE_FACTORY`` at your binding, e.g.
``VCX_AGENT_NATIVE_FACTORY=my_binding:create_library``.
"""

import asyncio
import sys

from vcx_agent.config import get_settings
from vcx_agent.config.provision import load_identity
from vcx_agent.core.context import NativeContext
from vcx_agent.core.storage import FileCredentialStorage
from vcx_agent.utils.imports import load_native_library
from vcx_agent.workflows.verifier import VerifierOptions, run_verifier_to_exit_code


async def main() -> int:
    settings = get_settings()
    identity = load_identity("examples/identities/faber.yaml")
    library = load_native_library(settings.native_factory)

    ctx = await NativeContext(library, log_level=settings.native_log_level).initialize()
    # serve the invitation so the holder can fetch it over HTTP
    options = VerifierOptions.from_settings(identity, settings, expose_invitation_port=8181)
    return await run_verifier_to_exit_code(
        ctx, options, FileCredentialStorage(identity.agent_name, settings.home)
    )


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
