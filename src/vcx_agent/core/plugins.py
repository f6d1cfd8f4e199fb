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

"""Shared-library plugins loaded next to the native library.

Both plugins expose a single no-argument init entry point that registers
them with the native wallet / payment layer.
"""

import asyncio
import ctypes
import json
import sys
from typing import Callable

from vcx_agent.config import Settings, get_settings
from vcx_agent.config.provision import ProvisionConfig, WalletType
from vcx_agent.exceptions import CollaboratorError
from vcx_agent.helpers.logger import setup_logger

logger = setup_logger(__name__)

_EXTENSIONS = {"darwin": ".dylib", "linux": ".so", "win32": ".dll"}
_LIB_DIRS = {"darwin": "/usr/local/lib/", "linux": "/usr/lib/", "win32": "c:\\windows\\system32\\"}


def get_library_path(library_name: str, platform: str | None = None) -> str:
    platform = (platform or sys.platform).lower()
    if platform.startswith("linux"):
        platform = "linux"
    postfix = _EXTENSIONS.get(platform, _EXTENSIONS["linux"])
    lib_dir = _LIB_DIRS.get(platform, _LIB_DIRS["linux"])
    return f"{lib_dir}{library_name}{postfix}"


def init_shared_library(
    library_name: str,
    entrypoint: str,
    *,
    loader: Callable[[str], ctypes.CDLL] = ctypes.CDLL,
) -> None:
    path = get_library_path(library_name)
    try:
        lib = loader(path)
        lib[entrypoint]()
    except (OSError, AttributeError) as e:
        raise CollaboratorError(f"{library_name}.{entrypoint}", e) from e
    logger.debug(f"Initialized {entrypoint} from {path}")


async def init_null_payment(*, loader: Callable[[str], ctypes.CDLL] = ctypes.CDLL) -> None:
    await asyncio.to_thread(init_shared_library, "libnullpay", "nullpay_init", loader=loader)


class PostgresWalletPlugin:
    """Alternate wallet storage backed by PostgreSQL."""

    library_name = "libindystrgpostgres"
    entrypoint = "postgresstorage_init"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        loader: Callable[[str], ctypes.CDLL] = ctypes.CDLL,
    ):
        self.settings = settings or get_settings()
        self.loader = loader

    async def initialize(self) -> None:
        logger.info("Will use PostgreSQL wallet. Initializing plugin.")
        await asyncio.to_thread(
            init_shared_library, self.library_name, self.entrypoint, loader=self.loader
        )

    def storage_config(self) -> str:
        return json.dumps({"url": self.settings.postgres_url})

    def storage_credentials(self) -> str:
        s = self.settings
        return json.dumps(
            {
                "account": s.postgres_account,
                "password": s.postgres_password.get_secret_value(),
                "admin_account": s.postgres_admin_account,
                "admin_password": s.postgres_admin_password.get_secret_value(),
            }
        )

    def augment(self, config: ProvisionConfig) -> ProvisionConfig:
        augmented = config.model_copy(
            update={
                "wallet_type": WalletType.POSTGRES,
                "storage_config": self.storage_config(),
                "storage_credentials": self.storage_credentials(),
            }
        )
        logger.info(f"Running with PostgreSQL wallet enabled! Config = {augmented.storage_config}")
        return augmented
