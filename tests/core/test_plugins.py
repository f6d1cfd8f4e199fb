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


import json

import pytest

from vcx_agent.config.provision import ProtocolType, ProvisionConfig, WalletType
from vcx_agent.config.settings import Settings
from vcx_agent.core.plugins import (
    PostgresWalletPlugin,
    get_library_path,
    init_null_payment,
    init_shared_library,
)
from vcx_agent.exceptions import CollaboratorError


class _FakeLib:
    def __init__(self):
        self.called = []

    def __getitem__(self, name):
        if name not in ("nullpay_init", "postgresstorage_init"):
            raise AttributeError(name)
        return lambda: self.called.append(name)


class _Loader:
    def __init__(self):
        self.paths = []
        self.lib = _FakeLib()

    def __call__(self, path):
        self.paths.append(path)
        return self.lib


@pytest.mark.parametrize(
    "platform,expected",
    [
        ("linux", "/usr/lib/libnullpay.so"),
        ("linux2", "/usr/lib/libnullpay.so"),
        ("darwin", "/usr/local/lib/libnullpay.dylib"),
        ("win32", "c:\\windows\\system32\\libnullpay.dll"),
        ("sunos5", "/usr/lib/libnullpay.so"),
    ],
)
def test_get_library_path(platform, expected):
    assert get_library_path("libnullpay", platform) == expected


def test_init_shared_library_calls_entrypoint():
    loader = _Loader()
    init_shared_library("libnullpay", "nullpay_init", loader=loader)
    assert loader.lib.called == ["nullpay_init"]
    assert loader.paths == [get_library_path("libnullpay")]


def test_missing_library_is_collaborator_error():
    def _loader(path):
        raise OSError(f"{path}: cannot open shared object file")

    with pytest.raises(CollaboratorError) as excinfo:
        init_shared_library("libnullpay", "nullpay_init", loader=_loader)
    assert excinfo.value.operation == "libnullpay.nullpay_init"


def test_missing_entrypoint_is_collaborator_error():
    with pytest.raises(CollaboratorError, match="nope"):
        init_shared_library("libnullpay", "nope", loader=_Loader())


@pytest.mark.asyncio
async def test_init_null_payment():
    loader = _Loader()
    await init_null_payment(loader=loader)
    assert loader.lib.called == ["nullpay_init"]


@pytest.mark.asyncio
async def test_postgres_plugin_initialize_and_augment(tmp_path):
    settings = Settings(home=tmp_path, postgres_url="db:5432", postgres_account="vcx")
    loader = _Loader()
    plugin = PostgresWalletPlugin(settings, loader=loader)
    config = ProvisionConfig(
        agency_url="http://localhost:8080",
        agency_did="did",
        agency_verkey="verkey",
        wallet_name="faber",
        wallet_key="123",
        enterprise_seed="seed",
        protocol_type=ProtocolType.V4,
    )

    await plugin.initialize()
    augmented = plugin.augment(config)

    assert loader.lib.called == ["postgresstorage_init"]
    assert config.wallet_type is None
    assert augmented.wallet_type is WalletType.POSTGRES
    assert json.loads(augmented.storage_config) == {"url": "db:5432"}
    creds = json.loads(augmented.storage_credentials)
    assert creds["account"] == "vcx"
    assert creds["password"] == "mysecretpassword"
    assert augmented.redacted()["storage_credentials"] == "**********"
