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

import pytest

from tests.fakes import FakeNative, RecordingSleep
from vcx_agent.config.provision import AgentIdentity


@pytest.fixture
def fake_native():
    return FakeNative()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def identity():
    return AgentIdentity(
        agent_name="faber",
        protocol_type="4.0",
        agency_url="http://localhost:8080",
        seed="000000000000000000000000Trustee1",
        webhook_url="http://localhost:7209/notifications/faber",
    )


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    monkeypatch.setenv("VCX_AGENT_HOME", str(tmp_path / "home"))
    return tmp_path / "home"


@pytest.fixture(autouse=True)
def clear_settings_cache_between_tests():
    from vcx_agent.config.settings import reload_settings_cache

    reload_settings_cache()
    yield
    reload_settings_cache()
