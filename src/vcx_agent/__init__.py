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

from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING

try:
    __version__ = version("vcx_agent")
except PackageNotFoundError:  # during dev
    __version__ = "0.0.0"

__all__ = [
    "AgentIdentity",
    "NativeContext",
    "PollConfig",
    "poll",
    "poll_to_terminal_state",
    "provision_agent",
]


def __getattr__(name: str):
    if name == "AgentIdentity":
        from .config.provision import AgentIdentity

        return AgentIdentity
    if name == "NativeContext":
        from .core.context import NativeContext

        return NativeContext
    if name in ("PollConfig", "poll"):
        from .platform import polling

        return getattr(polling, name)
    if name == "poll_to_terminal_state":
        from .core.state_poller import poll_to_terminal_state

        return poll_to_terminal_state
    if name == "provision_agent":
        from .core.provisioning import provision_agent

        return provision_agent
    raise AttributeError(name)


if TYPE_CHECKING:
    from .config.provision import AgentIdentity
    from .core.context import NativeContext
    from .core.provisioning import provision_agent
    from .core.state_poller import poll_to_terminal_state
    from .platform.polling import PollConfig, poll
