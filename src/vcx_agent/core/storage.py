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
import os
from pathlib import Path
import tempfile
from typing import Any

from vcx_agent.config import get_settings

PROVISION_FILENAME = "agent-provision.json"


class FileCredentialStorage:
    """Stores one agent's provision as JSON under ``<home>/<agent_name>/``."""

    def __init__(self, agent_name: str, home: Path | None = None):
        self.agent_name = agent_name
        self.root = Path(home or get_settings().home) / agent_name

    @property
    def path(self) -> Path:
        return self.root / PROVISION_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, credentials: dict[str, Any]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        # write-then-rename; readers never observe a partial file
        fd, tmp = tempfile.mkstemp(dir=self.root, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(credentials, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self) -> dict[str, Any]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data
