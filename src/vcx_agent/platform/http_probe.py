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

import socket
from typing import Callable
from urllib.parse import urlsplit

import requests

from vcx_agent.exceptions import DependencyUnavailable

_DEFAULT_PORTS = {"http": 80, "https": 443}


def probe_http(
    url: str,
    *,
    timeout_s: float = 5.0,
    http_get: Callable = requests.get,
) -> None:
    """Raise DependencyUnavailable unless GET ``url`` answers with a 2xx status."""
    try:
        r = http_get(url, timeout=timeout_s)
        r.raise_for_status()
    except requests.RequestException as e:
        raise DependencyUnavailable(f"GET {url} failed: {e!r}") from e


def probe_tcp(
    host: str,
    port: int,
    *,
    timeout_s: float = 1.0,
    connect: Callable = socket.create_connection,
) -> None:
    """Raise DependencyUnavailable unless a TCP connection to host:port opens."""
    try:
        with connect((host, port), timeout=timeout_s):
            pass
    except OSError as e:
        raise DependencyUnavailable(f"{host}:{port} is not reachable: {e!r}") from e


def split_host_port(url: str) -> tuple[str, int]:
    parts = urlsplit(url)
    if not parts.hostname:
        raise ValueError(f"URL has no host: {url!r}")
    port = parts.port or _DEFAULT_PORTS.get(parts.scheme)
    if port is None:
        raise ValueError(f"URL has no port and an unknown scheme: {url!r}")
    return parts.hostname, port


def is_port_reachable(
    url: str,
    *,
    timeout_s: float = 1.0,
    connect: Callable = socket.create_connection,
) -> bool:
    """Single best-effort TCP probe of the host and port named in ``url``."""
    try:
        host, port = split_host_port(url)
        probe_tcp(host, port, timeout_s=timeout_s, connect=connect)
    except (ValueError, DependencyUnavailable):
        return False
    return True
