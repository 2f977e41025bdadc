"""Configuration for riakrest clients."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SERVER_URI = "http://127.0.0.1:8002/jiak"


@dataclass
class RiakRestConfig:
    """Configuration for a storage gateway.

    The quorum values are client-wide defaults. A bucket's own parameters and
    per-call options take precedence; anything left as ``None`` falls through
    to the cluster setting.
    """

    server_uri: str = DEFAULT_SERVER_URI
    request_timeout_s: float = 30.0
    proxy: str | None = None
    user_agent: str = "riakrest-python"
    reads: int | None = None
    writes: int | None = None
    durable_writes: int | None = None
    waits: int | None = None

    @classmethod
    def from_env(cls) -> RiakRestConfig:
        """Build a config from ``RIAKREST_*`` environment variables."""
        config = cls()
        server = os.getenv("RIAKREST_SERVER")
        if server:
            config.server_uri = server
        timeout = os.getenv("RIAKREST_TIMEOUT")
        if timeout:
            config.request_timeout_s = float(timeout)
        proxy = os.getenv("RIAKREST_PROXY")
        if proxy:
            config.proxy = proxy
        return config
