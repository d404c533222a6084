"""Runtime configuration.

Settings come from the environment, optionally seeded from a .env file in
the working directory. Only the transport and the outer surfaces (CLI,
server) read them; the decoder itself takes no configuration.

Environment variables:
    CHAINSTATUS_RPC_URL         Node RPC endpoint (default http://127.0.0.1:8332/)
    CHAINSTATUS_RPC_USER        RPC username, unset for cookie-less setups
    CHAINSTATUS_RPC_PASSWORD    RPC password
    CHAINSTATUS_RPC_TIMEOUT     Request timeout in seconds (default 15)
    CHAINSTATUS_STRICT_PRUNING  "false" to accept pruned flag/field disagreement
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_RPC_URL = "http://127.0.0.1:8332/"
DEFAULT_RPC_TIMEOUT = 15.0

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process.

    Attributes:
        rpc_url: JSON-RPC endpoint of the node.
        rpc_user: Basic-auth username, or None to send no credentials.
        rpc_password: Basic-auth password.
        rpc_timeout: Per-request timeout in seconds.
        strict_pruning: Passed through to decode(strict_pruning=...).
    """

    rpc_url: str = DEFAULT_RPC_URL
    rpc_user: str | None = None
    rpc_password: str | None = None
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    strict_pruning: bool = True


def load_settings() -> Settings:
    """Load .env (if any) and build Settings from the environment.

    Raises:
        ValueError: CHAINSTATUS_RPC_TIMEOUT is not a number.
    """
    load_dotenv()
    timeout = os.environ.get("CHAINSTATUS_RPC_TIMEOUT")
    strict = os.environ.get("CHAINSTATUS_STRICT_PRUNING", "true")
    return Settings(
        rpc_url=os.environ.get("CHAINSTATUS_RPC_URL", DEFAULT_RPC_URL),
        rpc_user=os.environ.get("CHAINSTATUS_RPC_USER") or None,
        rpc_password=os.environ.get("CHAINSTATUS_RPC_PASSWORD") or None,
        rpc_timeout=float(timeout) if timeout else DEFAULT_RPC_TIMEOUT,
        strict_pruning=strict.strip().lower() not in _FALSE_VALUES,
    )
