"""Node JSON-RPC client.

The transport half of the system: it sends a getblockchaininfo request and
hands the raw response body to decoding.decoder.decode(). It does no
retries; callers decide what to do with an httpx.HTTPError.

Bitcoin Core answers RPC-level failures (unknown method, warming up) with
HTTP 500 and a JSON body whose `error` is set, so 500 responses are passed
through to the decoder, which reports them as MalformedEnvelopeError. Any
other non-2xx status (401 bad credentials, 403, 404) raises.
"""

import itertools
import logging

import httpx

from config import Settings
from decoding.decoder import decode
from schemas.chain_status import ChainStatusDocument

logger = logging.getLogger(__name__)

GETBLOCKCHAININFO = "getblockchaininfo"

_request_ids = itertools.count(1)


class RpcClient:
    """Minimal async JSON-RPC 1.0 client for a single node.

    Args:
        settings: Endpoint, credentials and timeout.
        transport: Optional httpx transport. Tests pass an
            httpx.MockTransport here; production leaves it None.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def call(self, method: str, params: list | None = None) -> bytes:
        """Send one JSON-RPC request and return the raw response body.

        Raises:
            httpx.HTTPStatusError: Non-2xx status other than 500.
            httpx.HTTPError: Connection or timeout failure.
        """
        payload = {
            "jsonrpc": "1.0",
            "id": f"chainstatus-{next(_request_ids)}",
            "method": method,
            "params": params or [],
        }
        auth = None
        if self._settings.rpc_user is not None:
            auth = httpx.BasicAuth(self._settings.rpc_user, self._settings.rpc_password or "")

        async with httpx.AsyncClient(
            auth=auth,
            timeout=self._settings.rpc_timeout,
            transport=self._transport,
        ) as client:
            logger.info("Calling %s on %s.", method, self._settings.rpc_url)
            resp = await client.post(self._settings.rpc_url, json=payload)

        if resp.status_code != httpx.codes.INTERNAL_SERVER_ERROR:
            resp.raise_for_status()
        logger.debug("%s returned %d bytes (HTTP %d).", method, len(resp.content), resp.status_code)
        return resp.content

    async def fetch_blockchain_info(self) -> bytes:
        """Return the raw getblockchaininfo response body."""
        return await self.call(GETBLOCKCHAININFO)

    async def get_blockchain_info(self) -> ChainStatusDocument:
        """Fetch and decode the node's chain status.

        Raises:
            DecodeError: The response could not be decoded.
            httpx.HTTPError: Transport failure.
        """
        raw = await self.fetch_blockchain_info()
        return decode(raw, strict_pruning=self._settings.strict_pruning)
