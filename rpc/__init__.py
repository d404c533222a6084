"""Node transport."""

from rpc.client import RpcClient

__all__ = ["RpcClient"]
