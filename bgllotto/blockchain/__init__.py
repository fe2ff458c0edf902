from .rpc import BglRpcClient, RpcError, block_explorer_url

__all__ = ["BglRpcClient", "RpcError", "block_explorer_url"]
