import os
import logging
from typing import Any, Optional, Sequence

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 8.0
EXPLORER_BASE_URL = "https://bgl.bitaps.com"


class RpcError(RuntimeError):
    """Error object returned by the node in a JSON-RPC response."""

    def __init__(self, method: str, code: Optional[int], message: str):
        super().__init__(f"BGL RPC error {code} in '{method}': {message}")
        self.method = method
        self.code = code
        self.message = message


def block_explorer_url(height: int) -> str:
    """Return the public explorer link for block ``height``."""
    return f"{EXPLORER_BASE_URL}/{height}"


class BglRpcClient:
    """JSON-RPC client for a Bitgesell node.

    Connection settings fall back to ``BGL_RPC_URL``, ``BGL_RPC_USER``,
    ``BGL_RPC_PASS`` and ``BGL_RPC_TIMEOUT`` from the environment (``.env`` is
    loaded on construction).
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        rpc_url = url or os.getenv("BGL_RPC_URL")
        if not rpc_url:
            raise ValueError("Environment variable 'BGL_RPC_URL' is not set")

        self.url = rpc_url
        user = user if user is not None else os.getenv("BGL_RPC_USER", "")
        password = password if password is not None else os.getenv("BGL_RPC_PASS", "")
        self.auth = (user, password) if user or password else None
        if timeout is None:
            timeout = float(os.getenv("BGL_RPC_TIMEOUT", DEFAULT_TIMEOUT))
        self.timeout = timeout
        self.session = session or requests.Session()
        self._next_id = 1

    # -------- core request --------
    def _call(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": list(params or []),
        }
        self._next_id += 1

        logger.debug(f"RPC request {method} params={payload['params']}")
        r = self.session.post(
            self.url,
            json=payload,
            auth=self.auth,
            timeout=self.timeout,
        )
        r.raise_for_status()
        body = r.json()
        error = body.get("error") if isinstance(body, dict) else None
        logger.debug(f"RPC response {method} ok={not error}")
        if error:
            raise RpcError(method, error.get("code"), error.get("message", ""))
        return body.get("result")

    # -------- API callers --------
    def get_block_count(self) -> int:
        """Return the height of the node's best chain."""
        return int(self._call("getblockcount"))

    def get_block_hash(self, height: int) -> str:
        """Return the hash of the block at ``height``."""
        return str(self._call("getblockhash", [height]))
