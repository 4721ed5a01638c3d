"""
HTTP transport for the ledger RPC.

Talks JSON to a ledger node:

* ``GET  /sync``                      -> ``{"block_num": .., "committed_transactions": [..], "discarded_transactions": [..]}``
* ``POST /transactions``              -> ``{"transaction_id": "0x.."}``
* ``GET  /transactions/<id>``         -> ``{"status": "pending"|"committed"|"discarded", "block_num": .., "cause": ..}``
"""
import os
import logging
import urllib.parse
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from pydantic import ValidationError

from ..account import AccountId
from ..exceptions import LedgerRejectedError, RpcTransportError
from ..transaction import SyncSummary, TransactionId, TransactionRequest, TransactionStatus
from .transport import LedgerRpc

logger = logging.getLogger(__name__)


class HttpLedgerRpc(LedgerRpc):
    """Ledger RPC over JSON/HTTP."""

    def __init__(
        self,
        rpc_url: str,
        timeout: Optional[float] = None,
        retry_count: int = 3,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the HTTP ledger client

        Args:
            rpc_url: Ledger node URL (e.g., "https://rpc.testnet.example.org")
            timeout: Timeout for HTTP requests in seconds (defaults to
                NOTELAYER_RPC_TIMEOUT or 10)
            retry_count: Number of retries for idempotent (GET) requests
            session: Optional pre-configured requests session
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the URL doesn't use https (unless it's localhost/127.0.0.1
                or NOTELAYER_INSECURE_RPC=1)
        """
        self._validate_rpc_url(rpc_url)
        self.rpc_url = rpc_url.rstrip('/')
        self.timeout = timeout or float(os.environ.get("NOTELAYER_RPC_TIMEOUT", "10"))
        self.logger = logger or logging.getLogger(__name__)

        if session is None:
            session = requests.Session()
            # submissions are never retried here, only reads
            retries = Retry(
                total=retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET"],
                raise_on_status=False,
                connect=retry_count,
                read=retry_count,
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    @staticmethod
    def _validate_rpc_url(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        host = parsed.hostname or ""
        is_local = host in ("localhost", "127.0.0.1", "::1")
        if parsed.scheme not in ("http", "https") or not host:
            raise ValueError(f"Invalid ledger RPC URL '{url}'")
        if parsed.scheme != "https" and not is_local:
            if os.environ.get("NOTELAYER_INSECURE_RPC") != "1":
                raise ValueError(
                    f"rpc_url must use https:// for security (got: {parsed.scheme}://). "
                    "Set NOTELAYER_INSECURE_RPC=1 to allow HTTP for development."
                )

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.rpc_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"Ledger request {method} {path} failed: {e}")
            raise RpcTransportError(f"Ledger RPC request failed: {e}") from e

        if response.status_code >= 500:
            self.logger.error(f"Ledger returned server error {response.status_code} for {method} {path}")
            raise RpcTransportError(
                f"Ledger RPC server error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        content_type = response.headers.get('Content-Type', '')
        if 'application/json' not in content_type:
            self.logger.warning(f"Unexpected Content-Type: {content_type} (expected application/json)")
        try:
            data = response.json()
        except ValueError as e:
            raise RpcTransportError(f"Invalid JSON response from ledger: {e}") from e
        if not isinstance(data, dict):
            raise RpcTransportError(f"Unexpected ledger response: {data!r}")
        return data

    def resync(self) -> SyncSummary:
        response = self._request("GET", "/sync")
        if response.status_code != 200:
            raise RpcTransportError(
                f"Unexpected status {response.status_code} from /sync", status_code=response.status_code
            )
        data = self._json(response)
        try:
            summary = SyncSummary(
                block_num=data["block_num"],
                committed_transactions=tuple(
                    TransactionId.from_hex(tx) for tx in data.get("committed_transactions", [])
                ),
                discarded_transactions=tuple(
                    TransactionId.from_hex(tx) for tx in data.get("discarded_transactions", [])
                ),
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise RpcTransportError(f"Malformed sync response: {e}") from e
        self.logger.debug(f"Synced to block {summary.block_num}")
        return summary

    def submit(self, account_id: AccountId, request: TransactionRequest) -> TransactionId:
        payload = {"account_id": account_id.to_hex(), "request": request.to_wire()}
        response = self._request("POST", "/transactions", json=payload)
        if 400 <= response.status_code < 500:
            raise LedgerRejectedError(
                f"Ledger rejected transaction: {response.text[:200]}", status_code=response.status_code
            )
        data = self._json(response)
        try:
            return TransactionId.from_hex(data["transaction_id"])
        except (KeyError, TypeError, ValidationError) as e:
            raise RpcTransportError(f"Missing or invalid transaction id in ledger response: {data}") from e

    def lookup(self, transaction_id: TransactionId) -> Optional[TransactionStatus]:
        response = self._request("GET", f"/transactions/{transaction_id.to_hex()}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise RpcTransportError(
                f"Unexpected status {response.status_code} looking up {transaction_id}",
                status_code=response.status_code,
            )
        data = self._json(response)
        try:
            return TransactionStatus(
                kind=data["status"], block_num=data.get("block_num"), cause=data.get("cause")
            )
        except (KeyError, ValidationError) as e:
            raise RpcTransportError(f"Malformed transaction status: {data}") from e

    def close(self) -> None:
        try:
            self.session.close()
        except Exception as e:
            self.logger.warning(f"Error closing HTTP session: {e}", exc_info=True)
