"""Solana holder provider backed by Helius JSON-RPC.

Pages through ``getProgramAccounts`` for the SPL Token program, filtered to
token accounts of a single mint, and turns each account into a HolderRecord.

A failed page ends the fetch and the holders collected so far are returned
with ``is_complete=False``; the caller decides whether a partial snapshot is
good enough.
"""

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from ...core.config import APIConfig, get_config
from ...core.exceptions import ComputationError, DataSourceError, RateLimitError
from ...core.exclusions import DEFAULT_EXCLUDED_ADDRESSES, load_excluded_addresses
from ...core.models import HolderRecord, HolderSnapshot
from ...core.types import AMOUNT_PATTERN, DataSource, PaginationMode, StopReason
from ..base import BaseProvider
from .schema import RpcProgramAccount

logger = logging.getLogger(__name__)

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Size of an SPL token account and offset of the mint inside it
TOKEN_ACCOUNT_SIZE = 165
MINT_OFFSET = 0


class SolanaHolderProvider(BaseProvider):
    """Fetches every token account of a mint from Helius."""

    SOURCE = DataSource.HELIUS
    RPC_ID = "helius-rpc"

    def __init__(
        self,
        config: APIConfig | None = None,
        page_size: int | None = None,
        request_timeout: float | None = None,
        excluded_addresses: frozenset[str] | None = None,
        pagination_mode: PaginationMode = PaginationMode.FILTERED,
        strict_decoding: bool = False,
        max_pages: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the holder provider.

        Args:
            config: Connection settings (global config if not provided)
            page_size: Accounts requested per page (config default 1000)
            request_timeout: Per-request timeout in seconds (config default 30)
            excluded_addresses: Owners to skip; defaults to the exclusions
                file from config, else the burn and incinerator addresses
            pagination_mode: Which page count ends the fetch loop
            strict_decoding: Raise ComputationError on malformed accounts;
                by default a malformed page ends the fetch like a failed call
            max_pages: Optional cap on pages fetched
            transport: Optional httpx transport (used by tests)
        """
        super().__init__()
        self.config = config or get_config()
        self.page_size = page_size or self.config.page_size
        self.request_timeout = request_timeout or self.config.request_timeout
        self.pagination_mode = pagination_mode
        self.strict_decoding = strict_decoding
        self.max_pages = max_pages
        self._transport = transport

        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

        if excluded_addresses is not None:
            self.excluded_addresses = frozenset(excluded_addresses)
        elif self.config.exclusions_file:
            self.excluded_addresses = load_excluded_addresses(self.config.exclusions_file)
        else:
            self.excluded_addresses = DEFAULT_EXCLUDED_ADDRESSES

        if not self.config.has_helius():
            logger.warning("HELIUS_API_KEY not set - holder queries will be rejected")

    def is_available(self) -> bool:
        """Check if a Helius API key is configured."""
        return self.config.has_helius()

    def _rpc_request(self, method: str, params: list[Any], endpoint: str) -> Any:
        """
        Make a single JSON-RPC call.

        Args:
            method: RPC method name
            params: Positional RPC params
            endpoint: Label used in the audit trail (never contains the key)

        Returns:
            The ``result`` member of the response

        Raises:
            DataSourceError: On transport failure, HTTP error, bad JSON or an
                RPC error envelope
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self.RPC_ID,
            "method": method,
            "params": params,
        }
        start_time = time.time()

        try:
            with httpx.Client(timeout=self.request_timeout, transport=self._transport) as client:
                response = client.post(self.config.rpc_endpoint, json=payload)

            if response.status_code == 429:
                retry_after = response.headers.get("retry-after")
                raise RateLimitError(
                    source=self.SOURCE.value,
                    retry_after_seconds=(
                        int(retry_after)
                        if retry_after and AMOUNT_PATTERN.fullmatch(retry_after)
                        else None
                    ),
                    endpoint=endpoint,
                )

            response.raise_for_status()

            try:
                data = response.json()
            except ValueError:
                raise DataSourceError(
                    source=self.SOURCE.value,
                    message="Response is not valid JSON",
                    endpoint=endpoint,
                    status_code=response.status_code,
                )

            if isinstance(data, dict) and data.get("error"):
                error = data["error"]
                message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                raise DataSourceError(
                    source=self.SOURCE.value,
                    message=f"RPC Error: {message}",
                    endpoint=endpoint,
                    status_code=response.status_code,
                )

            if not isinstance(data, dict) or data.get("result") is None:
                raise DataSourceError(
                    source=self.SOURCE.value,
                    message="Response is missing result",
                    endpoint=endpoint,
                    status_code=response.status_code,
                )

        except httpx.HTTPStatusError as e:
            self._record_call("fetch_page", endpoint, start_time, f"HTTP {e.response.status_code}")
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            reason = str(e) or type(e).__name__
            self._record_call("fetch_page", endpoint, start_time, reason)
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"API Error: {reason}",
                endpoint=endpoint,
            )
        except DataSourceError as e:
            self._record_call("fetch_page", endpoint, start_time, e.message)
            raise

        self._record_call("fetch_page", endpoint, start_time)
        return data["result"]

    def fetch_page(self, token_id: str, page: int) -> list[Any]:
        """
        Fetch one page of raw token accounts for a mint.

        Args:
            token_id: Token mint address
            page: Zero-based page index

        Returns:
            Raw account entries as returned by the RPC
        """
        params = [
            SPL_TOKEN_PROGRAM_ID,
            {
                "encoding": "jsonParsed",
                "filters": [
                    {"dataSize": TOKEN_ACCOUNT_SIZE},
                    {"memcmp": {"offset": MINT_OFFSET, "bytes": token_id}},
                ],
                "withContext": True,
                "page": page,
                "limit": self.page_size,
            },
        ]
        endpoint = f"getProgramAccounts?mint={token_id}&page={page}&limit={self.page_size}"

        logger.debug(f"[{self.SOURCE.value}] Fetching page {page} for {token_id}")
        result = self._rpc_request("getProgramAccounts", params, endpoint)

        # withContext wraps the accounts in {"context": ..., "value": [...]}
        if isinstance(result, dict):
            accounts = result.get("value")
        else:
            accounts = result

        if not isinstance(accounts, list):
            raise ComputationError(
                "decode",
                f"unexpected getProgramAccounts result type {type(accounts).__name__}",
            )
        return accounts

    def decode_account(self, raw_account: Any) -> HolderRecord:
        """
        Validate one jsonParsed token account and convert it to a HolderRecord.

        Raises:
            ComputationError: If the account does not match the expected shape
        """
        try:
            account = RpcProgramAccount.model_validate(raw_account)
        except ValidationError as e:
            pubkey = raw_account.get("pubkey") if isinstance(raw_account, dict) else None
            raise ComputationError(
                "decode",
                f"malformed token account {pubkey or '<unknown>'}: {e.error_count()} validation error(s)",
                value=str(pubkey) if pubkey else None,
            )
        return HolderRecord(owner=account.owner, amount=account.amount)

    def decode_page(self, raw_accounts: list[Any]) -> list[HolderRecord]:
        """Decode a page, dropping excluded owners and zero balances."""
        holders = []
        for raw_account in raw_accounts:
            record = self.decode_account(raw_account)
            if record.owner in self.excluded_addresses:
                continue
            if int(record.amount) == 0:
                continue
            holders.append(record)
        return holders

    def fetch_all_holders(self, token_id: str) -> HolderSnapshot:
        """
        Fetch every holder of a mint, page by page.

        Pages are requested sequentially starting from 0. The loop ends on an
        empty page, on a page shorter than ``page_size`` (post-filter count in
        FILTERED mode, raw count in RAW mode), on ``max_pages``, or on the
        first failure.

        Args:
            token_id: Token mint address

        Returns:
            HolderSnapshot with the records and completeness metadata

        Raises:
            ComputationError: On a malformed account when strict_decoding is on
        """
        holders: list[HolderRecord] = []
        page = 0
        pages_fetched = 0
        raw_accounts_seen = 0
        last_page_raw_count = 0

        def snapshot(stop_reason: StopReason, error_message: str | None = None) -> HolderSnapshot:
            return HolderSnapshot(
                token_id=token_id,
                holders=holders,
                page_size=self.page_size,
                pages_fetched=pages_fetched,
                raw_accounts_seen=raw_accounts_seen,
                last_page_raw_count=last_page_raw_count,
                is_complete=stop_reason in (StopReason.EMPTY_PAGE, StopReason.SHORT_PAGE),
                stop_reason=stop_reason,
                error_message=error_message,
            )

        while True:
            if self.max_pages is not None and page >= self.max_pages:
                logger.warning(
                    f"Stopped after {self.max_pages} pages for {token_id}; "
                    f"holder list may be incomplete"
                )
                return snapshot(StopReason.MAX_PAGES)

            try:
                raw_accounts = self.fetch_page(token_id, page)
                page_holders = self.decode_page(raw_accounts)
            except DataSourceError as e:
                logger.error(f"Error fetching page {page} for {token_id}: {e}")
                return snapshot(StopReason.ERROR, e.message)
            except ComputationError as e:
                if self.strict_decoding:
                    raise
                logger.error(f"Error decoding page {page} for {token_id}: {e}")
                return snapshot(StopReason.ERROR, e.message)

            pages_fetched += 1
            if not raw_accounts:
                logger.debug(f"Page {page} for {token_id} is empty")
                return snapshot(StopReason.EMPTY_PAGE)

            holders.extend(page_holders)
            raw_accounts_seen += len(raw_accounts)
            last_page_raw_count = len(raw_accounts)

            if self.pagination_mode == PaginationMode.RAW:
                page_count = len(raw_accounts)
            else:
                page_count = len(page_holders)

            logger.debug(
                f"Page {page} for {token_id}: {len(raw_accounts)} accounts, "
                f"{len(page_holders)} holders kept"
            )

            if page_count < self.page_size:
                return snapshot(StopReason.SHORT_PAGE)
            page += 1

    def get_token_balances(self, token_id: str) -> list[HolderRecord]:
        """Return the holder records of a mint without snapshot metadata."""
        return list(self.fetch_all_holders(token_id).holders)
