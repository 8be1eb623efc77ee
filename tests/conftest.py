"""Pytest configuration and fixtures for holder concentration tests."""

import json
from typing import Any, Callable

import httpx
import pytest

from holder_hhi.core.config import APIConfig
from holder_hhi.core.models import AggregatedHolders, HolderRecord

TEST_MINT = "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"


def make_account(owner: str, amount: str, pubkey: str | None = None) -> dict[str, Any]:
    """Build a jsonParsed SPL token account as returned by getProgramAccounts."""
    return {
        "pubkey": pubkey or f"acct-{owner}",
        "account": {
            "data": {
                "parsed": {
                    "info": {
                        "isNative": False,
                        "mint": TEST_MINT,
                        "owner": owner,
                        "state": "initialized",
                        "tokenAmount": {
                            "amount": amount,
                            "decimals": 6,
                            "uiAmount": int(amount) / 1_000_000,
                            "uiAmountString": str(int(amount) / 1_000_000),
                        },
                    },
                    "type": "account",
                },
                "program": "spl-token",
                "space": 165,
            },
            "executable": False,
            "lamports": 2039280,
            "owner": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
            "rentEpoch": 18446744073709551615,
        },
    }


def rpc_result(accounts: list[dict[str, Any]]) -> dict[str, Any]:
    """Wrap accounts in a withContext JSON-RPC response."""
    return {
        "jsonrpc": "2.0",
        "id": "helius-rpc",
        "result": {"context": {"slot": 250_000_000}, "value": accounts},
    }


class FakeRpc:
    """Serves one canned response per page index and records requests."""

    def __init__(self, pages: dict[int, Any]):
        # page index -> list of accounts, an httpx.Response, or an exception
        self.pages = pages
        self.requests: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        page = body["params"][1]["page"]
        response = self.pages.get(page, [])

        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=rpc_result(response))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def pages_requested(self) -> list[int]:
        return [r["params"][1]["page"] for r in self.requests]


@pytest.fixture
def api_config() -> APIConfig:
    """Config with a dummy API key so no environment is read."""
    return APIConfig(helius_api_key="test-key", helius_rpc_url="https://rpc.example.test")


@pytest.fixture
def account_factory() -> Callable[..., dict[str, Any]]:
    return make_account


@pytest.fixture
def fake_rpc_factory() -> Callable[[dict[int, Any]], FakeRpc]:
    return FakeRpc


@pytest.fixture
def four_equal_holders() -> AggregatedHolders:
    """Four holders of 25 tokens each (HHI 2500)."""
    return AggregatedHolders(
        holders=[
            HolderRecord(owner="X", amount="25"),
            HolderRecord(owner="Y", amount="25"),
            HolderRecord(owner="Z", amount="25"),
            HolderRecord(owner="W", amount="25"),
        ],
        total_supply=100,
    )
