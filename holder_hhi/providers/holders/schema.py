"""Ingress schema for jsonParsed SPL token accounts.

Only the fields the holder fetch needs are declared; everything else in the
RPC payload is ignored.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_RPC_CONFIG = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class RpcTokenAmount(BaseModel):
    amount: str = Field(pattern=r"^[0-9]+$")
    decimals: int | None = None

    model_config = _RPC_CONFIG


class RpcTokenAccountInfo(BaseModel):
    owner: str = Field(min_length=1)
    mint: str | None = None
    token_amount: RpcTokenAmount

    model_config = _RPC_CONFIG


class RpcParsedData(BaseModel):
    info: RpcTokenAccountInfo
    type: str | None = None

    model_config = _RPC_CONFIG


class RpcAccountData(BaseModel):
    parsed: RpcParsedData
    program: str | None = None

    model_config = _RPC_CONFIG


class RpcAccount(BaseModel):
    data: RpcAccountData

    model_config = _RPC_CONFIG


class RpcProgramAccount(BaseModel):
    """One entry of a ``getProgramAccounts`` result."""

    pubkey: str | None = None
    account: RpcAccount

    model_config = _RPC_CONFIG

    @property
    def owner(self) -> str:
        return self.account.data.parsed.info.owner

    @property
    def amount(self) -> str:
        return self.account.data.parsed.info.token_amount.amount
