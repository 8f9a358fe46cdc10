from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SwapTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str = Field(description="Transaction hash")
    timestamp: datetime = Field(description="Block time (UTC)")
    from_token: str = Field(description="Symbol of the token sold")
    to_token: str = Field(description="Symbol of the token bought")
    from_token_address: str = Field(default="", description="Contract address of the token sold")
    to_token_address: str = Field(default="", description="Contract address of the token bought")
    from_amount: float = Field(description="Amount sold in token units")
    to_amount: float = Field(description="Amount bought in token units")
    gas_used: int = Field(description="Gas units consumed")
    gas_price: float = Field(description="Gas price in wei")
    dex: str = Field(description="Venue that executed the swap")
    usd_value: Optional[float] = Field(default=None, description="Trade value in USD reported by the data provider")
    slippage: Optional[float] = Field(default=None, description="Realized slippage percentage, when known")

    @property
    def gas_cost(self) -> float:
        return self.gas_used * self.gas_price


class TransactionsPayload(BaseModel):
    success: bool = Field(default=True)
    data: List[SwapTransaction] = Field(description="Recent swap transactions, newest first")
    message: str = Field(description="Human readable summary")
