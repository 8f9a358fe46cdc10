"""Retrieve a wallet's recent swaps and drop records we cannot analyze."""

from __future__ import annotations

import logging
from typing import Iterable, List

from ..errors import InvalidInputError
from ..providers.base import HistoryProvider
from ..types import SwapTransaction
from .address import require_wallet_address

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


def is_complete(tx: SwapTransaction) -> bool:
    return bool(
        tx.hash
        and tx.from_token
        and tx.to_token
        and tx.from_amount > 0
        and tx.to_amount > 0
        and tx.gas_used > 0
    )


def clean_transactions(transactions: Iterable[SwapTransaction]) -> List[SwapTransaction]:
    """Filter incomplete swaps and order the rest newest first.

    `sorted` is stable, so swaps sharing a timestamp keep provider order.
    """
    valid = [tx for tx in transactions if is_complete(tx)]
    return sorted(valid, key=lambda tx: tx.timestamp, reverse=True)


class TransactionService:
    def __init__(self, history: HistoryProvider):
        self.history = history

    async def get_user_transactions(
        self,
        wallet_address: str,
        limit: int = DEFAULT_LIMIT,
    ) -> List[SwapTransaction]:
        require_wallet_address(wallet_address)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInputError("limit must be a positive integer")

        raw = await self.history.fetch_swaps(wallet_address, limit)
        transactions = clean_transactions(raw)

        dropped = len(raw) - len(transactions)
        if dropped:
            logger.info("Dropped %d incomplete swaps for %s", dropped, wallet_address)
        return transactions
