"""
On-chain settlement adapter.

Joins and payouts are recorded best-effort: a slow or failing ledger never
blocks or rolls back the database write that preceded it.
"""
import asyncio
import logging
import time
from typing import List, Optional, Protocol

from app.schemas.ledger import LedgerReceipt, PayoutWinner

logger = logging.getLogger(__name__)


class LedgerClient(Protocol):
    async def record_join(self, tournament_id: int, user_address: str, entry_fee: str) -> LedgerReceipt:
        ...

    async def record_payout(self, tournament_id: int, winners: List[PayoutWinner]) -> LedgerReceipt:
        ...


class StubLedger:
    """Stubbed Sui integration.

    Until the Move package is published every receipt is mocked; with
    package and pools object ids configured the calls still only log.
    """

    def __init__(self, move_package_id: Optional[str] = None, pools_object_id: Optional[str] = None):
        self.move_package_id = move_package_id
        self.pools_object_id = pools_object_id

    @property
    def configured(self) -> bool:
        return bool(self.move_package_id and self.pools_object_id)

    async def record_join(self, tournament_id: int, user_address: str, entry_fee: str) -> LedgerReceipt:
        # TODO: reward_pool::join(pools_object, tournament_id, coin<SUI>) once the package is live
        if self.configured:
            logger.info(f"Ledger join for tournament {tournament_id} by {user_address} (fee {entry_fee}) not submitted: stub")
        return self._mock_receipt("join", tournament_id)

    async def record_payout(self, tournament_id: int, winners: List[PayoutWinner]) -> LedgerReceipt:
        # TODO: reward_pool::payout(pools_object, tournament_id, recipients, amounts in MIST)
        if self.configured:
            logger.info(f"Ledger payout for tournament {tournament_id} to {len(winners)} winners not submitted: stub")
        return self._mock_receipt("payout", tournament_id)

    @staticmethod
    def _mock_receipt(kind: str, tournament_id: int) -> LedgerReceipt:
        return LedgerReceipt(
            confirmed=False,
            mocked=True,
            reference=f"mock-{kind}-{tournament_id}-{int(time.time() * 1000)}",
        )


class LedgerService:
    """Wraps a ledger client with a timeout and soft-fail receipts"""

    def __init__(self, client: LedgerClient, timeout_seconds: float = 5.0):
        self.client = client
        self.timeout_seconds = timeout_seconds

    async def record_join(self, tournament_id: int, user_address: str, entry_fee: str) -> LedgerReceipt:
        return await self._call(
            "join",
            tournament_id,
            self.client.record_join(tournament_id, user_address, entry_fee),
        )

    async def record_payout(self, tournament_id: int, winners: List[PayoutWinner]) -> LedgerReceipt:
        return await self._call(
            "payout",
            tournament_id,
            self.client.record_payout(tournament_id, winners),
        )

    async def _call(self, kind: str, tournament_id: int, call) -> LedgerReceipt:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Ledger {kind} for tournament {tournament_id} timed out after {self.timeout_seconds}s")
            return LedgerReceipt.failed("timeout")
        except Exception as e:
            logger.error(f"Ledger {kind} for tournament {tournament_id} failed: {e}")
            return LedgerReceipt.failed(str(e) or type(e).__name__)
