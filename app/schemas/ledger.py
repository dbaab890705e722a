"""
Ledger receipt schemas
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LedgerReceipt(BaseModel):
    """Result of a best-effort ledger call; callers inspect, never catch"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    confirmed: bool = False
    reference: Optional[str] = None
    mocked: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "LedgerReceipt":
        return cls(confirmed=False, error=error)


class PayoutWinner(BaseModel):
    """Recipient of a tournament payout"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    address: str
    amount: float
