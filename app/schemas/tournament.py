"""
Tournament schemas
"""
import math
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.core.constants import DEFAULT_TOURNAMENT_NAME, DURATION_SECONDS, Direction, DurationClass
from app.schemas.ledger import LedgerReceipt
from app.utils.time_utils import to_naive_utc, to_utc_isoformat, utc_now


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input, emits camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LeaderboardRow(CamelModel):
    """Single ranked entry in tournament results"""
    rank: int
    user_address: str
    score: int
    reward_amount: float


class TournamentResponse(CamelModel):
    """Tournament response schema"""
    id: int
    name: str
    entry_fee: str
    duration: str
    participants: int = 0
    status: str
    start_time: datetime
    end_time: datetime
    reveal_time: datetime
    leaderboard: Optional[List[LeaderboardRow]] = None

    @field_serializer('start_time', 'end_time', 'reveal_time')
    def serialize_datetime(self, value: datetime) -> str:
        return to_utc_isoformat(value)


class TournamentCreate(CamelModel):
    """Schema for creating tournaments"""
    name: str = DEFAULT_TOURNAMENT_NAME
    entry_fee: str
    duration: DurationClass
    reveal_time: Optional[datetime] = None
    creator_address: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def normalize_name(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_TOURNAMENT_NAME

    @field_validator('entry_fee', mode='before')
    @classmethod
    def validate_entry_fee(cls, value: Any) -> str:
        """Entry fee must be a positive finite number; stored as an exact string"""
        if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
            raise ValueError("entryFee must be a positive number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("entryFee must be a positive number")
        try:
            fee = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError("entryFee must be a positive number")
        if not fee.is_finite() or fee <= 0:
            raise ValueError("entryFee must be a positive number")
        return format(fee.normalize(), "f")

    @field_validator('creator_address', mode='before')
    @classmethod
    def blank_creator_is_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @model_validator(mode='after')
    def reveal_after_window(self) -> "TournamentCreate":
        if self.reveal_time is not None:
            self.reveal_time = to_naive_utc(self.reveal_time)
            window_end = utc_now() + timedelta(seconds=DURATION_SECONDS[self.duration.value])
            if self.reveal_time < window_end:
                raise ValueError("revealTime must be after the prediction window")
        return self


class JoinRequest(CamelModel):
    """Join a tournament"""
    user_address: str = Field(..., min_length=1)


class JoinResponse(CamelModel):
    """Response after joining a tournament"""
    joined: bool
    participants: int
    tournament: Optional[TournamentResponse] = None
    on_chain: LedgerReceipt


class PredictionCreate(CamelModel):
    """Submit a pick for one asset"""
    user_address: str = Field(..., min_length=1)
    asset_symbol: str = Field(..., min_length=1, max_length=32)
    predicted_direction: str

    @field_validator('predicted_direction')
    @classmethod
    def validate_direction(cls, value: str) -> str:
        if value.strip().lower() not in {d.value for d in Direction}:
            raise ValueError("predictedDirection must be 'up' or 'down'")
        return value.strip()


class PredictionResponse(CamelModel):
    """A stored prediction"""
    asset_symbol: str
    predicted_direction: str
    created_at: datetime

    @field_serializer('created_at')
    def serialize_datetime(self, value: datetime) -> str:
        return to_utc_isoformat(value)


class ScoringResponse(CamelModel):
    """Results of a scoring pass"""
    results: List[LeaderboardRow]
    payout: Optional[LedgerReceipt] = None
