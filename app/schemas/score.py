"""
Score schemas
"""
from pydantic import BaseModel, ConfigDict


class ScoreEntry(BaseModel):
    """One row of a freshly computed score set"""
    model_config = ConfigDict(frozen=True)

    user_id: int
    score: int
    rank: int
    reward_amount: float
