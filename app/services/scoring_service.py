"""
Scoring engine: turns a tournament's predictions into ranked, rewarded scores.

Pure computation; persistence and payouts are handled by the tournament
service.
"""
import math
from datetime import datetime
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

from app.core.constants import (
    DEFAULT_ACTUAL_DIRECTION,
    POINTS_PER_CORRECT_PREDICTION,
    REWARD_DECIMAL_PLACES,
)
from app.schemas.score import ScoreEntry


class ScorablePrediction(Protocol):
    user_id: int
    asset_symbol: str
    predicted_direction: str
    created_at: datetime


def compute_prize_pool(entry_fee: str, participant_count: int) -> float:
    """entry fee x participants, or 0 when the fee is not a finite number"""
    try:
        fee = float(entry_fee)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(fee):
        return 0.0
    return fee * participant_count


def is_correct(prediction: ScorablePrediction, actual_directions: Mapping[str, str]) -> bool:
    actual = actual_directions.get(prediction.asset_symbol, DEFAULT_ACTUAL_DIRECTION)
    return actual.lower() == prediction.predicted_direction.lower()


def rank_predictions(
    predictions: Iterable[ScorablePrediction],
    actual_directions: Mapping[str, str]
) -> List[Tuple[int, int]]:
    """
    Total points per user, ordered best first.

    Returns [(user_id, score), ...]; position in the list is the rank.
    Equal scores are ordered by the user's earliest prediction, then user id,
    and still receive distinct sequential ranks.
    """
    totals: Dict[int, int] = {}
    first_seen: Dict[int, datetime] = {}

    for prediction in predictions:
        points = POINTS_PER_CORRECT_PREDICTION if is_correct(prediction, actual_directions) else 0
        totals[prediction.user_id] = totals.get(prediction.user_id, 0) + points

        created_at = prediction.created_at or datetime.max
        if prediction.user_id not in first_seen or created_at < first_seen[prediction.user_id]:
            first_seen[prediction.user_id] = created_at

    return sorted(
        totals.items(),
        key=lambda item: (-item[1], first_seen[item[0]], item[0])
    )


def distribute_rewards(ranked_count: int, prize_pool: float) -> List[float]:
    """
    Harmonic split: rank r receives pool * (1/r) / sum(1/k).

    Shares are truncated to 6 decimal places in exact arithmetic, so the
    rewards never add up to more than the pool.
    """
    if ranked_count <= 0:
        return []
    if not prize_pool:
        return [0.0] * ranked_count

    pool = Fraction(str(prize_pool))
    weights = [Fraction(1, rank) for rank in range(1, ranked_count + 1)]
    weight_sum = sum(weights)
    scale = 10 ** REWARD_DECIMAL_PLACES

    return [
        float(Fraction(math.floor(pool * weight / weight_sum * scale), scale))
        for weight in weights
    ]


def build_score_entries(
    predictions: Sequence[ScorablePrediction],
    participant_count: int,
    entry_fee: str,
    actual_directions: Mapping[str, str]
) -> List[ScoreEntry]:
    """Rank every predicting user and attach their share of the prize pool"""
    prize_pool = compute_prize_pool(entry_fee, participant_count)
    ranked = rank_predictions(predictions, actual_directions)
    rewards = distribute_rewards(len(ranked), prize_pool)

    return [
        ScoreEntry(user_id=user_id, score=score, rank=idx + 1, reward_amount=rewards[idx])
        for idx, (user_id, score) in enumerate(ranked)
    ]
