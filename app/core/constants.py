"""
Tournament constants shared by models, schemas and services
"""
from enum import Enum


class TournamentStatus(str, Enum):
    # 'upcoming' is reserved; tournaments are created already active
    UPCOMING = "upcoming"
    ACTIVE = "active"
    FINISHED = "finished"


class DurationClass(str, Enum):
    ONE_MINUTE = "1m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "24h"


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


DURATION_SECONDS = {
    DurationClass.ONE_MINUTE.value: 60,
    DurationClass.FIFTEEN_MINUTES.value: 15 * 60,
    DurationClass.ONE_HOUR.value: 60 * 60,
    DurationClass.FOUR_HOURS.value: 4 * 60 * 60,
    DurationClass.ONE_DAY.value: 24 * 60 * 60,
}

DEFAULT_DURATION_SECONDS = DURATION_SECONDS[DurationClass.ONE_HOUR.value]

DEFAULT_TOURNAMENT_NAME = "Tournament"

# Scoring
POINTS_PER_CORRECT_PREDICTION = 10
DEFAULT_ACTUAL_DIRECTION = Direction.UP.value
REWARD_DECIMAL_PLACES = 6

# Profile placeholder until wallets report balances
PLACEHOLDER_BUDGET = 100.0
