"""
Database models for VibeSwipe Backend

All models should be imported here for Alembic to detect them.
"""
from app.models.user import User
from app.models.tournament import Tournament, TournamentJoin
from app.models.prediction import Prediction
from app.models.score import Score

__all__ = [
    # User
    "User",
    # Tournament
    "Tournament",
    "TournamentJoin",
    # Prediction
    "Prediction",
    # Score
    "Score",
]
