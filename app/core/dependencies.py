"""
FastAPI dependencies
"""

from fastapi import Request

from app.services.tournament_service import TournamentService


def get_tournament_service(request: Request) -> TournamentService:
    """Tournament service built during application startup"""
    return request.app.state.tournament_service


