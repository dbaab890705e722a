"""
User profile endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query

from app.core.dependencies import get_tournament_service
from app.schemas.user import ProfileResponse
from app.services.tournament_service import TournamentService

router = APIRouter(tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user_address: Optional[str] = Query(None, alias="userAddress"),
    address: Optional[str] = Query(None),
    service: TournamentService = Depends(get_tournament_service)
):
    """Profile for a wallet address, created on first lookup"""
    wallet = user_address or address
    if not wallet:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userAddress is required"
        )
    return service.get_profile(wallet)
