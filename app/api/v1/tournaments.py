"""
Tournament API endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Path

from app.core.dependencies import get_tournament_service
from app.core.exceptions import (
    AlreadyPredictedError,
    PredictionWindowClosedError,
    TournamentNotFoundError,
)
from app.schemas.tournament import (
    JoinRequest,
    JoinResponse,
    LeaderboardRow,
    PredictionCreate,
    PredictionResponse,
    ScoringResponse,
    TournamentCreate,
    TournamentResponse,
)
from app.services.tournament_service import TournamentService

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


def _not_found(tournament_id: int) -> HTTPException:
    error = TournamentNotFoundError(tournament_id)
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message
    )


@router.get("", response_model=List[TournamentResponse])
async def list_tournaments(
    service: TournamentService = Depends(get_tournament_service)
):
    """List all tournaments"""
    return service.list_tournaments()


@router.post("", response_model=TournamentResponse, status_code=status.HTTP_201_CREATED)
async def create_tournament(
    tournament_data: TournamentCreate,
    service: TournamentService = Depends(get_tournament_service)
):
    """Create a tournament that starts immediately"""
    return service.create_tournament(
        name=tournament_data.name,
        entry_fee=tournament_data.entry_fee,
        duration=tournament_data.duration.value,
        reveal_time=tournament_data.reveal_time,
        creator_address=tournament_data.creator_address
    )


@router.get("/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(
    tournament_id: int = Path(..., ge=1),
    service: TournamentService = Depends(get_tournament_service)
):
    """Get tournament details"""
    tournament = service.get_tournament(tournament_id)
    if not tournament:
        raise _not_found(tournament_id)
    return tournament


@router.post("/{tournament_id}/join", response_model=JoinResponse)
async def join_tournament(
    join_data: JoinRequest,
    tournament_id: int = Path(..., ge=1),
    service: TournamentService = Depends(get_tournament_service)
):
    """Join a tournament"""
    try:
        result = await service.add_join(join_data.user_address, tournament_id)
    except PredictionWindowClosedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )
    if not result:
        raise _not_found(tournament_id)
    return result


@router.post("/{tournament_id}/predictions", response_model=PredictionResponse)
async def submit_prediction(
    prediction_data: PredictionCreate,
    tournament_id: int = Path(..., ge=1),
    service: TournamentService = Depends(get_tournament_service)
):
    """Submit a prediction for one asset"""
    try:
        result = service.add_prediction(
            tournament_id,
            prediction_data.user_address,
            prediction_data.asset_symbol,
            prediction_data.predicted_direction
        )
    except (AlreadyPredictedError, PredictionWindowClosedError) as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )
    if not result:
        raise _not_found(tournament_id)
    return result


@router.get("/{tournament_id}/predictions/me", response_model=List[PredictionResponse])
async def list_my_predictions(
    tournament_id: int = Path(..., ge=1),
    user_address: Optional[str] = Query(None, alias="userAddress"),
    address: Optional[str] = Query(None),
    service: TournamentService = Depends(get_tournament_service)
):
    """List the caller's predictions, newest first"""
    wallet = user_address or address
    if not wallet:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userAddress is required"
        )
    predictions = service.list_my_predictions(tournament_id, wallet)
    if predictions is None:
        raise _not_found(tournament_id)
    return predictions


@router.get("/{tournament_id}/results", response_model=List[LeaderboardRow])
async def get_results(
    tournament_id: int = Path(..., ge=1),
    service: TournamentService = Depends(get_tournament_service)
):
    """Get scored results in rank order"""
    results = service.get_results(tournament_id)
    if results is None:
        raise _not_found(tournament_id)
    return results


@router.post("/{tournament_id}/score", response_model=ScoringResponse)
async def score_tournament(
    tournament_id: int = Path(..., ge=1),
    service: TournamentService = Depends(get_tournament_service)
):
    """Score a tournament now; waits if a scoring pass is already running"""
    results = await service.compute_scores(tournament_id)
    if results is None:
        raise _not_found(tournament_id)
    return results
