"""User schemas for request/response validation"""
from typing import List
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class JoinedTournament(BaseModel):
    """Tournament a user has joined"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    status: str


class ProfileResponse(BaseModel):
    """Public profile keyed by wallet address"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    address: str
    budget: float
    joined_tournaments: List[JoinedTournament] = []
