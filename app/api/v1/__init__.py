"""
API v1 routes aggregation
"""
from fastapi import APIRouter
from app.api.v1 import tournaments, users

api_router = APIRouter()

# Tournaments
api_router.include_router(tournaments.router, tags=["tournaments"])

# Users
api_router.include_router(users.router, tags=["users"])
