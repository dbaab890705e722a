#!/usr/bin/env python3
"""
Standalone script to recompute scores for every finished tournament.
Payouts are requested again for each rescored tournament.
"""

import asyncio
import os
import sys
import logging
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

# Add the current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.core.config import settings
from app.core.context import build_context
from app.database import SessionLocal, init_db
from app.schemas.tournament import ScoringResponse
from app.services.tournament_service import TournamentService

logger = logging.getLogger("rescore")


async def rescore(session_factory: Optional[sessionmaker] = None) -> List[ScoringResponse]:
    """Build the services and rescore finished tournaments sequentially."""
    session_factory = session_factory or SessionLocal
    init_db(session_factory.kw["bind"])

    service = TournamentService(build_context(session_factory, settings))
    results = await service.rescore_finished()
    if not results:
        logger.info("No finished tournaments to score")
    return results


def main():
    """Main entry point for the script."""

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        asyncio.run(rescore())
    except Exception as e:
        logger.error(f"Rescoring failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
