"""
Prediction model
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


class Prediction(Base):
    """A user's up/down pick for one asset in one tournament (immutable)"""
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    asset_symbol = Column(String(32), nullable=False)
    predicted_direction = Column(String(8), nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utc_now, index=True)

    # One pick per asset; the insert-time violation is the duplicate signal
    __table_args__ = (
        UniqueConstraint('user_id', 'tournament_id', 'asset_symbol', name='unique_prediction_per_asset'),
    )

    # Relationships
    tournament = relationship("Tournament", back_populates="predictions")
    user = relationship("User", back_populates="predictions")
