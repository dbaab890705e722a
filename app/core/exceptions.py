"""
Domain errors raised by the tournament services
"""


class VibeSwipeError(Exception):
    """Base class for tournament domain errors"""

    code = "OPERATION_FAILED"

    def __init__(self, message: str = "Operation failed"):
        super().__init__(message)
        self.message = message


class TournamentNotFoundError(VibeSwipeError):
    code = "NOT_FOUND"

    def __init__(self, tournament_id=None):
        super().__init__("Tournament not found")
        self.tournament_id = tournament_id


class AlreadyPredictedError(VibeSwipeError):
    """A prediction already exists for this (user, tournament, asset)"""

    code = "ALREADY_PREDICTED"

    def __init__(self, asset_symbol: str = ""):
        super().__init__("Prediction already submitted for this asset")
        self.asset_symbol = asset_symbol


class PredictionWindowClosedError(VibeSwipeError):
    code = "WINDOW_CLOSED"

    def __init__(self, message: str = "Tournament is no longer accepting entries"):
        super().__init__(message)


class ScoringInProgressError(VibeSwipeError):
    """Another scoring pass for the same tournament is still running"""

    code = "SCORING_IN_PROGRESS"

    def __init__(self, tournament_id=None):
        super().__init__("Tournament is already being scored")
        self.tournament_id = tournament_id
