from .engine import FantasyEngine, ResultReport

__version__ = "1.0.0"

__all__ = ["FantasyEngine", "ResultReport"]
