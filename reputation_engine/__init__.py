"""Reputation Engine — Package."""

from reputation_engine.engine import ReputationEngine, enhance_profile

__all__ = ["ReputationEngine", "enhance_profile"]
