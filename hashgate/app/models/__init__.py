"""
Pydantic models for hashgate.
"""

from hashgate.app.models.hashing import AlgorithmMode, HashResult, HashStatus, TokenState

__all__ = ["AlgorithmMode", "HashResult", "HashStatus", "TokenState"]
