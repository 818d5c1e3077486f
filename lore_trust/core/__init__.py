"""
Core utilities: shared exceptions used across repository, engine and API layers.
"""

from lore_trust.core.exceptions import (
    LoreTrustError,
    OperationCancelledError,
    RepositoryError,
)

__all__ = ["LoreTrustError", "OperationCancelledError", "RepositoryError"]
