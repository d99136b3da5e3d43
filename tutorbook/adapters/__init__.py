"""
Adapters layer - Stand-ins for the storage, payment and identity backends.
"""

from .memory_repository import InMemoryRepository, JsonFileRepository
from .mock_payment_processor import MockPaymentProcessor
from .static_identity import StaticIdentity

__all__ = ["InMemoryRepository", "JsonFileRepository", "MockPaymentProcessor", "StaticIdentity"]
