"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .marketplace import IdentityProvider, MarketplaceRepository, MarketplaceService, PaymentProcessor

__all__ = ["IdentityProvider", "MarketplaceRepository", "MarketplaceService", "PaymentProcessor"]
