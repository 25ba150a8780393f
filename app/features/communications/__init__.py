"""
Pairwise communications feature package.

Shared conversations and message timelines for a pair of users, plus the
aggregation pipeline behind the pair analytics endpoint.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as communications_router  # noqa: F401
from .pipeline.aggregation import (  # noqa: F401
    CommunicationAggregationService,
    communication_aggregation_service,
)
from .repository.communication_repository import CommunicationRepository  # noqa: F401
