"""
Aggregation package for pair communications.

Turns shared message history into frequency, response-time, heatmap,
talk-to-listen and conversation-type analytics.
"""

from .service import (
    CommunicationAggregationService,
    ConversationRow,
    MessageRow,
    communication_aggregation_service,
)

__all__ = [
    "CommunicationAggregationService",
    "ConversationRow",
    "MessageRow",
    "communication_aggregation_service",
]
