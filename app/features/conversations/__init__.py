"""
Conversations feature package.

Listing, search and lookup of conversations and their messages. Query
builders, repository and API router live side by side.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as conversations_router  # noqa: F401
from .repository.conversation_repository import ConversationRepository  # noqa: F401
