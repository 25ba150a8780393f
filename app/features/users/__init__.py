"""
Users feature package.

User listing, search, profile with activity stats, and contacts.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as users_router  # noqa: F401
from .repository.user_repository import UserRepository  # noqa: F401
