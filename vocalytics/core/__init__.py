"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg

FastAPI dependency helpers live in vocalytics.core.dependencies and are
imported from there directly, since they depend on the supplier clients in
vocalytics.services.

Usage Examples:
    from vocalytics.core import get_settings, init_db, close_db

    settings = get_settings()
    print(settings.deepgram_model)
"""

# =============================================================================
# Re-exports from vocalytics.core.config
# =============================================================================
from vocalytics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from vocalytics.core.database
# =============================================================================
from vocalytics.core.database import init_db, close_db, get_db_pool


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
]
