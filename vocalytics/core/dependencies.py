"""
FastAPI dependency injection module for the Vocalytics backend.

Provides reusable dependencies for configuration access and the supplier
clients, so endpoint handlers stay decoupled from
infrastructure and tests can swap any of them through
``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_call_log_client: Ringba call-log client built from settings
- get_transcription_client: Deepgram transcription client built from settings
- SettingsDep / CallLogClientDep / TranscriptionClientDep:
  Annotated aliases for endpoint signatures

Usage Examples:
    @router.post("/sync")
    async def sync_calls(request: SyncRequest, call_log_client: CallLogClientDep):
        raw = await call_log_client.fetch_call_logs(request.start, request.end)
        ...
"""

from typing import Annotated

from fastapi import Depends

from vocalytics.core.config import Settings, get_settings
from vocalytics.services.suppliers import (
    DeepgramTranscriptionClient,
    RingbaCallLogClient,
)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Supplier Client Dependencies
# =============================================================================

def get_call_log_client(
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> RingbaCallLogClient:
    """Build the Ringba call-log client from settings."""
    return RingbaCallLogClient.from_settings(settings)


def get_transcription_client(
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> DeepgramTranscriptionClient:
    """Build the Deepgram transcription client from settings."""
    return DeepgramTranscriptionClient.from_settings(settings)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

CallLogClientDep = Annotated[RingbaCallLogClient, Depends(get_call_log_client)]

TranscriptionClientDep = Annotated[
    DeepgramTranscriptionClient, Depends(get_transcription_client)
]
