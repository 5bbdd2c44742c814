"""Factory helpers for wiring an upload session from resolved settings."""
from __future__ import annotations

from typing import Optional

from .api import LeadAPIClient
from .config import UploaderSettings
from .session import SessionContext
from .upload import SyntheticProgress, UploadSession
from .upload.progress import Scheduler


def build_client(settings: UploaderSettings, session: Optional[SessionContext] = None, **client_kwargs) -> LeadAPIClient:
    """Create an API client whose session carries the configured bearer token."""

    context = session or SessionContext()
    if settings.token and not context.get_token():
        context.set_auth(settings.token)
    return LeadAPIClient(
        settings.base_url,
        context,
        timeout=settings.timeout_seconds,
        **client_kwargs,
    )


def build_progress(settings: UploaderSettings, scheduler: Optional[Scheduler] = None) -> SyntheticProgress:
    tuning = settings.progress
    return SyntheticProgress(
        scheduler,
        tick_seconds=tuning.tick_seconds,
        min_step=tuning.min_step,
        max_step=tuning.max_step,
        ceiling=tuning.ceiling,
        hold_seconds=tuning.hold_seconds,
    )


def build_upload_session(
    settings: UploaderSettings,
    client: LeadAPIClient,
    *,
    scheduler: Optional[Scheduler] = None,
) -> UploadSession:
    return UploadSession(
        client,
        progress=build_progress(settings, scheduler),
        default_source=settings.default_source,
    )


__all__ = ["build_client", "build_progress", "build_upload_session"]
