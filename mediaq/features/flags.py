"""Feature flag helpers for MediaQ optional capabilities."""

from typing import Optional

from mediaq.settings import MediaQSettings, get_settings


def require_feature(
    flag_name: str, human_name: str, settings: Optional[MediaQSettings] = None
) -> None:
    settings = settings or get_settings()
    if not getattr(settings, flag_name):
        raise RuntimeError(
            f"{human_name} is disabled. Set MEDIAQ_{flag_name.upper()}=true to enable."
        )
