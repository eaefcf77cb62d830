from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    registry_url: str
    timeout: float


def load_config(
    registry_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    settings = get_settings()
    url = registry_url or settings.registry_url
    if timeout is None or timeout <= 0:
        timeout = settings.registry_timeout
    return CLIConfig(registry_url=url.rstrip("/"), timeout=timeout)
