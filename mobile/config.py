from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Android emulator alias for the host machine
DEFAULT_API_URL = 'http://10.0.2.2:8000'


@dataclass(frozen=True)
class ClientSettings:
    api_url: str = DEFAULT_API_URL
    timeout: float = 15.0
    token: Optional[str] = None

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip('/')

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> 'ClientSettings':
        """Read ``CLINIC_API_*`` variables, loading ``.env`` first when asked."""
        if dotenv:
            load_dotenv()
        return cls(
            api_url=os.getenv('CLINIC_API_URL', DEFAULT_API_URL),
            timeout=float(os.getenv('CLINIC_API_TIMEOUT', '15')),
            token=os.getenv('CLINIC_API_TOKEN') or None,
        )
