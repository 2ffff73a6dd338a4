from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Sequence

from ..exceptions import NoCredentialsError

logger = logging.getLogger(__name__)


class CredentialPool:
    """Round-robin set of API keys.

    Rotation only advances the index; a key that failed once is simply tried
    again on the next cycle.
    """

    def __init__(self, keys: Sequence[str]) -> None:
        self._keys: List[str] = [k for k in keys if k]
        self._index = 0

    @classmethod
    def from_env(cls, names: Iterable[str], environ: Optional[dict] = None) -> "CredentialPool":
        """Build the pool from the environment variables listed in *names*."""
        env = os.environ if environ is None else environ
        return cls([env.get(name, "").strip() for name in names])

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._keys)

    def current(self) -> str:
        if not self._keys:
            raise NoCredentialsError("No API keys configured for the reasoning service")
        return self._keys[self._index]

    def rotate(self) -> bool:
        """Advance to the next key. No-op returning ``False`` with fewer than two keys."""
        if len(self._keys) <= 1:
            return False
        self._index = (self._index + 1) % len(self._keys)
        logger.warning("Switching to API key #%d", self._index + 1)
        return True
