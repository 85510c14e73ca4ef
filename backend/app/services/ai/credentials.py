"""
Provider credentials.

A ``CredentialSet`` is the ordered, read-only list of API keys the
orchestrator may use. It is the only state shared between concurrent AI
calls, so it is immutable once built.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from app.core.config import Settings
from app.core.logging import get_logger
from app.services.ai.errors import ConfigurationError

logger = get_logger(__name__)

PRIMARY = "primary"
FALLBACK = "fallback"


@dataclass(frozen=True)
class Credential:
    name: str
    api_key: str

    def __repr__(self) -> str:
        # Keys must never reach logs
        return f"Credential(name={self.name!r})"


class CredentialSet:
    """Ordered credentials, primary first. Empty sets are rejected."""

    def __init__(self, credentials: Iterable[Credential]):
        self._credentials: Tuple[Credential, ...] = tuple(credentials)
        if not self._credentials:
            raise ConfigurationError(
                "No AI provider credential configured. "
                "Set GEMINI_API_KEY and/or GEMINI_API_KEY_FALLBACK."
            )
        names = [c.name for c in self._credentials]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate credential names: {names}")

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self):
        return iter(self._credentials)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self._credentials)

    @property
    def default(self) -> Credential:
        return self._credentials[0]

    def has(self, name: str) -> bool:
        return any(c.name == name for c in self._credentials)

    def get(self, name: str) -> Credential:
        for credential in self._credentials:
            if credential.name == name:
                return credential
        raise ConfigurationError(f"Credential '{name}' is not configured")

    def fallback_for(self, name: str) -> Optional[Credential]:
        """The credential to fail over to from ``name``, if any."""
        if name != PRIMARY or not self.has(FALLBACK):
            return None
        return self.get(FALLBACK)


def load_credentials(settings: Settings) -> CredentialSet:
    """Build the credential set from settings; fails fast when empty."""
    credentials = []
    if settings.gemini_api_key:
        credentials.append(Credential(PRIMARY, settings.gemini_api_key))
    if settings.gemini_api_key_fallback:
        credentials.append(Credential(FALLBACK, settings.gemini_api_key_fallback))

    credential_set = CredentialSet(credentials)
    logger.info("ai_credentials_loaded", credentials=list(credential_set.names))
    return credential_set
