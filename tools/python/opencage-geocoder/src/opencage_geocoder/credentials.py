"""
OpenCage Geocoder — Credential Providers
=========================================
The API key is injected into :class:`~opencage_geocoder.client.GeocodeClient`
as a :class:`CredentialProvider`.  The client asks the provider for the key
on every request, so a rotated key is picked up without rebuilding the
client.

Classes:
    CredentialProvider          Abstract key source.
    EnvCredentialProvider       Reads an environment variable on each call.
    StaticCredentialProvider    Holds a fixed key (CLI flag, tests).
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

DEFAULT_KEY_ENV_VAR = "OPENCAGE_API_KEY"


class CredentialProvider(ABC):
    """Abstract source of the geocoding API key.

    Subclass this and implement :meth:`get_credential` to read the key
    from somewhere else (a secrets manager, a keyring, ...).
    """

    @abstractmethod
    def get_credential(self) -> str | None:
        """Return the current API key, or ``None`` if none is configured.

        The client treats ``None`` and the empty string the same way.
        """


class EnvCredentialProvider(CredentialProvider):
    """Read the API key from an environment variable.

    Args:
        variable: Name of the environment variable.  Defaults to
                  ``OPENCAGE_API_KEY``.
    """

    def __init__(self, variable: str = DEFAULT_KEY_ENV_VAR) -> None:
        self.variable = variable

    def get_credential(self) -> str | None:
        return os.environ.get(self.variable)

    def __repr__(self) -> str:
        return f"EnvCredentialProvider(variable={self.variable!r})"


class StaticCredentialProvider(CredentialProvider):
    """Return the same key on every call."""

    def __init__(self, key: str | None) -> None:
        self._key = key

    def get_credential(self) -> str | None:
        return self._key

    def __repr__(self) -> str:
        # never echo the key itself
        return f"StaticCredentialProvider(configured={bool(self._key)})"
