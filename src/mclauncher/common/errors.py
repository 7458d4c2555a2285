from __future__ import annotations


class LauncherError(Exception):
    """Base class for failures surfaced to the command line."""


class ConfigError(LauncherError):
    pass


class InvalidUrlError(LauncherError, ValueError):
    pass


class ParseError(LauncherError):
    pass


class VersionNotFound(LauncherError):
    def __init__(self, version: str):
        super().__init__(f"Version {version!r} not found in version manifest.")
        self.version = version


class StorageError(LauncherError):
    pass


class FetchError(LauncherError):
    """A download that did not succeed within its attempt budget."""

    def __init__(self, url: str, attempts: int, reason: str):
        super().__init__(f"download {url} failed after {attempts} attempt(s): {reason}")
        self.url = url
        self.attempts = attempts
        self.reason = reason


class TransportError(FetchError):
    pass


class IntegrityError(FetchError):
    pass
