"""
errors.py
Exception types shared by the persistence, transfer and import layers.

Every failure in this application degrades to "state unchanged, user informed";
callers catch these and surface a toast or a status, never crash.
"""


class MonoPadError(Exception):
    """Base class for all application-level failures."""


class StorageUnavailable(MonoPadError):
    """The local note store could not be read or written."""


class MalformedToken(MonoPadError):
    """A transfer token (from a link or a scanned code) could not be decoded."""


class PermissionDenied(MonoPadError):
    """A device capability (camera, fullscreen) was refused or is missing."""


class UnsupportedImportFormat(MonoPadError):
    """The selected file cannot be imported as a note."""


class TokenTooLarge(MonoPadError):
    """The token does not fit into a single optical code."""
