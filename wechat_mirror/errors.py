"""Exception hierarchy for wechat-mirror.

``AuthError``, ``UpstreamError`` and ``ConversionTimeout`` abort the request
that raised them.  ``AssetFetchError`` and ``StorageError`` are raised per
asset and recovered by the localizer, which leaves that reference untouched.
"""


class MirrorError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class AuthError(MirrorError):
    """The credential exchange did not yield an access token."""


class UpstreamError(MirrorError):
    """The content source or the platform API reported a failure."""


class ConversionTimeout(MirrorError):
    """A conversion did not finish before its deadline."""


class AssetFetchError(MirrorError):
    """A remote asset could not be downloaded."""

    def __init__(self, url: str, message: str = "") -> None:
        super().__init__(message or f"failed to fetch {url}")
        self.url = url


class StorageError(MirrorError):
    """Downloaded bytes could not be written to local storage."""

    def __init__(self, path, message: str = "") -> None:
        super().__init__(message or f"failed to write {path}")
        self.path = path
