class UpdaterError(Exception):
    """Base exception for everything that can go wrong while updating a single mod."""

    pass


class InvalidFormat(UpdaterError, ValueError):
    """
    Raised when an update key or identifier does not have the expected shape,
    e.g. an update key without a ':' separator or a GitHub id without an owner.
    """

    pass


class UnsupportedSource(UpdaterError):
    """
    Raised when an update source kind has no client, or when a subkey is present.
    """

    pass


class AmbiguousAsset(UpdaterError):
    """Raised when a release has no installable asset, or more than one."""

    pass


class AlreadyExists(UpdaterError):
    """
    Raised when a backup entry or an extraction target is already present on disk.
    Nothing is ever overwritten, the conflict must be resolved manually.
    """

    pass


class MalformedResponse(UpdaterError):
    """
    Raised when a remote response, a downloaded archive or a scraped page
    does not have the structure we depend on
    """

    pass


class TransportError(UpdaterError):
    """Raised on network failures and non-success HTTP status codes."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(UpdaterError):
    pass


class NotAFileOrDir(UpdaterError):
    pass


class ManifestError(Exception):
    """
    Raised when a manifest.json cannot be read or decoded.
    This aborts the whole run since the package list cannot be computed.
    """

    pass


class SettingsError(Exception):
    pass
