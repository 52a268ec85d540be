"""Exception classes for the file vault gateway."""


class FileVaultError(Exception):
    """
    Base exception class for all gateway errors.
    """
    pass


class ConfigurationError(FileVaultError):
    """
    Raised when required settings are missing or malformed at startup.
    """
    pass


class IntegrityError(FileVaultError):
    """
    Raised when an envelope is malformed, fails authentication,
    or does not match its recorded checksum.
    """
    pass


class NotFoundError(FileVaultError):
    """
    Raised when no metadata record exists for a file id.
    """
    pass


class StorageError(FileVaultError):
    """
    Raised when object storage cannot store or return an envelope.
    """
    pass
