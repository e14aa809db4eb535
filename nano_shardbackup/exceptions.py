"""Error hierarchy for shard backup and restore."""


class ShardBackupError(Exception):
    """Base exception for shard backup operations."""
    pass


class PreconditionError(ShardBackupError):
    """The index is not in a state that can be backed up (e.g. no commit yet)."""
    pass


class BackendIOError(ShardBackupError):
    """Repository or local index I/O failed."""

    def __init__(self, message: str, uri: str = None):
        super().__init__(message)
        self.uri = uri


class MalformedIdentifierError(ShardBackupError, ValueError):
    """An identifier or filename does not have the expected shape."""
    pass


class RecordNotFoundError(ShardBackupError):
    """A metadata record or properties file does not exist."""

    def __init__(self, uri: str):
        super().__init__(f"Backup record not found: {uri}")
        self.uri = uri


class RecordCorruptError(ShardBackupError):
    """A metadata record or properties file exists but cannot be parsed."""

    def __init__(self, uri: str, reason: str):
        super().__init__(f"Backup record {uri} is corrupt: {reason}")
        self.uri = uri
        self.reason = reason


class ChecksumMismatchError(ShardBackupError):
    """A restored file does not match the checksum recorded at backup time."""

    def __init__(self, filename: str, expected, actual):
        super().__init__(
            f"Checksum mismatch for {filename}: expected {expected}, got {actual}"
        )
        self.filename = filename
        self.expected = expected
        self.actual = actual
