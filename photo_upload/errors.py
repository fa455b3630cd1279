class BootstrapError(RuntimeError):
    """The storage client could not be built; the server must not start."""


class StorageError(Exception):
    """A write or close against the object store failed."""
