"""
Storage exceptions raised by the repositories.
Business outcomes (duplicates, missing rows) are not exceptions: see services/results.py.
"""


class StorageError(Exception):
    """The store failed to read or write (connectivity, unexpected driver error)."""


class StorageConflictError(StorageError):
    """A constraint (unique, foreign key) rejected the write."""


class TriggerConflictError(StorageError):
    """
    The store refused the statement because a table trigger conflicts with the
    row-return clause (OUTPUT/RETURNING) the ORM attaches to UPDATE.
    Callers may retry with a plain parameterized statement.
    """
