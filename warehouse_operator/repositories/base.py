"""
Repository errors shared by the in-memory stores.
"""


class RepositoryError(Exception):
    """Custom exception for repository operations"""
    pass


class DuplicateEntityError(RepositoryError):
    """Raised when trying to create a duplicate entity"""
    pass


class EntityNotFoundError(RepositoryError):
    """Raised when entity not found"""
    pass
