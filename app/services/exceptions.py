class InventoryError(Exception):
    """Base class for errors raised by the inventory services."""
    pass


class ValidationError(InventoryError):
    """Exception raised when input is missing or malformed."""
    pass


class NotFoundError(InventoryError):
    """Exception raised when the referenced product doesn't exist."""
    pass


class ConflictError(InventoryError):
    """Exception raised when a product name is already taken."""
    pass


class StorageError(InventoryError):
    """Exception raised when the underlying database call fails."""
    pass


class ImportReadError(StorageError):
    """Exception raised when an uploaded CSV document can't be read at all."""
    pass
