"""
Garage Ops Exceptions

Custom exception classes for store and sync error handling.
"""

from typing import Optional


class GarageOpsError(Exception):
    """Base exception for garage data errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteStoreError(GarageOpsError):
    """Raised when a remote store call fails"""

    def __init__(self, message: str, table: Optional[str] = None,
                 operation: Optional[str] = None):
        detail = message or "Unknown Supabase error"
        if table and operation:
            detail = f"{operation} on '{table}' failed: {detail}"
        super().__init__(detail)
        self.table = table
        self.operation = operation
        self.backend_message = message


class StoreNotReadyError(GarageOpsError):
    """Raised when the database is used before initialize() completed"""
    pass
