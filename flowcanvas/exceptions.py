"""Exceptions raised by the flow engine."""

from typing import List, Optional


class FlowError(Exception):
    """Base class for flow engine errors."""
    pass


class FlowSchemaError(FlowError):
    """Raised when a flow document is malformed or does not match the schema."""
    pass


class FlowValidationError(FlowError):
    """Raised when an operation requires a flow that passes validation."""

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        super().__init__(message)
        self.issues = list(issues or [])


class FlowNotFoundError(FlowError):
    """Raised when a flow id is not present in the collection."""

    def __init__(self, flow_id: str):
        super().__init__(f"Flow {flow_id} not found")
        self.flow_id = flow_id


class StorageError(FlowError):
    """Raised when the storage backend is unavailable."""
    pass
