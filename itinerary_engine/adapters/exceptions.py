"""Collaborator exceptions.

Raised inside adapter call functions only; ``ToolExecutor`` turns them into
``ToolResponse(ok=False, ...)`` so they never reach the core.
"""


class CollaboratorError(Exception):
    """Base exception for external collaborator errors."""
    pass


class CollaboratorTimeoutError(CollaboratorError):
    """Raised when a collaborator request times out."""
    pass


class CollaboratorConnectionError(CollaboratorError):
    """Raised when unable to reach a collaborator."""
    pass


class CollaboratorResponseError(CollaboratorError):
    """Raised when a collaborator answers with an error or an unusable body."""
    pass
