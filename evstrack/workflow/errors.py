class WorkflowError(Exception):
    """A lifecycle operation rejected at the call boundary."""


class InvalidTransitionError(WorkflowError):
    pass


class AuthorizationError(WorkflowError):
    pass


class DuplicateStatementError(WorkflowError):
    pass


class StalePreviewError(WorkflowError):
    """The statement changed after its refresh was previewed."""
