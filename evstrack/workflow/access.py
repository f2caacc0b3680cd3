from evstrack.models.reference import User, UserRole
from evstrack.reference.data import ReferenceData
from evstrack.workflow.errors import AuthorizationError


def require_user(reference: ReferenceData, user_id: str) -> User:
    user = reference.user(user_id)
    if user is None:
        raise AuthorizationError(f"Unknown user '{user_id}'")
    return user


def require_supervisor(reference: ReferenceData, user_id: str) -> User:
    user = require_user(reference, user_id)
    if user.role != UserRole.SUPERVISOR:
        raise AuthorizationError(f"{user.name} is not a supervisor")
    return user
