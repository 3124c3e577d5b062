"""CRUD routes for the users resource.

Every route validates first (create and update), then talks to the
repository. Failures are raised as application exceptions and rendered by
the registered exception handlers:

- invalid payload → ``ValidationError`` (400)
- unknown id → ``NotFoundError`` (404)
- database failure → ``StorageError`` carrying the operation's message (500)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated, Any

from fastapi import APIRouter, Body, status

from src.api.constants import NOT_FOUND_MESSAGE, VALIDATION_FAILED_MESSAGE
from src.api.schemas.users import MessageResponse, UserResponse, UserUpdatedResponse
from src.core.exceptions import NotFoundError, StorageError, ValidationError
from src.core.logging import log_info
from src.domain.users import UserRecord, validate_user
from src.infrastructure.database.dependencies import UserRepositoryDep
from src.infrastructure.database.models import User

router = APIRouter(prefix="/users", tags=["users"])

# The whole body is taken as a loose JSON value and checked by validate_user
JsonBody = Annotated[Any, Body()]


@contextmanager
def storage_failure(message: str, event: str, **context: Any) -> Iterator[None]:  # noqa: ANN401
    """Re-raise storage failures with a client-safe, operation-specific message.

    Args:
        message: Message returned to the client, e.g. ``"Error creating user"``.
        event: Log event name of the failure.
        **context: Extra log context (such as the user id).

    Raises:
        StorageError: With ``message`` and the original driver error as cause.
    """
    try:
        yield
    except StorageError as exc:
        raise StorageError(
            message, context={"event": event, **context}, cause=exc.cause
        ) from exc


def _validated(payload: Any, event: str, **context: Any) -> UserRecord:  # noqa: ANN401
    result = validate_user(payload)
    if not result.valid or result.record is None:
        raise ValidationError(
            VALIDATION_FAILED_MESSAGE,
            errors=result.errors,
            context={"event": event, **context},
        )
    return result.record


def _not_found(event: str, user_id: str) -> NotFoundError:
    return NotFoundError(NOT_FOUND_MESSAGE, context={"event": event, "id": user_id})


@router.get("")
async def list_users(repository: UserRepositoryDep) -> list[UserResponse]:
    """List every user record."""
    with storage_failure("Unable to list users", "LIST_USERS_ERROR"):
        users = await repository.get_all()

    log_info(status.HTTP_200_OK, "Listing users", event="LIST_USERS", count=len(users))
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}")
async def get_user(user_id: str, repository: UserRepositoryDep) -> UserResponse:
    """Fetch one user record by id.

    Raises:
        NotFoundError: If no record has this id.
    """
    with storage_failure("Error fetching user", "GET_USER_ERROR", id=user_id):
        user = await repository.get_by_id(user_id)

    if user is None:
        raise _not_found("GET_USER_NOT_FOUND", user_id)

    log_info(status.HTTP_200_OK, "User fetched", event="GET_USER", id=user_id)
    return UserResponse.model_validate(user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    repository: UserRepositoryDep, payload: JsonBody = None
) -> UserResponse:
    """Validate and store a new user record.

    Raises:
        ValidationError: If the payload breaks any field rule.
    """
    record = _validated(payload, "CREATE_USER_VALIDATION_FAILED")

    with storage_failure("Error creating user", "CREATE_USER_ERROR"):
        user = await repository.create(User(**record.model_dump()))

    log_info(status.HTTP_201_CREATED, "User created", event="CREATE_USER", id=user.id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}")
async def update_user(
    user_id: str, repository: UserRepositoryDep, payload: JsonBody = None
) -> UserUpdatedResponse:
    """Replace the fields of an existing user record.

    Validation runs before the existence check, so an invalid payload for an
    unknown id is reported as a validation failure.

    Raises:
        ValidationError: If the payload breaks any field rule.
        NotFoundError: If no record has this id.
    """
    record = _validated(payload, "UPDATE_USER_VALIDATION_FAILED", id=user_id)

    with storage_failure("Error updating user", "UPDATE_USER_ERROR", id=user_id):
        user = await repository.update(user_id, record.model_dump())

    if user is None:
        raise _not_found("UPDATE_USER_NOT_FOUND", user_id)

    log_info(status.HTTP_200_OK, "User updated", event="UPDATE_USER", id=user_id)
    return UserUpdatedResponse(
        message="User updated", user=UserResponse.model_validate(user)
    )


@router.delete("/{user_id}")
async def delete_user(user_id: str, repository: UserRepositoryDep) -> MessageResponse:
    """Delete a user record.

    Raises:
        NotFoundError: If no record has this id.
    """
    with storage_failure("Error deleting user", "DELETE_USER_ERROR", id=user_id):
        deleted = await repository.delete(user_id)

    if not deleted:
        raise _not_found("DELETE_USER_NOT_FOUND", user_id)

    log_info(status.HTTP_200_OK, "User deleted", event="DELETE_USER", id=user_id)
    return MessageResponse(message="User deleted")
