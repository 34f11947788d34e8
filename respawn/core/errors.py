"""Domain error types.

Every service-level failure is a ``RespawnError`` subclass. Each class carries
the machine-readable ``code`` and the HTTP ``status_code`` the API layer
renders it with, so services never raise ``HTTPException`` themselves.
"""

from datetime import datetime
from typing import Any


class RespawnError(Exception):
    """Base class for all structured domain errors."""

    code: str = "error"
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# 400

class ValidationError(RespawnError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class InvalidCooldown(ValidationError):
    code = "invalid_cooldown"
    default_message = "Cooldown must be between 1 and 1440 minutes"


class SelfRequest(ValidationError):
    code = "self_request"
    default_message = "Cannot send friend request to yourself"


class InvalidUsername(ValidationError):
    code = "invalid_username"
    default_message = "Username must be 3-16 characters of letters, numbers and underscores"


class InvalidPassword(ValidationError):
    code = "invalid_password"
    default_message = "Password must be at least 6 characters"


# 401

class AuthenticationError(RespawnError):
    code = "authentication_failed"
    status_code = 401
    default_message = "Could not validate credentials"


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class InvalidSession(AuthenticationError):
    code = "invalid_session"
    default_message = "Invalid or expired token"


# 403

class Forbidden(RespawnError):
    code = "forbidden"
    status_code = 403
    default_message = "Operation not permitted"


class Unauthorized(Forbidden):
    code = "unauthorized"
    default_message = "Only the recipient may respond to this request"


class NotAParty(Forbidden):
    code = "not_a_party"
    default_message = "User is not part of this relationship"


class NotFriends(Forbidden):
    code = "not_friends"
    default_message = "Users are not friends"


class TargetMutedYou(Forbidden):
    code = "friend_muted_you"
    default_message = "This friend has muted you"


class TargetMutedAll(Forbidden):
    code = "user_muted_all"
    default_message = "This user has muted all notifications"


# 404

class NotFound(RespawnError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class UserNotFound(NotFound):
    code = "user_not_found"
    default_message = "User not found"


class TargetNotFound(UserNotFound):
    code = "target_not_found"
    default_message = "Target user not found"


class FriendshipNotFound(NotFound):
    code = "friendship_not_found"
    default_message = "Friendship not found"


class RequestNotFound(NotFound):
    code = "request_not_found"
    default_message = "Friend request not found"


# 409

class Conflict(RespawnError):
    code = "conflict"
    status_code = 409
    default_message = "Conflict"


class InvalidState(Conflict):
    code = "invalid_state"
    default_message = "Friend request is not pending"


class AlreadyExists(Conflict):
    code = "already_exists"
    default_message = "Resource already exists"


class UsernameTaken(AlreadyExists):
    code = "username_taken"
    default_message = "Username already taken"


class AlreadyFriends(AlreadyExists):
    code = "already_friends"
    default_message = "Already friends"


class RequestAlreadySent(AlreadyExists):
    code = "request_already_sent"
    default_message = "Friend request already sent"


class RequestAlreadyReceived(AlreadyExists):
    code = "request_already_received"
    default_message = "This user already sent you a friend request"


class RequestPreviouslyRejected(Conflict):
    code = "request_previously_rejected"
    default_message = "A previous friend request between these users was rejected"


class TriggerInProgress(Conflict):
    code = "trigger_in_progress"
    default_message = "Operation in progress. Please wait and retry."


# 429

class RateLimited(RespawnError):
    code = "rate_limited"
    status_code = 429
    default_message = "Rate limited"


class CooldownActive(RateLimited):
    """The only retryable rejection: the client may try again at ``available_at``."""

    code = "cooldown_active"
    default_message = "Cooldown active"

    def __init__(self, available_at: datetime, message: str | None = None):
        self.available_at = available_at
        super().__init__(message, details={"available_at": available_at.isoformat()})
