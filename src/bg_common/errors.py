"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: User/Account
  2xxx: Game session / participant
  3xxx: Wire protocol
  9xxx: System

Validation outcomes (not found, wrong state, full, already joined,
insufficient funds) are raised as typed AppError subclasses; the HTTP layer
maps them to the ApiResponse envelope and the WebSocket layer to an
``error`` event.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: User/Account ---

class UserNotFoundError(AppError):
    def __init__(self, user_id: int) -> None:
        super().__init__(1001, f"User not found: {user_id}", 404)


class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            1002,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


# --- 2xxx: Game session ---

class SessionNotFoundError(AppError):
    def __init__(self, session_id: int) -> None:
        super().__init__(2001, f"Game not found: {session_id}", 404)


class InvalidSessionStateError(AppError):
    def __init__(self, session_id: int, status: str) -> None:
        super().__init__(2002, f"Game {session_id} in status {status} does not allow this", 409)


class SessionFullError(AppError):
    def __init__(self, session_id: int) -> None:
        super().__init__(2003, f"Game is full: {session_id}", 409)


class AlreadyJoinedError(AppError):
    def __init__(self, session_id: int, user_id: int) -> None:
        super().__init__(2004, f"User {user_id} already joined game {session_id}", 409)


class ParticipantNotFoundError(AppError):
    def __init__(self, participant_id: int) -> None:
        super().__init__(2005, f"Participant not found: {participant_id}", 404)


# --- 3xxx: Wire protocol ---

class InvalidMessageError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid message: {detail}", 400)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StorageError(AppError):
    def __init__(self, detail: str = "Storage unavailable") -> None:
        super().__init__(9003, detail, 503)


class TransportError(Exception):
    """Send on a closed or broken transport. Never reaches business logic."""
