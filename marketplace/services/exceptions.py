class ServiceError(Exception):
    """Base class for service layer errors."""

    def __init__(self, message="An internal service error occurred.", status_code=500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(ServiceError):
    """Missing counterpart id, unknown role and similar malformed requests."""

    def __init__(self, message="Invalid input."):
        super().__init__(message, status_code=400)


class ConversationNotFoundError(ServiceError):
    def __init__(self, message="Conversation not found."):
        super().__init__(message, status_code=404)


class UserNotFoundError(ServiceError):
    def __init__(self, message="User not found."):
        super().__init__(message, status_code=404)


class MissionNotFoundError(ServiceError):
    def __init__(self, message="Mission not found."):
        super().__init__(message, status_code=404)


class ContractNotFoundError(ServiceError):
    def __init__(self, message="Contract not found."):
        super().__init__(message, status_code=404)


class NotAuthorizedError(ServiceError):
    def __init__(self, message="User not authorized for this action."):
        super().__init__(message, status_code=403)


class BusinessRuleError(ServiceError):
    """For violations of specific business rules (e.g., contract already declined)."""

    def __init__(self, message="Action violates business rules."):
        super().__init__(message, status_code=400)


class ContractValidationError(BusinessRuleError):
    """Blank required contract fields, reported all at once."""

    def __init__(
        self,
        missing_fields: list[str],
        field_errors: dict[str, str],
        message="Contract validation failed",
    ):
        self.missing_fields = missing_fields
        self.field_errors = field_errors
        super().__init__(message)


class ConflictError(ServiceError):
    """For data conflicts that cannot be recovered internally."""

    def __init__(self, message="Operation conflicts with existing state."):
        super().__init__(message, status_code=409)


class DatabaseError(ServiceError):
    """For general database errors during service operations."""

    def __init__(self, message="A database error occurred."):
        super().__init__(message, status_code=500)
