"""Custom exception classes for the Smart Report application."""


class SmartReportException(Exception):
    """Base exception for all Smart Report specific errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class InputValidationError(SmartReportException):
    """Raised when required input is missing or malformed."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message=message, details=details)


class DuplicateSubmissionError(SmartReportException):
    """Raised when a reporter already submitted a report for the class today."""

    def __init__(self, reporter_id: str, class_id: str):
        super().__init__(
            message="You have already submitted a report for this class today",
            details="Only one report per reporter and class is accepted per day"
        )
        self.reporter_id = reporter_id
        self.class_id = class_id


class AlreadyActedError(SmartReportException):
    """Raised when a CS/CP role tries to act twice on the same report."""

    def __init__(self, report_id: str, role: str):
        super().__init__(
            message="You have already taken action on this report",
            details=f"The {role} decision for this report is already recorded"
        )
        self.report_id = report_id
        self.role = role


class CommentsRequiredError(SmartReportException):
    """Raised when a denial carries no comments."""

    def __init__(self):
        super().__init__(
            message="Comments are required when denying a report",
            details="Explain what is wrong with the report"
        )


class InvalidTransitionError(SmartReportException):
    """Raised when a report is not in a state that accepts the requested action."""

    def __init__(self, report_id: str, current_status: str, action: str):
        super().__init__(
            message=f"Report {report_id} cannot be {action} while {current_status}",
            details="Administrative review is only possible once both representatives approved"
        )
        self.report_id = report_id
        self.current_status = current_status
        self.action = action


class ItemInUseError(SmartReportException):
    """Raised when deleting a catalog entry that reports still reference."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(
            message=f"Cannot delete {kind} that is used in reports",
            details=f"{kind.capitalize()} {entity_id} is referenced by at least one report"
        )
        self.kind = kind
        self.entity_id = entity_id


class DuplicateNameError(SmartReportException):
    """Raised when a catalog entry with the same name exists."""

    def __init__(self, kind: str, name: str):
        super().__init__(
            message=f"{kind.capitalize()} with this name already exists",
            details=f"Name already taken: {name}"
        )
        self.kind = kind
        self.name = name


class ForbiddenActionError(SmartReportException):
    """Raised for wrong-role or cross-class actions."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message=message, details=details)


class ReportNotFoundError(SmartReportException):
    """Raised when a report is not found."""

    def __init__(self, report_id: str | None = None):
        message = f"Report not found: {report_id}" if report_id else "No report found for today"
        super().__init__(
            message=message,
            details="The requested report does not exist"
        )
        self.report_id = report_id


class StudentNotFoundError(SmartReportException):
    """Raised when a user has no student profile."""

    def __init__(self, user_id: str):
        super().__init__(
            message="Student not found",
            details=f"User {user_id} has no student profile"
        )
        self.user_id = user_id


class ClassNotFoundError(SmartReportException):
    """Raised when a class is not found."""

    def __init__(self, class_id: str):
        super().__init__(
            message=f"Class not found: {class_id}",
            details="The requested class does not exist"
        )
        self.class_id = class_id


class ItemNotFoundError(SmartReportException):
    """Raised when a catalog item is not found."""

    def __init__(self, item_id: str):
        super().__init__(
            message=f"Item not found: {item_id}",
            details="The requested inspection item does not exist"
        )
        self.item_id = item_id


class UnauthenticatedError(SmartReportException):
    """Raised when no valid credential is presented."""

    def __init__(self, message: str = "Access denied. No token provided."):
        super().__init__(message=message)


class AccountNotActiveError(SmartReportException):
    """Raised when the authenticated account is not active."""

    def __init__(self, status: str):
        super().__init__(
            message=f"Account is {status.lower()}. Please contact administrator.",
        )
        self.status = status


class PersistenceError(SmartReportException):
    """Raised when the database gateway fails during a write."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Persistence error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The database is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error


class AggregationUnavailableError(SmartReportException):
    """Raised when a dashboard query cannot read from the database."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Aggregation unavailable during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="Statistics are temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error
