class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the timetable engine cannot work with the request it was given."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class InvalidGenerationInputError(SchedulerError):
    """Raised when the course assignment payload is not a list of records."""
    def __init__(self, received_type: str):
        super().__init__(
            "course_assignments must be a list of course records",
            details={"received_type": received_type},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
