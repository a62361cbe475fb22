"""Domain errors raised by the recompletion core."""


class RecompletionError(Exception):
    """Base class for recompletion errors."""


class ScheduleParseError(RecompletionError, ValueError):
    """A schedule expression could not be resolved to a point in time."""

    def __init__(self, expression):
        super().__init__(f"Unable to parse schedule expression: {expression!r}")
        self.expression = expression


class ConfigurationError(RecompletionError):
    """A course configuration value is invalid."""

    def __init__(self, field, message):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotEnrolledError(RecompletionError):
    """A manual operation targeted a user who is not enrolled in the course."""

    def __init__(self, user_id, course_id):
        super().__init__(f"User {user_id} is not enrolled in course {course_id}")
        self.user_id = user_id
        self.course_id = course_id
