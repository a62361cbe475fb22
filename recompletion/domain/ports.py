"""Port protocols decoupling the recompletion core from the host platform."""

from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from recompletion.domain.types import CompletionRecord, Learner


@runtime_checkable
class ConfigStore(Protocol):
    """Name/value settings per course."""

    def get_course_config(self, course_id: int) -> Dict[str, str]:
        """Return every persisted setting for the course; empty when none exist."""
        ...

    def save_course_config(self, course_id: int, values: Dict[str, str]) -> None:
        """Replace the course's settings with ``values``."""
        ...

    def set_course_setting(self, course_id: int, name: str, value: str) -> None:
        ...

    def get_configured_course_ids(self) -> List[int]:
        """Courses whose recompletion type is set to something other than disabled."""
        ...


@runtime_checkable
class LogStore(Protocol):
    def has_entry(self, course_id: int, user_id: int, action: str, since: int = 0) -> bool:
        """True when an entry for the action exists with ``time >= since``."""
        ...

    def add_entry(self, course_id: int, user_id: int, action: str, time: int) -> None:
        ...


@runtime_checkable
class CompletionStore(Protocol):
    def get_completed(self, course_id: int) -> List[CompletionRecord]:
        """Completion records of the course with a non-null completion time."""
        ...

    def get_completion(self, user_id: int, course_id: int) -> Optional[CompletionRecord]:
        ...

    def is_complete(self, user_id: int, course_id: int) -> bool:
        ...

    def mark_complete(self, user_id: int, course_id: int, time_completed: int) -> None:
        ...

    def reset_completion(self, user_id: int, course_id: int) -> None:
        """Clear the completion time and flag the record for re-aggregation."""
        ...


@runtime_checkable
class EnrolmentStore(Protocol):
    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        ...

    def unenrol_user(self, user_id: int, course_id: int) -> None:
        """Remove the user from every enrolment instance of the course."""
        ...


@runtime_checkable
class EmailSender(Protocol):
    def send_email(self, learner: Learner, course_id: int, subject: str, body: str) -> None:
        """Deliver a message; placeholders in subject and body are filled by the sender."""
        ...


@runtime_checkable
class GradeStore(Protocol):
    def delete_grades(self, user_id: int, course_id: int) -> int:
        ...


@runtime_checkable
class ArchiveStore(Protocol):
    def archive_completion(self, record: CompletionRecord, time_archived: int) -> None:
        ...

    def archive_grades(self, user_id: int, course_id: int, time_archived: int) -> int:
        ...

    def get_archived_completions(self, course_id: int) -> Iterable[dict]:
        ...
