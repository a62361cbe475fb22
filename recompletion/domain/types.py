"""Plain records exchanged between the reconciler and its stores."""

from dataclasses import dataclass
from typing import Optional


# Log actions
ACTION_REMINDER = 'reminder'
ACTION_RESET = 'reset'


@dataclass(frozen=True)
class Learner:
    id: int
    email: str
    fullname: str = ''


@dataclass(frozen=True)
class CompletionRecord:
    course_id: int
    learner: Learner
    time_completed: Optional[int]
    time_enrolled: Optional[int] = None
    time_started: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return self.time_completed is not None


@dataclass
class RunSummary:
    courses: int = 0
    reminders: int = 0
    resets: int = 0
    failures: int = 0
    skipped_courses: int = 0
