"""
Data handlers run when a learner's completion is reset.

Handlers are registered explicitly on a HandlerRegistry. ``before_reset``
runs while the completion record is still intact, ``on_reset`` after it has
been cleared.
"""

import logging
from dataclasses import dataclass

from recompletion.domain.config import CourseRecompletionConfig
from recompletion.domain.types import CompletionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetContext:
    course_id: int
    record: CompletionRecord
    config: CourseRecompletionConfig
    now: int

    @property
    def user_id(self):
        return self.record.learner.id


class ResetHandler:
    name = None

    def is_enabled(self, config):
        return True

    def before_reset(self, context):
        pass

    def on_reset(self, context):
        pass


class ArchiveCompletionHandler(ResetHandler):
    """Copy the completion record and grades to the archive tables."""

    name = 'archivecompletiondata'

    def __init__(self, archive_store):
        self.archive_store = archive_store

    def is_enabled(self, config):
        return config.archive_completion_data

    def before_reset(self, context):
        self.archive_store.archive_completion(context.record, context.now)
        count = self.archive_store.archive_grades(context.user_id, context.course_id, context.now)
        logger.debug("Archived completion and %d grade(s) for user %s in course %s",
                     count, context.user_id, context.course_id)


class DeleteGradeDataHandler(ResetHandler):
    name = 'deletegradedata'

    def __init__(self, grade_store):
        self.grade_store = grade_store

    def is_enabled(self, config):
        return config.delete_grade_data

    def on_reset(self, context):
        count = self.grade_store.delete_grades(context.user_id, context.course_id)
        logger.debug("Deleted %d grade(s) for user %s in course %s",
                     count, context.user_id, context.course_id)


class HandlerRegistry:
    def __init__(self):
        self._handlers = []

    def register(self, handler):
        if any(h.name == handler.name for h in self._handlers):
            raise ValueError(f"Handler already registered: {handler.name}")
        self._handlers.append(handler)
        return handler

    def __iter__(self):
        return iter(self._handlers)

    def __len__(self):
        return len(self._handlers)

    def enabled(self, config):
        return [h for h in self._handlers if h.is_enabled(config)]

    def before_reset(self, context):
        for handler in self.enabled(context.config):
            handler.before_reset(context)

    def on_reset(self, context):
        for handler in self.enabled(context.config):
            handler.on_reset(context)


def default_registry(archive_store, grade_store):
    """Registry with the built-in archive and grade deletion handlers."""
    registry = HandlerRegistry()
    registry.register(ArchiveCompletionHandler(archive_store))
    registry.register(DeleteGradeDataHandler(grade_store))
    return registry
