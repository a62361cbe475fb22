import pytest

from recompletion.domain.config import CourseRecompletionConfig
from recompletion.domain.types import CompletionRecord, Learner
from recompletion.utils.handlers import HandlerRegistry, ResetContext, ResetHandler, default_registry

from conftest import NOW, FakeArchiveStore, FakeGradeStore


class RecordingHandler(ResetHandler):
    name = 'recording'

    def __init__(self):
        self.calls = []

    def before_reset(self, context):
        self.calls.append(('before', context.user_id))

    def on_reset(self, context):
        self.calls.append(('on', context.user_id))


def context(**config):
    record = CompletionRecord(course_id=1, learner=Learner(9, 'learner9@example.com'), time_completed=NOW)
    return ResetContext(course_id=1, record=record, config=CourseRecompletionConfig(course_id=1, **config), now=NOW)


def test_registry_runs_enabled_handlers():
    registry = HandlerRegistry()
    handler = registry.register(RecordingHandler())

    registry.before_reset(context())
    registry.on_reset(context())

    assert handler.calls == [('before', 9), ('on', 9)]
    assert len(registry) == 1


def test_duplicate_names_are_refused():
    registry = HandlerRegistry()
    registry.register(RecordingHandler())
    with pytest.raises(ValueError):
        registry.register(RecordingHandler())


def test_default_handlers_are_skipped_when_disabled():
    archive, grades = FakeArchiveStore(), FakeGradeStore()
    registry = default_registry(archive, grades)

    registry.before_reset(context())
    registry.on_reset(context())
    assert archive.completions == [] and grades.deleted == []

    enabled = context(archive_completion_data=True, delete_grade_data=True)
    registry.before_reset(enabled)
    registry.on_reset(enabled)
    assert len(archive.completions) == 1
    assert grades.deleted == [(9, 1)]
