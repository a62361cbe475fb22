"""SQLAlchemy implementations of the recompletion store ports."""

import functools
import time

from recompletion.database.database import db
from recompletion.domain.types import CompletionRecord, Learner
from recompletion.models.archive import CompletionArchive, GradeArchive
from recompletion.models.auth import User
from recompletion.models.config import RecompletionConfig
from recompletion.models.course import CourseCompletion, Enrolment, GradeRecord
from recompletion.models.reminders import RecompletionLog
from recompletion.signals import user_unenrolled


def transactional(method):
    """Commit after the wrapped store method, roll back if it raises."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            result = method(self, *args, **kwargs)
            self.session.commit()
            return result
        except Exception:
            self.session.rollback()
            raise
    return wrapper


def to_learner(user):
    return Learner(id=user.id, email=user.email, fullname=user.fullname)


def to_record(completion):
    return CompletionRecord(
        course_id=completion.course_id,
        learner=to_learner(completion.user),
        time_completed=completion.time_completed,
        time_enrolled=completion.time_enrolled,
        time_started=completion.time_started,
    )


class SqlAlchemyConfigStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def get_course_config(self, course_id):
        rows = RecompletionConfig.query.filter_by(course_id=course_id).all()
        return {row.name: row.value for row in rows}

    @transactional
    def save_course_config(self, course_id, values):
        RecompletionConfig.query.filter_by(course_id=course_id).delete()
        for name, value in values.items():
            self.session.add(RecompletionConfig(course_id=course_id, name=name, value=str(value)))

    @transactional
    def set_course_setting(self, course_id, name, value):
        row = RecompletionConfig.query.filter_by(course_id=course_id, name=name).first()
        if row:
            row.value = str(value)
        else:
            self.session.add(RecompletionConfig(course_id=course_id, name=name, value=str(value)))

    def get_configured_course_ids(self):
        rows = self.session.query(RecompletionConfig.course_id).filter(
            RecompletionConfig.name == 'recompletiontype',
            RecompletionConfig.value != '',
        ).distinct().order_by(RecompletionConfig.course_id).all()
        return [row.course_id for row in rows]


class SqlAlchemyLogStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def has_entry(self, course_id, user_id, action, since=0):
        return RecompletionLog.query.filter(
            RecompletionLog.course_id == course_id,
            RecompletionLog.user_id == user_id,
            RecompletionLog.action == action,
            RecompletionLog.time >= (since or 0),
        ).first() is not None

    @transactional
    def add_entry(self, course_id, user_id, action, time):
        self.session.add(RecompletionLog(course_id=course_id, user_id=user_id, action=action, time=time))


class SqlAlchemyCompletionStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def _get(self, user_id, course_id):
        return CourseCompletion.query.filter_by(user_id=user_id, course_id=course_id).first()

    def get_completed(self, course_id):
        completions = CourseCompletion.query.filter(
            CourseCompletion.course_id == course_id,
            CourseCompletion.time_completed.isnot(None),
        ).order_by(CourseCompletion.user_id).all()
        return [to_record(c) for c in completions]

    def get_completion(self, user_id, course_id):
        completion = self._get(user_id, course_id)
        return to_record(completion) if completion else None

    def is_complete(self, user_id, course_id):
        completion = self._get(user_id, course_id)
        return bool(completion and completion.time_completed is not None)

    @transactional
    def mark_complete(self, user_id, course_id, time_completed):
        completion = self._get(user_id, course_id)
        if completion is None:
            completion = CourseCompletion(user_id=user_id, course_id=course_id, time_enrolled=time_completed)
            self.session.add(completion)
        elif completion.time_completed is not None:
            # Already complete, the completion time is kept.
            return
        completion.time_completed = time_completed
        completion.reaggregate = 0

    @transactional
    def reset_completion(self, user_id, course_id):
        completion = self._get(user_id, course_id)
        if completion is None:
            return
        completion.time_completed = None
        completion.time_started = None
        completion.reaggregate = int(time.time())


class SqlAlchemyEnrolmentStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def is_enrolled(self, user_id, course_id):
        return Enrolment.query.filter_by(user_id=user_id, course_id=course_id, active=True).first() is not None

    @transactional
    def enrol_user(self, user_id, course_id, method='manual'):
        enrolment = Enrolment.query.filter_by(user_id=user_id, course_id=course_id, method=method).first()
        if enrolment is None:
            enrolment = Enrolment(user_id=user_id, course_id=course_id, method=method,
                                  time_enrolled=int(time.time()))
            self.session.add(enrolment)
        enrolment.active = True
        return enrolment

    def unenrol_user(self, user_id, course_id):
        removed = self._remove_enrolments(user_id, course_id)
        if removed:
            user_unenrolled.send(self, course_id=course_id, user_id=user_id)

    @transactional
    def _remove_enrolments(self, user_id, course_id):
        return Enrolment.query.filter_by(user_id=user_id, course_id=course_id).delete()


class SqlAlchemyGradeStore:
    def __init__(self, session=None):
        self.session = session or db.session

    @transactional
    def delete_grades(self, user_id, course_id):
        return GradeRecord.query.filter_by(user_id=user_id, course_id=course_id).delete()


class SqlAlchemyArchiveStore:
    def __init__(self, session=None):
        self.session = session or db.session

    @transactional
    def archive_completion(self, record, time_archived):
        self.session.add(CompletionArchive(
            course_id=record.course_id,
            user_id=record.learner.id,
            time_enrolled=record.time_enrolled,
            time_started=record.time_started,
            time_completed=record.time_completed,
            time_archived=time_archived,
        ))

    @transactional
    def archive_grades(self, user_id, course_id, time_archived):
        grades = GradeRecord.query.filter_by(user_id=user_id, course_id=course_id).all()
        for grade in grades:
            self.session.add(GradeArchive(
                course_id=course_id,
                user_id=user_id,
                item_name=grade.item_name,
                final_grade=grade.final_grade,
                time_archived=time_archived,
            ))
        return len(grades)

    def get_archived_completions(self, course_id):
        rows = self.session.query(CompletionArchive, User).join(
            User, CompletionArchive.user_id == User.id
        ).filter(
            CompletionArchive.course_id == course_id
        ).order_by(CompletionArchive.time_archived, User.id).all()

        return [{
            'user_id': user.id,
            'email': user.email,
            'fullname': user.fullname,
            'time_enrolled': archive.time_enrolled,
            'time_completed': archive.time_completed,
            'time_archived': archive.time_archived,
        } for archive, user in rows]
