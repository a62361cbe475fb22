import os
import time

import pytest

# Set test environment variables
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from recompletion.domain.config import DAYSECS, PluginDefaults
from recompletion.domain.types import CompletionRecord, Learner
from recompletion.utils.handlers import default_registry
from recompletion.utils.reconciler import RecompletionReconciler

NOW = 1_800_000_000


class FakeConfigStore:
    def __init__(self):
        self.rows = {}

    def get_course_config(self, course_id):
        return dict(self.rows.get(course_id, {}))

    def save_course_config(self, course_id, values):
        self.rows[course_id] = {k: str(v) for k, v in values.items()}

    def set_course_setting(self, course_id, name, value):
        self.rows.setdefault(course_id, {})[name] = str(value)

    def get_configured_course_ids(self):
        return sorted(c for c, rows in self.rows.items() if rows.get('recompletiontype'))


class FakeLogStore:
    def __init__(self):
        self.entries = []

    def has_entry(self, course_id, user_id, action, since=0):
        return any(
            c == course_id and u == user_id and a == action and t >= (since or 0)
            for c, u, a, t in self.entries
        )

    def add_entry(self, course_id, user_id, action, time):
        self.entries.append((course_id, user_id, action, time))


class FakeCompletionStore:
    def __init__(self):
        self.records = {}
        self.resets = []
        self.fail_resets = 0

    def add(self, course_id, learner, time_completed):
        self.records[(learner.id, course_id)] = CompletionRecord(course_id, learner, time_completed)

    def get_completed(self, course_id):
        return [r for (u, c), r in sorted(self.records.items()) if c == course_id and r.is_complete]

    def get_completion(self, user_id, course_id):
        return self.records.get((user_id, course_id))

    def is_complete(self, user_id, course_id):
        record = self.records.get((user_id, course_id))
        return bool(record and record.is_complete)

    def mark_complete(self, user_id, course_id, time_completed):
        record = self.records.get((user_id, course_id))
        if record and record.is_complete:
            return
        learner = record.learner if record else Learner(user_id, f'user{user_id}@example.com')
        self.records[(user_id, course_id)] = CompletionRecord(course_id, learner, time_completed)

    def reset_completion(self, user_id, course_id):
        if self.fail_resets:
            self.fail_resets -= 1
            raise RuntimeError('completion update failed')
        record = self.records[(user_id, course_id)]
        self.records[(user_id, course_id)] = CompletionRecord(course_id, record.learner, None)
        self.resets.append((user_id, course_id))


class FakeEnrolmentStore:
    def __init__(self):
        self.enrolled = set()
        self.fail_unenrols = 0

    def enrol(self, user_id, course_id):
        self.enrolled.add((user_id, course_id))

    def is_enrolled(self, user_id, course_id):
        return (user_id, course_id) in self.enrolled

    def unenrol_user(self, user_id, course_id):
        if self.fail_unenrols:
            self.fail_unenrols -= 1
            raise RuntimeError('enrolment plugin unavailable')
        self.enrolled.discard((user_id, course_id))


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send_email(self, learner, course_id, subject, body):
        if learner.email in self.fail_for:
            raise RuntimeError(f"SMTP rejected {learner.email}")
        self.sent.append({'to': learner.email, 'course_id': course_id, 'subject': subject, 'body': body})


class FakeGradeStore:
    def __init__(self):
        self.deleted = []

    def delete_grades(self, user_id, course_id):
        self.deleted.append((user_id, course_id))
        return 1


class FakeArchiveStore:
    def __init__(self):
        self.completions = []
        self.grades = []

    def archive_completion(self, record, time_archived):
        self.completions.append((record, time_archived))

    def archive_grades(self, user_id, course_id, time_archived):
        self.grades.append((user_id, course_id, time_archived))
        return 0

    def get_archived_completions(self, course_id):
        return [r for r, _ in self.completions if r.course_id == course_id]


class Stores:
    def __init__(self):
        self.config = FakeConfigStore()
        self.log = FakeLogStore()
        self.completion = FakeCompletionStore()
        self.enrolment = FakeEnrolmentStore()
        self.email = FakeEmailSender()
        self.grades = FakeGradeStore()
        self.archive = FakeArchiveStore()

    def learner(self, user_id, course_id, time_completed=None, enrolled=True):
        learner = Learner(user_id, f'user{user_id}@example.com', f'User {user_id}')
        self.completion.add(course_id, learner, time_completed)
        if enrolled:
            self.enrolment.enrol(user_id, course_id)
        return learner

    def configure(self, course_id, **settings):
        rows = {
            'recompletiontype': 'period',
            'recompletionduration': 365 * DAYSECS,
            'recompletionemailenable': 0,
            'reminderemailenable': 0,
            'recompletionunenrolenable': 0,
            'resetunenrolsuser': 0,
            'deletegradedata': 0,
            'archivecompletiondata': 0,
        }
        rows.update(settings)
        self.config.save_course_config(course_id, rows)


@pytest.fixture
def defaults():
    return PluginDefaults(archive_completion_data=False)


@pytest.fixture
def stores():
    return Stores()


@pytest.fixture
def reconciler(stores, defaults):
    return RecompletionReconciler(
        config_store=stores.config,
        log_store=stores.log,
        completion_store=stores.completion,
        enrolment_store=stores.enrolment,
        email_sender=stores.email,
        defaults=defaults,
        handlers=default_registry(stores.archive, stores.grades),
    )


@pytest.fixture
def app():
    """Application with an in-memory database, inside an app context."""
    from app import create_app
    from recompletion.database.database import db

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SCHEDULER_ENABLED': False,
        'MAIL_SUPPRESS_SEND': True,
        'MAIL_DEFAULT_SENDER': 'noreply@example.com',
        'SITE_URL': 'https://lms.example.com',
        'SECRET_KEY': 'test',
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    """Create host records (users, courses, enrolments, completions)."""
    from werkzeug.security import generate_password_hash

    from recompletion.database.database import db
    from recompletion.infrastructure.stores import SqlAlchemyCompletionStore, SqlAlchemyEnrolmentStore
    from recompletion.models.auth import User
    from recompletion.models.config import RecompletionConfig
    from recompletion.models.course import Course

    class Factory:
        def __init__(self):
            self.count = 0

        def user(self, is_admin=False, password=None):
            self.count += 1
            user = User(
                email=f'learner{self.count}@example.com',
                firstname='Learner',
                lastname=str(self.count),
                is_admin=is_admin,
                password_hash=generate_password_hash(password) if password else '',
            )
            db.session.add(user)
            db.session.commit()
            return user

        def course(self, shortname=None):
            self.count += 1
            course = Course(fullname=f'Course {self.count}', shortname=shortname or f'C{self.count}')
            db.session.add(course)
            db.session.commit()
            return course

        def enrol(self, user, course, method='self'):
            SqlAlchemyEnrolmentStore().enrol_user(user.id, course.id, method=method)

        def complete(self, user, course, when):
            SqlAlchemyCompletionStore().mark_complete(user.id, course.id, when)

        def recompletion(self, course, config=None):
            """Replace the course's settings, scheduled type by default."""
            settings = {
                'recompletiontype': 'schedule',
                'recompletionschedule': '6 months',
                'nextresettime': int(time.time()) + 7 * DAYSECS,
                'archivecompletiondata': 0,
                'recompletionunenrolenable': 0,
                'resetunenrolsuser': 0,
                'deletegradedata': 1,
                'recompletionemailenable': 0,
                'reminderemailenable': 0,
            }
            settings.update(config or {})
            RecompletionConfig.query.filter_by(course_id=course.id).delete()
            for name, value in settings.items():
                db.session.add(RecompletionConfig(course_id=course.id, name=name, value=str(value)))
            db.session.commit()

    return Factory()
