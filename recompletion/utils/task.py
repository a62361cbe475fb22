from recompletion.database.database import db
from recompletion.domain.config import PluginDefaults
from recompletion.infrastructure.mailer import FlaskMailSender
from recompletion.infrastructure.stores import (
    SqlAlchemyArchiveStore,
    SqlAlchemyCompletionStore,
    SqlAlchemyConfigStore,
    SqlAlchemyEnrolmentStore,
    SqlAlchemyGradeStore,
    SqlAlchemyLogStore,
)
from recompletion.utils.handlers import default_registry
from recompletion.utils.reconciler import RecompletionReconciler


def build_reconciler(app):
    """
    Wire a reconciler to the application's database and mail extension.
    Must be called inside an application context.
    """
    session = db.session
    return RecompletionReconciler(
        config_store=SqlAlchemyConfigStore(session),
        log_store=SqlAlchemyLogStore(session),
        completion_store=SqlAlchemyCompletionStore(session),
        enrolment_store=SqlAlchemyEnrolmentStore(session),
        email_sender=FlaskMailSender(app.extensions['mail'], app.config.get('SITE_URL', '')),
        defaults=PluginDefaults.from_mapping(app.config),
        handlers=default_registry(SqlAlchemyArchiveStore(session), SqlAlchemyGradeStore(session)),
    )


class CheckRecompletionTask:
    """Scheduled task: check every course for due reminders and resets."""

    def __init__(self, app):
        self.app = app

    def execute(self, now=None):
        with self.app.app_context():
            reconciler = build_reconciler(self.app)
            if now is None:
                return reconciler.execute()
            return reconciler.run(now)
