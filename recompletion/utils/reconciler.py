"""
Recompletion job.

For every course with recompletion enabled, learners whose completion is
about to expire get one reminder per completion cycle and learners whose
completion has expired are reset. Each course and each learner is processed
in isolation: a failure is logged and the run moves on.
"""

import logging
import time

from recompletion.domain.config import (
    PluginDefaults,
    RECOMPLETION_TYPE_ONDEMAND,
    RECOMPLETION_TYPE_PERIOD,
    RECOMPLETION_TYPE_SCHEDULE,
)
from recompletion.domain.errors import ConfigurationError, NotEnrolledError
from recompletion.domain.ports import CompletionStore, ConfigStore, EmailSender, EnrolmentStore, LogStore
from recompletion.domain.types import ACTION_REMINDER, ACTION_RESET, RunSummary
from recompletion.utils.config_resolver import resolve_config
from recompletion.utils.handlers import HandlerRegistry, ResetContext
from recompletion.utils.schedule import parse_schedule

logger = logging.getLogger(__name__)


class RecompletionReconciler:

    def __init__(self, config_store: ConfigStore, log_store: LogStore,
                 completion_store: CompletionStore, enrolment_store: EnrolmentStore,
                 email_sender: EmailSender, defaults: PluginDefaults, handlers: HandlerRegistry = None):
        self.config_store = config_store
        self.log_store = log_store
        self.completion_store = completion_store
        self.enrolment_store = enrolment_store
        self.email_sender = email_sender
        self.defaults = defaults
        self.handlers = handlers if handlers is not None else HandlerRegistry()

    def execute(self):
        """Scheduled task entry point."""
        return self.run(int(time.time()))

    def run(self, now: int) -> RunSummary:
        summary = RunSummary()
        for course_id in self.config_store.get_configured_course_ids():
            try:
                self.process_course(course_id, now, summary)
            except Exception:
                summary.failures += 1
                logger.exception("Recompletion failed for course %s", course_id)

        logger.info(
            "Recompletion run finished: %d course(s), %d reminder(s), %d reset(s), %d failure(s)",
            summary.courses, summary.reminders, summary.resets, summary.failures,
        )
        return summary

    def process_course(self, course_id, now, summary):
        config = resolve_config(self.config_store, course_id, self.defaults)
        if not config.is_enabled:
            return
        if config.recompletion_type == RECOMPLETION_TYPE_ONDEMAND:
            logger.debug("Course %s uses on-demand recompletion, nothing to do", course_id)
            return

        scheduled = 0
        if config.recompletion_type == RECOMPLETION_TYPE_PERIOD:
            if config.recompletion_duration <= 0:
                logger.warning("Skipping course %s: recompletion duration is not set", course_id)
                summary.skipped_courses += 1
                return

            def reset_time(record):
                return record.time_completed + config.recompletion_duration

        elif config.recompletion_type == RECOMPLETION_TYPE_SCHEDULE:
            scheduled = parse_schedule(config.recompletion_schedule, now)
            if not scheduled:
                logger.warning("Skipping course %s: unable to parse schedule %r",
                               course_id, config.recompletion_schedule)
                summary.skipped_courses += 1
                return
            next_reset = config.next_reset_time
            if not next_reset:
                next_reset = scheduled
                self.config_store.set_course_setting(course_id, 'nextresettime', str(next_reset))

            def reset_time(record):
                return next_reset

        else:
            logger.warning("Skipping course %s: unknown recompletion type %r",
                           course_id, config.recompletion_type)
            summary.skipped_courses += 1
            return

        summary.courses += 1
        logger.info("Checking recompletion for course %s (%s)", course_id, config.recompletion_type)

        failed = 0
        for record in self.completion_store.get_completed(course_id):
            if not record.is_complete:
                continue
            user_id = record.learner.id
            try:
                due = reset_time(record)
                # Completed after the scheduled reset point: belongs to the next cycle
                if record.time_completed >= due and config.recompletion_type == RECOMPLETION_TYPE_SCHEDULE:
                    continue
                if not self.enrolment_store.is_enrolled(user_id, course_id):
                    continue

                if now >= due:
                    self.reset_user(config, record, now)
                    summary.resets += 1
                elif self.reminder_due(config, due, now):
                    if self.send_reminder(config, record, now):
                        summary.reminders += 1
            except Exception:
                failed += 1
                summary.failures += 1
                logger.exception("Recompletion failed for user %s in course %s", user_id, course_id)

        if config.recompletion_type == RECOMPLETION_TYPE_SCHEDULE and now >= next_reset:
            if failed:
                # Keep the reset point so the failed learners are still due next run
                logger.warning("Not advancing next reset time of course %s: %d reset(s) failed",
                               course_id, failed)
                return
            if scheduled <= now:
                logger.warning("Schedule %r for course %s does not resolve to a future time",
                               config.recompletion_schedule, course_id)
            self.config_store.set_course_setting(course_id, 'nextresettime', str(scheduled))

    @staticmethod
    def reminder_due(config, reset_time, now):
        """The reminder window opens reminder_days before the reset, inclusive."""
        return config.reminder_enable and now >= reset_time - config.reminder_days

    def send_reminder(self, config, record, now):
        """
        Send the reminder email unless one was already sent during the
        learner's current completion cycle. Returns True when sent.
        """
        course_id = config.course_id
        user_id = record.learner.id
        if self.log_store.has_entry(course_id, user_id, ACTION_REMINDER, since=record.time_completed):
            return False

        self.email_sender.send_email(record.learner, course_id, config.reminder_subject, config.reminder_body)
        self.log_store.add_entry(course_id, user_id, ACTION_REMINDER, now)
        logger.info("Sent recompletion reminder to user %s for course %s", user_id, course_id)
        return True

    def reset_user(self, config, record, now, unenrol=True, notify=True):
        """
        Reset one learner's completion and apply the course's reset actions.

        The reset email goes out before anything is changed. If un-enrolment
        fails the completion is restored, so a learner whose reset did not go
        through is still due on the next run.
        """
        course_id = config.course_id
        user_id = record.learner.id
        context = ResetContext(course_id=course_id, record=record, config=config, now=now)

        if notify and config.email_enable:
            self.email_sender.send_email(record.learner, course_id, config.email_subject, config.email_body)

        self.handlers.before_reset(context)
        self.completion_store.reset_completion(user_id, course_id)
        self.handlers.on_reset(context)

        if unenrol and config.unenrol_enable:
            try:
                self.enrolment_store.unenrol_user(user_id, course_id)
            except Exception:
                self.completion_store.mark_complete(user_id, course_id, record.time_completed)
                raise
        self.log_store.add_entry(course_id, user_id, ACTION_RESET, now)
        logger.info("Reset completion of user %s in course %s", user_id, course_id)

    def reset_users(self, course_id, user_ids, now=None):
        """
        Reset the given learners now, whatever the course's due dates.
        Learners without a completion are left alone. Returns the number reset.
        """
        now = int(time.time()) if now is None else now
        config = resolve_config(self.config_store, course_id, self.defaults)
        if not config.is_enabled:
            raise ConfigurationError('recompletiontype', 'Recompletion is disabled for this course')
        for user_id in user_ids:
            if not self.enrolment_store.is_enrolled(user_id, course_id):
                raise NotEnrolledError(user_id, course_id)

        count = 0
        for user_id in user_ids:
            record = self.completion_store.get_completion(user_id, course_id)
            if record is None or not record.is_complete:
                continue
            self.reset_user(config, record, now)
            count += 1
        return count

    def reset_on_unenrol(self, course_id, user_id, now=None):
        """Reset a learner who was unenrolled, when the course asks for it."""
        now = int(time.time()) if now is None else now
        config = resolve_config(self.config_store, course_id, self.defaults)
        if not config.is_enabled or not config.reset_unenrol_user:
            return False
        record = self.completion_store.get_completion(user_id, course_id)
        if record is None or not record.is_complete:
            return False
        self.reset_user(config, record, now, unenrol=False, notify=False)
        return True


def update_course_completion(completion_store, course_id, user_ids, time_completed):
    """
    Set the completion time of each user. A completed record is cleared first
    so that marking it complete takes the new time.
    """
    for user_id in user_ids:
        if completion_store.is_complete(user_id, course_id):
            completion_store.reset_completion(user_id, course_id)
        completion_store.mark_complete(user_id, course_id, time_completed)
