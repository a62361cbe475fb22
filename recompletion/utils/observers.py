import logging

from flask import current_app

from recompletion.signals import user_unenrolled
from recompletion.utils.task import build_reconciler

logger = logging.getLogger(__name__)


def on_user_unenrolled(sender, course_id, user_id, **extra):
    """Reset the completion of an unenrolled user when the course asks for it."""
    reconciler = build_reconciler(current_app._get_current_object())
    if reconciler.reset_on_unenrol(course_id, user_id):
        logger.info("Reset completion of unenrolled user %s in course %s", user_id, course_id)


def connect_observers():
    user_unenrolled.connect(on_user_unenrolled)
