import logging
import re

from flask_mail import Mail, Message

from recompletion.database.database import db
from recompletion.domain.types import Learner
from recompletion.models.course import Course

logger = logging.getLogger(__name__)

_TAGS = re.compile(r'<[^>]+>')


def fill_placeholders(text, values):
    """
    Replace ``{$a->name}`` placeholders. Unknown placeholders are left as-is.
    """
    for name, value in values.items():
        text = text.replace('{$a->%s}' % name, str(value))
    return text


class FlaskMailSender:
    def __init__(self, mail: Mail, site_url=''):
        self.mail = mail
        self.site_url = site_url.rstrip('/')

    def placeholders(self, learner: Learner, course_id: int):
        course = db.session.get(Course, course_id)
        return {
            'fullname': learner.fullname or learner.email,
            'coursename': course.fullname if course else '',
            'courseshortname': course.shortname if course else '',
            'link': f"{self.site_url}/course/{course_id}",
        }

    def send_email(self, learner: Learner, course_id: int, subject: str, body: str):
        values = self.placeholders(learner, course_id)
        html = fill_placeholders(body or '', values)
        msg = Message(
            subject=fill_placeholders(subject or '', values),
            recipients=[learner.email],
            body=_TAGS.sub('', html),
            html=html,
        )
        self.mail.send(msg)
        logger.debug("Sent %r to %s", msg.subject, learner.email)
