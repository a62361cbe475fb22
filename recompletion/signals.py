from blinker import Namespace

_signals = Namespace()

# Sent by the enrolment store after a user lost every enrolment in a course.
# Receivers get ``course_id`` and ``user_id`` keyword arguments.
user_unenrolled = _signals.signal('user-unenrolled')
