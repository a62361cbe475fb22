"""
Resolve human schedule expressions ("6 months", "next monday",
"first day of next month", "2027-01-01") to a unix timestamp.

Relative phrases are handled with ``relativedelta``; anything else is handed
to ``dateutil.parser``. Absolute dates without a time resolve to midnight.
"""

import logging
import re
import time
from datetime import datetime

from dateutil.parser import parse as parse_date
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from recompletion.domain.errors import ScheduleParseError

logger = logging.getLogger(__name__)

UNITS = {
    'sec': ('seconds', 1), 'secs': ('seconds', 1), 'second': ('seconds', 1), 'seconds': ('seconds', 1),
    'min': ('minutes', 1), 'mins': ('minutes', 1), 'minute': ('minutes', 1), 'minutes': ('minutes', 1),
    'hour': ('hours', 1), 'hours': ('hours', 1),
    'day': ('days', 1), 'days': ('days', 1),
    'week': ('weeks', 1), 'weeks': ('weeks', 1),
    'fortnight': ('weeks', 2), 'fortnights': ('weeks', 2),
    'month': ('months', 1), 'months': ('months', 1),
    'year': ('years', 1), 'years': ('years', 1),
}

WEEKDAYS = {
    'monday': MO, 'mon': MO,
    'tuesday': TU, 'tue': TU,
    'wednesday': WE, 'wed': WE,
    'thursday': TH, 'thu': TH,
    'friday': FR, 'fri': FR,
    'saturday': SA, 'sat': SA,
    'sunday': SU, 'sun': SU,
}

MIDNIGHT = relativedelta(hour=0, minute=0, second=0, microsecond=0)

_TOKEN = re.compile(r'[+-]?\d+|[a-z]+')
_RELATIVE_CHARS = re.compile(r'^[a-z0-9+\-\s,]+$')


def _unit_delta(unit, amount):
    name, factor = UNITS[unit]
    return relativedelta(**{name: amount * factor})


def _relative(text, base):
    """
    Apply a relative expression to ``base``. Returns None when the text is
    not made only of relative phrases.
    """
    if not _RELATIVE_CHARS.match(text):
        return None
    tokens = _TOKEN.findall(text)
    if not tokens:
        return None

    delta = relativedelta()
    day_of = None
    i = 0
    while i < len(tokens):
        token = tokens[i]
        following = tokens[i + 1] if i + 1 < len(tokens) else None

        if token.lstrip('+-').isdigit():
            if following not in UNITS:
                return None
            delta += _unit_delta(following, int(token))
            i += 2
        elif token in ('first', 'last') and tokens[i + 1:i + 3] == ['day', 'of']:
            day_of = token
            i += 3
        elif token in ('next', 'last', 'previous', 'this'):
            step = {'next': 1, 'last': -1, 'previous': -1, 'this': 0}[token]
            if following in UNITS:
                delta += _unit_delta(following, step)
            elif following in WEEKDAYS:
                weekday = WEEKDAYS[following]
                if step > 0:
                    delta += relativedelta(days=1, weekday=weekday(+1))
                elif step < 0:
                    delta += relativedelta(days=-1, weekday=weekday(-1))
                else:
                    delta += relativedelta(weekday=weekday(+1))
                delta += MIDNIGHT
            else:
                return None
            i += 2
        elif token in WEEKDAYS:
            delta += relativedelta(weekday=WEEKDAYS[token](+1)) + MIDNIGHT
            i += 1
        elif token == 'ago':
            delta = -delta
            i += 1
        elif token in ('today', 'midnight'):
            delta += MIDNIGHT
            i += 1
        elif token == 'tomorrow':
            delta += relativedelta(days=1) + MIDNIGHT
            i += 1
        elif token == 'yesterday':
            delta += relativedelta(days=-1) + MIDNIGHT
            i += 1
        elif token == 'noon':
            delta += relativedelta(hour=12, minute=0, second=0, microsecond=0)
            i += 1
        elif token in ('now', 'and'):
            i += 1
        else:
            return None

    if day_of == 'first':
        delta += relativedelta(day=1)
    elif day_of == 'last':
        # relativedelta clamps day 31 to the last day of the resulting month
        delta += relativedelta(day=31)
    return base + delta


def parse_schedule_strict(expression, reference=None):
    """
    Resolve ``expression`` against ``reference`` (a unix timestamp, default
    now) and return the resulting unix timestamp.

    Raises ScheduleParseError when the expression cannot be understood.
    """
    if reference is None:
        reference = int(time.time())
    text = (expression or '').strip().lower()
    if not text:
        raise ScheduleParseError(expression)

    base = datetime.fromtimestamp(reference)
    try:
        result = _relative(text, base)
        if result is None:
            result = parse_date(expression, default=base + MIDNIGHT)
        return int(result.timestamp())
    except (ValueError, OverflowError) as e:
        raise ScheduleParseError(expression) from e


def parse_schedule(expression, reference=None):
    """
    Same as parse_schedule_strict but returns 0 for an expression that
    cannot be parsed.
    """
    try:
        return parse_schedule_strict(expression, reference)
    except ScheduleParseError:
        logger.debug("Unparseable schedule expression %r", expression)
        return 0
