"""
Settings form helpers: turn saved rows into form values and submitted form
values back into rows.
"""

import time
from datetime import datetime

from recompletion.domain.config import (
    BOOLEAN_SETTINGS,
    DAYSECS,
    RECOMPLETION_TYPE_PERIOD,
    RECOMPLETION_TYPE_SCHEDULE,
    RECOMPLETION_TYPES,
    SETTING_NAMES,
)
from recompletion.domain.errors import ConfigurationError
from recompletion.utils.config_resolver import resolve_config
from recompletion.utils.schedule import parse_schedule

DURATION_UNITS = {
    'weeks': 7 * DAYSECS,
    'days': DAYSECS,
    'hours': 3600,
    'minutes': 60,
    'seconds': 1,
}
DURATION_SETTINGS = ('recompletionduration', 'reminderemaildays')
CHECKBOX_SETTINGS = tuple(SETTING_NAMES[attr] for attr in sorted(BOOLEAN_SETTINGS))
TEXT_SETTINGS = (
    'recompletionschedule',
    'recompletionemailsubject',
    'recompletionemailbody',
    'reminderemailsubject',
    'reminderemailbody',
)

STRINGS = {
    'invalidscheduledate': 'The schedule could not be understood. Use a date such as "2027-01-31" '
                           'or a relative time such as "6 months" or "first day of next month".',
    'invalidtype': 'Select a valid recompletion type.',
    'invalidduration': 'Enter a whole number that is zero or more.',
    'durationrequired': 'A recompletion period is required for period based recompletion.',
    'schedulerequired': 'A schedule is required for scheduled recompletion.',
}


def split_duration(seconds):
    """Express seconds in the largest unit that divides them evenly."""
    seconds = int(seconds or 0)
    if seconds == 0:
        return 0, 'days'
    for unit, size in DURATION_UNITS.items():
        if seconds % size == 0:
            return seconds // size, unit
    return seconds, 'seconds'


def format_timestamp(timestamp):
    if not timestamp:
        return ''
    return datetime.fromtimestamp(timestamp).strftime('%B %d, %Y at %I:%M %p')


def get_form_data(config_store, course_id, defaults, now=None):
    """
    Values to pre-fill the settings form with, including the calculated next
    reset date for scheduled recompletion.
    """
    now = int(time.time()) if now is None else now
    config = resolve_config(config_store, course_id, defaults)
    data = config.to_rows()
    data['recompletiontype'] = config.recompletion_type
    for name in DURATION_SETTINGS:
        number, unit = split_duration(data.get(name))
        data[f'{name}_number'] = number
        data[f'{name}_unit'] = unit

    data['calculatedtime'] = ''
    if config.recompletion_schedule:
        calculated = parse_schedule(config.recompletion_schedule, now)
        data['calculatedtime'] = format_timestamp(calculated)
    data['nextresettime_formatted'] = format_timestamp(config.next_reset_time)
    data['forcearchive'] = defaults.force_archive_completion_data
    return data


def _duration_from_form(form, name):
    raw = (form.get(f'{name}_number') or '').strip()
    unit = form.get(f'{name}_unit') or 'days'
    if raw == '':
        return 0
    try:
        number = int(raw)
    except ValueError:
        raise ConfigurationError(name, STRINGS['invalidduration'])
    if number < 0 or unit not in DURATION_UNITS:
        raise ConfigurationError(name, STRINGS['invalidduration'])
    return number * DURATION_UNITS[unit]


def shape_form_data(form, defaults):
    """
    Turn submitted form values into setting rows. Unticked checkboxes are
    absent from a submission and saved as '0'.
    """
    data = {'recompletiontype': (form.get('recompletiontype') or '').strip()}
    errors = {}
    for name in DURATION_SETTINGS:
        try:
            data[name] = str(_duration_from_form(form, name))
        except ConfigurationError as e:
            errors[name] = e.message
    for name in CHECKBOX_SETTINGS:
        data[name] = '1' if form.get(name) else '0'
    if defaults.force_archive_completion_data:
        data['archivecompletiondata'] = '1'
    for name in TEXT_SETTINGS:
        data[name] = (form.get(name) or '').strip()
    return data, errors


def validate_settings(data, now=None):
    """Field errors for shaped settings; empty when the settings are valid."""
    now = int(time.time()) if now is None else now
    errors = {}
    if data.get('recompletiontype') not in RECOMPLETION_TYPES:
        errors['recompletiontype'] = STRINGS['invalidtype']

    schedule = data.get('recompletionschedule')
    if schedule and parse_schedule(schedule, now) == 0:
        errors['recompletionschedule'] = STRINGS['invalidscheduledate']

    if data.get('recompletiontype') == RECOMPLETION_TYPE_PERIOD and int(data.get('recompletionduration') or 0) <= 0:
        errors['recompletionduration'] = STRINGS['durationrequired']
    if data.get('recompletiontype') == RECOMPLETION_TYPE_SCHEDULE and not schedule:
        errors['recompletionschedule'] = STRINGS['schedulerequired']
    return errors


def save_settings(config_store, course_id, data, now=None):
    """
    Replace the course's settings. Saved rows the form does not manage are
    kept. Scheduled recompletion gets its next reset time computed from the
    schedule.
    """
    now = int(time.time()) if now is None else now
    known = set(SETTING_NAMES.values())
    rows = {name: value for name, value in config_store.get_course_config(course_id).items()
            if name not in known}
    rows.update(data)
    if rows.get('recompletiontype') == RECOMPLETION_TYPE_SCHEDULE:
        rows['nextresettime'] = str(parse_schedule(rows.get('recompletionschedule'), now))
    else:
        rows['nextresettime'] = '0'
    config_store.save_course_config(course_id, rows)
    return rows
