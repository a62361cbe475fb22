"""
Recompletion configuration values.

A course's settings are persisted as name/value rows. ``PluginDefaults`` holds
the plugin-wide defaults and is handed explicitly to whatever needs it. Both
are validated, immutable Pydantic models: row values arrive as strings and are
coerced to the field types here.
"""

from typing import Dict, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from recompletion.domain.errors import ConfigurationError

DAYSECS = 86400
YEARSECS = 365 * DAYSECS

RECOMPLETION_TYPE_DISABLED = ''
RECOMPLETION_TYPE_PERIOD = 'period'
RECOMPLETION_TYPE_ONDEMAND = 'ondemand'
RECOMPLETION_TYPE_SCHEDULE = 'schedule'

RECOMPLETION_TYPES = (
    RECOMPLETION_TYPE_DISABLED,
    RECOMPLETION_TYPE_PERIOD,
    RECOMPLETION_TYPE_ONDEMAND,
    RECOMPLETION_TYPE_SCHEDULE,
)

# Attribute name -> persisted setting name.
SETTING_NAMES = {
    'recompletion_type': 'recompletiontype',
    'recompletion_duration': 'recompletionduration',
    'recompletion_schedule': 'recompletionschedule',
    'next_reset_time': 'nextresettime',
    'email_enable': 'recompletionemailenable',
    'email_subject': 'recompletionemailsubject',
    'email_body': 'recompletionemailbody',
    'reminder_enable': 'reminderemailenable',
    'reminder_days': 'reminderemaildays',
    'reminder_subject': 'reminderemailsubject',
    'reminder_body': 'reminderemailbody',
    'unenrol_enable': 'recompletionunenrolenable',
    'reset_unenrol_user': 'resetunenrolsuser',
    'delete_grade_data': 'deletegradedata',
    'archive_completion_data': 'archivecompletiondata',
}

BOOLEAN_SETTINGS = {
    'email_enable', 'reminder_enable', 'unenrol_enable', 'reset_unenrol_user',
    'delete_grade_data', 'archive_completion_data',
}
TEXT_FIELDS = ('recompletion_type', 'recompletion_schedule', 'email_subject', 'email_body',
               'reminder_subject', 'reminder_body')


def _blank_is_false(value):
    if value is None or (isinstance(value, str) and value.strip() == ''):
        return False
    return value


def _blank_is_zero(value):
    if value is None or (isinstance(value, str) and value.strip() == ''):
        return 0
    return value


def _as_text(value):
    return '' if value is None else str(value)


class PluginDefaults(BaseModel):
    """Plugin-wide defaults, applied to courses without a saved value."""

    model_config = ConfigDict(frozen=True)

    recompletion_duration: int = YEARSECS
    recompletion_schedule: str = ''
    email_enable: bool = False
    email_subject: str = 'Course completion reset'
    email_body: str = ('Hi {$a->fullname}, your completion of {$a->coursename} has been reset. '
                       'Please complete the course again: {$a->link}')
    reminder_enable: bool = False
    reminder_days: int = 14 * DAYSECS
    reminder_subject: str = 'Course completion expiring soon'
    reminder_body: str = ('Hi {$a->fullname}, your completion of {$a->coursename} will expire soon. '
                          'Visit {$a->link} to complete the course again.')
    unenrol_enable: bool = False
    reset_unenrol_user: bool = False
    delete_grade_data: bool = False
    archive_completion_data: bool = True
    force_archive_completion_data: bool = False

    @field_validator('email_enable', 'reminder_enable', 'unenrol_enable', 'reset_unenrol_user',
                     'delete_grade_data', 'archive_completion_data', 'force_archive_completion_data',
                     mode='before')
    @classmethod
    def blank_is_false(cls, v):
        return _blank_is_false(v)

    @field_validator('recompletion_duration', 'reminder_days', mode='before')
    @classmethod
    def blank_is_zero(cls, v):
        return _blank_is_zero(v)

    @classmethod
    def from_mapping(cls, mapping: Mapping, prefix='RECOMPLETION_DEFAULT_'):
        """
        Build defaults from a config mapping such as ``app.config``.
        Keys are the upper-cased attribute names behind ``prefix``; the force
        flag is read from ``RECOMPLETION_FORCE_ARCHIVE``.
        """
        values = {}
        for name in cls.model_fields:
            if name == 'force_archive_completion_data':
                key = 'RECOMPLETION_FORCE_ARCHIVE'
            else:
                key = prefix + name.upper()
            if mapping.get(key) is not None:
                values[name] = mapping[key]
        return cls(**values)


class CourseRecompletionConfig(BaseModel):
    """Effective recompletion settings of one course."""

    model_config = ConfigDict(frozen=True)

    course_id: int
    recompletion_type: str = RECOMPLETION_TYPE_DISABLED
    recompletion_duration: int = 0
    recompletion_schedule: str = ''
    next_reset_time: int = 0
    email_enable: bool = False
    email_subject: str = ''
    email_body: str = ''
    reminder_enable: bool = False
    reminder_days: int = 0
    reminder_subject: str = ''
    reminder_body: str = ''
    unenrol_enable: bool = False
    reset_unenrol_user: bool = False
    delete_grade_data: bool = False
    archive_completion_data: bool = False
    # Rows this model does not know about, kept so that saving does not drop them.
    extra: Dict[str, str] = {}

    @field_validator(*sorted(BOOLEAN_SETTINGS), mode='before')
    @classmethod
    def blank_is_false(cls, v):
        return _blank_is_false(v)

    @field_validator('recompletion_duration', 'next_reset_time', 'reminder_days', mode='before')
    @classmethod
    def blank_is_zero(cls, v):
        return _blank_is_zero(v)

    @field_validator(*TEXT_FIELDS, mode='before')
    @classmethod
    def none_is_empty(cls, v):
        return _as_text(v)

    @property
    def is_enabled(self):
        return self.recompletion_type != RECOMPLETION_TYPE_DISABLED

    @classmethod
    def from_defaults(cls, course_id, defaults: PluginDefaults):
        """Disabled config carrying the plugin-wide defaults for display."""
        values = {attr: getattr(defaults, attr) for attr in SETTING_NAMES if attr in PluginDefaults.model_fields}
        values['archive_completion_data'] = (defaults.archive_completion_data
                                             or defaults.force_archive_completion_data)
        return cls(course_id=course_id, recompletion_type=RECOMPLETION_TYPE_DISABLED, **values)

    @classmethod
    def from_rows(cls, course_id, rows: Mapping[str, str], defaults: PluginDefaults):
        """
        Build a config from persisted name/value rows. Settings missing from
        ``rows`` take the plugin default.
        """
        values = cls.from_defaults(course_id, defaults).model_dump()
        values['recompletion_type'] = RECOMPLETION_TYPE_DISABLED
        for attr, name in SETTING_NAMES.items():
            if name in rows:
                values[attr] = rows[name]
        known = set(SETTING_NAMES.values())
        values['extra'] = {k: str(v) for k, v in rows.items() if k not in known}
        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            attr = error['loc'][0] if error['loc'] else 'config'
            raise ConfigurationError(SETTING_NAMES.get(attr, attr), error['msg']) from e

    def to_rows(self) -> Dict[str, str]:
        rows = dict(self.extra)
        for attr, name in SETTING_NAMES.items():
            value = getattr(self, attr)
            if isinstance(value, bool):
                rows[name] = '1' if value else '0'
            else:
                rows[name] = str(value)
        return rows
