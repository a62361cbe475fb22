from werkzeug.datastructures import MultiDict

from recompletion.domain.config import DAYSECS, PluginDefaults
from recompletion.utils.settings import (
    STRINGS,
    get_form_data,
    save_settings,
    shape_form_data,
    split_duration,
    validate_settings,
)

from conftest import NOW, FakeConfigStore


def form(**values):
    base = {
        'recompletiontype': 'period',
        'recompletionduration_number': '365',
        'recompletionduration_unit': 'days',
        'reminderemaildays_number': '2',
        'reminderemaildays_unit': 'weeks',
    }
    base.update(values)
    return MultiDict(base)


class TestShapeFormData:

    def test_durations_and_checkboxes(self):
        data, errors = shape_form_data(form(reminderemailenable='1'), PluginDefaults())

        assert errors == {}
        assert data['recompletionduration'] == str(365 * DAYSECS)
        assert data['reminderemaildays'] == str(14 * DAYSECS)
        assert data['reminderemailenable'] == '1'
        assert data['recompletionemailenable'] == '0'
        assert data['archivecompletiondata'] == '0'

    def test_forced_archive_is_always_ticked(self):
        data, _ = shape_form_data(form(), PluginDefaults(force_archive_completion_data=True))
        assert data['archivecompletiondata'] == '1'

    def test_bad_duration(self):
        _, errors = shape_form_data(form(recompletionduration_number='-3'), PluginDefaults())
        assert errors == {'recompletionduration': STRINGS['invalidduration']}


class TestValidateSettings:

    def test_valid_schedule(self):
        errors = validate_settings({'recompletiontype': 'schedule', 'recompletionschedule': '6 months'}, NOW)
        assert errors == {}

    def test_invalid_schedule(self):
        errors = validate_settings({'recompletiontype': 'schedule', 'recompletionschedule': 'not a date'}, NOW)
        assert errors == {'recompletionschedule': STRINGS['invalidscheduledate']}

    def test_schedule_is_checked_whatever_the_type(self):
        errors = validate_settings({'recompletiontype': '', 'recompletionschedule': 'not a date'}, NOW)
        assert 'recompletionschedule' in errors

    def test_schedule_type_needs_schedule(self):
        errors = validate_settings({'recompletiontype': 'schedule', 'recompletionschedule': ''}, NOW)
        assert errors == {'recompletionschedule': STRINGS['schedulerequired']}

    def test_period_needs_duration(self):
        errors = validate_settings({'recompletiontype': 'period', 'recompletionduration': '0'}, NOW)
        assert errors == {'recompletionduration': STRINGS['durationrequired']}

    def test_unknown_type(self):
        assert 'recompletiontype' in validate_settings({'recompletiontype': 'weekly'}, NOW)


class TestSaveAndLoad:

    def test_schedule_sets_next_reset_time(self):
        store = FakeConfigStore()
        save_settings(store, 4, {'recompletiontype': 'schedule', 'recompletionschedule': '1 year'}, NOW)
        assert int(store.get_course_config(4)['nextresettime']) > NOW + 360 * DAYSECS

    def test_form_data_round_trip(self):
        store = FakeConfigStore()
        data, _ = shape_form_data(form(recompletionschedule=''), PluginDefaults())
        save_settings(store, 4, data, NOW)

        loaded = get_form_data(store, 4, PluginDefaults(), NOW)

        assert loaded['recompletiontype'] == 'period'
        assert loaded['recompletionduration_number'] == 365
        assert loaded['recompletionduration_unit'] == 'days'
        assert loaded['reminderemaildays_number'] == 2
        assert loaded['reminderemaildays_unit'] == 'weeks'
        assert loaded['calculatedtime'] == ''

    def test_rows_the_form_does_not_manage_are_kept(self):
        store = FakeConfigStore()
        store.save_course_config(4, {'recompletiontype': 'ondemand', 'quizdata': '2'})
        data, _ = shape_form_data(form(recompletionschedule=''), PluginDefaults())

        save_settings(store, 4, data, NOW)

        rows = store.get_course_config(4)
        assert rows['quizdata'] == '2'
        assert rows['recompletiontype'] == 'period'

    def test_defaults_for_unconfigured_course(self):
        loaded = get_form_data(FakeConfigStore(), 4, PluginDefaults(recompletion_schedule='6 months'), NOW)
        assert loaded['recompletiontype'] == ''
        assert loaded['calculatedtime'] != ''


def test_split_duration():
    assert split_duration(0) == (0, 'days')
    assert split_duration(14 * DAYSECS) == (2, 'weeks')
    assert split_duration(3 * DAYSECS) == (3, 'days')
    assert split_duration(90) == (90, 'seconds')
    assert split_duration(7200) == (2, 'hours')
