from recompletion.domain.config import CourseRecompletionConfig, PluginDefaults
from recompletion.domain.ports import ConfigStore


def resolve_config(config_store: ConfigStore, course_id: int, defaults: PluginDefaults):
    """
    Load the recompletion config of a course.

    A course without saved settings gets the plugin defaults with recompletion
    disabled. The plugin-wide force-archive flag always wins over the
    course's own archive setting.
    """
    rows = config_store.get_course_config(course_id)
    if not rows:
        return CourseRecompletionConfig.from_defaults(course_id, defaults)

    config = CourseRecompletionConfig.from_rows(course_id, rows, defaults)
    if defaults.force_archive_completion_data and not config.archive_completion_data:
        config = config.model_copy(update={'archive_completion_data': True})
    return config
