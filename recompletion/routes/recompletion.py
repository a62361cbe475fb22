from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, send_file
from flask_login import login_required, current_user
from recompletion.database.database import db
from recompletion.domain.config import PluginDefaults
from recompletion.domain.errors import RecompletionError
from recompletion.infrastructure.stores import (
    SqlAlchemyArchiveStore,
    SqlAlchemyCompletionStore,
    SqlAlchemyConfigStore,
)
from recompletion.models.course import Course, CourseCompletion, Enrolment
from recompletion.utils.config_resolver import resolve_config
from recompletion.utils.export import generate_archive_csv, generate_archive_pdf
from recompletion.utils.reconciler import update_course_completion
from recompletion.utils.settings import get_form_data, shape_form_data, validate_settings, save_settings
from recompletion.utils.task import build_reconciler
from datetime import datetime
import io

recomp_bp = Blueprint('recompletion', __name__)


def _defaults():
    return PluginDefaults.from_mapping(current_app.config)


def _denied():
    """Redirect for users who may not manage recompletion, None otherwise."""
    if not current_user.is_admin:
        flash('Access denied', 'error')
        return redirect(url_for('auth.login'))
    return None


def _participants(course_id):
    return db.session.query(Enrolment, CourseCompletion).outerjoin(
        CourseCompletion,
        (CourseCompletion.user_id == Enrolment.user_id) & (CourseCompletion.course_id == Enrolment.course_id)
    ).filter(
        Enrolment.course_id == course_id,
        Enrolment.active.is_(True)
    ).order_by(Enrolment.user_id).all()


def _user_ids():
    ids = []
    for value in request.form.getlist('user_ids'):
        try:
            ids.append(int(value))
        except ValueError:
            continue
    return ids


@recomp_bp.route('/', methods=['GET'])
@login_required
def courses():
    denied = _denied()
    if denied:
        return denied

    store = SqlAlchemyConfigStore()
    defaults = _defaults()
    rows = []
    for course in Course.query.order_by(Course.fullname).all():
        rows.append((course, resolve_config(store, course.id, defaults)))

    return render_template('courses.html', courses=rows)


@recomp_bp.route('/<int:course_id>/settings', methods=['GET', 'POST'])
@login_required
def settings(course_id):
    denied = _denied()
    if denied:
        return denied

    course = db.get_or_404(Course, course_id)
    store = SqlAlchemyConfigStore()
    defaults = _defaults()

    if request.method == 'POST':
        data, errors = shape_form_data(request.form, defaults)
        errors = {**validate_settings(data), **errors}

        if errors:
            flash('Please correct the highlighted settings', 'error')
            form = get_form_data(store, course_id, defaults)
            form.update(request.form.to_dict())
            return render_template('settings.html', course=course, form=form, errors=errors,
                                   participants=_participants(course_id)), 400

        save_settings(store, course_id, data)
        current_app.logger.info("Recompletion settings saved for course %s", course_id)
        flash('Recompletion settings saved', 'success')
        return redirect(url_for('recompletion.settings', course_id=course_id))

    form = get_form_data(store, course_id, defaults)
    return render_template('settings.html', course=course, form=form, errors={},
                           participants=_participants(course_id))


@recomp_bp.route('/<int:course_id>/reset', methods=['POST'])
@login_required
def reset_users(course_id):
    denied = _denied()
    if denied:
        return denied

    db.get_or_404(Course, course_id)
    user_ids = _user_ids()
    if not user_ids:
        flash('No users selected', 'error')
        return redirect(url_for('recompletion.settings', course_id=course_id))

    try:
        count = build_reconciler(current_app).reset_users(course_id, user_ids)
    except RecompletionError as e:
        flash(str(e), 'error')
        return redirect(url_for('recompletion.settings', course_id=course_id))

    flash(f'Reset completion for {count} user(s)', 'success')
    return redirect(url_for('recompletion.settings', course_id=course_id))


@recomp_bp.route('/<int:course_id>/completion-date', methods=['POST'])
@login_required
def completion_date(course_id):
    denied = _denied()
    if denied:
        return denied

    db.get_or_404(Course, course_id)
    user_ids = _user_ids()
    try:
        completed = datetime.strptime(request.form.get('timecompleted', ''), '%Y-%m-%d')
    except ValueError:
        flash('Enter the completion date as YYYY-MM-DD', 'error')
        return redirect(url_for('recompletion.settings', course_id=course_id))

    if not user_ids:
        flash('No users selected', 'error')
        return redirect(url_for('recompletion.settings', course_id=course_id))

    update_course_completion(SqlAlchemyCompletionStore(), course_id, user_ids, int(completed.timestamp()))
    flash(f'Completion date updated for {len(user_ids)} user(s)', 'success')
    return redirect(url_for('recompletion.settings', course_id=course_id))


@recomp_bp.route('/<int:course_id>/archive/csv', methods=['GET'])
@login_required
def export_archive_csv(course_id):
    """Export archived completions as CSV"""
    denied = _denied()
    if denied:
        return denied

    course = db.get_or_404(Course, course_id)
    rows = SqlAlchemyArchiveStore().get_archived_completions(course_id)
    csv_buffer = generate_archive_csv(course, rows)

    filename = f"{course.shortname}_archived_completions_{datetime.now().strftime('%Y%m%d')}.csv"

    # Convert StringIO to BytesIO for send_file
    bytes_buffer = io.BytesIO(csv_buffer.getvalue().encode('utf-8'))
    bytes_buffer.seek(0)

    return send_file(
        bytes_buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='text/csv'
    )


@recomp_bp.route('/<int:course_id>/archive/pdf', methods=['GET'])
@login_required
def export_archive_pdf(course_id):
    """Export archived completions as PDF"""
    denied = _denied()
    if denied:
        return denied

    course = db.get_or_404(Course, course_id)
    rows = SqlAlchemyArchiveStore().get_archived_completions(course_id)
    pdf_buffer = generate_archive_pdf(course, rows)

    filename = f"{course.shortname}_archived_completions_{datetime.now().strftime('%Y%m%d')}.pdf"

    return send_file(
        pdf_buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/pdf'
    )
