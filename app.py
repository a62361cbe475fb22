from flask import Flask, redirect, url_for
from flask_login import LoginManager
from flask_mail import Mail
from recompletion.routes.auth import auth_bp
from recompletion.routes.recompletion import recomp_bp
from recompletion.database.database import db
from recompletion.models.auth import User
from recompletion.models.course import Course, Enrolment, CourseCompletion, GradeRecord
from recompletion.models.config import RecompletionConfig
from recompletion.models.reminders import RecompletionLog
from recompletion.models.archive import CompletionArchive, GradeArchive
from recompletion.utils.observers import connect_observers
from recompletion.utils.scheduler import start_scheduler
from dotenv import load_dotenv
import logging
import os

# Load environment variables
load_dotenv()

RECOMPLETION_DEFAULT_KEYS = (
    'RECOMPLETION_DEFAULT_RECOMPLETION_DURATION',
    'RECOMPLETION_DEFAULT_RECOMPLETION_SCHEDULE',
    'RECOMPLETION_DEFAULT_EMAIL_ENABLE',
    'RECOMPLETION_DEFAULT_EMAIL_SUBJECT',
    'RECOMPLETION_DEFAULT_EMAIL_BODY',
    'RECOMPLETION_DEFAULT_REMINDER_ENABLE',
    'RECOMPLETION_DEFAULT_REMINDER_DAYS',
    'RECOMPLETION_DEFAULT_REMINDER_SUBJECT',
    'RECOMPLETION_DEFAULT_REMINDER_BODY',
    'RECOMPLETION_DEFAULT_UNENROL_ENABLE',
    'RECOMPLETION_DEFAULT_RESET_UNENROL_USER',
    'RECOMPLETION_DEFAULT_DELETE_GRADE_DATA',
    'RECOMPLETION_DEFAULT_ARCHIVE_COMPLETION_DATA',
    'RECOMPLETION_FORCE_ARCHIVE',
)


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


def create_app(overrides=None):
    app = Flask(__name__, template_folder="frontend/templates")

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///recompletion.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SITE_URL'] = os.environ.get('SITE_URL', 'http://localhost:5000')
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    app.config['SCHEDULER_ENABLED'] = _env_flag('SCHEDULER_ENABLED', 'true')
    app.config['RECOMPLETION_CHECK_MINUTE'] = int(os.environ.get('RECOMPLETION_CHECK_MINUTE', 0))

    # Email configuration
    app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', 587))
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS', 'true')
    app.config['MAIL_USERNAME'] = os.environ.get('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.environ.get('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@recompletion.local')

    # Plugin-wide recompletion defaults
    for key in RECOMPLETION_DEFAULT_KEYS:
        if key in os.environ:
            app.config[key] = os.environ[key]

    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Initialize extensions
    db.init_app(app)
    Mail(app)

    # Initialize Flask-Login
    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(recomp_bp, url_prefix='/recompletion')

    @app.route('/')
    def index():
        return redirect(url_for('recompletion.courses'))

    connect_observers()

    # Create tables and start scheduler
    with app.app_context():
        db.create_all()

    if app.config['SCHEDULER_ENABLED']:
        app.extensions['recompletion_scheduler'] = start_scheduler(app)

    return app


if __name__ == '__main__':
    create_app().run(debug=True)
