from recompletion.database.database import db
from flask_login import UserMixin


class User(UserMixin, db.Model):
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    firstname = db.Column(db.String(100), nullable=False, default='')
    lastname = db.Column(db.String(100), nullable=False, default='')
    password_hash = db.Column(db.String(256), nullable=False, default='')
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    # Relationships
    enrolments = db.relationship('Enrolment', back_populates='user', cascade='all, delete-orphan')

    @property
    def fullname(self):
        return f"{self.firstname} {self.lastname}".strip()
