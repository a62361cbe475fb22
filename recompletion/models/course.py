from recompletion.database.database import db


class Course(db.Model):
    __tablename__ = 'course'

    id = db.Column(db.Integer, primary_key=True)
    fullname = db.Column(db.String(255), nullable=False)
    shortname = db.Column(db.String(100), unique=True, nullable=False)
    enable_completion = db.Column(db.Boolean, nullable=False, default=True)

    # Relationships
    enrolments = db.relationship('Enrolment', back_populates='course', cascade='all, delete-orphan')
    completions = db.relationship('CourseCompletion', back_populates='course', cascade='all, delete-orphan')


class Enrolment(db.Model):
    __tablename__ = 'enrolment'
    __table_args__ = (db.UniqueConstraint('course_id', 'user_id', 'method'),)

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    method = db.Column(db.String(20), nullable=False, default='manual')  # manual, self
    active = db.Column(db.Boolean, nullable=False, default=True)
    time_enrolled = db.Column(db.Integer)

    # Relationships
    course = db.relationship('Course', back_populates='enrolments')
    user = db.relationship('User', back_populates='enrolments')


class CourseCompletion(db.Model):
    __tablename__ = 'course_completion'
    __table_args__ = (db.UniqueConstraint('course_id', 'user_id'),)

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    time_enrolled = db.Column(db.Integer)
    time_started = db.Column(db.Integer)
    time_completed = db.Column(db.Integer)  # null while not complete
    reaggregate = db.Column(db.Integer, nullable=False, default=0)

    # Relationships
    course = db.relationship('Course', back_populates='completions')
    user = db.relationship('User')


class GradeRecord(db.Model):
    __tablename__ = 'grade_record'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    final_grade = db.Column(db.Float)
    time_modified = db.Column(db.Integer)
