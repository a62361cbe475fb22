from recompletion.database.database import db


class CompletionArchive(db.Model):
    __tablename__ = 'completion_archive'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    time_enrolled = db.Column(db.Integer)
    time_started = db.Column(db.Integer)
    time_completed = db.Column(db.Integer)
    time_archived = db.Column(db.Integer, nullable=False)

    # Relationships
    user = db.relationship('User')


class GradeArchive(db.Model):
    __tablename__ = 'grade_archive'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    final_grade = db.Column(db.Float)
    time_archived = db.Column(db.Integer, nullable=False)
