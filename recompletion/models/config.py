from recompletion.database.database import db


class RecompletionConfig(db.Model):
    """
    One row per setting per course. A course with no rows has recompletion
    disabled.
    """
    __tablename__ = 'recompletion_config'
    __table_args__ = (db.UniqueConstraint('course_id', 'name'),)

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    value = db.Column(db.Text, nullable=False, default='')
