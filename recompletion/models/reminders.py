from recompletion.database.database import db


class RecompletionLog(db.Model):
    __tablename__ = 'recompletion_log'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    action = db.Column(db.String(20), nullable=False)  # 'reminder', 'reset'
    time = db.Column(db.Integer, nullable=False)
