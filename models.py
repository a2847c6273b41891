from datetime import datetime

from extensions import db


class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    # Store in DB column 'class' but expose as attribute 'class_name'
    class_name = db.Column('class', db.String(50))
    contact = db.Column(db.String(30))
    monthly_target_classes = db.Column(db.Integer, nullable=False, default=0)
    fees_per_month = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    classes = db.relationship('ClassRecord', backref='student', cascade="all, delete-orphan")
    payments = db.relationship('Payment', backref='student', cascade="all, delete-orphan")
    notes = db.relationship('Note', backref='student', cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "class": self.class_name,
            "contact": self.contact,
            "monthly_target_classes": self.monthly_target_classes,
            "fees_per_month": float(self.fees_per_month or 0),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Student {self.name} ({self.id})>'


class ClassRecord(db.Model):
    __tablename__ = 'classes'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    time = db.Column(db.String(10))
    completed_count = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "date": _iso(self.date),
            "time": self.time,
            "completed_count": self.completed_count,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f'<ClassRecord StudentID={self.student_id} Date={self.date} Count={self.completed_count}>'


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    date = db.Column(db.Date, nullable=False)
    month = db.Column(db.String(20))
    year = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "amount": float(self.amount or 0),
            "date": _iso(self.date),
            "month": self.month,
            "year": self.year,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Payment StudentID={self.student_id} Paid={self.amount}>'


class Note(db.Model):
    __tablename__ = 'notes'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    note_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "note_text": self.note_text,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Note StudentID={self.student_id}>'


class Setting(db.Model):
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), nullable=False, unique=True)
    value = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Setting {self.key}>'


def _iso(value):
    if value is None:
        return None
    return value.isoformat()
