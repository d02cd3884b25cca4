from datetime import datetime
from extensions import db


# Course X requires course Y before it (global, applies to every curriculum)
class CoursePrerequisite(db.Model):
    __tablename__ = "course_prerequisite"

    __table_args__ = (
        db.UniqueConstraint("course_id", "prerequisite_id", name="uq_prereq_course_prereq"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # the course that HAS the prerequisite (X)
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    # the prerequisite course (Y)
    prerequisite_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    course = db.relationship(
        "Course",
        foreign_keys=[course_id],
        back_populates="prerequisites",
        lazy=True,
    )

    prerequisite = db.relationship(
        "Course",
        foreign_keys=[prerequisite_id],
        back_populates="prerequisite_for",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Prereq {self.prerequisite_id} -> {self.course_id}>"


# X and Y must be taken together. Stored in both directions: (X, Y) and (Y, X).
class CourseCorequisite(db.Model):
    __tablename__ = "course_corequisite"

    __table_args__ = (
        db.UniqueConstraint("course_id", "corequisite_id", name="uq_coreq_course_coreq"),
    )

    id = db.Column(db.Integer, primary_key=True)

    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )
    corequisite_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    course = db.relationship(
        "Course",
        foreign_keys=[course_id],
        back_populates="corequisites",
        lazy=True,
    )
    corequisite = db.relationship("Course", foreign_keys=[corequisite_id], lazy=True)

    def __repr__(self) -> str:
        return f"<Coreq {self.course_id} <-> {self.corequisite_id}>"
