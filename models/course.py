from datetime import datetime
from extensions import db


# Global course pool shared by every curriculum
class Course(db.Model):
    __tablename__ = "course"

    id = db.Column(db.Integer, primary_key=True)

    # Keep as string to preserve leading zeros / letter prefixes ("CSX3001")
    code = db.Column(db.String(32), unique=True, index=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)

    credits = db.Column(db.Integer, nullable=False)
    # Lecture-lab-self study breakdown, e.g. "3-0-6"
    credit_hours = db.Column(db.String(32), nullable=True)

    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(120), nullable=True)

    # constraint flags (curricula may override them per CurriculumCourse)
    requires_permission = db.Column(db.Boolean, nullable=False, default=False)
    summer_only = db.Column(db.Boolean, nullable=False, default=False)
    requires_senior_standing = db.Column(db.Boolean, nullable=False, default=False)
    min_credit_threshold = db.Column(db.Integer, nullable=True)

    # soft delete
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Edges where THIS course is the dependent course (X requires Y)
    prerequisites = db.relationship(
        "CoursePrerequisite",
        foreign_keys="CoursePrerequisite.course_id",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    # Edges where THIS course is used as a prereq for others
    prerequisite_for = db.relationship(
        "CoursePrerequisite",
        foreign_keys="CoursePrerequisite.prerequisite_id",
        back_populates="prerequisite",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    corequisites = db.relationship(
        "CourseCorequisite",
        foreign_keys="CourseCorequisite.course_id",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    curriculum_courses = db.relationship(
        "CurriculumCourse",
        back_populates="course",
        passive_deletes=True,
        lazy=True,
    )

    def flags(self) -> dict:
        return {
            "requiresPermission": self.requires_permission,
            "summerOnly": self.summer_only,
            "requiresSeniorStanding": self.requires_senior_standing,
            "minCreditThreshold": self.min_credit_threshold,
        }

    def to_summary(self) -> dict:
        return {"id": self.id, "code": self.code, "name": self.name, "credits": self.credits}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "credits": self.credits,
            "creditHours": self.credit_hours,
            "description": self.description,
            "category": self.category,
            **self.flags(),
            "isActive": self.is_active,
            "prerequisites": [e.prerequisite.to_summary() for e in self.prerequisites],
            "corequisites": [e.corequisite.to_summary() for e in self.corequisites],
        }

    def __repr__(self) -> str:
        return f"<Course {self.code}>"
