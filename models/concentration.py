from datetime import datetime
from extensions import db


# Department-scoped course set; a curriculum may require N courses from it
class Concentration(db.Model):
    __tablename__ = "concentration"

    __table_args__ = (
        db.UniqueConstraint("department_id", "name", name="uq_concentration_dept_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    department = db.relationship("Department", lazy=True)

    courses = db.relationship(
        "ConcentrationCourse",
        back_populates="concentration",
        cascade="all, delete-orphan",
        lazy=True,
    )
    curricula = db.relationship(
        "CurriculumConcentration",
        back_populates="concentration",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "departmentId": self.department_id,
            "courses": [cc.course.to_summary() for cc in self.courses],
        }

    def __repr__(self) -> str:
        return f"<Concentration {self.name}>"


class ConcentrationCourse(db.Model):
    __tablename__ = "concentration_course"

    __table_args__ = (
        db.UniqueConstraint("concentration_id", "course_id", name="uq_concentration_course"),
    )

    id = db.Column(db.Integer, primary_key=True)
    concentration_id = db.Column(
        db.Integer,
        db.ForeignKey("concentration.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    concentration = db.relationship("Concentration", back_populates="courses", lazy=True)
    course = db.relationship("Course", lazy=True)


class CurriculumConcentration(db.Model):
    __tablename__ = "curriculum_concentration"

    __table_args__ = (
        db.UniqueConstraint("curriculum_id", "concentration_id", name="uq_curriculum_concentration"),
        db.CheckConstraint("required_courses >= 1", name="ck_curriculum_concentration_required"),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
    )
    concentration_id = db.Column(
        db.Integer,
        db.ForeignKey("concentration.id", ondelete="CASCADE"),
        nullable=False,
    )
    required_courses = db.Column(db.Integer, nullable=False, default=1)

    curriculum = db.relationship(
        "Curriculum",
        backref=db.backref("concentrations", cascade="all, delete-orphan", passive_deletes=True, lazy=True),
        lazy=True,
    )
    concentration = db.relationship("Concentration", back_populates="curricula", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "curriculumId": self.curriculum_id,
            "concentrationId": self.concentration_id,
            "name": self.concentration.name if self.concentration else None,
            "requiredCourses": self.required_courses,
        }
