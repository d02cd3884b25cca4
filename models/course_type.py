from datetime import datetime
from extensions import db


# Department-scoped category ("Core", "Major Elective", ...) used as a pool source
class CourseType(db.Model):
    __tablename__ = "course_type"

    __table_args__ = (
        db.UniqueConstraint("department_id", "name", name="uq_course_type_dept_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    color = db.Column(db.String(7), nullable=False, default="#6366f1")

    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey("course_type.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    department = db.relationship("Department", lazy=True)
    parent = db.relationship("CourseType", remote_side=[id], backref="children", lazy=True)

    assignments = db.relationship(
        "DepartmentCourseType",
        back_populates="course_type",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "departmentId": self.department_id,
            "parentId": self.parent_id,
            "courseCount": len(self.assignments),
        }

    def __repr__(self) -> str:
        return f"<CourseType {self.name}>"


# Which type a course carries inside one department (a course can differ per dept)
class DepartmentCourseType(db.Model):
    __tablename__ = "department_course_type"

    __table_args__ = (
        db.UniqueConstraint("course_id", "department_id", name="uq_dept_course_type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_type_id = db.Column(
        db.Integer,
        db.ForeignKey("course_type.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="CASCADE"),
        nullable=False,
    )

    course = db.relationship("Course", lazy=True)
    course_type = db.relationship("CourseType", back_populates="assignments", lazy=True)

    def __repr__(self) -> str:
        return f"<DepartmentCourseType course={self.course_id} type={self.course_type_id}>"
