from datetime import datetime
from extensions import db


# Named course set; courses in an attached blacklist don't count toward the curriculum
class Blacklist(db.Model):
    __tablename__ = "blacklist"

    __table_args__ = (
        db.UniqueConstraint("department_id", "name", name="uq_blacklist_dept_name"),
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
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    department = db.relationship("Department", lazy=True)

    courses = db.relationship(
        "BlacklistCourse",
        back_populates="blacklist",
        cascade="all, delete-orphan",
        lazy=True,
    )
    curricula = db.relationship(
        "CurriculumBlacklist",
        back_populates="blacklist",
        passive_deletes=True,
        lazy=True,
    )

    def course_ids(self) -> set:
        return {bc.course_id for bc in self.courses}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "departmentId": self.department_id,
            "createdById": self.created_by_id,
            "courses": [bc.course.to_summary() for bc in self.courses],
            "_count": {"courses": len(self.courses), "curricula": len(self.curricula)},
        }

    def __repr__(self) -> str:
        return f"<Blacklist {self.name}>"


class BlacklistCourse(db.Model):
    __tablename__ = "blacklist_course"

    __table_args__ = (
        db.UniqueConstraint("blacklist_id", "course_id", name="uq_blacklist_course"),
    )

    id = db.Column(db.Integer, primary_key=True)
    blacklist_id = db.Column(
        db.Integer,
        db.ForeignKey("blacklist.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    blacklist = db.relationship("Blacklist", back_populates="courses", lazy=True)
    course = db.relationship("Course", lazy=True)


class CurriculumBlacklist(db.Model):
    __tablename__ = "curriculum_blacklist"

    __table_args__ = (
        db.UniqueConstraint("curriculum_id", "blacklist_id", name="uq_curriculum_blacklist"),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
    )
    # RESTRICT: detach before deleting the blacklist
    blacklist_id = db.Column(
        db.Integer,
        db.ForeignKey("blacklist.id", ondelete="RESTRICT"),
        nullable=False,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    curriculum = db.relationship("Curriculum", back_populates="blacklists", lazy=True)
    blacklist = db.relationship("Blacklist", back_populates="curricula", lazy=True)
