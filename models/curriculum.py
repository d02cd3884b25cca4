from datetime import datetime
from extensions import db


class Curriculum(db.Model):
    __tablename__ = "curriculum"

    __table_args__ = (
        # One (name, year, version) per department
        db.UniqueConstraint(
            "name",
            "year",
            "version",
            "department_id",
            name="uq_curriculum_name_year_version_dept",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    year = db.Column(db.String(16), nullable=False)
    version = db.Column(db.String(32), nullable=False, default="1.0")
    description = db.Column(db.Text, nullable=True)

    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    faculty_id = db.Column(
        db.Integer,
        db.ForeignKey("faculty.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_by_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    department = db.relationship("Department", lazy=True)
    faculty = db.relationship("Faculty", lazy=True)
    created_by = db.relationship("User", lazy=True)

    # Children: cascade so a curriculum delete cleans everything
    curriculum_courses = db.relationship(
        "CurriculumCourse",
        back_populates="curriculum",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumCourse.position",
        lazy=True,
    )

    constraints = db.relationship(
        "CurriculumConstraint",
        back_populates="curriculum",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    elective_rules = db.relationship(
        "ElectiveRule",
        back_populates="curriculum",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    blacklists = db.relationship(
        "CurriculumBlacklist",
        back_populates="curriculum",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def counts(self) -> dict:
        return {
            "curriculumCourses": len(self.curriculum_courses),
            "curriculumConstraints": len(self.constraints),
            "electiveRules": len(self.elective_rules),
        }

    def to_dict(self, include_children: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "version": self.version,
            "description": self.description,
            "departmentId": self.department_id,
            "facultyId": self.faculty_id,
            "createdById": self.created_by_id,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "_count": self.counts(),
        }
        if include_children:
            data["curriculumCourses"] = [cc.to_dict() for cc in self.curriculum_courses]
            data["curriculumConstraints"] = [c.to_dict() for c in self.constraints]
            data["electiveRules"] = [r.to_dict() for r in self.elective_rules]
        return data

    def __repr__(self) -> str:
        return f"<Curriculum {self.name} {self.year} v{self.version}>"


class CurriculumCourse(db.Model):
    __tablename__ = "curriculum_course"

    __table_args__ = (
        # Prevent the same course being added twice in the same curriculum
        db.UniqueConstraint("curriculum_id", "course_id", name="uq_curriculum_course"),
    )

    id = db.Column(db.Integer, primary_key=True)

    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # RESTRICT: a course referenced by a curriculum can't be hard-deleted
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    position = db.Column(db.Integer, nullable=False, default=0)
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    semester = db.Column(db.String(16), nullable=True)
    year = db.Column(db.Integer, nullable=True)

    # Curriculum-local overrides of the course flags (NULL = use course value)
    override_requires_permission = db.Column(db.Boolean, nullable=True)
    override_summer_only = db.Column(db.Boolean, nullable=True)
    override_requires_senior_standing = db.Column(db.Boolean, nullable=True)
    override_min_credit_threshold = db.Column(db.Integer, nullable=True)

    curriculum = db.relationship("Curriculum", back_populates="curriculum_courses", lazy=True)
    course = db.relationship("Course", back_populates="curriculum_courses", lazy=True)

    curriculum_prerequisites = db.relationship(
        "CurriculumCoursePrerequisite",
        foreign_keys="CurriculumCoursePrerequisite.curriculum_course_id",
        back_populates="curriculum_course",
        cascade="all, delete-orphan",
        lazy=True,
    )
    curriculum_corequisites = db.relationship(
        "CurriculumCourseCorequisite",
        foreign_keys="CurriculumCourseCorequisite.curriculum_course_id",
        back_populates="curriculum_course",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def override_flags(self) -> dict:
        return {
            "overrideRequiresPermission": self.override_requires_permission,
            "overrideSummerOnly": self.override_summer_only,
            "overrideRequiresSeniorStanding": self.override_requires_senior_standing,
            "overrideMinCreditThreshold": self.override_min_credit_threshold,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "curriculumId": self.curriculum_id,
            "courseId": self.course_id,
            "position": self.position,
            "isRequired": self.is_required,
            "semester": self.semester,
            "year": self.year,
            "course": self.course.to_summary() if self.course else None,
            **self.override_flags(),
        }

    def __repr__(self) -> str:
        return f"<CurriculumCourse curriculum={self.curriculum_id} course={self.course_id}>"


# For this curriculum, curriculum course X requires curriculum course Y
class CurriculumCoursePrerequisite(db.Model):
    __tablename__ = "curriculum_course_prerequisite"

    __table_args__ = (
        db.UniqueConstraint(
            "curriculum_course_id",
            "prerequisite_course_id",
            name="uq_cc_prereq",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_course_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum_course.id", ondelete="CASCADE"),
        nullable=False,
    )
    prerequisite_course_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum_course.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    curriculum_course = db.relationship(
        "CurriculumCourse",
        foreign_keys=[curriculum_course_id],
        back_populates="curriculum_prerequisites",
        lazy=True,
    )
    prerequisite_course = db.relationship(
        "CurriculumCourse",
        foreign_keys=[prerequisite_course_id],
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<CCPrereq {self.prerequisite_course_id} -> {self.curriculum_course_id}>"


# Symmetric like CourseCorequisite, but scoped to one curriculum
class CurriculumCourseCorequisite(db.Model):
    __tablename__ = "curriculum_course_corequisite"

    __table_args__ = (
        db.UniqueConstraint(
            "curriculum_course_id",
            "corequisite_course_id",
            name="uq_cc_coreq",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_course_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum_course.id", ondelete="CASCADE"),
        nullable=False,
    )
    corequisite_course_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum_course.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    curriculum_course = db.relationship(
        "CurriculumCourse",
        foreign_keys=[curriculum_course_id],
        back_populates="curriculum_corequisites",
        lazy=True,
    )
    corequisite_course = db.relationship(
        "CurriculumCourse",
        foreign_keys=[corequisite_course_id],
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<CCCoreq {self.curriculum_course_id} <-> {self.corequisite_course_id}>"
