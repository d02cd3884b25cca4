from datetime import datetime
from extensions import db


# A credit range (min..max) filled by curriculum courses of the source types
class CreditPool(db.Model):
    __tablename__ = "credit_pool"

    __table_args__ = (
        db.CheckConstraint(
            "max_credits IS NULL OR max_credits >= min_credits",
            name="ck_credit_pool_range",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    min_credits = db.Column(db.Integer, nullable=False, default=0)
    max_credits = db.Column(db.Integer, nullable=True)  # NULL = unbounded

    enabled = db.Column(db.Boolean, nullable=False, default=True)
    # Lower index = consumes courses first
    order_index = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    curriculum = db.relationship(
        "Curriculum",
        backref=db.backref("credit_pools", cascade="all, delete-orphan", passive_deletes=True, lazy=True),
        lazy=True,
    )

    sources = db.relationship(
        "PoolSource",
        back_populates="pool",
        cascade="all, delete-orphan",
        lazy=True,
    )
    sub_categories = db.relationship(
        "SubCategoryPool",
        back_populates="pool",
        cascade="all, delete-orphan",
        order_by="SubCategoryPool.order_index",
        lazy=True,
    )

    def source_type_ids(self) -> set:
        return {s.course_type_id for s in self.sources}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "curriculumId": self.curriculum_id,
            "name": self.name,
            "description": self.description,
            "minCredits": self.min_credits,
            "maxCredits": self.max_credits,
            "enabled": self.enabled,
            "orderIndex": self.order_index,
            "sources": [s.to_dict() for s in self.sources],
            "subCategories": [sc.to_dict() for sc in self.sub_categories],
        }

    def __repr__(self) -> str:
        return f"<CreditPool {self.name} {self.min_credits}-{self.max_credits}>"


class PoolSource(db.Model):
    __tablename__ = "pool_source"

    __table_args__ = (
        db.UniqueConstraint("pool_id", "course_type_id", name="uq_pool_source"),
    )

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(
        db.Integer,
        db.ForeignKey("credit_pool.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_type_id = db.Column(
        db.Integer,
        db.ForeignKey("course_type.id", ondelete="CASCADE"),
        nullable=False,
    )

    pool = db.relationship("CreditPool", back_populates="sources", lazy=True)
    course_type = db.relationship("CourseType", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "courseTypeId": self.course_type_id,
            "courseType": self.course_type.name if self.course_type else None,
        }


# Splits a pool's requirement further, e.g. "6 credits of Networking"
class SubCategoryPool(db.Model):
    __tablename__ = "sub_category_pool"

    __table_args__ = (
        db.UniqueConstraint("pool_id", "course_type_id", name="uq_sub_category_pool"),
    )

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(
        db.Integer,
        db.ForeignKey("credit_pool.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_type_id = db.Column(
        db.Integer,
        db.ForeignKey("course_type.id", ondelete="CASCADE"),
        nullable=False,
    )
    required_credits = db.Column(db.Integer, nullable=False, default=0)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    pool = db.relationship("CreditPool", back_populates="sub_categories", lazy=True)
    course_type = db.relationship("CourseType", lazy=True)

    attached_courses = db.relationship(
        "AttachedPoolCourse",
        back_populates="sub_category",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "poolId": self.pool_id,
            "courseTypeId": self.course_type_id,
            "courseType": self.course_type.name if self.course_type else None,
            "requiredCredits": self.required_credits,
            "orderIndex": self.order_index,
            "courses": [a.course.to_summary() for a in self.attached_courses],
        }


class AttachedPoolCourse(db.Model):
    __tablename__ = "attached_pool_course"

    __table_args__ = (
        db.UniqueConstraint("sub_category_id", "course_id", name="uq_attached_pool_course"),
    )

    id = db.Column(db.Integer, primary_key=True)
    sub_category_id = db.Column(
        db.Integer,
        db.ForeignKey("sub_category_pool.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id = db.Column(
        db.Integer,
        db.ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    sub_category = db.relationship("SubCategoryPool", back_populates="attached_courses", lazy=True)
    course = db.relationship("Course", lazy=True)
