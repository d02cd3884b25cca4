from datetime import datetime
from extensions import db

MINIMUM_GPA = "MINIMUM_GPA"
SENIOR_STANDING = "SENIOR_STANDING"
TOTAL_CREDITS = "TOTAL_CREDITS"
CATEGORY_CREDITS = "CATEGORY_CREDITS"
CUSTOM = "CUSTOM"

CONSTRAINT_TYPES = (MINIMUM_GPA, SENIOR_STANDING, TOTAL_CREDITS, CATEGORY_CREDITS, CUSTOM)


# Curriculum-wide requirement, e.g. "minimum GPA 2.0" or "at least 132 credits"
class CurriculumConstraint(db.Model):
    __tablename__ = "curriculum_constraint"

    id = db.Column(db.Integer, primary_key=True)
    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_required = db.Column(db.Boolean, nullable=False, default=True)

    # Free-form per type, e.g. {"minGpa": 2.0} or {"minCredits": 132}
    config = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    curriculum = db.relationship("Curriculum", back_populates="constraints", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "curriculumId": self.curriculum_id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "isRequired": self.is_required,
            "config": self.config,
        }

    def __repr__(self) -> str:
        return f"<CurriculumConstraint {self.type} {self.name}>"
