from datetime import datetime
from extensions import db


class ElectiveRule(db.Model):
    __tablename__ = "elective_rule"

    __table_args__ = (
        db.UniqueConstraint("curriculum_id", "category", name="uq_elective_rule_category"),
    )

    id = db.Column(db.Integer, primary_key=True)
    curriculum_id = db.Column(
        db.Integer,
        db.ForeignKey("curriculum.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # "Free Elective" by convention marks the free-elective bucket
    category = db.Column(db.String(120), nullable=False)
    required_credits = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    curriculum = db.relationship("Curriculum", back_populates="elective_rules", lazy=True)

    @property
    def is_free_elective(self) -> bool:
        return "free" in (self.category or "").lower()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "curriculumId": self.curriculum_id,
            "category": self.category,
            "requiredCredits": self.required_credits,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"<ElectiveRule {self.category} {self.required_credits}cr>"
