from datetime import datetime
from extensions import db

CREATE = "CREATE"
UPDATE = "UPDATE"
DELETE = "DELETE"
ASSIGN = "ASSIGN"
UNASSIGN = "UNASSIGN"

AUDIT_ACTIONS = (CREATE, UPDATE, DELETE, ASSIGN, UNASSIGN)


# Append-only; rows are never updated or deleted by the app
class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )

    entity_type = db.Column(db.String(64), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=True)
    action = db.Column(db.String(16), nullable=False)
    description = db.Column(db.Text, nullable=True)
    changes = db.Column(db.JSON, nullable=True)

    # Plain ids, not FKs: the log must outlive what it describes
    curriculum_id = db.Column(db.Integer, nullable=True, index=True)
    course_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = db.relationship("User", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "user": self.user.email if self.user else None,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "action": self.action,
            "description": self.description,
            "changes": self.changes,
            "curriculumId": self.curriculum_id,
            "courseId": self.course_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
