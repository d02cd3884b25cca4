from datetime import datetime
from extensions import db


class Faculty(db.Model):
    __tablename__ = "faculty"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), unique=True, nullable=False)

    # What this faculty calls a "concentration" (e.g. "Track", "Major")
    concentration_label = db.Column(db.String(64), nullable=False, default="Concentration")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    departments = db.relationship(
        "Department",
        back_populates="faculty",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Faculty {self.code}>"


class Department(db.Model):
    __tablename__ = "department"

    __table_args__ = (
        db.UniqueConstraint("faculty_id", "code", name="uq_department_faculty_code"),
    )

    id = db.Column(db.Integer, primary_key=True)
    faculty_id = db.Column(
        db.Integer,
        db.ForeignKey("faculty.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    faculty = db.relationship("Faculty", back_populates="departments", lazy=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "code": self.code, "facultyId": self.faculty_id}

    def __repr__(self) -> str:
        return f"<Department {self.code}>"
