from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from extensions import db

SUPER_ADMIN = "SUPER_ADMIN"
CHAIRPERSON = "CHAIRPERSON"
ADVISOR = "ADVISOR"
STUDENT = "STUDENT"

ROLES = (SUPER_ADMIN, CHAIRPERSON, ADVISOR, STUDENT)


class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(150), unique=True, nullable=False)
    name = db.Column(db.String(150), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=STUDENT)

    faculty_id = db.Column(
        db.Integer,
        db.ForeignKey("faculty.id", ondelete="SET NULL"),
        nullable=True,
    )
    department_id = db.Column(
        db.Integer,
        db.ForeignKey("department.id", ondelete="SET NULL"),
        nullable=True,
    )

    faculty = db.relationship("Faculty", lazy=True)
    department = db.relationship("Department", lazy=True)

    def set_password(self, password: str) -> None:
        # use PBKDF2 instead of the default scrypt
        self.password_hash = generate_password_hash(
            password,
            method="pbkdf2:sha256",
            salt_length=16,
        )

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "facultyId": self.faculty_id,
            "departmentId": self.department_id,
        }

    def __repr__(self) -> str:
        return f"<User {self.email}>"
