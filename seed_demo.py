"""Demo data: one faculty, two departments, a user per role and a BSCS curriculum.

Run after init_db.py. Safe to re-run: exits early when the demo faculty exists.
"""
from app import app
from extensions import db
from models.faculty import Faculty, Department
from models.user import User, SUPER_ADMIN, CHAIRPERSON, ADVISOR, STUDENT
from services.curricula import create_curriculum
from utils.course_catalog import SAMPLE_ROWS
from utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PASSWORD = "password123"


def main():
    with app.app_context():
        if Faculty.query.filter_by(code="VMES").first():
            logger.info("demo_exists")
            return

        faculty = Faculty(name="Vincent Mary School of Engineering, Science and Technology", code="VMES")
        cs = Department(name="Computer Science", code="CS", faculty=faculty)
        it = Department(name="Information Technology", code="IT", faculty=faculty)
        db.session.add_all([faculty, cs, it])
        db.session.flush()

        users = {}
        for role, email, dept in (
            (SUPER_ADMIN, "admin@example.edu", None),
            (CHAIRPERSON, "chair@example.edu", cs),
            (ADVISOR, "advisor@example.edu", cs),
            (STUDENT, "student@example.edu", cs),
        ):
            u = User(
                email=email,
                name=role.title().replace("_", " "),
                role=role,
                faculty_id=faculty.id,
                department_id=dept.id if dept else None,
            )
            u.set_password(DEMO_PASSWORD)
            db.session.add(u)
            users[role] = u
        db.session.commit()

        curriculum = create_curriculum(
            users[CHAIRPERSON],
            {
                "name": "BSCS",
                "year": "2022",
                "description": "Bachelor of Science in Computer Science",
                "courses": [
                    {
                        "code": code,
                        "name": name,
                        "credits": credits,
                        "description": description,
                        "creditHours": hours,
                        "category": "Major" if code.startswith(("CSX", "ITX")) else "General Education",
                    }
                    for code, name, credits, description, hours in SAMPLE_ROWS
                ],
                "constraints": [
                    {"type": "MINIMUM_GPA", "name": "Minimum GPA", "config": {"minGpa": 2.0}},
                    {"type": "TOTAL_CREDITS", "name": "Total credits", "config": {"minCredits": 132}},
                ],
                "electiveRules": [{"category": "Free Electives", "requiredCredits": 6}],
            },
        )
        logger.info("demo_seeded", curriculum_id=curriculum.id, users=sorted(u.email for u in users.values()))


if __name__ == "__main__":
    main()
