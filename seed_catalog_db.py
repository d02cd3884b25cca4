from app import app
from extensions import db
from models.course import Course
from utils.course_catalog import load_catalog
from utils.logging import get_logger

logger = get_logger(__name__)


def seed_catalog():
    catalog = load_catalog(app.config["CATALOG_DIR"])

    inserted = 0
    skipped = 0

    for c in catalog:
        exists = Course.query.filter_by(code=c.code).first()
        if exists:
            skipped += 1
            continue

        db.session.add(
            Course(
                code=c.code,
                name=c.name,
                credits=c.credits,
                credit_hours=c.credit_hours,
                description=c.description,
            )
        )
        inserted += 1

    db.session.commit()
    logger.info("catalog_seeded", inserted=inserted, skipped=skipped)


if __name__ == "__main__":
    with app.app_context():
        seed_catalog()
