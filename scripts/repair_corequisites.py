"""
repair_corequisites.py - Restore missing reverse corequisite rows

Corequisites are stored twice, (A, B) and (B, A). Rows written by hand or
by an old import can be one-sided; this script finds them and adds the
missing reverse row.

What it does:
- Global level: every CourseCorequisite (A, B) without (B, A) gets (B, A)
- Curriculum level: same for CurriculumCourseCorequisite rows
- Self-edges (A, A) are deleted

Safety notes:
- This script writes directly to the database.
- Only inserts missing rows (and deletes self-edges); nothing else changes.

Usage:
    python scripts/repair_corequisites.py
"""

import os
import sys

# Make project root importable (so `import app` works when running from /scripts)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import create_app  # noqa: E402
from extensions import db  # noqa: E402
from models.curriculum import CurriculumCourseCorequisite  # noqa: E402
from models.prerequisite import CourseCorequisite  # noqa: E402
from utils.logging import get_logger  # noqa: E402

logger = get_logger(__name__)


def _repair(model, left: str, right: str) -> tuple[int, int]:
    rows = model.query.all()
    pairs = {(getattr(r, left), getattr(r, right)) for r in rows}

    added = 0
    removed = 0
    for r in rows:
        a, b = getattr(r, left), getattr(r, right)
        if a == b:
            db.session.delete(r)
            removed += 1
            continue
        if (b, a) not in pairs:
            db.session.add(model(**{left: b, right: a}))
            pairs.add((b, a))
            added += 1
    return added, removed


def repair_corequisites() -> dict:
    """Make every corequisite pair symmetric. Returns what changed."""
    g_added, g_removed = _repair(CourseCorequisite, "course_id", "corequisite_id")
    c_added, c_removed = _repair(CurriculumCourseCorequisite, "curriculum_course_id", "corequisite_course_id")
    db.session.commit()

    result = {
        "globalAdded": g_added,
        "globalSelfEdgesRemoved": g_removed,
        "curriculumAdded": c_added,
        "curriculumSelfEdgesRemoved": c_removed,
    }
    logger.info("corequisites_repaired", **result)
    return result


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        repair_corequisites()
