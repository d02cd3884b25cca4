from __future__ import annotations

from dataclasses import dataclass, asdict
from io import BytesIO, StringIO
from pathlib import Path
import re

import pandas as pd

from utils.logging import get_logger

logger = get_logger(__name__)

# Column order of the import templates (CSV and XLSX)
CATALOG_COLUMNS = ["Course Code", "Course Title", "Credits", "Course Description", "Crd Hour"]

# Accepted spellings per field, matched after normalize_header()
_HEADER_ALIASES = {
    "code": ("course code", "code"),
    "name": ("course title", "title", "name", "course name"),
    "credits": ("credits", "credit"),
    "description": ("course description", "description"),
    "credit_hours": ("crd hour", "credit hours", "credit hour", "crd hours"),
}

SAMPLE_ROWS = [
    ("CSX3001", "Fundamentals of Computer Programming", 3, "Basic programming concepts and logic structures", "3-0-6"),
    ("CSX3002", "Object-Oriented Concept and Programming", 3, "OOP principles and design patterns", "3-0-6"),
    ("CSX3003", "Data Structure and Algorithm", 3, "Data structures implementation and algorithm analysis", "3-0-6"),
    ("CSX3005", "Computer Network", 3, "Network protocols and distributed systems", "3-0-6"),
    ("ITX3007", "Software Engineering", 3, "Software development lifecycle and project management", "3-0-6"),
    ("ELE1001", "Communicative English I", 3, "Basic English communication skills", "3-0-6"),
    ("GE1403", "Communication in Thai", 2, "Thai language communication skills", "2-0-4"),
    ("GE1003", "Physics I", 4, "Mechanics and thermodynamics principles", "3-2-8"),
]


@dataclass(frozen=True)
class CatalogRow:
    code: str
    name: str
    credits: int
    description: str | None = None
    credit_hours: str | None = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["creditHours"] = d.pop("credit_hours")
        return d


def normalize_text(s) -> str:
    s = str(s or "").strip()
    s = re.sub(r"\s+", " ", s)
    return s


def normalize_header(s) -> str:
    return normalize_text(s).lower()


def _cell(r, col: str | None) -> str | None:
    if col is None:
        return None
    v = r.get(col)
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return None
    s = normalize_text(v)
    return s if s else None


def _resolve_columns(df: pd.DataFrame) -> dict[str, str | None]:
    by_norm = {normalize_header(c): c for c in df.columns}
    out: dict[str, str | None] = {}
    for field, aliases in _HEADER_ALIASES.items():
        out[field] = next((by_norm[a] for a in aliases if a in by_norm), None)
    return out


def parse_catalog_frame(df: pd.DataFrame) -> tuple[list[CatalogRow], list[dict]]:
    """Turn a catalog sheet into rows.

    Bad rows are reported in the second list as ``{"row": n, "message": ...}``
    (n is the 1-based spreadsheet line, header = 1) and never abort the parse.
    A sheet missing the code/title/credits columns is reported as a single
    error on row 1.
    """
    cols = _resolve_columns(df)
    missing = [f for f in ("code", "name", "credits") if cols[f] is None]
    if missing:
        return [], [{"row": 1, "message": f"Missing required column(s): {', '.join(missing)}"}]

    rows: list[CatalogRow] = []
    errors: list[dict] = []
    seen: set[str] = set()

    for i, r in df.iterrows():
        line = int(i) + 2
        code = _cell(r, cols["code"])
        name = _cell(r, cols["name"])
        credits_raw = _cell(r, cols["credits"])

        # blank spreadsheet line
        if not code and not name and not credits_raw:
            continue

        if not code or not name:
            errors.append({"row": line, "message": "Course code and title are required"})
            continue

        try:
            as_float = float(credits_raw) if credits_raw else None
            # "3.0" from numeric xlsx cells is fine, 3.5 or inf is not
            credits = int(as_float) if as_float is not None and as_float.is_integer() else None
        except (ValueError, OverflowError):
            credits = None
        if credits is None or credits < 0:
            errors.append({"row": line, "message": f"Invalid credits for {code}: {credits_raw!r}"})
            continue

        code = code.upper()
        if code in seen:
            errors.append({"row": line, "message": f"Duplicate course code {code} in file"})
            continue
        seen.add(code)

        rows.append(
            CatalogRow(
                code=code,
                name=name,
                credits=credits,
                description=_cell(r, cols["description"]),
                credit_hours=_cell(r, cols["credit_hours"]),
            )
        )

    return rows, errors


def read_catalog_frame(filename: str, stream) -> pd.DataFrame:
    suffix = Path(filename or "").suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(stream, dtype=str, keep_default_na=False)
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(stream, dtype=str)
    raise ValueError(f"Unsupported file type: {suffix or filename!r} (expected .csv or .xlsx)")


def parse_upload(filename: str, stream) -> tuple[list[CatalogRow], list[dict]]:
    df = read_catalog_frame(filename, stream)
    rows, errors = parse_catalog_frame(df)
    logger.info("catalog_upload_parsed", filename=filename, rows=len(rows), errors=len(errors))
    return rows, errors


def load_catalog(directory: str) -> list[CatalogRow]:
    """Read every CSV/XLSX in ``directory`` (used by seed_catalog_db.py)."""
    p = Path(directory)
    if not p.exists() or not p.is_dir():
        return []

    items: dict[str, CatalogRow] = {}
    for f in sorted(list(p.glob("*.xlsx")) + list(p.glob("*.csv"))):
        try:
            with f.open("rb") as fh:
                rows, errors = parse_catalog_frame(read_catalog_frame(f.name, fh))
        except (OSError, ValueError) as e:
            logger.warning("catalog_file_skipped", file=f.name, error=str(e))
            continue
        for err in errors:
            logger.warning("catalog_row_skipped", file=f.name, **err)
        # later files win on duplicate codes
        for row in rows:
            items[row.code] = row

    return sorted(items.values(), key=lambda c: c.code)


def _sample_frame() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_ROWS, columns=CATALOG_COLUMNS)


def sample_csv() -> str:
    buf = StringIO()
    _sample_frame().to_csv(buf, index=False)
    return buf.getvalue()


def sample_xlsx() -> bytes:
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        _sample_frame().to_excel(writer, index=False, sheet_name="Courses")
        ws = writer.sheets["Courses"]
        for letter, width in zip("ABCDE", (12, 40, 8, 50, 10)):
            ws.column_dimensions[letter].width = width
    return buf.getvalue()
