from flask import Response

from auth.decorators import role_required
from models.user import CHAIRPERSON
from utils.course_catalog import sample_csv, sample_xlsx

from . import api_bp

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@api_bp.route("/download/sample-csv", methods=["GET"])
@role_required(CHAIRPERSON)
def download_sample_csv():
    return Response(
        sample_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=course_template.csv"},
    )


@api_bp.route("/download/sample-xlsx", methods=["GET"])
@role_required(CHAIRPERSON)
def download_sample_xlsx():
    return Response(
        sample_xlsx(),
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": "attachment; filename=course_template.xlsx"},
    )
