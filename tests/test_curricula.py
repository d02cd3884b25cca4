"""
Tests for curriculum CRUD, curriculum courses and cloning.
"""
from extensions import db
from models.audit_log import AuditLog
from models.course import Course
from models.credit_pool import AttachedPoolCourse
from models.curriculum import Curriculum, CurriculumCourse, CurriculumCoursePrerequisite
from tests.conftest import curriculum_course_id, error_code

TWELVE = [f"CSX30{i:02d}" for i in range(1, 13)]


class TestCreateCurriculum:
    """POST /api/curricula"""

    def test_create_with_courses(self, app, chair_client, make_course, ids):
        make_course("CSX3001", name="Old Title")
        response = chair_client.post(
            "/api/curricula",
            json={
                "name": "BSCS",
                "year": "2022",
                "courses": [
                    {"code": "CSX3001", "name": "Fundamentals of Computer Programming", "credits": 3},
                    {"code": "CSX3002", "name": "Discrete Mathematics", "credits": 3},
                ],
                "constraints": [{"type": "TOTAL_CREDITS", "name": "Total credits", "config": {"minCredits": 132}}],
                "electiveRules": [{"category": "Major Elective", "requiredCredits": 15}],
            },
        )
        assert response.status_code == 201
        curriculum = response.get_json()["curriculum"]
        assert curriculum["departmentId"] == ids.cs
        assert curriculum["version"] == "1.0"
        assert curriculum["_count"] == {"curriculumCourses": 2, "curriculumConstraints": 1, "electiveRules": 1}

        with app.app_context():
            # existing catalog rows are reused and refreshed
            assert Course.query.count() == 2
            assert Course.query.filter_by(code="CSX3001").one().name == "Fundamentals of Computer Programming"

    def test_duplicate_curriculum(self, chair_client, make_curriculum):
        make_curriculum(name="BSCS", year="2022")
        response = chair_client.post("/api/curricula", json={"name": "BSCS", "year": "2022"})
        assert response.status_code == 409
        assert error_code(response) == "DUPLICATE_CURRICULUM"

    def test_same_name_other_version(self, chair_client, make_curriculum):
        make_curriculum(name="BSCS", year="2022")
        response = chair_client.post("/api/curricula", json={"name": "BSCS", "year": "2022", "version": "2.0"})
        assert response.status_code == 201

    def test_department_outside_faculty(self, chair_client, ids):
        response = chair_client.post(
            "/api/curricula", json={"name": "BBA", "year": "2022", "departmentId": ids.mkt}
        )
        assert response.status_code == 403

    def test_course_listed_twice(self, app, chair_client):
        response = chair_client.post(
            "/api/curricula",
            json={
                "name": "BSCS",
                "year": "2022",
                "courses": [
                    {"code": "CSX3001", "name": "A", "credits": 3},
                    {"code": "CSX3001", "name": "A", "credits": 3},
                ],
            },
        )
        assert error_code(response) == "INVALID_INPUT"
        with app.app_context():
            assert Curriculum.query.count() == 0


class TestListAndAccess:
    """Faculty scoping of curricula."""

    def test_list_scoped_to_faculty(self, chair_client, outsider_client, make_curriculum, ids):
        make_curriculum(name="BSCS")
        make_curriculum(name="BSIT", department_id=ids.it)
        make_curriculum(name="BBA", department_id=ids.mkt)

        names = {c["name"] for c in chair_client.get("/api/curricula").get_json()["curricula"]}
        assert names == {"BSCS", "BSIT"}

        names = {c["name"] for c in outsider_client.get("/api/curricula").get_json()["curricula"]}
        assert names == {"BBA"}

    def test_other_faculty_gets_404(self, outsider_client, make_curriculum):
        curriculum_id = make_curriculum()
        assert outsider_client.get(f"/api/curricula/{curriculum_id}").status_code == 404

    def test_deactivate_hides_from_list(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        assert chair_client.delete(f"/api/curricula/{curriculum_id}").status_code == 200
        assert chair_client.get("/api/curricula").get_json()["curricula"] == []
        data = chair_client.get("/api/curricula?includeInactive=true").get_json()
        assert data["curricula"][0]["isActive"] is False

    def test_get_includes_children(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001", "CSX3002"], constraints=1)
        data = chair_client.get(f"/api/curricula/{curriculum_id}").get_json()["curriculum"]
        assert [cc["course"]["code"] for cc in data["curriculumCourses"]] == ["CSX3001", "CSX3002"]
        assert len(data["curriculumConstraints"]) == 1
        assert data["blacklists"] == []
        assert data["department"]["code"] == "CS"

    def test_update_to_existing_identity(self, app, chair_client, make_curriculum):
        make_curriculum(name="BSCS", year="2022")
        other = make_curriculum(name="BSCS", year="2023")
        response = chair_client.put(f"/api/curricula/{other}", json={"year": "2022", "description": "Renamed"})
        assert response.status_code == 409
        assert error_code(response) == "DUPLICATE_CURRICULUM"

        with app.app_context():
            curriculum = db.session.get(Curriculum, other)
            assert curriculum.year == "2023"
            assert curriculum.description is None


class TestCurriculumCourses:
    """Adding, updating and removing courses of a curriculum."""

    def test_add_update_remove(self, app, chair_client, make_curriculum, make_course):
        curriculum_id = make_curriculum(course_codes=["CSX3001"])
        course_id = make_course("CSX3002")
        url = f"/api/curricula/{curriculum_id}/courses"

        response = chair_client.post(url, json={"courseId": course_id, "semester": "2", "year": 1})
        assert response.status_code == 201
        assert response.get_json()["curriculumCourse"]["position"] == 1

        response = chair_client.post(url, json={"courseId": course_id})
        assert error_code(response) == "DUPLICATE"

        response = chair_client.put(f"{url}/{course_id}", json={"isRequired": False})
        assert response.get_json()["curriculumCourse"]["isRequired"] is False

        assert chair_client.delete(f"{url}/{course_id}").status_code == 200
        assert chair_client.delete(f"{url}/{course_id}").status_code == 404

    def test_remove_drops_edges_pointing_at_course(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001", "CSX3002"])
        other_id = make_curriculum(name="BSIT", course_codes=["CSX3001"])
        cc_1 = curriculum_course_id(app, curriculum_id, "CSX3001")
        cc_2 = curriculum_course_id(app, curriculum_id, "CSX3002")
        chair_client.post(
            f"/api/curricula/{curriculum_id}/courses/{cc_2}/prerequisites",
            json={"prerequisiteCurriculumCourseId": cc_1},
        )

        with app.app_context():
            course_id = Course.query.filter_by(code="CSX3001").one().id
        core = chair_client.post("/api/course-types", json={"name": "Core"}).get_json()["courseType"]["id"]
        chair_client.post("/api/course-types/assign", json={"courseIds": [course_id], "courseTypeId": core})

        # the course sits in a sub-category of both curricula
        for cid in (curriculum_id, other_id):
            url = f"/api/curricula/{cid}/credit-pools"
            pool_id = chair_client.post(url, json={"name": "Core", "sourceTypeIds": [core]}).get_json()["pool"]["id"]
            sub_id = chair_client.post(
                f"{url}/{pool_id}/sub-categories", json={"courseTypeId": core, "requiredCredits": 3}
            ).get_json()["subCategory"]["id"]
            response = chair_client.post(
                f"{url}/{pool_id}/sub-categories/{sub_id}/courses", json={"courseId": course_id}
            )
            assert response.status_code == 201

        assert chair_client.delete(f"/api/curricula/{curriculum_id}/courses/{course_id}").status_code == 200

        with app.app_context():
            assert CurriculumCoursePrerequisite.query.count() == 0
            assert CurriculumCourse.query.filter_by(curriculum_id=curriculum_id).count() == 1
            remaining = [
                a.sub_category.pool.curriculum_id for a in AttachedPoolCourse.query.filter_by(course_id=course_id)
            ]
            assert remaining == [other_id]


class TestCloneCurriculum:
    """POST /api/curricula/<id>/clone"""

    def test_clone_copies_children(self, app, chair_client, make_curriculum):
        source_id = make_curriculum(
            name="BSCS", year="2022", course_codes=TWELVE, constraints=2, rules=[("Free Electives", 6)]
        )
        cc_1 = curriculum_course_id(app, source_id, "CSX3001")
        cc_2 = curriculum_course_id(app, source_id, "CSX3002")
        chair_client.post(
            f"/api/curricula/{source_id}/courses/{cc_2}/prerequisites",
            json={"prerequisiteCurriculumCourseId": cc_1},
        )

        with app.app_context():
            audit_before = AuditLog.query.count()

        response = chair_client.post(f"/api/curricula/{source_id}/clone", json={"name": "BSCS", "year": "2023"})
        assert response.status_code == 201
        clone = response.get_json()["curriculum"]
        assert clone["year"] == "2023"
        assert clone["version"] == "1.0"
        assert clone["_count"] == {"curriculumCourses": 12, "curriculumConstraints": 2, "electiveRules": 1}

        with app.app_context():
            entries = AuditLog.query.order_by(AuditLog.id).all()[audit_before:]
            assert len(entries) == 1
            assert entries[0].entity_type == "Curriculum"
            assert entries[0].action == "CREATE"
            assert entries[0].changes["sourceId"] == source_id
            assert entries[0].changes["source"] == entries[0].changes["target"]
            assert entries[0].changes["target"] == {"curriculumCourses": 12, "curriculumConstraints": 2, "electiveRules": 1}

            # the edge now joins the clone's own rows
            clone_cc = {
                cc.course.code: cc.id
                for cc in CurriculumCourse.query.filter_by(curriculum_id=clone["id"]).all()
            }
            edge = (
                CurriculumCoursePrerequisite.query.filter_by(curriculum_course_id=clone_cc["CSX3002"]).one()
            )
            assert edge.prerequisite_course_id == clone_cc["CSX3001"]

            # source untouched
            assert CurriculumCourse.query.filter_by(curriculum_id=source_id).count() == 12

    def test_clone_into_existing_identity(self, chair_client, make_curriculum):
        source_id = make_curriculum(name="BSCS", year="2022")
        response = chair_client.post(f"/api/curricula/{source_id}/clone", json={"name": "BSCS"})
        assert response.status_code == 409
        assert error_code(response) == "DUPLICATE_CURRICULUM"

    def test_clone_requires_name(self, chair_client, make_curriculum):
        source_id = make_curriculum()
        response = chair_client.post(f"/api/curricula/{source_id}/clone", json={})
        assert error_code(response) == "VALIDATION_ERROR"
