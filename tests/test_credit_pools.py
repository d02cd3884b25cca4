"""
Tests for course types, credit pools and the credit distribution.
"""
from types import SimpleNamespace

from extensions import db
from models.course import Course
from models.course_type import CourseType, DepartmentCourseType
from services.credit_pools import calculate_pool_credits, detect_pool_overlaps
from tests.conftest import error_code


def _pool(pid, order, sources, min_credits=0, max_credits=None, enabled=True):
    return SimpleNamespace(
        id=pid,
        name=f"Pool {pid}",
        order_index=order,
        min_credits=min_credits,
        max_credits=max_credits,
        enabled=enabled,
        source_type_ids=lambda: set(sources),
    )


CORE, MAJOR, MAJOR_ELECTIVE = 1, 2, 3
TYPES = {
    CORE: SimpleNamespace(id=CORE, parent_id=None),
    MAJOR: SimpleNamespace(id=MAJOR, parent_id=None),
    MAJOR_ELECTIVE: SimpleNamespace(id=MAJOR_ELECTIVE, parent_id=MAJOR),
}
COURSES = [
    (10, "A", 3),
    (11, "B", 3),
    (12, "C", 3),
    (13, "D", 3),
    (14, "E", 3),
]
COURSE_TYPES = {10: CORE, 11: MAJOR_ELECTIVE, 12: MAJOR_ELECTIVE, 13: MAJOR}


class TestCalculatePoolCredits:
    """Pure distribution logic."""

    def test_priority_cap_and_hierarchy(self):
        pools = [
            _pool(4, 2, [CORE], min_credits=6),
            _pool(3, 1, [CORE], enabled=False),
            _pool(2, 1, [MAJOR], min_credits=3),
            _pool(1, 0, [MAJOR], min_credits=6, max_credits=6),
        ]
        results = calculate_pool_credits(pools, COURSES, COURSE_TYPES, TYPES)

        assert [r["poolId"] for r in results] == [1, 2, 4]

        capped, second, core = results
        # B and C reach Major through their parent type, D would exceed the cap
        assert capped["matchedCourses"] == ["B", "C"]
        assert capped["appliedCredits"] == 6
        assert capped["overflowCredits"] == 3
        assert capped["isSatisfied"] is True

        # D was not consumed by the capped pool
        assert second["matchedCourses"] == ["D"]
        assert second["overflowCredits"] == 0

        assert core["appliedCredits"] == 3
        assert core["remainingCredits"] == 3
        assert core["isSatisfied"] is False

    def test_untyped_courses_match_nothing(self):
        results = calculate_pool_credits([_pool(1, 0, [CORE, MAJOR])], [(14, "E", 3)], COURSE_TYPES, TYPES)
        assert results[0]["appliedCredits"] == 0

    def test_detect_overlaps(self):
        pools = [_pool(1, 0, [CORE]), _pool(2, 1, [CORE, MAJOR]), _pool(3, 2, [MAJOR_ELECTIVE])]
        assert detect_pool_overlaps(pools) == {1: [2], 2: [1]}


class TestCourseTypes:
    """/api/course-types"""

    def test_create_and_duplicate(self, chair_client, ids):
        response = chair_client.post("/api/course-types", json={"name": "Core", "color": "#FF0000"})
        assert response.status_code == 201
        ct = response.get_json()["courseType"]
        assert ct["color"] == "#ff0000"
        assert ct["departmentId"] == ids.cs

        response = chair_client.post("/api/course-types", json={"name": "Core"})
        assert error_code(response) == "DUPLICATE"

    def test_bad_color(self, chair_client):
        response = chair_client.post("/api/course-types", json={"name": "Core", "color": "red"})
        assert error_code(response) == "INVALID_INPUT"

    def test_parent_cycle(self, chair_client):
        parent = chair_client.post("/api/course-types", json={"name": "Major"}).get_json()["courseType"]["id"]
        child = chair_client.post(
            "/api/course-types", json={"name": "Major Elective", "parentId": parent}
        ).get_json()["courseType"]["id"]

        response = chair_client.put(f"/api/course-types/{parent}", json={"parentId": child})
        assert error_code(response) == "INVALID_INPUT"

    def test_assign_and_clear(self, app, chair_client, make_course, ids):
        a = make_course("CSX3001")
        b = make_course("CSX3002")
        ct = chair_client.post("/api/course-types", json={"name": "Core"}).get_json()["courseType"]["id"]

        response = chair_client.post("/api/course-types/assign", json={"courseIds": [a, b], "courseTypeId": ct})
        assert response.get_json()["assigned"] == 2

        response = chair_client.post(
            "/api/course-types/assign", json={"courseIds": [a], "courseTypeId": None, "departmentId": ids.cs}
        )
        assert response.get_json()["removed"] == 1
        with app.app_context():
            assert DepartmentCourseType.query.count() == 1

    def test_delete_moves_children_up(self, app, chair_client):
        top = chair_client.post("/api/course-types", json={"name": "Major"}).get_json()["courseType"]["id"]
        mid = chair_client.post(
            "/api/course-types", json={"name": "Elective", "parentId": top}
        ).get_json()["courseType"]["id"]
        leaf = chair_client.post(
            "/api/course-types", json={"name": "Track", "parentId": mid}
        ).get_json()["courseType"]["id"]

        assert chair_client.delete(f"/api/course-types/{mid}").status_code == 200
        with app.app_context():
            assert db.session.get(CourseType, leaf).parent_id == top

    def test_delete_type_used_by_pool(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        ct = chair_client.post("/api/course-types", json={"name": "Core"}).get_json()["courseType"]["id"]
        chair_client.post(
            f"/api/curricula/{curriculum_id}/credit-pools", json={"name": "Core pool", "sourceTypeIds": [ct]}
        )
        response = chair_client.delete(f"/api/course-types/{ct}")
        assert response.status_code == 409


class TestCreditPoolEndpoints:
    """/api/curricula/<id>/credit-pools"""

    def _setup(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001", "CSX3002", "CSX4001"])
        with app.app_context():
            codes = {c.code: c.id for c in Course.query.all()}
        core = chair_client.post("/api/course-types", json={"name": "Core"}).get_json()["courseType"]["id"]
        elective = chair_client.post("/api/course-types", json={"name": "Elective"}).get_json()["courseType"]["id"]
        chair_client.post(
            "/api/course-types/assign",
            json={"courseIds": [codes["CSX3001"], codes["CSX3002"]], "courseTypeId": core},
        )
        chair_client.post(
            "/api/course-types/assign", json={"courseIds": [codes["CSX4001"]], "courseTypeId": elective}
        )
        return curriculum_id, codes, core, elective

    def test_range_validation(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        response = chair_client.post(
            f"/api/curricula/{curriculum_id}/credit-pools",
            json={"name": "Core", "minCredits": 9, "maxCredits": 6},
        )
        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

    def test_summary(self, app, chair_client, make_curriculum):
        curriculum_id, codes, core, elective = self._setup(app, chair_client, make_curriculum)
        url = f"/api/curricula/{curriculum_id}/credit-pools"

        core_pool = chair_client.post(
            url, json={"name": "Core", "minCredits": 6, "maxCredits": 3, "sourceTypeIds": [core]}
        )
        assert core_pool.status_code == 400

        core_pool = chair_client.post(
            url, json={"name": "Core", "minCredits": 3, "maxCredits": 3, "sourceTypeIds": [core]}
        ).get_json()["pool"]
        elective_pool = chair_client.post(
            url, json={"name": "Electives", "minCredits": 6, "sourceTypeIds": [elective, core]}
        ).get_json()["pool"]

        summary = chair_client.get(f"{url}/summary").get_json()["summary"]
        by_id = {p["poolId"]: p for p in summary["pools"]}
        assert by_id[core_pool["id"]]["matchedCourses"] == ["CSX3001"]
        assert by_id[core_pool["id"]]["overflowCredits"] == 3
        assert by_id[elective_pool["id"]]["matchedCourses"] == ["CSX3002", "CSX4001"]
        assert by_id[elective_pool["id"]]["isSatisfied"] is True
        assert summary["totalOverflowCredits"] == 3
        assert summary["overlaps"] == {str(core_pool["id"]): [elective_pool["id"]], str(elective_pool["id"]): [core_pool["id"]]}

        # electives first: it now takes every course
        response = chair_client.put(f"{url}/order", json={"poolIds": [elective_pool["id"], core_pool["id"]]})
        assert response.status_code == 200
        summary = chair_client.get(f"{url}/summary").get_json()["summary"]
        assert [p["poolId"] for p in summary["pools"]] == [elective_pool["id"], core_pool["id"]]
        assert summary["pools"][1]["appliedCredits"] == 0

    def test_reorder_needs_every_pool(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        url = f"/api/curricula/{curriculum_id}/credit-pools"
        pool = chair_client.post(url, json={"name": "A"}).get_json()["pool"]
        chair_client.post(url, json={"name": "B"})
        response = chair_client.put(f"{url}/order", json={"poolIds": [pool["id"]]})
        assert error_code(response) == "INVALID_INPUT"

    def test_sub_category_attach(self, app, chair_client, make_curriculum):
        curriculum_id, codes, core, elective = self._setup(app, chair_client, make_curriculum)
        url = f"/api/curricula/{curriculum_id}/credit-pools"
        pool = chair_client.post(url, json={"name": "Core", "sourceTypeIds": [core]}).get_json()["pool"]

        response = chair_client.post(
            f"{url}/{pool['id']}/sub-categories", json={"courseTypeId": core, "requiredCredits": 3}
        )
        assert response.status_code == 201
        sub_id = response.get_json()["subCategory"]["id"]
        sub_url = f"{url}/{pool['id']}/sub-categories/{sub_id}"

        response = chair_client.post(f"{sub_url}/courses", json={"courseId": codes["CSX4001"]})
        assert error_code(response) == "INVALID_INPUT"

        assert chair_client.post(f"{sub_url}/courses", json={"courseId": codes["CSX3001"]}).status_code == 201
        response = chair_client.post(f"{sub_url}/courses", json={"courseId": codes["CSX3001"]})
        assert error_code(response) == "DUPLICATE"

        assert chair_client.delete(f"{sub_url}/courses/{codes['CSX3001']}").status_code == 200
        assert chair_client.delete(f"{sub_url}/courses/{codes['CSX3001']}").status_code == 404

        assert chair_client.delete(f"{url}/{pool['id']}").status_code == 200
        assert chair_client.get(url).get_json()["pools"] == []
