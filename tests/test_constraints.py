"""
Tests for course flags, prerequisite and corequisite edges,
global and curriculum-scoped.
"""
from models.course import Course
from models.curriculum import CurriculumCourseCorequisite
from models.prerequisite import CourseCorequisite, CoursePrerequisite
from tests.conftest import curriculum_course_id, error_code


class TestCourseFlags:
    """PUT /api/courses/<id>/constraints"""

    def test_senior_standing_without_threshold(self, chair_client, make_course):
        course_id = make_course("CSX4001")
        response = chair_client.put(
            f"/api/courses/{course_id}/constraints", json={"requiresSeniorStanding": True}
        )
        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

    def test_threshold_out_of_range(self, chair_client, make_course):
        course_id = make_course("CSX4001")
        response = chair_client.put(
            f"/api/courses/{course_id}/constraints",
            json={"requiresSeniorStanding": True, "minCreditThreshold": 250},
        )
        assert error_code(response) == "INVALID_INPUT"

    def test_set_and_clear_senior_standing(self, chair_client, make_course):
        course_id = make_course("CSX4001")
        response = chair_client.put(
            f"/api/courses/{course_id}/constraints",
            json={"requiresSeniorStanding": True, "minCreditThreshold": 90, "summerOnly": True},
        )
        assert response.status_code == 200
        course = response.get_json()["course"]
        assert course["minCreditThreshold"] == 90
        assert course["summerOnly"] is True

        # turning senior standing off drops the threshold, other flags stay
        response = chair_client.put(
            f"/api/courses/{course_id}/constraints", json={"requiresSeniorStanding": False}
        )
        course = response.get_json()["course"]
        assert course["minCreditThreshold"] is None
        assert course["summerOnly"] is True

    def test_non_boolean_flag(self, chair_client, make_course):
        course_id = make_course("CSX4001")
        response = chair_client.put(f"/api/courses/{course_id}/constraints", json={"summerOnly": "yes"})
        assert error_code(response) == "INVALID_INPUT"


class TestPrerequisites:
    """Global prerequisite edges."""

    def test_add_and_remove(self, app, chair_client, make_course):
        course_id = make_course("CSX3002")
        prereq_id = make_course("CSX3001")

        response = chair_client.post(
            f"/api/courses/{course_id}/prerequisites", json={"prerequisiteId": prereq_id}
        )
        assert response.status_code == 201
        relation_id = response.get_json()["relationId"]

        data = chair_client.get(f"/api/courses/{course_id}/constraints").get_json()["constraints"]
        assert [p["code"] for p in data["prerequisites"]] == ["CSX3001"]

        response = chair_client.delete(f"/api/courses/{course_id}/prerequisites/{relation_id}")
        assert response.status_code == 200
        with app.app_context():
            assert CoursePrerequisite.query.count() == 0

    def test_self_prerequisite(self, chair_client, make_course):
        course_id = make_course("CSX3002")
        response = chair_client.post(
            f"/api/courses/{course_id}/prerequisites", json={"prerequisiteId": course_id}
        )
        assert error_code(response) == "INVALID_INPUT"

    def test_duplicate_prerequisite(self, chair_client, make_course):
        course_id = make_course("CSX3002")
        prereq_id = make_course("CSX3001")
        url = f"/api/courses/{course_id}/prerequisites"
        chair_client.post(url, json={"prerequisiteId": prereq_id})
        response = chair_client.post(url, json={"prerequisiteId": prereq_id})
        assert response.status_code == 409
        assert error_code(response) == "DUPLICATE"

    def test_unknown_prerequisite(self, chair_client, make_course):
        course_id = make_course("CSX3002")
        response = chair_client.post(f"/api/courses/{course_id}/prerequisites", json={"prerequisiteId": 9999})
        assert response.status_code == 404

    def test_remove_relation_of_other_course(self, chair_client, make_course):
        a = make_course("CSX3001")
        b = make_course("CSX3002")
        c = make_course("CSX3003")
        relation_id = chair_client.post(
            f"/api/courses/{b}/prerequisites", json={"prerequisiteId": a}
        ).get_json()["relationId"]

        response = chair_client.delete(f"/api/courses/{c}/prerequisites/{relation_id}")
        assert error_code(response) == "INVALID_INPUT"

        response = chair_client.delete(f"/api/courses/{b}/prerequisites/9999")
        assert response.status_code == 404


class TestCorequisites:
    """Corequisites are stored in both directions."""

    def test_add_creates_both_rows(self, app, chair_client, make_course):
        math101 = make_course("MATH101")
        math102 = make_course("MATH102")

        response = chair_client.post(f"/api/courses/{math101}/corequisites", json={"corequisiteId": math102})
        assert response.status_code == 201

        with app.app_context():
            pairs = {(e.course_id, e.corequisite_id) for e in CourseCorequisite.query.all()}
        assert pairs == {(math101, math102), (math102, math101)}

        data = chair_client.get(f"/api/courses/{math102}/constraints").get_json()["constraints"]
        assert [c["code"] for c in data["corequisites"]] == ["MATH101"]

    def test_reverse_duplicate(self, chair_client, make_course):
        math101 = make_course("MATH101")
        math102 = make_course("MATH102")
        chair_client.post(f"/api/courses/{math101}/corequisites", json={"corequisiteId": math102})

        response = chair_client.post(f"/api/courses/{math102}/corequisites", json={"corequisiteId": math101})
        assert response.status_code == 409
        assert error_code(response) == "DUPLICATE"

    def test_remove_from_either_side(self, app, chair_client, make_course):
        math101 = make_course("MATH101")
        math102 = make_course("MATH102")
        chair_client.post(f"/api/courses/{math101}/corequisites", json={"corequisiteId": math102})

        with app.app_context():
            reverse_id = CourseCorequisite.query.filter_by(course_id=math102).one().id

        response = chair_client.delete(f"/api/courses/{math102}/corequisites/{reverse_id}")
        assert response.status_code == 200
        with app.app_context():
            assert CourseCorequisite.query.count() == 0


class TestCurriculumScopedConstraints:
    """Overrides and edges inside one curriculum."""

    def test_overrides_merge_with_course_flags(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001", "CSX4001"])
        cc_id = curriculum_course_id(app, curriculum_id, "CSX4001")
        url = f"/api/curricula/{curriculum_id}/courses/{cc_id}/constraints"

        response = chair_client.put(url, json={"overrideSummerOnly": True})
        assert response.status_code == 200
        merged = response.get_json()["mergedFlags"]
        assert merged["summerOnly"] is True
        assert merged["requiresPermission"] is False

        data = chair_client.get(url).get_json()["constraints"]
        assert data["baseFlags"]["summerOnly"] is False
        assert data["overrides"]["overrideSummerOnly"] is True

        with app.app_context():
            assert Course.query.filter_by(code="CSX4001").one().summer_only is False

    def test_override_senior_standing_needs_threshold(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX4001"])
        cc_id = curriculum_course_id(app, curriculum_id, "CSX4001")
        url = f"/api/curricula/{curriculum_id}/courses/{cc_id}/constraints"

        response = chair_client.put(url, json={"overrideRequiresSeniorStanding": True})
        assert error_code(response) == "INVALID_INPUT"

        response = chair_client.put(
            url, json={"overrideRequiresSeniorStanding": True, "overrideMinCreditThreshold": 100}
        )
        assert response.status_code == 200
        assert response.get_json()["mergedFlags"]["minCreditThreshold"] == 100

    def test_empty_override_payload(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX4001"])
        cc_id = curriculum_course_id(app, curriculum_id, "CSX4001")
        response = chair_client.put(f"/api/curricula/{curriculum_id}/courses/{cc_id}/constraints", json={})
        assert error_code(response) == "INVALID_INPUT"

    def test_prerequisite_by_course_id(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001", "CSX3002"])
        cc_id = curriculum_course_id(app, curriculum_id, "CSX3002")
        with app.app_context():
            course_id = Course.query.filter_by(code="CSX3001").one().id

        response = chair_client.post(
            f"/api/curricula/{curriculum_id}/courses/{cc_id}/prerequisites", json={"courseId": course_id}
        )
        assert response.status_code == 201

        data = chair_client.get(f"/api/curricula/{curriculum_id}/courses/{cc_id}/constraints").get_json()
        prereqs = data["constraints"]["curriculumPrerequisites"]
        assert [p["code"] for p in prereqs] == ["CSX3001"]

    def test_cross_curriculum_edge(self, app, chair_client, make_curriculum):
        first = make_curriculum(name="BSCS", course_codes=["CSX3001", "CSX3002"])
        second = make_curriculum(name="BSIT", course_codes=["ITX3007"])
        cc_id = curriculum_course_id(app, first, "CSX3002")
        other_cc_id = curriculum_course_id(app, second, "ITX3007")

        response = chair_client.post(
            f"/api/curricula/{first}/courses/{cc_id}/prerequisites",
            json={"prerequisiteCurriculumCourseId": other_cc_id},
        )
        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

        with app.app_context():
            itx_id = Course.query.filter_by(code="ITX3007").one().id
        response = chair_client.post(
            f"/api/curricula/{first}/courses/{cc_id}/corequisites", json={"courseId": itx_id}
        )
        assert error_code(response) == "INVALID_INPUT"

    def test_curriculum_corequisite_symmetry(self, app, chair_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["MATH101", "MATH102"])
        a = curriculum_course_id(app, curriculum_id, "MATH101")
        b = curriculum_course_id(app, curriculum_id, "MATH102")
        base = f"/api/curricula/{curriculum_id}/courses"

        response = chair_client.post(f"{base}/{a}/corequisites", json={"corequisiteCurriculumCourseId": b})
        assert response.status_code == 201
        relation_id = response.get_json()["relationId"]

        with app.app_context():
            pairs = {
                (e.curriculum_course_id, e.corequisite_course_id)
                for e in CurriculumCourseCorequisite.query.all()
            }
        assert pairs == {(a, b), (b, a)}

        response = chair_client.post(f"{base}/{b}/corequisites", json={"corequisiteCurriculumCourseId": a})
        assert error_code(response) == "DUPLICATE"

        assert chair_client.delete(f"{base}/{a}/corequisites/{relation_id}").status_code == 200
        with app.app_context():
            assert CurriculumCourseCorequisite.query.count() == 0

    def test_other_faculty_cannot_see(self, app, outsider_client, make_curriculum):
        curriculum_id = make_curriculum(course_codes=["CSX3001"])
        cc_id = curriculum_course_id(app, curriculum_id, "CSX3001")
        response = outsider_client.get(f"/api/curricula/{curriculum_id}/courses/{cc_id}/constraints")
        assert response.status_code == 404


class TestCurriculumConstraints:
    """Curriculum-level constraint CRUD."""

    def test_crud(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        url = f"/api/curricula/{curriculum_id}/constraints"

        response = chair_client.post(
            url, json={"type": "MINIMUM_GPA", "name": "Graduation GPA", "config": {"minGpa": 2.0}}
        )
        assert response.status_code == 201
        constraint_id = response.get_json()["constraint"]["id"]

        response = chair_client.put(f"{url}/{constraint_id}", json={"config": {"minGpa": 2.5}})
        assert response.get_json()["constraint"]["config"] == {"minGpa": 2.5}

        assert len(chair_client.get(url).get_json()["constraints"]) == 1
        assert chair_client.delete(f"{url}/{constraint_id}").status_code == 200
        assert chair_client.get(url).get_json()["constraints"] == []

    def test_unknown_type(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        response = chair_client.post(
            f"/api/curricula/{curriculum_id}/constraints", json={"type": "BOGUS", "name": "x"}
        )
        assert error_code(response) == "INVALID_INPUT"
