"""
Tests for concentrations and their attachment to curricula.
"""
from tests.conftest import error_code


class TestConcentrations:
    """/api/concentrations"""

    def test_crud(self, chair_client, make_course):
        a = make_course("CSX4101")
        b = make_course("CSX4102")

        response = chair_client.post("/api/concentrations", json={"name": "Data Science", "courseIds": [a]})
        assert response.status_code == 201
        concentration_id = response.get_json()["concentration"]["id"]

        response = chair_client.put(f"/api/concentrations/{concentration_id}", json={"courseIds": [a, b]})
        codes = [c["code"] for c in response.get_json()["concentration"]["courses"]]
        assert sorted(codes) == ["CSX4101", "CSX4102"]

        response = chair_client.put(f"/api/concentrations/{concentration_id}", json={"courseIds": [b]})
        assert [c["code"] for c in response.get_json()["concentration"]["courses"]] == ["CSX4102"]

        assert chair_client.delete(f"/api/concentrations/{concentration_id}").status_code == 200
        assert chair_client.get("/api/concentrations").get_json()["concentrations"] == []

    def test_unknown_course(self, chair_client):
        response = chair_client.post("/api/concentrations", json={"name": "AI", "courseIds": [9999]})
        assert error_code(response) == "COURSE_NOT_FOUND"

    def test_other_faculty(self, chair_client, outsider_client):
        concentration_id = chair_client.post(
            "/api/concentrations", json={"name": "AI"}
        ).get_json()["concentration"]["id"]
        assert outsider_client.get(f"/api/concentrations/{concentration_id}").status_code == 403


class TestCurriculumConcentrations:
    """/api/curricula/<id>/concentrations"""

    def test_attach_and_detach(self, chair_client, make_curriculum):
        curriculum_id = make_curriculum()
        concentration_id = chair_client.post(
            "/api/concentrations", json={"name": "AI"}
        ).get_json()["concentration"]["id"]
        url = f"/api/curricula/{curriculum_id}/concentrations"

        response = chair_client.post(url, json={"concentrationId": concentration_id, "requiredCourses": 0})
        assert error_code(response) == "INVALID_INPUT"

        response = chair_client.post(url, json={"concentrationId": concentration_id, "requiredCourses": 3})
        assert response.status_code == 201
        assert response.get_json()["concentration"]["requiredCourses"] == 3

        response = chair_client.post(url, json={"concentrationId": concentration_id})
        assert error_code(response) == "DUPLICATE"

        assert [c["name"] for c in chair_client.get(url).get_json()["concentrations"]] == ["AI"]

        assert chair_client.delete(f"{url}/{concentration_id}").status_code == 200
        assert chair_client.delete(f"{url}/{concentration_id}").status_code == 404
