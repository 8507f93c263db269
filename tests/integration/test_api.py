"""Integration tests for the HTTP API on a seeded database."""

import pytest
from fastapi.testclient import TestClient

from schoolportal.auth import LOGIN_ERROR_MESSAGE

pytestmark = pytest.mark.integration

# Ids produced by seeding an empty database.
ADMIN_ID = 1
PROFESSOR_ID = 2
STUDENT_ID = 3
CLASS_1_1_ID = 1
CLASS_3_2_ID = 8
CLASS_3_1_ID = 7
MATH_ID = 1
ALBANIAN_ID = 2


class TestLogin:
    """Tests for POST /api/login and /api/logout."""

    def test_success(self, client: TestClient):
        response = client.post(
            "/api/login", json={"email": "student@school.edu", "password": "student123"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == STUDENT_ID
        assert body["user"]["role"] == "student"
        assert body["user"]["class_name"] == "3-1"
        assert "password_hash" not in body["user"]
        assert body["token_type"] == "bearer"
        assert len(body["token"]) == 64

    @pytest.mark.parametrize(
        "email,password",
        [
            ("student@school.edu", "wrong"),
            ("STUDENT@school.edu", "student123"),
            ("nobody@school.edu", "student123"),
        ],
    )
    def test_bad_credentials(self, client: TestClient, email, password):
        """Every failure gets the same message."""
        response = client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json() == {"error": LOGIN_ERROR_MESSAGE}

    def test_missing_field(self, client: TestClient):
        response = client.post("/api/login", json={"email": "student@school.edu"})
        assert response.status_code == 422
        assert "error" in response.json()

    def test_logout_invalidates_token(self, client: TestClient, login):
        headers = login("student")
        assert client.post("/api/logout", headers=headers).status_code == 200
        assert client.get(f"/api/student/{STUDENT_ID}/grades", headers=headers).status_code == 401
        assert client.post("/api/logout", headers=headers).status_code == 401


class TestAuthentication:
    """Protected routes need a valid bearer token."""

    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Bearer nope"}, {"Authorization": "Basic abc"}],
    )
    def test_rejected(self, client: TestClient, headers):
        response = client.get(f"/api/student/{STUDENT_ID}/grades", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_role_in_body_is_ignored(self, client: TestClient, login):
        """A student cannot become admin by claiming it."""
        headers = login("student")
        response = client.get("/api/admin/users", headers=headers, params={"role": "admin"})
        assert response.status_code == 403


class TestStudentRoutes:
    """Tests for /api/student/{id}/..."""

    def test_own_grades(self, client: TestClient, login):
        response = client.get(f"/api/student/{STUDENT_ID}/grades", headers=login("student"))
        assert response.status_code == 200
        grades = response.json()
        assert len(grades) == 15
        assert all(g["student_id"] == STUDENT_ID for g in grades)
        assert grades[0]["subject_name"]

    def test_other_student_forbidden(self, client: TestClient, login):
        response = client.get(f"/api/student/{STUDENT_ID + 1}/grades", headers=login("student"))
        assert response.status_code == 403
        assert "error" in response.json()

    def test_profile(self, client: TestClient, login):
        body = client.get(f"/api/student/{STUDENT_ID}/profile", headers=login("student")).json()
        assert body["name"] == "Driton"
        assert body["class_name"] == "3-1"
        assert "password_hash" not in body

    def test_profile_not_found_for_admin(self, client: TestClient, login):
        response = client.get("/api/student/9999/profile", headers=login("admin"))
        assert response.status_code == 404

    def test_professor_sees_only_taught_subject_grades(self, client: TestClient, login):
        response = client.get(f"/api/student/{STUDENT_ID}/grades", headers=login("professor"))
        assert response.status_code == 200
        grades = response.json()
        assert len(grades) == 3
        assert {g["subject_name"] for g in grades} == {"Matematikë"}

    def test_professor_report_card_only_taught_subject(self, client: TestClient, login):
        body = client.get(f"/api/student/{STUDENT_ID}/report", headers=login("professor")).json()
        assert [s["subject_name"] for s in body["subjects"]] == ["Matematikë"]
        assert body["overall_average_display"] == "4.3"

    def test_admin_sees_every_subject(self, client: TestClient, login):
        grades = client.get(f"/api/student/{STUDENT_ID}/grades", headers=login("admin")).json()
        assert len(grades) == 15

    def test_attendance(self, client: TestClient, login):
        body = client.get(f"/api/student/{STUDENT_ID}/attendance", headers=login("student")).json()
        assert len(body["records"]) == 6
        assert body["absences"] == 1
        assert body["attendance_severity"] == "normal"
        assert body["absences_elevated"] is False

    def test_report_card(self, client: TestClient, login):
        body = client.get(f"/api/student/{STUDENT_ID}/report", headers=login("student")).json()
        assert len(body["subjects"]) == 5
        math = body["subjects"][0]
        assert math["subject_name"] == "Matematikë"
        # Keys are strings once serialised.
        assert math["sections"]["1"] == [4, 5]
        assert math["sections"]["2"] == [4]
        assert math["sections"]["4"] == []
        assert math["average_display"] == "4.3"
        assert body["overall_average_display"] != "-"


class TestProfessorRoutes:
    """Tests for assignments and rosters."""

    def test_own_assignments(self, client: TestClient, login):
        response = client.get(f"/api/professor/{PROFESSOR_ID}/assignments", headers=login("professor"))
        assert response.status_code == 200
        assert sorted(a["class_name"] for a in response.json()) == ["1-1", "3-1"]

    def test_other_professor_assignments(self, client: TestClient, login):
        response = client.get(f"/api/professor/{ADMIN_ID}/assignments", headers=login("professor"))
        assert response.status_code == 403

    def test_roster(self, client: TestClient, login):
        response = client.get(f"/api/class/{CLASS_3_1_ID}/students", headers=login("professor"))
        assert response.status_code == 200
        students = response.json()
        assert len(students) == 6
        assert "grades" not in students[0]
        surnames = [s["surname"] for s in students]
        assert surnames == sorted(surnames)

    def test_roster_with_subject(self, client: TestClient, login):
        response = client.get(
            f"/api/class/{CLASS_3_1_ID}/students",
            params={"subjectId": MATH_ID},
            headers=login("professor"),
        )
        students = {s["id"]: s for s in response.json()}
        assert [g["value"] for g in students[STUDENT_ID]["grades"]] == [4, 5, 4]
        assert all(g["subject_id"] == MATH_ID for g in students[STUDENT_ID]["grades"])

    def test_roster_unassigned_subject(self, client: TestClient, login):
        response = client.get(
            f"/api/class/{CLASS_3_1_ID}/students",
            params={"subjectId": ALBANIAN_ID},
            headers=login("professor"),
        )
        assert response.status_code == 403

    def test_roster_other_class(self, client: TestClient, login):
        response = client.get(f"/api/class/{CLASS_3_2_ID}/students", headers=login("professor"))
        assert response.status_code == 403

    def test_roster_student_forbidden(self, client: TestClient, login):
        response = client.get(f"/api/class/{CLASS_3_1_ID}/students", headers=login("student"))
        assert response.status_code == 403

    def test_roster_missing_class_for_admin(self, client: TestClient, login):
        response = client.get("/api/class/999/students", headers=login("admin"))
        assert response.status_code == 404


class TestGradeRoutes:
    """Tests for POST and DELETE /api/grades."""

    def _grade(self, **overrides):
        body = {"student_id": STUDENT_ID, "subject_id": MATH_ID, "section": 3, "value": 5}
        body.update(overrides)
        return body

    def test_professor_records_grade(self, client: TestClient, login):
        headers = login("professor")
        response = client.post("/api/grades", json=self._grade(), headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        grades = client.get(f"/api/student/{STUDENT_ID}/grades", headers=headers).json()
        assert body["id"] in [g["id"] for g in grades]

    def test_unassigned_subject(self, client: TestClient, login):
        response = client.post("/api/grades", json=self._grade(subject_id=ALBANIAN_ID), headers=login("professor"))
        assert response.status_code == 403

    def test_student_cannot_grade(self, client: TestClient, login):
        response = client.post("/api/grades", json=self._grade(), headers=login("student"))
        assert response.status_code == 403

    def test_admin_cannot_grade(self, client: TestClient, login):
        response = client.post("/api/grades", json=self._grade(), headers=login("admin"))
        assert response.status_code == 403

    @pytest.mark.parametrize("section", [0, 5])
    def test_section_out_of_range(self, client: TestClient, login, section):
        response = client.post("/api/grades", json=self._grade(section=section), headers=login("professor"))
        assert response.status_code == 422

    def test_missing_field(self, client: TestClient, login):
        body = self._grade()
        del body["value"]
        response = client.post("/api/grades", json=body, headers=login("professor"))
        assert response.status_code == 422

    def test_delete(self, client: TestClient, login):
        headers = login("professor")
        grade_id = client.post("/api/grades", json=self._grade(), headers=headers).json()["id"]

        assert client.delete(f"/api/grades/{grade_id}", headers=headers).json() == {"success": True}
        grades = client.get(f"/api/student/{STUDENT_ID}/grades", headers=headers).json()
        assert grade_id not in [g["id"] for g in grades]

    def test_delete_twice_succeeds(self, client: TestClient, login):
        headers = login("professor")
        grade_id = client.post("/api/grades", json=self._grade(), headers=headers).json()["id"]

        assert client.delete(f"/api/grades/{grade_id}", headers=headers).status_code == 200
        assert client.delete(f"/api/grades/{grade_id}", headers=headers).status_code == 200

    def test_student_cannot_delete(self, client: TestClient, login):
        grade_id = client.post("/api/grades", json=self._grade(), headers=login("professor")).json()["id"]
        response = client.delete(f"/api/grades/{grade_id}", headers=login("student"))
        assert response.status_code == 403


class TestPublicRoutes:
    """News, staff and subjects need no session."""

    def test_news(self, client: TestClient):
        response = client.get("/api/news")
        assert response.status_code == 200
        dates = [n["date"] for n in response.json()]
        assert dates == sorted(dates, reverse=True)

    def test_staff(self, client: TestClient):
        staff = client.get("/api/staff").json()
        by_email = {s["email"]: s for s in staff}
        assert by_email["prof@school.edu"]["subjects"] == "Matematikë"
        assert by_email["admin@school.edu"]["subjects"] == ""
        assert all(s["role"] in ("admin", "professor") for s in staff)

    def test_subjects(self, client: TestClient):
        assert len(client.get("/api/subjects").json()) == 12

    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "ok"

    def test_correlation_id_header(self, client: TestClient):
        first = client.get("/api/news").headers["X-Correlation-ID"]
        second = client.get("/api/news").headers["X-Correlation-ID"]
        assert first and first != second


class TestAdminRoutes:
    """Tests for /api/admin/..."""

    def test_users(self, client: TestClient, login):
        response = client.get("/api/admin/users", headers=login("admin"))
        assert response.status_code == 200
        users = response.json()
        assert users[0]["email"] == "admin@school.edu"
        assert all("password_hash" not in u for u in users)

    def test_users_search(self, client: TestClient, login):
        users = client.get("/api/admin/users", params={"q": "berisha"}, headers=login("admin")).json()
        assert [u["id"] for u in users] == [STUDENT_ID]

    def test_users_forbidden_for_professor(self, client: TestClient, login):
        assert client.get("/api/admin/users", headers=login("professor")).status_code == 403

    def test_classes(self, client: TestClient, login):
        classes = client.get("/api/admin/classes", headers=login("admin")).json()
        assert len(classes) == 12
        counts = {c["name"]: c["student_count"] for c in classes}
        assert counts["3-1"] == 6

    def test_students_detailed(self, client: TestClient, login):
        students = client.get(
            "/api/admin/students-detailed", params={"class_name": "3-1"}, headers=login("admin")
        ).json()
        assert len(students) == 6
        driton = next(s for s in students if s["id"] == STUDENT_ID)
        assert driton["absences"] == 1
        assert driton["average_display"] != "-"
        assert len(driton["grades"]) == 15
        classmate = next(s for s in students if s["id"] != STUDENT_ID)
        assert classmate["average"] is None
        assert classmate["average_display"] == "-"

    def test_create_class(self, client: TestClient, login):
        response = client.post("/api/admin/classes", json={"name": "4-4", "year": 4}, headers=login("admin"))
        assert response.status_code == 201
        assert response.json()["success"] is True

    def test_create_class_bad_year(self, client: TestClient, login):
        response = client.post("/api/admin/classes", json={"name": "5-1", "year": 5}, headers=login("admin"))
        assert response.status_code == 422

    def test_create_user_then_login(self, client: TestClient, login):
        new_user = {
            "email": "new@school.edu",
            "password": "secret1",
            "role": "student",
            "name": "Teuta",
            "surname": "Rexhepi",
            "dob": "2009-04-04",
            "year": 2,
            "class_id": CLASS_1_1_ID,
        }
        response = client.post("/api/admin/users", json=new_user, headers=login("admin"))
        assert response.status_code == 201

        login_response = client.post("/api/login", json={"email": "new@school.edu", "password": "secret1"})
        assert login_response.status_code == 200
        assert login_response.json()["user"]["class_name"] == "1-1"

    def test_create_user_duplicate_email(self, client: TestClient, login):
        new_user = {"email": "student@school.edu", "password": "x", "role": "student", "name": "A", "surname": "B"}
        response = client.post("/api/admin/users", json=new_user, headers=login("admin"))
        assert response.status_code == 409
        assert "error" in response.json()

    def test_create_user_unknown_class(self, client: TestClient, login):
        new_user = {
            "email": "x@school.edu", "password": "x", "role": "student",
            "name": "A", "surname": "B", "class_id": 999,
        }
        response = client.post("/api/admin/users", json=new_user, headers=login("admin"))
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "overrides",
        [{"role": "janitor"}, {"email": "no-at-sign"}, {"dob": "15/05/2008"}, {"role": "professor", "class_id": 1}],
    )
    def test_create_user_invalid(self, client: TestClient, login, overrides):
        new_user = {"email": "y@school.edu", "password": "x", "role": "student", "name": "A", "surname": "B"}
        new_user.update(overrides)
        response = client.post("/api/admin/users", json=new_user, headers=login("admin"))
        assert response.status_code == 422

    def test_delete_user_cascades_and_revokes(self, client: TestClient, login):
        student_headers = login("student")
        admin_headers = login("admin")

        response = client.delete(f"/api/admin/users/{STUDENT_ID}", headers=admin_headers)
        assert response.json() == {"success": True}

        # The deleted user's session is gone.
        assert client.get(f"/api/student/{STUDENT_ID}/grades", headers=student_headers).status_code == 401
        assert client.get(f"/api/student/{STUDENT_ID}/grades", headers=admin_headers).json() == []

        students = client.get("/api/admin/students-detailed", headers=admin_headers).json()
        assert STUDENT_ID not in [s["id"] for s in students]

    def test_delete_unknown_user(self, client: TestClient, login):
        response = client.delete("/api/admin/users/9999", headers=login("admin"))
        assert response.status_code == 200
