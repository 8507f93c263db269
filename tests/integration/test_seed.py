"""Integration tests for the demo data seed."""

import pytest

from schoolportal.database import Database, Repository, seed_database
from schoolportal.database.seed import CLASSES_PER_YEAR, SUBJECTS, YEARS

pytestmark = pytest.mark.integration


class TestSeed:
    """Tests for seed_database."""

    def test_runs_once(self, db: Database):
        assert seed_database(db) is True
        counts = db.verify()["row_counts"]

        assert seed_database(db) is False
        assert db.verify()["row_counts"] == counts

    def test_skipped_when_any_user_exists(self, db: Database, repo: Repository):
        repo.create_user("only@school.edu", "pw", "admin", "Only", "Admin")
        assert seed_database(db) is False
        assert db.verify()["row_counts"]["classes"] == 0

    def test_reference_data(self, db: Database, seeded_repo: Repository):
        classes = seeded_repo.get_all_classes_with_student_count()
        assert len(classes) == len(YEARS) * CLASSES_PER_YEAR
        assert classes[0]["name"] == "1-1"
        assert [s["name"] for s in seeded_repo.get_subjects()] == SUBJECTS

    def test_demo_accounts_can_log_in(self, seeded_repo: Repository):
        assert seeded_repo.authenticate("admin@school.edu", "admin123")["role"] == "admin"
        assert seeded_repo.authenticate("prof@school.edu", "prof123")["role"] == "professor"
        student = seeded_repo.authenticate("student@school.edu", "student123")
        assert student["class_name"] == "3-1"

    def test_professor_assignments(self, seeded_repo: Repository):
        professor = seeded_repo.get_user_by_email("prof@school.edu")
        assignments = seeded_repo.get_assignments_for_professor(professor["id"])
        assert sorted(a["class_name"] for a in assignments) == ["1-1", "3-1"]
        assert {a["subject_name"] for a in assignments} == {"Matematikë"}

    def test_demo_student_records(self, seeded_repo: Repository):
        student = seeded_repo.get_user_by_email("student@school.edu")
        grades = seeded_repo.get_grades_for_student(student["id"])
        attendance = seeded_repo.get_attendance_for_student(student["id"])

        assert len(grades) == 15
        assert {g["subject_name"] for g in grades} == set(SUBJECTS[:5])
        assert [a["status"] for a in attendance].count("absent") == 1

    def test_classes_have_students(self, seeded_repo: Repository):
        counts = {c["name"]: c["student_count"] for c in seeded_repo.get_all_classes_with_student_count()}
        assert counts["3-1"] == 6
        assert counts["1-1"] == 4
        assert counts["4-3"] == 0

    def test_news(self, seeded_repo: Repository):
        assert len(seeded_repo.get_news()) >= 1
