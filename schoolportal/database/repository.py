"""Data access layer for the school portal.

The Repository class is the only code that touches the store. It uses
parameterized queries throughout and returns plain dictionaries. The
credential column never leaves this module.

Example:
    from schoolportal.database import Database, Repository

    repo = Repository(Database(Path("school.db")))
    user = repo.authenticate("student@school.edu", "student123")
    if user:
        grades = repo.get_grades_for_student(user["id"])
"""

import secrets
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from ..auth import hash_password, verify_password
from ..logutils import get_logger
from .connection import Database
from .models import AttendanceStatus, Role

logger = get_logger(__name__)

# Every user column except the credential.
_PROFILE_COLUMNS = "u.id, u.email, u.role, u.name, u.surname, u.dob, u.year, u.class_id"

# Checked when the email is unknown so that a miss costs as much as a wrong password.
_UNKNOWN_USER_HASH = hash_password(secrets.token_hex(16))

_GRADE_WITH_SUBJECT = """
    SELECT g.id, g.student_id, g.subject_id, g.section, g.value, g.created_at,
           s.name AS subject_name
    FROM grades g
    JOIN subjects s ON g.subject_id = s.id
"""


class Repository:
    """Repository pattern implementation for the portal database.

    Provides authentication, per-entity CRUD and the joined/aggregated
    reads the dashboards need. Multi-statement writes run inside a single
    transaction.

    Attributes:
        db: Store handle injected by the caller.
    """

    def __init__(self, db: Database):
        """Initialize the repository.

        Args:
            db: Database handle shared by every repository of the process.
        """
        self.db = db

    @contextmanager
    def _writer(self, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
        """Join the caller's transaction when given one, otherwise open a connection."""
        if conn is not None:
            yield conn
        else:
            with self.db.connection() as own:
                yield own

    # ==================== USERS ====================

    def authenticate(self, email: str, password: str) -> Optional[Dict]:
        """Check credentials and return the user's profile.

        The email must match exactly as stored (case-sensitive, no
        trimming); the password is checked against the salted hash in
        constant time.

        Args:
            email: Login email.
            password: Plain text password.

        Returns:
            Profile dictionary without the credential, or None.
        """
        with self.db.connection() as conn:
            row = conn.execute(
                f"""
                SELECT {_PROFILE_COLUMNS}, u.password_hash, c.name AS class_name
                FROM users u
                LEFT JOIN classes c ON u.class_id = c.id
                WHERE u.email = ?
                """,
                (email,),
            ).fetchone()

        stored = row["password_hash"] if row is not None else _UNKNOWN_USER_HASH
        if not verify_password(password, stored) or row is None:
            logger.info("Login rejected", extra={"extra_data": {"email": email}})
            return None

        profile = dict(row)
        del profile["password_hash"]
        return profile

    def get_profile(self, user_id: int) -> Optional[Dict]:
        """Get a user's profile with their class name.

        Args:
            user_id: The user's database ID.

        Returns:
            Profile dictionary (``class_name`` is None for users without a
            class), or None if no such user exists.
        """
        with self.db.connection() as conn:
            row = conn.execute(
                f"""
                SELECT {_PROFILE_COLUMNS}, c.name AS class_name
                FROM users u
                LEFT JOIN classes c ON u.class_id = c.id
                WHERE u.id = ?
                """,
                (user_id,),
            ).fetchone()
            return dict(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[Dict]:
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT {_PROFILE_COLUMNS} FROM users u WHERE u.email = ?", (email,)
            ).fetchone()
            return dict(row) if row else None

    def count_users(self) -> int:
        with self.db.connection() as conn:
            return int(conn.execute("SELECT COUNT(*) AS cnt FROM users").fetchone()["cnt"])

    def create_user(
        self,
        email: str,
        password: str,
        role: str,
        name: str,
        surname: str,
        dob: Optional[str] = None,
        year: Optional[int] = None,
        class_id: Optional[int] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """Insert a user, hashing the password first.

        Args:
            conn: Open transaction to write in, e.g. the seed loader's.

        Raises:
            ConstraintViolation: If the email is taken or the class does
                not exist.

        Returns:
            The new user's database ID.
        """
        password_hash = hash_password(password)
        with self._writer(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (email, password_hash, role, name, surname, dob, year, class_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                (email, password_hash, Role(role).value, name, surname, dob, year, class_id),
            )
            user_id = int(cursor.fetchone()["id"])

        logger.info("User created", extra={"extra_data": {"user_id": user_id, "role": Role(role).value}})
        return user_id

    def delete_user(self, user_id: int) -> bool:
        """Delete a user and every row that references them.

        The user row, then their grades, attendance and professor
        assignments are removed in one transaction. A crash between the
        statements rolls everything back.

        Args:
            user_id: The user's database ID.

        Returns:
            True if a user row was deleted, False if the id was unknown.
        """
        with self.db.transaction() as conn:
            deleted = conn.execute("DELETE FROM users WHERE id = ?", (user_id,)).rowcount
            grades = conn.execute("DELETE FROM grades WHERE student_id = ?", (user_id,)).rowcount
            attendance = conn.execute(
                "DELETE FROM attendance WHERE student_id = ?", (user_id,)
            ).rowcount
            assignments = conn.execute(
                "DELETE FROM professor_assignments WHERE professor_id = ?", (user_id,)
            ).rowcount

        logger.info(
            "User deleted",
            extra={
                "extra_data": {
                    "user_id": user_id,
                    "found": bool(deleted),
                    "grades": grades,
                    "attendance": attendance,
                    "assignments": assignments,
                }
            },
        )
        return bool(deleted)

    def get_all_users_with_class(self) -> List[Dict]:
        """Get every user with their class name, for the admin list."""
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                SELECT u.id, u.email, u.role, u.name, u.surname, c.name AS class_name
                FROM users u
                LEFT JOIN classes c ON u.class_id = c.id
                ORDER BY u.id
                """
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_staff_directory(self) -> List[Dict]:
        """Get admins and professors with the subjects each one teaches.

        Subjects are joined with commas into one ``subjects`` field; a
        staff member without assignments gets an empty string.
        """
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                SELECT u.id, u.name, u.surname, u.role, u.email,
                       COALESCE(GROUP_CONCAT(DISTINCT s.name), '') AS subjects
                FROM users u
                LEFT JOIN professor_assignments pa ON u.id = pa.professor_id
                LEFT JOIN subjects s ON pa.subject_id = s.id
                WHERE u.role IN ('professor', 'admin')
                GROUP BY u.id
                ORDER BY u.id
                """
            )
            return [dict(row) for row in cursor.fetchall()]

    # ==================== CLASSES & SUBJECTS ====================

    def create_class(self, name: str, year: int, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._writer(conn) as conn:
            cursor = conn.execute(
                "INSERT INTO classes (name, year) VALUES (?, ?) RETURNING id", (name, year)
            )
            class_id = int(cursor.fetchone()["id"])

        logger.info("Class created", extra={"extra_data": {"class_id": class_id, "name": name}})
        return class_id

    def get_class(self, class_id: int) -> Optional[Dict]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM classes WHERE id = ?", (class_id,)).fetchone()
            return dict(row) if row else None

    def get_all_classes_with_student_count(self) -> List[Dict]:
        """Get every class with the number of students enrolled in it."""
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                SELECT c.*,
                       (SELECT COUNT(*) FROM users
                        WHERE class_id = c.id AND role = 'student') AS student_count
                FROM classes c
                ORDER BY c.id
                """
            )
            return [dict(row) for row in cursor.fetchall()]

    def add_subject(self, name: str, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._writer(conn) as conn:
            cursor = conn.execute("INSERT INTO subjects (name) VALUES (?) RETURNING id", (name,))
            return int(cursor.fetchone()["id"])

    def get_subjects(self) -> List[Dict]:
        with self.db.connection() as conn:
            cursor = conn.execute("SELECT * FROM subjects ORDER BY id")
            return [dict(row) for row in cursor.fetchall()]

    # ==================== PROFESSOR ASSIGNMENTS ====================

    def add_assignment(
        self,
        professor_id: int,
        subject_id: int,
        class_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        with self._writer(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO professor_assignments (professor_id, subject_id, class_id)
                VALUES (?, ?, ?)
                RETURNING id
                """,
                (professor_id, subject_id, class_id),
            )
            return int(cursor.fetchone()["id"])

    def get_assignments_for_professor(self, professor_id: int) -> List[Dict]:
        """Get a professor's assignments with class and subject names.

        Args:
            professor_id: The professor's database ID.

        Returns:
            List of assignment dictionaries with keys: id, professor_id,
            subject_id, class_id, class_name, class_year, subject_name.
        """
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                SELECT pa.*, c.name AS class_name, c.year AS class_year,
                       s.name AS subject_name
                FROM professor_assignments pa
                JOIN classes c ON pa.class_id = c.id
                JOIN subjects s ON pa.subject_id = s.id
                WHERE pa.professor_id = ?
                ORDER BY pa.id
                """,
                (professor_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    # ==================== GRADES ====================

    def get_grades_for_student(self, student_id: int) -> List[Dict]:
        """Get all grades of a student with the subject name.

        Unknown students simply have no grades.
        """
        with self.db.connection() as conn:
            cursor = conn.execute(
                _GRADE_WITH_SUBJECT + " WHERE g.student_id = ? ORDER BY g.id", (student_id,)
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_grade(self, grade_id: int) -> Optional[Dict]:
        """Get one grade together with the class of the student it belongs to."""
        with self.db.connection() as conn:
            row = conn.execute(
                """
                SELECT g.*, u.class_id AS class_id
                FROM grades g
                LEFT JOIN users u ON g.student_id = u.id
                WHERE g.id = ?
                """,
                (grade_id,),
            ).fetchone()
            return dict(row) if row else None

    def create_grade(
        self,
        student_id: int,
        subject_id: int,
        section: int,
        value: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """Record a grade. ``created_at`` is set by the store.

        Returns:
            The new grade's database ID.
        """
        with self._writer(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO grades (student_id, subject_id, section, value)
                VALUES (?, ?, ?, ?)
                RETURNING id
                """,
                (student_id, subject_id, section, value),
            )
            grade_id = int(cursor.fetchone()["id"])

        logger.info(
            "Grade recorded",
            extra={"extra_data": {"grade_id": grade_id, "student_id": student_id, "section": section}},
        )
        return grade_id

    def delete_grade(self, grade_id: int) -> bool:
        """Delete a grade. Deleting an unknown id is a no-op.

        Returns:
            True if a row was removed.
        """
        with self.db.connection() as conn:
            deleted = conn.execute("DELETE FROM grades WHERE id = ?", (grade_id,)).rowcount
        logger.info("Grade deleted", extra={"extra_data": {"grade_id": grade_id, "found": bool(deleted)}})
        return bool(deleted)

    # ==================== ATTENDANCE ====================

    def add_attendance(
        self, student_id: int, date: str, status: str, conn: Optional[sqlite3.Connection] = None
    ) -> int:
        with self._writer(conn) as conn:
            cursor = conn.execute(
                "INSERT INTO attendance (student_id, date, status) VALUES (?, ?, ?) RETURNING id",
                (student_id, date, AttendanceStatus(status).value),
            )
            return int(cursor.fetchone()["id"])

    def get_attendance_for_student(self, student_id: int) -> List[Dict]:
        with self.db.connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM attendance WHERE student_id = ? ORDER BY date, id", (student_id,)
            )
            return [dict(row) for row in cursor.fetchall()]

    # ==================== ROSTERS ====================

    def get_students_in_class(
        self, class_id: int, subject_id: Optional[int] = None
    ) -> List[Dict]:
        """Get the students of a class.

        Args:
            class_id: The class's database ID.
            subject_id: When given, each student carries a ``grades`` list
                holding only their grades in this subject.

        Returns:
            List of dictionaries with keys: id, name, surname and, with a
            subject filter, grades.
        """
        with self.db.connection() as conn:
            students = [
                dict(row)
                for row in conn.execute(
                    """
                    SELECT id, name, surname FROM users
                    WHERE class_id = ? AND role = 'student'
                    ORDER BY surname, name
                    """,
                    (class_id,),
                ).fetchall()
            ]
            if subject_id is None:
                return students

            for student in students:
                student["grades"] = [
                    dict(row)
                    for row in conn.execute(
                        """
                        SELECT * FROM grades
                        WHERE student_id = ? AND subject_id = ?
                        ORDER BY section, id
                        """,
                        (student["id"], subject_id),
                    ).fetchall()
                ]
            return students

    def get_students_detailed(self) -> List[Dict]:
        """Get every student with all grades and attendance rows.

        Returns:
            List of dictionaries with keys: id, name, surname, email,
            class_name, grades (with subject_name), attendance.
        """
        with self.db.connection() as conn:
            students = [
                dict(row)
                for row in conn.execute(
                    """
                    SELECT u.id, u.name, u.surname, u.email, c.name AS class_name
                    FROM users u
                    LEFT JOIN classes c ON u.class_id = c.id
                    WHERE u.role = 'student'
                    ORDER BY u.id
                    """
                ).fetchall()
            ]
            for student in students:
                student["grades"] = [
                    dict(row)
                    for row in conn.execute(
                        _GRADE_WITH_SUBJECT + " WHERE g.student_id = ? ORDER BY g.id", (student["id"],)
                    ).fetchall()
                ]
                student["attendance"] = [
                    dict(row)
                    for row in conn.execute(
                        "SELECT * FROM attendance WHERE student_id = ? ORDER BY date, id",
                        (student["id"],),
                    ).fetchall()
                ]
            return students

    # ==================== NEWS ====================

    def add_news(
        self,
        title: str,
        content: str,
        date: str,
        category: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        with self._writer(conn) as conn:
            cursor = conn.execute(
                "INSERT INTO news (title, content, date, category) VALUES (?, ?, ?, ?) RETURNING id",
                (title, content, date, category),
            )
            return int(cursor.fetchone()["id"])

    def get_news(self) -> List[Dict]:
        """Get all news, newest first.

        Dates are compared as strings, which orders ISO dates correctly.
        """
        with self.db.connection() as conn:
            cursor = conn.execute("SELECT * FROM news ORDER BY date DESC, id DESC")
            return [dict(row) for row in cursor.fetchall()]
