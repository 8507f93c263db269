"""Deterministic demo data for a fresh portal database.

The seed runs once: it is skipped as soon as any user exists. Everything
is inserted in a single transaction, so an interrupted seed leaves the
database empty and the next start simply tries again.

Demo credentials:
    admin@school.edu / admin123
    prof@school.edu / prof123
    student@school.edu / student123
"""

from ..logutils import get_logger
from .connection import Database
from .repository import Repository

logger = get_logger(__name__)

SUBJECTS = [
    "Matematikë",
    "Gjuhë Shqipe",
    "Gjuhë Angleze",
    "Fizikë",
    "Kimi",
    "Biologji",
    "Histori",
    "Gjeografi",
    "Informatikë",
    "Edukatë Fizike",
    "Sociologji",
    "Filozofi",
]

YEARS = range(1, 5)
CLASSES_PER_YEAR = 3

DEMO_PASSWORD = {
    "admin": "admin123",
    "professor": "prof123",
    "student": "student123",
}

# Extra students per class name: (name, surname), birth date, year
CLASSMATES = {
    "3-1": ([("Agim", "Hoxha"), ("Besa", "Gashi"), ("Fatmir", "Leka"), ("Gresa", "Rama"), ("Ilir", "Zeka")], "2008-06-20", 3),
    "1-1": ([("Luan", "Krasniqi"), ("Teuta", "Morina"), ("Valon", "Shala"), ("Zana", "Bytyqi")], "2010-09-10", 1),
}

ATTENDANCE_DAYS = ["2025-09-01", "2025-09-02", "2025-09-03", "2025-09-04", "2025-09-05"]

NEWS = [
    (
        'Mirësevini në SHMK Gjimnazi "Sami Frashëri"',
        "Viti i ri shkollor fillon me sukses. Mirësevini në uebfaqen tonë të re bashkëkohore!",
        "2025-08-25",
        "Lajme",
    ),
]


def seed_database(db: Database) -> bool:
    """Insert the demo data if the users table is empty.

    Args:
        db: Database whose schema already exists

    Returns:
        True if data was inserted, False if the database was already seeded
    """
    repo = Repository(db)

    with db.transaction() as conn:
        if conn.execute("SELECT COUNT(*) AS cnt FROM users").fetchone()["cnt"] > 0:
            logger.debug("Seed skipped, users already present")
            return False

        def add_user(email, role, name, surname, dob=None, year=None, class_id=None):
            return repo.create_user(
                email, DEMO_PASSWORD[role], role, name, surname, dob, year, class_id, conn=conn
            )

        add_user("admin@school.edu", "admin", "Admin", "User")

        classes: dict[str, int] = {}
        for year in YEARS:
            for number in range(1, CLASSES_PER_YEAR + 1):
                name = f"{year}-{number}"
                classes[name] = repo.create_class(name, year, conn=conn)

        subject_ids = [repo.add_subject(name, conn=conn) for name in SUBJECTS]

        professor_id = add_user("prof@school.edu", "professor", "Arben", "Krasniqi")
        for class_name in ("1-1", "3-1"):
            repo.add_assignment(professor_id, subject_ids[0], classes[class_name], conn=conn)

        student_id = add_user(
            "student@school.edu", "student", "Driton", "Berisha", "2008-05-15", 3, classes["3-1"]
        )

        for class_name, (people, dob, year) in CLASSMATES.items():
            prefix = class_name.replace("-", "_")
            for index, (name, surname) in enumerate(people):
                add_user(
                    f"student_{prefix}_{index}@school.edu", "student", name, surname,
                    dob, year, classes[class_name],
                )

        # Two or three grades in the first five subjects for the demo student.
        for index, subject_id in enumerate(subject_ids[:5]):
            for section, value in ((1, 4 + index % 2), (1, 5), (2, 4)):
                repo.create_grade(student_id, subject_id, section, value, conn=conn)

        for day in ATTENDANCE_DAYS:
            repo.add_attendance(student_id, day, "present", conn=conn)
        repo.add_attendance(student_id, "2025-09-08", "absent", conn=conn)

        for title, content, date, category in NEWS:
            repo.add_news(title, content, date, category, conn=conn)

    logger.info(
        "Demo data seeded",
        extra={"extra_data": {"classes": len(classes), "subjects": len(subject_ids)}},
    )
    return True
