"""
Demo data for a fresh EduPortal database.

Run with: python -m eduportal.seed
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from .database import SessionLocal, create_tables, utcnow
from .models import Assignment, Enrollment, ScheduleItem, Subject, User, UserRole
from .services.schedule_import import SUBJECT_COLORS

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@eduportal.com"

SAMPLE_USERS = [
    {"key": "admin", "email": ADMIN_EMAIL, "first_name": "Admin", "last_name": "User",
     "role": UserRole.admin, "password": "Admin123!"},
    {"key": "director", "email": "director@eduportal.com", "first_name": "Elena", "last_name": "Volkova",
     "role": UserRole.director, "password": "Director123!"},
    {"key": "teacher1", "email": "teacher1@eduportal.com", "first_name": "Ivan", "last_name": "Petrov",
     "role": UserRole.teacher, "password": "Teacher123!"},
    {"key": "teacher2", "email": "teacher2@eduportal.com", "first_name": "Maria", "last_name": "Smirnova",
     "role": UserRole.teacher, "password": "Teacher123!"},
    {"key": "student1", "email": "student1@eduportal.com", "first_name": "Alexey", "last_name": "Ivanov",
     "role": UserRole.student, "password": "Student123!"},
    {"key": "student2", "email": "student2@eduportal.com", "first_name": "Olga", "last_name": "Kuznetsova",
     "role": UserRole.student, "password": "Student123!"},
    {"key": "student3", "email": "student3@eduportal.com", "first_name": "Dmitry", "last_name": "Sokolov",
     "role": UserRole.student, "password": "Student123!"},
]

# name, short name, teacher key, room
SAMPLE_SUBJECTS = [
    ("Calculus II", "CALC2", "teacher1", "101"),
    ("Chemistry", "CHEM", "teacher2", "Lab 2"),
    ("Physics 101", "PHYS", "teacher1", "204"),
    ("English Literature", "ENGL", "teacher2", "305"),
    ("World History", "HIST", "teacher1", "110"),
]

# subject index, day of week (0 = Sunday), start, end
SAMPLE_SCHEDULE = [
    (0, 1, "09:00", "10:30"),
    (1, 1, "10:45", "12:15"),
    (2, 2, "09:00", "10:30"),
    (3, 3, "13:00", "14:30"),
    (4, 4, "09:00", "10:30"),
    (0, 5, "10:45", "12:15"),
]


def seed_database(db: Session) -> bool:
    """Insert the demo data set. Returns False when it is already present."""
    if db.query(User).filter(User.email == ADMIN_EMAIL).first():
        logger.info("Admin user already exists, skipping seed")
        return False

    users = {}
    for data in SAMPLE_USERS:
        user = User(
            email=data["email"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            role=data["role"],
        )
        user.set_password(data["password"])
        db.add(user)
        users[data["key"]] = user
    db.flush()
    logger.info(f"Created {len(users)} users")

    subjects = []
    for index, (name, short_name, teacher_key, room) in enumerate(SAMPLE_SUBJECTS):
        subject = Subject(
            name=name,
            short_name=short_name,
            teacher_id=users[teacher_key].id,
            room_number=room,
            color=SUBJECT_COLORS[index % len(SUBJECT_COLORS)],
        )
        db.add(subject)
        subjects.append(subject)
    db.flush()
    logger.info(f"Created {len(subjects)} subjects")

    students = [users[key] for key in ("student1", "student2", "student3")]
    for student in students:
        for subject in subjects:
            db.add(Enrollment(student_id=student.id, subject_id=subject.id))

    for subject_index, day, start, end in SAMPLE_SCHEDULE:
        subject = subjects[subject_index]
        db.add(ScheduleItem(
            subject_id=subject.id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            room_number=subject.room_number,
            teacher_name=db.get(User, subject.teacher_id).full_name,
        ))

    now = utcnow()
    db.add_all([
        Assignment(
            title="Integration by parts",
            description="Problems 1-20 from chapter 7",
            subject_id=subjects[0].id,
            due_date=now + timedelta(days=7),
            created_by=subjects[0].teacher_id,
        ),
        Assignment(
            title="Lab report: titration",
            description="Write up the results of the titration lab",
            subject_id=subjects[1].id,
            due_date=now + timedelta(days=10),
            created_by=subjects[1].teacher_id,
        ),
    ])
    db.commit()
    logger.info("Seeded enrollments, schedule and assignments")
    return True


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    create_tables()
    db = SessionLocal()
    try:
        seed_database(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
