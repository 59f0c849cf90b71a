"""
Schedule import from CSV

Spreadsheet exports differ in delimiter, encoding and language, so parsing is
lenient: the delimiter is guessed from the first lines, headers may be English
or Russian (exact names first, then substring matches), days may be names or
numbers and times may be written ``HH:MM``, ``HH.MM`` or ``HHMM``.

Rows that fail validation are reported back with their line number; the rest
are imported.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import ImportedFile, ImportStatus, ScheduleItem, Subject, User, UserRole
from .storage import StoredFile

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (";", "\t", ",")

HEADER_ALIASES = {
    "subject": ("subject", "subject name", "предмет", "дисциплина"),
    "day": ("day", "day of week", "день", "день недели"),
    "start_time": ("start time", "start", "время начала", "начало"),
    "end_time": ("end time", "end", "время конца", "время окончания", "конец"),
    "room": ("room", "room number", "кабинет", "аудитория"),
    "teacher": ("teacher", "преподаватель", "учитель"),
}
REQUIRED_COLUMNS = ("subject", "day", "start_time", "end_time")

DAY_ALIASES = {
    0: ("sunday", "sun", "воскресенье", "вс"),
    1: ("monday", "mon", "понедельник", "пн"),
    2: ("tuesday", "tue", "tues", "вторник", "вт"),
    3: ("wednesday", "wed", "среда", "ср"),
    4: ("thursday", "thu", "thurs", "четверг", "чт"),
    5: ("friday", "fri", "пятница", "пт"),
    6: ("saturday", "sat", "суббота", "сб"),
}
DAY_LOOKUP = {alias: day for day, aliases in DAY_ALIASES.items() for alias in aliases}

SUBJECT_COLORS = (
    "#4f46e5", "#0ea5e9", "#10b981", "#f59e0b",
    "#ef4444", "#8b5cf6", "#ec4899", "#14b8a6",
)

_TIME_SEPARATED = re.compile(r"^(\d{1,2})[:.](\d{2})(?::\d{2})?$")
_TIME_COMPACT = re.compile(r"^(\d{3,4})$")

TEMPLATE_CSV = (
    "Subject;Day;Start Time;End Time;Room;Teacher\n"
    "Mathematics;Monday;09:00;10:30;101;\n"
    "Physics;Tuesday;11:00;12:30;204;\n"
)


class ScheduleImportError(Exception):
    """Raised when a file cannot be imported at all."""
    def __init__(self, message: str, errors: Optional[list] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


@dataclass
class RowError:
    row: int
    error: str


@dataclass
class ScheduleRow:
    row: int
    subject: str
    day_of_week: int
    start_time: str
    end_time: str
    room_number: Optional[str] = None
    teacher_name: Optional[str] = None


@dataclass
class ParsedSchedule:
    total: int = 0
    rows: list[ScheduleRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


@dataclass
class ImportSummary:
    imported_file: ImportedFile
    total: int
    success: int
    errors: list[RowError]

    @property
    def failed(self) -> int:
        return len(self.errors)

    def as_result(self) -> dict:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "errors": [{"row": e.row, "error": e.error} for e in self.errors],
        }


def decode_csv(data: bytes) -> str:
    """Decode UTF-8 (with or without BOM), falling back to Windows-1251."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("cp1251")


def detect_delimiter(text: str, sample_lines: int = 5) -> str:
    lines = [line for line in text.splitlines() if line.strip()][:sample_lines]
    counts = {d: sum(line.count(d) for line in lines) for d in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ","


def map_headers(headers: list[str]) -> dict[str, int]:
    """Map logical column names to header positions."""
    normalized = [h.strip().lower() for h in headers]
    mapping: dict[str, int] = {}

    for column, aliases in HEADER_ALIASES.items():
        for index, header in enumerate(normalized):
            if header in aliases and index not in mapping.values():
                mapping[column] = index
                break

    for column, aliases in HEADER_ALIASES.items():
        if column in mapping:
            continue
        for index, header in enumerate(normalized):
            if index in mapping.values() or not header:
                continue
            if any(alias in header for alias in aliases if len(alias) > 3):
                mapping[column] = index
                break

    return mapping


def parse_day(value: str) -> Optional[int]:
    value = value.strip().lower().rstrip(".")
    if value.isdigit():
        day = int(value)
        return day if 0 <= day <= 6 else None
    return DAY_LOOKUP.get(value)


def normalize_time(value: str) -> Optional[str]:
    """Return the time as HH:MM, or None when it cannot be read."""
    value = value.strip()
    match = _TIME_SEPARATED.match(value)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
    else:
        match = _TIME_COMPACT.match(value)
        if not match:
            return None
        digits = match.group(1)
        hours, minutes = int(digits[:-2]), int(digits[-2:])
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def parse_schedule_csv(text: str) -> ParsedSchedule:
    """Parse CSV text into valid rows and per-row errors."""
    reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(text))
    lines = list(reader)
    header_index = next((i for i, line in enumerate(lines) if any(cell.strip() for cell in line)), None)
    if header_index is None:
        raise ScheduleImportError("The file is empty")

    mapping = map_headers(lines[header_index])
    missing = [c for c in REQUIRED_COLUMNS if c not in mapping]
    if missing:
        raise ScheduleImportError(f"Missing required columns: {', '.join(missing)}")

    def cell(line: list[str], column: str) -> str:
        index = mapping.get(column)
        if index is None or index >= len(line):
            return ""
        return line[index].strip()

    parsed = ParsedSchedule()
    for offset, line in enumerate(lines[header_index + 1:], start=header_index + 2):
        if not any(c.strip() for c in line):
            continue
        parsed.total += 1

        subject = cell(line, "subject")
        if not subject:
            parsed.errors.append(RowError(offset, "Subject is required"))
            continue
        day = parse_day(cell(line, "day"))
        if day is None:
            parsed.errors.append(RowError(offset, f"Invalid day: '{cell(line, 'day')}'"))
            continue
        start = normalize_time(cell(line, "start_time"))
        if start is None:
            parsed.errors.append(RowError(offset, f"Invalid start time: '{cell(line, 'start_time')}'"))
            continue
        end = normalize_time(cell(line, "end_time"))
        if end is None:
            parsed.errors.append(RowError(offset, f"Invalid end time: '{cell(line, 'end_time')}'"))
            continue
        if end <= start:
            parsed.errors.append(RowError(offset, "End time must be after start time"))
            continue

        parsed.rows.append(ScheduleRow(
            row=offset,
            subject=subject,
            day_of_week=day,
            start_time=start,
            end_time=end,
            room_number=cell(line, "room") or None,
            teacher_name=cell(line, "teacher") or None,
        ))
    return parsed


class ScheduleImporter:
    """Turns parsed rows into schedule items, creating missing subjects."""

    def __init__(self, db: Session):
        self.db = db
        self._subjects: dict[str, Subject] = {}

    def _find_teacher(self, name: Optional[str]) -> Optional[User]:
        teachers = self.db.query(User).filter(User.role == UserRole.teacher).order_by(User.id).all()
        if name:
            wanted = name.strip().lower()
            for teacher in teachers:
                if teacher.full_name.lower() == wanted:
                    return teacher
        return teachers[0] if teachers else None

    def _resolve_subject(self, row: ScheduleRow) -> Subject:
        key = row.subject.lower()
        if key in self._subjects:
            return self._subjects[key]

        subject = self.db.query(Subject).filter(func.lower(Subject.name) == key).first()
        if subject is None:
            teacher = self._find_teacher(row.teacher_name)
            color_index = self.db.query(func.count(Subject.id)).scalar() % len(SUBJECT_COLORS)
            subject = Subject(
                name=row.subject,
                short_name=row.subject[:10],
                teacher_id=teacher.id if teacher else None,
                room_number=row.room_number,
                color=SUBJECT_COLORS[color_index],
            )
            self.db.add(subject)
            self.db.flush()
            logger.info(f"Created subject '{subject.name}' during schedule import")
        self._subjects[key] = subject
        return subject

    def run(self, data: bytes, stored: StoredFile, uploaded_by: User) -> ImportSummary:
        """
        Import a CSV upload. Commits on success.

        Raises:
            ScheduleImportError: if the file cannot be read or has no valid rows.
        """
        try:
            text = decode_csv(data)
        except UnicodeDecodeError as e:
            raise ScheduleImportError(f"Cannot decode file: {e}")

        parsed = parse_schedule_csv(text)
        if not parsed.rows:
            raise ScheduleImportError(
                "No valid schedule rows found",
                errors=[{"row": e.row, "error": e.error} for e in parsed.errors],
            )

        imported_file = ImportedFile(
            original_name=stored.original_name,
            stored_name=stored.stored_name,
            file_path=stored.url,
            file_size=stored.size,
            mime_type=stored.mime_type or "text/csv",
            import_type="csv",
            status=ImportStatus.processing,
            uploaded_by=uploaded_by.id,
        )
        self.db.add(imported_file)
        self.db.flush()

        created = 0
        for row in parsed.rows:
            subject = self._resolve_subject(row)
            self.db.add(ScheduleItem(
                subject_id=subject.id,
                day_of_week=row.day_of_week,
                start_time=row.start_time,
                end_time=row.end_time,
                room_number=row.room_number or subject.room_number,
                teacher_name=row.teacher_name,
                imported_file_id=imported_file.id,
            ))
            created += 1

        imported_file.items_count = parsed.total
        imported_file.success_count = created
        imported_file.error_count = len(parsed.errors)
        imported_file.status = ImportStatus.completed
        self.db.commit()
        self.db.refresh(imported_file)

        logger.info(
            f"Imported {created}/{parsed.total} schedule rows from {stored.original_name} "
            f"({len(parsed.errors)} failed)"
        )
        return ImportSummary(
            imported_file=imported_file,
            total=parsed.total,
            success=created,
            errors=parsed.errors,
        )
