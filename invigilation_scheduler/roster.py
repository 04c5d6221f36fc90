"""
Loading of educator, room and exam tables.

Spreadsheets arrive with loosely named columns (``name``, ``Name``,
``NAME``, ``Student Count``...). Everything in this module turns such rows
into typed records; nothing downstream ever sees a raw row.
"""

import re
import pandas as pd
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import Educator, Exam, Hall, Room
from .utils import (CLASS_NAME_COLUMNS, DATE_COLUMNS, EDUCATOR_NAME_COLUMNS, END_TIME_COLUMNS, PAPER_NAME_COLUMNS,
                    PAPER_NUMBER_COLUMNS, ROOM_NAME_COLUMNS, START_TIME_COLUMNS, STUDENT_COUNT_COLUMNS,
                    normalize_column, to_minutes, validate_exam_fields, validate_time_slot)

DEFAULT_ROOM_CAPACITY = 30
DEFAULT_ROOM_TYPE = 'classroom'

_TRUE_VALUES = {'true', 'yes', 'y', '1'}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell(row: pd.Series, columns: Dict[str, str], *names: str, default: Any = None) -> Any:
    """First non-blank value among the given column names, matched loosely."""
    for name in names:
        column = columns.get(normalize_column(name))
        if column is not None and not _is_blank(row[column]):
            return row[column]
    return default


def _as_text(value: Any) -> str:
    if _is_blank(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _as_int(value: Any, field: str) -> Optional[int]:
    if _is_blank(value):
        return None
    try:
        return int(float(str(value).strip()))
    except ValueError:
        raise ValueError(f"Invalid {field} '{value}', expected a number")


def _as_bool(value: Any, default: bool) -> bool:
    if _is_blank(value):
        return default
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return str(value).strip().lower() in _TRUE_VALUES


def _as_list(value: Any) -> List[str]:
    if _is_blank(value):
        return []
    return [part.strip() for part in re.split(r'[,;]', str(value)) if part.strip()]


def _as_date(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime('%Y-%m-%d')
    return pd.Timestamp(str(value).strip()).strftime('%Y-%m-%d')


def _as_time(value: Any) -> Optional[str]:
    """Accept ``9:00``, ``09:00:00``, ``datetime.time`` and timestamps; return ``HH:MM``."""
    if _is_blank(value):
        return None
    if isinstance(value, (datetime, time)):
        return value.strftime('%H:%M')
    text = str(value).strip()
    match = re.match(r'^(\d{1,2}):(\d{2})(?::\d{2})?$', text)
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"
    return text


def _time_list(value: Any) -> List[str]:
    return [_as_time(item) for item in _as_list(value)]


def _column_map(df: pd.DataFrame) -> Dict[str, str]:
    return {normalize_column(column): column for column in df.columns}


def normalize_educators(df: pd.DataFrame) -> List[Educator]:
    """
    Build Educator records from a roster table.

    Rows without a name are dropped. Missing ids become ``EDU-001``,
    ``EDU-002``... in row order. List cells (preferred times, unavailable
    dates) are split on commas or semicolons.
    """
    columns = _column_map(df)
    educators = []
    for _, row in df.iterrows():
        name = _as_text(_cell(row, columns, *EDUCATOR_NAME_COLUMNS))
        if not name:
            continue
        educators.append(Educator(
            id=_as_text(_cell(row, columns, 'id', 'educatorId')) or f"EDU-{len(educators) + 1:03d}",
            name=name,
            email=_as_text(_cell(row, columns, 'email')),
            phone=_as_text(_cell(row, columns, 'phone')),
            department=_as_text(_cell(row, columns, 'department')),
            max_sessions_per_day=_as_int(_cell(row, columns, 'maxSessionsPerDay'), 'maxSessionsPerDay'),
            preferred_times=_time_list(_cell(row, columns, 'preferredTimes')),
            unavailable_dates=[_as_date(d) for d in _as_list(_cell(row, columns, 'unavailableDates'))],
        ))
    return educators


def normalize_rooms(df: pd.DataFrame) -> List[Room]:
    """
    Build Room and Hall records from a room table.

    Missing capacity defaults to 30, missing type to ``classroom`` and
    missing availability to available. Rows of type ``hall`` become Hall
    records with their section columns.
    """
    columns = _column_map(df)
    rooms = []
    for _, row in df.iterrows():
        name = _as_text(_cell(row, columns, *ROOM_NAME_COLUMNS))
        if not name:
            continue
        capacity = _as_int(_cell(row, columns, 'capacity'), 'capacity')
        fields = dict(
            id=_as_text(_cell(row, columns, 'id', 'roomId')) or f"ROOM-{len(rooms) + 1:03d}",
            name=name,
            capacity=DEFAULT_ROOM_CAPACITY if capacity is None else capacity,
            type=_as_text(_cell(row, columns, 'type', 'roomType')).lower() or DEFAULT_ROOM_TYPE,
            is_available=_as_bool(_cell(row, columns, 'isAvailable', 'available'), True),
            building=_as_text(_cell(row, columns, 'building')),
            floor=_as_text(_cell(row, columns, 'floor')),
        )
        if fields['type'] == 'hall':
            per_section = _as_int(_cell(row, columns, 'invigilatorsPerSection'), 'invigilatorsPerSection')
            rooms.append(Hall(
                sections=_as_list(_cell(row, columns, 'sections')),
                requires_multiple_invigilators=_as_bool(
                    _cell(row, columns, 'requiresMultipleInvigilators'), True),
                invigilators_per_section=1 if per_section is None else per_section,
                **fields,
            ))
        else:
            rooms.append(Room(**fields))
    return rooms


def normalize_exams(df: pd.DataFrame) -> List[Exam]:
    """
    Build Exam records from an exam timetable.

    Exams without a date or times are kept; the planner skips them. A row
    with invalid fields raises ValueError naming the spreadsheet row.
    When the duration column is missing it is taken from the exam window.
    """
    columns = _column_map(df)
    exams = []
    for position, (_, row) in enumerate(df.iterrows()):
        fields = dict(
            paper_name=_as_text(_cell(row, columns, *PAPER_NAME_COLUMNS)),
            paper_number=_as_text(_cell(row, columns, *PAPER_NUMBER_COLUMNS)),
            class_name=_as_text(_cell(row, columns, *CLASS_NAME_COLUMNS)),
            duration=_as_int(_cell(row, columns, 'duration'), 'duration'),
            student_count=_as_int(_cell(row, columns, *STUDENT_COUNT_COLUMNS), 'studentCount'),
            date=_as_date(_cell(row, columns, *DATE_COLUMNS)),
            start_time=_as_time(_cell(row, columns, *START_TIME_COLUMNS)),
            end_time=_as_time(_cell(row, columns, *END_TIME_COLUMNS)),
        )
        if not fields['paper_name']:
            continue
        if (fields['duration'] is None and validate_time_slot(fields['start_time'])
                and validate_time_slot(fields['end_time'])):
            fields['duration'] = to_minutes(fields['end_time']) - to_minutes(fields['start_time'])

        errors = validate_exam_fields(fields)
        if errors:
            details = '; '.join(error['message'] for error in errors)
            # +2: header row and 1-based spreadsheet numbering
            raise ValueError(f"Exam row {position + 2}: {details}")

        exams.append(Exam(
            id=_as_text(_cell(row, columns, 'id', 'examId')) or f"EXAM-{len(exams) + 1:03d}",
            **fields,
        ))
    return exams


def read_roster_workbook(filename: Union[str, Path]) -> Tuple[List[Educator], List[Room], List[Exam]]:
    """Read the Educators, Rooms and Exams sheets of one workbook."""
    educators = normalize_educators(pd.read_excel(filename, sheet_name='Educators'))
    rooms = normalize_rooms(pd.read_excel(filename, sheet_name='Rooms'))
    exams = normalize_exams(pd.read_excel(filename, sheet_name='Exams'))
    return educators, rooms, exams
