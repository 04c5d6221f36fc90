"""
Utility functions for the invigilation scheduler.
"""

import re
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

_TIME_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$')

# Column names accepted for each field, first name preferred
EDUCATOR_NAME_COLUMNS = ('name', 'educator', 'educatorName')
ROOM_NAME_COLUMNS = ('name', 'room', 'roomName')
PAPER_NAME_COLUMNS = ('paperName', 'paper', 'examName')
PAPER_NUMBER_COLUMNS = ('paperNumber',)
CLASS_NAME_COLUMNS = ('className', 'class')
STUDENT_COUNT_COLUMNS = ('studentCount', 'students')
DATE_COLUMNS = ('date',)
START_TIME_COLUMNS = ('startTime', 'start')
END_TIME_COLUMNS = ('endTime', 'end')

REQUIRED_SHEETS = {
    'Educators': [EDUCATOR_NAME_COLUMNS],
    'Rooms': [ROOM_NAME_COLUMNS],
    'Exams': [PAPER_NAME_COLUMNS, PAPER_NUMBER_COLUMNS, CLASS_NAME_COLUMNS, STUDENT_COUNT_COLUMNS,
              DATE_COLUMNS, START_TIME_COLUMNS, END_TIME_COLUMNS],
}


def validate_time_slot(value: str) -> bool:
    """Check that a value is a 24-hour ``HH:MM`` time."""
    return isinstance(value, str) and bool(_TIME_PATTERN.match(value))


def to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` time to minutes after midnight."""
    if not validate_time_slot(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    """Convert minutes after midnight back to ``HH:MM``."""
    return f"{total // 60:02d}:{total % 60:02d}"


def session_hour(value: str) -> int:
    return int(value.split(':')[0])


def is_morning(value: str) -> bool:
    """Sessions starting before noon count as morning sessions."""
    return session_hour(value) < 12


def intervals_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Strict overlap of two same-day intervals; touching intervals do not overlap."""
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def gap_between(start1: str, end1: str, start2: str, end2: str) -> int:
    """Minutes between the end of the earlier interval and the start of the later one."""
    if to_minutes(start1) <= to_minutes(start2):
        return to_minutes(start2) - to_minutes(end1)
    return to_minutes(start1) - to_minutes(end2)


def validate_exam_fields(fields: Dict) -> List[Dict[str, str]]:
    """
    Check the fields of one exam record.

    Args:
        fields: Mapping with paper_name, paper_number, class_name, duration,
                student_count, start_time and end_time keys

    Returns:
        List of {'field', 'message'} errors, empty when the record is valid
    """
    errors = []

    for key, label in (('paper_name', 'Paper name'),
                       ('paper_number', 'Paper number'),
                       ('class_name', 'Class')):
        if not str(fields.get(key) or '').strip():
            errors.append({'field': key, 'message': f"{label} is required"})

    if not fields.get('duration') or fields['duration'] <= 0:
        errors.append({'field': 'duration', 'message': 'Duration must be greater than 0'})

    if not fields.get('student_count') or fields['student_count'] <= 0:
        errors.append({'field': 'student_count',
                       'message': 'Number of students must be greater than 0'})

    start, end = fields.get('start_time'), fields.get('end_time')
    for key, value in (('start_time', start), ('end_time', end)):
        if value and not validate_time_slot(value):
            errors.append({'field': key, 'message': f"Invalid time '{value}', expected HH:MM"})

    if validate_time_slot(start) and validate_time_slot(end) and to_minutes(start) >= to_minutes(end):
        errors.append({'field': 'end_time', 'message': 'End time must be after start time'})

    return errors


def read_table(path: Union[str, Path], sheet_name: Optional[str] = None) -> pd.DataFrame:
    """Read a CSV or Excel table into a DataFrame, choosing the reader by extension."""
    suffix = Path(path).suffix.lower()
    if suffix == '.csv':
        return pd.read_csv(path, dtype=str, keep_default_na=True)
    if suffix in ('.xlsx', '.xlsm', '.xls'):
        return pd.read_excel(path, sheet_name=sheet_name or 0)
    raise ValueError(f"Unsupported roster file type: {path}")


def missing_columns(sheet: str, columns) -> List[str]:
    """Required fields of a sheet with none of their accepted names among ``columns``."""
    present = {normalize_column(col) for col in columns}
    return [names[0] for names in REQUIRED_SHEETS[sheet]
            if not any(normalize_column(name) in present for name in names)]


def validate_input_file(filename: str) -> Tuple[bool, List[str]]:
    """
    Validate that the Excel file has all required sheets and columns.

    Column names are compared case-insensitively and without spaces or
    underscores, and every name the roster loader accepts for a field is
    accepted here too.

    Args:
        filename: Path to the Excel file

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    try:
        excel_file = pd.ExcelFile(filename)

        missing_sheets = [sheet for sheet in REQUIRED_SHEETS
                          if sheet not in excel_file.sheet_names]
        if missing_sheets:
            errors.append(f"Missing required sheets: {', '.join(missing_sheets)}")

        for sheet in REQUIRED_SHEETS:
            if sheet not in excel_file.sheet_names:
                continue
            df = pd.read_excel(excel_file, sheet_name=sheet)
            missing_cols = missing_columns(sheet, df.columns)
            if missing_cols:
                errors.append(f"{sheet} sheet missing columns: {', '.join(missing_cols)}")

    except FileNotFoundError:
        errors.append(f"File not found: {filename}")
    except Exception as e:
        errors.append(f"Error reading file: {str(e)}")

    return len(errors) == 0, errors


def validate_table_file(filename: str, sheet: str) -> Tuple[bool, List[str]]:
    """
    Validate a standalone CSV or Excel table holding one kind of record.

    Args:
        filename: Path to the table
        sheet: Which record kind it holds ('Educators', 'Rooms' or 'Exams')

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    try:
        df = read_table(filename)
        missing_cols = missing_columns(sheet, df.columns)
        if missing_cols:
            errors.append(f"{sheet} file {filename} missing columns: {', '.join(missing_cols)}")

    except FileNotFoundError:
        errors.append(f"File not found: {filename}")
    except Exception as e:
        errors.append(f"Error reading file {filename}: {str(e)}")

    return len(errors) == 0, errors


def normalize_column(name) -> str:
    """``Student Count``, ``student_count`` and ``studentCount`` all map to ``studentcount``."""
    return re.sub(r'[\s_\-]', '', str(name)).lower()
