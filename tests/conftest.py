import pandas as pd
import pytest

from invigilation_scheduler.models import (Educator, Exam, InvigilationSession, InvigilationSettings,
                                           Room)
from invigilation_scheduler.utils import to_minutes


@pytest.fixture
def settings():
    return InvigilationSettings()


@pytest.fixture
def make_exam():
    def _make_exam(exam_id='EX1', date='2025-06-02', start='09:00', end='10:30',
                   students=20, name=None):
        duration = to_minutes(end) - to_minutes(start) if start and end else 60
        return Exam(id=exam_id, paper_name=name or f"Paper {exam_id}", paper_number='1',
                    class_name='Form 4', duration=duration, student_count=students,
                    date=date, start_time=start, end_time=end)
    return _make_exam


@pytest.fixture
def make_educators():
    def _make_educators(count, **kwargs):
        return [Educator(id=f"E{i}", name=f"Educator {i}", **kwargs) for i in range(1, count + 1)]
    return _make_educators


@pytest.fixture
def room():
    return Room(id='R1', name='Room 1', capacity=30)


@pytest.fixture
def make_session():
    counter = {'n': 0}

    def _make_session(start, end, educator_id='E1', date='2025-06-02', room_id='R1',
                      exam_id='EX1', number=None):
        counter['n'] += 1
        number = number or counter['n']
        return InvigilationSession(
            id=f"{exam_id}-{room_id}-{number}",
            exam_id=exam_id,
            exam_name=f"Paper {exam_id}",
            exam_date=date,
            exam_start_time='08:00',
            exam_end_time='17:00',
            session_start_time=start,
            session_end_time=end,
            room_id=room_id,
            room_name=f"Room {room_id}",
            room_type='classroom',
            student_count=20,
            session_number=number,
            is_main_invigilator=number == 1,
            educator_id=educator_id,
            educator_name=f"Educator {educator_id}" if educator_id else None,
        )
    return _make_session


@pytest.fixture
def input_workbook(tmp_path):
    """Write a small Educators/Rooms/Exams workbook and return its path."""
    def _input_workbook(educators=3, students=20, exams=None, name='input.xlsx'):
        path = tmp_path / name
        educator_rows = pd.DataFrame({
            'name': [f"Educator {i}" for i in range(1, educators + 1)],
            'id': [f"E{i}" for i in range(1, educators + 1)],
        })
        room_rows = pd.DataFrame({'name': ['Room 1'], 'id': ['R1'], 'capacity': [30]})
        exam_rows = pd.DataFrame(exams or [{
            'paperName': 'Mathematics', 'paperNumber': '1', 'className': 'Form 4',
            'studentCount': students, 'date': '2025-06-02', 'startTime': '09:00', 'endTime': '10:30',
        }])
        with pd.ExcelWriter(path, engine='openpyxl') as writer:
            educator_rows.to_excel(writer, sheet_name='Educators', index=False)
            room_rows.to_excel(writer, sheet_name='Rooms', index=False)
            exam_rows.to_excel(writer, sheet_name='Exams', index=False)
        return path
    return _input_workbook
