import pandas as pd
import pytest

from invigilation_scheduler.models import Hall, Room
from invigilation_scheduler.roster import normalize_educators, normalize_exams, normalize_rooms
from invigilation_scheduler.utils import read_table


def test_educators_from_loosely_named_columns():
    df = pd.DataFrame({
        'Name': ['Ada Lovelace', 'Alan Turing', None],
        'Department': ['Maths', 'Computing', 'Physics'],
        'Max Sessions Per Day': [2, None, 3],
        'Preferred Times': ['9:00, 14:00', None, None],
        'Unavailable Dates': ['2025-06-02; 2025-06-03', None, None],
    })

    educators = normalize_educators(df)

    assert [e.id for e in educators] == ['EDU-001', 'EDU-002']
    assert educators[0].max_sessions_per_day == 2
    assert educators[0].preferred_times == ['09:00', '14:00']
    assert educators[0].unavailable_dates == ['2025-06-02', '2025-06-03']
    assert educators[1].max_sessions_per_day is None
    assert educators[1].preferred_times == []


def test_explicit_ids_are_kept():
    df = pd.DataFrame({'id': ['T-9'], 'name': ['Grace Hopper']})

    assert normalize_educators(df)[0].id == 'T-9'


def test_room_defaults_and_halls():
    df = pd.DataFrame({
        'Room Name': ['Room 1', 'Main Hall', 'Lab'],
        'Capacity': [None, 120, 24],
        'Type': [None, 'Hall', 'laboratory'],
        'Available': [None, 'yes', 'no'],
        'Sections': [None, 'A;B', None],
    })

    rooms = normalize_rooms(df)

    assert [r.id for r in rooms] == ['ROOM-001', 'ROOM-002', 'ROOM-003']
    assert type(rooms[0]) is Room
    assert (rooms[0].capacity, rooms[0].type, rooms[0].is_available) == (30, 'classroom', True)
    assert isinstance(rooms[1], Hall)
    assert rooms[1].sections == ['A', 'B']
    assert rooms[1].invigilators_per_section == 1
    assert rooms[2].is_available is False


def test_unknown_room_type_is_rejected():
    with pytest.raises(ValueError, match='unknown room type'):
        normalize_rooms(pd.DataFrame({'name': ['Gym'], 'type': ['gymnasium']}))


def _exam_frame(**overrides):
    data = {
        'Paper Name': ['Mathematics', 'History'],
        'Paper Number': ['1', '2'],
        'Class': ['Form 4', 'Form 3'],
        'Students': [60, 25],
        'Date': ['2025-06-02', None],
        'Start Time': ['9:00', None],
        'End Time': ['10:30', None],
        'Duration': [None, 90],
    }
    data.update(overrides)
    return pd.DataFrame(data)


def test_exams_are_normalized():
    exams = normalize_exams(_exam_frame())

    assert [e.id for e in exams] == ['EXAM-001', 'EXAM-002']
    maths, history = exams
    assert (maths.date, maths.start_time, maths.end_time) == ('2025-06-02', '09:00', '10:30')
    assert maths.duration == 90
    assert maths.is_scheduled
    assert not history.is_scheduled


def test_invalid_exam_row_names_the_spreadsheet_row():
    with pytest.raises(ValueError, match='Exam row 2: Number of students must be greater than 0'):
        normalize_exams(_exam_frame(Students=[0, 25]))


def test_exam_ending_before_it_starts_is_rejected():
    frame = _exam_frame(**{'End Time': ['08:30', None], 'Duration': [60, 90]})

    with pytest.raises(ValueError, match='End time must be after start time'):
        normalize_exams(frame)


def test_read_table_reads_csv(tmp_path):
    path = tmp_path / 'educators.csv'
    path.write_text('name,maxSessionsPerDay\nAda,3\nAlan,\n')

    educators = normalize_educators(read_table(path))

    assert [(e.name, e.max_sessions_per_day) for e in educators] == [('Ada', 3), ('Alan', None)]


def test_read_table_rejects_other_formats(tmp_path):
    with pytest.raises(ValueError, match='Unsupported'):
        read_table(tmp_path / 'educators.json')
