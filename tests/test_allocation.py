import pytest

from invigilation_scheduler.allocation import (calculate_required_invigilators,
                                               distribute_students_across_rooms, plan_exam, plan_exams)
from invigilation_scheduler.models import Exam, Hall, InsufficientCapacityError, Room


def test_fills_largest_rooms_first(settings):
    rooms = [Room(id='small', name='Small', capacity=30), Room(id='big', name='Big', capacity=50)]

    allocations = distribute_students_across_rooms(70, rooms, settings)

    assert [(a.room_id, a.assigned_students) for a in allocations] == [('big', 50), ('small', 20)]


def test_stops_once_everyone_is_seated(settings):
    rooms = [Room(id=f"R{i}", name=f"Room {i}", capacity=40) for i in range(3)]

    allocations = distribute_students_across_rooms(40, rooms, settings)

    assert len(allocations) == 1
    assert allocations[0].assigned_students == 40


def test_equal_capacities_keep_input_order(settings):
    rooms = [Room(id='first', name='First', capacity=30),
             Room(id='second', name='Second', capacity=30),
             Room(id='third', name='Third', capacity=30)]

    allocations = distribute_students_across_rooms(75, rooms, settings)

    assert [a.room_id for a in allocations] == ['first', 'second', 'third']
    assert [a.assigned_students for a in allocations] == [30, 30, 15]


def test_never_exceeds_room_capacity_and_seats_everyone(settings):
    rooms = [Room(id='a', name='A', capacity=17), Room(id='b', name='B', capacity=45),
             Room(id='c', name='C', capacity=23)]

    allocations = distribute_students_across_rooms(80, rooms, settings)

    assert all(a.assigned_students <= a.capacity for a in allocations)
    assert sum(a.assigned_students for a in allocations) == 80


def test_unavailable_rooms_are_ignored(settings):
    rooms = [Room(id='closed', name='Closed', capacity=100, is_available=False),
             Room(id='open', name='Open', capacity=40)]

    allocations = distribute_students_across_rooms(30, rooms, settings)

    assert [a.room_id for a in allocations] == ['open']


def test_insufficient_capacity_raises(settings):
    rooms = [Room(id='a', name='A', capacity=30), Room(id='b', name='B', capacity=20,
                                                      is_available=False)]

    with pytest.raises(InsufficientCapacityError) as excinfo:
        distribute_students_across_rooms(45, rooms, settings)

    assert excinfo.value.remaining_students == 15


def test_required_invigilators_depend_on_room_type(settings):
    rooms = [Hall(id='hall', name='Main Hall', capacity=100),
             Room(id='lab', name='Lab', capacity=40, type='laboratory')]

    allocations = distribute_students_across_rooms(131, rooms, settings)

    assert allocations[0].required_invigilators == 2   # 100 / 50
    assert allocations[1].required_invigilators == 2   # 31 / 30
    assert calculate_required_invigilators(30, 'classroom', settings) == 1
    assert calculate_required_invigilators(51, 'hall', settings) == 2


def test_plan_exam_copies_exam_timing(make_exam, room, settings):
    exam = make_exam(start='13:00', end='15:00', students=25)

    plan = plan_exam(exam, [room], settings)

    assert plan.exam_id == exam.id
    assert plan.exam_name == exam.paper_name
    assert (plan.exam_date, plan.exam_start_time, plan.exam_end_time) == ('2025-06-02', '13:00', '15:00')
    assert plan.room_assignments[0].assigned_students == 25


def test_plan_exam_rejects_unscheduled_exam(room, settings):
    exam = Exam(id='X', paper_name='Maths', paper_number='1', class_name='F1',
                duration=60, student_count=10)

    with pytest.raises(ValueError):
        plan_exam(exam, [room], settings)


def test_exam_rejects_end_before_start():
    with pytest.raises(ValueError, match='end time must be after start time'):
        Exam(id='B', paper_name='Maths', paper_number='1', class_name='F1',
             duration=60, student_count=10, date='2025-06-02', start_time='11:00', end_time='10:00')


def test_exam_rejects_malformed_times():
    with pytest.raises(ValueError, match="invalid start time '9am'"):
        Exam(id='B', paper_name='Maths', paper_number='1', class_name='F1',
             duration=60, student_count=10, date='2025-06-02', start_time='9am', end_time='10:00')


def test_plan_exam_rejects_exam_edited_to_end_before_start(make_exam, room, settings):
    exam = make_exam(start='09:00', end='10:00')
    exam.end_time = '08:30'

    with pytest.raises(ValueError, match='Exam EX1: end time must be after start time'):
        plan_exam(exam, [room], settings)


def test_plan_exams_skips_unscheduled_exams(make_exam, room, settings):
    unscheduled = Exam(id='X', paper_name='Maths', paper_number='1', class_name='F1',
                       duration=60, student_count=10, date='2025-06-02')

    plans = plan_exams([make_exam('A'), unscheduled, make_exam('B')], [room], settings)

    assert [plan.exam_id for plan in plans] == ['A', 'B']


def test_plan_exams_propagates_capacity_failure(make_exam, room, settings):
    with pytest.raises(InsufficientCapacityError) as excinfo:
        plan_exams([make_exam('A'), make_exam('B', students=31)], [room], settings)

    assert excinfo.value.exam_id == 'B'
