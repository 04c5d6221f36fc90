import math
from typing import List, Sequence

from .models import (Exam, InsufficientCapacityError, InvigilationAssignment,
                     InvigilationSettings, Room, RoomAllocation)
from .utils import to_minutes


def calculate_required_invigilators(student_count: int, room_type: str,
                                    settings: InvigilationSettings) -> int:
    ratio = settings.hall_invigilator_ratio if room_type == 'hall' else settings.classroom_invigilator_ratio
    return math.ceil(student_count / ratio)


def distribute_students_across_rooms(total_students: int, rooms: Sequence[Room],
                                     settings: InvigilationSettings) -> List[RoomAllocation]:
    """
    Seat students in the available rooms, largest room first.

    Rooms of equal capacity keep their input order. Raises
    InsufficientCapacityError when the rooms run out before every student
    is seated.
    """
    available_rooms = [room for room in rooms if room.is_available]
    sorted_rooms = sorted(available_rooms, key=lambda room: room.capacity, reverse=True)

    allocations = []
    remaining_students = total_students
    for room in sorted_rooms:
        if remaining_students <= 0:
            break
        assigned_students = min(remaining_students, room.capacity)
        allocations.append(RoomAllocation(
            room_id=room.id,
            room_name=room.name,
            room_type=room.type,
            capacity=room.capacity,
            assigned_students=assigned_students,
            required_invigilators=calculate_required_invigilators(assigned_students, room.type, settings),
        ))
        remaining_students -= assigned_students

    if remaining_students > 0:
        raise InsufficientCapacityError(remaining_students)

    return allocations


def plan_exam(exam: Exam, rooms: Sequence[Room],
              settings: InvigilationSettings) -> InvigilationAssignment:
    """Build the room plan for one scheduled exam."""
    if not exam.is_scheduled:
        raise ValueError(f"Exam {exam.id} must have date, start time, and end time")
    if to_minutes(exam.end_time) <= to_minutes(exam.start_time):
        raise ValueError(f"Exam {exam.id}: end time must be after start time")

    try:
        room_assignments = distribute_students_across_rooms(exam.student_count, rooms, settings)
    except InsufficientCapacityError as e:
        raise InsufficientCapacityError(e.remaining_students, exam.id) from e

    return InvigilationAssignment(
        exam_id=exam.id,
        exam_name=exam.paper_name,
        exam_date=exam.date,
        exam_start_time=exam.start_time,
        exam_end_time=exam.end_time,
        student_count=exam.student_count,
        duration=exam.duration,
        room_assignments=room_assignments,
    )


def plan_exams(exams: Sequence[Exam], rooms: Sequence[Room],
               settings: InvigilationSettings) -> List[InvigilationAssignment]:
    """Plan every scheduled exam; exams without a date or times are skipped."""
    return [plan_exam(exam, rooms, settings) for exam in exams if exam.is_scheduled]
