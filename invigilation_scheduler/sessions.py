import math
from typing import List

from .models import InvigilationAssignment, InvigilationSession, InvigilationSettings, RoomAllocation
from .utils import format_minutes, to_minutes


def session_id(exam_id: str, room_id: str, session_number: int) -> str:
    return f"{exam_id}-{room_id}-{session_number}"


def generate_sessions_for_room(assignment: InvigilationAssignment,
                               room_assignment: RoomAllocation,
                               settings: InvigilationSettings) -> List[InvigilationSession]:
    """
    Split the exam window of one room into invigilation slots.

    Slots are contiguous and ``session_duration`` long; the last one is cut
    at the exam end. Breaks between slots are not taken out of the exam
    window, so a room always gets ``ceil(duration / session_duration)``
    slots and the last slot ends exactly when the exam does.

    Args:
        assignment: The exam plan the room belongs to
        room_assignment: The room and the students seated in it
        settings: Run settings

    Returns:
        Unassigned sessions in chronological order
    """
    exam_start = to_minutes(assignment.exam_start_time)
    exam_end = to_minutes(assignment.exam_end_time)
    total_sessions = math.ceil((exam_end - exam_start) / settings.session_duration)

    sessions = []
    for index in range(total_sessions):
        start = exam_start + index * settings.session_duration
        end = min(start + settings.session_duration, exam_end)
        number = index + 1
        sessions.append(InvigilationSession(
            id=session_id(assignment.exam_id, room_assignment.room_id, number),
            exam_id=assignment.exam_id,
            exam_name=assignment.exam_name,
            exam_date=assignment.exam_date,
            exam_start_time=assignment.exam_start_time,
            exam_end_time=assignment.exam_end_time,
            session_start_time=format_minutes(start),
            session_end_time=format_minutes(end),
            room_id=room_assignment.room_id,
            room_name=room_assignment.room_name,
            room_type=room_assignment.room_type,
            student_count=room_assignment.assigned_students,
            session_number=number,
            is_main_invigilator=number == 1,
        ))
    return sessions
