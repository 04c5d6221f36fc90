"""
Greedy assembly of a full invigilation schedule.

Dates are processed one at a time so that workload counters start from zero
each day. Within a date, sessions are handled in the order they are
generated and each one goes to the best-scoring eligible educator at that
moment; a session nobody can take is kept unassigned and reported as a
conflict.
"""

from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from .models import (Educator, EducatorWorkload, InvigilationAssignment, InvigilationConflict,
                     InvigilationSession, InvigilationSettings)
from .selection import extends_streak, find_best_available_educator
from .sessions import generate_sessions_for_room
from .utils import is_morning


def group_assignments_by_date(
        assignments: Sequence[InvigilationAssignment]) -> Dict[str, List[InvigilationAssignment]]:
    """Group exam plans by date, keeping dates and plans in first-seen order."""
    grouped: Dict[str, List[InvigilationAssignment]] = {}
    for assignment in assignments:
        grouped.setdefault(assignment.exam_date, []).append(assignment)
    return grouped


def get_available_educators_for_date(educators: Sequence[Educator], date: str) -> List[Educator]:
    return [educator for educator in educators if date not in educator.unavailable_dates]


def record_assignment(workload: EducatorWorkload, session: InvigilationSession,
                      settings: InvigilationSettings) -> None:
    """Update an educator's running counters after giving them a session."""
    workload.total_sessions += 1

    if is_morning(session.session_start_time):
        workload.morning_sessions += 1
    else:
        workload.afternoon_sessions += 1

    if extends_streak(session, workload, settings):
        workload.consecutive_sessions += 1
    else:
        workload.consecutive_sessions = 1

    workload.last_session_time = session.session_start_time
    workload.last_session_end_time = session.session_end_time
    workload.last_session_date = session.exam_date


def unassigned_conflict(session: InvigilationSession) -> InvigilationConflict:
    return InvigilationConflict(
        kind='overload',
        educator_id='',
        educator_name='No available educator',
        session_id=session.id,
        message=(f"No available educator for session {session.session_number} of "
                 f"{session.exam_name} in {session.room_name} on {session.exam_date} "
                 f"({session.session_start_time}-{session.session_end_time})"),
        severity='error',
    )


def assign_educators_to_sessions(
        assignments: Sequence[InvigilationAssignment],
        educators: Sequence[Educator],
        settings: InvigilationSettings) -> Tuple[List[InvigilationSession], List[InvigilationConflict]]:
    """
    Generate every session of the planned exams and give each an educator.

    Args:
        assignments: Exam plans with their room allocations
        educators: Educator pool, in priority order for ties
        settings: Run settings

    Returns:
        Tuple of (sessions, conflicts). Sessions that could not be staffed
        are included with no educator, each with a matching conflict.
    """
    sessions: List[InvigilationSession] = []
    conflicts: List[InvigilationConflict] = []

    for date, date_assignments in group_assignments_by_date(assignments).items():
        date_educators = get_available_educators_for_date(educators, date)
        workloads = {
            educator.id: EducatorWorkload(educator_id=educator.id, educator_name=educator.name)
            for educator in date_educators
        }
        assigned_today: List[InvigilationSession] = []

        for assignment in date_assignments:
            for room_assignment in assignment.room_assignments:
                for draft in generate_sessions_for_room(assignment, room_assignment, settings):
                    educator = find_best_available_educator(
                        draft, date_educators, workloads, assigned_today, settings)

                    if educator is None:
                        conflicts.append(unassigned_conflict(draft))
                        sessions.append(draft)
                        continue

                    session = replace(draft, educator_id=educator.id, educator_name=educator.name)
                    record_assignment(workloads[educator.id], session, settings)
                    assigned_today.append(session)
                    sessions.append(session)

    return sessions, conflicts
