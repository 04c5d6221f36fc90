"""
Post-hoc checks over an assembled schedule.

The validator shares no state with the assembler: it rebuilds each
educator's day from the session list alone, so it also catches problems in
schedules that were edited by hand after generation.
"""

from typing import Dict, List, Sequence, Tuple

from .models import Educator, InvigilationConflict, InvigilationSession, InvigilationSettings
from .selection import count_consecutive_sessions, sessions_overlap


def group_sessions_by_educator_and_date(
        sessions: Sequence[InvigilationSession]) -> Dict[Tuple[str, str], List[InvigilationSession]]:
    grouped: Dict[Tuple[str, str], List[InvigilationSession]] = {}
    for session in sessions:
        if not session.is_assigned:
            continue
        grouped.setdefault((session.educator_id, session.exam_date), []).append(session)
    return grouped


def validate_invigilation_schedule(sessions: Sequence[InvigilationSession],
                                   educators: Sequence[Educator],
                                   settings: InvigilationSettings) -> List[InvigilationConflict]:
    """
    Re-check daily caps, double-booking, consecutive runs and availability.

    Args:
        sessions: The schedule to check; unassigned sessions are ignored
        educators: Educator pool; sessions of unknown educators are ignored
        settings: Run settings

    Returns:
        Conflicts in (educator, date) first-seen order
    """
    conflicts = []
    educators_by_id = {educator.id: educator for educator in educators}

    for (educator_id, date), day_sessions in group_sessions_by_educator_and_date(sessions).items():
        educator = educators_by_id.get(educator_id)
        if educator is None:
            continue

        limit = educator.daily_cap(settings)
        if len(day_sessions) > limit:
            conflicts.append(InvigilationConflict(
                kind='overload',
                educator_id=educator_id,
                educator_name=educator.name,
                session_id='',
                message=f"{educator.name} has {len(day_sessions)} sessions on {date}, exceeding limit of {limit}",
                severity='warning',
            ))

        for i, first in enumerate(day_sessions):
            for second in day_sessions[i + 1:]:
                if sessions_overlap(first, second):
                    conflicts.append(InvigilationConflict(
                        kind='overlap',
                        educator_id=educator_id,
                        educator_name=educator.name,
                        session_id=first.id,
                        message=(f"{educator.name} has overlapping sessions on {date} "
                                 f"({first.session_start_time}-{first.session_end_time} in {first.room_name}, "
                                 f"{second.session_start_time}-{second.session_end_time} in {second.room_name})"),
                        severity='error',
                    ))

        run = count_consecutive_sessions(day_sessions, settings)
        if run > settings.max_consecutive_sessions:
            conflicts.append(InvigilationConflict(
                kind='consecutive',
                educator_id=educator_id,
                educator_name=educator.name,
                session_id='',
                message=(f"{educator.name} has {run} consecutive sessions on {date}, "
                         f"exceeding limit of {settings.max_consecutive_sessions}"),
                severity='warning',
            ))

        if date in educator.unavailable_dates:
            for session in day_sessions:
                conflicts.append(InvigilationConflict(
                    kind='unavailable',
                    educator_id=educator_id,
                    educator_name=educator.name,
                    session_id=session.id,
                    message=f"{educator.name} is unavailable on {date} but is assigned to {session.exam_name}",
                    severity='error',
                ))

    return conflicts
