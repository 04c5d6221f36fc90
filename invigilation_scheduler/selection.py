"""
Eligibility checks and fairness scoring for picking a session's invigilator.
"""

from typing import Dict, List, Optional, Sequence

from .models import Educator, EducatorWorkload, InvigilationSession, InvigilationSettings
from .utils import gap_between, intervals_overlap, is_morning, to_minutes


def sessions_overlap(session1: InvigilationSession, session2: InvigilationSession) -> bool:
    """Two sessions overlap when they share a date and their times intersect."""
    if session1.exam_date != session2.exam_date:
        return False
    return intervals_overlap(session1.session_start_time, session1.session_end_time,
                             session2.session_start_time, session2.session_end_time)


def sessions_are_consecutive(session1: InvigilationSession, session2: InvigilationSession,
                             settings: InvigilationSettings) -> bool:
    """Back-to-back: same date, at most ``consecutive_gap_minutes`` between them."""
    if session1.exam_date != session2.exam_date:
        return False
    gap = gap_between(session1.session_start_time, session1.session_end_time,
                      session2.session_start_time, session2.session_end_time)
    return gap <= settings.consecutive_gap_minutes


def extends_streak(session: InvigilationSession, workload: EducatorWorkload,
                   settings: InvigilationSettings) -> bool:
    """Whether the session would continue the educator's current run of sessions."""
    if workload.last_session_date != session.exam_date or workload.last_session_time is None:
        return False
    gap = gap_between(workload.last_session_time, workload.last_session_end_time,
                      session.session_start_time, session.session_end_time)
    return gap <= settings.consecutive_gap_minutes


def count_consecutive_sessions(day_sessions: Sequence[InvigilationSession],
                               settings: InvigilationSettings) -> int:
    """Length of the longest back-to-back run among one educator's sessions on one day."""
    if not day_sessions:
        return 0

    ordered = sorted(day_sessions, key=lambda session: to_minutes(session.session_start_time))
    longest = run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if sessions_are_consecutive(previous, current, settings):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def is_educator_available(session: InvigilationSession, educator: Educator,
                          workload: EducatorWorkload,
                          assigned_sessions: Sequence[InvigilationSession],
                          settings: InvigilationSettings) -> bool:
    """
    Hard constraints for putting an educator on a session.

    The consecutive check looks at the educator's whole day in time order,
    not only at the session they were given last, so a schedule built from
    these checks always passes the validator's consecutive-run check.

    Args:
        session: The draft session
        educator: The candidate
        workload: The candidate's workload so far on the session's date
        assigned_sessions: Sessions already assigned on the session's date
        settings: Run settings

    Returns:
        False when the educator is at their daily cap, already busy during
        the session, or would exceed the consecutive-session limit
    """
    if workload.total_sessions >= educator.daily_cap(settings):
        return False

    educator_sessions = [existing for existing in assigned_sessions
                         if existing.educator_id == educator.id
                         and existing.exam_date == session.exam_date]

    for existing in educator_sessions:
        if sessions_overlap(session, existing):
            return False

    if count_consecutive_sessions(educator_sessions + [session], settings) > settings.max_consecutive_sessions:
        return False

    return True


def score_educator(session: InvigilationSession, educator: Educator,
                   workload: EducatorWorkload) -> int:
    score = (10 - workload.total_sessions) * 10

    # Balance morning/afternoon duties
    if is_morning(session.session_start_time):
        if workload.morning_sessions < workload.afternoon_sessions:
            score += 20
    elif workload.afternoon_sessions < workload.morning_sessions:
        score += 20

    if workload.consecutive_sessions == 0:
        score += 15

    if session.session_start_time in educator.preferred_times:
        score += 10

    return score


def find_best_available_educator(session: InvigilationSession,
                                 educators: Sequence[Educator],
                                 workloads: Dict[str, EducatorWorkload],
                                 assigned_sessions: Sequence[InvigilationSession],
                                 settings: InvigilationSettings) -> Optional[Educator]:
    """Highest-scoring eligible educator; ties go to the earlier educator in the list."""
    candidates: List[Educator] = [
        educator for educator in educators
        if is_educator_available(session, educator, workloads[educator.id],
                                 assigned_sessions, settings)
    ]
    if not candidates:
        return None

    # sorted() is stable, so equal scores keep list order
    ranked = sorted(candidates,
                    key=lambda educator: score_educator(session, educator, workloads[educator.id]),
                    reverse=True)
    return ranked[0]
