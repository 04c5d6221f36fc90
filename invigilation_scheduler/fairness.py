import numpy as np
from typing import Sequence

from .models import Educator, EducatorWorkload, FairnessReport, InvigilationSession
from .utils import is_morning


def calculate_fairness_score(session_counts: Sequence[int], total_sessions: int) -> float:
    """
    Score how evenly sessions are spread, from 0 (one person does everything) to 100.

    The population standard deviation of the per-educator totals is compared
    with half the total number of sessions, the theoretical maximum.
    """
    if total_sessions == 0 or len(session_counts) == 0:
        return 100.0
    deviation = float(np.std(np.asarray(session_counts, dtype=float)))
    max_possible_deviation = total_sessions / 2
    return max(0.0, 100 - (deviation / max_possible_deviation) * 100)


def generate_fairness_report(sessions: Sequence[InvigilationSession],
                             educators: Sequence[Educator]) -> FairnessReport:
    """
    Summarise the distribution of assigned sessions over the educator pool.

    Args:
        sessions: Final session list; unassigned sessions are not counted
        educators: Every educator, including those who received nothing

    Returns:
        FairnessReport with one stats row per educator in input order
    """
    stats = {educator.id: EducatorWorkload(educator_id=educator.id, educator_name=educator.name)
             for educator in educators}

    for session in sessions:
        workload = stats.get(session.educator_id)
        if workload is None:
            continue
        workload.total_sessions += 1
        if is_morning(session.session_start_time):
            workload.morning_sessions += 1
        else:
            workload.afternoon_sessions += 1

    educator_stats = list(stats.values())
    session_counts = [stat.total_sessions for stat in educator_stats]
    total_sessions = sum(session_counts)
    average = total_sessions / len(educator_stats) if educator_stats else 0.0
    morning_total = sum(stat.morning_sessions for stat in educator_stats)
    afternoon_total = sum(stat.afternoon_sessions for stat in educator_stats)
    fairness_score = calculate_fairness_score(session_counts, total_sessions)

    recommendations = []
    if fairness_score < 70:
        recommendations.append("Consider redistributing sessions to improve fairness")

    if abs(morning_total - afternoon_total) > total_sessions * 0.2:
        recommendations.append("Morning and afternoon session distribution is uneven")

    idle = [stat for stat in educator_stats if stat.total_sessions == 0]
    if idle:
        recommendations.append(f"{len(idle)} educators have no sessions assigned")

    overloaded = [stat for stat in educator_stats if stat.total_sessions > average * 1.5]
    if overloaded:
        recommendations.append(f"{len(overloaded)} educators have significantly more sessions than average")

    return FairnessReport(
        educator_stats=educator_stats,
        total_sessions=total_sessions,
        average_sessions_per_educator=average,
        most_sessions=max(session_counts) if session_counts else 0,
        least_sessions=min(session_counts) if session_counts else 0,
        morning_sessions_total=morning_total,
        afternoon_sessions_total=afternoon_total,
        fairness_score=fairness_score,
        recommendations=recommendations,
    )
