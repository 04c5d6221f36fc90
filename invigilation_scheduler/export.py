"""
Tabular export of generated schedules.

All functions read sessions and reports without modifying them.
"""

import pandas as pd
from typing import Dict, List, Sequence

from .models import FairnessReport, InvigilationConflict, InvigilationResult, InvigilationSession
from .utils import to_minutes

SESSION_COLUMNS = ['Session Id', 'Date', 'Start', 'End', 'Educator', 'Exam', 'Room', 'Room Type',
                   'Students', 'Session', 'Main Invigilator', 'Educator Id', 'Exam Id', 'Room Id']


def group_sessions_by_date(sessions: Sequence[InvigilationSession]) -> Dict[str, List[InvigilationSession]]:
    """Sessions per date, dates in calendar order and sessions by start time."""
    grouped: Dict[str, List[InvigilationSession]] = {}
    for session in sessions:
        grouped.setdefault(session.exam_date, []).append(session)
    return {
        day: sorted(grouped[day], key=lambda s: to_minutes(s.session_start_time))
        for day in sorted(grouped)
    }


def group_sessions_by_educator(sessions: Sequence[InvigilationSession]) -> Dict[str, List[InvigilationSession]]:
    """Assigned sessions per educator name, each list in chronological order."""
    grouped: Dict[str, List[InvigilationSession]] = {}
    for session in sessions:
        if session.is_assigned:
            grouped.setdefault(session.educator_name, []).append(session)
    return {
        name: sorted(grouped[name], key=lambda s: (s.exam_date, to_minutes(s.session_start_time)))
        for name in sorted(grouped)
    }


def sessions_to_frame(sessions: Sequence[InvigilationSession]) -> pd.DataFrame:
    rows = []
    for session in sessions:
        rows.append({
            'Session Id': session.id,
            'Date': session.exam_date,
            'Start': session.session_start_time,
            'End': session.session_end_time,
            'Educator': session.educator_name or '',
            'Exam': session.exam_name,
            'Room': session.room_name,
            'Room Type': session.room_type,
            'Students': session.student_count,
            'Session': session.session_number,
            'Main Invigilator': 'Yes' if session.is_main_invigilator else 'No',
            'Educator Id': session.educator_id or '',
            'Exam Id': session.exam_id,
            'Room Id': session.room_id,
        })
    rows.sort(key=lambda row: (row['Date'], to_minutes(row['Start']), row['Room'], row['Session']))
    return pd.DataFrame(rows, columns=SESSION_COLUMNS)


def conflicts_to_frame(conflicts: Sequence[InvigilationConflict]) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            'Type': conflict.kind,
            'Severity': conflict.severity,
            'Educator': conflict.educator_name,
            'Educator Id': conflict.educator_id,
            'Session Id': conflict.session_id,
            'Message': conflict.message,
        } for conflict in conflicts],
        columns=['Type', 'Severity', 'Educator', 'Educator Id', 'Session Id', 'Message'],
    )


def fairness_to_frame(report: FairnessReport) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            'Educator': stat.educator_name,
            'Educator Id': stat.educator_id,
            'Total': stat.total_sessions,
            'Morning': stat.morning_sessions,
            'Afternoon': stat.afternoon_sessions,
        } for stat in report.educator_stats],
        columns=['Educator', 'Educator Id', 'Total', 'Morning', 'Afternoon'],
    )


def _sheet_name(name: str) -> str:
    # Excel limits sheet names to 31 characters and forbids some symbols
    cleaned = ''.join('_' if ch in '[]:*?/\\' else ch for ch in name)
    return cleaned[:31] or 'Sheet'


def write_schedule_workbook(filename: str, result: InvigilationResult, detailed: bool = False) -> None:
    """
    Write a schedule to an Excel workbook.

    Args:
        filename: Output path
        result: Sessions, conflicts and fairness report of a run
        detailed: Add one sheet per educator after the summary sheets
    """
    with pd.ExcelWriter(filename, engine='openpyxl') as writer:
        sessions_to_frame(result.sessions).to_excel(writer, sheet_name='Sessions', index=False)
        conflicts_to_frame(result.conflicts).to_excel(writer, sheet_name='Conflicts', index=False)
        fairness_to_frame(result.report).to_excel(writer, sheet_name='Fairness', index=False)

        summary = pd.DataFrame({
            'Metric': ['Total Sessions', 'Average per Educator', 'Most Sessions', 'Least Sessions',
                       'Morning Sessions', 'Afternoon Sessions', 'Fairness Score'],
            'Value': [result.report.total_sessions,
                      round(result.report.average_sessions_per_educator, 2),
                      result.report.most_sessions, result.report.least_sessions,
                      result.report.morning_sessions_total, result.report.afternoon_sessions_total,
                      round(result.report.fairness_score, 1)],
        })
        summary.to_excel(writer, sheet_name='Summary', index=False)

        if detailed:
            used = {'Sessions', 'Conflicts', 'Fairness', 'Summary'}
            for name, educator_sessions in group_sessions_by_educator(result.sessions).items():
                sheet = _sheet_name(name)
                suffix = 2
                while sheet in used:
                    sheet = _sheet_name(f"{name[:27]} ({suffix})")
                    suffix += 1
                used.add(sheet)
                sessions_to_frame(educator_sessions).to_excel(writer, sheet_name=sheet, index=False)
