import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .allocation import plan_exams
from .assembler import assign_educators_to_sessions, unassigned_conflict
from .export import group_sessions_by_date, write_schedule_workbook
from .fairness import generate_fairness_report
from .models import Educator, Exam, InvigilationResult, InvigilationSession, InvigilationSettings, Room
from .roster import normalize_educators, normalize_exams, normalize_rooms, read_roster_workbook
from .utils import read_table
from .storage import ScheduleState, ScheduleStore
from .validation import validate_invigilation_schedule


def generate_invigilation_schedule(exams: Sequence[Exam],
                                   educators: Sequence[Educator],
                                   rooms: Sequence[Room],
                                   settings: Optional[InvigilationSettings] = None) -> InvigilationResult:
    """
    Run a complete allocation: plan rooms, assign educators, validate, report.

    This function performs no I/O and keeps no state between calls; the same
    inputs in the same order always give the same result.

    Args:
        exams: Exam timetable; exams without a date or times are skipped
        educators: Educator pool
        rooms: Rooms and halls
        settings: Run settings, defaults when omitted

    Returns:
        InvigilationResult with sessions, conflicts and the fairness report

    Raises:
        InsufficientCapacityError: An exam has more students than the rooms can seat
    """
    settings = settings or InvigilationSettings()
    assignments = plan_exams(exams, rooms, settings)
    sessions, assignment_conflicts = assign_educators_to_sessions(assignments, educators, settings)
    validation_conflicts = validate_invigilation_schedule(sessions, educators, settings)
    report = generate_fairness_report(sessions, educators)
    return InvigilationResult(
        sessions=sessions,
        assignment_conflicts=assignment_conflicts,
        validation_conflicts=validation_conflicts,
        report=report,
    )


def rebuild_invigilation_result(sessions: Sequence[InvigilationSession],
                                educators: Sequence[Educator],
                                settings: InvigilationSettings) -> InvigilationResult:
    """
    Rebuild conflicts and the fairness report for a saved session list.

    Every unassigned session gets the same conflict the assembler records,
    and the schedule is checked again against the current educators and
    settings.
    """
    sessions = list(sessions)
    return InvigilationResult(
        sessions=sessions,
        assignment_conflicts=[unassigned_conflict(session) for session in sessions if not session.is_assigned],
        validation_conflicts=validate_invigilation_schedule(sessions, educators, settings),
        report=generate_fairness_report(sessions, educators),
    )


class InvigilationScheduler:
    """
    A scheduler for assigning exam invigilation sessions to educators.

    This class handles reading rosters and the exam timetable, running the
    allocation engine, and reporting on and exporting the resulting schedule.
    """

    def __init__(self,
                 session_duration: int = 30,
                 break_between_sessions: int = 15,
                 max_sessions_per_educator_per_day: int = 4,
                 max_consecutive_sessions: int = 2,
                 require_break_after_consecutive: bool = True,
                 hall_invigilator_ratio: int = 50,
                 classroom_invigilator_ratio: int = 30,
                 consecutive_gap_minutes: int = 30,
                 store: Optional[ScheduleStore] = None
                 ):
        """
        Initialize the scheduler with run settings.

        Args:
            session_duration: Minutes per invigilation session
            break_between_sessions: Minutes of rest after a session
            max_sessions_per_educator_per_day: Default daily cap per educator
            max_consecutive_sessions: Longest allowed run of back-to-back sessions
            require_break_after_consecutive: Whether a break is expected after a run
            hall_invigilator_ratio: Students per invigilator in halls
            classroom_invigilator_ratio: Students per invigilator in other rooms
            consecutive_gap_minutes: Largest gap that still counts as back-to-back
            store: Optional persistence port for load_state / save_state
        """
        self.settings = InvigilationSettings(
            session_duration=session_duration,
            break_between_sessions=break_between_sessions,
            max_sessions_per_educator_per_day=max_sessions_per_educator_per_day,
            max_consecutive_sessions=max_consecutive_sessions,
            require_break_after_consecutive=require_break_after_consecutive,
            hall_invigilator_ratio=hall_invigilator_ratio,
            classroom_invigilator_ratio=classroom_invigilator_ratio,
            consecutive_gap_minutes=consecutive_gap_minutes,
        )
        self.store = store

        # Data storage
        self.educators: Optional[List[Educator]] = None
        self.rooms: Optional[List[Room]] = None
        self.exams: Optional[List[Exam]] = None

        self.solution: Optional[InvigilationResult] = None

    def read_input_file(self, filename: str) -> None:
        """
        Read educators, rooms and exams from an Excel workbook.

        Args:
            filename: Path to a workbook with Educators, Rooms and Exams sheets
        """
        print(f"Reading invigilation data from {filename}...")
        educators, rooms, exams = read_roster_workbook(filename)
        self.load_data(exams, educators, rooms)

    def read_rosters(self, educators_path: Optional[str] = None, rooms_path: Optional[str] = None,
                     exams_path: Optional[str] = None) -> None:
        """
        Read educators, rooms and/or exams from separate CSV or Excel tables.

        Each given table replaces the matching part of the loaded data, so a
        workbook can be read first and a roster swapped in afterwards.

        Args:
            educators_path: Table of educators
            rooms_path: Table of rooms and halls
            exams_path: Exam timetable
        """
        if educators_path:
            print(f"Reading educators from {educators_path}...")
            self.educators = normalize_educators(read_table(educators_path))
        if rooms_path:
            print(f"Reading rooms from {rooms_path}...")
            self.rooms = normalize_rooms(read_table(rooms_path))
        if exams_path:
            print(f"Reading exams from {exams_path}...")
            self.exams = normalize_exams(read_table(exams_path))
        self.solution = None
        print(f"[{len(self.educators or [])} educators, {len(self.rooms or [])} rooms, "
              f"{len(self.exams or [])} exams]")

    def load_data(self, exams: Sequence[Exam], educators: Sequence[Educator],
                  rooms: Sequence[Room]) -> None:
        self.exams = list(exams)
        self.educators = list(educators)
        self.rooms = list(rooms)
        self.solution = None
        print(f"[{len(self.educators)} educators, {len(self.rooms)} rooms, {len(self.exams)} exams]")

    def load_state(self) -> None:
        """Restore educators, rooms, settings and the saved schedule from the store."""
        if self.store is None:
            raise ValueError("No store configured.")
        state = self.store.load()
        self.educators = state.educators
        self.rooms = state.rooms
        self.settings = state.settings
        if self.exams is None:
            self.exams = []
        self.solution = None
        if state.sessions:
            self.solution = rebuild_invigilation_result(state.sessions, state.educators, state.settings)
        print(f"Loaded {len(state.educators)} educators, {len(state.rooms)} rooms, "
              f"{len(state.sessions)} saved sessions")

    def save_state(self) -> None:
        """Persist educators, rooms, settings and the current sessions to the store."""
        if self.store is None:
            raise ValueError("No store configured.")
        self.store.save(ScheduleState(
            educators=list(self.educators or []),
            rooms=list(self.rooms or []),
            settings=self.settings,
            sessions=list(self.solution.sessions) if self.solution else [],
        ))
        print("Invigilation state saved.")

    def update_settings(self, **kwargs) -> None:
        """
        Update run settings.

        Args:
            **kwargs: Settings to update (session_duration, break_between_sessions,
                      max_sessions_per_educator_per_day, max_consecutive_sessions,
                      require_break_after_consecutive, hall_invigilator_ratio,
                      classroom_invigilator_ratio, consecutive_gap_minutes)
        """
        values = vars(self.settings).copy()
        for key, value in kwargs.items():
            if key in values:
                values[key] = value
                print(f"Updated {key} to {value}")
            else:
                print(f"Warning: Unknown setting '{key}'")
        self.settings = InvigilationSettings(**values)

    def summarize_invigilation_info(self) -> Dict[str, Any]:
        """
        Summarize the loaded rosters and timetable.

        Returns:
            Dictionary containing summary statistics
        """
        if self.exams is None or self.educators is None or self.rooms is None:
            raise ValueError("No data loaded. Please run read_input_file or read_rosters first.")

        scheduled = [exam for exam in self.exams if exam.is_scheduled]
        exam_days: Dict[str, int] = {}
        for exam in sorted(scheduled, key=lambda e: e.date):
            exam_days[exam.date] = exam_days.get(exam.date, 0) + 1

        return {
            'total_educators': len(self.educators),
            'total_rooms': len(self.rooms),
            'available_rooms': sum(1 for room in self.rooms if room.is_available),
            'total_capacity': sum(room.capacity for room in self.rooms if room.is_available),
            'total_exams': len(self.exams),
            'scheduled_exams': len(scheduled),
            'total_students': sum(exam.student_count for exam in scheduled),
            'exam_days': exam_days,
        }

    def print_summary(self) -> None:
        """Print a formatted summary of the invigilation data."""
        summary = self.summarize_invigilation_info()

        print("\nINVIGILATION DATA SUMMARY")
        print("=" * 50)
        print(f"Total Educators: {summary['total_educators']}")
        print(f"Total Rooms: {summary['total_rooms']} ({summary['available_rooms']} available, "
              f"{summary['total_capacity']} seats)")
        print(f"Total Exams: {summary['total_exams']} ({summary['scheduled_exams']} scheduled)")
        print(f"Total Students: {summary['total_students']}")

        print("\nEXAM DISTRIBUTION BY DAY")
        print("-" * 50)
        for day, count in summary['exam_days'].items():
            print(f"  {day}: {count} exam(s)")

    def schedule(self) -> bool:
        """
        Run the complete scheduling process.

        Returns:
            True if every session received an educator, False otherwise
        """
        if self.exams is None or self.educators is None or self.rooms is None:
            raise ValueError("No data loaded. Please run read_input_file or read_rosters first.")

        print("\nStarting scheduling process...")
        self.solution = generate_invigilation_schedule(self.exams, self.educators, self.rooms, self.settings)

        assigned = len(self.solution.sessions) - len(self.solution.unassigned_sessions)
        print(f"{assigned} of {len(self.solution.sessions)} sessions assigned, "
              f"{len(self.solution.conflicts)} conflict(s)")
        return not self.solution.unassigned_sessions

    def write_solution_to_file(self, filename: str = 'invigilation_schedule.xlsx',
                               detailed: bool = False) -> None:
        """
        Write the solution to an Excel file.

        Args:
            filename: Output filename for the schedule
            detailed: Also write one sheet per educator
        """
        if self.solution is None or not self.solution.sessions:
            print("No schedule to write.")
            return

        write_schedule_workbook(filename, self.solution, detailed=detailed)
        print(f"\nSchedule saved to '{filename}'")

    def print_solution(self) -> None:
        """Print the schedule, conflicts and fairness analysis in a readable format."""
        if self.solution is None:
            print("No solution available.")
            return

        print("\nINVIGILATION SCHEDULE")
        print("=" * 80)
        for day, day_sessions in group_sessions_by_date(self.solution.sessions).items():
            print(f"\n{day}")
            for session in day_sessions:
                educator = session.educator_name or '-- unassigned --'
                main = ' (main)' if session.is_main_invigilator else ''
                print(f"  {session.session_start_time}-{session.session_end_time} | "
                      f"{session.exam_name:20} | {session.room_name:12} | {educator}{main}")

        report = self.solution.report
        print("\nFAIRNESS ANALYSIS")
        print("=" * 80)
        print("\nEducator             | Total | Morning | Afternoon | Deviation")
        print("-" * 64)
        for stat in report.educator_stats:
            deviation = stat.total_sessions - report.average_sessions_per_educator
            print(f"{stat.educator_name:20} | {stat.total_sessions:5} | {stat.morning_sessions:7} | "
                  f"{stat.afternoon_sessions:9} | {deviation:+9.1f}")

        print(f"\nTotal Sessions: {report.total_sessions}")
        print(f"Average per Educator: {report.average_sessions_per_educator:.1f}")
        print(f"Most / Least: {report.most_sessions} / {report.least_sessions}")
        print(f"Fairness Score: {report.fairness_score:.1f}/100")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")

        if self.solution.conflicts:
            print("\nCONFLICTS")
            print("-" * 64)
            for conflict in self.solution.conflicts:
                print(f"[{conflict.severity.upper()}] {conflict.kind}: {conflict.message}")

    def visualize_schedule(self) -> None:
        """
        Visualize the invigilation schedule as a Gantt chart, one row per educator.
        """
        if self.solution is None or not self.solution.sessions:
            print("No schedule to visualize.")
            return

        schedule_df = pd.DataFrame([
            {
                'Educator': session.educator_name or 'Unassigned',
                'Start': datetime.strptime(f"{session.exam_date} {session.session_start_time}", '%Y-%m-%d %H:%M'),
                'End': datetime.strptime(f"{session.exam_date} {session.session_end_time}", '%Y-%m-%d %H:%M'),
                'Main': session.is_main_invigilator,
                'Assigned': session.is_assigned,
            }
            for session in self.solution.sessions
        ])
        schedule_df.sort_values(by='Start', inplace=True)

        fig, ax = plt.subplots(figsize=(12, 8))
        educators = list(schedule_df['Educator'].unique())
        educator_indices = {name: idx for idx, name in enumerate(educators)}

        for _, row in schedule_df.iterrows():
            if not row['Assigned']:
                c = 'red'
            elif row['Main']:
                c = 'green'
            else:
                c = 'blue'
            ax.barh(educator_indices[row['Educator']],
                    row['End'] - row['Start'],
                    left=row['Start'],
                    color=c,
                    edgecolor=c,
                    alpha=0.5)

        ax.set_yticks(range(len(educators)))
        ax.set_yticklabels(educators)
        ax.xaxis.set_major_formatter(mdates.DateFormatter('%d %b %H:%M'))

        # Separate exam days
        first_day = schedule_df['Start'].min().replace(hour=0, minute=0)
        last_day = schedule_df['End'].max()
        day = first_day + timedelta(days=1)
        while day < last_day:
            ax.axvline(day, color='gray', linestyle='--', alpha=0.5)
            day += timedelta(days=1)

        plt.xticks(rotation=45)
        ax.set_xlabel('Time')
        ax.set_ylabel('Educators')
        ax.set_title('Invigilation Schedule')
        plt.tight_layout()
        plt.show()
