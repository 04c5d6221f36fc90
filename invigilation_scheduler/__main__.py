# invigilation_scheduler/__main__.py

"""
Main script for running the Invigilation Scheduler.

Usage:
    python -m invigilation_scheduler input.xlsx [options]
    python -m invigilation_scheduler --educators staff.csv --rooms rooms.csv --exams exams.csv [options]
"""

import argparse
import sys
import traceback
from .models import InsufficientCapacityError
from .scheduler import InvigilationScheduler
from .storage import WorkbookScheduleStore
from .utils import validate_input_file, validate_table_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Invigilation Scheduler - Assign exam invigilation sessions fairly'
    )

    # Input files
    parser.add_argument('input_file',
                        nargs='?',
                        help='Excel file with Educators, Rooms and Exams sheets')

    parser.add_argument('--educators',
                        help='CSV or Excel table of educators, replacing the Educators sheet')

    parser.add_argument('--rooms',
                        help='CSV or Excel table of rooms, replacing the Rooms sheet')

    parser.add_argument('--exams',
                        help='CSV or Excel exam timetable, replacing the Exams sheet')

    # Optional arguments
    parser.add_argument('-o', '--output',
                        default='invigilation_schedule.xlsx',
                        help='Output filename for the schedule (default: invigilation_schedule.xlsx)')

    # Settings
    parser.add_argument('--session-duration',
                        type=int,
                        default=30,
                        help='Minutes per invigilation session (default: 30)')

    parser.add_argument('--break-between-sessions',
                        type=int,
                        default=15,
                        help='Minutes of rest after a session (default: 15)')

    parser.add_argument('--max-sessions-per-day',
                        type=int,
                        default=4,
                        help='Daily session cap for educators without their own (default: 4)')

    parser.add_argument('--max-consecutive-sessions',
                        type=int,
                        default=2,
                        help='Longest allowed run of back-to-back sessions (default: 2)')

    parser.add_argument('--consecutive-gap',
                        type=int,
                        default=30,
                        help='Largest gap in minutes that still counts as back-to-back (default: 30)')

    parser.add_argument('--no-break-after-consecutive',
                        action='store_true',
                        help='Do not expect a break after a run of consecutive sessions')

    parser.add_argument('--hall-ratio',
                        type=int,
                        default=50,
                        help='Students per invigilator in halls (default: 50)')

    parser.add_argument('--classroom-ratio',
                        type=int,
                        default=30,
                        help='Students per invigilator in classrooms (default: 30)')

    # Additional options
    parser.add_argument('--detailed',
                        action='store_true',
                        help='Export detailed schedule with one sheet per educator')

    parser.add_argument('--validate-only',
                        action='store_true',
                        help='Only validate the input file without scheduling')

    parser.add_argument('--state',
                        help='Workbook in which to save educators, rooms, settings and sessions')

    parser.add_argument('--plot',
                        action='store_true',
                        help='Show a Gantt chart of the schedule')

    return parser


def main(argv=None):
    """Main function to run the scheduler from command line."""
    parser = build_parser()
    args = parser.parse_args(argv)

    tables = {'Educators': args.educators, 'Rooms': args.rooms, 'Exams': args.exams}
    if args.input_file is None and not all(tables.values()):
        parser.error('an input workbook is required unless --educators, --rooms and --exams are all given')

    # Validate input files
    errors = []
    if args.input_file:
        print(f"Validating input file: {args.input_file}")
        errors.extend(validate_input_file(args.input_file)[1])
    for sheet, path in tables.items():
        if path:
            print(f"Validating {sheet.lower()} file: {path}")
            errors.extend(validate_table_file(path, sheet)[1])

    if errors:
        print("Input file validation failed:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    print("Input file validation successful.")

    if args.validate_only:
        sys.exit(0)

    try:
        scheduler = InvigilationScheduler(
            session_duration=args.session_duration,
            break_between_sessions=args.break_between_sessions,
            max_sessions_per_educator_per_day=args.max_sessions_per_day,
            max_consecutive_sessions=args.max_consecutive_sessions,
            require_break_after_consecutive=not args.no_break_after_consecutive,
            hall_invigilator_ratio=args.hall_ratio,
            classroom_invigilator_ratio=args.classroom_ratio,
            consecutive_gap_minutes=args.consecutive_gap,
            store=WorkbookScheduleStore(args.state) if args.state else None
        )

        if args.input_file:
            scheduler.read_input_file(args.input_file)
        if any(tables.values()):
            scheduler.read_rosters(args.educators, args.rooms, args.exams)
        scheduler.print_summary()

        fully_assigned = scheduler.schedule()
        scheduler.print_solution()
        scheduler.write_solution_to_file(args.output, detailed=args.detailed)

        if args.state:
            scheduler.save_state()

        if args.plot:
            scheduler.visualize_schedule()

        if not fully_assigned:
            print("\nSome sessions could not be assigned.")
            print("Consider:")
            print("  - Adding educators or raising daily session caps")
            print("  - Checking educators' unavailable dates")
            print("  - Relaxing the consecutive-session limit")
            sys.exit(1)

    except InsufficientCapacityError as e:
        print(f"\nScheduling failed: {e}")
        print("Add rooms or mark more rooms as available.")
        sys.exit(1)
    except ValueError as e:
        print(f"\nError during scheduling: {str(e)}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
