"""
Data model for the invigilation scheduler.

Dates are ``YYYY-MM-DD`` strings and times are ``HH:MM`` strings throughout,
matching the shape of the rosters and exam timetables the scheduler consumes.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .utils import to_minutes, validate_time_slot

ROOM_TYPES = ('classroom', 'laboratory', 'hall')
CONFLICT_KINDS = ('overlap', 'overload', 'unavailable', 'consecutive', 'consecutive_limit')
SEVERITIES = ('warning', 'error')


class InsufficientCapacityError(ValueError):
    """Raised when the available rooms cannot seat every student of an exam."""

    def __init__(self, remaining_students: int, exam_id: Optional[str] = None):
        self.remaining_students = remaining_students
        self.exam_id = exam_id
        message = f"Not enough room capacity. {remaining_students} students cannot be accommodated."
        if exam_id is not None:
            message = f"Exam {exam_id}: {message}"
        super().__init__(message)


@dataclass
class Educator:
    id: str
    name: str
    email: str = ''
    phone: str = ''
    department: str = ''
    max_sessions_per_day: Optional[int] = None
    preferred_times: List[str] = field(default_factory=list)
    unavailable_dates: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.max_sessions_per_day is not None and self.max_sessions_per_day <= 0:
            raise ValueError(f"Educator {self.name}: max_sessions_per_day must be positive")

    def daily_cap(self, settings: 'InvigilationSettings') -> int:
        """Personal daily cap, falling back to the global setting."""
        if self.max_sessions_per_day is not None:
            return self.max_sessions_per_day
        return settings.max_sessions_per_educator_per_day


@dataclass
class Room:
    id: str
    name: str
    capacity: int
    type: str = 'classroom'
    is_available: bool = True
    building: str = ''
    floor: str = ''

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"Room {self.name}: capacity must be positive")
        if self.type not in ROOM_TYPES:
            raise ValueError(f"Room {self.name}: unknown room type '{self.type}'")


@dataclass
class Hall(Room):
    type: str = 'hall'
    sections: List[str] = field(default_factory=list)
    requires_multiple_invigilators: bool = True
    invigilators_per_section: int = 1

    def __post_init__(self):
        super().__post_init__()
        if self.type != 'hall':
            raise ValueError(f"Hall {self.name}: type must be 'hall'")


@dataclass
class Exam:
    id: str
    paper_name: str
    paper_number: str
    class_name: str
    duration: int
    student_count: int
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Exam {self.id}: duration must be greater than 0")
        if self.student_count <= 0:
            raise ValueError(f"Exam {self.id}: student count must be greater than 0")
        for label, value in (('start time', self.start_time), ('end time', self.end_time)):
            if value and not validate_time_slot(value):
                raise ValueError(f"Exam {self.id}: invalid {label} '{value}', expected HH:MM")
        if self.start_time and self.end_time and to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError(f"Exam {self.id}: end time must be after start time")

    @property
    def is_scheduled(self) -> bool:
        return bool(self.date and self.start_time and self.end_time)


# camelCase keys used by saved configuration files
_SETTINGS_KEYS = {
    'session_duration': 'sessionDuration',
    'break_between_sessions': 'breakBetweenSessions',
    'max_sessions_per_educator_per_day': 'maxSessionsPerEducatorPerDay',
    'max_consecutive_sessions': 'maxConsecutiveSessions',
    'require_break_after_consecutive': 'requireBreakAfterConsecutive',
    'hall_invigilator_ratio': 'hallInvigilatorRatio',
    'classroom_invigilator_ratio': 'classroomInvigilatorRatio',
    'consecutive_gap_minutes': 'consecutiveGapMinutes',
}


@dataclass
class InvigilationSettings:
    """
    Configuration of one allocation run.

    Attributes:
        session_duration: Minutes per invigilation slot
        break_between_sessions: Minutes of rest after a slot (not consumed by the allocator)
        max_sessions_per_educator_per_day: Daily cap for educators without a personal cap
        max_consecutive_sessions: Longest allowed run of back-to-back sessions
        require_break_after_consecutive: Recorded for the calling layer, not enforced
        hall_invigilator_ratio: Students per invigilator in halls
        classroom_invigilator_ratio: Students per invigilator in classrooms and laboratories
        consecutive_gap_minutes: Largest gap between two sessions that still counts as back-to-back
    """
    session_duration: int = 30
    break_between_sessions: int = 15
    max_sessions_per_educator_per_day: int = 4
    max_consecutive_sessions: int = 2
    require_break_after_consecutive: bool = True
    hall_invigilator_ratio: int = 50
    classroom_invigilator_ratio: int = 30
    consecutive_gap_minutes: int = 30

    def __post_init__(self):
        for name in ('session_duration', 'max_sessions_per_educator_per_day',
                     'max_consecutive_sessions', 'hall_invigilator_ratio',
                     'classroom_invigilator_ratio'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        for name in ('break_between_sessions', 'consecutive_gap_minutes'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvigilationSettings':
        """Build settings from snake_case or camelCase keys; unknown keys are ignored."""
        kwargs = {}
        for attr, camel in _SETTINGS_KEYS.items():
            if attr in data:
                kwargs[attr] = data[attr]
            elif camel in data:
                kwargs[attr] = data[camel]
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {camel: getattr(self, attr) for attr, camel in _SETTINGS_KEYS.items()}


@dataclass
class RoomAllocation:
    room_id: str
    room_name: str
    room_type: str
    capacity: int
    assigned_students: int
    required_invigilators: int


@dataclass
class InvigilationAssignment:
    """One exam's plan: timing plus its split across rooms."""
    exam_id: str
    exam_name: str
    exam_date: str
    exam_start_time: str
    exam_end_time: str
    student_count: int
    duration: int
    room_assignments: List[RoomAllocation] = field(default_factory=list)


@dataclass(frozen=True)
class InvigilationSession:
    id: str
    exam_id: str
    exam_name: str
    exam_date: str
    exam_start_time: str
    exam_end_time: str
    session_start_time: str
    session_end_time: str
    room_id: str
    room_name: str
    room_type: str
    student_count: int
    session_number: int
    is_main_invigilator: bool
    educator_id: Optional[str] = None
    educator_name: Optional[str] = None
    notes: str = ''

    @property
    def is_assigned(self) -> bool:
        return self.educator_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EducatorWorkload:
    educator_id: str
    educator_name: str
    total_sessions: int = 0
    morning_sessions: int = 0
    afternoon_sessions: int = 0
    consecutive_sessions: int = 0
    last_session_time: Optional[str] = None
    last_session_end_time: Optional[str] = None
    last_session_date: Optional[str] = None


@dataclass
class InvigilationConflict:
    kind: str
    educator_id: str
    educator_name: str
    session_id: str
    message: str
    severity: str

    def __post_init__(self):
        if self.kind not in CONFLICT_KINDS:
            raise ValueError(f"Unknown conflict kind '{self.kind}'")
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown conflict severity '{self.severity}'")


@dataclass
class FairnessReport:
    educator_stats: List[EducatorWorkload]
    total_sessions: int
    average_sessions_per_educator: float
    most_sessions: int
    least_sessions: int
    morning_sessions_total: int
    afternoon_sessions_total: int
    fairness_score: float  # 0-100, higher is more fair
    recommendations: List[str] = field(default_factory=list)


@dataclass
class InvigilationResult:
    sessions: List[InvigilationSession]
    assignment_conflicts: List[InvigilationConflict]
    validation_conflicts: List[InvigilationConflict]
    report: FairnessReport

    @property
    def conflicts(self) -> List[InvigilationConflict]:
        return self.assignment_conflicts + self.validation_conflicts

    @property
    def unassigned_sessions(self) -> List[InvigilationSession]:
        return [session for session in self.sessions if not session.is_assigned]
