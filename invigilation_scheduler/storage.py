"""
Persistence port for the scheduler's working state.

The allocation engine never touches storage. The InvigilationScheduler
facade loads and saves its state through a ScheduleStore handed to it by
the caller, so the same facade can work against a workbook, a database or
an in-memory store in tests.
"""

import os
import pandas as pd
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from .models import Educator, Hall, InvigilationSession, InvigilationSettings, Room
from .roster import normalize_educators, normalize_rooms

_SESSION_INT_FIELDS = ('student_count', 'session_number')
_SESSION_OPTIONAL_FIELDS = ('educator_id', 'educator_name')


@dataclass
class ScheduleState:
    educators: List[Educator] = field(default_factory=list)
    rooms: List[Room] = field(default_factory=list)
    settings: InvigilationSettings = field(default_factory=InvigilationSettings)
    sessions: List[InvigilationSession] = field(default_factory=list)


class ScheduleStore(ABC):

    @abstractmethod
    def load(self) -> ScheduleState:
        """Return the saved state, or an empty state when nothing was saved."""

    @abstractmethod
    def save(self, state: ScheduleState) -> None:
        """Persist the full state, replacing what was saved before."""


class MemoryScheduleStore(ScheduleStore):
    def __init__(self, state: Optional[ScheduleState] = None):
        self.state = state

    def load(self) -> ScheduleState:
        return self.state if self.state is not None else ScheduleState()

    def save(self, state: ScheduleState) -> None:
        self.state = state


class WorkbookScheduleStore(ScheduleStore):
    """Keeps educators, rooms, settings and sessions in one Excel workbook."""

    def __init__(self, filename: str):
        self.filename = filename

    def load(self) -> ScheduleState:
        if not os.path.exists(self.filename):
            return ScheduleState()

        sheets = pd.read_excel(self.filename, sheet_name=None, dtype=str)
        state = ScheduleState()
        if 'Educators' in sheets:
            state.educators = normalize_educators(sheets['Educators'])
        if 'Rooms' in sheets:
            state.rooms = normalize_rooms(sheets['Rooms'])
        if 'Settings' in sheets:
            state.settings = self._settings_from_frame(sheets['Settings'])
        if 'Sessions' in sheets:
            state.sessions = self._sessions_from_frame(sheets['Sessions'])
        return state

    def save(self, state: ScheduleState) -> None:
        educators = pd.DataFrame(
            [{
                'id': e.id, 'name': e.name, 'email': e.email, 'phone': e.phone,
                'department': e.department, 'maxSessionsPerDay': e.max_sessions_per_day,
                'preferredTimes': ';'.join(e.preferred_times),
                'unavailableDates': ';'.join(e.unavailable_dates),
            } for e in state.educators],
            columns=['id', 'name', 'email', 'phone', 'department', 'maxSessionsPerDay',
                     'preferredTimes', 'unavailableDates'],
        )
        rooms = pd.DataFrame(
            [self._room_row(room) for room in state.rooms],
            columns=['id', 'name', 'capacity', 'type', 'isAvailable', 'building', 'floor',
                     'sections', 'requiresMultipleInvigilators', 'invigilatorsPerSection'],
        )
        settings = pd.DataFrame(list(state.settings.to_dict().items()), columns=['Key', 'Value'])
        sessions = pd.DataFrame([session.to_dict() for session in state.sessions],
                                columns=list(InvigilationSession.__dataclass_fields__))

        with pd.ExcelWriter(self.filename, engine='openpyxl') as writer:
            educators.to_excel(writer, sheet_name='Educators', index=False)
            rooms.to_excel(writer, sheet_name='Rooms', index=False)
            settings.to_excel(writer, sheet_name='Settings', index=False)
            sessions.to_excel(writer, sheet_name='Sessions', index=False)

    @staticmethod
    def _room_row(room: Room) -> dict:
        row = {
            'id': room.id, 'name': room.name, 'capacity': room.capacity, 'type': room.type,
            'isAvailable': room.is_available, 'building': room.building, 'floor': room.floor,
        }
        if isinstance(room, Hall):
            row.update({
                'sections': ';'.join(room.sections),
                'requiresMultipleInvigilators': room.requires_multiple_invigilators,
                'invigilatorsPerSection': room.invigilators_per_section,
            })
        return row

    @staticmethod
    def _settings_from_frame(df: pd.DataFrame) -> InvigilationSettings:
        values = {}
        for key, value in zip(df['Key'], df['Value']):
            if str(value).strip().lower() in ('true', 'false'):
                values[key] = str(value).strip().lower() == 'true'
            else:
                values[key] = int(float(value))
        return InvigilationSettings.from_dict(values)

    @staticmethod
    def _sessions_from_frame(df: pd.DataFrame) -> List[InvigilationSession]:
        sessions = []
        for record in df.to_dict(orient='records'):
            for key, value in record.items():
                if not isinstance(value, str):
                    record[key] = None if pd.isna(value) else value
            for key in _SESSION_INT_FIELDS:
                record[key] = int(float(record[key]))
            for key in _SESSION_OPTIONAL_FIELDS:
                record[key] = record[key] or None
            record['is_main_invigilator'] = str(record['is_main_invigilator']).lower() == 'true'
            record['notes'] = record['notes'] or ''
            sessions.append(InvigilationSession(**record))
        return sessions
