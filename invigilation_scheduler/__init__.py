"""
Invigilation Scheduler Package

A greedy, fairness-weighted allocator that splits scheduled exams into
invigilation sessions per room and assigns educators to them while
respecting daily and consecutive-session limits.
"""

from .models import (
    Educator,
    Exam,
    Hall,
    InsufficientCapacityError,
    InvigilationConflict,
    InvigilationResult,
    InvigilationSession,
    InvigilationSettings,
    FairnessReport,
    Room,
)
from .scheduler import InvigilationScheduler, generate_invigilation_schedule
from .utils import (
    validate_input_file
)

__version__ = '1.0.0'
__author__ = 'Invigilation Scheduling Team'

__all__ = [
    'Educator',
    'Exam',
    'Hall',
    'InsufficientCapacityError',
    'InvigilationConflict',
    'InvigilationResult',
    'InvigilationScheduler',
    'InvigilationSession',
    'InvigilationSettings',
    'FairnessReport',
    'Room',
    'generate_invigilation_schedule',
    'validate_input_file'
]
