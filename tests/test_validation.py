from invigilation_scheduler.models import Educator, InvigilationSettings
from invigilation_scheduler.selection import count_consecutive_sessions
from invigilation_scheduler.validation import validate_invigilation_schedule


def test_clean_schedule_has_no_conflicts(make_session, settings):
    educators = [Educator(id='E1', name='A'), Educator(id='E2', name='B')]
    sessions = [make_session('09:00', '09:30', 'E1'), make_session('09:00', '09:30', 'E2', room_id='R2'),
                make_session('11:00', '11:30', 'E1')]

    assert validate_invigilation_schedule(sessions, educators, settings) == []


def test_flags_each_overlapping_pair(make_session, settings):
    educators = [Educator(id='E1', name='A')]
    sessions = [make_session('09:00', '10:00', 'E1'), make_session('09:30', '10:30', 'E1', room_id='R2'),
                make_session('09:45', '10:15', 'E1', room_id='R3')]

    conflicts = [c for c in validate_invigilation_schedule(sessions, educators, settings)
                 if c.kind == 'overlap']

    assert len(conflicts) == 3
    assert all(c.severity == 'error' for c in conflicts)
    assert conflicts[0].session_id == sessions[0].id


def test_flags_daily_overload_against_effective_cap(make_session, settings):
    educators = [Educator(id='E1', name='A'), Educator(id='E2', name='B', max_sessions_per_day=2)]
    times = ['08:00', '10:00', '12:00', '14:00', '16:00']
    sessions = [make_session(t, t[:3] + '30', 'E1') for t in times]
    sessions += [make_session(t, t[:3] + '30', 'E2', room_id='R2') for t in times[:3]]

    conflicts = validate_invigilation_schedule(sessions, educators, settings)

    assert [(c.kind, c.educator_id, c.severity) for c in conflicts] == [
        ('overload', 'E1', 'warning'), ('overload', 'E2', 'warning')]
    assert 'exceeding limit of 4' in conflicts[0].message
    assert 'exceeding limit of 2' in conflicts[1].message


def test_flags_runs_longer_than_the_limit(make_session, settings):
    educators = [Educator(id='E1', name='A')]
    sessions = [make_session('10:00', '10:30', 'E1'), make_session('09:00', '09:30', 'E1'),
                make_session('09:30', '10:00', 'E1')]

    conflicts = validate_invigilation_schedule(sessions, educators, settings)

    assert [(c.kind, c.severity) for c in conflicts] == [('consecutive', 'warning')]
    assert '3 consecutive sessions' in conflicts[0].message


def test_two_back_to_back_sessions_are_within_the_default_limit(make_session, settings):
    educators = [Educator(id='E1', name='A')]
    sessions = [make_session('09:00', '09:30', 'E1'), make_session('10:00', '10:30', 'E1')]

    assert validate_invigilation_schedule(sessions, educators, settings) == []


def test_gap_larger_than_setting_breaks_the_run(make_session):
    settings = InvigilationSettings(consecutive_gap_minutes=15)
    educators = [Educator(id='E1', name='A')]
    sessions = [make_session('09:00', '09:30', 'E1'), make_session('10:00', '10:30', 'E1'),
                make_session('11:00', '11:30', 'E1')]

    assert count_consecutive_sessions(sessions, settings) == 1
    assert validate_invigilation_schedule(sessions, educators, settings) == []


def test_flags_sessions_on_unavailable_dates(make_session, settings):
    educators = [Educator(id='E1', name='A', unavailable_dates=['2025-06-02'])]
    sessions = [make_session('09:00', '09:30', 'E1'), make_session('13:00', '13:30', 'E1'),
                make_session('09:00', '09:30', 'E1', date='2025-06-03')]

    conflicts = validate_invigilation_schedule(sessions, educators, settings)

    assert [(c.kind, c.session_id) for c in conflicts] == [
        ('unavailable', sessions[0].id), ('unavailable', sessions[1].id)]


def test_skips_unassigned_sessions_and_unknown_educators(make_session, settings):
    educators = [Educator(id='E1', name='A')]
    sessions = [make_session('09:00', '10:00', None), make_session('09:00', '10:00', None, room_id='R2'),
                make_session('09:00', '10:00', 'ghost'), make_session('09:30', '10:30', 'ghost')]

    assert validate_invigilation_schedule(sessions, educators, settings) == []


def test_sessions_on_different_dates_are_checked_separately(make_session, settings):
    educators = [Educator(id='E1', name='A', max_sessions_per_day=1)]
    sessions = [make_session('09:00', '09:30', 'E1', date='2025-06-02'),
                make_session('09:00', '09:30', 'E1', date='2025-06-03')]

    assert validate_invigilation_schedule(sessions, educators, settings) == []


def test_count_consecutive_sessions_of_empty_day(settings):
    assert count_consecutive_sessions([], settings) == 0
