from uuid import uuid4

import pytest

from session_service.app.services.session_governor import SessionGovernor, SweepReport


@pytest.mark.asyncio
async def test_cap_under_limit_evicts_nothing(mock_uow, make_session):
    user_id = uuid4()
    mock_uow.sessions.find_active_by_user_id.return_value = [
        make_session(user_id, f"a{i}", f"r{i}") for i in range(3)
    ]

    evicted = await SessionGovernor(mock_uow).cap_sessions(user_id, 4)

    assert evicted == 0
    mock_uow.sessions.deactivate_many.assert_not_awaited()


@pytest.mark.asyncio
async def test_cap_evicts_least_recently_used_first(mock_uow, make_session):
    user_id = uuid4()
    active = [make_session(user_id, f"a{i}", f"r{i}") for i in range(7)]
    mock_uow.sessions.find_active_by_user_id.return_value = active

    evicted = await SessionGovernor(mock_uow).cap_sessions(user_id, 4)

    assert evicted == 3
    mock_uow.sessions.deactivate_many.assert_awaited_once_with([s.id for s in active[:3]])


@pytest.mark.asyncio
async def test_cap_of_zero_evicts_everything(mock_uow, make_session):
    user_id = uuid4()
    active = [make_session(user_id, f"a{i}", f"r{i}") for i in range(2)]
    mock_uow.sessions.find_active_by_user_id.return_value = active

    evicted = await SessionGovernor(mock_uow).cap_sessions(user_id, 0)

    assert evicted == 2


@pytest.mark.asyncio
async def test_sweep_reports_per_criterion(mock_uow):
    mock_uow.sessions.deactivate_expired.return_value = 2
    mock_uow.sessions.deactivate_idle.return_value = 1
    mock_uow.sessions.deactivate_never_used.return_value = 4

    report = await SessionGovernor(mock_uow, retention_days=10, never_used_grace_hours=6).sweep()

    assert report == SweepReport(expired=2, inactive=1, never_used=4)
    assert report.as_dict() == {"expired": 2, "inactive": 1, "never_used": 4, "total": 7}
    assert mock_uow.sessions.deactivate_idle.await_args.args[0] == 10
    assert mock_uow.sessions.deactivate_never_used.await_args.args[0] == 6
    # Sweep never deletes
    mock_uow.sessions.purge_expired.assert_not_awaited()


@pytest.mark.asyncio
async def test_purge_deletes_per_criterion(mock_uow):
    mock_uow.sessions.purge_expired.return_value = 5
    mock_uow.sessions.purge_stale_inactive.return_value = 2

    report = await SessionGovernor(mock_uow).purge()

    assert report.total == 7
    mock_uow.sessions.deactivate_expired.assert_not_awaited()


@pytest.mark.asyncio
async def test_stats(mock_uow):
    mock_uow.sessions.count_active.return_value = 3
    mock_uow.sessions.count_all.return_value = 10

    stats = await SessionGovernor(mock_uow).stats()

    assert (stats.active, stats.inactive, stats.total) == (3, 7, 10)
