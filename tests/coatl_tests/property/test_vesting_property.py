"""Property checks for the linear vesting curve and the release path."""

from hypothesis import given, settings, strategies as st

from coatl.core.contracts.token import CoatlToken
from coatl.core.contracts.vesting import CoatlVesting, VestingSchedule
from coatl.core.units import days
from coatl.core.vm import ContractExecutor, ExecutionMessage, ManualClock

from ..conftest import GENESIS_TIME, make_address

schedules = st.builds(
    lambda total, start, cliff_offset, duration: VestingSchedule(
        total_amount=total,
        start=start,
        cliff=start + min(cliff_offset, duration),
        end=start + duration,
    ),
    total=st.integers(min_value=1, max_value=10**27),
    start=st.integers(min_value=0, max_value=10**10),
    cliff_offset=st.integers(min_value=1, max_value=days(400)),
    duration=st.integers(min_value=1, max_value=days(1000)),
)


@given(schedule=schedules, t1=st.integers(min_value=0, max_value=10**11), t2=st.integers(min_value=0, max_value=10**11))
def test_vested_amount_is_monotonic(schedule, t1, t2):
    early, late = sorted((t1, t2))
    assert 0 <= schedule.vested_amount(early) <= schedule.vested_amount(late) <= schedule.total_amount


@given(schedule=schedules, extra=st.integers(min_value=0, max_value=10**6))
def test_fully_vested_from_end(schedule, extra):
    assert schedule.vested_amount(max(schedule.end, schedule.cliff) + extra) == schedule.total_amount


@given(schedule=schedules, offset=st.integers(min_value=1, max_value=days(400)))
def test_nothing_before_cliff(schedule, offset):
    assert schedule.vested_amount(schedule.cliff - offset) == 0


@given(
    schedule=schedules,
    times=st.lists(st.integers(min_value=0, max_value=10**11), max_size=20),
)
def test_releases_never_exceed_total(schedule, times):
    for now in sorted(times):
        amount = schedule.releasable_amount(now)
        assert amount >= 0
        schedule.released += amount
        assert schedule.released <= schedule.total_amount
    schedule.released += schedule.releasable_amount(schedule.end + schedule.cliff)
    assert schedule.released == schedule.total_amount


OWNER = make_address("prop-owner")
MULTISIG = make_address("prop-multisig")
FOUNDER = make_address("prop-founder")
ALLOCATION = 1_000_000


@given(steps=st.lists(st.integers(min_value=1, max_value=days(60)), min_size=1, max_size=15))
@settings(max_examples=50, deadline=None)
def test_contract_releases_sum_to_allocation(steps):
    """Releasing at arbitrary points pays out exactly the allocation once the schedule ends."""
    clock = ManualClock(GENESIS_TIME)
    executor = ContractExecutor(time_provider=clock, allow_faucet=True)
    token = executor.deploy(OWNER, CoatlToken, ALLOCATION, MULTISIG, MULTISIG, [])
    vesting = executor.deploy(OWNER, CoatlVesting, token.address)
    executor.transact(MULTISIG, token.address, "transfer", vesting.address, ALLOCATION)
    start = GENESIS_TIME + 60
    executor.transact(OWNER, vesting.address, "add_founder", FOUNDER, ALLOCATION, start, start + days(30))

    received = 0
    for step in steps:
        clock.advance(step)
        result = executor.execute(ExecutionMessage(FOUNDER, vesting.address, "release"))
        if result.success:
            received += result.return_value
        assert received == executor.view(token.address, "balance_of", FOUNDER)
        assert received <= ALLOCATION

    clock.set(max(clock(), start + days(365)))
    assert received + executor.view(vesting.address, "releasable_amount", FOUNDER) == ALLOCATION
