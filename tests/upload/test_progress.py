from __future__ import annotations

import random

import pytest

from lead_uploader.upload import ManualScheduler, ProgressPhase, SyntheticProgress


def _progress(scheduler: ManualScheduler, seed: int = 7) -> SyntheticProgress:
    return SyntheticProgress(scheduler, rng=random.Random(seed))


def test_rising_phase_is_monotonic_and_capped(scheduler) -> None:
    progress = _progress(scheduler)
    seen: list[float] = []
    progress.subscribe(lambda value, phase: seen.append(value))

    progress.start()
    assert progress.phase is ProgressPhase.RISING
    assert progress.value == 5

    scheduler.advance(0.5)
    assert 8 <= progress.value <= 11

    scheduler.advance(60)
    assert progress.value == 92
    assert progress.phase is ProgressPhase.RISING
    assert seen == sorted(seen)
    assert all(0 <= value < 100 for value in seen)


def test_finish_jumps_to_100_then_resets_after_hold(scheduler) -> None:
    progress = _progress(scheduler)
    progress.start()
    scheduler.advance(2)

    progress.finish()
    assert progress.value == 100
    assert progress.phase is ProgressPhase.FINALIZING

    scheduler.advance(0.79)
    assert progress.value == 100

    scheduler.advance(0.02)
    assert progress.value == 0
    assert progress.phase is ProgressPhase.IDLE
    assert scheduler.pending == 0


def test_ticks_stop_once_finished(scheduler) -> None:
    progress = _progress(scheduler)
    progress.start()
    progress.finish()

    scheduler.advance(0.5)

    assert progress.value == 100


def test_finish_while_idle_is_a_noop(scheduler) -> None:
    progress = _progress(scheduler)

    progress.finish()

    assert progress.value == 0
    assert progress.phase is ProgressPhase.IDLE
    assert scheduler.pending == 0


def test_reset_tears_down_timers(scheduler) -> None:
    progress = _progress(scheduler)
    progress.start()
    assert scheduler.pending == 1

    progress.reset()

    assert scheduler.pending == 0
    assert progress.value == 0
    scheduler.advance(5)
    assert progress.value == 0


def test_restart_during_hold_cancels_reset(scheduler) -> None:
    progress = _progress(scheduler)
    progress.start()
    progress.finish()

    progress.start()
    scheduler.advance(0.9)

    assert progress.phase is ProgressPhase.RISING
    assert 5 < progress.value < 100


def test_invalid_tuning_is_rejected(scheduler) -> None:
    with pytest.raises(ValueError):
        SyntheticProgress(scheduler, min_step=7, max_step=6)
    with pytest.raises(ValueError):
        SyntheticProgress(scheduler, ceiling=100)
