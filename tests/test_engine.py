import asyncio
import itertools
import random

import pytest

from sortrace.algorithms import ALGORITHM_KEYS, Tally, run_to_completion
from sortrace.collaborators import CHORD_MS, COMPLETION_CHORD
from sortrace.config import BATCH_SIZE
from sortrace.engine import RunState, RunStats, SortRun
from sortrace.errors import InvalidConfigurationError, InvalidInputError
from sortrace.model import ElementState, Sequence, random_sequence

from tests.utils.recorders import RecordingRenderer


def _run(algorithm="bubble", values=(5, 2, 8, 1, 9), **kwargs):
    kwargs.setdefault("speed", 100)
    kwargs.setdefault("sweep_delay", 0)
    return SortRun(algorithm, sequence=Sequence.from_values(values), **kwargs)


def test_new_run_is_idle():
    run = _run()
    assert run.state is RunState.IDLE
    assert run.label == "Bubble Sort"
    assert run.get_stats().comparisons == 0
    assert run.elapsed_ms == 0.0


def test_play_completes_and_finishes_with_sweep_and_chord(renderer, audio):
    run = _run(renderer=renderer, audio=audio)

    assert asyncio.run(run.play()) is True

    assert run.state is RunState.COMPLETED
    assert run.sequence.values() == [1.0, 2.0, 5.0, 8.0, 9.0]
    assert all(e.state is ElementState.SORTED for e in run.sequence)
    assert run.comparisons == 10
    assert audio.chords == [(COMPLETION_CHORD, CHORD_MS)]
    assert renderer.frames[-1] == ((), ())


@pytest.mark.parametrize("key", ALGORITHM_KEYS)
def test_counters_match_an_unscheduled_run(key):
    base = random_sequence(40, random.Random(21))
    expected = run_to_completion(key, base.copy(), Tally())

    run = SortRun(key, sequence=base, speed=100, sweep_delay=0)
    asyncio.run(run.play())

    assert run.state is RunState.COMPLETED
    assert run.sequence.is_sorted()
    assert (run.comparisons, run.swaps) == (expected.comparisons, expected.swaps)


def test_one_draw_per_operation_with_highlights(renderer):
    run = _run(renderer=renderer)
    asyncio.run(run.play())

    ops = run.comparisons + run.swaps
    op_frames = renderer.frames[:ops]
    assert op_frames[0] == ((0, 1), ())
    assert sum(1 for comparing, _ in op_frames if comparing) == run.comparisons
    assert sum(1 for _, swapping in op_frames if swapping) == run.swaps


def test_swaps_and_writes_play_tones(audio):
    run = _run(audio=audio)
    asyncio.run(run.play())
    swap_tones = [t for t in audio.tones if t[1] == 30]
    assert len(swap_tones) == run.swaps


def test_element_state_is_restored_after_each_operation():
    states = []

    class Snapshot:
        def draw(self, sequence, comparing=(), swapping=()):
            states.append([e.state for e in sequence])

    run = _run(renderer=Snapshot())
    asyncio.run(run.play())
    first = states[0]
    assert first[0] is ElementState.COMPARING and first[1] is ElementState.COMPARING
    assert all(s is ElementState.DEFAULT for s in states[1][2:4])


def test_step_releases_exactly_one_operation(renderer):
    async def scenario():
        run = _run(values=(1, 2, 3, 4, 5), renderer=renderer, speed=0)
        assert run.step() is True
        assert run.state is RunState.STEPPING
        assert await run.wait_for_step()
        assert len(renderer.frames) == 1
        assert run.comparisons == 1

        assert run.advance_step() is True
        assert run.advance_step() is False
        assert await run.wait_for_step()
        assert len(renderer.frames) == 2

        assert run.step() is True
        assert await run.wait_for_step()
        assert len(renderer.frames) == 3
        return run

    run = asyncio.run(scenario())
    assert run.comparisons == 3


def test_step_mode_never_advances_on_its_own(renderer):
    async def scenario():
        run = _run(renderer=renderer, speed=100)
        run.step()
        await run.wait_for_step()
        await asyncio.sleep(0.05)
        return run

    run = asyncio.run(scenario())
    assert len(renderer.frames) == 1


def test_pause_then_play_resumes_the_same_trace():
    base = random_sequence(25, random.Random(4))

    straight = RecordingRenderer()
    asyncio.run(SortRun("quick", sequence=base, speed=100, renderer=straight, sweep_delay=0).play())

    resumed = RecordingRenderer()

    async def scenario():
        run = SortRun("quick", sequence=base, speed=100, renderer=resumed, sweep_delay=0)
        run.step()
        for _ in range(7):
            await run.wait_for_step()
            run.advance_step()
        await run.wait_for_step()
        assert run.pause() is True
        assert run.state is RunState.PAUSED
        await asyncio.sleep(0.01)
        assert await run.play() is True
        return run

    run = asyncio.run(scenario())
    assert run.state is RunState.COMPLETED
    assert resumed.frames == straight.frames


def test_pause_while_running_returns_from_play():
    async def scenario():
        run = SortRun("bubble", size=200, speed=96, sweep_delay=0)
        task = run.start()
        for _ in range(5):
            await asyncio.sleep(0)
        assert run.state is RunState.RUNNING
        assert run.pause() is True
        finished = await task
        return run, finished

    run, finished = asyncio.run(scenario())
    assert finished is False
    assert run.state is RunState.PAUSED
    assert 0 < run.comparisons < 200 * 199 // 2


def test_batching_yields_at_most_once_per_batch():
    run = SortRun("merge", size=1000, speed=100, rng=random.Random(2), sweep_delay=0)
    asyncio.run(run.play())

    ops = run.comparisons + run.swaps
    assert run.host_yields > 0
    assert run.host_yields <= ops // BATCH_SIZE


def test_below_batching_speed_every_operation_yields():
    run = _run(speed=96)
    asyncio.run(run.play())
    assert run.host_yields == run.comparisons + run.swaps


def test_control_conflicts_are_noops():
    async def scenario():
        run = SortRun("bubble", size=100, speed=96, sweep_delay=0)
        assert run.pause() is False
        assert run.advance_step() is False
        task = run.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        before = run.sequence
        assert await run.play() is False
        assert run.shuffle() is False
        assert run.set_preset("sorted") is False
        assert run.resize(10) is False
        assert run.set_algorithm("quick") is False
        assert run.step() is False
        assert run.sequence is before
        assert run.algorithm == "bubble"
        await task
        return run

    run = asyncio.run(scenario())
    assert run.state is RunState.COMPLETED


def test_invalid_configuration_leaves_the_run_unchanged():
    run = _run()
    values = run.sequence.values()
    with pytest.raises(InvalidConfigurationError):
        SortRun("bogo")
    with pytest.raises(InvalidConfigurationError):
        SortRun(size=0)
    with pytest.raises(InvalidConfigurationError):
        run.set_speed(101)
    with pytest.raises(InvalidConfigurationError):
        run.set_algorithm("bogo")
    with pytest.raises(InvalidConfigurationError):
        run.resize(0)
    with pytest.raises(InvalidConfigurationError):
        run.set_preset("zigzag")
    with pytest.raises(InvalidInputError):
        run.load([1, 200])
    assert run.speed == 100
    assert run.algorithm == "bubble"
    assert run.sequence.values() == values
    assert run.state is RunState.IDLE


def test_idle_controls_replace_the_sequence(rng):
    run = SortRun("insertion", size=10, speed=100, rng=rng, sweep_delay=0)
    assert run.set_preset("reverse") is True
    assert run.sequence.values()[0] == 100.0
    assert run.resize(4) is True
    assert run.size == 4
    assert run.load([3, 1, 2]) is True
    assert run.sequence.values() == [3.0, 1.0, 2.0]
    assert run.shuffle() is True
    assert sorted(run.sequence.values()) == [((i + 1) / 3) * 100 for i in range(3)]


def test_completed_run_can_be_reset_and_played_again(rng):
    run = SortRun("heap", size=30, speed=100, rng=rng, sweep_delay=0)
    asyncio.run(run.play())
    assert run.reset() is True
    assert run.state is RunState.IDLE
    assert run.comparisons == 0
    assert asyncio.run(run.play()) is True


def test_set_algorithm_while_paused_discards_the_parked_body():
    async def scenario():
        run = _run(speed=0)
        run.step()
        await run.wait_for_step()
        run.pause()
        assert run.set_algorithm("selection") is True
        assert run.state is RunState.IDLE
        run.set_speed(100)
        assert await run.play() is True
        return run

    run = asyncio.run(scenario())
    assert run.algorithm == "selection"
    assert run.comparisons == 10


def test_failure_marks_the_run_failed():
    run = _run(renderer=RecordingRenderer(fail_after=3))
    with pytest.raises(RuntimeError):
        asyncio.run(run.play())
    assert run.state is RunState.FAILED
    assert isinstance(run.error, RuntimeError)
    assert run.comparisons > 0

    # the renderer is still broken; the reset applies anyway
    before = run.sequence
    assert run.reset() is True
    assert run.state is RunState.IDLE
    assert run.error is None
    assert run.get_stats() == RunStats(0, 0, 0.0)
    assert run.sequence is not before


@pytest.mark.parametrize("fail_after", [1, 3])
def test_failed_draw_leaves_no_highlight_behind(fail_after):
    run = _run(renderer=RecordingRenderer(fail_after=fail_after))
    with pytest.raises(RuntimeError):
        asyncio.run(run.play())
    assert all(e.state is ElementState.DEFAULT for e in run.sequence)


def test_refused_input_changes_leave_the_rng_alone():
    async def scenario():
        rng = random.Random(8)
        run = SortRun("bubble", size=100, speed=96, rng=rng, sweep_delay=0)
        task = run.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert run.state is RunState.RUNNING
        snapshot = rng.getstate()
        assert run.shuffle() is False
        assert run.reset() is False
        assert run.resize(150) is False
        assert rng.getstate() == snapshot
        run.pause()
        await task

    asyncio.run(scenario())


def test_elapsed_time_comes_from_the_clock():
    ticks = itertools.count(0, 0.5)
    run = _run(clock=lambda: next(ticks))
    asyncio.run(run.play())
    assert run.elapsed_ms == 500.0
    assert run.get_stats().elapsed_ms == 500.0


def test_runs_share_nothing():
    base = Sequence.from_values([4, 3, 2, 1])
    a = SortRun("bubble", sequence=base, speed=100, sweep_delay=0)
    b = SortRun("bubble", sequence=base, speed=100, sweep_delay=0)
    asyncio.run(a.play())
    assert b.sequence.values() == [4.0, 3.0, 2.0, 1.0]
    assert base.values() == [4.0, 3.0, 2.0, 1.0]


def test_suspend_while_paused_waits_for_resume():
    async def scenario():
        run = _run(speed=96)
        run.step()
        await run.wait_for_step()
        run.pause()
        pending = asyncio.ensure_future(run.suspend())
        await asyncio.sleep(0.12)
        assert not pending.done()
        task = run.start()
        await asyncio.wait_for(pending, timeout=1.0)
        return await task

    assert asyncio.run(scenario()) is True
