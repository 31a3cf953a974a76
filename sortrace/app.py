"""
Command line front end.

    sortrace single     one algorithm in one window
    sortrace compare    two algorithms racing on the same input
    sortrace benchmark  every algorithm at full speed, ranked when done
    sortrace info       complexity and properties of the algorithms

Window keys: Space play/pause, Right step, S shuffle, R/V/M reverse, valley
and mountain presets, Up/Down speed, Tab next algorithm, T next theme,
+/- volume, 1/2 rank by time/comparisons, Esc quit. In benchmark mode
S/V/R/M pick the random, sorted, reverse and nearly-sorted cases instead.

``--headless`` skips the window and prints the statistics.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Optional

import pygame
import typer

from . import config
from .algorithms import ALGORITHM_KEYS, algorithm_info, algorithm_name
from .engine import SortRun
from .errors import SortRaceError
from .logging import get_logger
from .model import parse_custom_values
from .orchestrator import Benchmark, HeadToHead, validate_metric
from .render import BarRenderer
from .sound import SoundEngine
from .speed import speed_label
from .theme import ThemeManager

log = get_logger("app")

_HELP = """Sorting algorithm visualizer and race.

Run one algorithm, race two on the same input, or benchmark all of them."""

app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help=_HELP,
)

SPEED_STEP = 5
VOLUME_STEP = 10

_PRESET_KEYS = {pygame.K_r: "reverse", pygame.K_v: "valley", pygame.K_m: "mountain"}
_CASE_KEYS = {pygame.K_s: "random", pygame.K_v: "sorted", pygame.K_r: "reverse", pygame.K_m: "nearly"}
_METRIC_KEYS = {pygame.K_1: "time", pygame.K_2: "comparisons"}
_VOLUME_KEYS = {
    pygame.K_EQUALS: VOLUME_STEP, pygame.K_PLUS: VOLUME_STEP, pygame.K_KP_PLUS: VOLUME_STEP,
    pygame.K_MINUS: -VOLUME_STEP, pygame.K_KP_MINUS: -VOLUME_STEP,
}


@app.callback()
def _root() -> None:
    """Configure logging from SORTRACE_LOG_LEVEL."""
    logging.basicConfig(
        level=config.settings().log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _fail(exc: Exception):
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=2)


def _rng(seed: Optional[int]) -> random.Random:
    return random.Random(config.settings().seed if seed is None else seed)


def _next_algorithm(key: str) -> str:
    return ALGORITHM_KEYS[(ALGORITHM_KEYS.index(key) + 1) % len(ALGORITHM_KEYS)]


def _nudge(speed: int, key: int) -> int:
    delta = SPEED_STEP if key == pygame.K_UP else -SPEED_STEP
    return max(0, min(100, speed + delta))


def _spawn(coro) -> asyncio.Task:
    task = asyncio.ensure_future(coro)

    def _done(t):
        # the engine already logged the failure
        if not t.cancelled() and t.exception() is not None:
            log.debug("background task ended with %r", t.exception())

    task.add_done_callback(_done)
    return task


def _stats_line(run: SortRun) -> str:
    stats = run.get_stats()
    return (f"{run.label}: {stats.comparisons} comparisons, {stats.swaps} swaps, "
            f"{stats.elapsed_ms:.1f} ms ({run.state.value})")


def _leaderboard_lines(bench: Benchmark, metric: str) -> list:
    lines = []
    for pos, entry in enumerate(bench.leaderboard(metric), 1):
        lines.append(f"{pos:2d}. {entry.name:<18} {entry.elapsed_ms:9.1f} ms {entry.comparisons:8d} comparisons")
    for algo, exc in bench.failures.items():
        lines.append(f"    {algorithm_name(algo):<18} failed: {exc}")
    return lines


# ============================================================
# ========================= WINDOW ===========================
# ============================================================

def _layout(count: int) -> list:
    """Split the window into ``count`` panel rects, row-major."""
    cols = math.ceil(math.sqrt(count)) if count > 2 else count
    rows = math.ceil(count / cols)
    gap = config.PANEL_GAP
    w = (config.WINDOW_WIDTH - gap * (cols - 1)) // cols
    h = (config.WINDOW_HEIGHT - gap * (rows - 1)) // rows
    return [pygame.Rect((i % cols) * (w + gap), (i // cols) * (h + gap), w, h) for i in range(count)]


class Window:
    """One pygame window holding ``panels`` BarRenderers."""

    def __init__(self, title: str, panels: int, theme: str = "dark", sound: bool = False,
                 volume: Optional[int] = None):
        pygame.init()
        self.screen = pygame.display.set_mode((config.WINDOW_WIDTH, config.WINDOW_HEIGHT))
        pygame.display.set_caption(title)
        self.font = pygame.font.SysFont("consolas", 16)
        self.theme = ThemeManager(theme)
        self.audio = None
        if sound:
            engine = SoundEngine()
            if volume is not None:
                engine.set_volume(volume)
            try:
                engine.start()
            except pygame.error as exc:
                log.warning("sound disabled: %s", exc)
            else:
                self.audio = engine
        self.renderers = [
            BarRenderer(self.screen.subsurface(rect), self.theme, font=self.font)
            for rect in _layout(panels)
        ]

    async def run(self, controls):
        self.screen.fill(config.BACKGROUND_COLOR)
        while True:
            for ev in pygame.event.get():
                if ev.type == pygame.QUIT:
                    return
                if ev.type == pygame.KEYDOWN:
                    if ev.key == pygame.K_ESCAPE:
                        return
                    if ev.key == pygame.K_t:
                        self.theme.cycle()
                    elif ev.key in _VOLUME_KEYS:
                        if self.audio is not None:
                            log.debug("volume %d%%", self.audio.nudge_volume(_VOLUME_KEYS[ev.key]))
                    else:
                        try:
                            controls.handle(ev.key)
                        except SortRaceError as exc:
                            log.warning("%s", exc)
            controls.update()
            for r in self.renderers:
                r.refresh()
            pygame.display.flip()
            await asyncio.sleep(1 / config.FPS)

    def close(self):
        if self.audio is not None:
            self.audio.stop()
        pygame.quit()


class SingleControls:
    def __init__(self, run: SortRun, renderer: BarRenderer):
        self.run = run
        self.renderer = renderer
        run.renderer.draw(run.sequence, (), ())

    def handle(self, key):
        run = self.run
        if key == pygame.K_SPACE:
            if not run.pause():
                _spawn(run.play())
        elif key == pygame.K_RIGHT:
            run.step()
        elif key == pygame.K_s:
            run.shuffle()
        elif key in _PRESET_KEYS:
            run.set_preset(_PRESET_KEYS[key])
        elif key in (pygame.K_UP, pygame.K_DOWN):
            run.set_speed(_nudge(run.speed, key))
        elif key == pygame.K_TAB:
            run.set_algorithm(_next_algorithm(run.algorithm))

    def update(self):
        run = self.run
        self.renderer.label = run.label
        self.renderer.status = (f"{run.state.value}  {speed_label(run.speed)}  "
                                f"{run.comparisons} cmp  {run.swaps} swp  {run.elapsed_ms:.0f} ms")


class CompareControls:
    def __init__(self, race: HeadToHead, renderers):
        self.race = race
        self.renderers = renderers
        for run in race.runs:
            run.renderer.draw(run.sequence, (), ())

    def handle(self, key):
        race = self.race
        if key == pygame.K_SPACE:
            if race.running:
                race.pause()
            else:
                _spawn(race.play())
        elif key == pygame.K_RIGHT:
            for run in race.runs:
                run.step()
        elif key == pygame.K_s:
            race.shuffle()
        elif key in _PRESET_KEYS:
            race.set_preset(_PRESET_KEYS[key])
        elif key in (pygame.K_UP, pygame.K_DOWN):
            race.set_speed(_nudge(race.speed, key))
        elif key == pygame.K_TAB:
            race.set_algorithms(race.left.algorithm, _next_algorithm(race.right.algorithm))

    def update(self):
        for run, renderer in zip(self.race.runs, self.renderers):
            renderer.label = run.label
            renderer.status = f"{run.state.value}  {run.comparisons} cmp  {run.elapsed_ms:.0f} ms"


class BenchmarkControls:
    def __init__(self, bench: Benchmark, renderers, metric: str = "time"):
        self.bench = bench
        self.renderers = renderers
        self.metric = metric
        for run in bench.runs.values():
            run.renderer.draw(run.sequence, (), ())

    async def race(self):
        await self.bench.run(self.metric)
        if not self.bench.aborted:
            for line in _leaderboard_lines(self.bench, self.metric):
                typer.echo(line)

    def handle(self, key):
        bench = self.bench
        if key == pygame.K_SPACE:
            if bench.running:
                bench.abort()
            else:
                _spawn(self.race())
        elif key in _CASE_KEYS:
            bench.generate(_CASE_KEYS[key])
        elif key in _METRIC_KEYS:
            self.metric = _METRIC_KEYS[key]

    def update(self):
        places = {e.algorithm: pos for pos, e in enumerate(self.bench.leaderboard(self.metric), 1)}
        for algo, renderer in zip(self.bench.algorithms, self.renderers):
            run = self.bench.runs[algo]
            renderer.label = run.label
            if algo in places:
                renderer.status = f"#{places[algo]}  {run.elapsed_ms:.1f} ms  {run.comparisons} cmp"
            elif algo in self.bench.failures:
                renderer.status = "failed"
            else:
                renderer.status = run.state.value


def _show(title, panels, theme, sound, build, volume=None):
    """Open a window, let ``build`` wire runs to its renderers, run the frame loop."""
    window = Window(title, panels, theme, sound, volume)
    try:
        controls = build(window)
        asyncio.run(window.run(controls))
    finally:
        window.close()


# ============================================================
# ======================== COMMANDS ==========================
# ============================================================

@app.command()
def single(
    algorithm: str = typer.Option("bubble", "--algorithm", "-a", help=f"One of: {', '.join(ALGORITHM_KEYS)}."),
    size: Optional[int] = typer.Option(None, "--size", "-n", help="Number of bars."),
    speed: Optional[int] = typer.Option(None, "--speed", help="0 (slowest) to 100 (fastest)."),
    values: Optional[str] = typer.Option(None, "--values", help="Comma-separated custom input."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for shuffles."),
    theme: str = typer.Option("dark", "--theme", help="Bar color theme."),
    sound: Optional[bool] = typer.Option(None, "--sound/--no-sound", help="Play tones."),
    volume: Optional[int] = typer.Option(None, "--volume", min=0, max=100, help="Sound volume in percent."),
    headless: bool = typer.Option(False, "--headless", help="No window; print statistics."),
) -> None:
    """Sort with a single algorithm."""
    try:
        ThemeManager(theme)
        custom = parse_custom_values(values) if values is not None else None
        if headless:
            run = SortRun(algorithm, size=size, speed=speed, rng=_rng(seed), sweep_delay=0)
            if custom is not None:
                run.load(custom)
            asyncio.run(run.play())
            typer.echo(_stats_line(run))
            return

        def build(window):
            renderer = window.renderers[0]
            run = SortRun(algorithm, size=size, speed=speed, rng=_rng(seed),
                          renderer=renderer, audio=window.audio)
            if custom is not None:
                run.load(custom)
            return SingleControls(run, renderer)

        _show("sortrace", 1, theme, config.settings().sound if sound is None else sound, build, volume)
    except SortRaceError as exc:
        _fail(exc)


@app.command()
def compare(
    left: str = typer.Option("bubble", "--left", "-l", help="Algorithm in the left panel."),
    right: str = typer.Option("quick", "--right", "-r", help="Algorithm in the right panel."),
    size: Optional[int] = typer.Option(None, "--size", "-n", help="Number of bars."),
    speed: Optional[int] = typer.Option(None, "--speed", help="0 (slowest) to 100 (fastest)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for shuffles."),
    theme: str = typer.Option("dark", "--theme", help="Bar color theme."),
    sound: Optional[bool] = typer.Option(None, "--sound/--no-sound", help="Play tones."),
    volume: Optional[int] = typer.Option(None, "--volume", min=0, max=100, help="Sound volume in percent."),
    headless: bool = typer.Option(False, "--headless", help="No window; print statistics."),
) -> None:
    """Race two algorithms on copies of the same input."""
    try:
        ThemeManager(theme)
        if headless:
            race = HeadToHead(left, right, size=size, speed=speed, rng=_rng(seed), sweep_delay=0)
            asyncio.run(race.play())
            for run in race.runs:
                typer.echo(_stats_line(run))
            return

        def build(window):
            race = HeadToHead(left, right, size=size, speed=speed, rng=_rng(seed),
                              renderers=window.renderers, audio=window.audio)
            return CompareControls(race, window.renderers)

        _show("sortrace - compare", 2, theme, config.settings().sound if sound is None else sound, build, volume)
    except SortRaceError as exc:
        _fail(exc)


@app.command()
def benchmark(
    case: str = typer.Option("random", "--case", help="random, sorted, reverse or nearly."),
    size: int = typer.Option(config.BENCHMARK_ARRAY_SIZE, "--size", "-n", help="Number of bars."),
    metric: str = typer.Option("time", "--metric", help="Rank by 'time' or 'comparisons'."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the input."),
    theme: str = typer.Option("dark", "--theme", help="Bar color theme."),
    headless: bool = typer.Option(False, "--headless", help="No window; print the leaderboard."),
) -> None:
    """Race every algorithm at full speed and rank the finishers."""
    try:
        validate_metric(metric)
        ThemeManager(theme)
        if headless:
            bench = Benchmark(size=size, case=case, rng=_rng(seed), sweep_delay=0)
            asyncio.run(bench.run(metric))
            for line in _leaderboard_lines(bench, metric):
                typer.echo(line)
            return

        def build(window):
            panels = iter(window.renderers)
            bench = Benchmark(size=size, case=case, rng=_rng(seed),
                              renderer_factory=lambda algo: next(panels))
            return BenchmarkControls(bench, window.renderers, metric)

        _show("sortrace - benchmark", len(ALGORITHM_KEYS), theme, False, build)
    except SortRaceError as exc:
        _fail(exc)


@app.command()
def info(
    algorithm: Optional[str] = typer.Argument(None, help="Show one algorithm in detail."),
) -> None:
    """List the algorithms, or describe one."""
    if algorithm is None:
        for key in ALGORITHM_KEYS:
            entry = algorithm_info(key)
            typer.echo(f"{key:<10} {entry.name:<18} {entry.properties}")
        return
    try:
        entry = algorithm_info(algorithm)
    except SortRaceError as exc:
        _fail(exc)
    typer.echo(entry.name)
    typer.echo(f"  best     {entry.best}")
    typer.echo(f"  average  {entry.average}")
    typer.echo(f"  worst    {entry.worst}")
    typer.echo(f"  space    {entry.space}")
    typer.echo(f"  {entry.properties}")
    typer.echo(f"  {entry.description}")


def main() -> None:
    app()


__all__ = ["app", "main"]
