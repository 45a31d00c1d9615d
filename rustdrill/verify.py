"""Check exercises in order and report the first one that is not finished."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from enum import Enum, auto

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn
from rich.text import Text

from rustdrill import ui
from rustdrill.exercise import (
    CompileError,
    Exercise,
    ExerciseOutput,
    Mode,
    RunError,
)

_SEPARATOR = "===================="

_Bar = tuple[Progress, TaskID]


class RunMode(Enum):
    """Whether a successful exercise is followed by the completion prompt."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class VerificationFailed(Exception):
    """An exercise failed to build, failed to run or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} did not pass")
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


@contextmanager
def _spinner(message: str, bar: _Bar | None = None) -> Iterator[Callable[[str], None]]:
    """Show what is being done; inside a progress bar, as its description."""
    if bar is None:
        with _console().status(message) as status:
            yield lambda text: status.update(text)
        return
    progress, task = bar
    progress.update(task, description=message)
    try:
        yield lambda text: progress.update(task, description=text)
    finally:
        progress.update(task, description="")


def _report_compile_failure(exercise: Exercise, output: ExerciseOutput) -> None:
    ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
    print(output.stderr)


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int] = (0, 0),
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first that fails."""
    num_done, total = progress
    percentage = num_done / total * 100.0 if total else math.nan
    step = 100.0 / total if total else math.nan

    display = Progress(
        TextColumn("Progress: ["),
        BarColumn(bar_width=60, style="red", complete_style="green", finished_style="green"),
        TextColumn("]"),
        MofNCompleteColumn(),
        TextColumn("{task.fields[msg]}"),
        TextColumn("{task.description}"),
    )
    with display:
        task = display.add_task(
            "", total=total, completed=num_done, msg=f"({percentage:.1f} %)"
        )
        bar = (display, task)
        for exercise in exercises:
            if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
                passed = _compile_and_test(
                    exercise, RunMode.INTERACTIVE, verbose, success_hints, bar
                )
            elif exercise.mode is Mode.COMPILE:
                passed = _compile_and_run_interactively(exercise, success_hints, bar)
            else:
                passed = _compile_only(exercise, success_hints, bar)
            if not passed:
                raise VerificationFailed(exercise)
            percentage += step
            display.update(task, advance=1, msg=f"({percentage:.1f} %)")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise's test harness; raise VerificationFailed on failure."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile_only(
    exercise: Exercise, success_hints: bool, bar: _Bar | None = None
) -> bool:
    try:
        with _spinner(f"Compiling {exercise}...", bar):
            exercise.compile().close()
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        raise VerificationFailed(exercise) from exc
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(
    exercise: Exercise, success_hints: bool, bar: _Bar | None = None
) -> bool:
    try:
        with _spinner(f"Compiling {exercise}...", bar) as show:
            with exercise.compile() as compiled:
                show(f"Running {exercise}...")
                output = compiled.run()
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        raise VerificationFailed(exercise) from exc
    except RunError as exc:
        ui.warn(f"Ran {exercise} with errors")
        print(exc.output.stdout)
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise,
    run_mode: RunMode,
    verbose: bool,
    success_hints: bool,
    bar: _Bar | None = None,
) -> bool:
    try:
        with _spinner(f"Testing {exercise}...", bar):
            with exercise.compile() as compiled:
                output = compiled.run()
    except CompileError as exc:
        _report_compile_failure(exercise, exc.output)
        raise VerificationFailed(exercise) from exc
    except RunError as exc:
        ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stdout)
        raise VerificationFailed(exercise) from exc

    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _success_message(mode: Mode, no_emoji: bool) -> str:
    if mode is Mode.COMPILE:
        return "The code is compiling!"
    if mode is Mode.TEST:
        return "The code is compiling, and the tests pass!"
    if mode is Mode.CLIPPY:
        if no_emoji:
            return "The code is compiling, and Clippy is happy!"
        return "The code is compiling, and \U0001f4ce Clippy \U0001f4ce is happy!"
    return "Build script works!"


def _announce_success(exercise: Exercise) -> None:
    if exercise.mode is Mode.COMPILE:
        ui.success(f"Successfully ran {exercise}!")
    elif exercise.mode is Mode.TEST:
        ui.success(f"Successfully tested {exercise}!")
    else:
        ui.success(f"Successfully compiled {exercise}!")


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done; otherwise explain how to finish it."""
    state = exercise.state()
    if state.done():
        return True

    _announce_success(exercise)

    no_emoji = ui.no_emoji()
    success_msg = _success_message(exercise.mode, no_emoji)
    console = _console()
    separator = Text(_SEPARATOR, style="bold")

    print()
    if no_emoji:
        print(f"~*~ {success_msg} ~*~")
    else:
        print(f"\U0001f389 \U0001f389  {success_msg} \U0001f389 \U0001f389")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(separator)
        print(prompt_output)
        console.print(separator)
        print()
    if success_hints:
        print("Hints:")
        console.print(separator)
        print(exercise.hint)
        console.print(separator)
        print()

    print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in state.context:
        console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                (context_line.line, "bold" if context_line.important else ""),
            )
        )

    return False