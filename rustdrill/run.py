"""Run a single exercise, or reset it to its original contents."""

from __future__ import annotations

import subprocess

from rich.console import Console

from rustdrill import ui
from rustdrill.exercise import CompileError, Exercise, Mode, RunError
from rustdrill.verify import VerificationFailed, test


class ExerciseFailed(Exception):
    """Running or resetting an exercise did not succeed."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run an exercise, showing its output; raise ExerciseFailed on failure."""
    if exercise.mode in (Mode.TEST, Mode.BUILD_SCRIPT):
        try:
            test(exercise, verbose)
        except VerificationFailed as exc:
            raise ExerciseFailed(exercise) from exc
    else:
        _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Stash local changes to the exercise file with git."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise ExerciseFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    console = Console(highlight=False, soft_wrap=True)
    try:
        with console.status(f"Compiling {exercise}...") as status:
            with exercise.compile() as compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except CompileError as exc:
        ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise ExerciseFailed(exercise) from exc
    except RunError as exc:
        print(exc.output.stdout)
        print(exc.output.stderr)
        ui.warn(f"Ran {exercise} with errors")
        raise ExerciseFailed(exercise) from exc

    print(output.stdout)
    ui.success(f"Successfully ran {exercise}")