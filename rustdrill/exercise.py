"""Exercises: loading, checking completion state, compiling and running."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from rustdrill.ui import no_emoji

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Path of the binary built for the current process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean() -> None:
    """Remove the built binary, ignoring a missing file."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state: done when there is no pending context."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or an exercise binary."""

    stdout: str
    stderr: str


class CompileError(Exception):
    """Compiling or linting an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


class RunError(Exception):
    """Running a compiled exercise exited with a failure status."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


def _execute(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(args), capture_output=True, check=False)


def _output_of(proc: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(proc.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(proc.stderr or b"").decode("utf-8", errors="replace"),
    )


def _source_lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _write_cargo_toml(path: str, name: str) -> None:
    content = (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )
    try:
        Path(path).write_text(content, encoding="utf-8")
    except OSError as exc:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if no_emoji()
            else "Failed to write \U0001f4ce Clippy \U0001f4ce Cargo.toml file."
        )
        raise OSError(message) from exc


@dataclass(frozen=True)
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __str__(self) -> str:
        return str(self.path)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Exercise:
        try:
            return cls(
                name=str(data["name"]),
                path=Path(data["path"]),
                mode=Mode(data["mode"]),
                hint=str(data["hint"]),
            )
        except KeyError as exc:
            raise ValueError(
                f"exercise entry is missing the {exc.args[0]!r} field"
            ) from exc

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompileError when the build fails."""
        source = str(self.path)
        if self.mode is Mode.COMPILE:
            proc = _execute(
                ["rustc", source, "-o", temp_file(), *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
            )
        elif self.mode is Mode.TEST:
            proc = _execute(
                ["rustc", "--test", source, "-o", temp_file(),
                 *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
            )
        elif self.mode is Mode.CLIPPY:
            _write_cargo_toml(CLIPPY_CARGO_TOML_PATH, self.name)
            # Build a runnable binary too; a failure here shows up again in clippy.
            _execute(
                ["rustc", source, "-o", temp_file(), *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
            )
            # A clean is needed for clippy to report every lint.
            _execute(
                ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                 *RUSTC_COLOR_ARGS]
            )
            proc = _execute(
                ["cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                 *RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp"]
            )
        else:
            _write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
            proc = _execute(
                ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
            )

        if proc.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompileError(_output_of(proc))

    def run(self) -> ExerciseOutput:
        """Run the built binary; raise RunError when it exits with failure."""
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        proc = _execute(args)
        output = _output_of(proc)
        if proc.returncode != 0:
            raise RunError(output)
        return output

    def state(self) -> State:
        """Read the source and report whether the pending marker remains."""
        source = self.path.read_text(encoding="utf-8", errors="replace")
        if not I_AM_DONE_REGEX.search(source):
            return State()

        lines = _source_lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError("pending marker matched but no line holds it")

        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=i + 1, important=i == matched)
                for i, line in enumerate(lines)
                if first <= i <= last
            )
        )

    def looks_done(self) -> bool:
        """True when the pending marker has been removed from the source."""
        return self.state().done()


class CompiledExercise:
    """A successfully built exercise; closing it removes the built binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise

    def run(self) -> ExerciseOutput:
        return self.exercise.run()

    def close(self) -> None:
        clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Load the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        entries = data["exercises"]
    except KeyError as exc:
        raise ValueError(f"{path} has no 'exercises' list") from exc
    return [Exercise.from_dict(entry) for entry in entries]