import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from rustdrill import verify as verify_module
from rustdrill.exercise import Exercise, Mode, temp_file
from rustdrill.verify import VerificationFailed, prompt_for_completion, verify

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
DONE = "// fake_exercise\n\nfn main() {\n\n}\n"


def make_exercise(tmp_path, name, mode, source, hint=""):
    path = Path(tmp_path) / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


@pytest.fixture
def tools(monkeypatch):
    calls = []
    behaviour = {"compile": (0, b"", b""), "run": (0, b"", b"")}

    def fake_run(args, **kwargs):
        calls.append(list(args))
        key = "run" if args[0] == temp_file() else "compile"
        code, out, err = behaviour[key]
        return subprocess.CompletedProcess(args, code, stdout=out, stderr=err)

    monkeypatch.setattr(subprocess, "run", fake_run)
    return SimpleNamespace(calls=calls, behaviour=behaviour)


@pytest.fixture
def plain(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")


def test_prompt_done_returns_true(tmp_path, capsys):
    exercise = make_exercise(tmp_path, "finished_exercise", Mode.COMPILE, DONE)
    assert prompt_for_completion(exercise, None, False) is True
    assert capsys.readouterr().out == ""


def test_prompt_pending_shows_context(tmp_path, capsys, plain):
    exercise = make_exercise(tmp_path, "pending_exercise", Mode.COMPILE, PENDING)
    assert prompt_for_completion(exercise, None, False) is False
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert "~*~ The code is compiling! ~*~" in out
    assert "`I AM NOT DONE`" in out
    assert "// I AM NOT DONE" in out
    assert "// fake_exercise" in out
    assert "fn main() {" in out
    assert "Output:" not in out
    assert "Hints:" not in out


def test_prompt_shows_output_and_hints(tmp_path, capsys, plain):
    exercise = make_exercise(
        tmp_path, "pending_exercise", Mode.COMPILE, PENDING, hint="look closer"
    )
    assert prompt_for_completion(exercise, "program said hi", True) is False
    out = capsys.readouterr().out
    assert "Output:" in out
    assert "program said hi" in out
    assert "Hints:" in out
    assert "look closer" in out
    assert out.count("====================") == 4


@pytest.mark.parametrize(
    ("mode", "message"),
    [
        (Mode.TEST, "The code is compiling, and the tests pass!"),
        (Mode.BUILD_SCRIPT, "Build script works!"),
        (Mode.CLIPPY, "The code is compiling, and Clippy is happy!"),
    ],
)
def test_prompt_message_per_mode(tmp_path, capsys, plain, mode, message):
    exercise = make_exercise(tmp_path, "pending_exercise", mode, PENDING)
    assert prompt_for_completion(exercise, None, False) is False
    assert f"~*~ {message} ~*~" in capsys.readouterr().out


def test_prompt_with_emoji(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    exercise = make_exercise(tmp_path, "pending_exercise", Mode.TEST, PENDING)
    assert prompt_for_completion(exercise, None, False) is False
    out = capsys.readouterr().out
    assert (
        "\U0001f389 \U0001f389  The code is compiling, and the tests pass! "
        "\U0001f389 \U0001f389" in out
    )


def test_verify_all_done(tmp_path, tools):
    exercises = [
        make_exercise(tmp_path, "compSuccess", Mode.COMPILE, DONE),
        make_exercise(tmp_path, "testSuccess", Mode.TEST, DONE),
    ]
    assert verify(exercises, (0, len(exercises)), False, False) is None
    assert len(tools.calls) == 4
    assert tools.calls[3] == [temp_file(), "--show-output"]


def test_verify_stops_at_pending(tmp_path, tools, capsys, plain):
    pending = make_exercise(tmp_path, "pending_exercise", Mode.COMPILE, PENDING)
    later = make_exercise(tmp_path, "finished_exercise", Mode.COMPILE, DONE)
    with pytest.raises(VerificationFailed) as excinfo:
        verify([pending, later], (0, 2), False, False)
    assert excinfo.value.exercise is pending
    assert len(tools.calls) == 2
    assert str(pending.path) in tools.calls[0]
    assert "// I AM NOT DONE" in capsys.readouterr().out


def test_verify_reports_compile_failure(tmp_path, tools, capsys):
    tools.behaviour["compile"] = (1, b"", b"error[E0384]: boom")
    exercise = make_exercise(tmp_path, "compFailure", Mode.COMPILE, DONE)
    with pytest.raises(VerificationFailed) as excinfo:
        verify([exercise], (0, 1), False, False)
    assert excinfo.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Compiling of {exercise} failed! Please try again. Here's the output:" in out
    assert "error[E0384]: boom" in out
    assert len(tools.calls) == 1


def test_verify_reports_test_failure(tmp_path, tools, capsys):
    tools.behaviour["run"] = (101, b"assertion failed", b"")
    exercise = make_exercise(tmp_path, "testNotPassed", Mode.TEST, DONE)
    with pytest.raises(VerificationFailed):
        verify([exercise], (0, 1), False, False)
    out = capsys.readouterr().out
    assert f"Testing of {exercise} failed! Please try again. Here's the output:" in out
    assert "assertion failed" in out


def test_verify_reports_run_failure(tmp_path, tools, capsys):
    tools.behaviour["run"] = (1, b"partial output", b"panicked here")
    exercise = make_exercise(tmp_path, "crashes", Mode.COMPILE, DONE)
    with pytest.raises(VerificationFailed):
        verify([exercise], (0, 1), False, False)
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert "partial output" in out
    assert "panicked here" in out


def test_verify_clippy_compiles_only(tmp_path, tools, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "exercises" / "clippy").mkdir(parents=True)
    exercise = make_exercise(tmp_path, "clippy1", Mode.CLIPPY, DONE)
    verify([exercise], (0, 1), False, False)
    assert [call[:2] for call in tools.calls[1:]] == [
        ["cargo", "clean"],
        ["cargo", "clippy"],
    ]
    assert all(call[0] != temp_file() for call in tools.calls)
    manifest = (tmp_path / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in manifest


def test_test_does_not_prompt(tmp_path, tools, capsys):
    tools.behaviour["run"] = (0, b"THIS TEST TOO SHALL PASS", b"")
    exercise = make_exercise(tmp_path, "pending_test_exercise", Mode.TEST, PENDING)
    assert verify_module.test(exercise, True) is None
    out = capsys.readouterr().out
    assert "THIS TEST TOO SHALL PASS" in out
    assert "I AM NOT DONE" not in out


def test_test_hides_output_without_verbose(tmp_path, tools, capsys):
    tools.behaviour["run"] = (0, b"THIS TEST TOO SHALL PASS", b"")
    exercise = make_exercise(tmp_path, "testSuccess", Mode.TEST, DONE)
    verify_module.test(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_test_failure_raises(tmp_path, tools):
    tools.behaviour["run"] = (101, b"", b"")
    exercise = make_exercise(tmp_path, "testNotPassed", Mode.TEST, DONE)
    with pytest.raises(VerificationFailed) as excinfo:
        verify_module.test(exercise, False)
    assert excinfo.value.exercise is exercise