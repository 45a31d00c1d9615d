# rustdrill

A command-line trainer for working through a series of small Rust exercises.
Each exercise is a `.rs` file with a deliberate compile error or failing test.
You fix it, remove the `// I AM NOT DONE` marker, and move on to the next one.

rustdrill calls `rustc` to build exercises, so `rustc` must be on your `PATH`.
Clippy and build-script exercises also need `cargo`.

## Install

```
pip install rustdrill
```

## Setting up exercises

rustdrill does not come with any exercises. Run it from a directory that holds
an `info.toml` listing your exercises in the order they should be done:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

Each entry needs all four fields. `mode` is one of:

- `compile` – build with `rustc`, then run the binary
- `test` – build as a test harness with `rustc --test`, then run the tests
- `clippy` – write `exercises/clippy/Cargo.toml` for the exercise and run
  `cargo clippy -- -D warnings -D clippy::float_cmp`
- `buildscript` – write `exercises/tests/Cargo.toml` for the exercise and run
  `cargo test`

An exercise counts as pending for as long as its file has a line of the form
`// I AM NOT DONE` (or `/// I AM NOT DONE`). Once that line is gone it counts
as done.

If `info.toml` is missing, or `rustc --version` does not run, every command
except `--version` prints a message and exits with status 1.

## Commands

```
rustdrill                      # welcome text and a short introduction
rustdrill --version            # print the version
rustdrill watch                # verify in order, re-check whenever a file changes
rustdrill watch --success-hints
rustdrill verify               # check every exercise in order, stop at the first failure
rustdrill run intro1           # compile and run (or test) one exercise
rustdrill run next             # the first exercise that is not yet done
rustdrill hint intro1          # print the exercise's hint
rustdrill reset intro1         # undo your edits with `git stash -- <file>`
rustdrill list                 # table of names, paths and Done/Pending status
rustdrill list --paths --unsolved
rustdrill list --names --solved --filter vars,if
rustdrill lsp                  # write rust-project.json for rust-analyzer
rustdrill cicvverify           # grade all exercises and write a JSON report
```

To see the output of test exercises, put `--nocapture` before the subcommand,
for example `rustdrill --nocapture run intro1`.

`verify` and `run` exit with status 1 when an exercise fails to build or run.
`run`, `hint` and `reset` also exit with status 1 when no exercise has the
given name.

### list

`list` prints every exercise and then a progress line such as
`Progress: You completed 3 / 10 exercises (30.0 %).`

- `-p`, `--paths` – print only paths
- `-n`, `--names` – print only names
- `-f`, `--filter` – comma-separated, case-lowered substrings matched against
  the name or the path
- `-u`, `--unsolved` – only exercises still pending
- `-s`, `--solved` – only exercises that are done

### verify and watch

`verify` checks the exercises in order behind a progress bar. It stops at the
first exercise that fails to build, fails its tests, or still has its
`I AM NOT DONE` marker. For a pending exercise that builds, it prints the lines
around the marker. With `--success-hints`, `watch` also prints the exercise's
hint at that point.

`watch` runs the same check. It then watches `./exercises` for `.rs` files that
are created or changed, waits one second for more changes, and checks again:
first the file that changed, then every exercise that is still pending. While
it runs you can type:

- `hint` – show the hint for the exercise you are stuck on
- `clear` – clear the screen
- `quit` – leave watch mode
- `!<cmd>` – run a command, e.g. `!rustc --explain E0381`
- `help` – list these commands

### lsp

`lsp` writes `./rust-project.json` with one crate for every `.rs` file below
`./exercises`, so that rust-analyzer treats each exercise as its own crate
(with `cfg(test)` enabled). It takes the standard library location from the
`RUST_SRC_PATH` environment variable if that is set. Otherwise it asks
`rustc --print sysroot`.

### cicvverify

`cicvverify` runs every exercise at the same time, as `run --nocapture` would,
and prints a progress report for each one. It then writes
`.github/result/check_result.json`, which holds one `{"name", "result"}` entry
per exercise, a `user_name` of `null`, and totals for the exercises, successes,
failures and seconds taken.

## Environment

Set `NO_EMOJI` to get plain-text status markers and messages.

## Using it from Python

The pieces behind the commands can also be used directly:

```python
from rustdrill.exercise import load_exercises
from rustdrill.verify import verify, VerificationFailed
from rustdrill.cli import find_exercise

exercises = load_exercises("info.toml")
print([e.name for e in exercises if not e.looks_done()])

state = find_exercise("intro1", exercises).state()
for line in state.context:
    print(line.number, line.line, line.important)

try:
    verify(exercises, (0, len(exercises)))
except VerificationFailed as exc:
    print("stuck on", exc.exercise.name)
```

`rustdrill.run.run` builds and runs a single exercise and raises
`ExerciseFailed` if it fails. `Exercise.compile()` raises `CompileError` and
returns a `CompiledExercise`. That object works as a context manager and removes
the built binary when it closes. Its `run()` raises `RunError` when the binary
exits with a failure status.