import json
import subprocess
from pathlib import Path
from unittest.mock import patch

from rustdrill.project import Crate, RustAnalyzerProject


def test_crate_defaults():
    crate = Crate(root_module="exercises/intro/intro1.rs")
    assert crate.to_dict() == {
        "root_module": "exercises/intro/intro1.rs",
        "edition": "2021",
        "deps": [],
        "cfg": ["test"],
    }


def test_path_to_json_only_takes_rust_files():
    project = RustAnalyzerProject()
    project.path_to_json("exercises/if/if1.rs")
    project.path_to_json("exercises/if/README.md")
    project.path_to_json("exercises/if")
    assert [c.root_module for c in project.crates] == [str(Path("exercises/if/if1.rs"))]


def test_exercises_to_json_walks_tree(tmp_path):
    root = tmp_path / "exercises"
    (root / "sub").mkdir(parents=True)
    (root / "a.rs").write_text("fn main() {}")
    (root / "notes.txt").write_text("x")
    (root / "sub" / "c.rs").write_text("fn main() {}")
    project = RustAnalyzerProject()
    project.exercises_to_json(root)
    modules = [c.root_module for c in project.crates]
    assert set(modules) == {str(root / "a.rs"), str(root / "sub" / "c.rs")}
    assert modules == sorted(modules)


def test_exercises_to_json_missing_root(tmp_path):
    project = RustAnalyzerProject()
    project.exercises_to_json(tmp_path / "absent")
    assert project.crates == []


def test_write_to_disk_round_trip(tmp_path):
    project = RustAnalyzerProject(sysroot_src="/toolchain/library")
    project.path_to_json("exercises/intro/intro2.rs")
    target = tmp_path / "rust-project.json"
    project.write_to_disk(target)
    assert json.loads(target.read_text()) == project.to_dict()


def test_sysroot_from_environment(monkeypatch):
    monkeypatch.setenv("RUST_SRC_PATH", "/custom/src")
    project = RustAnalyzerProject()
    with patch("subprocess.run") as run_mock:
        project.get_sysroot_src()
    assert project.sysroot_src == "/custom/src"
    assert run_mock.call_count == 0


def test_sysroot_from_rustc(monkeypatch, capsys):
    monkeypatch.delenv("RUST_SRC_PATH", raising=False)
    done = subprocess.CompletedProcess(
        args=[], returncode=0, stdout=b"/opt/toolchain\n", stderr=b""
    )
    project = RustAnalyzerProject()
    with patch("subprocess.run", return_value=done) as run_mock:
        project.get_sysroot_src()
    assert run_mock.call_args.args[0] == ["rustc", "--print", "sysroot"]
    src = Path(project.sysroot_src)
    assert src.parts[-5:] == ("lib", "rustlib", "src", "rust", "library")
    assert src.parents[4] == Path("/opt/toolchain")
    assert "Determined toolchain: /opt/toolchain" in capsys.readouterr().out