import curses
import io
import os
import sys

import pytest

from unispec.controller import BACKSPACE, ENTER, ESC, UP
from unispec.state import AppState, extract_short_from_file
from unispec.terminal import (
    _FileBackend,
    _key_name,
    binary_on_path,
    choose_editor,
    open_file,
)


def _recording_editor(tmp_path):
    script = tmp_path / "record_editor.py"
    out = tmp_path / "recorded.txt"
    script.write_text(
        "import sys\n"
        f"open({str(out)!r}, 'w').write('\\n'.join(sys.argv[1:]))\n"
    )
    return script, out


@pytest.fixture
def backend(tmp_path):
    spec = tmp_path / "specs"
    spec.mkdir()
    return _FileBackend(spec, tmp_path / "config" / "config.json", {"PATH": ""})


# ---------------------------------------------------------------- editor lookup


def test_binary_on_path_finds_file(tmp_path):
    (tmp_path / "tool").write_text("")
    other = tmp_path / "other"
    other.mkdir()
    assert binary_on_path("tool", os.pathsep.join([str(other), str(tmp_path)])) is True


def test_binary_on_path_missing_or_unset(tmp_path):
    assert binary_on_path("tool", str(tmp_path)) is False
    assert binary_on_path("tool", None) is False
    assert binary_on_path("tool", "") is False


def test_binary_on_path_ignores_directories(tmp_path):
    (tmp_path / "tool").mkdir()
    assert binary_on_path("tool", str(tmp_path)) is False


def test_choose_editor_prefers_editor_variable(tmp_path):
    (tmp_path / "nano").write_text("")
    assert choose_editor({"EDITOR": "  vim -O  ", "PATH": str(tmp_path)}) == "vim -O"


def test_choose_editor_falls_back_to_nano_then_vi(tmp_path):
    (tmp_path / "vi").write_text("")
    assert choose_editor({"EDITOR": "   ", "PATH": str(tmp_path)}) == "vi"
    (tmp_path / "nano").write_text("")
    assert choose_editor({"PATH": str(tmp_path)}) == "nano"


def test_choose_editor_none_available(tmp_path):
    assert choose_editor({"PATH": str(tmp_path)}) is None


# ---------------------------------------------------------------- opening files


def test_open_file_prints_when_no_editor(tmp_path, monkeypatch, capsys):
    target = tmp_path / "notes.md"
    target.write_text("line one\nline two")
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    open_file(target, {"PATH": str(tmp_path / "empty")})
    out = capsys.readouterr().out
    assert out.startswith(f"--- {target} ---\n")
    assert "line one\nline two\n" in out
    assert out.rstrip("\n").endswith("--- end of file (press Enter to return) ---")


def test_open_file_unreadable_without_editor(tmp_path):
    with pytest.raises(RuntimeError, match="Could not read"):
        open_file(tmp_path / "missing.md", {"PATH": str(tmp_path)})


def test_open_file_editor_that_cannot_start(tmp_path):
    env = {"EDITOR": "no-such-editor-binary-here", "PATH": str(tmp_path)}
    with pytest.raises(RuntimeError, match="Failed to launch editor 'no-such-editor-binary-here'"):
        open_file(tmp_path / "x.md", env)


def test_open_file_passes_editor_flags_then_path(tmp_path):
    script, out = _recording_editor(tmp_path)
    target = tmp_path / "spec.md"
    target.write_text("x")
    env = {"EDITOR": f"{sys.executable} {script} --flag", "PATH": os.environ.get("PATH", "")}
    open_file(target, env)
    assert out.read_text().split("\n") == ["--flag", str(target)]


# ---------------------------------------------------------------- keys


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("\n", ENTER),
        ("\r", ENTER),
        (curses.KEY_ENTER, ENTER),
        ("\x1b", ESC),
        ("\x7f", BACKSPACE),
        (curses.KEY_BACKSPACE, BACKSPACE),
        (curses.KEY_UP, UP),
        ("q", "q"),
        ("\\", "\\"),
        ("\x01", None),
    ],
)
def test_key_name(raw, expected):
    assert _key_name(raw) == expected


# ---------------------------------------------------------------- file backend


def test_backend_area_round_trip(backend):
    backend.add_area("Working")
    assert AppState(backend.spec_dir).load_areas() == ["Working"]
    with pytest.raises(FileExistsError):
        backend.add_area("Working")
    backend.remove_area("Working")
    assert AppState(backend.spec_dir).load_areas() == []


def test_backend_rejects_bad_area_names(backend):
    with pytest.raises(ValueError):
        backend.add_area("")
    with pytest.raises(ValueError):
        backend.add_area("a/b")


def test_backend_new_topic_is_loaded_with_short(backend):
    backend.add_area("Working")
    backend.new_topic("login", "Working", "Sign users in")
    state = AppState(backend.spec_dir)
    state.load_topics_for_area("Working")
    assert [t.topic for t in state.topics] == ["login"]
    assert state.topics[0].short == "Sign users in"
    with pytest.raises(FileExistsError):
        backend.new_topic("login", "Working", "again")


def test_backend_new_topic_requires_area(backend):
    with pytest.raises(FileNotFoundError):
        backend.new_topic("login", "Nowhere", "Sign users in")


def test_backend_push_and_pull_move_topic(backend):
    backend.add_area("Working")
    backend.add_area("Build")
    backend.new_topic("login", "Working", "Sign users in")
    backend.push_topic("login", "Build", "Working")
    assert not (backend.spec_dir / "Working" / "login").exists()
    assert extract_short_from_file(backend.spec_dir / "Build" / "login" / "topic.md") == "Sign users in"
    backend.pull_topic("login", "Build")
    assert (backend.spec_dir / "Working" / "login" / "topic.md").is_file()
    assert not (backend.spec_dir / "Build" / "login").exists()


def test_backend_delete_topic(backend):
    backend.add_area("Working")
    backend.new_topic("login", "Working", "Sign users in")
    backend.delete_topic("login", "Working", True)
    assert not (backend.spec_dir / "Working" / "login").exists()
    with pytest.raises(FileNotFoundError):
        backend.delete_topic("login", "Working", True)


def test_backend_links_round_trip(backend):
    backend.add_link("login", "Working", "src/auth.py")
    backend.add_link("login", "Working", "src/session.py")
    backend.add_link("other", "Working", "src/other.py")
    assert backend.find_links("login") == ["src/auth.py", "src/session.py"]
    with pytest.raises(ValueError):
        backend.add_link("login", "Working", "src/auth.py")
    backend.remove_link("login", "src/auth.py")
    assert backend.find_links("login") == ["src/session.py"]
    with pytest.raises(ValueError):
        backend.remove_link("login", "src/auth.py")


def test_backend_queue_rejects_duplicates(backend):
    backend.add_area("Working")
    name = backend.queue_add("login", "Working")
    queue = backend.spec_dir / "Working" / name
    assert "- login" in queue.read_text().splitlines()
    with pytest.raises(ValueError):
        backend.queue_add("login", "Working")


def test_backend_paddy_setting_persists(backend):
    assert backend.paddy_enabled() is True
    backend.set_paddy_enabled(False)
    again = _FileBackend(backend.spec_dir, backend.config_path, {})
    assert again.paddy_enabled() is False


def test_backend_agent_id_from_environment(backend):
    agent = _FileBackend(backend.spec_dir, backend.config_path, {"UNISPEC_AGENT": "agent-7"})
    assert agent.agent_id() == "agent-7"