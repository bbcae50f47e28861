"""Curses front end of the spec browser, the file-backed operations it uses, and its entry point."""

from __future__ import annotations

import argparse
import curses
import getpass
import json
import os
import shutil
import subprocess
import sys
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path

from . import render
from .controller import BACKSPACE, DOWN, ENTER, ESC, LEFT, RIGHT, UP, App
from .platypus import FRAME_HEIGHT, platypus_frame
from .state import AppState, AreaSelection, FindResults, ModeConfig

POLL_MILLISECONDS = 100
STATUS_HEIGHT = 3
PREVIEW_HEIGHT = 10
SHORT_HEIGHT = 3
HELP_HEIGHT = 3
DEFAULT_MODE = "simple"
INDEX_FILE = "index.json"
QUEUE_FILE = "queue.md"
AREA_FILE = "area.md"
TOPIC_FILE = "topic.md"


# ---------------------------------------------------------------- editor


def binary_on_path(name: str, path: str | None) -> bool:
    """True if ``name`` is a file in one of the directories of a PATH-style string."""
    if not path:
        return False
    return any(
        (Path(directory) / name).is_file()
        for directory in path.split(os.pathsep)
        if directory
    )


def choose_editor(environ: Mapping[str, str]) -> str | None:
    """The editor command to use: $EDITOR, then nano, then vi, else None."""
    editor = environ.get("EDITOR", "").strip()
    if editor:
        return editor
    search_path = environ.get("PATH")
    for candidate in ("nano", "vi"):
        if binary_on_path(candidate, search_path):
            return candidate
    return None


def open_file(path: str | Path, environ: Mapping[str, str] | None = None) -> None:
    """Open ``path`` in an editor, or print it and wait for Enter when there is none.

    Raises RuntimeError when the editor cannot be started or the file cannot be read.
    """
    env = os.environ if environ is None else environ
    target = Path(path)
    if not target.is_absolute():
        target = Path.cwd() / target
    final_path = str(target)

    command = choose_editor(env)
    if command is not None:
        binary, *extra = command.split()
        try:
            subprocess.run([binary, *extra, final_path], check=False, env=dict(env))
        except OSError as exc:
            raise RuntimeError(f"Failed to launch editor '{binary}': {exc}") from exc
        return

    try:
        content = target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RuntimeError(f"Could not read {final_path}: {exc}") from exc
    print(f"--- {final_path} ---")
    print(content, end="")
    if not content.endswith("\n"):
        print()
    print("--- end of file (press Enter to return) ---")
    sys.stdin.readline()


@contextmanager
def _suspended_screen() -> Iterator[None]:
    """Hand the terminal back to the shell while the body runs, if curses holds it."""
    try:
        active = not curses.isendwin()
    except curses.error:
        active = False
    if active:
        curses.endwin()
    try:
        yield
    finally:
        if active:
            curses.doupdate()


# ---------------------------------------------------------------- backend


def _config_path(environ: Mapping[str, str]) -> Path:
    base = environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "unispec" / "config.json"


def _check_name(name: str, what: str) -> None:
    if not name.strip():
        raise ValueError(f"{what} name cannot be empty")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"invalid {what} name: {name!r}")


class _FileBackend:
    """Keeps areas, topics, links and queues as plain files under the spec directory."""

    def __init__(
        self,
        spec_dir: Path | str,
        config_path: Path | str,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.spec_dir = Path(spec_dir)
        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ

    # configuration

    def _load_config(self) -> dict:
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save_config(self, data: dict) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def paddy_enabled(self) -> bool:
        return bool(self._load_config().get("paddy_enabled", True))

    def set_paddy_enabled(self, enabled: bool) -> None:
        data = self._load_config()
        data["paddy_enabled"] = enabled
        self._save_config(data)

    def current_mode(self) -> str:
        return str(self._load_config().get("mode", DEFAULT_MODE))

    def agent_id(self) -> str:
        agent = self.environ.get("UNISPEC_AGENT", "").strip()
        if agent:
            return agent
        try:
            return getpass.getuser()
        except (OSError, KeyError):
            return "agent"

    # areas

    def _area_dir(self, area: str) -> Path:
        path = self.spec_dir / area
        if not (path / AREA_FILE).exists():
            raise FileNotFoundError(f"Area '{area}' does not exist")
        return path

    def add_area(self, name: str) -> None:
        _check_name(name, "area")
        path = self.spec_dir / name
        if (path / AREA_FILE).exists():
            raise FileExistsError(f"Area '{name}' already exists")
        path.mkdir(parents=True, exist_ok=True)
        (path / AREA_FILE).write_text("---\nshort: \n---\n", encoding="utf-8")

    def remove_area(self, name: str) -> str:
        shutil.rmtree(self._area_dir(name))
        return f"Removed area '{name}'"

    # topics

    def new_topic(self, path: str, area: str, short: str | None) -> str:
        for part in path.split("/"):
            _check_name(part, "topic")
        target = self._area_dir(area) / path
        if target.exists():
            raise FileExistsError(f"Topic '{path}' already exists in {area}")
        target.mkdir(parents=True)
        (target / TOPIC_FILE).write_text(
            f"---\nshort: {short or ''}\n---\n\n# {target.name}\n", encoding="utf-8"
        )
        return f"Created topic '{path}' in {area}"

    def _move(self, topic: str, source_area: str, target_area: str) -> None:
        source = self._area_dir(source_area) / topic
        if not source.exists():
            raise FileNotFoundError(f"Topic '{topic}' not found in {source_area}")
        destination = self._area_dir(target_area) / topic
        if destination.exists():
            raise FileExistsError(f"Topic '{topic}' already exists in {target_area}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))

    def push_topic(self, topic: str, target: str, source_area: str | None) -> str:
        source = source_area or "Working"
        if source == target:
            raise ValueError(f"Topic '{topic}' is already in {target}")
        self._move(topic, source, target)
        return f"Pushed '{topic}' from {source} to {target}"

    def pull_topic(self, topic: str, area: str) -> str:
        self._move(topic, area, "Working")
        return f"Pulled '{topic}' from {area} to Working"

    def delete_topic(self, topic: str, area: str, force: bool) -> str:
        target = self._area_dir(area) / topic
        if not target.exists():
            raise FileNotFoundError(f"Topic '{topic}' not found in {area}")
        if target.is_dir():
            if not force and any(target.iterdir()):
                raise OSError(f"Topic '{topic}' is not empty")
            shutil.rmtree(target)
        else:
            target.unlink()
        return f"Deleted '{topic}' from {area}"

    # links

    def _index_path(self) -> Path:
        return self.spec_dir / INDEX_FILE

    def _load_links(self) -> list[dict]:
        try:
            data = json.loads(self._index_path().read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return []
        links = data.get("links", []) if isinstance(data, dict) else []
        return [link for link in links if isinstance(link, dict)]

    def _save_links(self, links: list[dict]) -> None:
        self.spec_dir.mkdir(parents=True, exist_ok=True)
        self._index_path().write_text(json.dumps({"links": links}, indent=2), encoding="utf-8")

    def find_links(self, topic: str) -> list[str]:
        return [link["path"] for link in self._load_links() if link.get("topic") == topic]

    def add_link(self, topic: str, area: str, path: str) -> None:
        if not path.strip():
            raise ValueError("link path cannot be empty")
        links = self._load_links()
        if any(link.get("topic") == topic and link.get("path") == path for link in links):
            raise ValueError(f"'{path}' is already linked to {topic}")
        kind = "directory" if Path(path).is_dir() else "file"
        links.append({"topic": topic, "area": area, "path": path, "type": kind})
        self._save_links(links)

    def remove_link(self, topic: str, path: str) -> None:
        links = self._load_links()
        kept = [
            link for link in links
            if not (link.get("topic") == topic and link.get("path") == path)
        ]
        if len(kept) == len(links):
            raise ValueError(f"'{path}' is not linked to {topic}")
        self._save_links(kept)

    # queue

    def queue_add(self, topic: str, area: str) -> str:
        queue = self._area_dir(area) / QUEUE_FILE
        entry = f"- {topic}"
        try:
            lines = queue.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            lines = []
        if entry in (line.strip() for line in lines):
            raise ValueError(f"'{topic}' is already queued in {area}")
        lines.append(entry)
        queue.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return QUEUE_FILE

    # viewing

    def open_file(self, path: str) -> None:
        with _suspended_screen():
            open_file(path, self.environ)


# ---------------------------------------------------------------- screen

_NAMED_KEYS = {
    curses.KEY_UP: UP,
    curses.KEY_DOWN: DOWN,
    curses.KEY_LEFT: LEFT,
    curses.KEY_RIGHT: RIGHT,
    curses.KEY_ENTER: ENTER,
    curses.KEY_BACKSPACE: BACKSPACE,
}
_CHAR_KEYS = {"\n": ENTER, "\r": ENTER, "\x1b": ESC, "\x7f": BACKSPACE, "\b": BACKSPACE}


def _key_name(key: int | str) -> str | None:
    """Translate what curses reports into the key names the controller understands."""
    if isinstance(key, int):
        return _NAMED_KEYS.get(key)
    if key in _CHAR_KEYS:
        return _CHAR_KEYS[key]
    if len(key) == 1 and key.isprintable():
        return key
    return None


def _list_rows(app: App, agent: str) -> tuple[str, list[str], bool, bool]:
    """Title, rows, whether rows get a ">> " marker, and whether the list is a placeholder."""
    nav = app.state.nav_state
    if isinstance(nav, AreaSelection):
        rows = [
            render.area_line(
                area,
                app.state.count_topics_in_area(area),
                app.state.has_work_in_area(area),
                app.frame,
            )
            for area in app._areas()
        ]
        return "Select Area", rows, False, False
    if isinstance(nav, FindResults):
        title = f"Files linked to: {nav.topic}"
        if not nav.paths:
            return title, ["(no files linked - press n to add)"], False, True
        return title, list(nav.paths), True, False
    rows = [render.topic_line(topic, app.frame, agent) for topic in app.state.topics]
    return "Specs", rows, True, False


def _put(win, y: int, x: int, text: str, width: int, attr: int = 0) -> None:
    if width <= 0:
        return
    try:
        win.addnstr(y, x, text, width, attr)
    except curses.error:
        pass


def _box(stdscr, top: int, height: int, title: str, lines: Sequence[str]) -> None:
    max_y, max_x = stdscr.getmaxyx()
    height = min(height, max_y - top)
    if height < 2 or max_x < 4:
        return
    try:
        win = stdscr.derwin(height, max_x, top, 0)
        win.box()
    except curses.error:
        return
    if title:
        _put(win, 0, 2, title, max_x - 4)
    for row, line in enumerate(lines[: height - 2]):
        _put(win, row + 1, 1, line, max_x - 2)


def _list_box(stdscr, top: int, height: int, app: App, agent: str, highlight: int) -> None:
    max_y, max_x = stdscr.getmaxyx()
    height = min(height, max_y - top)
    if height < 2 or max_x < 4:
        return
    title, rows, marked, placeholder = _list_rows(app, agent)
    try:
        win = stdscr.derwin(height, max_x, top, 0)
        win.box()
    except curses.error:
        return
    _put(win, 0, 2, title, max_x - 4)
    inner = height - 2
    offset = max(0, app.selected - inner + 1)
    for row, line in enumerate(rows[offset : offset + inner]):
        index = offset + row
        chosen = index == app.selected and not placeholder
        text = line
        if marked:
            text = f">> {line}" if chosen else f"   {line}"
        attr = highlight if chosen else (curses.A_DIM if placeholder else 0)
        _put(win, row + 1, 1, text, max_x - 2, attr)


def _draw(stdscr, app: App, highlight: int) -> None:
    stdscr.erase()
    max_y, max_x = stdscr.getmaxyx()
    has_preview = app.preview_content is not None
    try:
        mode_name = app.backend.current_mode()
    except Exception:
        mode_name = "unknown"
    try:
        agent = app.backend.agent_id()
    except Exception:
        agent = ""

    fixed = STATUS_HEIGHT + SHORT_HEIGHT + HELP_HEIGHT
    fixed += FRAME_HEIGHT if app.platypus_enabled else 0
    fixed += PREVIEW_HEIGHT if has_preview else 0
    list_height = max(1, max_y - fixed)

    top = 0
    status = render.status_text(
        app.state.nav_state,
        render.VERSION,
        mode_name,
        app.current_area,
        len(app.state.topics),
        app.platypus_enabled,
        has_preview,
    )
    _box(stdscr, top, STATUS_HEIGHT, "", [status])
    top += STATUS_HEIGHT

    if app.platypus_enabled:
        art = platypus_frame(app.platypus_state, app.animation_step).strip().splitlines()
        for row, line in enumerate(art[:FRAME_HEIGHT]):
            if top + row < max_y:
                _put(stdscr, top + row, 0, line, max_x - 1)
        top += FRAME_HEIGHT

    if has_preview:
        _box(stdscr, top, PREVIEW_HEIGHT, "Preview", app.preview_content.splitlines())
        top += PREVIEW_HEIGHT

    _list_box(stdscr, top, list_height, app, agent, highlight)
    top += list_height

    if app.selected_short is not None:
        _box(stdscr, top, SHORT_HEIGHT, "Short Description", [app.selected_short])
    top += SHORT_HEIGHT

    help_row = render.help_text(
        app.state.nav_state,
        app.current_area,
        app.message,
        app.input_mode,
        app.input_prompt,
        app.input_buffer,
    )
    _box(stdscr, top, HELP_HEIGHT, "", [help_row])


def _loop(stdscr, app: App) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    highlight = curses.A_BOLD
    if curses.has_colors():
        try:
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_YELLOW, -1)
            highlight |= curses.color_pair(1)
        except curses.error:
            pass
    stdscr.timeout(POLL_MILLISECONDS)
    app.selected = 0

    while not app.should_exit:
        app.tick(time.monotonic())
        if app.needs_full_redraw:
            stdscr.clear()
            app.needs_full_redraw = False
        _draw(stdscr, app, highlight)
        stdscr.refresh()
        try:
            key = stdscr.get_wch()
        except curses.error:
            continue
        name = _key_name(key)
        if name is not None:
            app.handle_key(name)


def run(app: App) -> None:
    """Drive ``app`` on the terminal until the user quits."""
    curses.wrapper(_loop, app)


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive spec browser."""
    parser = argparse.ArgumentParser(prog="unispec", description="Browse spec areas and topics.")
    parser.add_argument(
        "--spec-dir",
        default="specs",
        help="directory that holds the areas (default: %(default)s)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {render.VERSION}")
    args = parser.parse_args(argv)

    spec_dir = Path(args.spec_dir)
    backend = _FileBackend(spec_dir, _config_path(os.environ), os.environ)
    app = App(
        AppState(spec_dir, ModeConfig()),
        backend,
        platypus_enabled=backend.paddy_enabled(),
    )
    run(app)
    return 0


if __name__ == "__main__":
    sys.exit(main())