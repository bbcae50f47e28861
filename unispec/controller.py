"""Key handling, prompts and timers of the spec browser, kept apart from the terminal."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from .platypus import PlatypusState
from .state import (
    AppState,
    AreaSelection,
    FindResults,
    NavState,
    NestedSpecs,
    TopicList,
    TopicNode,
    extract_short_from_file,
)

ENTER = "enter"
ESC = "esc"
BACKSPACE = "backspace"
UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"

MESSAGE_SECONDS = 3.0
REFRESH_SECONDS = 0.5

PROMPT_CREATE = "Create (t)opic or (s)pec?"
PROMPT_TOPIC_NAME = "Name for new topic?"
PROMPT_SPEC_NAME = "Name for new spec?"
PROMPT_SHORT = "Short one-line description?"
PROMPT_IMPACT = "Impact (critical/high/medium/low)?"
PROMPT_TYPE = "Type (feature/bugfix/refactor/docs/security)?"
PROMPT_AREA_NAME = "Name for new area?"
PROMPT_TARGET = "Target Area?"
PROMPT_REMOVE_AREA = "Confirm remove area? (y/N)"
PROMPT_REMOVE_ITEM = "Confirm remove item? (y/N)"

IMPACTS = ("critical", "high", "medium", "low")
CHANGE_TYPES = ("feature", "bugfix", "refactor", "documentation", "docs", "security")

NOT_ALLOWED_AREA = "Action not allowed: Select a topic first"
NOT_ALLOWED_LINKS = "Action not allowed in links view"


class Backend(Protocol):
    """Operations on the spec tree that the browser delegates; failures raise."""

    def current_mode(self) -> str:
        """Name of the active mode."""

    def agent_id(self) -> str:
        """Identifier of the agent running the browser."""

    def new_topic(self, path: str, area: str, short: str | None) -> str:
        """Create a topic at ``path`` inside ``area``; return a report."""

    def add_area(self, name: str) -> None:
        """Create an area."""

    def remove_area(self, name: str) -> str:
        """Remove an area; return a report."""

    def push_topic(self, topic: str, target: str, source_area: str | None) -> str:
        """Move a topic to another area; return a report."""

    def pull_topic(self, topic: str, area: str) -> str:
        """Check a topic out of ``area``; return a report."""

    def delete_topic(self, topic: str, area: str, force: bool) -> str:
        """Delete a topic; return a report."""

    def find_links(self, topic: str) -> list[str]:
        """Paths of the files linked to a topic."""

    def add_link(self, topic: str, area: str, path: str) -> None:
        """Link a file to a topic."""

    def remove_link(self, topic: str, path: str) -> None:
        """Unlink a file from a topic."""

    def queue_add(self, topic: str, area: str) -> str:
        """Append a topic to an area's queue; return the queue file name."""

    def set_paddy_enabled(self, enabled: bool) -> None:
        """Persist whether the mascot is shown."""

    def open_file(self, path: str) -> None:
        """Show a file or directory to the user."""


class App:
    """Everything the browser remembers between key presses."""

    def __init__(
        self,
        state: AppState,
        backend: Backend,
        *,
        clock: Callable[[], float] = time.monotonic,
        platypus_enabled: bool = True,
    ) -> None:
        self.state = state
        self.backend = backend
        self._clock = clock
        self.should_exit = False
        self.last_refresh = clock()
        self.frame = 0
        self.selected = 0
        self.history: list[tuple[NavState, list[TopicNode]]] = []
        self.current_area: str | None = None
        self.message: str | None = None
        self.message_since: float | None = None
        self.input_mode = False
        self.input_buffer = ""
        self.input_prompt = ""
        self.pending_args: list[str] = []
        self.pending_topic_name: str | None = None
        self.pending_short: str | None = None
        self.pending_impact: str | None = None
        self.pending_change_type: str | None = None
        self.find_paths: list[str] = []
        self.saved_topics: list[TopicNode] = []
        self.saved_nav_state: NavState | None = None
        self.pending_link_path: str | None = None
        self.pending_link_topic: str | None = None
        self.platypus_state = PlatypusState.IDLE
        self.animation_step = 0
        self.expression_until: float | None = None
        self.platypus_enabled = platypus_enabled
        self.preview_content: str | None = None
        self.preview_topic: str | None = None
        self.selected_short: str | None = None
        self.needs_full_redraw = False

    # ------------------------------------------------------------------ helpers

    def _say(self, message: str, timed: bool = True) -> None:
        self.message = message
        if timed:
            self.message_since = self._clock()

    def _trigger(self, state: PlatypusState, seconds: float) -> None:
        self.platypus_state = state
        self.animation_step = 0
        self.expression_until = self._clock() + seconds

    def _areas(self) -> list[str]:
        try:
            return self.state.load_areas()
        except OSError:
            return []

    def _selected_topic(self) -> TopicNode | None:
        topics = self.state.topics
        return topics[self.selected] if 0 <= self.selected < len(topics) else None

    def _relative(self, topic: TopicNode) -> str:
        return topic.relative_path(self.state.spec_dir)

    def _end_input(self) -> None:
        self.input_mode = False
        self.pending_args.clear()

    def _ask(self, prompt: str) -> None:
        self.input_mode = True
        self.input_prompt = prompt

    def _list_length(self) -> int:
        nav = self.state.nav_state
        if isinstance(nav, AreaSelection):
            return len(self._areas())
        if isinstance(nav, FindResults):
            return len(self.find_paths)
        return len(self.state.topics)

    def _show_links(self, topic: str, paths: list[str]) -> None:
        self.find_paths = list(paths)
        self.state.nav_state = FindResults(topic=topic, paths=tuple(paths))
        self.selected = 0

    def _restore_from_links(self) -> None:
        saved = self.saved_nav_state
        self.saved_nav_state = None
        self.state.nav_state = saved if saved is not None else AreaSelection()
        self.state.topics = list(self.saved_topics)

    # ------------------------------------------------------------------ timers

    def tick(self, now: float) -> None:
        """Advance timers: expire messages, refresh the view and animate the mascot."""
        if self.message_since is not None and now - self.message_since >= MESSAGE_SECONDS:
            self.message = None
            self.message_since = None

        if now - self.last_refresh >= REFRESH_SECONDS:
            self.frame += 1
            if isinstance(self.state.nav_state, TopicList):
                self.state.update_status()
                topic = self._selected_topic()
                if self.expression_until is None and topic is not None:
                    if topic.tasks_in_progress > 0:
                        self.platypus_state = PlatypusState.WORKING
                    elif topic.tasks_total > 0 and topic.tasks_completed == topic.tasks_total:
                        self.platypus_state = PlatypusState.CELEBRATING
                    else:
                        self.platypus_state = PlatypusState.IDLE
            self.last_refresh = now

        if self.expression_until is not None:
            if now >= self.expression_until:
                self.platypus_state = PlatypusState.IDLE
                self.expression_until = None
                self.animation_step = 0
            elif self.frame % 2 == 0:
                self.animation_step += 1

    # ------------------------------------------------------------------ selection

    def update_selected_short(self) -> None:
        """Refresh the short description of the highlighted entry."""
        self.selected_short = None
        nav = self.state.nav_state
        if isinstance(nav, AreaSelection):
            areas = self._areas()
            if 0 <= self.selected < len(areas):
                area_file = self.state.spec_dir / areas[self.selected] / "area.md"
                if area_file.is_file():
                    self.selected_short = extract_short_from_file(area_file)
        elif isinstance(nav, (TopicList, NestedSpecs)):
            topic = self._selected_topic()
            if topic is not None:
                self.selected_short = topic.short

    def queue_selected_topic(self) -> None:
        """Add the highlighted topic to the current area's queue."""
        topic = self._selected_topic()
        if topic is None:
            self._say("No topic highlighted to queue.")
            return
        if self.current_area is None:
            self._say("Not inside an area; nothing to queue.")
            return
        area = self.current_area
        try:
            queue_file = self.backend.queue_add(topic.topic, area)
        except Exception as exc:
            self._say(f"❌ Queue add failed: {exc}")
            self._trigger(PlatypusState.SAD, 2)
            return
        self._say(f"✅ Added '{topic.topic}' to {area}/{queue_file}")
        self._trigger(PlatypusState.HAPPY, 2)

    def _open(self, path: str | Path) -> None:
        target = Path(path)
        if not target.is_absolute():
            target = Path.cwd() / target
        try:
            self.backend.open_file(str(target))
        except Exception as exc:
            self._say(str(exc))
        self.needs_full_redraw = True

    # ------------------------------------------------------------------ keys

    def handle_key(self, key: str) -> None:
        """React to one key: a single character or one of the named keys."""
        if self.input_mode:
            self._input_key(key)
            return

        nav = self.state.nav_state
        if key == ENTER:
            self._enter(nav)
        elif key in ("q", "Q"):
            if isinstance(nav, TopicList):
                self.queue_selected_topic()
            else:
                self.should_exit = True
        elif key == DOWN:
            if self.selected < max(self._list_length() - 1, 0):
                self.selected += 1
                self.update_selected_short()
        elif key == UP:
            if self.selected > 0:
                self.selected -= 1
                self.update_selected_short()
        elif key == LEFT:
            self._left(nav)
        elif key == RIGHT:
            self._right(nav)
        elif key == "n":
            if isinstance(nav, AreaSelection):
                self._ask(PROMPT_AREA_NAME)
            elif isinstance(nav, FindResults):
                self._ask(f"Path to add to {nav.topic}?")
            else:
                self._ask(PROMPT_CREATE)
        elif key == "r":
            self._remove_key(nav)
        elif key == "p":
            self._push_key(nav)
        elif key == "f":
            self._find_key(nav)
        elif key == "\\":
            self._toggle_platypus()

    def _enter(self, nav: NavState) -> None:
        if isinstance(nav, FindResults):
            if 0 <= self.selected < len(self.find_paths):
                self._open(self.find_paths[self.selected])
        elif isinstance(nav, AreaSelection):
            areas = self._areas()
            if 0 <= self.selected < len(areas):
                self._open(self.state.spec_dir / areas[self.selected])
        else:
            topic = self._selected_topic()
            if topic is not None:
                self._open(topic.path)

    def _left(self, nav: NavState) -> None:
        if isinstance(nav, FindResults):
            self._restore_from_links()
            self.find_paths.clear()
        elif self.history:
            self.state.nav_state, topics = self.history.pop()
            self.state.topics = topics
        elif isinstance(nav, (TopicList, NestedSpecs)):
            self.state.nav_state = AreaSelection()
            self.state.topics = []
            self.current_area = None
        else:
            return
        self.selected = 0
        self.update_selected_short()

    def _right(self, nav: NavState) -> None:
        if isinstance(nav, AreaSelection):
            areas = self._areas()
            if 0 <= self.selected < len(areas):
                area = areas[self.selected]
                try:
                    self.state.load_topics_for_area(area)
                except OSError:
                    pass
                self.current_area = area
                self.selected = 0
                self.update_selected_short()
        elif isinstance(nav, (TopicList, NestedSpecs)):
            topic = self._selected_topic()
            if topic is not None and topic.status != "spec":
                self.history.append((nav, list(self.state.topics)))
                self.state.nav_state = NestedSpecs(topic.path)
                self.state.topics = list(topic.children)
                self.selected = 0
                self.update_selected_short()

    def _remove_key(self, nav: NavState) -> None:
        if isinstance(nav, AreaSelection):
            self._ask(PROMPT_REMOVE_AREA)
        elif isinstance(nav, FindResults):
            if 0 <= self.selected < len(nav.paths):
                path = nav.paths[self.selected]
                self._ask(f"Remove link '{path}'? (y/N)")
                self.pending_link_path = path
                self.pending_link_topic = nav.topic
        else:
            self._ask(PROMPT_REMOVE_ITEM)

    def _push_key(self, nav: NavState) -> None:
        if isinstance(nav, AreaSelection):
            self._say(NOT_ALLOWED_AREA)
            return
        if isinstance(nav, FindResults):
            self._say(NOT_ALLOWED_LINKS)
            return
        topic = self._selected_topic()
        if topic is None:
            return
        is_build = self.current_area is not None and self.current_area.lower() == "build"
        if is_build:
            try:
                message = self.backend.pull_topic(self._relative(topic), "Build")
            except Exception as exc:
                self._say(f"Error: {exc}")
                return
            self._say(message, timed=False)
            self._trigger(PlatypusState.WORKING, 2)
            self.state.update_status()
            self.last_refresh = self._clock()
        elif topic.is_checked_out:
            by = topic.checked_out_by or "unknown"
            self._say(f"Cannot push: Topic is checked out by {by}")
        else:
            self._ask(PROMPT_TARGET)

    def _find_key(self, nav: NavState) -> None:
        if isinstance(nav, AreaSelection):
            self._say(NOT_ALLOWED_AREA)
            return
        topic = self._selected_topic()
        if topic is None:
            return
        name = self._relative(topic)
        self._trigger(PlatypusState.SEARCHING, 3)
        try:
            paths = self.backend.find_links(name)
        except Exception as exc:
            self._say(f"Error: {exc}")
            return
        self.saved_topics = list(self.state.topics)
        self.saved_nav_state = nav
        self._show_links(name, paths)
        if not paths:
            self._say("No files linked. Press n to add a link.", timed=False)

    def _toggle_platypus(self) -> None:
        self.platypus_enabled = not self.platypus_enabled
        try:
            self.backend.set_paddy_enabled(self.platypus_enabled)
        except Exception as exc:
            self._say(f"Failed to save: {exc}")
            return
        if self.platypus_enabled:
            self._say("Platypus enabled!")
            self._trigger(PlatypusState.HAPPY, 2)
        else:
            self._say("Platypus disabled.")
            self._trigger(PlatypusState.SAD, 2)

    # ------------------------------------------------------------------ prompts

    def _input_key(self, key: str) -> None:
        if key == ENTER:
            self._submit()
        elif key == BACKSPACE:
            self.input_buffer = self.input_buffer[:-1]
        elif key == ESC:
            self.input_mode = False
            self.input_buffer = ""
            self.pending_args.clear()
        elif len(key) == 1:
            self.input_buffer += key

    def _submit(self) -> None:
        answer = self.input_buffer
        self.pending_args.append(answer)
        self.input_buffer = ""
        prompt = self.input_prompt

        if prompt == PROMPT_CREATE:
            choice = answer.lower()
            if choice == "t":
                self.input_prompt = PROMPT_TOPIC_NAME
            elif choice == "s":
                self.input_prompt = PROMPT_SPEC_NAME
            else:
                self._end_input()
        elif prompt == PROMPT_TOPIC_NAME:
            self._submit_topic_name(answer)
        elif prompt == PROMPT_SHORT:
            self._submit_short(answer)
        elif prompt == PROMPT_IMPACT:
            self._submit_impact(answer)
        elif prompt == PROMPT_TYPE:
            self._submit_type(answer)
        elif prompt == PROMPT_AREA_NAME:
            self._submit_area(answer)
        elif prompt == PROMPT_TARGET:
            self._submit_target(answer)
        elif prompt.startswith("Confirm remove"):
            self._submit_remove(answer, "area" in prompt)
        elif prompt.startswith("Remove link '") and prompt.endswith("'? (y/N)"):
            self._submit_remove_link(answer)
        elif prompt.startswith("Path to add to"):
            self._submit_add_link(answer)

    def _submit_topic_name(self, name: str) -> None:
        if not name:
            self._say("❌ Topic name cannot be empty.", timed=False)
            self._end_input()
        elif "/" in name:
            self._say("❌ Topic name cannot contain '/'. Use '-' instead.", timed=False)
            self._end_input()
        else:
            self.pending_topic_name = name
            self.input_prompt = PROMPT_SHORT
        self.last_refresh = self._clock()

    def _submit_short(self, short: str) -> None:
        if len(short) < 5:
            self._say("❌ Short description must be at least 5 characters.")
            self._end_input()
            self.pending_topic_name = None
            self.pending_short = None
        else:
            self.pending_short = short
            self.input_prompt = PROMPT_IMPACT

    def _submit_impact(self, impact: str) -> None:
        if impact.lower() in IMPACTS:
            self.pending_impact = impact.lower()
            self.input_prompt = PROMPT_TYPE
        else:
            self._say("Invalid impact. Use: critical, high, medium, or low")
            self._end_input()
            self.pending_impact = None

    def _submit_type(self, change_type: str) -> None:
        if change_type.lower() in CHANGE_TYPES:
            self.pending_change_type = change_type.lower()
            if self.current_area is not None:
                self._create_topic(self.current_area)
        else:
            self._say("Invalid type. Use: feature, bugfix, refactor, docs, or security")
        self._end_input()
        self.pending_impact = None
        self.pending_short = None
        self.pending_topic_name = None

    def _create_topic(self, area: str) -> None:
        name = self.pending_topic_name or ""
        full_path = name
        nav = self.state.nav_state
        if isinstance(nav, NestedSpecs):
            try:
                parent = nav.path.relative_to(self.state.spec_dir / area).as_posix()
            except ValueError:
                pass
            else:
                full_path = f"{parent}/{name}"
        try:
            message = self.backend.new_topic(full_path, area, self.pending_short)
        except Exception as exc:
            self._say(f"Error: {exc}", timed=False)
        else:
            self._say(message, timed=False)
            self._trigger(PlatypusState.HAPPY, 2)
        self.state.update_status()
        self.last_refresh = self._clock()

    def _submit_area(self, name: str) -> None:
        try:
            self.backend.add_area(name)
        except Exception as exc:
            self._say(f"Error: {exc}")
        else:
            self._say("Success: Created area")
            self._trigger(PlatypusState.HAPPY, 2)
        self._end_input()

    def _submit_target(self, target: str) -> None:
        topic = self._selected_topic()
        if topic is not None:
            try:
                message = self.backend.push_topic(
                    self._relative(topic), target, self.current_area
                )
            except Exception as exc:
                self._say(f"Error: {exc}")
            else:
                self._say(message)
                self._trigger(PlatypusState.LOVE, 2)
        self.message_since = self._clock()
        self._end_input()

    def _submit_remove(self, answer: str, is_area: bool) -> None:
        if answer.lower() == "y":
            if is_area:
                self._remove_area()
            else:
                self._remove_topic()
        self.message_since = self._clock()
        self._end_input()

    def _remove_area(self) -> None:
        area = self.current_area
        if area is None:
            areas = self._areas()
            area = areas[self.selected] if 0 <= self.selected < len(areas) else ""
        if not area:
            return
        try:
            message = self.backend.remove_area(area)
        except Exception as exc:
            self._say(f"Error: {exc}")
            return
        self._say(message)
        self._trigger(PlatypusState.SAD, 2)
        self.state.nav_state = AreaSelection()
        self.current_area = None
        self.state.topics.clear()
        self.selected = 0

    def _remove_topic(self) -> None:
        topic = self._selected_topic()
        if topic is None:
            return
        area = self.current_area or "Working"
        try:
            relative = topic.path.relative_to(self.state.spec_dir / area).as_posix()
        except ValueError:
            relative = topic.path.as_posix()
        try:
            message = self.backend.delete_topic(relative, area, True)
        except Exception as exc:
            self._say(f"Error: {exc}")
            return
        self._say(message)
        self._trigger(PlatypusState.SAD, 2)
        self.state.update_status()

    def _submit_remove_link(self, answer: str) -> None:
        path = self.pending_link_path or ""
        topic = self.pending_link_topic or ""
        if answer.lower() == "y" and path and topic:
            try:
                self.backend.remove_link(topic, path)
            except Exception as exc:
                self._say(f"Error: {exc}")
            else:
                remaining = [p for p in self.find_paths if p != path]
                if remaining:
                    self._show_links(topic, remaining)
                    self._say(f"Removed: {path}")
                else:
                    self.find_paths = []
                    self._restore_from_links()
                    self._say("All links removed, returned to topics")
                self.selected = 0
                self._trigger(PlatypusState.SAD, 2)
        self._end_input()
        self.pending_link_path = None
        self.pending_link_topic = None

    def _submit_add_link(self, path: str) -> None:
        nav = self.state.nav_state
        if isinstance(nav, FindResults):
            topic_name = nav.topic
        else:
            topic = self._selected_topic()
            topic_name = self._relative(topic) if topic is not None else ""
        if topic_name:
            area = self.current_area or "Working"
            try:
                self.backend.add_link(topic_name, area, path)
            except Exception as exc:
                self._say(f"Error: {exc}")
            else:
                self._say(f"Linked: {path}")
                self._trigger(PlatypusState.HAPPY, 2)
                try:
                    paths = self.backend.find_links(topic_name)
                except Exception:
                    pass
                else:
                    self._show_links(topic_name, paths)
        self._end_input()