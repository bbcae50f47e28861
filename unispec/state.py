"""Browser state: areas, topics and their specs and tasks as found on disk."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

SHORT_PLACEHOLDER = "<Add a one-liner description here>"
TOPIC_FILE = "topic.md"
SPEC_SUFFIX = "_spec.md"
TASK_SUFFIX = "_task.md"


class DisplayType(Enum):
    """How the topics of an area are shown."""

    STANDARD = "standard"
    ROADMAP = "roadmap"
    BUILD = "build"
    WORKING = "working"
    SPECING = "specing"


@dataclass
class SpecMetadata:
    """Frontmatter fields of a spec file that the browser cares about."""

    impact: str | None = None
    change_type: str | None = None
    status: str | None = None
    completed: str | None = None
    modified: str | None = None
    checked_out: str | None = None


_METADATA_KEYS = {
    "impact": "impact",
    "change_type": "change_type",
    "type": "change_type",
    "status": "status",
    "completed": "completed",
    "modified": "modified",
    "checked_out": "checked_out",
}


def parse_spec_metadata(content: str) -> SpecMetadata | None:
    """Read the ``---`` delimited frontmatter of a spec; None if it has none."""
    lines = iter(content.splitlines())
    for line in lines:
        if line.strip():
            if line.strip() != "---":
                return None
            break
    else:
        return None

    values: dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if stripped == "---":
            break
        key, sep, value = stripped.partition(":")
        if not sep:
            continue
        attr = _METADATA_KEYS.get(key.strip().lower())
        if attr is None:
            continue
        value = value.strip().strip("\"'").strip()
        if value:
            values[attr] = value
    else:
        return None
    return SpecMetadata(**values)


def area_display_type(area: str) -> DisplayType:
    """Choose the display type of an area from its name."""
    lowered = area.lower()
    if "roadmap" in lowered:
        return DisplayType.ROADMAP
    if "build" in lowered:
        return DisplayType.BUILD
    if "working" in lowered:
        return DisplayType.WORKING
    if "specing" in lowered:
        return DisplayType.SPECING
    return DisplayType.STANDARD


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def extract_short_from_file(path: Path | str) -> str:
    """Return the ``short:`` line of a file, or "" if absent or a placeholder."""
    content = _read(Path(path))
    if content is None:
        return ""
    start = content.find("short:")
    if start < 0:
        return ""
    rest = content[start:]
    newline = rest.find("\n")
    if newline < 0:
        return ""
    short = rest[7:newline].strip()
    if not short or short == SHORT_PLACEHOLDER:
        return ""
    return short


def _tally(content: str) -> tuple[int, int, int]:
    total = completed = in_progress = 0
    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed.startswith("- ["):
            continue
        total += 1
        if trimmed.startswith(("- [x]", "- [X]")):
            completed += 1
        elif trimmed.startswith("- [-]"):
            in_progress += 1
    return total, completed, in_progress


def count_tasks(path: Path | str) -> tuple[int, int, int]:
    """Count (total, completed, in progress) tasks in a task file or a directory's task files."""
    path = Path(path)
    if path.is_file() and path.name.endswith(TASK_SUFFIX):
        content = _read(path)
        return _tally(content) if content is not None else (0, 0, 0)
    if not path.is_dir():
        return 0, 0, 0
    total = completed = in_progress = 0
    for entry in sorted(path.iterdir()):
        if not entry.name.endswith(TASK_SUFFIX):
            continue
        content = _read(entry)
        if content is None:
            continue
        t, c, p = _tally(content)
        total += t
        completed += c
        in_progress += p
    return total, completed, in_progress


@dataclass
class TopicNode:
    """A topic directory, or a spec file inside one, with its task progress."""

    topic: str
    path: Path
    area: str
    area_type: DisplayType = DisplayType.STANDARD
    status: str = "waiting"
    tasks_total: int = 0
    tasks_completed: int = 0
    tasks_in_progress: int = 0
    metadata: SpecMetadata = field(default_factory=SpecMetadata)
    children: list[TopicNode] = field(default_factory=list)
    is_checked_out: bool = False
    checked_out_by: str | None = None
    short: str = ""

    def relative_path(self, spec_dir: Path | str) -> str:
        """Path of the topic inside its area, or its bare name if outside it."""
        try:
            return self.path.relative_to(Path(spec_dir) / self.area).as_posix()
        except ValueError:
            return self.topic


@dataclass(frozen=True)
class AreaSelection:
    """Choosing among areas."""


@dataclass(frozen=True)
class TopicList:
    """Topics at the top of an area."""

    area: str


@dataclass(frozen=True)
class NestedSpecs:
    """Children of a topic directory."""

    path: Path


@dataclass(frozen=True)
class FindResults:
    """Files linked to a topic."""

    topic: str
    paths: tuple[str, ...] = ()


NavState = Union[AreaSelection, TopicList, NestedSpecs, FindResults]


@dataclass
class ModeConfig:
    """Settings of the active mode that shape the browser."""

    area_order: list[str] = field(default_factory=list)
    area_filename: str = "area.md"
    topic_order: dict[str, list[str]] = field(default_factory=dict)


class AppState:
    """Navigation position plus the topics currently shown."""

    def __init__(self, spec_dir: Path | str, mode: ModeConfig | None = None) -> None:
        self.spec_dir = Path(spec_dir)
        self.mode = mode if mode is not None else ModeConfig()
        self.nav_state: NavState = AreaSelection()
        self.topics: list[TopicNode] = []

    def load_areas(self) -> list[str]:
        """Areas present on disk, in mode order when that matches any, else by name."""
        existing: set[str] = set()
        if self.spec_dir.exists():
            for entry in self.spec_dir.iterdir():
                if entry.is_dir() and (entry / self.mode.area_filename).exists():
                    existing.add(entry.name)
        ordered = [area for area in self.mode.area_order if area in existing]
        if ordered:
            return ordered
        return sorted(existing, key=str.lower)

    def count_topics_in_area(self, area: str) -> int:
        """Number of directories inside an area."""
        area_dir = self.spec_dir / area
        if not area_dir.is_dir():
            return 0
        try:
            return sum(1 for entry in area_dir.iterdir() if entry.is_dir())
        except OSError:
            return 0

    def has_work_in_area(self, area: str) -> bool:
        """True when a topic of the area has a task marked in progress."""
        if area.lower() == "build":
            return False
        area_dir = self.spec_dir / area
        if not area_dir.is_dir():
            return False
        for entry in area_dir.iterdir():
            if not entry.is_dir():
                continue
            content = _read(entry / "tasks.md")
            if content is None:
                continue
            if any(
                line.strip().startswith(("- [-]", "* [-]"))
                for line in content.splitlines()
            ):
                return True
        return False

    def load_topics_for_area(self, area: str) -> None:
        """Load an area's topics, sorted, and switch to its topic list."""
        area_type = area_display_type(area)
        area_dir = self.spec_dir / area
        order = self.mode.topic_order.get(area, [])
        topics = [
            self._load_topic(entry, area, area_type)
            for entry in self._topic_dirs(area_dir)
        ]

        def sort_key(node: TopicNode) -> tuple:
            is_spec = node.status == "spec"
            if order:
                rank = order.index(node.topic) if node.topic in order else math.inf
                return (is_spec, rank)
            return (is_spec, node.topic)

        topics.sort(key=sort_key)
        self.topics = topics
        self.nav_state = TopicList(area)
        self._populate_shorts()

    def update_status(self) -> None:
        """Reload the topics of the current view from disk."""
        nav = self.nav_state
        if isinstance(nav, TopicList):
            try:
                self.load_topics_for_area(nav.area)
            except OSError:
                pass
        elif isinstance(nav, NestedSpecs):
            try:
                rel = nav.path.relative_to(self.spec_dir)
            except ValueError:
                return
            area = rel.parts[0] if rel.parts else "Working"
            if nav.path.exists():
                try:
                    self.topics = self._load_nested(nav.path, area)
                except OSError:
                    pass

    @staticmethod
    def _topic_dirs(path: Path) -> list[Path]:
        if not path.is_dir():
            return []
        return [
            entry
            for entry in sorted(path.iterdir())
            if entry.is_dir() and (entry / TOPIC_FILE).exists()
        ]

    def _load_nested(self, path: Path, area: str) -> list[TopicNode]:
        area_type = area_display_type(area)
        return [self._load_topic(entry, area, area_type) for entry in self._topic_dirs(path)]

    def _populate_shorts(self) -> None:
        for topic in self.topics:
            topic.short = extract_short_from_file(topic.path / TOPIC_FILE)
            for child in topic.children:
                source = child.path if child.path.is_file() else child.path / TOPIC_FILE
                child.short = extract_short_from_file(source)

    def _load_topic(self, path: Path, area: str, area_type: DisplayType) -> TopicNode:
        children: list[TopicNode] = []
        if path.exists():
            for entry in sorted(path.iterdir()):
                if entry.is_dir():
                    children.append(self._load_topic(entry, area, area_type))
                elif entry.name.endswith(SPEC_SUFFIX):
                    spec_name = entry.name[: -len(SPEC_SUFFIX)]
                    task_path = entry.parent / f"{spec_name}{TASK_SUFFIX}"
                    total, completed, in_progress = (
                        count_tasks(task_path) if task_path.exists() else (0, 0, 0)
                    )
                    children.append(
                        TopicNode(
                            topic=spec_name,
                            path=entry,
                            area=area,
                            area_type=area_type,
                            status="spec",
                            tasks_total=total,
                            tasks_completed=completed,
                            tasks_in_progress=in_progress,
                            short=extract_short_from_file(entry),
                        )
                    )

        metadata = self._load_metadata(path)
        if area_type in (DisplayType.ROADMAP, DisplayType.BUILD):
            total = completed = in_progress = 0
        else:
            total, completed, in_progress = self._total_tasks(path, children)

        if total > 0 and completed == total:
            status = "complete"
        elif in_progress > 0 or completed > 0:
            status = "in-progress"
        elif metadata.impact is not None or metadata.change_type is not None:
            status = "pending"
        else:
            status = "waiting"

        return TopicNode(
            topic=path.name,
            path=path,
            area=area,
            area_type=area_type,
            status=status,
            tasks_total=total,
            tasks_completed=completed,
            tasks_in_progress=in_progress,
            metadata=metadata,
            children=children,
            is_checked_out=bool(metadata.checked_out),
            checked_out_by=metadata.checked_out,
        )

    @staticmethod
    def _load_metadata(path: Path) -> SpecMetadata:
        if path.is_dir():
            for entry in sorted(path.iterdir()):
                if not entry.name.endswith(SPEC_SUFFIX):
                    continue
                content = _read(entry)
                if content is None:
                    continue
                metadata = parse_spec_metadata(content)
                if metadata is not None:
                    return metadata
        return SpecMetadata()

    def _total_tasks(self, path: Path, children: list[TopicNode]) -> tuple[int, int, int]:
        total, completed, in_progress = count_tasks(path)
        for child in children:
            t, c, p = self._total_tasks(child.path, child.children)
            total += t
            completed += c
            in_progress += p
        return total, completed, in_progress