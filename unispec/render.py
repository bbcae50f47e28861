"""Text shown by the browser: layout slots, list lines, status and help rows."""

from __future__ import annotations

from .state import DisplayType, FindResults, NavState, TopicList, TopicNode

VERSION = "0.0.8"

BAR_WIDTH = 20
TOPIC_COLUMN = 25
_AREA_SPINNER = ("⠋", "⠙", "⠹", "⠸")


def chunk_indices(platypus_enabled: bool, has_preview: bool) -> tuple[int, int, int]:
    """Slots of the (list, short description, help) panes for the current layout."""
    if platypus_enabled and has_preview:
        return 3, 4, 5
    if platypus_enabled or has_preview:
        return 2, 3, 4
    return 1, 2, 3


def area_line(name: str, topic_count: int, has_work: bool, frame: int) -> str:
    """One row of the area list, with a spinner when work is in progress."""
    count = "1 topic" if topic_count == 1 else f"{topic_count} topics"
    work = f" {_AREA_SPINNER[frame % len(_AREA_SPINNER)]}" if has_work else ""
    return f">> {name} ({count}){work}"


def _short_suffix(topic: TopicNode) -> str:
    return f" │ {topic.short}" if topic.short else ""


def _roadmap_line(topic: TopicNode) -> str:
    impact = topic.metadata.impact or ""
    change_type = topic.metadata.change_type or ""
    impact_badge = f"[{impact.upper()}]"
    short = _short_suffix(topic)
    if not impact and not change_type:
        return f"{topic.topic}{short}"
    if not impact:
        return f"{topic.topic} │ {change_type}{short}"
    if not change_type:
        return f"{topic.topic} │ {impact_badge}{short}"
    return f"{topic.topic} │ {change_type} │ {impact_badge}{short}"


def _build_line(topic: TopicNode, current_agent: str) -> str:
    completed = topic.metadata.completed or topic.metadata.modified or "---"
    checkout = ""
    if topic.is_checked_out and topic.checked_out_by:
        if topic.checked_out_by == current_agent:
            checkout = " │ 🔒 checked out (you)"
        else:
            checkout = f" │ 🔒 checked out by {topic.checked_out_by}"
    return f"✅ {topic.topic} │ completed: {completed}{checkout}{_short_suffix(topic)}"


def _specing_line(topic: TopicNode) -> str:
    ready = topic.metadata.status == "ready" or topic.tasks_completed > 0
    ready_status = " (ready)" if ready else ""
    return f"📝 {topic.topic}{ready_status}{_short_suffix(topic)}"


def _progress_line(topic: TopicNode, frame: int, current_agent: str) -> str:
    total = topic.tasks_total
    done = topic.tasks_completed
    progress = done * 100 // total if total > 0 else 0
    filled = progress * BAR_WIDTH // 100
    bar = f"[{'=' * filled}{' ' * (BAR_WIDTH - filled)}]"

    if topic.status == "complete":
        icon = "✅"
    elif topic.tasks_in_progress > 0:
        icon = "🚧"
    else:
        icon = "⏳"

    if topic.tasks_in_progress > 0:
        animation = "⠋" if frame % 4 < 1 else "⠙"
    else:
        animation = "-"

    is_spec = topic.status == "spec"
    arrow = "" if is_spec else " >"
    progress_str = f" ({done}/{total})" if is_spec and total > 0 else ""

    name = topic.topic
    if len(name) > TOPIC_COLUMN:
        name = f"{name[:22]}..."
    name = name.ljust(TOPIC_COLUMN)

    checkout = ""
    if topic.is_checked_out and topic.checked_out_by:
        if topic.checked_out_by == current_agent:
            checkout = " 🔒(you)"
        else:
            checkout = f" 🔒(by {topic.checked_out_by})"

    return (
        f"{name} {icon} {bar} {animation} ({done}/{total})"
        f"{arrow}{checkout}{progress_str}"
    )


def topic_line(topic: TopicNode, frame: int, current_agent: str) -> str:
    """One row of the topic list, formatted for the topic's area type."""
    if topic.area_type is DisplayType.ROADMAP:
        return _roadmap_line(topic)
    if topic.area_type is DisplayType.BUILD:
        return _build_line(topic, current_agent)
    if topic.area_type is DisplayType.SPECING:
        return _specing_line(topic)
    return _progress_line(topic, frame, current_agent)


def status_text(
    nav_state: NavState,
    version: str,
    mode_name: str,
    area_name: str | None,
    topic_count: int,
    platypus_enabled: bool,
    has_preview: bool,
) -> str:
    """The status row at the top of the screen."""
    platypus_status = "" if platypus_enabled else " | Paddy: OFF"
    preview_status = " | PREVIEW (press Enter to close)" if has_preview else ""
    suffix = f"{platypus_status}{preview_status}"
    if isinstance(nav_state, FindResults):
        return (
            f"UniSpec v{version} | Mode: {mode_name} | Topic: {nav_state.topic}"
            f" | Links: {len(nav_state.paths)}{suffix}"
        )
    area = area_name if area_name is not None else "None"
    return (
        f"UniSpec v{version} | Mode: {mode_name} | Area: {area}"
        f" | Topics: {topic_count}{suffix}"
    )


def help_text(
    nav_state: NavState,
    current_area: str | None,
    message: str | None,
    input_mode: bool,
    input_prompt: str,
    input_buffer: str,
) -> str:
    """The help row: the input prompt, a pending message, or the key summary."""
    if input_mode:
        return f"{input_prompt}: {input_buffer}"
    if message is not None:
        return message
    is_build = current_area is not None and current_area.lower() == "build"
    move_cmd = "Pull" if is_build else "Push"
    q_action = "Queue" if isinstance(nav_state, TopicList) else "Quit"
    return (
        f" 🡙 Move | 🡘  Navigate | ↵ Open | n: New | r: Remove"
        f" | p: {move_cmd} | f: Find | q: {q_action}"
    )