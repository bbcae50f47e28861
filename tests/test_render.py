from pathlib import Path

import pytest

from unispec.render import (
    BAR_WIDTH,
    VERSION,
    area_line,
    chunk_indices,
    help_text,
    status_text,
    topic_line,
)
from unispec.state import (
    AreaSelection,
    DisplayType,
    FindResults,
    NestedSpecs,
    SpecMetadata,
    TopicList,
    TopicNode,
)


def _node(**kwargs):
    defaults = dict(topic="alpha", path=Path("/specs/Working/alpha"), area="Working")
    defaults.update(kwargs)
    return TopicNode(**defaults)


def _bar(line):
    start = line.index("[")
    return line[start : start + BAR_WIDTH + 2]


@pytest.mark.parametrize(
    "platypus, preview, expected",
    [
        (True, True, (3, 4, 5)),
        (True, False, (2, 3, 4)),
        (False, True, (2, 3, 4)),
        (False, False, (1, 2, 3)),
    ],
)
def test_chunk_indices(platypus, preview, expected):
    assert chunk_indices(platypus, preview) == expected


def test_area_line_singular_and_plural():
    assert area_line("Working", 1, False, 0) == ">> Working (1 topic)"
    assert area_line("Working", 3, False, 0).endswith("(3 topics)")


def test_area_line_spinner_cycles():
    frames = [area_line("Roadmap", 2, True, f) for f in range(8)]
    assert frames[0].endswith(" ⠋")
    assert frames[3].endswith(" ⠸")
    assert frames[:4] == frames[4:]
    assert len(set(frames[:4])) == 4


def test_working_line_bar_empty_and_full():
    empty = topic_line(_node(tasks_total=4), 0, "me")
    assert _bar(empty) == "[" + " " * BAR_WIDTH + "]"
    assert "⏳" in empty
    full = topic_line(
        _node(tasks_total=4, tasks_completed=4, status="complete"), 0, "me"
    )
    assert _bar(full) == "[" + "=" * BAR_WIDTH + "]"
    assert "✅" in full
    assert "(4/4) >" in full


def test_working_line_in_progress_animation():
    node = _node(tasks_total=2, tasks_in_progress=1, status="in-progress")
    assert "🚧" in topic_line(node, 0, "me")
    assert " ⠋ " in topic_line(node, 4, "me")
    assert " ⠙ " in topic_line(node, 1, "me")


def test_working_line_truncates_long_names():
    name = "x" * 30
    line = topic_line(_node(topic=name), 0, "me")
    assert line.startswith("x" * 22 + "...")
    short = topic_line(_node(topic="ab"), 0, "me")
    assert short.startswith("ab" + " " * 23 + " ")


def test_spec_line_has_no_arrow_but_shows_progress():
    node = _node(status="spec", tasks_total=3, tasks_completed=1)
    line = topic_line(node, 0, "me")
    assert not line.endswith(" >")
    assert line.endswith(" (1/3)")


def test_checkout_markers():
    mine = _node(is_checked_out=True, checked_out_by="me")
    other = _node(is_checked_out=True, checked_out_by="bob")
    assert " 🔒(you)" in topic_line(mine, 0, "me")
    assert " 🔒(by bob)" in topic_line(other, 0, "me")


def test_build_line():
    node = _node(
        area_type=DisplayType.BUILD,
        metadata=SpecMetadata(modified="2024-01-02"),
        short="does things",
    )
    line = topic_line(node, 0, "me")
    assert line == "✅ alpha │ completed: 2024-01-02 │ does things"
    bare = topic_line(_node(area_type=DisplayType.BUILD), 0, "me")
    assert bare.endswith("completed: ---")


def test_specing_line_ready():
    ready = _node(area_type=DisplayType.SPECING, metadata=SpecMetadata(status="ready"))
    assert topic_line(ready, 0, "me") == "📝 alpha (ready)"
    plain = _node(area_type=DisplayType.SPECING)
    assert topic_line(plain, 0, "me") == "📝 alpha"


def test_roadmap_line_badges():
    both = _node(
        area_type=DisplayType.ROADMAP,
        metadata=SpecMetadata(impact="high", change_type="feature"),
    )
    assert topic_line(both, 0, "me") == "alpha │ feature │ [HIGH]"
    neither = _node(area_type=DisplayType.ROADMAP)
    assert topic_line(neither, 0, "me") == "alpha"


def test_status_text_area_view():
    text = status_text(AreaSelection(), VERSION, "simple", None, 0, True, False)
    assert text.startswith("UniSpec v0.0.8 | Mode: simple")
    assert "Area: None" in text
    assert "Paddy" not in text


def test_status_text_flags_and_find_results():
    nav = FindResults(topic="alpha", paths=("a.py", "b.py"))
    text = status_text(nav, VERSION, "simple", "Working", 5, False, True)
    assert "Topic: alpha" in text
    assert "Links: 2" in text
    assert text.endswith(" | Paddy: OFF | PREVIEW (press Enter to close)")


def test_help_text_input_mode():
    text = help_text(AreaSelection(), None, "ignored", True, "Target Area?", "Bu")
    assert text == "Target Area?: Bu"


def test_help_text_message_wins():
    assert help_text(AreaSelection(), None, "hello", False, "", "") == "hello"


def test_help_text_actions_follow_view():
    topic_view = help_text(TopicList("Build"), "Build", None, False, "", "")
    assert "p: Pull" in topic_view
    assert topic_view.endswith("q: Queue")
    nested = help_text(NestedSpecs(Path("/x")), "Working", None, False, "", "")
    assert "p: Push" in nested
    assert nested.endswith("q: Quit")