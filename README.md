# unispec

A curses browser for a spec-driven development workspace. Work is organised
into **areas** (for example Roadmap, Working, Build). An area is a directory
holding an `area.md`; its **topics** are subdirectories holding a `topic.md`,
alongside `<name>_spec.md` and `<name>_task.md` files. Task files use Markdown
checklists: `- [ ]` is pending, `- [-]` is in progress and `- [x]` (or `- [X]`)
is done.

The browser uses the standard-library `curses` module, so it needs a platform
where that is available (Linux, macOS and other POSIX systems).

## Installation

```
pip install .
```

## Usage

```
unispec [--spec-dir DIR]
unispec --version
```

`--spec-dir` names the directory that holds the areas; it defaults to
`specs` in the current directory.

### Keys

| Key        | Action                                                          |
|------------|-----------------------------------------------------------------|
| Up / Down  | Move the selection                                              |
| Right      | Enter an area, or step into a topic's nested topics and specs   |
| Left       | Go back                                                         |
| Enter      | Open the selected file or directory in `$EDITOR`, else nano, else vi; with none of them the file is printed and Enter returns |
| n          | New area, new topic, or new link, depending on the view         |
| r          | Remove the selected area, topic or link (asks `y/N`)            |
| p          | Push a topic to another area; in the Build area, pull it to Working |
| f          | Show the files linked to the selected topic                     |
| q          | In a topic list, add the topic to the area's queue; elsewhere, quit |
| \\         | Show or hide the platypus companion                             |
| Esc        | Cancel the prompt being typed                                   |

Creating a topic asks for a name (no `/`), a short description of at least
five characters, an impact (`critical`, `high`, `medium`, `low`) and a type
(`feature`, `bugfix`, `refactor`, `documentation`, `docs`, `security`). The
topic is created as a directory with a `topic.md` whose frontmatter holds the
short description.

### What the screen shows

Each topic row in a Working or other area shows a 20-cell progress bar built
from the task checklists of the topic and everything below it, a status icon,
the task count, and who has the topic checked out (from the `checked_out`
field of a spec's frontmatter). Roadmap areas show the change type and an
`[IMPACT]` badge, Build areas show the `completed` (or `modified`) date, and
Specing areas mark topics whose status is `ready` or that have completed tasks.
In the area list, a spinner marks areas where a topic's `tasks.md` has a task
in progress.

### Files it keeps

- `<spec-dir>/index.json` — links between topics and files, used by `f`.
- `<area>/queue.md` — one `- <topic>` line per queued topic, used by `q`.
- `$XDG_CONFIG_HOME/unispec/config.json` (or `~/.config/unispec/config.json`)
  — `paddy_enabled` for the companion and `mode`, the mode name shown in the
  status row (default `simple`).

The agent name used for "checked out (you)" comes from `UNISPEC_AGENT`, or
the login name.

## Using it as a library

- `unispec.state` reads the workspace: `AppState(spec_dir, mode)` with
  `load_areas`, `load_topics_for_area`, `count_topics_in_area`,
  `has_work_in_area` and `update_status`; `ModeConfig` for area order, area
  file name and per-area topic order; and the helpers `count_tasks`,
  `parse_spec_metadata`, `extract_short_from_file` and `area_display_type`.
- `unispec.render` builds the text of each line: `topic_line`, `area_line`,
  `status_text`, `help_text` and `chunk_indices`.
- `unispec.controller.App` handles key presses (`handle_key` with a single
  character or `"enter"`, `"esc"`, `"backspace"`, `"up"`, `"down"`, `"left"`,
  `"right"`) and timers (`tick`) without a terminal, doing its work through
  an object that follows the `Backend` protocol.
- `unispec.platypus.platypus_frame(state, step)` returns the companion's
  drawing for a `PlatypusState`.
- `unispec.terminal` has `run(app)`, `main(argv)`, `open_file`,
  `choose_editor` and `binary_on_path`.

## What it does not do

- It is only the interactive browser: there are no subcommands for creating,
  moving or listing topics from the shell.
- Choosing `s` (spec) at the "Create (t)opic or (s)pec?" prompt asks for a
  name but creates nothing; spec and task files are written by hand.
- Modes are not loaded from disk. The command starts with an empty
  `ModeConfig`, so areas and topics are listed alphabetically and no area
  templates are installed.
- The view refreshes every half second by rereading the files; it does not
  watch the file system.

## Running the tests

```
pip install .[test]
pytest
```