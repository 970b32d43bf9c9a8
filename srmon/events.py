"""Key decoding and the dashboard's mode state machine.

``decode_key`` turns a raw curses key into an ``InputEvent`` for the current
mode, and ``transition`` decides the next mode. Both are pure; the dashboard
loop applies side effects (view changes, kills, refresh changes) separately.
"""

from __future__ import annotations

import curses
from dataclasses import dataclass
from enum import Enum

CTRL_C = "\x03"
ESC = "\x1b"
BACKSPACES = ("\x7f", "\x08")
ENTERS = ("\n", "\r")


class Mode(Enum):
    RUNNING = "running"
    FILTER_EDITING = "filter"
    HELP_SHOWN = "help"
    QUITTING = "quitting"


class Action(Enum):
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    CYCLE_SORT = "cycle_sort"
    START_FILTER = "start_filter"
    CLEAR_FILTER = "clear_filter"
    ACCEPT_FILTER = "accept_filter"
    FILTER_CHAR = "filter_char"
    FILTER_BACKSPACE = "filter_backspace"
    TOGGLE_COLUMNS = "toggle_columns"
    CHANGE_REFRESH = "change_refresh"
    TOGGLE_TREE = "toggle_tree"
    KILL_PROCESS = "kill_process"
    SHOW_DETAILS = "show_details"
    TOGGLE_HELP = "toggle_help"
    QUIT = "quit"
    RESIZE = "resize"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class InputEvent:
    action: Action
    char: str = ""  # only set for FILTER_CHAR


_RUNNING_CHARS: dict[str, Action] = {
    "k": Action.MOVE_UP,
    "j": Action.MOVE_DOWN,
    "s": Action.CYCLE_SORT,
    "/": Action.START_FILTER,
    ESC: Action.CLEAR_FILTER,
    "c": Action.TOGGLE_COLUMNS,
    "r": Action.CHANGE_REFRESH,
    "t": Action.TOGGLE_TREE,
    "K": Action.KILL_PROCESS,
    "?": Action.TOGGLE_HELP,
    "q": Action.QUIT,
    "\n": Action.SHOW_DETAILS,
    "\r": Action.SHOW_DETAILS,
}

_RUNNING_KEYS: dict[int, Action] = {
    curses.KEY_UP: Action.MOVE_UP,
    curses.KEY_DOWN: Action.MOVE_DOWN,
    curses.KEY_PPAGE: Action.PAGE_UP,
    curses.KEY_NPAGE: Action.PAGE_DOWN,
    curses.KEY_HOME: Action.HOME,
    curses.KEY_END: Action.END,
    curses.KEY_ENTER: Action.SHOW_DETAILS,
}


def decode_key(key: str | int, mode: Mode) -> InputEvent:
    """Map a ``get_wch()`` result to an event, honouring the current mode."""
    if key == CTRL_C:
        return InputEvent(Action.QUIT)
    if key == curses.KEY_RESIZE:
        return InputEvent(Action.RESIZE)

    if mode is Mode.FILTER_EDITING:
        if key == ESC:
            return InputEvent(Action.CLEAR_FILTER)
        if key in ENTERS or key == curses.KEY_ENTER:
            return InputEvent(Action.ACCEPT_FILTER)
        if key in BACKSPACES or key == curses.KEY_BACKSPACE:
            return InputEvent(Action.FILTER_BACKSPACE)
        if isinstance(key, str) and key.isprintable():
            return InputEvent(Action.FILTER_CHAR, key)
        return InputEvent(Action.UNKNOWN)

    if mode is Mode.HELP_SHOWN:
        if key in ("?", ESC):
            return InputEvent(Action.TOGGLE_HELP)
        if key == "q":
            return InputEvent(Action.QUIT)
        return InputEvent(Action.UNKNOWN)

    if isinstance(key, str):
        return InputEvent(_RUNNING_CHARS.get(key, Action.UNKNOWN))
    return InputEvent(_RUNNING_KEYS.get(key, Action.UNKNOWN))


def transition(mode: Mode, event: InputEvent) -> Mode:
    """Next mode after ``event``; QUITTING is terminal."""
    if mode is Mode.QUITTING:
        return mode
    if event.action is Action.QUIT:
        return Mode.QUITTING
    if mode is Mode.RUNNING:
        if event.action is Action.START_FILTER:
            return Mode.FILTER_EDITING
        if event.action is Action.TOGGLE_HELP:
            return Mode.HELP_SHOWN
    elif mode is Mode.FILTER_EDITING:
        if event.action in (Action.CLEAR_FILTER, Action.ACCEPT_FILTER):
            return Mode.RUNNING
    elif mode is Mode.HELP_SHOWN:
        if event.action is Action.TOGGLE_HELP:
            return Mode.RUNNING
    return mode
