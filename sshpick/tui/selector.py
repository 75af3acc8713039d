"""
State machine behind the host selector.

The selector holds four text fields (target, jump host, extra ssh options,
remote command) and a table showing the catalog filtered by the target or
jump host field. Every key press the driver receives is translated into one
of the event classes below and fed to :func:`update`, which returns a new
:class:`SelectorState`. Nothing here touches the terminal, so the whole
interaction can be replayed in tests.

Picking a row is a two step affair for hosts from the ssh config: the first
pick writes the alias, a second pick on the same row expands the alias to
``user@[hostname]:port`` (and, in the target field, copies its ProxyJump
into the jump host field). Hosts from other sources are written expanded
straight away.
"""

from __future__ import annotations

import enum
import shlex
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Optional, Tuple

from sshpick.catalog import Catalog
from sshpick.models import HostRecord, HostSource
from sshpick.search_utils import filter_records
from sshpick.tui.command_builder import compose_target


class FieldKind(enum.IntEnum):
    TARGET = 0
    JUMP_HOST = 1
    OPTIONS = 2
    COMMAND = 3

    @property
    def label(self) -> str:
        return _FIELD_LABELS[self]

    @property
    def filters_view(self) -> bool:
        return self in (FieldKind.TARGET, FieldKind.JUMP_HOST)


_FIELD_LABELS = {
    FieldKind.TARGET: "Host",
    FieldKind.JUMP_HOST: "Jump host",
    FieldKind.OPTIONS: "SSH options",
    FieldKind.COMMAND: "Remote command",
}

FIELD_COUNT = len(FieldKind)


class Outcome(enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# ----------------------------------------------------------------------- events
@dataclass(frozen=True)
class FocusNext:
    pass


@dataclass(frozen=True)
class FocusPrevious:
    pass


@dataclass(frozen=True)
class InsertText:
    text: str


@dataclass(frozen=True)
class DeleteBackward:
    pass


@dataclass(frozen=True)
class DeleteForward:
    pass


@dataclass(frozen=True)
class MoveCursor:
    offset: int


@dataclass(frozen=True)
class CursorHome:
    pass


@dataclass(frozen=True)
class CursorEnd:
    pass


@dataclass(frozen=True)
class ClearField:
    pass


@dataclass(frozen=True)
class MoveRow:
    offset: int


@dataclass(frozen=True)
class FirstRow:
    pass


@dataclass(frozen=True)
class LastRow:
    pass


@dataclass(frozen=True)
class PickRow:
    pass


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


FIELD_EDITS = (InsertText, DeleteBackward, DeleteForward, MoveCursor, CursorHome, CursorEnd, ClearField)
ROW_MOVES = (MoveRow, FirstRow, LastRow)


# ------------------------------------------------------------------------ state
@dataclass(frozen=True)
class SelectionField:
    kind: FieldKind
    value: str = ""
    cursor: int = 0
    focused: bool = False


@dataclass(frozen=True)
class SelectionResult:
    """What the user confirmed; handed to the ssh command builder."""

    target: str
    proxy_jump: str = ""
    extra_options: Tuple[str, ...] = ()
    remote_command: Tuple[str, ...] = ()


# Share of the table width for alias, host, user, port, jump host, source.
COLUMN_SHARES = (0.24, 0.26, 0.12, 0.07, 0.17, 0.14)
MIN_COLUMN_WIDTH = 4
FIELD_LABEL_WIDTH = 16
# Rows taken by header, four fields, status line and footer.
CHROME_HEIGHT = 9


@dataclass(frozen=True)
class Layout:
    width: int = 80
    height: int = 24
    field_width: int = 80 - FIELD_LABEL_WIDTH
    column_widths: Tuple[int, ...] = ()
    page_size: int = 24 - CHROME_HEIGHT

    @classmethod
    def for_size(cls, width: int, height: int) -> "Layout":
        width = max(int(width), 1)
        height = max(int(height), 1)
        # DataTable pads every cell by one column on each side.
        usable = max(width - 2 * len(COLUMN_SHARES) - 2, MIN_COLUMN_WIDTH * len(COLUMN_SHARES))
        columns = tuple(max(MIN_COLUMN_WIDTH, int(usable * share)) for share in COLUMN_SHARES)
        return cls(
            width=width,
            height=height,
            field_width=max(width - FIELD_LABEL_WIDTH - 4, 1),
            column_widths=columns,
            page_size=max(height - CHROME_HEIGHT, 1),
        )


@dataclass(frozen=True)
class SelectorState:
    catalog: Catalog
    fields: Tuple[SelectionField, ...]
    focus_index: int = 0
    filter_text: str = ""
    row_index: int = 0
    layout: Layout = field(default_factory=Layout)
    outcome: Optional[Outcome] = None
    result: Optional[SelectionResult] = None

    @cached_property
    def filtered_view(self) -> Tuple[HostRecord, ...]:
        return filter_records(self.catalog, self.filter_text)

    @property
    def focused_field(self) -> SelectionField:
        return self.fields[self.focus_index]

    @property
    def quitting(self) -> bool:
        return self.outcome is not None

    @property
    def highlighted(self) -> Optional[HostRecord]:
        view = self.filtered_view
        if not view:
            return None
        return view[min(self.row_index, len(view) - 1)]

    def value_of(self, kind: FieldKind) -> str:
        return self.fields[kind].value


def initial_state(
    catalog: Catalog,
    *,
    target: str = "",
    proxy_jump: str = "",
    options: str = "",
    command: str = "",
    size: Tuple[int, int] = (80, 24),
) -> SelectorState:
    """Return the state the selector starts in: focus on the target field, full catalog shown."""
    values = {
        FieldKind.TARGET: target or "",
        FieldKind.JUMP_HOST: proxy_jump or "",
        FieldKind.OPTIONS: options or "",
        FieldKind.COMMAND: command or "",
    }
    fields = tuple(
        SelectionField(kind=kind, value=values[kind], cursor=len(values[kind]), focused=kind == FieldKind.TARGET)
        for kind in FieldKind
    )
    return SelectorState(catalog=catalog, fields=fields, layout=Layout.for_size(*size))


# -------------------------------------------------------------- field updates
def update_field(current: SelectionField, event) -> SelectionField:
    """Apply a text editing event to one field."""
    value, cursor = current.value, min(current.cursor, len(current.value))

    if isinstance(event, InsertText):
        text = event.text.replace("\n", " ").replace("\r", "")
        value = value[:cursor] + text + value[cursor:]
        cursor += len(text)
    elif isinstance(event, DeleteBackward):
        if cursor > 0:
            value = value[:cursor - 1] + value[cursor:]
            cursor -= 1
    elif isinstance(event, DeleteForward):
        value = value[:cursor] + value[cursor + 1:]
    elif isinstance(event, MoveCursor):
        cursor = max(0, min(len(value), cursor + event.offset))
    elif isinstance(event, CursorHome):
        cursor = 0
    elif isinstance(event, CursorEnd):
        cursor = len(value)
    elif isinstance(event, ClearField):
        value, cursor = "", 0

    return replace(current, value=value, cursor=cursor)


def update_table(state: SelectorState, event) -> int:
    """Return the view cursor after a row movement event."""
    count = len(state.filtered_view)
    if count == 0:
        return 0
    if isinstance(event, FirstRow):
        return 0
    if isinstance(event, LastRow):
        return count - 1
    return max(0, min(count - 1, state.row_index + event.offset))


def expand_record(record: HostRecord, current_value: str) -> str:
    """Return the field value a pick of *record* produces.

    A config file alias expands only when it is already in the field; every
    other source is written as a full target.
    """
    composed = compose_target(record.user, record.resolved_hostname, record.port)
    if record.source is HostSource.CONFIG_FILE:
        return composed if current_value == record.alias else record.alias
    return composed


# ----------------------------------------------------------------- transitions
def _with_field(state: SelectorState, index: int, new_field: SelectionField) -> SelectorState:
    fields = list(state.fields)
    fields[index] = new_field
    return replace(state, fields=tuple(fields))


def _refilter(state: SelectorState, text: str, *, keep: Optional[HostRecord] = None) -> SelectorState:
    if text == state.filter_text and keep is None:
        return state
    new_state = replace(state, filter_text=text, row_index=0)
    if keep is not None:
        view = new_state.filtered_view
        if keep in view:
            new_state = replace(new_state, row_index=view.index(keep))
    return new_state


def _move_focus(state: SelectorState, step: int) -> SelectorState:
    index = (state.focus_index + step) % FIELD_COUNT
    fields = tuple(replace(f, focused=i == index) for i, f in enumerate(state.fields))
    new_state = replace(state, fields=fields, focus_index=index)
    if fields[index].kind.filters_view:
        new_state = _refilter(new_state, fields[index].value)
    return new_state


def _pick_row(state: SelectorState) -> SelectorState:
    current = state.focused_field
    record = state.highlighted
    if not current.kind.filters_view or record is None:
        return state

    expanded = record.source is HostSource.CONFIG_FILE and current.value == record.alias
    value = expand_record(record, current.value)
    new_state = _with_field(state, state.focus_index, replace(current, value=value, cursor=len(value)))

    if expanded and current.kind == FieldKind.TARGET and record.proxy_jump:
        jump = new_state.fields[FieldKind.JUMP_HOST]
        new_state = _with_field(
            new_state,
            FieldKind.JUMP_HOST,
            replace(jump, value=record.proxy_jump, cursor=len(record.proxy_jump)),
        )

    return _refilter(new_state, value, keep=record)


def split_words(value: str) -> Tuple[str, ...]:
    """Tokenize a field the way a shell would, honouring quotes.

    Text with an unterminated quote is split on whitespace instead.
    """
    try:
        return tuple(shlex.split(value))
    except ValueError:
        return tuple(value.split())


def _confirm(state: SelectorState) -> SelectorState:
    result = SelectionResult(
        target=state.value_of(FieldKind.TARGET).strip(),
        proxy_jump=state.value_of(FieldKind.JUMP_HOST).strip(),
        extra_options=split_words(state.value_of(FieldKind.OPTIONS)),
        remote_command=split_words(state.value_of(FieldKind.COMMAND)),
    )
    return replace(state, outcome=Outcome.CONFIRMED, result=result)


def update(state: SelectorState, event) -> SelectorState:
    """Return the state that follows *state* after *event*.

    Events arriving after the selector was confirmed or cancelled are
    ignored.
    """
    if state.quitting:
        return state

    if isinstance(event, FocusNext):
        return _move_focus(state, 1)
    if isinstance(event, FocusPrevious):
        return _move_focus(state, -1)
    if isinstance(event, FIELD_EDITS):
        edited = update_field(state.focused_field, event)
        new_state = _with_field(state, state.focus_index, edited)
        if edited.kind.filters_view:
            new_state = _refilter(new_state, edited.value)
        return new_state
    if isinstance(event, ROW_MOVES):
        return replace(state, row_index=update_table(state, event))
    if isinstance(event, PickRow):
        return _pick_row(state)
    if isinstance(event, Confirm):
        return _confirm(state)
    if isinstance(event, Cancel):
        return replace(state, outcome=Outcome.CANCELLED, result=None)
    if isinstance(event, Resize):
        return replace(state, layout=Layout.for_size(event.width, event.height))

    raise TypeError(f"Unknown selector event: {event!r}")


__all__ = [
    "Cancel",
    "ClearField",
    "Confirm",
    "CursorEnd",
    "CursorHome",
    "DeleteBackward",
    "DeleteForward",
    "FieldKind",
    "FirstRow",
    "FocusNext",
    "FocusPrevious",
    "InsertText",
    "LastRow",
    "Layout",
    "MoveCursor",
    "MoveRow",
    "Outcome",
    "PickRow",
    "Resize",
    "SelectionField",
    "SelectionResult",
    "SelectorState",
    "expand_record",
    "initial_state",
    "split_words",
    "update",
    "update_field",
    "update_table",
]
