from __future__ import annotations

import argparse
import logging
import shlex
import subprocess
import sys
from typing import List, Optional, Sequence, Tuple

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Static

from sshpick.catalog import Catalog, load_catalog, require_candidates
from sshpick.config import SourcePaths
from sshpick.errors import InvalidTargetError, SshpickError, TerminalUnavailableError
from sshpick.tui.command_builder import build_ssh_command, compose_target
from sshpick.tui.selector import (
    Cancel,
    ClearField,
    Confirm,
    CursorEnd,
    CursorHome,
    DeleteBackward,
    DeleteForward,
    FieldKind,
    FirstRow,
    FocusNext,
    FocusPrevious,
    InsertText,
    LastRow,
    MoveCursor,
    MoveRow,
    Outcome,
    PickRow,
    Resize,
    SelectionField,
    SelectionResult,
    SelectorState,
    initial_state,
    update,
)

LOG = logging.getLogger(__name__)

TABLE_COLUMNS = ("Alias", "Host", "User", "Port", "Jump host", "Source")

# Keys handled directly by the focused field or the table.
KEY_EVENTS = {
    "backspace": DeleteBackward(),
    "ctrl+h": DeleteBackward(),
    "delete": DeleteForward(),
    "ctrl+d": DeleteForward(),
    "left": MoveCursor(-1),
    "right": MoveCursor(1),
    "home": CursorHome(),
    "ctrl+a": CursorHome(),
    "end": CursorEnd(),
    "ctrl+e": CursorEnd(),
    "ctrl+u": ClearField(),
    "up": MoveRow(-1),
    "down": MoveRow(1),
    "ctrl+home": FirstRow(),
    "ctrl+end": LastRow(),
}


class HostTable(DataTable):
    """Catalog view. Never takes focus: the selector routes every key itself."""

    can_focus = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = True


class FieldView(Static):
    """One labelled text field with a visible cursor when focused."""

    def show_field(self, field: SelectionField, width: int) -> None:
        self.set_class(field.focused, "focused")
        label = Text(f"{field.kind.label:<14}", style="bold" if field.focused else "dim")
        value = field.value
        cursor = min(field.cursor, len(value))

        start = max(0, cursor - width + 1) if field.focused else 0
        visible = value[start:start + width]
        body = Text(visible)
        if field.focused:
            offset = cursor - start
            if offset >= len(visible):
                body.append(" ", style="reverse")
            else:
                body.stylize("reverse", offset, offset + 1)
        self.update(Text.assemble(label, body))


class StatusBar(Static):
    """Single-line status indicator."""

    def set_message(self, message: str, *, error: bool = False) -> None:
        self.set_class(error, "error")
        self.update(message or "")


class SelectorApp(App[Optional[SelectionResult]]):
    """Textual driver for the host selector state machine."""

    TITLE = "sshpick"
    CSS = """
    Screen {
        layout: vertical;
    }

    #fields {
        height: auto;
        padding: 0 1;
    }

    FieldView {
        height: 1;
    }

    FieldView.focused {
        background: $boost;
    }

    #host-table {
        height: 1fr;
        margin: 1 1 0 1;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    #status.error {
        background: $error;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("tab", "next_field", "Next field", priority=True),
        Binding("shift+tab", "previous_field", "Previous field", show=False, priority=True),
        Binding("enter", "pick_row", "Pick host", priority=True),
        Binding("ctrl+s", "confirm", "Connect", priority=True),
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("ctrl+c", "cancel", "Cancel", show=False, priority=True),
    ]

    def __init__(
        self,
        catalog: Catalog,
        *,
        target: str = "",
        proxy_jump: str = "",
        options: str = "",
        command: str = "",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.selector_state: SelectorState = initial_state(
            catalog,
            target=target,
            proxy_jump=proxy_jump,
            options=options,
            command=command,
        )
        self._rendered_filter: Optional[str] = None
        self._rendered_columns: Optional[Tuple[int, ...]] = None

    # --------------------------------------------------------------------- UI
    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="fields"):
            for kind in FieldKind:
                yield FieldView(id=f"field-{kind.name.lower()}")
        yield HostTable(id="host-table")
        yield StatusBar(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.status_bar = self.query_one(StatusBar)
        self.host_table = self.query_one(HostTable)
        self.field_views = [self.query_one(f"#field-{kind.name.lower()}", FieldView) for kind in FieldKind]
        self.apply_event(Resize(self.size.width, self.size.height))

    # ----------------------------------------------------------------- events
    def apply_event(self, event) -> None:
        """Feed one event to the state machine, then redraw or exit."""
        self.selector_state = update(self.selector_state, event)
        if self.selector_state.quitting:
            self.exit(self.selector_state.result if self.selector_state.outcome is Outcome.CONFIRMED else None)
            return
        self.render_state()

    def on_key(self, event: events.Key) -> None:
        page = self.selector_state.layout.page_size
        if event.key in KEY_EVENTS:
            selector_event = KEY_EVENTS[event.key]
        elif event.key == "pageup":
            selector_event = MoveRow(-page)
        elif event.key == "pagedown":
            selector_event = MoveRow(page)
        elif event.is_printable and event.character:
            selector_event = InsertText(event.character)
        else:
            return
        event.stop()
        event.prevent_default()
        self.apply_event(selector_event)

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self.apply_event(InsertText(event.text))

    def on_resize(self, event: events.Resize) -> None:
        self.apply_event(Resize(event.size.width, event.size.height))

    # ---------------------------------------------------------------- bindings
    def action_next_field(self) -> None:
        self.apply_event(FocusNext())

    def action_previous_field(self) -> None:
        self.apply_event(FocusPrevious())

    def action_pick_row(self) -> None:
        self.apply_event(PickRow())

    def action_confirm(self) -> None:
        self.apply_event(Confirm())

    def action_cancel(self) -> None:
        self.apply_event(Cancel())

    # ----------------------------------------------------------------- render
    def render_state(self) -> None:
        if not hasattr(self, "host_table"):
            return
        state = self.selector_state
        for view, field in zip(self.field_views, state.fields):
            view.show_field(field, state.layout.field_width)
        self._render_table(state)
        self._render_status(state)

    def _render_table(self, state: SelectorState) -> None:
        table = self.host_table
        columns = state.layout.column_widths
        if columns != self._rendered_columns:
            table.clear(columns=True)
            for label, width in zip(TABLE_COLUMNS, columns):
                table.add_column(label, width=width)
            self._rendered_columns = columns
            self._rendered_filter = None

        if state.filter_text != self._rendered_filter:
            table.clear(columns=False)
            for idx, record in enumerate(state.filtered_view):
                table.add_row(
                    record.alias,
                    record.hostname or "-",
                    record.user or "-",
                    record.port or "-",
                    record.proxy_jump or "-",
                    record.source.label,
                    key=f"row-{idx}",
                )
            self._rendered_filter = state.filter_text

        if state.filtered_view:
            table.move_cursor(row=state.row_index)

    def _render_status(self, state: SelectorState) -> None:
        total = len(state.catalog)
        shown = len(state.filtered_view)
        record = state.highlighted
        if record is None:
            message = "No matches for current filter" if state.filter_text else "No hosts available"
            self.status_bar.set_message(f"0/{total} hosts · {message}", error=True)
            return
        resolved = compose_target(record.user, record.resolved_hostname, record.port)
        self.status_bar.set_message(f"{shown}/{total} hosts · {record.alias} → {resolved}")


def run_selector(
    catalog: Catalog,
    *,
    target: str = "",
    proxy_jump: str = "",
    options: str = "",
    command: str = "",
) -> Optional[SelectionResult]:
    """
    Let the user compose a connection from *catalog*.

    Returns the confirmed :class:`SelectionResult`, or ``None`` when the user
    cancelled. Raises :class:`TerminalUnavailableError` when there is no
    terminal to draw on.
    """
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise TerminalUnavailableError("The host selector needs an interactive terminal")

    app = SelectorApp(catalog, target=target, proxy_jump=proxy_jump, options=options, command=command)
    try:
        result = app.run()
    except KeyboardInterrupt:
        return None
    except OSError as exc:
        raise TerminalUnavailableError(f"Unable to start the host selector: {exc}") from exc

    if getattr(app, "return_code", 0):
        raise SshpickError("The host selector stopped unexpectedly")
    return result


# ----------------------------------------------------------------------- CLI
def split_argv(argv: Sequence[str]) -> Tuple[List[str], List[str], List[str]]:
    """Split ``[wrapper args] -- [ssh options] -- [remote command]``."""
    argv = list(argv)
    separators = [idx for idx, arg in enumerate(argv) if arg == "--"]
    if not separators:
        return argv, [], []
    first = separators[0]
    if len(separators) == 1:
        return argv[:first], argv[first + 1:], []
    second = separators[1]
    return argv[:first], argv[first + 1:second], argv[second + 1:]


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        prog="sshpick",
        usage="%(prog)s [wrapper-flags] [host] [-- ssh-options] [-- remote-command [arguments]]",
        description="Connect to an SSH host, with an interactive selector",
    )
    parser.add_argument("host", nargs="?", help="Connect directly to this host without the selector")
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print the command that would be executed, but do not execute it",
    )
    parser.add_argument(
        "-p",
        "--proxy",
        action="store_true",
        help="Create a SOCKS proxy on 0.0.0.0:1080 instead of opening a shell",
    )
    parser.add_argument("--ssh-config", help="User SSH config file (default: ~/.ssh/config)")
    parser.add_argument("--system-config", help="System SSH config file (default: /etc/ssh/ssh_config)")
    parser.add_argument("--config-dir", help="Drop-in SSH config directory (default: ~/.ssh/config.d)")
    parser.add_argument("--known-hosts", help="known_hosts file (default: ~/.ssh/known_hosts)")
    parser.add_argument("--hosts-file", help="Hosts file (default: /etc/hosts)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Python logging level (default: WARNING)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    wrapper_args, ssh_options, remote_command = split_argv(sys.argv[1:] if argv is None else argv)
    args = parse_args(wrapper_args)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    if args.host:
        result = SelectionResult(
            target=args.host,
            extra_options=tuple(ssh_options),
            remote_command=tuple(remote_command),
        )
    else:
        paths = SourcePaths.default().override(
            ssh_config=args.ssh_config,
            system_ssh_config=args.system_config,
            config_dir=args.config_dir,
            known_hosts=args.known_hosts,
            hosts_file=args.hosts_file,
        )
        try:
            catalog = require_candidates(load_catalog(paths))
            result = run_selector(
                catalog,
                options=shlex.join(ssh_options),
                command=shlex.join(remote_command),
            )
        except SshpickError as exc:
            print(f"sshpick: {exc}", file=sys.stderr)
            return 1
        if result is None:
            LOG.info("Host selection cancelled")
            return 0

    try:
        cmd = build_ssh_command(result, proxy=args.proxy)
    except InvalidTargetError as exc:
        print(f"sshpick: {exc}", file=sys.stderr)
        return 1

    display_cmd = " ".join(shlex.quote(part) for part in cmd)
    if args.dry_run:
        print(display_cmd)
        return 0

    LOG.info("Connecting with: %s", display_cmd)
    try:
        return subprocess.run(cmd).returncode
    except FileNotFoundError:
        print("ssh executable was not found on PATH.", file=sys.stderr)
        return 127
    except KeyboardInterrupt:
        return 130


__all__ = ["SelectorApp", "main", "parse_args", "run_selector", "split_argv"]


if __name__ == "__main__":
    sys.exit(main())
