from sshpick.catalog import build_catalog
from sshpick.models import HostRecord, HostSource
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
    SelectionResult,
    initial_state,
    update,
)

CATALOG = build_catalog(
    [
        HostRecord("web", HostSource.CONFIG_FILE, hostname="web.internal", user="deploy", port="2222",
                   proxy_jump="bastion"),
        HostRecord("web2", HostSource.CONFIG_FILE, hostname="web2.internal"),
        HostRecord("db6", HostSource.CONFIG_FILE, hostname="db::1", user="ops", port="2222"),
    ],
    [HostRecord("cache", HostSource.HOSTS_FILE)],
    [HostRecord("legacy", HostSource.KNOWN_HOSTS, hostname="legacy", port="2200")],
)


def run(state, *events):
    for event in events:
        state = update(state, event)
    return state


def type_text(state, text):
    return run(state, *(InsertText(ch) for ch in text))


def test_initial_state():
    state = initial_state(CATALOG, target="pre")
    assert state.focus_index == 0
    assert state.focused_field.kind is FieldKind.TARGET
    assert [f.focused for f in state.fields] == [True, False, False, False]
    assert state.value_of(FieldKind.TARGET) == "pre"
    assert state.filtered_view == tuple(CATALOG)
    assert not state.quitting


def test_focus_cycles_through_all_fields():
    state = initial_state(CATALOG)
    seen = []
    for _ in range(5):
        state = update(state, FocusNext())
        seen.append(state.focus_index)
        assert sum(f.focused for f in state.fields) == 1
    assert seen == [1, 2, 3, 0, 1]
    state = run(state, FocusPrevious(), FocusPrevious())
    assert state.focus_index == 3


def test_typing_filters_and_resets_row():
    state = initial_state(CATALOG)
    state = run(state, MoveRow(2))
    assert state.row_index == 2

    state = type_text(state, "WE")

    assert [r.alias for r in state.filtered_view] == ["web", "web2"]
    assert state.row_index == 0
    assert state.value_of(FieldKind.TARGET) == "WE"


def test_cursor_movement_does_not_reset_row():
    state = type_text(initial_state(CATALOG), "web")
    state = run(state, MoveRow(1), MoveCursor(-1))
    assert state.row_index == 1


def test_text_editing():
    state = type_text(initial_state(CATALOG), "helo")
    state = run(state, MoveCursor(-1), InsertText("l"))
    assert state.focused_field.value == "hello"
    assert state.focused_field.cursor == 4

    state = run(state, CursorHome(), DeleteForward())
    assert state.focused_field.value == "ello"
    state = run(state, CursorEnd(), DeleteBackward())
    assert state.focused_field.value == "ell"
    state = run(state, MoveCursor(-10), DeleteBackward())
    assert state.focused_field.value == "ell"
    assert state.focused_field.cursor == 0
    state = run(state, ClearField())
    assert state.focused_field.value == ""
    assert state.filtered_view == tuple(CATALOG)


def test_option_and_command_fields_do_not_filter():
    state = type_text(initial_state(CATALOG), "web")
    state = run(state, FocusPrevious())
    state = type_text(state, "uptime")

    assert state.focused_field.kind is FieldKind.COMMAND
    assert [r.alias for r in state.filtered_view] == ["web", "web2"]


def test_focus_switch_refilters_on_jump_host_field():
    state = type_text(initial_state(CATALOG), "db")
    state = run(state, FocusNext())
    assert state.filter_text == ""
    assert len(state.filtered_view) == len(CATALOG)

    state = type_text(state, "cach")
    assert [r.alias for r in state.filtered_view] == ["cache"]

    state = run(state, FocusPrevious())
    assert [r.alias for r in state.filtered_view] == ["db6"]


def test_row_navigation_is_clamped():
    state = initial_state(CATALOG)
    state = run(state, MoveRow(-3))
    assert state.row_index == 0
    state = run(state, MoveRow(100))
    assert state.row_index == len(CATALOG) - 1
    state = run(state, FirstRow())
    assert state.row_index == 0
    state = run(state, LastRow())
    assert state.highlighted.alias == "legacy"


def test_first_pick_writes_alias_second_expands():
    state = type_text(initial_state(CATALOG), "we")

    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "web"
    assert state.value_of(FieldKind.JUMP_HOST) == ""
    assert state.highlighted.alias == "web"

    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "deploy@web.internal:2222"
    assert state.value_of(FieldKind.JUMP_HOST) == "bastion"
    assert state.focused_field.cursor == len("deploy@web.internal:2222")


def test_expansion_is_idempotent_from_alias_state():
    state = type_text(initial_state(CATALOG), "web")
    first = update(state, PickRow())
    second = update(state, PickRow())
    assert first.value_of(FieldKind.TARGET) == second.value_of(FieldKind.TARGET) == "deploy@web.internal:2222"


def test_pick_keeps_cursor_on_picked_row():
    state = type_text(initial_state(CATALOG), "web")
    state = run(state, MoveRow(1), PickRow())
    assert state.value_of(FieldKind.TARGET) == "web2"
    assert state.highlighted.alias == "web2"


def test_ipv6_host_is_bracketed_on_expansion():
    state = type_text(initial_state(CATALOG), "db6")
    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "ops@[db::1]:2222"


def test_non_config_sources_expand_immediately():
    state = type_text(initial_state(CATALOG), "legacy")
    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "legacy:2200"

    state = type_text(initial_state(CATALOG), "cache")
    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "cache"


def test_pick_in_jump_field_does_not_touch_target():
    state = run(initial_state(CATALOG, target="cache"), FocusNext())
    state = type_text(state, "web")
    state = run(state, PickRow(), PickRow())
    assert state.value_of(FieldKind.JUMP_HOST) == "deploy@web.internal:2222"
    assert state.value_of(FieldKind.TARGET) == "cache"


def test_pick_ignored_in_other_fields_or_empty_view():
    state = run(initial_state(CATALOG), FocusNext(), FocusNext())
    assert update(state, PickRow()) == state

    state = type_text(initial_state(CATALOG), "nothing-matches")
    assert state.filtered_view == ()
    assert update(state, PickRow()) == state


def test_confirm_tokenizes_options_and_command():
    state = initial_state(CATALOG, target=" web ", options="-v  -o  BatchMode=yes", command="tail -f /var/log/syslog")
    state = update(state, Confirm())

    assert state.outcome is Outcome.CONFIRMED
    assert state.quitting
    assert state.result == SelectionResult(
        target="web",
        proxy_jump="",
        extra_options=("-v", "-o", "BatchMode=yes"),
        remote_command=("tail", "-f", "/var/log/syslog"),
    )


def test_cancel_leaks_no_result():
    state = type_text(initial_state(CATALOG), "web")
    state = run(state, PickRow(), Cancel())

    assert state.outcome is Outcome.CANCELLED
    assert state.result is None
    assert update(state, Confirm()) is state


def test_resize_changes_layout_only():
    state = type_text(initial_state(CATALOG), "web")
    state = run(state, FocusNext())
    resized = update(state, Resize(200, 50))

    assert resized.fields == state.fields
    assert resized.focus_index == state.focus_index
    assert resized.layout.width == 200
    assert resized.layout.page_size > state.layout.page_size
    assert sum(resized.layout.column_widths) > sum(state.layout.column_widths)


def test_repeated_picks_keep_the_expanded_target():
    state = type_text(initial_state(CATALOG), "we")
    state = run(state, PickRow(), PickRow(), PickRow())

    assert state.value_of(FieldKind.TARGET) == "deploy@web.internal:2222"
    assert state.value_of(FieldKind.JUMP_HOST) == "bastion"

    state = update(state, PickRow())
    assert state.value_of(FieldKind.TARGET) == "deploy@web.internal:2222"
    assert state.value_of(FieldKind.JUMP_HOST) == "bastion"


def test_confirm_honours_shell_quoting():
    state = initial_state(
        CATALOG,
        target="web",
        options="-o 'ProxyCommand=ssh -W %h:%p bastion'",
        command="sh -c \"echo hi\"",
    )
    state = update(state, Confirm())

    assert state.result.extra_options == ("-o", "ProxyCommand=ssh -W %h:%p bastion")
    assert state.result.remote_command == ("sh", "-c", "echo hi")


def test_confirm_with_unterminated_quote_splits_on_whitespace():
    state = update(initial_state(CATALOG, target="web", command="echo 'oops"), Confirm())
    assert state.result.remote_command == ("echo", "'oops")
