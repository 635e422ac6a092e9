import pytest

from console.engine import HeaderState, SelectionSet


def test_toggle_all_twice_restores_empty_selection():
    selection = SelectionSet(3)

    selection.toggle_all()
    assert selection.indices == [0, 1, 2]
    selection.toggle_all()

    assert selection.indices == []


def test_toggle_all_twice_restores_full_selection():
    selection = SelectionSet(3)
    selection.select([0, 1, 2])

    selection.toggle_all()
    assert selection.indices == []
    selection.toggle_all()

    assert selection.indices == [0, 1, 2]


def test_toggle_all_from_partial_selects_everything():
    selection = SelectionSet(3)
    selection.toggle(1)

    selection.toggle_all()

    assert selection.all_selected


def test_header_state_follows_selection():
    selection = SelectionSet(2)
    assert selection.header_state is HeaderState.UNCHECKED

    selection.toggle(0)
    assert selection.header_state is HeaderState.INDETERMINATE

    selection.toggle(1)
    assert selection.header_state is HeaderState.CHECKED


def test_empty_page_is_never_all_selected():
    selection = SelectionSet(0)

    selection.toggle_all()

    assert not selection.all_selected
    assert selection.header_state is HeaderState.UNCHECKED


def test_toggle_outside_page_raises():
    selection = SelectionSet(2)

    with pytest.raises(IndexError):
        selection.toggle(2)
    with pytest.raises(IndexError):
        selection.select([0, 5])

    assert selection.indices == []


def test_select_replaces_previous_selection_and_summary_counts():
    selection = SelectionSet(3)
    selection.select([0, 2])
    selection.select([1])

    assert selection.indices == [1]
    assert selection.summary() == "1 of 3 row(s) selected."
