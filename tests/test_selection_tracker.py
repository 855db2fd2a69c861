"""Tests for debounced selection tracking against registered regions."""

import asyncio

from models.selection_models import EMPTY_SELECTION, SelectionEvent
from services.selection.debouncer import Debouncer
from services.selection.state_machine import SelectionStateMachine
from services.selection.tracker import SelectionTracker

WINDOW = 0.01
SETTLE = 0.05

CONTEXT = "4H Analysis: Price is holding the 100 support with rising volume."


def make_tracker():
    machine = SelectionStateMachine()
    tracker = SelectionTracker(machine, debounce_seconds=WINDOW, click_recheck_seconds=WINDOW)
    tracker.register_region("analysis-4h", CONTEXT)
    return machine, tracker


def select(tracker, text, region_id="analysis-4h", on_interaction_surface=False):
    tracker.selection_changed(
        SelectionEvent(text=text, region_id=region_id, on_interaction_surface=on_interaction_surface)
    )


def test_debouncer_delivers_last_value_of_a_burst():
    async def scenario():
        delivered = []
        debouncer = Debouncer(WINDOW, delivered.append)
        for value in range(5):
            debouncer.submit(value)
        assert debouncer.pending
        await asyncio.sleep(SETTLE)
        return delivered, debouncer.pending

    assert asyncio.run(scenario()) == ([4], False)


def test_debouncer_cancel_and_flush():
    async def scenario():
        delivered = []
        debouncer = Debouncer(WINDOW, delivered.append)
        debouncer.submit("dropped")
        debouncer.cancel()
        debouncer.submit("flushed")
        debouncer.flush()
        await asyncio.sleep(SETTLE)
        return delivered

    assert asyncio.run(scenario()) == ["flushed"]


def test_live_selection_sets_state_and_shows_affordance():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "  100 support  ")
        await asyncio.sleep(SETTLE)
        return machine.state

    state = asyncio.run(scenario())
    assert state.selected_text == "100 support"
    assert state.full_context == CONTEXT
    assert state.query_affordance_visible


def test_burst_is_evaluated_once():
    async def scenario():
        machine, tracker = make_tracker()
        seen = []
        machine.subscribe(seen.append)
        for text in ("1", "10", "100", "100 s", "100 support"):
            select(tracker, text)
        await asyncio.sleep(SETTLE)
        return seen

    seen = asyncio.run(scenario())
    assert [state.selected_text for state in seen] == ["100 support", "100 support"]
    assert seen[-1].query_affordance_visible


def test_selection_outside_regions_clears_state():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "100 support")
        await asyncio.sleep(SETTLE)
        select(tracker, "page header", region_id=None)
        await asyncio.sleep(SETTLE)
        return machine.state

    assert asyncio.run(scenario()) == EMPTY_SELECTION


def test_whitespace_selection_is_not_live():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "   \n ")
        await asyncio.sleep(SETTLE)
        return machine.state

    assert asyncio.run(scenario()) == EMPTY_SELECTION


def test_collapsed_selection_keeps_open_chat():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "100 support")
        await asyncio.sleep(SETTLE)
        machine.open_chat("Why does it hold?")
        select(tracker, "", region_id=None)
        await asyncio.sleep(SETTLE)
        return machine.state

    state = asyncio.run(scenario())
    assert state.chat_open
    assert state.selected_text == "100 support"


def test_focus_on_interaction_surface_keeps_selection():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "100 support")
        await asyncio.sleep(SETTLE)
        select(tracker, "", region_id=None, on_interaction_surface=True)
        await asyncio.sleep(SETTLE)
        return machine.state

    state = asyncio.run(scenario())
    assert state.selected_text == "100 support"
    assert state.query_affordance_visible


def test_click_elsewhere_clears_stale_selection():
    async def scenario():
        machine, tracker = make_tracker()
        tracker.evaluate(SelectionEvent(text="100 support", region_id="analysis-4h"))
        tracker.click()
        await asyncio.sleep(SETTLE)
        return machine.state

    assert asyncio.run(scenario()) == EMPTY_SELECTION


def test_click_on_interaction_surface_is_ignored():
    async def scenario():
        machine, tracker = make_tracker()
        tracker.evaluate(SelectionEvent(text="100 support", region_id="analysis-4h"))
        tracker.click(on_interaction_surface=True)
        await asyncio.sleep(SETTLE)
        return machine.state

    assert asyncio.run(scenario()).query_affordance_visible


def test_click_with_live_selection_keeps_it():
    async def scenario():
        machine, tracker = make_tracker()
        select(tracker, "100 support")
        await asyncio.sleep(SETTLE)
        tracker.click()
        await asyncio.sleep(SETTLE)
        return machine.state

    assert asyncio.run(scenario()).selected_text == "100 support"


def test_region_registry():
    _, tracker = make_tracker()
    tracker.register_region("final", "Buy the dip")

    assert tracker.context_for("final") == "Buy the dip"
    assert tracker.context_for(None) is None

    tracker.unregister_region("final")
    tracker.replace_regions({"analysis-1h": "1H Analysis: range"})

    assert tracker.regions == {"analysis-1h": "1H Analysis: range"}
    assert not tracker.is_live(SelectionEvent(text="x", region_id="analysis-4h"))
