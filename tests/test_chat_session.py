"""Tests for contextual follow-up chat sessions."""

import asyncio

import pytest

from models.selection_models import EMPTY_SELECTION, ChatRole
from services.chat.chat_session import ChatSession
from services.chat.contextual_query import ContextualQueryCoordinator
from services.errors import ChatBusyError, ChatClosedError, VisionServiceError
from services.selection.state_machine import SelectionStateMachine

from conftest import ScriptedVision

CONTEXT = "1H Analysis: Momentum is fading into the 105 resistance."


def selected_machine(text="105 resistance"):
    machine = SelectionStateMachine()
    machine.set_selection(text, CONTEXT)
    machine.show_query_affordance()
    return machine


class TestChatSession:
    def test_seed_turn_snapshots_selection(self, vision):
        machine = selected_machine()
        session = ChatSession(vision, machine)

        reply = asyncio.run(session.ask("Will it break?", is_seed=True))

        user, assistant = session.turns
        assert user.role is ChatRole.USER
        assert user.selected_text == "105 resistance"
        assert assistant is reply
        assert assistant.role is ChatRole.ASSISTANT
        assert assistant.text == "Answer: Will it break?"
        assert vision.context_calls == [("Will it break?", "105 resistance", CONTEXT)]

    def test_follow_up_uses_current_selection_without_snapshot(self, vision):
        machine = selected_machine()
        session = ChatSession(vision, machine)
        asyncio.run(session.ask("First?", is_seed=True))
        machine.set_selection("momentum", CONTEXT)

        asyncio.run(session.ask("Second?"))

        assert [turn.selected_text for turn in session.turns] == ["105 resistance", None, None, None]
        assert vision.context_calls[-1] == ("Second?", "momentum", CONTEXT)

    def test_failure_becomes_assistant_turn(self):
        vision = ScriptedVision(context_reply=lambda *args: VisionServiceError("rate limited"))
        session = ChatSession(vision, selected_machine())

        reply = asyncio.run(session.ask("Why?"))

        assert reply.text == "Sorry, I encountered an error: rate limited"
        assert not session.pending

    def test_blank_question_rejected(self, vision):
        session = ChatSession(vision, selected_machine())
        with pytest.raises(ValueError):
            asyncio.run(session.ask("   "))
        assert session.turns == ()

    def test_one_question_in_flight(self):
        async def scenario():
            vision = ScriptedVision()
            vision.gate = asyncio.Event()
            session = ChatSession(vision, selected_machine())
            first = asyncio.create_task(session.ask("First?"))
            await asyncio.sleep(0)
            assert session.pending
            with pytest.raises(ChatBusyError):
                await session.ask("Second?")
            vision.gate.set()
            await first
            return session

        session = asyncio.run(scenario())
        assert [turn.text for turn in session.turns] == ["First?", "Answer: First?"]

    def test_reply_after_close_is_discarded(self):
        async def scenario():
            vision = ScriptedVision()
            vision.gate = asyncio.Event()
            session = ChatSession(vision, selected_machine())
            pending = asyncio.create_task(session.ask("Slow?"))
            await asyncio.sleep(0)
            session.close()
            vision.gate.set()
            return session, await pending

        session, reply = asyncio.run(scenario())
        assert reply is None
        assert session.turns == ()
        with pytest.raises(ChatClosedError):
            asyncio.run(session.ask("Again?"))


class TestContextualQueryCoordinator:
    def test_submit_opens_chat_with_seed_exchange(self, vision):
        machine = selected_machine()
        coordinator = ContextualQueryCoordinator(machine, vision)

        session = asyncio.run(coordinator.submit_query("  Is this a double top?  "))

        assert machine.state.chat_open
        assert not machine.state.query_affordance_visible
        assert machine.state.seed_question == "Is this a double top?"
        assert coordinator.session is session
        log = coordinator.chat_log()
        assert [turn.role for turn in log] == [ChatRole.USER, ChatRole.ASSISTANT]
        assert log[0].selected_text == "105 resistance"

    def test_submit_requires_selection(self, vision):
        coordinator = ContextualQueryCoordinator(SelectionStateMachine(), vision)
        with pytest.raises(ValueError):
            asyncio.run(coordinator.submit_query("Why?"))
        assert vision.context_calls == []

    def test_follow_up_requires_open_chat(self, vision):
        coordinator = ContextualQueryCoordinator(selected_machine(), vision)
        with pytest.raises(ChatClosedError):
            asyncio.run(coordinator.follow_up("More?"))

    def test_full_conversation_then_close(self, vision):
        highlight_clears = []
        machine = SelectionStateMachine(clear_highlight=lambda: highlight_clears.append(True))
        machine.set_selection("105 resistance", CONTEXT)
        machine.show_query_affordance()
        coordinator = ContextualQueryCoordinator(machine, vision)

        asyncio.run(coordinator.submit_query("Entry?"))
        asyncio.run(coordinator.follow_up("Stop?"))
        assert len(coordinator.chat_log()) == 4

        old_session = coordinator.session
        coordinator.close_chat()

        assert old_session.closed
        assert coordinator.session is None
        assert coordinator.chat_log() == []
        assert machine.state == EMPTY_SELECTION
        assert highlight_clears == [True]

    def test_resubmit_replaces_session(self, vision):
        machine = selected_machine()
        coordinator = ContextualQueryCoordinator(machine, vision)
        first = asyncio.run(coordinator.submit_query("One?"))

        second = asyncio.run(coordinator.submit_query("Two?"))

        assert first.closed
        assert second is coordinator.session
        assert [turn.text for turn in coordinator.chat_log()] == ["Two?", "Answer: Two?"]

    def test_close_query_affordance_clears_selection(self, vision):
        machine = selected_machine()
        coordinator = ContextualQueryCoordinator(machine, vision)

        coordinator.close_query_affordance()

        assert machine.state == EMPTY_SELECTION
