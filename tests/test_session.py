"""Tests for the interactive canvas session and its completion tasks."""
import asyncio
import random

import pytest

from api.features.chat.exceptions import EmptyReplyError
from canvas.exceptions import ParentNotFoundError
from canvas.models import ContentState, Message
from canvas.session import CANCELLED_TEXT, CanvasSession
from canvas.tree import ROOT_ID, ConversationTree


class ScriptedCompleter:
    """Completer whose replies are released by the test."""

    def __init__(self):
        self.calls = []
        self.gates = []

    async def __call__(self, messages):
        gate = asyncio.get_running_loop().create_future()
        self.calls.append(messages)
        self.gates.append(gate)
        return await gate


def echo_last(prefix="re: "):
    async def _complete(messages):
        return prefix + messages[-1]["content"]

    return _complete


class TestReply:
    """Test replies resolving and failing their assistant nodes."""

    @pytest.mark.asyncio
    async def test_reply_resolves_assistant_node(self):
        session = CanvasSession(echo_last(), greeting="hi", rng=random.Random(1))

        pending = session.reply(ROOT_ID, "hello")
        assert session.tree.get(pending.assistant_id).is_pending
        await session.wait()

        node = session.tree.get(pending.assistant_id)
        assert node.state is ContentState.RESOLVED
        assert node.content == "re: hello"
        assert session.in_flight == []

    @pytest.mark.asyncio
    async def test_completer_receives_history_without_placeholder(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")

        session.reply(ROOT_ID, "hello")
        await asyncio.sleep(0)

        assert completer.calls == [
            [{"role": "system", "content": "hi"}, {"role": "user", "content": "hello"}]
        ]
        completer.gates[0].set_result("ok")
        await session.wait()

    @pytest.mark.asyncio
    async def test_empty_reply_marks_node_failed(self):
        async def empty(messages):
            return ""

        session = CanvasSession(empty, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")
        await session.wait()

        node = session.tree.get(pending.assistant_id)
        assert node.state is ContentState.FAILED
        assert node.content.startswith("Error: ")
        assert session.tree.history_to(pending.assistant_id)[-1] == Message(
            "assistant", node.content
        )

    @pytest.mark.asyncio
    async def test_completer_error_marks_node_failed(self):
        async def broken(messages):
            raise EmptyReplyError()

        session = CanvasSession(broken, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")
        await session.wait()

        node = session.tree.get(pending.assistant_id)
        assert node.state is ContentState.FAILED
        assert node.content == "Error: OpenAI returned an empty response."

    @pytest.mark.asyncio
    async def test_concurrent_replies_only_touch_their_own_node(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")

        first = session.reply(ROOT_ID, "one")
        second = session.reply(ROOT_ID, "two")
        await asyncio.sleep(0)
        assert sorted(session.in_flight) == sorted([first.assistant_id, second.assistant_id])

        completer.gates[1].set_result("second answer")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert session.tree.get(second.assistant_id).content == "second answer"
        assert session.tree.get(first.assistant_id).is_pending

        completer.gates[0].set_result("first answer")
        await session.wait()
        assert session.tree.get(first.assistant_id).content == "first answer"

    @pytest.mark.asyncio
    async def test_reply_to_missing_parent_starts_nothing(self):
        session = CanvasSession(echo_last(), greeting="hi")

        with pytest.raises(ParentNotFoundError):
            session.reply("ghost", "hello")

        assert len(session.tree) == 1
        assert session.in_flight == []


class TestLateResults:
    """Test how results arriving after the session moved on are handled."""

    @pytest.mark.asyncio
    async def test_cancel_fails_pending_node(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")
        await asyncio.sleep(0)

        assert session.cancel(pending.assistant_id) is True
        await asyncio.gather(pending.task, return_exceptions=True)

        node = session.tree.get(pending.assistant_id)
        assert node.state is ContentState.FAILED
        assert node.content == CANCELLED_TEXT
        assert pending.task.cancelled()
        assert session.cancel(pending.assistant_id) is False

    @pytest.mark.asyncio
    async def test_cancel_before_task_starts_forgets_it(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")

        assert session.cancel(pending.assistant_id) is True
        await asyncio.gather(pending.task, return_exceptions=True)

        assert completer.calls == []
        assert pending.task.cancelled()
        assert pending.assistant_id not in session._pending
        assert session.tree.get(pending.assistant_id).content == CANCELLED_TEXT
        assert session.cancel(pending.assistant_id) is False

    @pytest.mark.asyncio
    async def test_new_conversation_drops_old_results(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")
        await asyncio.sleep(0)
        generation = session.generation

        fresh = session.new("fresh start")
        await asyncio.gather(pending.task, return_exceptions=True)

        assert session.generation == generation + 1
        assert session.tree is fresh
        assert len(fresh) == 1
        assert pending.assistant_id not in fresh

    @pytest.mark.asyncio
    async def test_stale_generation_result_is_not_written(self):
        release = asyncio.Event()

        async def ignores_cancellation(messages):
            try:
                await release.wait()
            except asyncio.CancelledError:
                pass
            return "late answer"

        session = CanvasSession(ignores_cancellation, greeting="hi")
        pending = session.reply(ROOT_ID, "hello")
        await asyncio.sleep(0)

        old_tree = session.tree
        replacement = ConversationTree.new("other")
        session.load("11111111-1111-1111-1111-111111111111", replacement)
        await asyncio.gather(pending.task, return_exceptions=True)

        assert old_tree.get(pending.assistant_id).is_pending
        assert pending.assistant_id not in session.tree

    @pytest.mark.asyncio
    async def test_close_cancels_everything(self):
        completer = ScriptedCompleter()
        session = CanvasSession(completer, greeting="hi")
        first = session.reply(ROOT_ID, "one")
        second = session.reply(ROOT_ID, "two")
        await asyncio.sleep(0)

        session.close()
        await asyncio.gather(first.task, second.task, return_exceptions=True)

        assert first.task.cancelled()
        assert second.task.cancelled()
        assert session.in_flight == []


class TestSnapshot:
    """Test the data handed to persistence."""

    @pytest.mark.asyncio
    async def test_snapshot_title_and_graph(self):
        session = CanvasSession(echo_last(), greeting="x" * 80)
        session.reply(ROOT_ID, "hello")
        await session.wait()

        snapshot = session.snapshot()

        assert snapshot.title == "x" * 50
        assert snapshot.conversation_id is None
        assert len(snapshot.nodes) == 3
        assert len(snapshot.edges) == 2

        session.mark_saved("22222222-2222-2222-2222-222222222222")
        assert session.snapshot().conversation_id == "22222222-2222-2222-2222-222222222222"

    def test_untitled_without_system_text(self):
        session = CanvasSession(echo_last(), greeting="")
        assert session.title == "Untitled Conversation"
