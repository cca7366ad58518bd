"""Tests for owner-scoped conversation persistence."""
import random

import pytest

from api.features.conversations.exceptions import (
    ConversationNotFoundError,
    ConversationPersistenceError,
    ConversationValidationError,
)
from api.features.conversations.models import ConversationTreeModel, EdgeModel, NodeModel
from api.features.conversations.service import ConversationService
from canvas.tree import ROOT_ID, ConversationTree
from tests.fakes import FakeConversationRepository

OWNER = "user-1"
STRANGER = "user-2"
MISSING_ID = "00000000-0000-0000-0000-000000000000"


def sample_tree():
    tree = ConversationTree.new("hi", rng=random.Random(3))
    user_id, assistant_id = tree.branch(ROOT_ID, "hello")
    tree.resolve(assistant_id, "hey")
    tree.branch(assistant_id, "tell me more")
    return tree


def graph(tree):
    return ConversationTreeModel.graph_from_tree(tree)


async def save_tree(service, tree, conversation_id=None, title="hi", owner=OWNER):
    nodes, edges = graph(tree)
    return await service.save(
        conversation_id=conversation_id,
        title=title,
        nodes=nodes,
        edges=edges,
        owner_id=owner,
        db_session=None,
    )


@pytest.fixture
def repository():
    return FakeConversationRepository()


@pytest.fixture
def service(repository):
    return ConversationService(repository_factory=repository)


class TestSave:
    """Test create and full-replace saves."""

    @pytest.mark.asyncio
    async def test_load_reproduces_saved_tree(self, service):
        tree = sample_tree()

        saved = await save_tree(service, tree)
        loaded = await service.load(saved.id, owner_id=OWNER, db_session=None)
        rebuilt = loaded.to_tree()

        assert [n.id for n in loaded.nodes] == [n.id for n in tree.nodes()]
        for node in tree.nodes():
            twin = rebuilt.get(node.id)
            assert (twin.role, twin.content, twin.position) == (
                node.role,
                node.content,
                node.position,
            )
        assert {(e.source, e.target) for e in rebuilt.edges()} == {
            (e.source, e.target) for e in tree.edges()
        }

    @pytest.mark.asyncio
    async def test_pending_nodes_come_back_resolved(self, service):
        tree = sample_tree()
        saved = await save_tree(service, tree)

        loaded = await service.load(saved.id, owner_id=OWNER, db_session=None)

        assert not any(node.is_pending for node in loaded.to_tree().nodes())

    @pytest.mark.asyncio
    async def test_blank_title_defaults(self, service):
        saved = await save_tree(service, ConversationTree.new("hi"), title="")
        assert saved.title == "Untitled Conversation"

    @pytest.mark.asyncio
    async def test_root_only_tree_without_edges(self, service, repository):
        saved = await save_tree(service, ConversationTree.new("hi"))

        loaded = await service.load(saved.id, owner_id=OWNER, db_session=None)

        assert loaded.edges == []
        assert "add_edges" not in repository.calls

    @pytest.mark.asyncio
    async def test_second_save_replaces_everything(self, service):
        saved = await save_tree(service, sample_tree())
        replacement = ConversationTree.new("fresh")
        replacement.branch(ROOT_ID, "only", user_id="u1", assistant_id="a1")

        updated = await save_tree(service, replacement, conversation_id=saved.id, title="renamed")
        loaded = await service.load(saved.id, owner_id=OWNER, db_session=None)

        assert updated.title == "renamed"
        assert updated.updated_at > saved.updated_at
        assert [n.id for n in loaded.nodes] == [ROOT_ID, "u1", "a1"]
        assert {(e.source, e.target) for e in loaded.edges} == {(ROOT_ID, "u1"), ("u1", "a1")}

    @pytest.mark.asyncio
    async def test_update_without_title_keeps_title(self, service):
        saved = await save_tree(service, sample_tree(), title="keep me")

        updated = await save_tree(service, sample_tree(), conversation_id=saved.id, title=None)

        assert updated.title == "keep me"

    @pytest.mark.asyncio
    async def test_update_with_explicit_null_title_clears_it(self, service):
        saved = await save_tree(service, sample_tree(), title="drop me")
        nodes, edges = graph(sample_tree())

        updated = await service.save(
            conversation_id=saved.id,
            title=None,
            nodes=nodes,
            edges=edges,
            owner_id=OWNER,
            db_session=None,
            rename=True,
        )

        assert updated.title is None

    @pytest.mark.asyncio
    async def test_update_of_foreign_conversation_is_not_found(self, service):
        saved = await save_tree(service, sample_tree())

        with pytest.raises(ConversationNotFoundError):
            await save_tree(service, sample_tree(), conversation_id=saved.id, owner=STRANGER)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("conversation_id", [MISSING_ID, "not-a-uuid"])
    async def test_update_of_unknown_conversation_is_not_found(self, service, conversation_id):
        with pytest.raises(ConversationNotFoundError):
            await save_tree(service, sample_tree(), conversation_id=conversation_id)


class TestValidation:
    """Test rejections that happen before any write."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nodes", [None, []])
    async def test_nodes_required(self, service, repository, nodes):
        with pytest.raises(ConversationValidationError, match="Nodes array is required"):
            await service.save(
                conversation_id=None,
                title="t",
                nodes=nodes,
                edges=[],
                owner_id=OWNER,
                db_session=None,
            )
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_edges_required(self, service, repository):
        nodes, _ = graph(ConversationTree.new("hi"))
        with pytest.raises(ConversationValidationError, match="Edges array is required"):
            await service.save(
                conversation_id=None,
                title="t",
                nodes=nodes,
                edges=None,
                owner_id=OWNER,
                db_session=None,
            )
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_edge_to_unknown_node(self, service, repository):
        nodes, _ = graph(ConversationTree.new("hi"))
        edges = [EdgeModel(id="e-root-ghost", source=ROOT_ID, target="ghost")]

        with pytest.raises(ConversationValidationError, match="unknown node 'ghost'"):
            await service.save(
                conversation_id=None,
                title="t",
                nodes=nodes,
                edges=edges,
                owner_id=OWNER,
                db_session=None,
            )
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_duplicate_node_ids(self, service):
        node = NodeModel(id="root", role="system", label="hi")
        with pytest.raises(ConversationValidationError, match="Duplicate node id"):
            await service.save(
                conversation_id=None,
                title="t",
                nodes=[node, node],
                edges=[],
                owner_id=OWNER,
                db_session=None,
            )


class TestCreateFailures:
    """Test compensation when a create-save fails part way."""

    @pytest.mark.asyncio
    async def test_node_insert_failure_leaves_no_conversation(self):
        repository = FakeConversationRepository(fail_on={"add_nodes"})
        service = ConversationService(repository_factory=repository)

        with pytest.raises(ConversationPersistenceError, match="insert nodes"):
            await save_tree(service, sample_tree())

        assert repository.stored_conversations(OWNER) == []
        assert await service.list(owner_id=OWNER, db_session=None) == []

    @pytest.mark.asyncio
    async def test_edge_insert_failure_leaves_no_conversation(self):
        repository = FakeConversationRepository(fail_on={"add_edges"})
        service = ConversationService(repository_factory=repository)

        with pytest.raises(ConversationPersistenceError, match="insert edges"):
            await save_tree(service, sample_tree())

        assert repository.stored_conversations(OWNER) == []
        assert repository.committed.nodes == {}

    @pytest.mark.asyncio
    async def test_failed_compensation_still_raises_original_error(self):
        repository = FakeConversationRepository(fail_on={"add_nodes", "delete_conversation"})
        service = ConversationService(repository_factory=repository)

        with pytest.raises(ConversationPersistenceError, match="insert nodes"):
            await save_tree(service, sample_tree())

        assert "delete_conversation" in repository.calls

    @pytest.mark.asyncio
    async def test_conversation_insert_failure(self):
        repository = FakeConversationRepository(fail_on={"create_conversation"})
        service = ConversationService(repository_factory=repository)

        with pytest.raises(ConversationPersistenceError, match="create conversation"):
            await save_tree(service, sample_tree())
        assert "add_nodes" not in repository.calls


class TestUpdateFailures:
    """Test that a failed replace keeps the previous graph."""

    @pytest.mark.asyncio
    async def test_failed_replace_rolls_back(self, service, repository):
        tree = sample_tree()
        saved = await save_tree(service, tree)
        repository.fail_on.add("add_nodes")

        with pytest.raises(ConversationPersistenceError, match="update conversation"):
            await save_tree(service, ConversationTree.new("other"), conversation_id=saved.id)

        repository.fail_on.clear()
        loaded = await service.load(saved.id, owner_id=OWNER, db_session=None)
        assert [n.id for n in loaded.nodes] == [n.id for n in tree.nodes()]
        assert len(loaded.edges) == len(tree.edges())


class TestListLoadDelete:
    """Test owner scoping of reads and deletes."""

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped_and_newest_first(self, service):
        first = await save_tree(service, sample_tree(), title="first")
        second = await save_tree(service, sample_tree(), title="second")
        await save_tree(service, sample_tree(), title="theirs", owner=STRANGER)
        await save_tree(service, sample_tree(), conversation_id=first.id, title="first again")

        items = await service.list(owner_id=OWNER, db_session=None)

        assert [item.id for item in items] == [first.id, second.id]
        assert items[0].title == "first again"

    @pytest.mark.asyncio
    async def test_load_by_stranger_is_not_found(self, service):
        saved = await save_tree(service, sample_tree())

        with pytest.raises(ConversationNotFoundError):
            await service.load(saved.id, owner_id=STRANGER, db_session=None)

    @pytest.mark.asyncio
    async def test_load_of_malformed_id_is_not_found(self, service, repository):
        with pytest.raises(ConversationNotFoundError):
            await service.load("not-a-uuid", owner_id=OWNER, db_session=None)
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_delete_removes_graph(self, service, repository):
        saved = await save_tree(service, sample_tree())

        assert await service.delete(saved.id, owner_id=OWNER, db_session=None) is True

        assert repository.stored_conversations() == []
        assert saved.id not in repository.committed.nodes
        with pytest.raises(ConversationNotFoundError):
            await service.load(saved.id, owner_id=OWNER, db_session=None)

    @pytest.mark.asyncio
    async def test_strict_delete_by_stranger_is_not_found(self, service, repository):
        saved = await save_tree(service, sample_tree())

        with pytest.raises(ConversationNotFoundError):
            await service.delete(saved.id, owner_id=STRANGER, db_session=None)
        assert len(repository.stored_conversations(OWNER)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("conversation_id", [MISSING_ID, "not-a-uuid"])
    async def test_idempotent_delete(self, repository, conversation_id):
        service = ConversationService(repository_factory=repository, strict_delete=False)

        assert await service.delete(conversation_id, owner_id=OWNER, db_session=None) is False

    @pytest.mark.asyncio
    async def test_idempotent_delete_keeps_foreign_conversation(self, repository):
        service = ConversationService(repository_factory=repository, strict_delete=False)
        saved = await save_tree(service, sample_tree())

        assert await service.delete(saved.id, owner_id=STRANGER, db_session=None) is False
        assert len(repository.stored_conversations(OWNER)) == 1
