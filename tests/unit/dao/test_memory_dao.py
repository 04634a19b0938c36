"""Unit tests for agent memory and thought persistence."""

import pytest
import pytest_asyncio

from app.dao import MemoryDAO, ThoughtDAO
from app.dao.memory_dao import cosine_similarity
from app.database import Database
from app.enums import MemoryType, ThoughtType
from app.models.domain import MemoryEntry


@pytest_asyncio.fixture
async def memory_dao(test_db: Database) -> MemoryDAO:
    return MemoryDAO(test_db)


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_degenerate_inputs(self):
        assert cosine_similarity([1.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


class TestMemoryDAO:
    async def test_save_returns_pydantic(self, memory_dao: MemoryDAO):
        entry = await memory_dao.save(
            "user-1",
            "hello",
            "api",
            agent_id="agent-1",
            embedding=[0.1, 0.2],
            metadata={"role": "user", "callerId": None},
        )

        assert isinstance(entry, MemoryEntry)
        assert entry.type == MemoryType.CONVERSATION
        assert entry.metadata == {"role": "user", "callerId": None}
        assert entry.embedding == [0.1, 0.2]

    async def test_list_recent_returns_newest_oldest_first(self, memory_dao: MemoryDAO):
        for i in range(5):
            await memory_dao.save("user-1", f"m{i}", "api", agent_id="agent-1")

        recent = await memory_dao.list_recent("user-1", "agent-1", 3)

        assert [m.content for m in recent] == ["m2", "m3", "m4"]

    async def test_list_recent_scoping(self, memory_dao: MemoryDAO):
        await memory_dao.save("user-1", "a1", "api", agent_id="agent-1")
        await memory_dao.save("user-1", "a2", "api", agent_id="agent-2")
        await memory_dao.save("user-2", "other", "api")

        assert [m.content for m in await memory_dao.list_recent("user-1", "agent-2", 10)] == ["a2"]
        assert [m.content for m in await memory_dao.list_recent("user-1", None, 10)] == ["a1", "a2"]
        assert await memory_dao.list_recent("user-1", None, 0) == []

    async def test_vector_search_ranks_by_similarity(self, memory_dao: MemoryDAO):
        close = await memory_dao.save("user-1", "close", "api", embedding=[1.0, 0.1])
        far = await memory_dao.save("user-1", "far", "api", embedding=[0.0, 1.0])
        await memory_dao.save("user-1", "no vector", "api")
        await memory_dao.save("user-2", "foreign", "api", embedding=[1.0, 0.1])

        ids = await memory_dao.vector_search("user-1", [1.0, 0.0], 5)

        assert ids == [close.id, far.id]
        assert await memory_dao.vector_search("user-1", [1.0, 0.0], 1) == [close.id]
        assert await memory_dao.vector_search("user-1", [], 5) == []

    async def test_get_by_ids_filters_foreign_rows(self, memory_dao: MemoryDAO):
        mine = await memory_dao.save("user-1", "mine", "api", agent_id="agent-1")
        other_agent = await memory_dao.save("user-1", "other agent", "api", agent_id="agent-2")
        foreign = await memory_dao.save("user-2", "foreign", "api", agent_id="agent-1")

        rows = await memory_dao.get_by_ids("user-1", "agent-1", [mine.id, other_agent.id, foreign.id])

        assert [r.content for r in rows] == ["mine"]
        assert await memory_dao.get_by_ids("user-1", None, []) == []


class TestThoughtDAO:
    async def test_save_and_list(self, test_db: Database):
        dao = ThoughtDAO(test_db)
        await dao.save("user-1", "agent-1", "first", context="msg")
        await dao.save("user-1", "agent-1", "second", type=ThoughtType.DECISION)

        thoughts = await dao.list_by_agent("agent-1")

        assert [t.content for t in thoughts] == ["second", "first"]
        assert thoughts[0].type == ThoughtType.DECISION
        assert thoughts[1].context == "msg"
