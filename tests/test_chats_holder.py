import asyncio

import pytest

from assistant_chat.agents.assistant import Assistant
from assistant_chat.agents.chats_holder import ChatsHolder
from assistant_chat.agents.knowledge_agent import AssistantKnowledgeAgent
from assistant_chat.domain.exceptions import ChatNotFoundError
from tests.conftest import final


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class SupportChat(Assistant):
    def __init__(self, provider, topic="billing"):
        super().__init__(provider, f"You help with {topic}.")
        self.topic = topic


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def holder(scripted, clock):
    return ChatsHolder(scripted(default=final("ok")), ttl=60, clock=clock)


class TestChatsHolder:
    async def test_create_and_get(self, holder):
        chat_id = await holder.create_chat("alice", SupportChat, topic="refunds")
        chat = await holder.get_chat(chat_id, "alice")
        assert isinstance(chat, SupportChat)
        assert chat.topic == "refunds"
        assert chat.provider is holder.provider
        assert len(holder) == 1

    async def test_other_owner_sees_nothing(self, holder):
        chat_id = await holder.create_chat("alice", SupportChat)
        with pytest.raises(ChatNotFoundError):
            await holder.get_chat(chat_id, "bob")
        with pytest.raises(ChatNotFoundError):
            await holder.remove_chat(chat_id, "bob")
        assert len(holder) == 1

    async def test_unknown_chat(self, holder):
        with pytest.raises(ChatNotFoundError):
            await holder.get_chat("missing", "alice")

    async def test_expired_chat_is_removed(self, holder, clock):
        chat_id = await holder.create_chat("alice", SupportChat)
        chat = await holder.get_chat(chat_id, "alice")
        await chat.prompt("hello")
        thread_id = chat.thread_id

        clock.now += 61
        with pytest.raises(ChatNotFoundError):
            await holder.get_chat(chat_id, "alice")
        assert len(holder) == 0
        assert thread_id not in holder.provider.threads

    async def test_lookup_extends_expiry(self, holder, clock):
        chat_id = await holder.create_chat("alice", SupportChat)
        clock.now += 50
        await holder.get_chat(chat_id, "alice")
        clock.now += 50
        assert await holder.get_chat(chat_id, "alice")

    async def test_zero_ttl_never_expires(self, scripted, clock):
        holder = ChatsHolder(scripted(), ttl=0, clock=clock)
        chat_id = await holder.create_chat("alice", SupportChat)
        clock.now += 10 ** 9
        assert await holder.get_chat(chat_id, "alice")

    async def test_purge_expired(self, holder, clock):
        old = await holder.create_chat("alice", SupportChat)
        clock.now += 40
        fresh = await holder.create_chat("bob", SupportChat)
        clock.now += 30

        assert await holder.purge_expired() == 1
        assert len(holder) == 1
        with pytest.raises(ChatNotFoundError):
            await holder.get_chat(old, "alice")
        assert await holder.get_chat(fresh, "bob")

    async def test_expiring_a_busy_chat_retires_it_after_release(self, scripted, clock):
        gate = asyncio.Event()

        async def slow(thread):
            await gate.wait()
            return final("late")

        holder = ChatsHolder(scripted(slow), ttl=60, clock=clock)
        chat_id = await holder.create_chat("alice", SupportChat)
        chat = await holder.get_chat(chat_id, "alice")
        task = asyncio.create_task(chat.prompt("hello"))
        while holder.provider.turns == 0:
            await asyncio.sleep(0)
        thread_id = chat.thread_id

        clock.now += 61
        assert await holder.purge_expired() == 1
        assert thread_id in holder.provider.threads
        gate.set()
        # A final answer that arrives after cancel() is still returned
        assert await task == "late"
        assert not chat.busy
        assert thread_id not in holder.provider.threads

    async def test_removing_a_busy_chat_drops_its_thread(self, scripted):
        gate = asyncio.Event()

        async def slow(thread):
            await gate.wait()
            return final("late")

        holder = ChatsHolder(scripted(slow), ttl=60)
        chat_id = await holder.create_chat("alice", SupportChat)
        chat = await holder.get_chat(chat_id, "alice")
        task = asyncio.create_task(chat.prompt("hello"))
        while holder.provider.turns == 0:
            await asyncio.sleep(0)
        thread_id = chat.thread_id

        await holder.remove_chat(chat_id, "alice")
        assert len(holder) == 0
        assert thread_id in holder.provider.threads
        gate.set()
        await task
        assert thread_id not in holder.provider.threads

    async def test_factory(self, holder):
        factory = holder.create_chat_factory({"support": SupportChat}, "alice", "support")
        chat_id = await factory(topic="shipping")
        chat = await holder.get_chat(chat_id, "alice")
        assert chat.topic == "shipping"

        with pytest.raises(ValueError):
            holder.create_chat_factory({"support": SupportChat}, "alice", "sales")

    async def test_remove_chat(self, holder):
        chat_id = await holder.create_chat("alice", SupportChat)
        await holder.remove_chat(chat_id, "alice")
        assert len(holder) == 0


class TestKnowledgeAgent:
    async def test_delegates_to_a_dedicated_assistant(self, scripted):
        inner = Assistant(scripted(final("Paris")), "You know geography.")
        agent = AssistantKnowledgeAgent(inner)
        await agent.initialize()
        assert inner.thread_id is not None
        assert await agent.prompt("Capital of France?") == "Paris"
