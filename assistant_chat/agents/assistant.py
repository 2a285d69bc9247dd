"""
Conversation orchestrator.

An Assistant drives one conversation thread on a ChatProvider:

    user input -> [execute_turn -> dispatch tool calls -> feed results]* -> final answer

It is itself a ToolSet: its own callables (history search), additional
callables (knowledge-agent delegate) and any nested ToolSets form the catalog
the model sees.

Concurrency model (single event loop):
- One prompt() at a time; a second one is rejected with AssistantBusyError
  before anything is awaited.
- cancel() is cooperative. It answers every outstanding call at once and stops
  the loop at its next checkpoint (between iterations and between dispatches).
- prompt(force=True) supersedes an in-flight prompt. The epoch is bumped, so
  the older loop sees it is stale after its current await and bows out
  without touching the new prompt's state.
- Every tool call id gets exactly one result: an entry is popped from the
  pending table before its result is delivered, and results for entries that
  are no longer there are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from assistant_chat.domain.entities.agent_transcript import AgentTranscript
from assistant_chat.domain.entities.agent_turn import AgentTurn
from assistant_chat.domain.entities.pending_call import ConversationLock, PendingCall
from assistant_chat.domain.exceptions import AssistantBusyError, TooManyAttemptsError
from assistant_chat.infrastructure.config import AssistantConfig
from assistant_chat.infrastructure.llm.base import NOTHING_FOUND
from assistant_chat.infrastructure.tools.catalog_adapter import ToolCatalogView
from assistant_chat.infrastructure.tools.invocation_adapter import ToolInvocationAdapter
from assistant_chat.infrastructure.tools.tool_base import ToolSet
from assistant_chat.interfaces.agents.knowledge import IKnowledgeAgent
from assistant_chat.providers.base.interfaces import ChatProvider
from assistant_chat.providers.base.models import ChatMessage, FinalMessage, ToolCallBatch

logger = logging.getLogger(__name__)


class Assistant(ToolSet):
    """
    Tool-using conversational assistant bound to a single provider thread.

    Args:
        provider: ChatProvider that owns the thread
        instructions: Role instructions for the model
        toolsets: ToolSets whose callables are exposed alongside the assistant's own
        knowledge_agent: Optional agent exposed to the model as `askKnowledgeAgent`
        config: Loop settings (iteration budget, fixed result texts)
    """

    def __init__(
        self,
        provider: ChatProvider,
        instructions: str,
        toolsets: Iterable[ToolSet] = (),
        knowledge_agent: Optional[IKnowledgeAgent] = None,
        config: Optional[AssistantConfig] = None,
    ) -> None:
        super().__init__(nested=toolsets)
        self.provider = provider
        self.instructions = instructions
        self.knowledge_agent = knowledge_agent
        self.config = config or AssistantConfig()

        self._lock = ConversationLock()
        self._pending: Dict[str, PendingCall] = {}
        # Results owed to the provider, queued by cancel() which cannot await
        self._owed: List[Tuple[str, str]] = []
        self._thread_id: Optional[str] = None
        self._ready: Optional[asyncio.Future] = None
        self._transcript: Optional[AgentTranscript] = None
        # Set by retire() while busy; the prompt in flight clears on release
        self._retire_on_release = False

        if knowledge_agent is not None:
            self.add_callable(
                self.ask_knowledge_agent,
                "Ask the knowledge agent a question and get its answer. Use it for facts you do not know.",
                name="askKnowledgeAgent",
            )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._lock.busy

    @property
    def thread_id(self) -> Optional[str]:
        return self._thread_id

    @property
    def transcript(self) -> Optional[AgentTranscript]:
        """Record of the most recent prompt."""
        return self._transcript

    @property
    def pending_calls(self) -> Tuple[PendingCall, ...]:
        return tuple(self._pending.values())

    def get_callables(self) -> ToolCatalogView:
        return self.catalog()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> str:
        """
        Create the provider thread once. Concurrent callers share the same
        outcome; a failure is re-raised to all of them and allows a retry.
        """
        if self._ready is not None:
            return await asyncio.shield(self._ready)

        ready = asyncio.get_running_loop().create_future()
        self._ready = ready
        try:
            if self.knowledge_agent is not None:
                await self.knowledge_agent.initialize()
            thread_id = await self.provider.create_thread(self.instructions, self.catalog().list_tools())
        except asyncio.CancelledError:
            self._ready = None
            ready.cancel()
            raise
        except Exception as e:
            self._ready = None
            ready.set_exception(e)
            ready.exception()  # retrieved here; waiters still receive it
            raise

        self._thread_id = thread_id
        ready.set_result(thread_id)
        logger.info("Assistant %s initialized on thread %s", type(self).__name__, thread_id)
        return thread_id

    async def clear(self) -> None:
        """Drop the provider thread; the next prompt starts a fresh one."""
        if self._lock.busy:
            raise AssistantBusyError("Cannot clear an assistant while a prompt is in flight")
        thread_id = self._thread_id
        self._thread_id = None
        self._ready = None
        self._pending.clear()
        self._owed.clear()
        self._transcript = None
        if thread_id is not None:
            await self.provider.remove_thread(thread_id)

    async def retire(self) -> None:
        """
        Drop the provider thread for good. An idle assistant clears at once;
        a busy one is cancelled and clears when its prompt lets go.
        """
        if not self._lock.busy:
            await self.clear()
            return
        self._retire_on_release = True
        self.cancel()

    # ------------------------------------------------------------------
    # Conversation loop
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """
        Answer every outstanding call with the interruption text and ask the
        running prompt to stop at its next checkpoint.
        """
        self._owe_all(self.config.cancelled_call_text)
        self._lock.cancel_requested = True
        if self._lock.busy:
            logger.info("Cancellation requested")

    async def prompt(self, input: str, iteration_limit: Optional[int] = None, force: bool = False) -> str:
        """
        Send a user message and run the loop until the model answers.

        Args:
            input: User message
            iteration_limit: Maximum provider turns (defaults to config.max_iterations)
            force: Take over from a prompt that is still in flight

        Returns:
            The model's final answer, or the interrupted text after cancel()

        Raises:
            AssistantBusyError: another prompt is in flight and force is False
            TooManyAttemptsError: no final answer within the iteration budget
        """
        limit = self.config.max_iterations if iteration_limit is None else iteration_limit
        if limit < 1:
            raise ValueError("iteration_limit must be at least 1")

        if force:
            self._owe_all(self.config.cancelled_call_text)
            if self._lock.busy:
                logger.warning("Forced prompt supersedes a prompt still in flight")
                self._lock.supersede()
        elif self._lock.busy:
            raise AssistantBusyError()

        epoch = self._lock.acquire()
        transcript = AgentTranscript(prompt=input)
        self._transcript = transcript
        try:
            return await self._run(input, limit, epoch, transcript)
        finally:
            if not self._lock.is_stale(epoch):
                self._lock.release()
                self._owe_leftovers(epoch)
                if self._retire_on_release:
                    self._retire_on_release = False
                    await self.clear()

    async def _run(self, input: str, limit: int, epoch: int, transcript: AgentTranscript) -> str:
        thread_id = await self.initialize()
        await self._settle(thread_id)
        if self._lock.is_stale(epoch):
            return self._interrupted(transcript)

        await self.provider.add_message(thread_id, ChatMessage(role="user", content=input))
        invoker = ToolInvocationAdapter(self.catalog())

        for iteration in range(1, limit + 1):
            if self._should_stop(epoch):
                break

            result = await self.provider.execute_turn(thread_id)
            turn = AgentTurn(iteration=iteration)
            transcript.turns.append(turn)

            if self._lock.is_stale(epoch):
                await self._abandon_batch(thread_id, result)
                return self._interrupted(transcript)

            if isinstance(result, FinalMessage):
                await self.provider.add_message(thread_id, ChatMessage(role="assistant", content=result.content))
                turn.response = result.content
                transcript.final_response = result.content
                logger.debug("Final answer after %d iteration(s)", iteration)
                return result.content

            await self._dispatch_batch(thread_id, result, invoker, epoch, turn, transcript)
            if self._lock.is_stale(epoch):
                return self._interrupted(transcript)

        # Budget exhausted or cancelled: nobody will answer what is left
        self._owe_epoch(epoch, self.config.unanswered_call_text)
        await self._settle(thread_id)
        if self._lock.cancel_requested or self._lock.is_stale(epoch):
            return self._interrupted(transcript)
        logger.warning("No final answer within %d iteration(s)", limit)
        raise TooManyAttemptsError(limit)

    async def _dispatch_batch(
        self,
        thread_id: str,
        batch: ToolCallBatch,
        invoker: ToolInvocationAdapter,
        epoch: int,
        turn: AgentTurn,
        transcript: AgentTranscript,
    ) -> None:
        for call in batch.calls:
            self._pending[call.id] = PendingCall(id=call.id, tool_name=call.name, epoch=epoch)
            turn.tool_calls.append({"id": call.id, "name": call.name, "arguments": call.arguments_dict()})

        for call in batch.calls:
            if self._should_stop(epoch):
                break
            if call.id not in self._pending:
                continue

            args = {}
            duplicate = None
            for a in call.arguments:
                if a.name in args:
                    duplicate = a.name
                args[a.name] = a.value
            if duplicate is not None:
                outcome_content, is_error = f"ERROR: Parameter {duplicate} given more than once", True
            else:
                logger.debug("Dispatching %s (%s)", call.name, call.id)
                outcome = await invoker.execute(call.name, args, call_id=call.id)
                outcome_content, is_error = outcome.content, not outcome.ok

            if call.name not in transcript.used_tools:
                transcript.used_tools.append(call.name)

            if self._pending.pop(call.id, None) is None:
                logger.debug("Dropping result of %s; the call was already answered", call.id)
                continue
            turn.tool_results[call.id] = outcome_content
            await self._deliver(thread_id, call.id, outcome_content, is_error)
            await self._settle(thread_id)

        await self._settle(thread_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _should_stop(self, epoch: int) -> bool:
        return self._lock.cancel_requested or self._lock.is_stale(epoch)

    def _interrupted(self, transcript: AgentTranscript) -> str:
        transcript.cancelled = True
        transcript.final_response = self.config.interrupted_text
        return self.config.interrupted_text

    def _owe_all(self, text: str) -> None:
        for call_id in list(self._pending):
            del self._pending[call_id]
            self._owed.append((call_id, text))

    def _owe_epoch(self, epoch: int, text: str) -> None:
        for call_id, pending in list(self._pending.items()):
            if pending.epoch == epoch:
                del self._pending[call_id]
                self._owed.append((call_id, text))

    def _owe_leftovers(self, epoch: int) -> None:
        # Only finds calls when the loop left early on an error or task cancellation;
        # the next prompt settles them before sending its user message
        before = len(self._owed)
        self._owe_epoch(epoch, self.config.unanswered_call_text)
        if len(self._owed) > before:
            logger.warning("Queued %d unanswered call(s) left by an interrupted prompt", len(self._owed) - before)

    async def _settle(self, thread_id: str) -> None:
        """Deliver results queued by cancel(), force or budget exhaustion."""
        while self._owed:
            call_id, text = self._owed.pop(0)
            await self._deliver(thread_id, call_id, text, True)

    async def _abandon_batch(self, thread_id: str, result: object) -> None:
        # A superseded loop still owes the provider an answer for calls it just received
        if isinstance(result, ToolCallBatch):
            for call in result.calls:
                await self._deliver(thread_id, call.id, self.config.cancelled_call_text, True)

    async def _deliver(self, thread_id: str, call_id: str, content: str, is_error: bool) -> None:
        await self.provider.add_message(
            thread_id, ChatMessage(role="tool", content=content, call_id=call_id, is_error=is_error)
        )

    # ------------------------------------------------------------------
    # Callables
    # ------------------------------------------------------------------

    @ToolSet.callable(
        "Search the conversation history. Pass an empty text to match everything; "
        "time range bounds are unix timestamps in seconds, 0 for no bound.",
        name="searchHistory",
    )
    async def search_history(self, text: str = "", time_range_from: float = 0, time_range_to: float = 0) -> str:
        if self._thread_id is None:
            return NOTHING_FOUND
        time_range = None
        if time_range_from or time_range_to:
            time_range = (time_range_from or None, time_range_to or None)
        return await self.provider.search_history(self._thread_id, text or None, time_range)

    async def ask_knowledge_agent(self, question: str) -> str:
        if self.knowledge_agent is None:
            return "Knowledge agent is not available."
        return await self.knowledge_agent.prompt(question)


__all__ = ["Assistant"]
