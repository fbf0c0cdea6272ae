"""AI support agent for support_desk.

The agent answers contact messages with a tool-calling model. Its tools
are a small capability object bound to the conversation store and the
knowledge base; tool calls run inline between model turns.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from support_desk.interfaces.llm import LLMInterface
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger, log_context
from support_desk.models.llm import ModelTier, PromptMessage, PromptPart, ToolCall, ToolSpec
from support_desk.models.message import MessageDTO, MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts
from support_desk.services.conversations import ConversationService
from support_desk.services.knowledge import KnowledgeService
from support_desk.services.prompts import SUPPORT_AGENT_PROMPT

__all__ = [
    "ConversationTools",
    "SupportAgent",
]

logger = get_logger(__name__)

MISSING_THREAD = "Missing thread Id"
CONVERSATION_NOT_FOUND = "Conversation not found"

TOOL_SPECS: list[ToolSpec] = [
    ToolSpec(
        name="escalate_conversation",
        description="Escalate a conversation",
    ),
    ToolSpec(
        name="resolve_conversation",
        description="Resolve a conversation",
    ),
    ToolSpec(
        name="search",
        description=(
            "Search the knowledge base for relevant information to help answer user questions"
        ),
        parameters={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query to find relevant information",
                },
            },
            "required": ["query"],
        },
    ),
]


class ConversationTools:
    """Capabilities the agent may invoke on its own thread.

    Each tool returns the text reported back to the model. Tools that
    change the conversation also append an announcement to the thread.
    """

    def __init__(
        self,
        conversations: ConversationService,
        knowledge: KnowledgeService,
        threads: ThreadStoreInterface,
    ) -> None:
        self._conversations = conversations
        self._knowledge = knowledge
        self._threads = threads
        self._handlers: dict[str, Callable[[str, dict[str, Any]], Awaitable[str]]] = {
            "escalate_conversation": lambda thread_id, _: self.escalate_conversation(thread_id),
            "resolve_conversation": lambda thread_id, _: self.resolve_conversation(thread_id),
            "search": lambda thread_id, args: self.search(thread_id, str(args.get("query", ""))),
        }

    @property
    def specs(self) -> list[ToolSpec]:
        return TOOL_SPECS

    async def call(self, thread_id: str | None, tool_call: ToolCall) -> str:
        """Run one tool call requested by the model."""
        handler = self._handlers.get(tool_call.name)
        if handler is None:
            logger.warning("agent_tool_unknown", tool=tool_call.name, thread_id=thread_id)
            return f"Unknown tool: {tool_call.name}"
        if not thread_id:
            return MISSING_THREAD

        logger.info("agent_tool_called", tool=tool_call.name, thread_id=thread_id)
        return await handler(thread_id, tool_call.arguments)

    async def escalate_conversation(self, thread_id: str | None) -> str:
        if not thread_id:
            return MISSING_THREAD
        await self._conversations.escalate(thread_id)
        await self._announce(thread_id, "Conversation escalated to a human operator.")
        return "Conversation escalated to a human operator"

    async def resolve_conversation(self, thread_id: str | None) -> str:
        if not thread_id:
            return MISSING_THREAD
        await self._conversations.resolve(thread_id)
        await self._announce(thread_id, "Conversation resolved.")
        return "Conversation resolved"

    async def search(self, thread_id: str | None, query: str) -> str:
        """Answer ``query`` from the conversation's organization knowledge base."""
        if not thread_id:
            return MISSING_THREAD

        conversation = await self._conversations.get_by_thread_id(thread_id)
        if conversation is None:
            return CONVERSATION_NOT_FOUND

        answer = await self._knowledge.search_answer(conversation.organization_id, query)
        await self._announce(thread_id, answer)
        return answer

    async def _announce(self, thread_id: str, content: str) -> None:
        await self._threads.save_message(
            thread_id,
            NewMessage(role=MessageRole.ASSISTANT, content=content),
        )


def _to_prompt(message: MessageDTO) -> PromptMessage | None:
    if message.role == MessageRole.USER:
        return PromptMessage.user(message.content)
    if message.role == MessageRole.ASSISTANT:
        return PromptMessage.assistant(message.content)
    return None


class SupportAgent:
    """Tool-calling agent that replies to contact messages.

    Example:
        agent = SupportAgent(llm, threads, tools, max_steps=5)
        reply = await agent.generate_reply(thread_id, "Where is my order?")
    """

    def __init__(
        self,
        llm: LLMInterface,
        threads: ThreadStoreInterface,
        tools: ConversationTools,
        max_steps: int = 5,
        history_limit: int = 50,
    ) -> None:
        """Initialize the agent.

        Args:
            llm: Tool-calling language model
            threads: Thread store holding the conversation history
            tools: Capabilities offered to the model
            max_steps: Maximum model turns per reply
            history_limit: Most recent thread messages sent as context
        """
        self._llm = llm
        self._threads = threads
        self._tools = tools
        self._max_steps = max_steps
        self._history_limit = history_limit

    async def generate_reply(self, thread_id: str, prompt: str) -> str | None:
        """Record the contact's prompt and generate the agent's reply.

        Returns:
            The reply text persisted to the thread, or None if the model
            ended without text
        """
        with log_context(thread_id=thread_id):
            return await self._reply(thread_id, prompt)

    async def _reply(self, thread_id: str, prompt: str) -> str | None:
        await self._threads.save_message(
            thread_id,
            NewMessage(role=MessageRole.USER, content=prompt),
        )
        messages = await self._history(thread_id)

        text = ""
        step = 0
        for step in range(1, self._max_steps + 1):
            turn = await self._llm.generate_with_tools(
                SUPPORT_AGENT_PROMPT,
                messages,
                self._tools.specs,
                tier=ModelTier.DEFAULT,
            )
            text = turn.text
            if not turn.wants_tools:
                break

            messages.append(
                PromptMessage(
                    role="assistant",
                    parts=[PromptPart.of_text(turn.text)] if turn.text else [],
                    tool_calls=turn.tool_calls,
                )
            )
            for tool_call in turn.tool_calls:
                result = await self._tools.call(thread_id, tool_call)
                messages.append(
                    PromptMessage(
                        role="tool",
                        parts=[PromptPart.of_text(result)],
                        tool_call_id=tool_call.id,
                    )
                )
        else:
            logger.warning("agent_step_limit_reached", thread_id=thread_id, steps=self._max_steps)

        if not text:
            logger.info("agent_reply_empty", thread_id=thread_id, steps=step)
            return None

        await self._threads.save_message(
            thread_id,
            NewMessage(role=MessageRole.ASSISTANT, content=text),
        )
        logger.info("agent_reply_saved", thread_id=thread_id, steps=step)
        return text

    async def _history(self, thread_id: str) -> list[PromptMessage]:
        """Most recent messages of the thread, oldest first."""
        result = await self._threads.list_messages(
            thread_id,
            PaginationOpts(num_items=self._history_limit),
            order="desc",
        )
        prompts = (_to_prompt(m) for m in reversed(result.page))
        return [p for p in prompts if p is not None]
