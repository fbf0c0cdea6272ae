"""Unit tests for the support agent and its tools."""

from unittest.mock import AsyncMock

import pytest
from mocks.mock_providers import ScriptedLLM

from support_desk.errors import NotFoundError
from support_desk.models.conversation import ConversationDTO
from support_desk.models.llm import ModelTier, ModelTurn, ToolCall
from support_desk.models.message import MessageDTO, MessageRole
from support_desk.models.pagination import PaginationResult
from support_desk.services.prompts import SUPPORT_AGENT_PROMPT
from support_desk.services.support_agent import ConversationTools, SupportAgent


@pytest.fixture
def conversations() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def knowledge() -> AsyncMock:
    knowledge = AsyncMock()
    knowledge.search_answer.return_value = "Orders ship within 2 days."
    return knowledge


@pytest.fixture
def tools(
    conversations: AsyncMock,
    knowledge: AsyncMock,
    mock_threads: AsyncMock,
) -> ConversationTools:
    return ConversationTools(conversations, knowledge, mock_threads)


def _saved_contents(threads: AsyncMock) -> list[tuple[MessageRole, str]]:
    return [
        (call.args[1].role, call.args[1].content) for call in threads.save_message.call_args_list
    ]


class TestConversationTools:
    """Tests for the agent's tool capabilities."""

    @pytest.mark.asyncio
    async def test_escalate(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        result = await tools.call("thread_1", ToolCall(id="1", name="escalate_conversation"))

        assert result == "Conversation escalated to a human operator"
        conversations.escalate.assert_called_once_with("thread_1")
        assert _saved_contents(mock_threads) == [
            (MessageRole.ASSISTANT, "Conversation escalated to a human operator.")
        ]

    @pytest.mark.asyncio
    async def test_resolve(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        result = await tools.call("thread_1", ToolCall(id="1", name="resolve_conversation"))

        assert result == "Conversation resolved"
        conversations.resolve.assert_called_once_with("thread_1")
        assert _saved_contents(mock_threads) == [(MessageRole.ASSISTANT, "Conversation resolved.")]

    @pytest.mark.asyncio
    async def test_search_answers_from_conversation_org(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        knowledge: AsyncMock,
        mock_threads: AsyncMock,
        sample_conversation: ConversationDTO,
    ) -> None:
        conversations.get_by_thread_id.return_value = sample_conversation

        result = await tools.call(
            "thread_1", ToolCall(id="1", name="search", arguments={"query": "shipping time"})
        )

        assert result == "Orders ship within 2 days."
        knowledge.search_answer.assert_called_once_with("org_1", "shipping time")
        assert _saved_contents(mock_threads) == [
            (MessageRole.ASSISTANT, "Orders ship within 2 days.")
        ]

    @pytest.mark.asyncio
    async def test_search_without_conversation(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        knowledge: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        conversations.get_by_thread_id.return_value = None

        result = await tools.search("thread_x", "anything")

        assert result == "Conversation not found"
        knowledge.search_answer.assert_not_called()
        mock_threads.save_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_thread(self, tools: ConversationTools, conversations: AsyncMock) -> None:
        assert await tools.call(None, ToolCall(id="1", name="resolve_conversation")) == (
            "Missing thread Id"
        )
        assert await tools.escalate_conversation("") == "Missing thread Id"
        conversations.resolve.assert_not_called()
        conversations.escalate.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tools: ConversationTools) -> None:
        result = await tools.call("thread_1", ToolCall(id="1", name="refund_order"))
        assert result == "Unknown tool: refund_order"

    def test_specs_declare_three_tools(self, tools: ConversationTools) -> None:
        names = {spec.name for spec in tools.specs}
        assert names == {"escalate_conversation", "resolve_conversation", "search"}


class TestSupportAgent:
    """Tests for the reply loop."""

    @pytest.mark.asyncio
    async def test_plain_reply_records_prompt_and_answer(
        self,
        tools: ConversationTools,
        mock_threads: AsyncMock,
    ) -> None:
        llm = ScriptedLLM([ModelTurn(text="Hi Ada!")])
        agent = SupportAgent(llm, mock_threads, tools)

        reply = await agent.generate_reply("thread_1", "Hello")

        assert reply == "Hi Ada!"
        assert _saved_contents(mock_threads) == [
            (MessageRole.USER, "Hello"),
            (MessageRole.ASSISTANT, "Hi Ada!"),
        ]
        system_prompt, _, tier = llm.requests[0]
        assert system_prompt == SUPPORT_AGENT_PROMPT
        assert tier == ModelTier.DEFAULT

    @pytest.mark.asyncio
    async def test_history_is_sent_oldest_first(
        self,
        tools: ConversationTools,
        mock_threads: AsyncMock,
    ) -> None:
        newest = MessageDTO(
            id="m2",
            thread_id="thread_1",
            order=2,
            role=MessageRole.USER,
            content="Hello",
            created_at=2,
        )
        oldest = MessageDTO(
            id="m1",
            thread_id="thread_1",
            order=1,
            role=MessageRole.ASSISTANT,
            content="Welcome",
            created_at=1,
        )
        mock_threads.list_messages.return_value = PaginationResult[MessageDTO](
            page=[newest, oldest]
        )
        llm = ScriptedLLM([ModelTurn(text="ok")])
        agent = SupportAgent(llm, mock_threads, tools, history_limit=10)

        await agent.generate_reply("thread_1", "Hello")

        _, messages, _ = llm.requests[0]
        assert [(m.role, m.text) for m in messages] == [
            ("assistant", "Welcome"),
            ("user", "Hello"),
        ]
        assert mock_threads.list_messages.call_args.kwargs["order"] == "desc"
        assert mock_threads.list_messages.call_args.args[1].num_items == 10

    @pytest.mark.asyncio
    async def test_tool_round_trip(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        llm = ScriptedLLM(
            [
                ModelTurn(tool_calls=[ToolCall(id="call_1", name="resolve_conversation")]),
                ModelTurn(text="Glad I could help. Goodbye!"),
            ]
        )
        agent = SupportAgent(llm, mock_threads, tools)

        reply = await agent.generate_reply("thread_1", "Thanks, that's all")

        assert reply == "Glad I could help. Goodbye!"
        conversations.resolve.assert_called_once_with("thread_1")
        _, second_messages, _ = llm.requests[1]
        assistant_turn, tool_result = second_messages[-2:]
        assert assistant_turn.tool_calls[0].name == "resolve_conversation"
        assert tool_result.role == "tool"
        assert tool_result.tool_call_id == "call_1"
        assert tool_result.text == "Conversation resolved"
        assert _saved_contents(mock_threads) == [
            (MessageRole.USER, "Thanks, that's all"),
            (MessageRole.ASSISTANT, "Conversation resolved."),
            (MessageRole.ASSISTANT, "Glad I could help. Goodbye!"),
        ]

    @pytest.mark.asyncio
    async def test_step_limit_stops_the_loop(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        looping = ModelTurn(tool_calls=[ToolCall(id="c", name="escalate_conversation")])
        llm = ScriptedLLM([looping, looping, looping, looping])
        agent = SupportAgent(llm, mock_threads, tools, max_steps=2)

        reply = await agent.generate_reply("thread_1", "Help")

        assert reply is None
        assert len(llm.requests) == 2
        assert conversations.escalate.call_count == 2

    @pytest.mark.asyncio
    async def test_empty_reply_saves_nothing(
        self,
        tools: ConversationTools,
        mock_threads: AsyncMock,
    ) -> None:
        agent = SupportAgent(ScriptedLLM(), mock_threads, tools)

        assert await agent.generate_reply("thread_1", "Hello") is None
        assert _saved_contents(mock_threads) == [(MessageRole.USER, "Hello")]

    @pytest.mark.asyncio
    async def test_tool_failure_propagates(
        self,
        tools: ConversationTools,
        conversations: AsyncMock,
        mock_threads: AsyncMock,
    ) -> None:
        conversations.escalate.side_effect = NotFoundError("Conversation not found")
        llm = ScriptedLLM([ModelTurn(tool_calls=[ToolCall(id="c", name="escalate_conversation")])])
        agent = SupportAgent(llm, mock_threads, tools)

        with pytest.raises(NotFoundError):
            await agent.generate_reply("thread_1", "Human please")
