"""LangGraph chat agent for the Muay Thai gym scout.

Architecture:
  A two-node LangGraph StateGraph:

    1. **ground**   - fetches the Gyms table from Airtable and flattens it
                      into the knowledge text + verified gym names
    2. **chatbot**  - one chat-model call with the grounded system prompt,
                      the prior turns, and the new user message

  Routing:
    ground → chatbot → END

  Memory:
    None on the server.  The frontend keeps the conversation and sends it
    back with every request, so the graph is compiled without a
    checkpointer and every invocation starts from a clean state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Annotated, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AnyMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

from gymscout import config
from gymscout.normalizer import build_knowledge
from gymscout.prompts import get_system_prompt
from gymscout.records import RawRecord
from gymscout.services.airtable_client import AirtableClient
from gymscout.services.metrics import timed_call

logger = logging.getLogger(__name__)

USER_ROLES = {"user", "human"}
ASSISTANT_ROLES = {"assistant", "bot", "model", "ai"}


# ── State schema ─────────────────────────────────────────────────────


class ChatState(TypedDict):
    """The state that flows through the graph.

    ``knowledge`` and ``gym_names`` are written by the ground node and only
    read by the chatbot node to build the system prompt.
    """

    messages: Annotated[list[AnyMessage], add_messages]
    knowledge: str
    gym_names: list[str]


# ── LLM builder ─────────────────────────────────────────────────────


def _build_llm() -> BaseChatModel:
    """Build the chat model for the configured provider (no tools)."""
    if config.LLM_PROVIDER == "anthropic":
        return ChatAnthropic(
            model=config.ANTHROPIC_MODEL_NAME,
            api_key=config.ANTHROPIC_API_KEY,
            temperature=0.3,
            max_tokens=config.CHAT_MAX_TOKENS,
        )
    return ChatGoogleGenerativeAI(
        model=config.GOOGLE_MODEL_NAME,
        google_api_key=config.GOOGLE_API_KEY,
        temperature=0.3,
        max_output_tokens=config.CHAT_MAX_TOKENS,
    )


# ── Conversation history ────────────────────────────────────────────


def history_to_messages(
    history: Iterable[tuple[str, str]],
    max_turns: int | None = None,
) -> list[AnyMessage]:
    """Convert client-side ``(role, text)`` turns into LangChain messages.

    Blank turns and unknown roles are dropped, only the last *max_turns*
    are kept, and leading assistant turns (the UI's canned welcome) are
    removed so the conversation always opens with the user.
    """
    messages: list[AnyMessage] = []
    for role, text in history:
        role = (role or "").strip().lower()
        text = (text or "").strip()
        if not text:
            continue
        if role in USER_ROLES:
            messages.append(HumanMessage(content=text))
        elif role in ASSISTANT_ROLES:
            messages.append(AIMessage(content=text))
        else:
            logger.debug("Dropping history turn with unknown role %r", role)

    limit = config.CHAT_HISTORY_TURNS if max_turns is None else max_turns
    messages = messages[-limit:] if limit > 0 else []
    while messages and isinstance(messages[0], AIMessage):
        messages.pop(0)
    return messages


def message_text(message: Any) -> str:
    """Plain text of a model message (Gemini may return content blocks)."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


# ── Node: ground ────────────────────────────────────────────────────


def _make_ground_node(fetch_gyms: Callable[[], list[RawRecord]]):
    """Create the node that loads gym rows and builds the knowledge text."""

    def ground_node(state: ChatState) -> dict:
        records = fetch_gyms()
        knowledge = build_knowledge(records)
        logger.debug(
            "Grounded on %d gyms (%d chars of knowledge)",
            len(knowledge.gym_names), len(knowledge.text),
        )
        return {"knowledge": knowledge.text, "gym_names": knowledge.gym_names}

    return ground_node


# ── Node: chatbot ───────────────────────────────────────────────────


def _make_chatbot_node():
    """Create the chatbot node.  The model client is built once per graph."""
    llm = _build_llm()

    def chatbot_node(state: ChatState) -> dict:
        system = SystemMessage(
            content=get_system_prompt(state.get("knowledge", ""), state.get("gym_names", []))
        )
        with timed_call("llm", "chat_invoke"):
            response = llm.invoke([system] + state["messages"])
        return {"messages": [response]}

    return chatbot_node


# ── Graph assembly ───────────────────────────────────────────────────


def create_gym_scout_agent(
    airtable: AirtableClient | None = None,
    table: str | None = None,
):
    """Build and compile the gym scout graph.

    Returns a compiled graph that can be invoked with:
        graph.invoke({"messages": [HumanMessage(content="...")]})
    """
    gyms_table = table or config.GYMS_TABLE

    def fetch_gyms() -> list[RawRecord]:
        if airtable is None:
            logger.warning("Airtable is not configured; chatting without gym data")
            return []
        return airtable.fetch_table(gyms_table)

    graph = StateGraph(ChatState)
    graph.add_node("ground", _make_ground_node(fetch_gyms))
    graph.add_node("chatbot", _make_chatbot_node())
    graph.set_entry_point("ground")
    graph.add_edge("ground", "chatbot")
    graph.add_edge("chatbot", END)

    compiled = graph.compile()
    logger.debug(
        "Gym scout agent compiled - provider: %s, table: %s",
        config.LLM_PROVIDER, gyms_table,
    )
    return compiled


def ask(agent, message: str, history: Iterable[tuple[str, str]] = ()) -> str:
    """Run one chat turn and return the model's reply text unmodified."""
    messages = history_to_messages(history) + [HumanMessage(content=message)]
    result = agent.invoke({"messages": messages, "knowledge": "", "gym_names": []})
    replies = result.get("messages", [])
    if not replies:
        raise RuntimeError("Agent produced no response")
    return message_text(replies[-1])
