"""LangGraph dispatch loop for the SIMRS coordinator.

Architecture:
  The coordinator is a two-node LangGraph StateGraph:

    1. **model** — Claude with the five hospital tools and the server-side
                   ``web_search`` tool bound.  Receives either the user's
                   message or the previous batch of tool results.
    2. **tools** — executes every pending tool call of the last reply, in
                   order, against the :class:`~simrs.services.store.HospitalStore`.

  Routing:
    model → (pending tool calls?) → tools → model (loop)
          → (paused server turn?) → model
          → (otherwise)           → END

  Tool faults never leave the ``tools`` node; they are returned to the
  model as error results.  A fault in the model call itself propagates out
  of :func:`run_turn` and ends the turn.  A turn that keeps requesting
  tools is cut off after ``MAX_TOOL_ITERATIONS`` round trips.

  Memory:
    The MemorySaver checkpoint keeps the conversation per ``thread_id``;
    one :class:`~simrs.session.ConversationSession` owns one thread.  The
    per-turn fields (``tools_executed``, ``generated_document``) are reset
    by the input of every turn.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Annotated, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import LanguageModelInput
from langchain_core.messages import AIMessage, AnyMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.messages.tool import ToolCall
from langchain_core.runnables import Runnable
from langgraph.checkpoint.memory import MemorySaver
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

from simrs.classifier import resolve_agent_label
from simrs.config import (
    MAX_TOOL_ITERATIONS,
    MODEL_MAX_TOKENS,
    MODEL_NAME,
    MODEL_TEMPERATURE,
    WEB_SEARCH_ENABLED,
)
from simrs.models import GeneratedDocument, TurnResult
from simrs.prompts import FALLBACK_REPLY, get_system_prompt
from simrs.tools.executor import ToolExecutor
from simrs.tools.registry import TOOL_REGISTRY, WEB_SEARCH_TOOL_NAME, web_search_tool

logger = logging.getLogger(__name__)

ChatModel = Runnable[LanguageModelInput, BaseMessage]

TOOL_LIMIT_REACHED = "Batas pemanggilan fungsi tercapai; permintaan dihentikan."


# ── State schema ─────────────────────────────────────────────────────


class DispatchState(TypedDict):
    """The state that flows through the graph.

    ``messages`` uses the ``add_messages`` reducer and accumulates the whole
    conversation.  ``tools_executed`` lists, in order, the domain tools that
    ran during the current turn; ``generated_document`` holds the document
    produced this turn (as a plain dict so the checkpoint can store it).
    """

    messages: Annotated[list[AnyMessage], add_messages]
    tools_executed: list[str]
    generated_document: dict[str, Any] | None


# ── Reply inspection ────────────────────────────────────────────────


def pending_tool_calls(message: BaseMessage) -> list[ToolCall]:
    """Client-side tool calls the model is waiting on.

    The web search runs on Anthropic's side and never needs a result from us.
    """
    calls = getattr(message, "tool_calls", None) or []
    return [call for call in calls if call.get("name") != WEB_SEARCH_TOOL_NAME]


def message_text(message: BaseMessage) -> str:
    """Concatenate the text blocks of a reply."""
    content = message.content
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()


def extract_grounding_urls(message: BaseMessage) -> list[str]:
    """Collect cited source URLs from a reply, deduplicated in first-seen order.

    Anthropic reports web search grounding in two places: the
    ``web_search_tool_result`` block listing the pages it read, and the
    ``citations`` attached to text blocks.
    """
    if isinstance(message.content, str):
        return []

    urls: list[str] = []
    for block in message.content:
        if not isinstance(block, dict):
            continue
        if block.get("type") == "web_search_tool_result" and isinstance(block.get("content"), list):
            urls.extend(item.get("url") for item in block["content"] if isinstance(item, dict))
        for citation in block.get("citations") or []:
            if isinstance(citation, dict):
                urls.append(citation.get("url"))
    return list(dict.fromkeys(url for url in urls if url))


# ── LLM builder ─────────────────────────────────────────────────────


def build_llm(api_key: str) -> ChatModel:
    """Build the coordinator LLM with the hospital tools (and web search) bound."""
    llm = ChatAnthropic(
        model=MODEL_NAME,
        api_key=api_key,
        temperature=MODEL_TEMPERATURE,
        max_tokens=MODEL_MAX_TOKENS,
    )
    tools: list[dict[str, Any]] = [decl.to_anthropic_tool() for decl in TOOL_REGISTRY.values()]
    if WEB_SEARCH_ENABLED:
        tools.append(web_search_tool())
    return llm.bind_tools(tools)


# ── Nodes ────────────────────────────────────────────────────────────


def _make_model_node(llm: ChatModel):
    """Create the node that sends the conversation to the model."""

    def model_node(state: DispatchState) -> dict:
        system = SystemMessage(content=get_system_prompt())
        t0 = time.perf_counter()
        try:
            response = llm.invoke([system] + state["messages"])
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            logger.warning("Model call failed after %.0fms: %s", elapsed, type(exc).__name__)
            raise
        elapsed = (time.perf_counter() - t0) * 1000
        logger.debug(
            "model responded in %.0fms with %d pending tool call(s)",
            elapsed, len(pending_tool_calls(response)),
        )
        return {"messages": [response]}

    return model_node


def _make_tools_node(executor: ToolExecutor):
    """Create the node that runs every pending tool call of the last reply, in order."""

    def tools_node(state: DispatchState) -> dict:
        executed = list(state.get("tools_executed") or [])
        document = state.get("generated_document")
        results: list[ToolMessage] = []

        for call in pending_tool_calls(state["messages"][-1]):
            outcome = executor.execute(call["name"], call.get("args"))
            if outcome.executed:
                executed.append(outcome.name)
            if outcome.document is not None:
                document = outcome.document.model_dump()
            results.append(
                ToolMessage(
                    content=json.dumps({"result": outcome.payload}, ensure_ascii=False, default=str),
                    tool_call_id=call.get("id") or "",
                    name=call["name"],
                    status="error" if outcome.is_error else "success",
                )
            )

        return {"messages": results, "tools_executed": executed, "generated_document": document}

    return tools_node


# ── Conditional edge ─────────────────────────────────────────────────


def should_execute_tools(state: DispatchState) -> str:
    """Route to the tools node while the last reply still has pending tool calls.

    A ``pause_turn`` stop means Anthropic suspended a long server-side web
    search; the reply is sent back as-is so the model can resume it.
    """
    last = state["messages"][-1]
    if pending_tool_calls(last):
        return "tools"
    if last.response_metadata.get("stop_reason") == "pause_turn":
        return "model"
    return END


# ── Graph assembly ───────────────────────────────────────────────────


def create_dispatch_agent(executor: ToolExecutor, llm: ChatModel):
    """Build and compile the dispatch graph.

    Returns a compiled graph to be driven through :func:`run_turn`.
    """
    graph = StateGraph(DispatchState)

    graph.add_node("model", _make_model_node(llm))
    graph.add_node("tools", _make_tools_node(executor))

    graph.set_entry_point("model")
    graph.add_conditional_edges(
        "model", should_execute_tools, {"tools": "tools", "model": "model", END: END}
    )
    graph.add_edge("tools", "model")

    compiled = graph.compile(checkpointer=MemorySaver())
    logger.debug("SIMRS dispatch agent compiled with %d tools", len(TOOL_REGISTRY))
    return compiled


def _close_pending_calls(agent, config: dict) -> None:
    """Answer the tool calls an aborted turn left open with error results.

    Anthropic rejects a history in which a ``tool_use`` has no matching
    result, so without this every later turn on the thread would fail.
    """
    messages = agent.get_state(config).values.get("messages") or []
    calls = pending_tool_calls(messages[-1]) if messages else []
    if not calls:
        return
    error = json.dumps({"result": {"error": TOOL_LIMIT_REACHED}}, ensure_ascii=False)
    agent.update_state(
        config,
        {
            "messages": [
                ToolMessage(
                    content=error,
                    tool_call_id=call.get("id") or "",
                    name=call["name"],
                    status="error",
                )
                for call in calls
            ]
        },
        as_node="tools",
    )


def run_turn(agent, thread_id: str, text: str) -> TurnResult:
    """Drive one user turn through the graph and assemble the result.

    Raises whatever the model call raised; the conversation stored for
    ``thread_id`` is left as it was at the point of failure.  A turn that
    exceeds ``MAX_TOOL_ITERATIONS`` raises ``GraphRecursionError`` after its
    open tool calls have been closed, so the thread can take the next turn.
    """
    # a model and a tools step per iteration, plus the final model step
    config = {
        "configurable": {"thread_id": thread_id},
        "recursion_limit": 2 * MAX_TOOL_ITERATIONS + 1,
    }
    try:
        result = agent.invoke(
            {
                "messages": [HumanMessage(content=text)],
                "tools_executed": [],
                "generated_document": None,
            },
            config=config,
        )
    except GraphRecursionError:
        logger.warning(
            "Thread %s exceeded %d tool iterations; aborting turn", thread_id, MAX_TOOL_ITERATIONS
        )
        _close_pending_calls(agent, config)
        raise

    final: AIMessage = result["messages"][-1]
    grounding_urls = extract_grounding_urls(final)
    tools_executed = result.get("tools_executed") or []
    document = result.get("generated_document")

    return TurnResult(
        text=message_text(final) or FALLBACK_REPLY,
        agent_used=resolve_agent_label(tools_executed, bool(grounding_urls)),
        grounding_urls=grounding_urls,
        generated_document=GeneratedDocument.model_validate(document) if document else None,
    )
