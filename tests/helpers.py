"""Message builders shared by the dispatch, session and API tests."""

from __future__ import annotations

from unittest.mock import MagicMock

from langchain_core.messages import AIMessage, ToolMessage


def tool_call_reply(*calls: tuple[str, dict]) -> AIMessage:
    """An AIMessage requesting the given ``(name, args)`` tool calls."""
    return AIMessage(
        content="",
        tool_calls=[
            {"name": name, "args": args, "id": f"toolu_{i}"}
            for i, (name, args) in enumerate(calls, start=1)
        ],
    )


def grounded_reply(text: str, *urls: str) -> AIMessage:
    """A final AIMessage whose text cites the given URLs, as web search returns them."""
    return AIMessage(
        content=[
            {
                "type": "web_search_tool_result",
                "tool_use_id": "srvtoolu_1",
                "content": [{"type": "web_search_result", "url": url, "title": url} for url in urls],
            },
            {
                "type": "text",
                "text": text,
                "citations": [
                    {"type": "web_search_result_location", "url": url, "title": url, "cited_text": text}
                    for url in urls
                ],
            },
        ]
    )


def runaway_model(stop_text: str, final_text: str) -> MagicMock:
    """A mock chat model that requests ``getPatientInfo`` on every call.

    It gives up and answers ``final_text`` only once the newest message it is
    sent reads ``stop_text``.
    """

    def reply(messages):
        if messages[-1].content == stop_text:
            return AIMessage(content=final_text)
        return tool_call_reply(("getPatientInfo", {"query": "Budi"}))

    llm = MagicMock()
    llm.invoke.side_effect = reply
    return llm


def unanswered_tool_calls(messages) -> list[str]:
    """Ids of tool calls that are not directly followed by their ToolMessage."""
    unanswered = []
    for i, message in enumerate(messages):
        answered = set()
        for follower in messages[i + 1:]:
            if not isinstance(follower, ToolMessage):
                break
            answered.add(follower.tool_call_id)
        calls = getattr(message, "tool_calls", None) or []
        unanswered += [call["id"] for call in calls if call["id"] not in answered]
    return unanswered
