"""SIMRS AI Agent: an agentic chat front-end for a hospital information system.

Architecture Overview
=====================

A single coordinator LLM (Claude via ``langchain-anthropic``) is bound to five
hospital tools and Anthropic's server-side web search.  A **LangGraph**
state machine drives each user turn:

1. **model** — sends the conversation (or the last batch of tool results)
   to the coordinator.
2. **tools** — runs the requested tools, in order, against the in-memory
   hospital store and returns their results to the model.

Routing: model → (tool calls?) → tools → model (loop until no tool calls → END)

Each turn yields the answer text, the agent label of the sub-agent that
handled it (patient info, scheduling, medical records, billing, or
search-grounded), cited source URLs and an optional generated document.

Package Structure
-----------------
- ``simrs/agent.py`` — LangGraph dispatch loop
- ``simrs/session.py`` — conversation session lifecycle and transcript
- ``simrs/classifier.py`` — agent label resolution
- ``simrs/config.py`` — configuration from environment variables
- ``simrs/prompts.py`` — coordinator instruction and canned messages
- ``simrs/models.py`` — pydantic records and turn results
- ``simrs/services/`` — in-memory hospital store
- ``simrs/tools/`` — tool declarations and the executor
- ``simrs/api/`` + ``simrs/server.py`` — FastAPI application
- ``simrs/main.py`` — CLI chat interface
"""
