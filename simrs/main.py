"""CLI entry point for the SIMRS agent.

A terminal chat with the coordinator, for development and demos.  For the
HTTP API use the FastAPI server (``simrs/server.py``).

Usage:
    python -m simrs.main            # normal mode (quiet)
    python -m simrs.main --debug    # debug mode (shows tool calls and API traffic)
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from simrs.models import AgentLabel, TurnResult
from simrs.services.store import HospitalStore
from simrs.session import SimrsError, open_session

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("simrs").setLevel(logging.DEBUG if debug else logging.INFO)


def render_turn(result: TurnResult) -> str:
    """Format one assistant turn: badge, answer, document and cited hostnames."""
    lines = [f"[{result.agent_used.display_name}] {result.text}"]

    doc = result.generated_document
    if doc is not None:
        lines.append("")
        lines.append(f"  📄 {doc.title} ({doc.file_format.upper()})")
        lines.extend(f"     {line}" for line in doc.content.splitlines())

    if result.grounding_sources:
        lines.append("")
        lines.append("  Sumber:")
        lines.extend(f"    - {src.hostname} ({src.url})" for src in result.grounding_sources)

    return "\n".join(lines)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="SIMRS AI Agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including tool calls and HTTP requests",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  SIMRS AI Agent - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' for a new session.")
    print("=" * 60 + "\n")

    store = HospitalStore.with_seed_data()
    session = open_session(store)
    print(f"[{AgentLabel.COORDINATOR.display_name}] {session.transcript[0].text}\n")

    while True:
        try:
            user_input = input("Anda: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nSampai jumpa!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nSampai jumpa!")
            break

        if user_input.lower() == "new":
            session = open_session(store)
            print(f"\n>> New session started: {session.session_id[:8]}...\n")
            continue

        try:
            result = session.submit(user_input)
        except KeyboardInterrupt:
            print("\n\nSampai jumpa!")
            break
        except SimrsError as e:
            print(f"\n{e}\n")
            continue

        print(f"\n{render_turn(result)}\n")


if __name__ == "__main__":
    main()
