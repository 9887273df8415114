"""CLI entry point for the Muay Thai Gym Scout.

A terminal chat against the same graph the API uses, plus two inspection
helpers for checking what the Airtable base actually contains.

Usage:
    python -m gymscout.main                    # chat (quiet)
    python -m gymscout.main --debug            # chat, showing API calls
    python -m gymscout.main --inspect          # field names of the Gyms table
    python -m gymscout.main --inspect Waitlist # ...or of any other table
    python -m gymscout.main --videos           # each gym's primary video URL
"""

from __future__ import annotations

import argparse
import logging
import sys

from gymscout import config
from gymscout.agent import ask, create_gym_scout_agent
from gymscout.services.airtable_client import (
    AirtableAPIError,
    AirtableClient,
    get_airtable_client,
)

logger = logging.getLogger(__name__)

VIDEO_URL_FIELD = "Primary Video URL"


def _configure_logging(debug: bool = False) -> None:
    """WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("gymscout").setLevel(logging.DEBUG if debug else logging.INFO)


def inspect_table(client: AirtableClient, table: str) -> None:
    """Print every field name in *table* and the video fields of its first row."""
    records = client.list_records(table)
    if not records:
        print(f"No records found in {table!r}.")
        return

    print(f"\nFound {len(records)} rows in {table!r}. All field names:\n")
    for name in client.field_names(table):
        print(f"  - {name}")

    first = records[0].fields
    video_fields = [name for name in first if "video" in name.lower()]
    if video_fields:
        print("\nVideo-related fields (first row):\n")
        for name in video_fields:
            print(f"  {name}: {first[name] or 'empty'}")


def list_videos(client: AirtableClient) -> None:
    for record in client.list_records(config.GYMS_TABLE):
        name = record.first("Gym Name", "Name") or "Unknown"
        print(f"{name}: {record.fields.get(VIDEO_URL_FIELD) or 'NO URL'}")


def chat_loop(agent) -> None:
    print("\n" + "=" * 60)
    print("  Muay Thai Gym Scout - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' to clear the conversation.")
    print("=" * 60 + "\n")

    history: list[tuple[str, str]] = []
    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGood luck with your training!")
            break
        if user_input.lower() == "new":
            history.clear()
            print("\n>> Conversation cleared.\n")
            continue

        try:
            reply = ask(agent, user_input, history)
        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nScout: Sorry, something went wrong: {e}\n")
            continue

        history.extend([("user", user_input), ("assistant", reply)])
        print(f"\nScout: {reply}\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Muay Thai Gym Scout CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    parser.add_argument(
        "--inspect", nargs="?", const=config.GYMS_TABLE, metavar="TABLE",
        help="Print the field names of an Airtable table (default: the gyms table)",
    )
    parser.add_argument(
        "--videos", action="store_true",
        help=f"Print each gym's {VIDEO_URL_FIELD!r}",
    )
    args = parser.parse_args(argv)
    _configure_logging(debug=args.debug)

    client = get_airtable_client()

    if args.inspect or args.videos:
        if client is None:
            print("Airtable is not configured (set AIRTABLE_API_KEY and AIRTABLE_BASE_ID).")
            return 1
        try:
            if args.inspect:
                inspect_table(client, args.inspect)
            if args.videos:
                list_videos(client)
        except AirtableAPIError as e:
            print(f"Error: {e}")
            return 1
        return 0

    if not config.chat_configured():
        print("Chat is not configured: set the LLM key and the Airtable key/base in .env.")
        return 1

    chat_loop(create_gym_scout_agent(client))
    return 0


if __name__ == "__main__":
    sys.exit(main())
