"""
Terminal flashcard review.

    timeline-review --base-url http://localhost:8000/api/v1

Loads the due cards, shows them one at a time in random order and records
each answer on the server.
"""
import argparse
import logging
import sys
from typing import Callable, Optional, TextIO

from timeline.client.api_client import DEFAULT_BASE_URL, TimelineApiClient
from timeline.core.exceptions import TimelineException
from timeline.services.review_service import CardStore, ReviewSession

logger = logging.getLogger(__name__)

PROMPT = "[r]ight  [w]rong  [e]dit  [d]elete  [q]uit > "


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="timeline-review", description="Review due history flashcards")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API base URL including /api/v1")
    parser.add_argument("--limit", type=int, default=None, help="Stop after this many answers")
    parser.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds")
    parser.add_argument("--verbose", action="store_true", help="Log HTTP and scheduling details")
    return parser


def run_review(
    store: CardStore,
    limit: Optional[int] = None,
    read: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
    session: Optional[ReviewSession] = None,
) -> int:
    """
    Run the interactive loop until the pool is empty, the limit is reached or the user quits.

    Returns:
        Number of cards answered
    """
    session = session or ReviewSession(store)
    total = session.load()
    print(f"{total} card(s) due", file=out)

    answered = 0
    while limit is None or answered < limit:
        card = session.next_card()
        if card is None:
            print("All due cards reviewed.", file=out)
            break

        print(f"\nQ: {card.question}", file=out)
        read("(press Enter to show the answer) ")
        print(f"A: {card.answer}", file=out)

        choice = read(PROMPT).strip().lower()
        if choice in ("q", "quit"):
            break
        try:
            if choice in ("r", "right", "y"):
                result = session.answer(card.id, True)
                answered += 1
                print(f"-> {result.level.value}, next review {result.due_at:%Y-%m-%d}", file=out)
            elif choice in ("w", "wrong", "n"):
                result = session.answer(card.id, False)
                answered += 1
                print(f"-> {result.level.value}, next review {result.due_at:%Y-%m-%d}", file=out)
            elif choice in ("e", "edit"):
                question = read("New question (empty keeps it): ").strip() or None
                answer = read("New answer (empty keeps it): ").strip() or None
                session.edit(card.id, question, answer)
                print("Card updated.", file=out)
            elif choice in ("d", "delete"):
                session.delete(card.id)
                print("Card deleted.", file=out)
            else:
                print("Unknown choice.", file=out)
                continue
        except TimelineException as e:
            print(f"Error: {e}", file=out)
            continue
        print(f"{session.remaining} card(s) remaining", file=out)

    return answered


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    client = TimelineApiClient(args.base_url, timeout=args.timeout)
    try:
        answered = run_review(client, limit=args.limit)
    except TimelineException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nSession ended.")
        return 0
    print(f"Answered {answered} card(s).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
