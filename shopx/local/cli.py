"""Local CLI for the shopx agent.

Runs the transaction pipeline against a real storefront from the terminal.
Progress is printed, the selection prompt is answered on stdin, and the
checkout screenshot is saved to the configured screenshot directory.

Usage:
    uv run -m shopx.local.cli shop "I want a white t-shirt"   # One request
    uv run -m shopx.local.cli shop                             # Interactive loop
    uv run -m shopx.local.cli shop --headed "black hoodie"     # Visible browser
    uv run -m shopx.local.cli preview "white t shirt"          # Rank only, no checkout
"""

import argparse
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv

from shopx.agent.orchestrator import TransactionOrchestrator
from shopx.core.config import Config, load_config
from shopx.core.llm import create_completion_service
from shopx.core.models import OrderOutcome
from shopx.core.notify import NotificationChannel, SelectionMailbox
from shopx.core.retry import RetrySupervisor
from shopx.storefronts import STOREFRONTS, create_page_automation


class TerminalChannel(NotificationChannel):
    """Notification channel that talks to a person at the terminal."""

    def __init__(
        self,
        screenshot_dir: str | Path,
        mailbox: SelectionMailbox | None = None,
        read_line: Callable[[str], str] = input,
    ):
        self.screenshot_dir = Path(screenshot_dir)
        self.mailbox = mailbox or SelectionMailbox()
        self._read_line = read_line
        self.saved_images: list[Path] = []

    async def send_message(self, text: str, detail_lines: list[str] | None = None) -> None:
        print(f"\nAgent: {text}")
        for line in detail_lines or []:
            print(f"   - {line}")

    async def send_image(self, image: bytes) -> None:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"checkout-{datetime.now():%Y%m%d-%H%M%S}.png"
        path.write_bytes(image)
        self.saved_images.append(path)
        print(f"\nAgent: Screenshot saved to {path}")

    async def send_options(self, labels: list[str]) -> str:
        answer = self.mailbox.post(labels)

        print("\nAgent: Which one would you like?")
        for i, label in enumerate(labels, 1):
            print(f"  {i}. {label}")

        line = await asyncio.to_thread(self._read_line, "Your choice: ")
        self.mailbox.resolve(line.strip())
        return await answer


def print_outcome(outcome: OrderOutcome) -> None:
    print("\n" + "=" * 50)
    if outcome.success:
        print(f"[Done] Checkout reached for: {outcome.chosen.title}")
        if outcome.recovery_cycles:
            print(f"       (after {outcome.recovery_cycles} recovery cycle(s))")
        print("       Review the screenshot and complete payment manually.")
    else:
        print(f"[Failed] {outcome.reason}")
    print("=" * 50)


async def run_request(prompt: str, config: Config, headless: bool | None, storefront: str | None) -> OrderOutcome:
    """Run one request with a fresh browser session and completion client."""
    channel = TerminalChannel(config.output.screenshot_dir)
    page = create_page_automation(config, name=storefront, headless=headless)
    completion = create_completion_service(config.llm)

    try:
        orchestrator = TransactionOrchestrator(page, completion, channel, config=config)
        return await orchestrator.run(prompt)
    finally:
        await completion.close()


async def shop_main(args) -> None:
    config = load_config()
    headless = False if args.headed else None

    if args.prompt:
        outcome = await run_request(" ".join(args.prompt), config, headless, args.storefront)
        print_outcome(outcome)
        return

    print("\n[shopx Shopping Agent]")
    print("=" * 50)
    print("Tell me what you'd like to buy and I'll take it to checkout.")
    print("Type 'quit' to exit.\n")

    while True:
        user_input = (await asyncio.to_thread(input, "You: ")).strip()
        if not user_input:
            continue
        if user_input.lower() in ["quit", "exit", "bye", "q"]:
            print("Goodbye!")
            break

        outcome = await run_request(user_input, config, headless, args.storefront)
        print_outcome(outcome)


async def preview_main(args) -> None:
    """Plan, search, extract, and rank without asking or checking out."""
    config = load_config()
    prompt = " ".join(args.prompt)
    channel = TerminalChannel(config.output.screenshot_dir)
    page = create_page_automation(config, name=args.storefront, headless=False if args.headed else None)
    completion = create_completion_service(config.llm)
    supervisor = RetrySupervisor.from_config(channel, config.retry)
    orchestrator = TransactionOrchestrator(page, completion, channel, config=config, supervisor=supervisor)

    try:
        async with page:
            query = await orchestrator.planner.plan(prompt)
            await orchestrator.retriever.search(query)
            candidates = await orchestrator.retriever.extract()
            selection = await orchestrator.ranking.rank(candidates, prompt)
    finally:
        await completion.close()

    print(f"\nQuery: {query}")
    print(f"Top {len(selection)} of {len(candidates)} products:")
    for i, candidate in enumerate(selection, 1):
        print(f"  {i}. {candidate.title}")
        print(f"     {candidate.brand} | {candidate.price} | rating {candidate.rating}")
        print(f"     {candidate.link}")


def run_shop(args):
    try:
        asyncio.run(shop_main(args))
    except KeyboardInterrupt:
        print("\nGoodbye!")


def run_preview(args):
    asyncio.run(preview_main(args))


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Main entry point for the CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Natural-language shopping agent that stops at checkout")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_common(sub):
        sub.add_argument("--headed", action="store_true", help="Run browser in headed mode (visible window)")
        sub.add_argument(
            "--storefront",
            choices=sorted(STOREFRONTS),
            default=None,
            help="Storefront backend (default: [storefront].name in config.toml)",
        )

    shop_parser = subparsers.add_parser("shop", help="Find a product and take it to checkout")
    shop_parser.add_argument("prompt", nargs="*", help="What you want to buy (omit for an interactive session)")
    add_common(shop_parser)
    shop_parser.set_defaults(func=run_shop)

    preview_parser = subparsers.add_parser("preview", help="Show the ranked products for a request")
    preview_parser.add_argument("prompt", nargs="+", help="What you want to buy")
    add_common(preview_parser)
    preview_parser.set_defaults(func=run_preview)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
