"""CLI chat adapter.

Provides a stdin/stdout interface to a Skald knowledge base. Written
against the KnowledgeBaseAPI protocol, so any conforming client works.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Callable, TextIO, TYPE_CHECKING

from skald.exceptions import SkaldError
from skald.models import ChatRequest, ListMemosParams, MemoData, SearchRequest
from skald.stream import DoneEvent, TokenEvent

if TYPE_CHECKING:
    from skald.protocol import KnowledgeBaseAPI

logger = logging.getLogger(__name__)

HELP_TEXT = """
Skald Knowledge Base CLI
========================
Commands:
  ?<question>     Ask the knowledge base (answer is streamed)
                  Example: ?what did we decide about pricing?

  /search <q>     Semantic search over memo chunks
  /list           List memos (first page)
  /get <id>       Show a memo
  /status <id>    Show a memo's processing status
  /delete <id>    Delete a memo
  /new            Start a new conversation
  /quit           Exit the CLI
  /help           Show this help message

Anything else is saved as a memo; the first line becomes its title.
  Example: Pricing call notes - we agreed on annual billing
"""

TITLE_LENGTH = 60


class CLISession:
    """One interactive session: executes commands and tracks the chat id."""

    def __init__(self, client: KnowledgeBaseAPI, out: TextIO | None = None) -> None:
        self.client = client
        self.out = out or sys.stdout
        self.chat_id: str | None = None

    def _print(self, text: str = "", end: str = "\n") -> None:
        self.out.write(text + end)
        self.out.flush()

    async def ask(self, question: str) -> None:
        """Stream an answer, continuing the current conversation."""
        request = ChatRequest(query=question, chat_id=self.chat_id)
        self._print()
        async with self.client.streamed_chat(request) as stream:
            async for event in stream:
                if isinstance(event, TokenEvent):
                    self._print(event.text, end="")
                elif isinstance(event, DoneEvent) and event.chat_id:
                    self.chat_id = event.chat_id
        self._print("\n")

    async def search(self, query: str) -> None:
        response = await self.client.search(SearchRequest(query=query))
        if not response.results:
            self._print("No results.\n")
            return
        for result in response.results:
            distance = f"{result.distance:.3f}" if result.distance is not None else "-"
            self._print(f"  [{distance}] {result.memo_title} ({result.memo_uuid})")
            self._print(f"      {result.content_snippet}")
        self._print()

    async def list_memos(self) -> None:
        response = await self.client.list_memos(ListMemosParams(page=1))
        self._print(f"\nMemos ({response.count}):")
        for memo in response.results:
            self._print(f"  {memo.uuid}  {memo.title}")
        self._print()

    async def show_memo(self, memo_id: str) -> None:
        memo = await self.client.get_memo(memo_id)
        self._print(f"\n{memo.title}  ({memo.uuid})")
        if memo.summary:
            self._print(f"Summary: {memo.summary}")
        if memo.tags:
            self._print("Tags: " + ", ".join(tag.tag for tag in memo.tags))
        self._print(f"\n{memo.content}\n")

    async def show_status(self, memo_id: str) -> None:
        status = await self.client.check_memo_status(memo_id)
        reason = f" ({status.error_reason})" if status.error_reason else ""
        self._print(f"{memo_id}: {status.status}{reason}\n")

    async def delete(self, memo_id: str) -> None:
        await self.client.delete_memo(memo_id)
        self._print(f"Deleted {memo_id}.\n")

    async def save(self, text: str, source: str) -> None:
        title = text.splitlines()[0][:TITLE_LENGTH]
        created = await self.client.create_memo(
            MemoData(title=title, content=text, source=source)
        )
        self._print(f"Saved. (id: {created.memo_uuid[:8]}...)\n")

    async def handle(self, line: str, source: str = "cli_user") -> bool:  # pylint: disable=too-many-return-statements
        """Execute one input line. Returns False when the session should end."""
        line = line.strip()
        if not line:
            return True

        if line == "/quit":
            self._print("Goodbye.")
            return False

        if line == "/help":
            self._print(HELP_TEXT)
            return True

        if line == "/new":
            self.chat_id = None
            self._print("Started a new conversation.\n")
            return True

        if line == "/list":
            await self.list_memos()
            return True

        command, _, argument = line.partition(" ")
        argument = argument.strip()
        handlers: dict[str, Callable[[str], Any]] = {
            "/search": self.search,
            "/get": self.show_memo,
            "/status": self.show_status,
            "/delete": self.delete,
        }
        if command in handlers:
            if not argument:
                self._print(f"Usage: {command} <{'query' if command == '/search' else 'id'}>")
                return True
            await handlers[command](argument)
            return True

        if line.startswith("/"):
            self._print(f"Unknown command: {command}. Type /help for help.")
            return True

        if line.startswith("?"):
            question = line[1:].strip()
            if not question:
                self._print("Usage: ?<your question>")
                return True
            await self.ask(question)
            return True

        await self.save(line, source)
        return True


async def run_cli(
    client: KnowledgeBaseAPI,
    source: str = "cli_user",
    on_action: Callable[[], None] | None = None,
) -> None:
    """Run the interactive CLI loop.

    Args:
        client: Knowledge-base client implementation.
        source: Source label for memos saved from the prompt.
        on_action: Optional callback invoked after each user action.
    """
    session = CLISession(client)
    print(HELP_TEXT)
    print("Ready. Type notes to save or ?questions:\n")

    loop = asyncio.get_running_loop()

    while True:
        try:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await session.handle(line, source=source):
                break
            if on_action and line.strip():
                on_action()

        except KeyboardInterrupt:
            print("\nGoodbye.")
            break
        except SkaldError as exc:
            print(f"Error: {exc}\n")
        except Exception:  # pylint: disable=broad-exception-caught  # CLI must not crash on transient errors
            logger.exception("CLI error")
            print("Error processing input. Try again.")
