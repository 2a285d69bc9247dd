"""Simple example of an assistant with a small tool set."""

import asyncio
import os
import sys
import time
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from assistant_chat import Assistant, ToolSet
from assistant_chat.api.di.composition import build_provider


class NotesToolSet(ToolSet):
    """In-memory notes the model can write and read."""

    def __init__(self):
        super().__init__()
        self.notes = {}

    @ToolSet.callable("Save a note under a title, replacing an existing one")
    async def writeNote(self, title: str, body: str) -> str:
        self.notes[title] = body
        return f"Saved '{title}' ({len(body)} characters)"

    @ToolSet.callable("Read a note by title")
    async def readNote(self, title: str) -> str:
        return self.notes.get(title, f"No note titled '{title}'")

    @ToolSet.callable("Current local time")
    async def currentTime(self) -> str:
        return time.strftime("%Y-%m-%d %H:%M:%S")


def print_response(step: str, response: str):
    """Print formatted response from the assistant."""
    print(f"\n{'='*80}")
    print(f"STEP: {step}")
    print(f"{'='*80}")
    print(response)
    print(f"{'='*80}\n")


async def main():
    """Run a simple demonstration."""
    provider = build_provider(os.getenv("ASSISTANT_PROVIDER", "llama"))
    notes = NotesToolSet()
    assistant = Assistant(provider, "You keep the user's notes organised.", toolsets=[notes])

    result = await assistant.prompt("Write a note titled 'groceries' listing milk, eggs and bread, one per line.")
    print_response("Writing a note", result)

    result = await assistant.prompt("What time is it, and what is on my groceries list?")
    print_response("Reading it back", result)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"\nError: {e}")
        print("\nMake sure:")
        print("1. Your .env file has the key for ASSISTANT_PROVIDER (or a local Ollama is running)")
        print("2. All dependencies are installed")
