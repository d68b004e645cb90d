"""
CLI for running a single workflow generation.

Usage:
    python -m services.generation.cli "<prompt>" --provider claude --model claude-3-5-sonnet-20241022
    python -m services.generation.cli "<prompt>" --provider openai --model gpt-4o --output workflow.json

The API key is read from --api-key or from <PROVIDER>_API_KEY.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import AsyncIterator, List, Optional

from core.config import settings
from core.logging_config import setup_logging
from .models import GENERATION_STATUS, GenerationRequest, ProviderId
from .orchestrator import GenerationOrchestrator
from .state_store import Changes, MemoryStateStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate n8n workflow JSON with an LLM provider",
    )
    parser.add_argument("prompt", help="Natural language description of the workflow")
    parser.add_argument(
        "--provider",
        required=True,
        choices=[provider.value for provider in ProviderId],
        help="LLM provider",
    )
    parser.add_argument("--model", required=True, help="Provider model name")
    parser.add_argument("--api-key", help="Provider API key (default: <PROVIDER>_API_KEY)")
    parser.add_argument("--system-prompt-file", type=Path, help="File with custom system instructions")
    parser.add_argument("--output", type=Path, help="Write the generated JSON to this file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    return parser


async def print_status(updates: AsyncIterator[Changes]) -> None:
    async for changes in updates:
        status = changes.get(GENERATION_STATUS)
        if status and status.get("newValue"):
            print(f"⏳ {status['newValue']}")


async def run(args: argparse.Namespace) -> int:
    api_key = args.api_key or os.getenv(f"{args.provider.upper()}_API_KEY")
    if not api_key:
        print(f"Error: an API key is required (--api-key or {args.provider.upper()}_API_KEY)")
        return 1

    system_prompt = None
    if args.system_prompt_file:
        system_prompt = args.system_prompt_file.read_text(encoding="utf-8")

    store = MemoryStateStore()
    orchestrator = GenerationOrchestrator(store, settings=settings)
    request = GenerationRequest(
        provider_id=args.provider,
        api_key=api_key,
        model=args.model,
        user_prompt=args.prompt,
        system_prompt=system_prompt,
    )

    print("🚀 n8n Workflow Builder CLI")
    print(f"   Provider: {args.provider}")
    print(f"   Model: {args.model}")
    print()

    # Subscribe before starting so the first status updates are printed
    watcher = asyncio.create_task(print_status(store.subscribe()))
    try:
        ack = await orchestrator.start(request)
        if not ack["success"]:
            print(f"❌ {ack['message']}")
            return 1
        await orchestrator.wait()
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    state = await orchestrator.state.current()
    if state.error:
        print("❌ Generation failed!")
        print(f"   Error: {state.error}")
        return 1

    if args.output:
        args.output.write_text(state.generated_json or "", encoding="utf-8")
        print(f"💾 Generated JSON saved to: {args.output}")
    else:
        print("📄 Generated JSON:")
        print(state.generated_json)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level)
    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n⏹️  Operation cancelled by user")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
