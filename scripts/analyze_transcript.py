import argparse
import asyncio
import json
import os
import sys

# Add project root to path so we can import memoria
sys.path.append(os.getcwd())

from memoria.config.settings import settings
from memoria.services.analysis_dispatcher import AnalysisDispatcher
from memoria.services.providers import ProviderRegistry


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run the analysis pipeline on a transcript file.")
    parser.add_argument("path", help="UTF-8 text file with the transcript")
    parser.add_argument("--title", default="Transcripción de prueba")
    parser.add_argument("--duration", type=float, default=None, help="Audio duration in seconds")
    parser.add_argument("--provider", default=None, help="openai, ollama, groq, together or huggingface")
    args = parser.parse_args()

    if not os.path.exists(args.path):
        print(f"File '{args.path}' not found.")
        return 1

    with open(args.path, encoding="utf-8") as f:
        transcript = f.read()

    registry = ProviderRegistry.from_settings(settings)
    if args.provider and not registry.set_active(args.provider):
        print(f"Unknown provider '{args.provider}'.")
        return 1

    active = registry.get_active()
    print(f"Analyzing {len(transcript)} chars with {active.name if active else 'no provider'}...")

    dispatcher = AnalysisDispatcher.from_settings(registry, settings)
    result = await dispatcher.analyze(transcript, args.title, args.duration)

    print(f"\n--- Analysis ({result.source.value}) ---")
    print(json.dumps(result.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
