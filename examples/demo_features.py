"""
Demo script showcasing the generation modes:
1. Single-shot generation with fallback
2. Pull streaming
3. Callback streaming
4. Byte channel streaming
5. Structured output

Needs at least one of OPENAI_API_KEY, GEMINI_API_KEY or ANTHROPIC_API_KEY.
"""

import asyncio

from pydantic import BaseModel

from llm_factory import LLMFactory
from llm_factory.telemetry import setup_logging

CANDIDATES = ["gpt-4.1-nano", "gemini-2.0-flash", "claude-3-5-haiku-latest"]


class Capital(BaseModel):
    country: str
    capital: str
    population_millions: float


def print_metadata(metadata):
    print(
        f"\n[{metadata.model}] input={metadata.input_tokens} "
        f"output={metadata.output_tokens} cost=${metadata.cost:.6f}"
    )


async def demo_generate(factory):
    """Demonstrate single-shot generation"""
    print("\n=== Single-Shot Demo ===")

    result = await factory.generate(
        model=CANDIDATES, prompt="What are LLMs? Answer in one sentence.", retries=2
    )
    print(result.text)
    print_metadata(result.metadata)


async def demo_stream(factory):
    """Demonstrate pull streaming"""
    print("\n=== Streaming Demo ===")

    handle = factory.generate_stream(model=CANDIDATES, prompt="Count from 1 to 10.")
    async for chunk in handle:
        print(chunk, end="", flush=True)
    print_metadata(await handle.get_metadata())


async def demo_callbacks(factory):
    """Demonstrate callback streaming"""
    print("\n=== Callbacks Demo ===")

    def on_complete(result):
        print_metadata(result.metadata)

    def on_error(error):
        print(f"\nGeneration failed: {error}")

    await factory.generate_with_callbacks(
        model=CANDIDATES,
        prompt="Write a haiku about retries.",
        on_chunk=lambda chunk: print(chunk, end="", flush=True),
        on_complete=on_complete,
        on_error=on_error,
    )


async def demo_byte_channel(factory):
    """Demonstrate byte channel streaming"""
    print("\n=== Byte Channel Demo ===")

    handle = factory.generate_byte_channel(model=CANDIDATES, prompt="Name three colors.")
    while chunk := await handle.channel.read():
        print(chunk.decode("utf-8"), end="", flush=True)
    print_metadata(await handle.get_metadata())


async def demo_structured_output(factory):
    """Demonstrate structured output"""
    print("\n=== Structured Output Demo ===")

    result = await factory.generate(
        model=CANDIDATES, prompt="Describe France.", output_schema=Capital
    )
    capital = Capital.model_validate_json(result.text)
    print(f"{capital.country}: {capital.capital} ({capital.population_millions}M people)")
    print_metadata(result.metadata)


async def main():
    """Run all demos"""
    setup_logging(level="WARNING")
    factory = LLMFactory()

    available = [model for model in CANDIDATES if factory.is_model_available(model)]
    if not available:
        print("No provider is configured. Set an API key and try again.")
        return
    print(f"Available candidates: {', '.join(available)}")

    await demo_generate(factory)
    await demo_stream(factory)
    await demo_callbacks(factory)
    await demo_byte_channel(factory)
    await demo_structured_output(factory)


if __name__ == "__main__":
    asyncio.run(main())
