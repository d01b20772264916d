#!/usr/bin/env python3
"""
CLI for the Web Research Agent
Runs one research task from the terminal and prints the findings.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from web_research.config import config
from web_research.core.logging import configure_from_config, get_logger
from web_research.core.memory import ResearchResult
from web_research.core.orchestrator import ResearchConfigurationError, run_web_research
from web_research.providers import SUPPORTED_PROVIDERS, create_provider


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Autonomous planned web research")
    parser.add_argument("task", help="What to research")
    parser.add_argument("--max-steps", type=int, default=None, help=f"Step budget (default {config.research.max_steps})")
    parser.add_argument("--max-findings", type=int, default=None, help=f"Findings to collect (default {config.research.max_findings})")
    parser.add_argument("--mode", choices=["fast", "balanced", "thorough"], default=None, help="Performance mode")
    parser.add_argument("--start-url", default=None, help="Optional starting point for the planner")
    parser.add_argument("--provider", choices=SUPPORTED_PROVIDERS, default=None, help="LLM provider")
    parser.add_argument("--model", default=None, help="Model name for the provider")
    return parser.parse_args(argv)


def format_result(result: ResearchResult) -> str:
    lines = ["=" * 60]
    if result.success:
        lines.append(f"✅ Research finished in {result.steps_taken} steps")
    else:
        lines.append(f"❌ Research stopped after {result.steps_taken} steps: {result.error}")
    if result.replans_used:
        lines.append(f"🔁 Replans: {result.replans_used}")

    lines.append(f"\n📚 Findings ({len(result.findings)}):")
    for i, finding in enumerate(result.findings, start=1):
        lines.append(f"  {i}. {finding.title}\n     {finding.url}")
        if finding.summary:
            lines.append(f"     {finding.summary}")
    if not result.findings:
        lines.append("  (none)")

    if result.result:
        lines.append(f"\n📝 Result:\n{result.result}")
    lines.append("=" * 60)
    return "\n".join(lines)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_from_config()
    logger = get_logger("cli")

    print(f"\n🚀 Researching: {args.task}\n")
    try:
        model = create_provider(args.provider, args.model)
        result = await run_web_research(
            args.task,
            model,
            start_url=args.start_url,
            max_steps=args.max_steps,
            performance_mode=args.mode,
            max_findings=args.max_findings,
        )
    except (ResearchConfigurationError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ Configuration error: {e}")
        return 2

    print(format_result(result))
    return 0 if result.success else 1


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
