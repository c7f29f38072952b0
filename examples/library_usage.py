"""Example: Analyze a developer's reputation with devrep."""

from __future__ import annotations

import asyncio
import os

from devrep import analyze_developer, load_config


async def main() -> None:
    outcome = await analyze_developer(
        token=os.environ["GITHUB_TOKEN"],
        config=load_config(),
    )
    result = outcome.result
    print(f"User: {outcome.login}")
    print(f"Trust level: {result.trust_level}")
    print(f"Score: {result.final_score}/100 (base {result.base_score})")

    if result.ai_enhanced:
        print(f"AI score: {result.ai_score} via {result.advisory_model}")
    else:
        print("AI advisory unavailable -- base score only")

    for strength in result.strengths:
        print(f"  + {strength}")


if __name__ == "__main__":
    asyncio.run(main())
