"""
Seed the parameter store

Writes profile content and model settings under the configured prefix.

Usage:
    python scripts/set_parameter.py resume --file data/profile/resume.md
    python scripts/set_parameter.py config/openai_model --value gpt-4o-mini
    python scripts/set_parameter.py open-ai-token --token sk-...
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

from loguru import logger

from portfolio_agent.agents.ask.config_cache import normalize_prefix
from portfolio_agent.config.settings import settings
from portfolio_agent.infra.parameter_store import ParameterStore


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Store a parameter under the configured prefix")
    parser.add_argument("name", help="Parameter suffix, e.g. resume, interests, pinned_prompt, config/openai_model")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--value", help="Literal value")
    source.add_argument("--file", type=Path, help="Read the value from a UTF-8 file")
    source.add_argument("--token", help="OpenAI API key, stored as a {\"token\": ...} payload")
    parser.add_argument("--prefix", default=settings.param_prefix, help="Parameter prefix")
    parser.add_argument("--db", default=None, help="Parameter database path")
    return parser.parse_args(argv)


async def store_parameter(args) -> str:
    if args.file is not None:
        value = args.file.read_text(encoding="utf-8")
    elif args.token is not None:
        value = json.dumps({"token": args.token})
    else:
        value = args.value

    name = f"{normalize_prefix(args.prefix)}/{args.name.strip().strip('/')}"
    store = ParameterStore(args.db)
    await store.async_init()
    await store.put_parameter(name, value)
    return name


def main(argv=None):
    args = parse_args(argv)
    name = asyncio.run(store_parameter(args))
    logger.info(f"Stored {name}")


if __name__ == "__main__":
    main()
