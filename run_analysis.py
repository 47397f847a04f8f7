"""
run_analysis.py: run one analysis request from the command line.

Reads a JSON request body (``testType``, ``answers``, optional
``userContext``) from a file or stdin, runs it through the dispatcher and
prints the canonical record, or the public error payload on failure.

Usage:
    python run_analysis.py request.json
    cat request.json | python run_analysis.py
    python run_analysis.py --types
"""

import asyncio
import json
import logging
import sys

from ai_analysis.core.config import settings, validate_settings_for_production
from ai_analysis.core.exceptions import AnalysisError, to_public_error
from ai_analysis.core.logging import setup_logging
from ai_analysis.core.sentry import init_sentry
from ai_analysis.dispatcher import build_dispatcher
from ai_analysis.types import AnalysisRequest

logger = logging.getLogger("run_analysis")


def load_payload(argv: list[str]) -> dict:
    if argv and argv[0] != "-":
        with open(argv[0], encoding="utf-8") as f:
            return json.load(f)
    return json.load(sys.stdin)


async def run(argv: list[str]) -> int:
    dispatcher = build_dispatcher(settings)

    if argv and argv[0] == "--types":
        print("\n".join(dispatcher.get_supported_types()))
        return 0

    payload = load_payload(argv)
    request = AnalysisRequest.from_payload(payload, caller_key="cli")
    logger.info("Dispatching %s with %d answers", request.result_type, len(request.answers))

    try:
        record = await dispatcher.dispatch_request(request)
    except AnalysisError as e:
        status, body = to_public_error(e)
        print(json.dumps(body, ensure_ascii=False, indent=2))
        return 1 if status >= 500 else 2

    print(json.dumps({"success": True, "data": record.model_dump(mode="json")}, ensure_ascii=False, indent=2))
    return 0


def main() -> None:
    setup_logging()
    init_sentry()
    if settings.app_env != "test":
        validate_settings_for_production()
    sys.exit(asyncio.run(run(sys.argv[1:])))


if __name__ == "__main__":
    main()
