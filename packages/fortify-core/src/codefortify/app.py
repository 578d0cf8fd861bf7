"""CI entry point: score the project, evaluate gates, emit CI output."""

from __future__ import annotations

import asyncio
import logging
import sys

from codefortify.config import FortifySettings, config_from_settings
from codefortify.errors import ConfigurationError
from codefortify.scoring.history import QualityHistory
from codefortify.scoring.orchestrator import ScoringOrchestrator

logger = logging.getLogger(__name__)


async def run(settings: FortifySettings) -> int:
    config = config_from_settings(settings)
    orchestrator = ScoringOrchestrator(config)

    try:
        results = await orchestrator.score_project(
            record_history=settings.record_history,
            detailed=config.gates.ci.output.detailed,
            strict=settings.strict,
        )
    finally:
        if isinstance(orchestrator.history, QualityHistory):
            await orchestrator.history.close()

    report = results.quality_gates
    if report is None:
        logger.error("Quality gates could not be evaluated")
        return 1

    evaluator = orchestrator.gate_evaluator
    ci = evaluator.generate_ci_output(report, output_path=settings.output_path or None)
    sys.stdout.write(ci.output if ci.output.endswith("\n") else ci.output + "\n")

    verdict = evaluator.blocking_verdict(
        report, has_errors=results.overall.has_errors if results.overall else False
    )
    for reason in verdict.reasons:
        if verdict.level == "error":
            logger.error(reason)
        else:
            logger.warning(reason)
    return verdict.exit_code


def main() -> int:
    settings = FortifySettings()
    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        return asyncio.run(run(settings))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
