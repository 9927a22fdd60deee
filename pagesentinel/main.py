"""Command-line entry point for PageSentinel."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml

from .analyzer.models import AnalysisResult
from .analyzer.signals import PageSignals
from .config import DEFAULT_SENSITIVE_FIELD_TOKENS, Config, load_config, validate_config
from .errors import PageSentinelError
from .pipeline.coordinator import AnalysisCoordinator

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def load_signals(path: Path, sensitive_tokens: Sequence[str] = DEFAULT_SENSITIVE_FIELD_TOKENS) -> PageSignals:
    """Read a collector payload (JSON or YAML) from disk."""
    try:
        payload = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise PageSentinelError(f"cannot read signals from {path}: {exc}") from exc
    return PageSignals.from_dict(payload, sensitive_tokens=sensitive_tokens)


def format_result(url: str, result: AnalysisResult) -> str:
    lines = [f"{url}", f"  risk:  {result.risk_level}", f"  score: {result.score}/100"]
    if result.findings:
        lines.append("  findings:")
        for finding in result.findings:
            lines.append(
                f"    [{finding.band:<6}] {finding.type} (severity {finding.severity}): {finding.description}"
            )
    else:
        lines.append("  findings: none")
    return "\n".join(lines)


async def run_analysis(config: Config, signals: PageSignals) -> AnalysisResult:
    """Analyze one page snapshot with a fully wired coordinator."""
    coordinator = AnalysisCoordinator.from_config(config)
    await coordinator.start()
    try:
        return await coordinator.analyze(signals)
    finally:
        await coordinator.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagesentinel", description="Score web pages for scam risk.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a collected page snapshot.")
    analyze.add_argument("signals", type=Path, help="JSON or YAML page signals payload.")
    analyze.add_argument("--feed", type=Path, help="Threat domain list (YAML or one domain per line).")
    analyze.add_argument("--json", action="store_true", help="Print the result as JSON.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    config = load_config()
    if args.feed:
        config.threat_feed_file = args.feed
        config.threat_feed_url = ""

    validation_errors = validate_config(config)
    if validation_errors:
        for err in validation_errors:
            logger.error(err)
        return 1

    try:
        signals = load_signals(args.signals, config.heuristics.sensitive_field_tokens)
        result = asyncio.run(run_analysis(config, signals))
    except PageSentinelError as exc:
        logger.error("%s", exc)
        return 1

    if args.json:
        print(json.dumps({"url": signals.url, **result.to_dict()}, indent=2, ensure_ascii=False))
    else:
        print(format_result(signals.url, result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
