"""Command-line interface for Feedback Radar."""

import argparse
import json
import logging
import sys

from .core.config import settings
from .core.constants import FileConstants
from .core.models import PipelineStage, SourceKind
from .core.scoring import compute_all_scores
from .pipeline import AnalysisPipeline, PipelineRun
from .services.source_manager import SourceManager
from .utils.data_prep import export_to_json, load_classified_items, prepare_export, prepare_scores_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT,
    )


def _parse_sources(names):
    if not names:
        return None
    return [SourceKind(name) for name in names]


def cmd_fetch(args):
    """Fetch command: collect, filter and dedupe without classification."""
    manager = SourceManager()
    results = manager.fetch_all(args.product, _parse_sources(args.sources))

    for result in results:
        status = f"{len(result.items)} items" if result.ok else f"failed ({result.error})"
        print(f"  {result.source.value}: {status}")

    raw_items = SourceManager.flatten(results)
    items = AnalysisPipeline.prepare(args.product, raw_items)
    print(f"Fetched {len(raw_items)} raw items for '{args.product}', {len(items)} relevant after dedup")

    if items:
        sample = items[0]
        print("\nSample item:")
        print(f"Author: {sample.author}")
        print(f"Text: {sample.text[:100]}...")
        print(f"Source: {sample.source.value}")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump([item.to_dict() for item in items], f, indent=2, ensure_ascii=False)
        print(f"Saved items to {args.output}")


def _print_run(run: PipelineRun):
    report = run.report
    print(f"\n{report.product_name}: {report.overall_score}/100 from {report.total_mentions} mentions "
          f"({report.sources_analyzed} sources)")
    print(f"\n{report.summary}")

    for heading, insights in (("Strengths", report.strengths), ("Issues", report.issues)):
        print(f"\n{heading}:")
        for insight in insights:
            print(f"  - {insight.title} ({insight.frequency}): {insight.description}")

    print("\nAspects:")
    for aspect in report.aspects:
        print(f"  {aspect.aspect.value}: {aspect.score}/100 ({aspect.mention_count} mentions)")
    confidence = report.confidence
    print(f"\nConfidence: {confidence.overall:.2f} (coverage {confidence.coverage:.2f}, "
          f"agreement {confidence.agreement:.2f}, diversity {confidence.source_diversity:.2f})")


def cmd_analyze(args):
    """Analyze command: full pipeline run."""
    print(f"Analyzing '{args.product}'...")
    pipeline = AnalysisPipeline()
    run = pipeline.run(args.product, _parse_sources(args.sources))

    if run.stage == PipelineStage.ERROR:
        print(run.error_message)
        sys.exit(1)

    _print_run(run)

    if args.output:
        export_to_json(prepare_export(run.report), args.output)
        print(f"\nExported report to {args.output}")


def cmd_score(args):
    """Score command: deterministic scores from a classified-items JSON file."""
    items = load_classified_items(args.input_file)
    scores = compute_all_scores(items)
    print(json.dumps(prepare_scores_export(scores), indent=2))


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Feedback Radar - Product Feedback Intelligence")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    source_choices = [kind.value for kind in SourceKind]

    fetch_parser = subparsers.add_parser("fetch", help="Fetch and filter mentions")
    fetch_parser.add_argument("product", help="Product name")
    fetch_parser.add_argument("--sources", nargs="+", choices=source_choices, help="Sources to query")
    fetch_parser.add_argument("--output", help="Output JSON file for the prepared items")

    analyze_parser = subparsers.add_parser("analyze", help="Run the full analysis pipeline")
    analyze_parser.add_argument("product", help="Product name")
    analyze_parser.add_argument("--sources", nargs="+", choices=source_choices, help="Sources to query")
    analyze_parser.add_argument("--output", help="Output JSON file for the report")

    score_parser = subparsers.add_parser("score", help="Score previously classified items")
    score_parser.add_argument("input_file", help="JSON file of classified items")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    try:
        if args.command == "fetch":
            cmd_fetch(args)
        elif args.command == "analyze":
            cmd_analyze(args)
        elif args.command == "score":
            cmd_score(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
