"""Basic usage examples for Feedback Radar."""

from feedbackradar import AnalysisPipeline
from feedbackradar.core.models import PipelineStage, SourceKind
from feedbackradar.core.scoring import compute_all_scores
from feedbackradar.services.classifier import MentionClassifier
from feedbackradar.services.hackernews_client import HackerNewsService


def example_full_analysis():
    """Example: full pipeline run across every enabled source."""
    print("🔍 Analyzing: Linear")

    run = AnalysisPipeline().run("Linear")
    if run.stage == PipelineStage.ERROR:
        print(f"❌ {run.error_message}")
        return

    report = run.report
    print(f"📊 {report.overall_score}/100 from {report.total_mentions} mentions")
    print(f"📝 {report.summary}")
    for item in report.issue_radar[:2]:
        print(f"  ⚠️ {item.aspect.value}: {item.score} ({item.mention_count} mentions)")


def example_single_source():
    """Example: one source, classification and scoring without synthesis."""
    print("\n🔍 Hacker News only: Raycast")

    mentions = HackerNewsService().collect("Raycast", parent_limit=3, children_per_parent=10)
    print(f"📥 Collected {len(mentions)} mentions")

    classified = MentionClassifier().classify("Raycast", mentions)
    scores = compute_all_scores(classified)
    print(f"📈 Overall {scores.overall_score}/100, confidence {scores.confidence.overall:.2f}")


def example_selected_sources():
    """Example: restrict a run to two sources."""
    run = AnalysisPipeline().run("Supabase", sources=[SourceKind.STACKOVERFLOW, SourceKind.DEVTO])
    print(f"\n{run.product_name}: {run.stage.value}")


if __name__ == "__main__":
    example_full_analysis()
    example_single_source()
    example_selected_sources()
