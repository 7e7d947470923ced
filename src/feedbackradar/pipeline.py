"""Analysis pipeline: fetch, filter, dedupe, classify, score, synthesize."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from .core.constants import ErrorConstants
from .core.dedup import dedupe
from .core.errors import EmptyResultError, PipelineStageError, SourceError
from .core.models import ClassifiedItem, PipelineStage, RawItem, Report, SourceKind
from .core.relevance import is_relevant
from .core.scoring import compute_all_scores, relevant_items
from .services.classifier import MentionClassifier
from .services.llm import LLMServiceFactory
from .services.source_manager import SourceManager
from .services.synthesizer import ReportSynthesizer

logger = logging.getLogger(__name__)


class StatusSink(Protocol):
    """Receives stage transitions and the finished report."""

    def update_status(self, stage: PipelineStage, error_message: Optional[str] = None) -> None:
        ...

    def save_report(self, report: Report) -> None:
        ...


class LoggingStatusSink:
    """Default sink: logs transitions and keeps the last report in memory."""

    def __init__(self):
        self.stages: List[PipelineStage] = []
        self.report: Optional[Report] = None

    def update_status(self, stage: PipelineStage, error_message: Optional[str] = None) -> None:
        self.stages.append(stage)
        if error_message:
            logger.error(f"Pipeline {stage.value}: {error_message}")
        else:
            logger.info(f"Pipeline stage: {stage.value}")

    def save_report(self, report: Report) -> None:
        self.report = report


@dataclass
class PipelineRun:
    """State of one analysis run."""
    product_name: str
    stage: PipelineStage = PipelineStage.PENDING
    report: Optional[Report] = None
    error_message: Optional[str] = None
    raw_count: int = 0
    relevant_count: int = 0
    prepared_count: int = 0
    classified_count: int = 0
    failed_sources: List[SourceKind] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.COMPLETE


class AnalysisPipeline:
    """
    Runs one product analysis through the stage machine
    Pending -> Fetching -> Classifying -> Analyzing -> Complete, or Error.

    Each stage fans out and fully completes before the next begins. Any
    exception escaping a stage ends the run in Error with a displayable message;
    there is no resume, a new run starts from Pending.
    """

    def __init__(self, source_manager: Optional[SourceManager] = None,
                 classifier: Optional[MentionClassifier] = None,
                 synthesizer: Optional[ReportSynthesizer] = None,
                 sink: Optional[StatusSink] = None, llm=None):
        if llm is None and (classifier is None or synthesizer is None):
            llm = LLMServiceFactory.create()
        self.source_manager = source_manager or SourceManager()
        self.classifier = classifier or MentionClassifier(llm=llm)
        self.synthesizer = synthesizer or ReportSynthesizer(llm=llm)
        self.sink = sink or LoggingStatusSink()

    def _transition(self, run: PipelineRun, stage: PipelineStage, error_message: Optional[str] = None) -> None:
        run.stage = stage
        run.error_message = error_message
        self.sink.update_status(stage, error_message)

    def run(self, product_name: str, sources: Optional[List[SourceKind]] = None) -> PipelineRun:
        product_name = product_name.strip()
        run = PipelineRun(product_name=product_name)
        self._transition(run, PipelineStage.PENDING)

        try:
            self._transition(run, PipelineStage.FETCHING)
            items = self.fetch(run, sources)

            self._transition(run, PipelineStage.CLASSIFYING)
            classified = self.classifier.classify(product_name, items)
            run.classified_count = len(classified)

            self._transition(run, PipelineStage.ANALYZING)
            report = self.build_report(product_name, classified)
            self.sink.save_report(report)
            run.report = report

            self._transition(run, PipelineStage.COMPLETE)
        except (EmptyResultError, SourceError) as e:
            self._transition(run, PipelineStage.ERROR, str(e))
        except Exception as e:
            error = PipelineStageError(run.stage.value, str(e) or e.__class__.__name__)
            logger.exception(f"Pipeline failed during {error.stage}")
            self._transition(run, PipelineStage.ERROR, str(error))

        return run

    def fetch(self, run: PipelineRun, sources: Optional[List[SourceKind]] = None) -> List[RawItem]:
        """Fetch from every source, then filter and dedupe; raises when nothing usable remains."""
        results = self.source_manager.fetch_all(run.product_name, sources)
        run.failed_sources = [r.source for r in results if not r.ok]
        if not results or SourceManager.all_failed(results):
            raise SourceError(ErrorConstants.ALL_SOURCES_FAILED_MESSAGE.format(product=run.product_name))

        raw_items = SourceManager.flatten(results)
        run.raw_count = len(raw_items)
        relevant = self.filter_relevant(run.product_name, raw_items)
        run.relevant_count = len(relevant)
        items = dedupe(relevant)
        run.prepared_count = len(items)
        if not items:
            raise EmptyResultError(ErrorConstants.EMPTY_RESULT_MESSAGE.format(product=run.product_name))
        return items

    @staticmethod
    def filter_relevant(product_name: str, raw_items: List[RawItem]) -> List[RawItem]:
        relevant = [item for item in raw_items if is_relevant(item.text, product_name)]
        logger.info(f"Relevance filter kept {len(relevant)}/{len(raw_items)} items")
        return relevant

    @staticmethod
    def prepare(product_name: str, raw_items: List[RawItem]) -> List[RawItem]:
        """Relevance filter, then near-duplicate removal, keeping fetch order."""
        return dedupe(AnalysisPipeline.filter_relevant(product_name, raw_items))

    def build_report(self, product_name: str, classified: List[ClassifiedItem]) -> Report:
        scores = compute_all_scores(classified)
        synthesis = self.synthesizer.synthesize(product_name, classified, scores)
        relevant = relevant_items(classified)

        return Report(
            product_name=product_name,
            overall_score=scores.overall_score,
            total_mentions=len(relevant),
            summary=synthesis.summary,
            strengths=synthesis.strengths,
            issues=synthesis.issues,
            aspects=scores.aspects,
            issue_radar=scores.issue_radar,
            confidence=scores.confidence,
            sources_analyzed=len({item.source for item in relevant}),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
