"""Pipeline orchestrator - Run folders through every stage.

Folders are processed one at a time, items within a folder one at a
time. Item failures are recorded in the folder report and skipped;
only serialization failures fail a folder, and only configuration
failures stop the run.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from scan2doc.config import settings
from scan2doc.errors import (
    AssemblyError,
    ConfigurationError,
    ExtractionError,
    PipelineCancelled,
)
from scan2doc.models import (
    AssemblyPage,
    FolderBatch,
    FolderReport,
    FolderStatus,
    ItemOutcome,
    SourceItem,
    SourceKind,
)
from scan2doc.pipeline.stage_analyze import analyze_page
from scan2doc.pipeline.stage_assemble import DocumentAssembler
from scan2doc.pipeline.stage_extract import PageExtractor
from scan2doc.pipeline.stage_reorder import reorder_pages
from scan2doc.pipeline.stage_summary import summarize_pages
from scan2doc.processing_log import ProcessingLog
from scan2doc.services.base import DocumentWriter, LayoutAnalyzer, PageRanker, Summarizer

log = logging.getLogger(__name__)

ARTIFACT_SUFFIX = "_AI_Processed"


def artifact_name(folder_name: str, extension: str) -> str:
    """Output file name for a folder."""
    return f"{folder_name}{ARTIFACT_SUFFIX}{extension}"


class CancellationToken:
    """Cooperative cancellation, checked between items and folders."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class RunResult:
    """Final folder snapshots and their reports, in input order."""

    batches: list[FolderBatch]
    reports: list[FolderReport] = field(default_factory=list)

    @property
    def artifacts(self) -> dict[str, bytes]:
        return {b.artifact_name: b.artifact for b in self.batches if b.artifact is not None}


class PipelineOrchestrator:
    """Sequences extraction, analysis, reordering, summary and assembly.

    The orchestrator is the only writer of folder status. Each change
    replaces the folder snapshot and is published to subscribers.
    """

    def __init__(
        self,
        analyzer: LayoutAnalyzer,
        ranker: PageRanker,
        writer: DocumentWriter,
        summarizer: Optional[Summarizer] = None,
        extractor: Optional[PageExtractor] = None,
        assembler: Optional[DocumentAssembler] = None,
        processing_log: Optional[ProcessingLog] = None,
        language: Optional[str] = None,
        generate_summary: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize orchestrator.

        Args:
            analyzer: Layout analysis collaborator.
            ranker: Reading-order collaborator.
            writer: Serialization collaborator.
            summarizer: Summary collaborator; required when summaries are on.
            extractor: Page extractor (default settings).
            assembler: Document assembler (default settings).
            processing_log: Log stream for the surrounding application.
            language: Target language (default from settings).
            generate_summary: Run the summary phase (default from settings).
            timeout: Seconds allowed per external call (default from settings).
        """
        self.analyzer = analyzer
        self.ranker = ranker
        self.writer = writer
        self.summarizer = summarizer
        self.extractor = extractor or PageExtractor()
        self.assembler = assembler or DocumentAssembler()
        self.log = processing_log or ProcessingLog()
        self.language = language or settings.target_language
        self.generate_summary = (
            settings.generate_summary if generate_summary is None else generate_summary
        )
        self.timeout = timeout or settings.request_timeout_seconds
        self._subscribers: list[Callable[[FolderBatch], None]] = []
        self.result: Optional[RunResult] = None

        if self.generate_summary and self.summarizer is None:
            raise ConfigurationError("Summary generation is enabled but no summarizer is configured")

    def subscribe(self, callback: Callable[[FolderBatch], None]) -> None:
        """Receive every new folder snapshot."""
        self._subscribers.append(callback)

    def _snapshot(self, folder_name: str) -> FolderBatch:
        """Latest published snapshot of a folder in the current run."""
        return next(b for b in self.result.batches if b.folder_name == folder_name)

    def _publish(self, batch: FolderBatch) -> FolderBatch:
        if self.result is not None:
            for index, existing in enumerate(self.result.batches):
                if existing.folder_name == batch.folder_name:
                    self.result.batches[index] = batch
        for callback in self._subscribers:
            callback(batch)
        return batch

    async def run(
        self,
        batches: Iterable[FolderBatch],
        token: Optional[CancellationToken] = None,
    ) -> RunResult:
        """Process folders in order.

        Raises:
            PipelineCancelled: If the token was cancelled. Folders not yet
                started stay pending.
            ConfigurationError: If a collaborator reports missing credentials.
        """
        result = RunResult(batches=list(batches))
        self.result = result

        if not any(b.included_items for b in result.batches):
            self.log.warning("No selected files to process.")
            return result

        self.log.info("Processing started...")
        for batch in list(result.batches):
            if token is not None and token.cancelled:
                self.log.warning(f"Run cancelled before folder {batch.folder_name}.")
                raise PipelineCancelled("Run cancelled")

            if not batch.included_items:
                continue

            report = FolderReport(folder_name=batch.folder_name)
            result.reports.append(report)
            try:
                await self.process_folder(batch, report, token)
            except ConfigurationError as exc:
                report.error = str(exc)
                self.log.error(f"Configuration error, stopping: {exc}")
                current = self._snapshot(batch.folder_name)
                if current.status == FolderStatus.PROCESSING:
                    self._publish(current.transition(FolderStatus.ERROR))
                raise

        self.log.info("All tasks completed.")
        return result

    async def process_folder(
        self,
        batch: FolderBatch,
        report: Optional[FolderReport] = None,
        token: Optional[CancellationToken] = None,
    ) -> FolderBatch:
        """Run one folder from pending to completed or error."""
        report = report or FolderReport(folder_name=batch.folder_name)
        self.log.info(
            f"Folder {batch.folder_name}: {len(batch.included_items)} selected file(s)."
        )
        processing = self._publish(batch.transition(FolderStatus.PROCESSING, phase="extract"))

        # Phase 1: extraction and analysis
        self.log.info("[PHASE 1] Extracting and analysing pages...")
        pages: list[AssemblyPage] = []
        for item in processing.included_items:
            if token is not None and token.cancelled:
                report.error = "cancelled"
                self.log.warning(f"Folder {batch.folder_name} cancelled.")
                self._publish(processing.transition(FolderStatus.ERROR))
                raise PipelineCancelled(f"Cancelled while processing {batch.folder_name}")
            outcome, item_pages = await self._process_item(item)
            report.outcomes.append(outcome)
            pages.extend(item_pages)
        report.pages_analysed = len(pages)

        # Phase 2: reading order
        processing = self._publish(processing.at_phase("reorder"))
        self.log.info(f"[PHASE 2] Ordering {len(pages)} pages...")
        reordered = await reorder_pages(self.ranker, pages, timeout=self.timeout)
        report.reorder_strategy = reordered.strategy
        if reordered.strategy == "fallback":
            self.log.warning(f"  Reordering fell back to page numbers ({reordered.reason}).")
        else:
            self.log.info("  Order restored.")

        # Phase 3: summary
        summary = None
        if self.generate_summary:
            processing = self._publish(processing.at_phase("summary"))
            self.log.info("[PHASE 3] Generating summary...")
            summary = await summarize_pages(
                self.summarizer,
                reordered.pages,
                settings.summary_language(self.language),
                timeout=self.timeout,
            )
            report.summary_produced = summary is not None
            if summary is None:
                self.log.warning("  Summary could not be generated; continuing without it.")

        # Phase 4: assembly and serialization
        name = artifact_name(batch.folder_name, self.writer.extension)
        processing = self._publish(processing.at_phase("assemble"))
        self.log.info("[PHASE 4] Assembling document...")
        try:
            assembled = await self.assembler.assemble(reordered.pages, summary)
            report.crop_failures = len(assembled.crop_failures)
            for failure in assembled.crop_failures:
                self.log.error(f"  Crop error: {failure}")
            artifact = await asyncio.to_thread(self.writer.render, assembled.tree)
        except ConfigurationError:
            raise
        except Exception as exc:
            error = exc if isinstance(exc, AssemblyError) else AssemblyError(str(exc))
            report.error = str(error)
            self.log.error(f"  Document creation failed: {error}")
            return self._publish(processing.transition(FolderStatus.ERROR))

        report.artifact_name = name
        self.log.info(f"  Success: {name}")
        return self._publish(
            processing.transition(FolderStatus.COMPLETED, artifact=artifact, artifact_name=name)
        )

    async def _process_item(self, item: SourceItem) -> tuple[ItemOutcome, list[AssemblyPage]]:
        """Extract and analyse one item. Failures become an outcome, not an exception."""
        if item.kind == SourceKind.PDF:
            self.log.info(f"  Extracting all pages from PDF: {item.name}...")
        elif item.rotation:
            self.log.info(f"  Applying {item.rotation} degree rotation to {item.name}...")

        try:
            rasters = await self.extractor.extract_async(item)
        except ConfigurationError:
            raise
        except Exception as exc:
            error = exc if isinstance(exc, ExtractionError) else ExtractionError(str(exc))
            self.log.error(f"  Error processing file {item.name}: {error}")
            return ItemOutcome.failure(item.id, item.name, error), []

        if item.kind == SourceKind.PDF:
            self.log.info(f"    -> Got {len(rasters)} page images.")

        pages = []
        for number, raster in enumerate(rasters, start=1):
            if len(rasters) > 1:
                self.log.info(f"    Analysing PDF page {number}/{len(rasters)}...")
            else:
                self.log.info(f"  Analysing image: {raster.name}...")
            outcome = await analyze_page(self.analyzer, raster, self.language, self.timeout)
            if not outcome.ok:
                self.log.warning(f"  Analysis failed for {raster.name}: {outcome.error}")
            pages.append(outcome.page)

        return ItemOutcome.success(item.id, item.name, len(pages)), pages
