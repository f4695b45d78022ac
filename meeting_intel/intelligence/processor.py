"""Meeting processor wiring chunking, extraction, refinement, generation and editing."""

from __future__ import annotations

from dataclasses import dataclass
import time

import structlog

from meeting_intel.config import ResolvedModel, Settings, resolve_model, settings
from meeting_intel.errors import MeetingPipelineError, PipelineStage, wrap_error
from meeting_intel.intelligence.editing.editor import MeetingEditor, to_final_output
from meeting_intel.intelligence.extraction.extractor import MeetingExtractor
from meeting_intel.intelligence.generation.generator import MeetingGenerator
from meeting_intel.intelligence.models import FinalOutput, ProcessingStats
from meeting_intel.intelligence.refinement.refiner import MeetingRefiner
from meeting_intel.transcript.models import ChunkerOptions, MeetingMetadata
from meeting_intel.transcript.services.chunker import TranscriptChunker
from meeting_intel.transcript.services.validator import validate_transcript
from meeting_intel.types import ProgressCallback, maybe_call

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProcessedMeeting:
    output: FinalOutput
    metadata: MeetingMetadata
    stats: ProcessingStats


class MeetingProcessor:
    """Runs the staged meeting pipeline and reports stage-tagged failures."""

    def __init__(
        self,
        resolved: ResolvedModel | None = None,
        *,
        config: Settings | None = None,
        max_concurrency: int = 1,
    ) -> None:
        config = config or settings
        resolved = resolved or resolve_model(config=config)
        self._resolved = resolved
        self._max_concurrency = max_concurrency
        self._chunker = TranscriptChunker(
            ChunkerOptions(chunk_size=config.chunk_size, overlap_size=config.overlap_size)
        )
        self._extractor = MeetingExtractor(resolved, config=config)
        self._refiner = MeetingRefiner(resolved, config=config)
        self._generator = MeetingGenerator(resolved, config=config)
        self._editor = MeetingEditor(resolved, config=config)
        logger.info(
            "MeetingProcessor initialized",
            model=resolved.label,
            source=resolved.source,
            chunk_size=config.chunk_size,
            overlap_size=config.overlap_size,
            max_concurrency=max_concurrency,
        )

    async def process(
        self,
        transcript: str,
        generate_prd: bool | None = None,
        edit: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> ProcessedMeeting:
        """Run every stage in order; any failure surfaces tagged with the running stage."""
        start_time = time.time()
        stage = PipelineStage.CHUNKING

        try:
            # Stage 1: Chunking (0% - 5%)
            stage_start = time.time()
            await maybe_call(progress_callback, 0.0, "Chunking transcript...")
            validate_transcript(transcript)
            chunks = self._chunker.chunk(transcript)
            metadata = self._chunker.extract_metadata(transcript)
            logger.info(
                "Chunking stage completed",
                total_chunks=len(chunks),
                attendees=len(metadata.attendees),
                stage_time_ms=int((time.time() - stage_start) * 1000),
            )

            # Stage 2: Extraction (5% - 50%)
            stage = PipelineStage.EXTRACTION
            stage_start = time.time()
            if self._max_concurrency > 1:
                extraction = await self._extractor.extract_concurrently(
                    chunks, self._max_concurrency, progress_callback
                )
            else:
                extraction = await self._extractor.extract_from_chunks(chunks, progress_callback)
            logger.info(
                "Extraction stage completed",
                extractions=len(extraction.extractions),
                stage_time_ms=int((time.time() - stage_start) * 1000),
            )

            # Stage 3: Refinement (50% - 70%)
            stage = PipelineStage.REFINEMENT
            await maybe_call(progress_callback, 0.55, "Consolidating extracted facts...")
            refinement = await self._refiner.refine(extraction.extractions)
            refined = refinement.refined
            await maybe_call(progress_callback, 0.7, "Consolidation complete")

            # Stage 4: Generation (70% - 90%)
            stage = PipelineStage.GENERATION
            await maybe_call(progress_callback, 0.75, "Generating meeting notes...")
            generated = await self._generator.generate(refined, generate_prd, metadata)
            output = to_final_output(generated.resources)
            changes_applied: list[str] = []

            # Stage 5: Editing (90% - 100%)
            if edit:
                stage = PipelineStage.EDITING
                await maybe_call(progress_callback, 0.9, "Polishing documents...")
                edited = await self._editor.edit(generated.resources)
                output = edited.output
                changes_applied = edited.changes_applied
        except MeetingPipelineError:
            raise
        except Exception as e:
            logger.error("Pipeline stage failed", stage=stage.value, error=str(e))
            raise wrap_error(e, stage) from e

        total_time = int((time.time() - start_time) * 1000)
        stats = ProcessingStats(
            total_chunks=len(chunks),
            refinement_passes=1,
            processing_time_ms=total_time,
            decisions_found=len(refined.decisions),
            action_items_found=len(refined.action_items),
            deliverables_found=len(refined.deliverables),
            prd_generated=generated.prd_generated,
            changes_applied=len(changes_applied),
        )
        await maybe_call(progress_callback, 1.0, "Processing complete")

        logger.info(
            "Meeting pipeline completed",
            total_time_ms=total_time,
            decisions=stats.decisions_found,
            action_items=stats.action_items_found,
            deliverables=stats.deliverables_found,
            prd_generated=stats.prd_generated,
        )
        return ProcessedMeeting(output=output, metadata=metadata, stats=stats)
