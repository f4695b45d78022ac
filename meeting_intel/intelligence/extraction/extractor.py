"""Chunk-level fact extraction for the meeting intelligence pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import time

import structlog

from meeting_intel.config import ResolvedModel, Settings, resolve_model, settings
from meeting_intel.errors import ErrorContext, PipelineStage
from meeting_intel.intelligence.agents.extraction import extraction_agent
from meeting_intel.intelligence.models import ChunkExtraction, ExtractionResult
from meeting_intel.transcript.models import TranscriptChunk
from meeting_intel.types import ProgressCallback, maybe_call
from meeting_intel.utils.model_settings import build_model_settings
from meeting_intel.utils.timeouts import (
    DEFAULT_EXTRACTION_TIMEOUT_MS,
    parse_timeout_ms,
    run_agent_with_timeout,
)

logger = structlog.get_logger(__name__)

EXTRACTION_TEMPERATURE = 0.1
# Pause between sequential calls
INTER_CHUNK_DELAY_S = 0.1
OVERLAP_PREVIEW_CHARS = 200
PREVIOUS_TAIL_CHARS = 1000


class MeetingExtractor:
    """Runs per-chunk extraction to produce structured facts with quotes."""

    def __init__(
        self,
        resolved: ResolvedModel | None = None,
        *,
        max_tokens: int | None = None,
        timeout_ms: float | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self._resolved = resolved or resolve_model(config=config, stage=PipelineStage.EXTRACTION)
        self._agent = extraction_agent
        self._max_tokens = max_tokens or config.extraction_max_tokens
        self._timeout_ms = parse_timeout_ms(
            timeout_ms if timeout_ms is not None else config.ai_request_timeout_ms,
            DEFAULT_EXTRACTION_TIMEOUT_MS,
        )
        logger.info(
            "MeetingExtractor initialized",
            model=self._resolved.label,
            source=self._resolved.source,
            timeout_ms=self._timeout_ms,
        )

    @property
    def timeout_ms(self) -> float:
        return self._timeout_ms

    async def extract_from_chunks(
        self,
        chunks: Sequence[TranscriptChunk],
        progress_callback: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Extract chunks in order, feeding each carry-over summary into the next prompt."""
        start_time = time.time()
        total = len(chunks)
        extractions: list[ChunkExtraction] = []
        running_summary = ""

        await maybe_call(progress_callback, 0.05, f"Preparing to extract {total} chunks...")

        for position, chunk in enumerate(chunks):
            if position > 0:
                await asyncio.sleep(INTER_CHUNK_DELAY_S)

            extraction = await self.extract_from_chunk(
                chunk, running_summary, total_chunks=total
            )
            extractions.append(extraction)
            running_summary = extraction.summary_for_next_chunk

            # Map to 5% - 50% range (extraction stage)
            await maybe_call(
                progress_callback,
                0.05 + ((position + 1) / total) * 0.45,
                f"Extracting chunks: {position + 1}/{total}",
            )

        return self._build_result(extractions, start_time)

    async def extract_concurrently(
        self,
        chunks: Sequence[TranscriptChunk],
        max_concurrency: int = 3,
        progress_callback: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Extract chunks in parallel; each prompt carries the previous chunk's tail instead of a summary."""
        start_time = time.time()
        total = len(chunks)
        if total == 0:
            return self._build_result([], start_time)

        semaphore = asyncio.Semaphore(max(1, max_concurrency))
        results: list[ChunkExtraction | None] = [None] * total
        processed_count = 0
        progress_lock = asyncio.Lock()

        await maybe_call(progress_callback, 0.05, f"Preparing to extract {total} chunks...")

        async def handle_chunk(position: int) -> None:
            nonlocal processed_count
            previous = chunks[position - 1].content[-PREVIOUS_TAIL_CHARS:] if position else None
            async with semaphore:
                results[position] = await self.extract_from_chunk(
                    chunks[position],
                    total_chunks=total,
                    previous_context=previous,
                )

            async with progress_lock:
                processed_count += 1
                progress = 0.05 + (processed_count / total) * 0.45
            await maybe_call(
                progress_callback, progress, f"Extracting chunks: {processed_count}/{total}"
            )

        tasks = [asyncio.create_task(handle_chunk(position)) for position in range(total)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        ordered: list[ChunkExtraction] = []
        for extraction in results:
            if extraction is None:
                raise RuntimeError("Missing chunk extraction after processing.")
            ordered.append(extraction)
        return self._build_result(ordered, start_time)

    async def extract_from_chunk(
        self,
        chunk: TranscriptChunk,
        running_summary: str = "",
        *,
        total_chunks: int | None = None,
        previous_context: str | None = None,
    ) -> ChunkExtraction:
        """Issue one schema-constrained extraction call for a chunk."""
        prompt = self.build_prompt(chunk, running_summary, previous_context)

        logger.info(
            "Running extraction agent",
            chunk_index=chunk.index,
            speakers=len(chunk.speakers_present),
            chars=len(chunk.content),
            has_context=bool(running_summary or previous_context),
        )

        extraction: ChunkExtraction = await run_agent_with_timeout(
            self._agent,
            prompt,
            resolved=self._resolved,
            stage=PipelineStage.EXTRACTION,
            timeout_ms=self._timeout_ms,
            model_settings=build_model_settings(
                self._resolved,
                temperature=EXTRACTION_TEMPERATURE,
                max_tokens=self._max_tokens,
                reasoning_effort="low",
            ),
            context=ErrorContext(
                chunk_index=chunk.index + 1,
                total_chunks=total_chunks,
                model=self._resolved.model,
                provider=self._resolved.provider,
            ),
        )

        logger.info(
            "Chunk extraction completed",
            chunk_index=chunk.index,
            decisions=len(extraction.decisions),
            action_items=len(extraction.action_items),
            deliverables=len(extraction.deliverables),
            key_points=len(extraction.key_points),
        )
        return extraction

    @staticmethod
    def build_prompt(
        chunk: TranscriptChunk,
        running_summary: str = "",
        previous_context: str | None = None,
    ) -> str:
        parts: list[str] = []

        if running_summary:
            parts.append(f"CONTEXT FROM PREVIOUS SECTION:\n{running_summary}\n")
        elif previous_context:
            parts.append(f"END OF PREVIOUS SECTION:\n...{previous_context}\n")

        parts.append(f"TRANSCRIPT SECTION {chunk.index + 1}:")
        if chunk.speakers_present:
            parts.append(f"Speakers in this section: {', '.join(chunk.speakers_present)}")

        parts.append(f"\n{chunk.content}")

        if chunk.has_overlap and chunk.overlap_content:
            parts.append(
                f"\n[Section continues with: {chunk.overlap_content[:OVERLAP_PREVIEW_CHARS]}...]"
            )

        parts.append(
            "\nExtract all decisions, action items, deliverables, and key points from this "
            "transcript section. Include direct quotes to support each extraction."
        )
        return "\n".join(parts)

    def _build_result(
        self, extractions: list[ChunkExtraction], start_time: float
    ) -> ExtractionResult:
        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Extraction completed",
            total_chunks=len(extractions),
            total_facts=sum(e.fact_count() for e in extractions),
            processing_time_ms=processing_time_ms,
        )
        return ExtractionResult(
            extractions=extractions,
            total_chunks=len(extractions),
            processing_time_ms=processing_time_ms,
        )
