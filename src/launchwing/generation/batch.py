from __future__ import annotations

from typing import Protocol, Sequence

import structlog

from launchwing.core.exceptions import BatchGenerationError, LaunchwingError, PreconditionFailed
from launchwing.core.types import ChatMessage, FileSpec, GeneratedFile
from launchwing.utils.chunking import chunk

logger = structlog.get_logger(__name__)


class BatchGenerator(Protocol):
    async def generate(
        self,
        target_files: Sequence[FileSpec],
        *,
        plan: str,
        already_generated: Sequence[GeneratedFile] | None = None,
        messages: Sequence[ChatMessage] | None = None,
    ) -> list[GeneratedFile]: ...


class BatchOrchestrator:
    """Generate a whole file plan, one batch at a time.

    Batches run strictly in order. Every batch receives the output of all
    earlier batches as ``already_generated`` so later files can reference
    earlier ones consistently.

    Args:
        generator: A :class:`~launchwing.generation.client.CodeGeneratorClient`
            (or anything with the same ``generate`` signature).
        batch_size: Maximum number of files per generator call.
    """

    def __init__(self, generator: BatchGenerator, batch_size: int = 4) -> None:
        self._generator = generator
        self._batch_size = batch_size

    def __repr__(self) -> str:
        return f"BatchOrchestrator(batch_size={self._batch_size})"

    async def generate_all(
        self,
        target_files: Sequence[FileSpec],
        *,
        plan: str,
        messages: Sequence[ChatMessage] | None = None,
    ) -> list[GeneratedFile]:
        """Generate every file in *target_files*.

        Raises:
            PreconditionFailed: *target_files* is empty.
            BatchGenerationError: A batch failed; the original error is
                chained and earlier output is attached for diagnostics.
        """
        if not target_files:
            raise PreconditionFailed(
                "The file plan has no target files",
                code="no_target_files",
            )
        batches = chunk(list(target_files), self._batch_size)
        accumulated: list[GeneratedFile] = []

        for index, batch in enumerate(batches):
            logger.info(
                "batch.start",
                batch=index + 1,
                batches=len(batches),
                paths=[spec.path for spec in batch],
            )
            try:
                files = await self._generator.generate(
                    batch,
                    plan=plan,
                    already_generated=list(accumulated),
                    messages=messages,
                )
            except LaunchwingError as exc:
                logger.error(
                    "batch.failed",
                    batch=index + 1,
                    error=str(exc),
                    completed_files=len(accumulated),
                )
                raise BatchGenerationError(
                    f"Batch {index + 1}/{len(batches)} failed: {exc}",
                    batch_index=index,
                    completed_files=accumulated,
                ) from exc
            accumulated.extend(files)
            logger.info("batch.done", batch=index + 1, files=len(files))

        return accumulated
