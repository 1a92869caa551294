"""Batch expansion of one template against many parameter lists."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .engine import TemplateExpander
from .errors import ExpansionError

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Result of a batch expansion.

    ``outputs`` has one entry per parameter set; failed sets hold None and
    are listed in ``errors`` by index.
    """

    outputs: List[Optional[str]]
    success_count: int
    error_count: int
    errors: List[Tuple[int, str]] = field(default_factory=list)
    render_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        total = self.success_count + self.error_count
        return (self.success_count / total * 100) if total > 0 else 0.0


class BatchRenderer:
    """Expands a template for each of many parameter sets."""

    def __init__(
        self,
        expander: Optional[TemplateExpander] = None,
        batch_size: int = 100,
        max_workers: int = 4,
    ) -> None:
        """Initialize the batch renderer.

        Args:
            expander: Expander to use (creates new if None)
            batch_size: Parameter sets per worker task
            max_workers: Maximum worker threads for parallel processing
        """
        self.expander = expander or TemplateExpander()
        self.batch_size = batch_size
        self.max_workers = max_workers

    def render(
        self,
        template: str,
        param_sets: Sequence[Sequence[Any]],
        progress_callback: Optional[Callable[[int], None]] = None,
        parallel: bool = True,
    ) -> RenderResult:
        """Expand ``template`` once per parameter set.

        A fatal expansion error only fails its own parameter set.

        Args:
            template: The template to expand
            param_sets: Parameter lists, one per expansion
            progress_callback: Called with the number of sets completed
            parallel: Use worker threads for large batches

        Returns:
            RenderResult with all outputs and statistics
        """
        start_time = time.time()
        n_sets = len(param_sets)
        use_parallel = parallel and n_sets >= self.batch_size

        if use_parallel:
            chunks = self._render_parallel(template, param_sets, progress_callback)
        else:
            chunks = [self._render_batch(template, param_sets, 0)]
            if progress_callback and n_sets:
                progress_callback(n_sets)

        outputs: List[Optional[str]] = []
        errors: List[Tuple[int, str]] = []
        for batch_outputs, batch_errors in chunks:
            outputs.extend(batch_outputs)
            errors.extend(batch_errors)

        render_time = time.time() - start_time
        return RenderResult(
            outputs=outputs,
            success_count=n_sets - len(errors),
            error_count=len(errors),
            errors=errors,
            render_time=render_time,
            metadata={
                "total_sets": n_sets,
                "batch_size": self.batch_size,
                "parallel": use_parallel,
                "avg_time_per_set": render_time / n_sets if n_sets > 0 else 0,
            },
        )

    def _render_parallel(
        self,
        template: str,
        param_sets: Sequence[Sequence[Any]],
        progress_callback: Optional[Callable[[int], None]],
    ) -> List[Tuple[List[Optional[str]], List[Tuple[int, str]]]]:
        """Render batches on worker threads, keeping input order."""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(
                    self._render_batch,
                    template,
                    param_sets[offset : offset + self.batch_size],
                    offset,
                )
                for offset in range(0, len(param_sets), self.batch_size)
            ]

            chunks = []
            for future in futures:
                batch_outputs, batch_errors = future.result()
                chunks.append((batch_outputs, batch_errors))
                if progress_callback:
                    progress_callback(len(batch_outputs))
        return chunks

    def _render_batch(
        self,
        template: str,
        batch: Sequence[Sequence[Any]],
        offset: int,
    ) -> Tuple[List[Optional[str]], List[Tuple[int, str]]]:
        """Render a single batch, collecting per-set errors."""
        outputs: List[Optional[str]] = []
        errors: List[Tuple[int, str]] = []

        for i, params in enumerate(batch):
            try:
                outputs.append(self.expander.expand(template, params))
            except ExpansionError as e:
                logger.warning(f"Parameter set {offset + i} failed: {e}")
                outputs.append(None)
                errors.append((offset + i, str(e)))

        return outputs, errors
