"""Run target jobs as a dependency graph on a thread pool.

Independent nodes run concurrently. A node that fails (or is skipped) fails
its dependents with ``dependency_failed``; unrelated nodes keep running.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from graphlib import TopologicalSorter
from typing import TypeAlias, TypeVar

from grimrel.core.result import Err, Result
from grimrel.services.pipeline.errors import PipelineError

T = TypeVar("T")

NodeResult: TypeAlias = Result[T, PipelineError]


def _dependency_failed(node: str, failed: list[str]) -> Err[PipelineError]:
    return Err(
        PipelineError(
            kind="dependency_failed",
            target=node,
            message=f"not run: predecessor failed: {', '.join(failed)}",
            hint="fix and re-run the failed predecessor first",
        )
    )


def _run_guarded(run_node: Callable[[str], NodeResult[T]], node: str) -> NodeResult[T]:
    try:
        return run_node(node)
    except Exception as e:  # noqa: BLE001
        return Err(
            PipelineError(
                kind="tool_failed",
                target=node,
                message=f"job crashed: {type(e).__name__}: {e}",
            )
        )


def run_graph(
    nodes: Mapping[str, tuple[str, ...]],
    run_node: Callable[[str], NodeResult[T]],
    *,
    max_workers: int | None = None,
) -> dict[str, NodeResult[T]]:
    """Run every node once its predecessors succeeded; returns a result per node.

    ``nodes`` maps node id to predecessor ids; every predecessor must itself
    be a node. Cycles raise ``graphlib.CycleError``.
    """
    sorter = TopologicalSorter({node: set(preds) for node, preds in nodes.items()})
    sorter.prepare()

    results: dict[str, NodeResult[T]] = {}
    workers = max_workers or max(1, len(nodes))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        running: dict[Future[NodeResult[T]], str] = {}

        while sorter.is_active():
            for node in sorter.get_ready():
                failed = [p for p in nodes[node] if isinstance(results.get(p), Err)]
                if failed:
                    results[node] = _dependency_failed(node, failed)
                    sorter.done(node)
                    continue
                running[pool.submit(_run_guarded, run_node, node)] = node

            if not running:
                continue

            finished, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in finished:
                node = running.pop(future)
                results[node] = future.result()
                sorter.done(node)

    return results
