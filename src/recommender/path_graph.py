"""Learning-path prerequisite graph: load-time validation and progress resolution."""

import heapq
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, Mapping, Optional

import structlog

from shared_types import EnrollmentStatus

from .errors import GraphIntegrityError
from .models import LearningPath, PathStep, StepProgress
from .schemas import NextStep, PathProgressView

logger = structlog.get_logger()

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class PathPolicy:
    """Progress policy knobs.

    complete_when_no_required_steps: a path with zero required steps counts as
        complete once every (optional) step is done. Off by default, so such
        paths never auto-complete.
    optional_step_weight: weight of optional steps in the enrollment progress
        aggregate (required steps weigh 1.0).
    """

    complete_when_no_required_steps: bool = False
    optional_step_weight: float = 0.0


def percent_complete(completed: int, total: int) -> float:
    """completed/total as a percentage, truncated to two decimals, clamped [0, 100].

    Truncating instead of rounding keeps 100.0 reserved for "all done".
    """
    if total <= 0:
        return 0.0
    pct = (Decimal(completed) * 100 / Decimal(total)).quantize(_CENT, rounding=ROUND_DOWN)
    return float(max(Decimal(0), min(Decimal(100), pct)))


def is_step_done(progress: Optional[StepProgress]) -> bool:
    return progress is not None and (progress.completed or progress.progress_percentage >= 100.0)


class PathGraph:
    """Validated prerequisite DAG of a path's steps, held as an id-indexed arena."""

    def __init__(
        self,
        path_id: Optional[str],
        steps: dict[str, PathStep],
        prerequisites: dict[str, frozenset[str]],
        topo_order: list[str],
    ):
        self.path_id = path_id
        self._steps = steps
        self._prerequisites = prerequisites
        self._topo_order = topo_order
        self._by_order = sorted(steps.values(), key=lambda s: (s.order, s.id))

    @classmethod
    def build(cls, steps: Iterable[PathStep], path_id: Optional[str] = None) -> "PathGraph":
        """Index steps and validate the prerequisite relation.

        Raises:
            GraphIntegrityError: duplicate ids, unknown prerequisite ids, a cycle,
                or a prerequisite whose order is not strictly smaller.
        """
        arena: dict[str, PathStep] = {}
        for step in steps:
            if step.id in arena:
                raise GraphIntegrityError(f"Duplicate step id {step.id!r}", path_id, [step.id])
            arena[step.id] = step

        prerequisites = {sid: frozenset(s.prerequisite_step_ids) for sid, s in arena.items()}

        dangling = sorted(
            (sid, pre) for sid, pres in prerequisites.items() for pre in pres if pre not in arena
        )
        if dangling:
            sid, pre = dangling[0]
            raise GraphIntegrityError(
                f"Step {sid!r} references unknown prerequisite {pre!r}",
                path_id,
                sorted({d[0] for d in dangling}),
            )

        topo_order = cls._topological_sort(arena, prerequisites, path_id)

        for sid, pres in prerequisites.items():
            for pre in pres:
                if arena[pre].order >= arena[sid].order:
                    raise GraphIntegrityError(
                        f"Step {sid!r} (order {arena[sid].order}) requires {pre!r} "
                        f"(order {arena[pre].order}); prerequisites must have a smaller order",
                        path_id,
                        [sid, pre],
                    )

        return cls(path_id, arena, prerequisites, topo_order)

    @staticmethod
    def _topological_sort(
        arena: dict[str, PathStep],
        prerequisites: dict[str, frozenset[str]],
        path_id: Optional[str],
    ) -> list[str]:
        """Kahn's algorithm, ties broken by (order, id). Fails on any cycle."""
        indegree = {sid: len(pres) for sid, pres in prerequisites.items()}
        dependents: dict[str, list[str]] = {sid: [] for sid in arena}
        for sid, pres in prerequisites.items():
            for pre in pres:
                dependents[pre].append(sid)

        ready = [(arena[sid].order, sid) for sid, deg in indegree.items() if deg == 0]
        heapq.heapify(ready)
        ordered: list[str] = []
        while ready:
            _, sid = heapq.heappop(ready)
            ordered.append(sid)
            for dep in dependents[sid]:
                indegree[dep] -= 1
                if indegree[dep] == 0:
                    heapq.heappush(ready, (arena[dep].order, dep))

        if len(ordered) != len(arena):
            stuck = sorted(sid for sid, deg in indegree.items() if deg > 0)
            logger.error("path_graph.cycle", path_id=path_id, steps=stuck)
            raise GraphIntegrityError(
                f"Prerequisite cycle among steps {stuck}", path_id, stuck
            )
        return ordered

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, step_id: str) -> bool:
        return step_id in self._steps

    def step(self, step_id: str) -> PathStep:
        return self._steps[step_id]

    def prerequisites_of(self, step_id: str) -> frozenset[str]:
        return self._prerequisites[step_id]

    def topological_order(self) -> list[str]:
        return list(self._topo_order)

    def steps_by_order(self) -> list[PathStep]:
        return list(self._by_order)

    @property
    def required_ids(self) -> frozenset[str]:
        return frozenset(sid for sid, s in self._steps.items() if s.is_required)

    def starting_points(self) -> list[PathStep]:
        """Steps with no prerequisites."""
        return [s for s in self._by_order if not self._prerequisites[s.id]]

    def is_unlocked(self, step_id: str, completed: Iterable[str]) -> bool:
        """True iff every prerequisite of step_id is completed."""
        done = completed if isinstance(completed, (set, frozenset)) else set(completed)
        return self._prerequisites[step_id] <= done

    def next_step(self, completed: Iterable[str]) -> Optional[PathStep]:
        """Lowest-order unlocked incomplete required step, else optional, else None."""
        done = frozenset(completed)
        fallback = None
        for step in self._by_order:
            if step.id in done or not self.is_unlocked(step.id, done):
                continue
            if step.is_required:
                return step
            if fallback is None:
                fallback = step
        return fallback


class PathGraphResolver:
    """Resolve a learner's position in a path: next step, completion, status."""

    def __init__(self, repository=None, policy: Optional[PathPolicy] = None):
        self.repository = repository
        self.policy = policy or PathPolicy()

    def resolve(self, user_id: str, path_id: str) -> PathProgressView:
        """Fetch snapshots for (user, path) and evaluate them."""
        if self.repository is None:
            raise RuntimeError("PathGraphResolver.resolve needs a repository")
        path = self.repository.get_learning_path(path_id)
        # Validate before touching user data so bad catalog data fails fast
        graph = PathGraph.build(path.steps, path_id=path.id)
        progress = self.repository.get_user_step_progress(user_id, path_id)
        enrollment = self.repository.get_enrollment(user_id, path_id)
        return self.evaluate(
            path,
            progress,
            user_id=user_id,
            current_status=enrollment.status if enrollment else None,
            graph=graph,
        )

    def evaluate(
        self,
        path: LearningPath,
        progress: Mapping[str, StepProgress],
        user_id: Optional[str] = None,
        current_status: Optional[EnrollmentStatus] = None,
        graph: Optional[PathGraph] = None,
    ) -> PathProgressView:
        """Pure evaluation of a path snapshot against a progress snapshot."""
        graph = graph or PathGraph.build(path.steps, path_id=path.id)
        completed = completed_step_ids(graph, progress)

        required = graph.required_ids
        completed_required = len(required & completed)
        total_required = len(required)

        if total_required > 0:
            is_complete = completed_required == total_required
            pct = percent_complete(completed_required, total_required)
        elif self.policy.complete_when_no_required_steps:
            is_complete = len(completed) == len(graph)
            pct = 100.0 if is_complete else 0.0
        else:
            is_complete = False
            pct = 0.0

        nxt = graph.next_step(completed)
        started = bool(completed) or any(
            p.progress_percentage > 0 or p.time_spent_minutes > 0
            for sid, p in progress.items()
            if sid in graph
        )

        if is_complete:
            status = EnrollmentStatus.COMPLETED
        elif current_status == EnrollmentStatus.ABANDONED:
            status = EnrollmentStatus.ABANDONED
        elif started:
            status = EnrollmentStatus.IN_PROGRESS
        else:
            status = EnrollmentStatus.NOT_STARTED

        view = PathProgressView(
            user_id=user_id,
            path_id=path.id,
            percent_complete=pct,
            next_step=(
                NextStep(id=nxt.id, title=nxt.title, order=nxt.order, is_required=nxt.is_required)
                if nxt
                else None
            ),
            completed_required_count=completed_required,
            total_required_count=total_required,
            status=status,
        )
        logger.debug(
            "path_graph.resolved",
            user_id=user_id,
            path_id=path.id,
            percent=pct,
            next_step=nxt.id if nxt else None,
            status=str(status),
        )
        return view


def completed_step_ids(graph: PathGraph, progress: Mapping[str, StepProgress]) -> frozenset[str]:
    """Ids of completed steps that belong to the graph; stale ids are dropped."""
    stale = [sid for sid in progress if sid not in graph]
    if stale:
        logger.debug("path_graph.stale_progress", path_id=graph.path_id, step_ids=sorted(stale))
    return frozenset(sid for sid, p in progress.items() if sid in graph and is_step_done(p))
