"""Enrollment progress aggregation and per-learner path analytics."""

from datetime import datetime, timedelta
from decimal import ROUND_DOWN, Decimal
from typing import Mapping, Optional

import structlog

from shared_types import EnrollmentStatus

from .models import LearningPath, StepProgress
from .path_graph import PathGraph, PathGraphResolver, PathPolicy, completed_step_ids, is_step_done
from .schemas import EnrollmentSummary, PathAnalytics

logger = structlog.get_logger()

# A step counts as a struggle past this many attempts or minutes
STRUGGLE_ATTEMPTS = 3
STRUGGLE_MINUTES = 480
# Completed faster than this = strong area
STRONG_MINUTES = 120


def _truncate(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_DOWN))


def summarize_enrollment(
    path: LearningPath,
    progress: Mapping[str, StepProgress],
    user_id: Optional[str] = None,
    policy: Optional[PathPolicy] = None,
    current_status: Optional[EnrollmentStatus] = None,
) -> EnrollmentSummary:
    """Roll step progress up into the enrollment record.

    progress_percentage is the weighted mean of step progress, required steps
    weighing 1.0 and optional steps policy.optional_step_weight. Completed
    steps count as 100 regardless of their recorded percentage.
    """
    policy = policy or PathPolicy()
    graph = PathGraph.build(path.steps, path_id=path.id)
    done = completed_step_ids(graph, progress)

    weighted = 0.0
    total_weight = 0.0
    for step in graph.steps_by_order():
        weight = 1.0 if step.is_required else policy.optional_step_weight
        if weight <= 0:
            continue
        entry = progress.get(step.id)
        if step.id in done:
            pct = 100.0
        elif entry is not None:
            pct = max(0.0, min(100.0, entry.progress_percentage))
        else:
            pct = 0.0
        weighted += weight * pct
        total_weight += weight

    progress_pct = _truncate(weighted / total_weight) if total_weight > 0 else 0.0
    minutes = sum(p.time_spent_minutes for sid, p in progress.items() if sid in graph)

    view = PathGraphResolver(policy=policy).evaluate(
        path, progress, user_id=user_id, current_status=current_status, graph=graph
    )
    if view.status == EnrollmentStatus.COMPLETED:
        progress_pct = 100.0

    return EnrollmentSummary(
        user_id=user_id,
        path_id=path.id,
        status=view.status,
        progress_percentage=progress_pct,
        completed_steps=len(done),
        total_steps=len(graph),
        completed_required=view.completed_required_count,
        total_required=view.total_required_count,
        time_spent_hours=round(minutes / 60, 2),
    )


def learning_velocity(progress: Mapping[str, StepProgress], now: datetime) -> float:
    """Completed steps per week since the earliest started step.

    Under one week of history the raw completed count is returned.
    """
    completed = sum(1 for p in progress.values() if is_step_done(p))
    if completed == 0:
        return 0.0
    starts = [p.started_at for p in progress.values() if p.started_at is not None]
    if not starts:
        return 0.0
    weeks = (now - min(starts)).days // 7
    return round(completed / weeks, 2) if weeks > 0 else float(completed)


def path_analytics(
    path: LearningPath,
    progress: Mapping[str, StepProgress],
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
    policy: Optional[PathPolicy] = None,
) -> PathAnalytics:
    """Time, velocity and struggle/strength breakdown for one learner on one path."""
    now = now or datetime.now()
    graph = PathGraph.build(path.steps, path_id=path.id)
    view = PathGraphResolver(policy=policy).evaluate(path, progress, user_id=user_id, graph=graph)
    known = {sid: p for sid, p in progress.items() if sid in graph}

    done = [p for p in known.values() if is_step_done(p)]
    avg_minutes = round(sum(p.time_spent_minutes for p in done) / len(done), 2) if done else 0.0

    order_of = {s.id: i for i, s in enumerate(graph.steps_by_order())}
    struggling = sorted(
        (sid for sid, p in known.items()
         if p.attempts > STRUGGLE_ATTEMPTS or p.time_spent_minutes > STRUGGLE_MINUTES),
        key=order_of.__getitem__,
    )
    strong = sorted(
        (sid for sid, p in known.items() if is_step_done(p) and p.time_spent_minutes < STRONG_MINUTES),
        key=order_of.__getitem__,
    )

    velocity = learning_velocity(known, now)
    if view.is_complete:
        estimated = now
    elif velocity > 0:
        if view.total_required_count > 0:
            remaining = view.total_required_count - view.completed_required_count
        else:
            remaining = len(graph) - len(done)
        estimated = now + timedelta(weeks=remaining / velocity)
    else:
        estimated = None

    analytics = PathAnalytics(
        user_id=user_id,
        path_id=path.id,
        percent_complete=view.percent_complete,
        completed_steps=len(done),
        total_steps=len(graph),
        time_spent_hours=round(sum(p.time_spent_minutes for p in known.values()) / 60, 2),
        average_step_minutes=avg_minutes,
        struggling_steps=struggling,
        strong_steps=strong,
        learning_velocity=velocity,
        estimated_completion=estimated,
    )
    logger.debug("path_analytics.computed", user_id=user_id, path_id=path.id, velocity=velocity)
    return analytics
