"""
Research-partner prompt building.

Renders the user's active experiment, their recent logs and a few past
experiments into the system prompt for the chat model. The only bounding is
the fixed caps (days of logs, number of logs, number of past experiments);
everything is ordered most recent first and older material is cut off.
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from core.config import settings
from models import Profile
from schemas import (
    DEFAULT_SCALE,
    ContextExperiment,
    ContextLog,
    ContextMetric,
    ContextPastExperiment,
    ResearchContext,
)
from services import experiment_service
from services.dates import to_date_string
from services.experiment_progress import experiment_progress

LOG_TYPE_LABELS: Dict[str, str] = {
    "before_sit": "Before Sit",
    "after_sit": "After Sit",
    "eod": "EOD",
}

NO_ACTIVE_EXPERIMENT = "No active experiment. The user may want help designing one."
NO_LOGS = "No logs yet."
NO_PAST_EXPERIMENTS = "No past experiments."

PROMPT_INTRO = """You are a contemplative research partner. You help users investigate their inner life with scientific curiosity and rigor.

## Your Role

You are a collaborator, not a teacher. You help users:
- Design experiments that test real hypotheses about their practice
- Notice patterns in their data they might miss
- Ask good questions about what they're observing
- Maintain scientific honesty: null results are data too
- Connect findings to broader contemplative traditions when relevant

## Your Style

- Curious and engaged, never judgmental
- Ask questions that sharpen their inquiry
- Point out patterns: "Your clarity scores are 2 points higher after morning sits vs evening"
- Celebrate good methodology, not just good outcomes
- Honest about uncertainty: "We'd need more data to know if that's a pattern"
- Grounded in the data they've collected
- Concise; this is a conversation, not a lecture
"""

PROMPT_GUIDELINES = """## Guidelines

- Ground conversations in their actual data
- If they haven't logged today, note it without judgment
- Help them see patterns across time
- When they're struggling, help them adjust the experiment rather than abandoning it
- The goal is insight, not achievement
- If they ask about their hypothesis, evaluate it honestly based on the data
"""


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _metric_labels(metrics: List[ContextMetric]) -> Dict[str, Tuple[str, int]]:
    return {m.id: (m.name, m.scale[1]) for m in metrics}


def format_ratings(ratings: Dict[str, float], metrics: List[ContextMetric]) -> str:
    """'State: 5/7, Clarity: 4/7'. Unknown metric ids render with the default scale."""
    labels = _metric_labels(metrics)
    parts = []
    for metric_id, value in ratings.items():
        name, scale_max = labels.get(metric_id, (metric_id, DEFAULT_SCALE[1]))
        parts.append(f"{name}: {_format_number(value)}/{scale_max}")
    return ", ".join(parts)


def format_logs(
    logs: List[ContextLog],
    metrics: Optional[List[ContextMetric]] = None,
    max_days: Optional[int] = None,
    max_logs: Optional[int] = None,
) -> str:
    if not logs:
        return NO_LOGS

    if max_days is None:
        max_days = settings.CHAT_CONTEXT_DAYS
    if max_logs is None:
        max_logs = settings.CHAT_CONTEXT_LOGS
    metrics = metrics or []

    newest_first = sorted(logs, key=lambda log: log.date, reverse=True)[:max_logs]
    by_date: "OrderedDict[str, List[ContextLog]]" = OrderedDict()
    for log in newest_first:
        by_date.setdefault(log.date, []).append(log)

    lines: List[str] = []
    for day in list(by_date.keys())[:max_days]:
        lines.append(f"--- {day} ---")
        for log in by_date[day]:
            lines.append(f"[{LOG_TYPE_LABELS.get(log.type, log.type)}]")
            if log.sit_duration:
                lines.append(f"Duration: {log.sit_duration} min")
            ratings = format_ratings(log.ratings, metrics)
            if ratings:
                lines.append(f"Ratings: {ratings}")
            if log.notes:
                lines.append(f"Notes: {log.notes}")
            lines.append("")

    return "\n".join(lines)


def format_past_experiments(experiments: List[ContextPastExperiment], limit: Optional[int] = None) -> str:
    if limit is None:
        limit = settings.CHAT_PAST_EXPERIMENTS
    experiments = experiments[:limit]
    if not experiments:
        return NO_PAST_EXPERIMENTS

    blocks = []
    for e in experiments:
        block = f"**{e.title}** ({e.duration} days, {e.status})"
        block += f"\nHypothesis: {e.hypothesis}"
        if e.conclusion:
            block += f"\nConclusion: {e.conclusion}"
        blocks.append(block)
    return "\n\n".join(blocks)


def format_active_experiment(experiment: Optional[ContextExperiment]) -> str:
    if experiment is None:
        return NO_ACTIVE_EXPERIMENT
    return (
        f"**Title:** {experiment.title}\n"
        f"**Hypothesis:** {experiment.hypothesis}\n"
        f"**Protocol:** {experiment.protocol}\n"
        f"**Metrics:** {', '.join(m.name for m in experiment.metrics)}\n"
        f"**Progress:** Day {experiment.current_day} of {experiment.duration_days}"
    )


def format_context(context: ResearchContext) -> str:
    """The data sections of the prompt, without the fixed persona text."""
    metrics = context.active_experiment.metrics if context.active_experiment else []
    sections = [
        f"## Current Experiment\n\n{format_active_experiment(context.active_experiment)}\n",
        f"## Recent Logs\n\n{format_logs(context.recent_logs, metrics)}\n",
    ]
    past = format_past_experiments(context.past_experiments)
    if past != NO_PAST_EXPERIMENTS:
        sections.append(f"## Past Experiments\n\n{past}\n")
    return "\n".join(sections)


def build_system_prompt(context: ResearchContext, today: date) -> str:
    return "\n".join([
        PROMPT_INTRO,
        f"## Today\n\nToday is {to_date_string(today)}.\n",
        format_context(context),
        PROMPT_GUIDELINES,
    ])


def build_research_context(db: Session, profile: Profile, today: date) -> ResearchContext:
    """Context from the caller's stored data, for requests that do not send one."""
    active = experiment_service.get_active_experiment(db, profile.id)
    active_context = None
    if active is not None:
        active_context = ContextExperiment(
            title=active.title,
            hypothesis=active.hypothesis,
            protocol=active.protocol,
            metrics=[ContextMetric.model_validate(m) for m in active.metrics or []],
            duration_days=active.duration_days,
            current_day=experiment_progress(active, today).current_day,
        )

    recent = experiment_service.list_recent_logs(db, profile.id, limit=settings.CHAT_CONTEXT_LOGS)
    recent_context = [
        ContextLog(
            date=to_date_string(log.entry_date),
            type=log.entry_type,
            ratings=log.ratings or {},
            notes=log.notes,
            sit_duration=log.sit_duration_minutes,
        )
        for log in recent
    ]

    past = [e for e in experiment_service.list_experiments(db, profile.id) if not e.is_active]
    past_context = [
        ContextPastExperiment(
            title=e.title,
            hypothesis=e.hypothesis,
            status=e.status,
            duration=e.duration_days,
            conclusion=e.conclusion,
        )
        for e in past[: settings.CHAT_PAST_EXPERIMENTS]
    ]

    return ResearchContext(
        active_experiment=active_context,
        recent_logs=recent_context,
        past_experiments=past_context,
    )
