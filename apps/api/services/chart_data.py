"""
Chart data for experiment metrics.

Turns log entries into date-keyed points for the experiment chart:

    {"date": "2026-01-10", "state": 5.0, "clarity": 4.5}

Two shapes:
- raw: one point per log entry, same-day entries are not merged
- aggregated: one point per date, each metric averaged over the entries that
  carry it

A metric with no value is left out of the point, never emitted as 0 or None,
so the chart draws a gap instead of a dip. Dates are zero-padded ISO strings,
so sorting them as strings sorts them chronologically.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from services.dates import to_date_string


ChartPoint = Dict[str, Any]


def _metric_id(metric: Any) -> str:
    if isinstance(metric, Mapping):
        return metric["id"]
    return metric.id


def _entry_date(log: Any) -> str:
    return to_date_string(log.entry_date)


def _rating(log: Any, metric_id: str) -> Optional[float]:
    return (log.ratings or {}).get(metric_id)


def _sorted_by_date(points: List[ChartPoint]) -> List[ChartPoint]:
    # sorted() is stable, same-date points keep their input order
    return sorted(points, key=lambda p: p["date"])


def filter_logs_by_type(logs: List[Any], types: Optional[Iterable[str]] = None) -> List[Any]:
    """Keep entries whose entry_type is in types. No types means no filtering."""
    if not types:
        return logs
    wanted = set(types)
    return [log for log in logs if log.entry_type in wanted]


def transform_logs_to_chart_data(logs: Sequence[Any], metrics: Sequence[Any]) -> List[ChartPoint]:
    """One point per log entry, sorted by date ascending."""
    metric_ids = [_metric_id(m) for m in metrics]
    points: List[ChartPoint] = []
    for log in logs:
        point: ChartPoint = {"date": _entry_date(log)}
        for metric_id in metric_ids:
            value = _rating(log, metric_id)
            if value is not None:
                point[metric_id] = value
        points.append(point)
    return _sorted_by_date(points)


def aggregate_by_date(logs: Sequence[Any], metrics: Sequence[Any]) -> List[ChartPoint]:
    """One point per date, each metric averaged across that date's entries."""
    metric_ids = [_metric_id(m) for m in metrics]

    by_date: "OrderedDict[str, List[Any]]" = OrderedDict()
    for log in logs:
        by_date.setdefault(_entry_date(log), []).append(log)

    points: List[ChartPoint] = []
    for day, day_logs in by_date.items():
        point: ChartPoint = {"date": day}
        for metric_id in metric_ids:
            values = [v for v in (_rating(log, metric_id) for log in day_logs) if v is not None]
            if values:
                point[metric_id] = sum(values) / len(values)
        points.append(point)
    return _sorted_by_date(points)


def get_metric_series(logs: Sequence[Any], metric_id: str) -> List[Dict[str, Any]]:
    """[{date, value}] for one metric, one pair per entry that carries it."""
    series = []
    for log in logs:
        value = _rating(log, metric_id)
        if value is not None:
            series.append({"date": _entry_date(log), "value": value})
    return sorted(series, key=lambda p: p["date"])


def build_chart(
    logs: List[Any],
    metrics: Sequence[Any],
    types: Optional[Iterable[str]] = None,
    aggregate: bool = True,
) -> List[ChartPoint]:
    """Filter by entry type, then produce aggregated or raw points."""
    filtered = filter_logs_by_type(logs, types)
    if aggregate:
        return aggregate_by_date(filtered, metrics)
    return transform_logs_to_chart_data(filtered, metrics)
