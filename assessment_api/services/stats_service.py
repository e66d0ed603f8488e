"""Service layer for score analytics."""
from collections import Counter
from typing import Iterable

SCORE_TREND_LENGTH = 10
HISTOGRAM_BUCKET = 10


def resolve_metric(source: dict[str, object] | None, key: str) -> int | None:
    """Read a numeric field, ignoring booleans and missing values."""
    if not isinstance(source, dict):
        return None
    value = source.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


def _average(values: list[int]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def _distribution(results: Iterable[dict[str, object]], key: str) -> dict[str, int]:
    counter = Counter(str(item.get(key) or "unknown") for item in results)
    return dict(sorted(counter.items()))


def score_histogram(scores: Iterable[int]) -> list[dict[str, object]]:
    """
    Count scores in 10-point buckets: 0-9, 10-19, ..., 90-100.
    A score of 100 falls in the last bucket.
    """
    buckets = [0] * (100 // HISTOGRAM_BUCKET)
    for value in scores:
        clamped = max(0, min(100, value))
        index = min(clamped // HISTOGRAM_BUCKET, len(buckets) - 1)
        buckets[index] += 1

    histogram = []
    for index, count in enumerate(buckets):
        low = index * HISTOGRAM_BUCKET
        high = 100 if index == len(buckets) - 1 else low + HISTOGRAM_BUCKET - 1
        histogram.append({"range": f"{low}-{high}", "count": count})
    return histogram


def build_student_summary(results: list[dict[str, object]]) -> dict[str, object]:
    """
    Summary for a student's dashboard.

    Args:
        results: serialized results, newest first

    Returns:
        Count, average and best score, the score trend of the last ten
        attempts (oldest first), and tier / subject distributions.
    """
    scores = [value for value in (resolve_metric(item, "score") for item in results) if value is not None]

    trend = []
    recent = results[:SCORE_TREND_LENGTH]
    for position, item in enumerate(reversed(recent), start=1):
        trend.append(
            {
                "name": f"Test {position}",
                "testCode": item.get("testCode"),
                "score": resolve_metric(item, "score") or 0,
                "completedAt": item.get("completedAt"),
            }
        )

    return {
        "testsTaken": len(results),
        "averageScore": _average(scores) if scores else 0,
        "bestScore": max(scores) if scores else None,
        "scoreTrend": trend,
        "tierDistribution": _distribution(results, "tier"),
        "subjectDistribution": _distribution(results, "subject"),
    }


def build_test_analytics(results: list[dict[str, object]]) -> dict[str, object]:
    """Class-level analytics for one test."""
    scores = [value for value in (resolve_metric(item, "score") for item in results) if value is not None]
    elapsed = [
        value
        for value in (resolve_metric(item, "elapsedSeconds") for item in results)
        if value is not None
    ]
    students = {item.get("studentId") for item in results if item.get("studentId")}

    return {
        "attemptCount": len(results),
        "studentCount": len(students),
        "averageScore": _average(scores),
        "minScore": min(scores) if scores else None,
        "maxScore": max(scores) if scores else None,
        "averageElapsedSeconds": _average(elapsed),
        "tierDistribution": _distribution(results, "tier"),
        "scoreHistogram": score_histogram(scores),
    }
