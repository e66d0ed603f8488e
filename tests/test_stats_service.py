from assessment_api.services.stats_service import (
    build_student_summary,
    build_test_analytics,
    resolve_metric,
    score_histogram,
)


def _row(score, tier="medium", subject="english", student="s1", code="EAAAAA", elapsed=600):
    return {
        "score": score,
        "tier": tier,
        "subject": subject,
        "studentId": student,
        "testCode": code,
        "elapsedSeconds": elapsed,
        "completedAt": "2026-03-01T09:00:00+00:00",
    }


def test_resolve_metric_ignores_bools_and_strings() -> None:
    assert resolve_metric({"score": 80}, "score") == 80
    assert resolve_metric({"score": 72.6}, "score") == 72
    assert resolve_metric({"score": True}, "score") is None
    assert resolve_metric({"score": "80"}, "score") is None
    assert resolve_metric(None, "score") is None


def test_score_histogram_buckets() -> None:
    histogram = score_histogram([0, 9, 10, 55, 99, 100])
    assert len(histogram) == 10
    assert histogram[0] == {"range": "0-9", "count": 2}
    assert histogram[1] == {"range": "10-19", "count": 1}
    assert histogram[5]["count"] == 1
    assert histogram[9] == {"range": "90-100", "count": 2}


def test_student_summary() -> None:
    # newest first
    results = [
        _row(90, tier="hard", code="ECCCCC"),
        _row(60, subject="science", code="SBBBBB"),
        _row(45, tier="easy", code="EAAAAA"),
    ]
    summary = build_student_summary(results)

    assert summary["testsTaken"] == 3
    assert summary["averageScore"] == 65.0
    assert summary["bestScore"] == 90
    assert [point["testCode"] for point in summary["scoreTrend"]] == ["EAAAAA", "SBBBBB", "ECCCCC"]
    assert summary["scoreTrend"][0]["name"] == "Test 1"
    assert summary["tierDistribution"] == {"easy": 1, "hard": 1, "medium": 1}
    assert summary["subjectDistribution"] == {"english": 2, "science": 1}


def test_student_summary_trend_keeps_last_ten() -> None:
    results = [_row(score) for score in range(100, 40, -5)]
    summary = build_student_summary(results)
    assert len(summary["scoreTrend"]) == 10
    assert summary["scoreTrend"][-1]["score"] == 100


def test_empty_student_summary() -> None:
    summary = build_student_summary([])
    assert summary["testsTaken"] == 0
    assert summary["averageScore"] == 0
    assert summary["bestScore"] is None
    assert summary["scoreTrend"] == []


def test_test_analytics() -> None:
    results = [
        _row(80, student="s1", elapsed=500),
        _row(40, tier="easy", student="s2", elapsed=700),
        _row(75, tier="hard", student="s3", elapsed=600),
    ]
    analytics = build_test_analytics(results)

    assert analytics["attemptCount"] == 3
    assert analytics["studentCount"] == 3
    assert analytics["averageScore"] == 65.0
    assert analytics["minScore"] == 40
    assert analytics["maxScore"] == 80
    assert analytics["averageElapsedSeconds"] == 600.0
    assert analytics["tierDistribution"] == {"easy": 1, "hard": 1, "medium": 1}
    assert sum(bucket["count"] for bucket in analytics["scoreHistogram"]) == 3


def test_test_analytics_without_results() -> None:
    analytics = build_test_analytics([])
    assert analytics["attemptCount"] == 0
    assert analytics["averageScore"] is None
    assert analytics["minScore"] is None
