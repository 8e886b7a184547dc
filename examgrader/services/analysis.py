"""
Class-level grade statistics.
"""

PASS_THRESHOLD = 60.0


def _percentage(submission):
    exam = submission.get('exam') or {}
    try:
        total = float(exam.get('total_points') or 0)
        score = float(submission.get('graded_score') or 0)
    except (TypeError, ValueError):
        return None
    if total <= 0:
        return None
    return score / total * 100


def summarize_class(submissions):
    """Submission count, average percentage and pass rate for one class."""
    percentages = [p for p in (_percentage(s) for s in submissions) if p is not None]
    total = len(percentages)
    if not total:
        return {"total_submissions": len(submissions), "average_score": 0.0, "pass_rate": 0.0}

    passed = sum(1 for p in percentages if p >= PASS_THRESHOLD)
    return {
        "total_submissions": len(submissions),
        "average_score": round(sum(percentages) / total, 2),
        "pass_rate": round(passed / total * 100, 2),
    }
