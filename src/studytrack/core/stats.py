"""Pure statistics over an owner's questions.

Both the cached and the freshly computed paths of the storage layer go
through these functions, so the two can never disagree on a formula.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from studytrack.core.ids import utcnow
from studytrack.core.model import (
    DetailedStats,
    FailureBucket,
    LearningProgressPoint,
    MockExam,
    Question,
    QuestionType,
    Subject,
    SubjectBreakdown,
    TheoryCount,
    Topic,
    TopicBreakdown,
    TypeCount,
    UserStats,
    WeekdayActivity,
)

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

FAILURE_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("0", 0, 0),
    ("1-2", 1, 2),
    ("3-5", 3, 5),
    ("6+", 6, None),
)

THEORY_LIMIT = 10


def percentage(part: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when total is 0."""
    if total <= 0:
        return 0
    value = Decimal(part) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_user_stats(mock_exams: Sequence[MockExam], questions: Sequence[Question]) -> UserStats:
    learned = sum(1 for question in questions if question.is_learned)
    return UserStats(
        completed_exams=len(mock_exams),
        learned_questions=learned,
        total_questions=len(questions),
        progress_percentage=percentage(learned, len(questions)),
    )


def compute_detailed_stats(
    mock_exams: Sequence[MockExam],
    subjects: Sequence[Subject],
    topics: Sequence[Topic],
    questions: Sequence[Question],
    now: datetime | None = None,
) -> DetailedStats:
    """Dashboard statistics. ``now`` anchors the weekly activity window."""
    summary = compute_user_stats(mock_exams, questions)
    types = Counter(question.type for question in questions)

    return DetailedStats(
        total_questions=summary.total_questions,
        learned_questions=summary.learned_questions,
        doubt_questions=types[QuestionType.DOUBT],
        error_questions=types[QuestionType.ERROR],
        progress_percentage=summary.progress_percentage,
        completed_exams=summary.completed_exams,
        total_subjects=len(subjects),
        total_topics=len(topics),
        average_failure_rate=_average_failures(questions),
        questions_by_type=[
            TypeCount(type=question_type.value, count=types[question_type])
            for question_type in QuestionType
        ],
        questions_by_subject=_by_subject(subjects, questions),
        questions_by_topic=_by_topic(topics, questions),
        learning_progress=_learning_progress(questions),
        failure_distribution=_failure_distribution(questions),
        weekly_activity=_weekly_activity(questions, now or utcnow()),
        theory_distribution=_theory_distribution(questions),
    )


def _average_failures(questions: Sequence[Question]) -> float:
    if not questions:
        return 0.0
    total = Decimal(sum(question.failure_count for question in questions))
    mean = total / Decimal(len(questions))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _tally(questions: Sequence[Question]) -> dict[str, int]:
    return {
        "total": len(questions),
        "learned": sum(1 for q in questions if q.is_learned),
        "doubt": sum(1 for q in questions if q.type == QuestionType.DOUBT),
        "error": sum(1 for q in questions if q.type == QuestionType.ERROR),
    }


def _by_subject(subjects: Sequence[Subject], questions: Sequence[Question]) -> list[SubjectBreakdown]:
    result = []
    for subject in subjects:
        related = [q for q in questions if q.subject_id == subject.id]
        if related:
            result.append(SubjectBreakdown(subject=subject.name, **_tally(related)))
    result.sort(key=lambda item: (-item.total, item.subject))
    return result


def _by_topic(topics: Sequence[Topic], questions: Sequence[Question]) -> list[TopicBreakdown]:
    result = []
    for topic in topics:
        related = [q for q in questions if q.topic_id == topic.id]
        if related:
            result.append(TopicBreakdown(topic=topic.name, **_tally(related)))
    result.sort(key=lambda item: (-item.total, item.topic))
    return result


def _learning_progress(questions: Sequence[Question]) -> list[LearningProgressPoint]:
    per_day: dict[str, list[Question]] = {}
    for question in sorted(questions, key=lambda q: q.created_at):
        per_day.setdefault(question.created_at.date().isoformat(), []).append(question)

    points = []
    total = learned = 0
    for day, created in per_day.items():
        total += len(created)
        learned += sum(1 for q in created if q.is_learned)
        points.append(LearningProgressPoint(date=day, learned=learned, total=total))
    return points


def _failure_distribution(questions: Sequence[Question]) -> list[FailureBucket]:
    buckets = []
    for label, low, high in FAILURE_BUCKETS:
        count = sum(
            1
            for q in questions
            if q.failure_count >= low and (high is None or q.failure_count <= high)
        )
        buckets.append(FailureBucket(range=label, count=count))
    return buckets


def _weekly_activity(questions: Sequence[Question], now: datetime) -> list[WeekdayActivity]:
    start = (now - timedelta(days=6)).date()
    end = now.date()
    counts = Counter(
        q.created_at.weekday() for q in questions if start <= q.created_at.date() <= end
    )
    return [WeekdayActivity(day=name, questions=counts[index]) for index, name in enumerate(WEEKDAYS)]


def _theory_distribution(questions: Sequence[Question]) -> list[TheoryCount]:
    counts = Counter(q.theory.strip() for q in questions if q.theory.strip())
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [TheoryCount(theory=theory, count=count) for theory, count in ranked[:THEORY_LIMIT]]
