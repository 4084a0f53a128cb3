"""Illustrative payload rendered by the preview action."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from poststudio.models import GenerationResult, ModerationResult, SourceItem, SummaryResult

SAMPLE_TOPIC = "java 21 features"
SAMPLE_ITEM_COUNT = 12


def sample_result() -> GenerationResult:
    """Return the fixed preview payload, timestamped relative to now."""
    now = datetime.now(timezone.utc)
    items = [
        SourceItem(
            author_name=f"Developer {i + 1}",
            author_username=f"dev{i + 1}",
            text=(
                "Testing virtual threads in Java 21 is making our services more "
                "responsive. Benchmarks show steady gains."
            ),
            created_at=(now - timedelta(hours=i)).isoformat(),
        )
        for i in range(SAMPLE_ITEM_COUNT)
    ]
    return GenerationResult(
        topic=SAMPLE_TOPIC,
        generated_at=now.isoformat(),
        model="gpt-4o-mini",
        cache=False,
        moderation=ModerationResult(flagged=False),
        summary=SummaryResult(
            summary=(
                "People are excited about Java 21 performance, virtual threads, and "
                "more predictable concurrency. Many highlight real-world throughput "
                "gains, simpler async code, and smoother scaling for services."
            ),
            suggested_post=(
                "Quick roundup on Java 21: virtual threads are landing real-world "
                "throughput gains, simpler async code, and smoother scaling for "
                "services. What has your team shipped with it? #Java #Concurrency"
            ),
            keywords=["virtual", "threads", "performance", "concurrency", "throughput"],
            bullets=[
                "Virtual threads are reducing boilerplate in high-concurrency services.",
                "Teams report better throughput with less tuning.",
                "Adoption is growing across web backends and data tooling.",
            ],
        ),
        items=items,
    )
