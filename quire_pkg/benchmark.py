"""
Stress-test posts and build benchmarks.

``create_sample_posts`` writes posts that exercise every stage (code, tables,
math, a long paragraph). ``run_benchmark`` builds batches of them and
``format_report`` turns the timings into a Markdown table that can be
appended to a performance report.
"""

import os
import shutil
import tempfile
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .core import Quire

DEFAULT_COUNTS = (100, 500, 1000)

SAMPLE_POST_BODY = """
# Complex Post Heading

This is a stress test post with complex content.

## 1. Code Blocks

```python
def fib(n):
    a, b = 0, 1
    while a < n:
        print(a, end=' ')
        a, b = b, a+b
    print()
```

```typescript
interface User {
  id: number;
  name: string;
}
```

## 2. GFM Tables

| Feature | Support | Notes |
| :--- | :---: | :--- |
| **Bold** | yes | Standard Markdown |
| ~~Strike~~ | yes | GFM |
| `Code` | yes | Inline code |

## 3. Math

Euler's identity $e^{i\\pi} + 1 = 0$ and the Gaussian integral:

$$
\\int_{-\\infty}^{\\infty} e^{-x^2} dx = \\sqrt{\\pi}
$$

## 4. Large Text Block

"""


def create_sample_posts(content_dir: str, count: int) -> List[str]:
    """Write `count` stress-test posts into content_dir and return their paths."""
    os.makedirs(content_dir, exist_ok=True)
    filler = 'Lorem ipsum dolor sit amet, consectetur adipiscing elit. ' * 50
    start = date(2025, 1, 1)
    created = []

    for i in range(count):
        post_date = start + timedelta(days=i % 30)
        content = f"""---
title: Stress Test Post {i}
date: {post_date.isoformat()}
excerpt: This is a complex post number {i} for testing purposes.
category: Test
tags:
  - benchmark
  - stress
---
{SAMPLE_POST_BODY}{filler}
"""
        path = os.path.join(content_dir, f'stress-test-{i}.md')
        if os.path.exists(path):
            print(f"Sample post already exists: {path}")
            continue
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        created.append(path)

    print(f"Created {len(created)} sample posts in {content_dir}")
    return created


@dataclass(frozen=True)
class BenchmarkRow:
    count: int
    elapsed: float
    mean_task_ms: float
    slowest_task_ms: float
    failures: int
    worker_counts: Tuple[Tuple[str, int], ...]

    @property
    def per_document_ms(self) -> float:
        return self.elapsed * 1000 / self.count if self.count else 0.0


def summarize(count: int, result) -> BenchmarkRow:
    """Reduce one BuildResult to a report row."""
    task_ms = [task.elapsed * 1000 for task in result.results]
    workers = Counter(str(task.worker) for task in result.results)
    return BenchmarkRow(
        count=count,
        elapsed=result.elapsed,
        mean_task_ms=sum(task_ms) / len(task_ms) if task_ms else 0.0,
        slowest_task_ms=max(task_ms, default=0.0),
        failures=len(result.failures),
        worker_counts=tuple(sorted(workers.items())),
    )


def run_benchmark(counts: Sequence[int] = DEFAULT_COUNTS, settings: Optional[Dict[str, Any]] = None,
                  work_dir: Optional[str] = None, clock: Optional[Callable[[], datetime]] = None) -> List[BenchmarkRow]:
    """
    Build a fresh batch of stress-test posts for each count.

    Args:
        counts: Batch sizes to build, in order
        settings: Merged settings (see QuireSettings); ``content`` is ignored
        work_dir: Where the temporary content directories are created
        clock: Build clock handed to Quire

    Returns:
        One BenchmarkRow per count
    """
    settings = dict(settings or {})
    rows = []
    for count in counts:
        content_dir = tempfile.mkdtemp(prefix=f'quire-bench-{count}-', dir=work_dir)
        try:
            create_sample_posts(content_dir, count)
            settings['content'] = content_dir
            result = Quire.from_settings(settings, clock=clock).build()
        finally:
            shutil.rmtree(content_dir, ignore_errors=True)
        row = summarize(count, result)
        print(f"Build with {count} posts took {row.elapsed:.2f}s")
        rows.append(row)
    return rows


def format_report(rows: Sequence[BenchmarkRow], tested_at: Optional[datetime] = None) -> str:
    tested_at = tested_at or datetime.now()
    lines = [
        '',
        '## Stress test results (complex posts)',
        f"Tested at: {tested_at.strftime('%Y-%m-%d %H:%M:%S')}",
        'Content: code blocks, GFM tables, math, large text.',
        '',
        '| Posts | Build time (s) | Per post (ms) | Mean task (ms) | Slowest task (ms) | Failures | Workers |',
        '| :--- | :--- | :--- | :--- | :--- | :--- | :--- |',
    ]
    for row in rows:
        workers = ', '.join(f"{name}: {count}" for name, count in row.worker_counts)
        lines.append(
            f"| **{row.count}** | {row.elapsed:.2f}s | {row.per_document_ms:.1f}ms | "
            f"{row.mean_task_ms:.1f}ms | {row.slowest_task_ms:.1f}ms | {row.failures} | {workers} |"
        )
    return '\n'.join(lines) + '\n'


def write_report(report_path: str, rows: Sequence[BenchmarkRow], tested_at: Optional[datetime] = None) -> str:
    """Append a results section to report_path, creating the file if needed."""
    directory = os.path.dirname(report_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(report_path, 'a', encoding='utf-8') as f:
        f.write(format_report(rows, tested_at))
    return report_path
