"""Tests for batch planning."""

import pytest

from staxchange.conversion.models import (
    PRIORITY_ENTRYPOINT,
    PRIORITY_MANIFEST,
    PRIORITY_OTHER,
    SourceFile,
)
from staxchange.conversion.planner import plan_batches


def source(path: str, size: int, priority: int = PRIORITY_OTHER) -> SourceFile:
    return SourceFile(path=path, content="x" * size, priority=priority)


class TestPlanBatches:
    """Tests for plan_batches."""

    def test_greedy_split_on_limit(self):
        files = [source(f"f{i}.ts", 30000) for i in range(3)]

        batches = plan_batches(files, size_limit=40000)

        assert [len(batch) for batch in batches] == [1, 1, 1]
        assert [batch.index for batch in batches] == [1, 2, 3]

    def test_small_files_share_a_batch(self):
        files = [source("a.ts", 10000), source("b.ts", 10000), source("c.ts", 25000)]

        batches = plan_batches(files, size_limit=40000)

        assert [batch.paths for batch in batches] == [["a.ts", "b.ts"], ["c.ts"]]

    def test_oversized_file_gets_own_batch(self):
        files = [source("small.ts", 100), source("huge.ts", 90000), source("tail.ts", 100)]

        batches = plan_batches(files, size_limit=40000)

        assert [batch.paths for batch in batches] == [["small.ts"], ["huge.ts"], ["tail.ts"]]

    def test_every_file_in_exactly_one_batch_in_order(self):
        files = [source(f"f{i}.ts", (i * 7919) % 15000 + 1) for i in range(25)]

        batches = plan_batches(files, size_limit=20000)

        flattened = [path for batch in batches for path in batch.paths]
        assert flattened == [item.path for item in files]
        for batch in batches:
            assert len(batch) == 1 or batch.size <= 20000

    def test_priority_change_closes_batch(self):
        files = [
            source("package.json", 100, PRIORITY_MANIFEST),
            source("src/app.ts", 100, PRIORITY_ENTRYPOINT),
            source("src/util.ts", 100, PRIORITY_OTHER),
        ]

        grouped = plan_batches(files, size_limit=40000)
        flat = plan_batches(files, size_limit=40000, group_by_priority=False)

        assert len(grouped) == 3
        assert len(flat) == 1

    def test_empty_input(self):
        assert plan_batches([]) == []

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            plan_batches([source("a.ts", 1)], size_limit=0)
