"""並列処理中の問題の集約と進捗管理。"""

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterable

from codeinsights.models.issues import Issue

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


class IssueAggregator:
    """複数のワーカーから追加される問題を集める、順序を保証しないスレッドセーフな集合。"""

    def __init__(self) -> None:
        self._issues: list[Issue] = []
        self._severity_counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def add(self, issue: Issue) -> None:
        self.extend((issue,))

    def extend(self, issues: Iterable[Issue]) -> None:
        batch = list(issues)
        with self._lock:
            self._issues.extend(batch)
            self._severity_counts.update(issue.severity.value for issue in batch)

    def drain(self) -> list[Issue]:
        """集めた問題を取り出し、集約器を空にする。"""
        with self._lock:
            issues, self._issues = self._issues, []
            self._severity_counts.clear()
            return issues

    @property
    def severity_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._severity_counts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._issues)


class ProgressTracker:
    """処理済みファイル数を数え、ファイルごとに進捗コールバックを呼び出す。

    カウントの更新とコールバック呼び出しを同じロック内で行うため、通知される割合は単調非減少になる。
    割合は [start, end] の範囲に割り当てる（フェーズごとに全体の進捗の一部を担当する）。
    """

    def __init__(
        self,
        total: int,
        callback: ProgressCallback | None = None,
        label: str = "",
        start: int = 0,
        end: int = 100,
    ) -> None:
        self._total = total
        self._callback = callback
        self._label = label
        self._start = start
        self._end = end
        self._processed = 0
        self._lock = threading.Lock()

    @property
    def processed(self) -> int:
        return self._processed

    def advance(self) -> int:
        """処理済みファイル数を1つ進め、現在の割合（start〜end）を返す。"""
        with self._lock:
            self._processed += 1
            span = self._end - self._start
            percent = self._start + (self._processed * span // self._total if self._total else span)
            logger.debug("%s progress: %d%%", self._label or "Analysis", percent)
            if self._callback is not None:
                try:
                    self._callback(f"ファイル {self._processed} / {self._total} を解析中", percent)
                except Exception:
                    logger.warning("Progress callback failed", exc_info=True)
            return percent
