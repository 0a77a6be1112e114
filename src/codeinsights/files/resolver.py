"""解析対象ソースファイルの列挙。"""

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

# ビルド成果物・依存パッケージ・バージョン管理・IDEメタデータのディレクトリ
DEFAULT_EXCLUSIONS: tuple[str, ...] = (
    "/obj/",
    "/bin/",
    "/.git/",
    "/.vs/",
    "/node_modules/",
    "/packages/",
    "/TestResults/",
)


class FileSetResolver:
    """ルート配下の対象拡張子ファイルを列挙し、(ルート, 除外パターン) ごとにキャッシュする。

    キャッシュはインスタンスの生存期間中保持され、ファイルシステムの変更は検知しない。
    """

    def __init__(self, extension: str = ".cs") -> None:
        self._extension = extension if extension.startswith(".") else f".{extension}"
        self._cache: dict[tuple[str, tuple[str, ...]], list[str]] = {}
        self._lock = threading.Lock()
        self.scan_count = 0

    def resolve(self, root: str | Path, exclusion_patterns: Iterable[str] = ()) -> list[str]:
        """対象ファイルのパス一覧を返す。

        Args:
            root: 探索するルートディレクトリ。
            exclusion_patterns: パスに含まれていれば除外する部分文字列（デフォルトの除外に追加）。

        Returns:
            ソート済みのファイルパスのリスト。
        """
        exclusions = tuple(exclusion_patterns)
        key = (str(root), exclusions)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return list(cached)

            files = self._scan(Path(root), DEFAULT_EXCLUSIONS + exclusions)
            self._cache[key] = files
            return list(files)

    def clear(self) -> None:
        """キャッシュを破棄する。"""
        with self._lock:
            self._cache.clear()

    def _scan(self, root: Path, exclusions: tuple[str, ...]) -> list[str]:
        self.scan_count += 1
        files: list[str] = []
        for path in root.rglob(f"*{self._extension}"):
            if not path.is_file():
                continue
            # ルート自身のパスで全体が除外されないよう、ルートからの相対パスで判定する
            relative = "/" + path.relative_to(root).as_posix()
            if any(pattern in relative for pattern in exclusions):
                continue
            files.append(str(path))
        files.sort()
        logger.debug("Resolved %d source files under %s", len(files), root)
        return files
