"""ルール評価の入力（対象ファイル・適用中のパターン）と共通ヘルパー。"""

import logging
import os
import posixpath
import re
import threading
from dataclasses import dataclass
from pathlib import Path, PurePath

from codeinsights.models.issues import IssueSeverity
from codeinsights.models.patterns import PatternDefinition

logger = logging.getLogger(__name__)


class FolderProbe:
    """1回の解析中に共有されるフォルダ存在チェックのキャッシュ。

    複数のワーカースレッドから参照されるため、ロックで保護する。
    """

    def __init__(self, project_root: str | Path) -> None:
        self._project_root = Path(project_root)
        self._exists: dict[str, bool] = {}
        self._reported: set[tuple[str, int, str]] = set()
        self._lock = threading.Lock()

    def exists(self, folder: str) -> bool:
        """プロジェクトルートからの相対フォルダが存在するかを返す（絶対パスごとにキャッシュ）。"""
        folder_path = str((self._project_root / folder).absolute())
        with self._lock:
            cached = self._exists.get(folder_path)
            if cached is None:
                cached = os.path.isdir(folder_path)
                self._exists[folder_path] = cached
            return cached

    def claim(self, pattern_name: str, rule: object, folder: str) -> bool:
        """(パターン, ルール, フォルダ) の報告権を取得する。初回のみTrueを返す。

        ルールはオブジェクトの同一性で区別する。名前のないパターン同士や、同じパターン内の
        別ルールは別々に報告される。
        """
        key = (pattern_name, id(rule), folder)
        with self._lock:
            if key in self._reported:
                return False
            self._reported.add(key)
            return True


@dataclass(frozen=True)
class SourceFile:
    """解析対象ファイル。"""

    path: str
    content: str
    project_root: str
    folders: FolderProbe

    @property
    def file_name(self) -> str:
        return PurePath(self.path).name

    @property
    def stem(self) -> str:
        return PurePath(self.path).stem

    @property
    def relative_path(self) -> str:
        return relative_path(self.path, self.project_root)


@dataclass(frozen=True)
class RuleTarget:
    """パターンを適用する対象ファイル。"""

    source: SourceFile
    pattern: PatternDefinition

    @property
    def file_path(self) -> str:
        return self.source.path

    @property
    def content(self) -> str:
        return self.source.content

    @property
    def severity(self) -> IssueSeverity:
        return self.pattern.issue_severity


def relative_path(file_path: str, base_path: str) -> str:
    """base_pathからの相対パスを '/' 区切りで返す。base_path配下でなければfile_pathをそのまま返す。"""
    if not file_path or not base_path:
        return file_path
    normalized_file = file_path.replace("\\", "/")
    normalized_base = base_path.replace("\\", "/")
    if not normalized_base.endswith("/"):
        normalized_base += "/"
    if normalized_file.lower().startswith(normalized_base.lower()):
        return normalized_file[len(normalized_base) :]
    return file_path


def parent_directory(path: str) -> str:
    """'/' 区切りの相対パスから親ディレクトリを返す。"""
    return posixpath.dirname(path.replace("\\", "/"))


def line_number_at(content: str, index: int) -> int:
    """文字位置を1始まりの行番号に変換する。"""
    return content.count("\n", 0, index) + 1


def line_text(content: str, start: int, end: int) -> str:
    """[start, end) を含む行全体を前後の空白を除いて返す。"""
    line_start = content.rfind("\n", 0, start) + 1
    last = end - 1 if end > start else start
    line_end = content.find("\n", last)
    if line_end == -1:
        line_end = len(content)
    return content[line_start:line_end].strip()


def is_exempt(target: RuleTarget) -> bool:
    """ファイルがパターンの除外パターンに一致するかを返す。"""
    relative = target.source.relative_path
    for exemption in target.pattern.exemption_patterns:
        try:
            if re.search(exemption, relative):
                return True
        except re.error as e:
            logger.warning("Invalid exemption pattern %r in %s: %s", exemption, target.pattern.pattern_name, e)
    return False


def is_detected(target: RuleTarget) -> bool:
    """patternDetectionのインジケーターがファイル内容またはファイル名に含まれるかを返す。

    patternDetectionがないパターンは全ファイルに適用する。patternDetectionがあっても
    インジケーターが1つもなければどのファイルにも適用しない。
    """
    if target.pattern.pattern_detection is None:
        return True
    indicators = target.pattern.detection_indicators
    content = target.content.lower()
    file_name = target.source.file_name.lower()
    return any(indicator.lower() in content or indicator.lower() in file_name for indicator in indicators)
