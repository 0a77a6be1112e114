"""パターン定義ファイルの読み込み。"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from codeinsights.models.errors import PatternLoadError, UnknownCategoryError
from codeinsights.models.patterns import PatternDefinition, PatternSet

logger = logging.getLogger(__name__)

PATTERN_FILE_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")

# カテゴリ名 → パターン定義ディレクトリ名
CATEGORY_DIRECTORIES: dict[str, str] = {
    "architecture": "architecture",
    "structure": "structure",
    "performance": "performance",
}


class PatternRepository:
    """ディレクトリ内のパターン定義ファイルを型付きのPatternDefinitionとして読み込む。"""

    def load(self, directory: Path) -> list[PatternDefinition]:
        """ディレクトリ内の全パターン定義を読み込む。

        ファイル名順に読み込み、その順序がルール適用順となる。
        不正な定義ファイルはログを出力してスキップし、残りの読み込みは継続する。

        Args:
            directory: パターン定義ディレクトリ。

        Returns:
            読み込まれたパターン定義のリスト。ディレクトリが存在しない場合は空リスト。
        """
        if not directory.is_dir():
            logger.warning("Pattern directory not found: %s", directory)
            return []

        patterns: list[PatternDefinition] = []
        for document in sorted(directory.iterdir()):
            if not document.is_file() or document.suffix.lower() not in PATTERN_FILE_SUFFIXES:
                continue
            try:
                pattern = self.load_document(document)
            except PatternLoadError as e:
                logger.error("%s", e)
                continue
            patterns.append(pattern)
            logger.info("Loaded pattern: %s (%s)", pattern.pattern_name, document.name)
        return patterns

    def load_document(self, path: Path) -> PatternDefinition:
        """単一のパターン定義ファイルを読み込む。

        JSONはYAMLのサブセットのため、どちらの形式もyaml.safe_loadで読み込む。

        Raises:
            PatternLoadError: ファイルの読み込み・パース・検証に失敗した場合。
        """
        try:
            with open(path, encoding="utf-8-sig") as f:
                data: Any = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise PatternLoadError(str(path), str(e)) from e

        if not isinstance(data, dict):
            raise PatternLoadError(str(path), "document root must be a mapping")

        try:
            return PatternDefinition.model_validate(data)
        except ValidationError as e:
            raise PatternLoadError(str(path), str(e)) from e


class PatternCatalog(BaseModel):
    """カテゴリごとのPatternSetをまとめた不変の値。

    解析エンジンには明示的に構築したカタログを渡す。再読み込みは reload() で新しいカタログを作る。
    """

    model_config = ConfigDict(frozen=True)

    patterns_dir: Path | None = None
    architecture: PatternSet = PatternSet(category="architecture")
    structure: PatternSet = PatternSet(category="structure")
    performance: PatternSet = PatternSet(category="performance")

    @classmethod
    def load(cls, patterns_dir: Path, repository: PatternRepository | None = None) -> "PatternCatalog":
        """patterns_dir配下のカテゴリ別ディレクトリから全パターンを読み込む。"""
        repository = repository or PatternRepository()
        sets = {
            category: PatternSet(
                category=category,
                patterns=tuple(repository.load(patterns_dir / dirname)),
            )
            for category, dirname in CATEGORY_DIRECTORIES.items()
        }
        return cls(patterns_dir=patterns_dir, **sets)

    def reload(self) -> "PatternCatalog":
        """同じディレクトリからパターンを読み込み直した新しいカタログを返す。"""
        if self.patterns_dir is None:
            return self
        return PatternCatalog.load(self.patterns_dir)

    def get(self, category: str) -> PatternSet:
        """カテゴリ名からPatternSetを取得する。

        Raises:
            UnknownCategoryError: 未知のカテゴリ名の場合。
        """
        if category not in CATEGORY_DIRECTORIES:
            raise UnknownCategoryError(category)
        pattern_set: PatternSet = getattr(self, category)
        return pattern_set
