"""テスト共通フィクスチャ。"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from codeinsights.config import ServerConfig
from codeinsights.files.resolver import FileSetResolver
from codeinsights.patterns.repository import PatternCatalog
from codeinsights.services.analysis import AnalysisService

WriteFile = Callable[[str, str], Path]
WritePattern = Callable[[str, str, dict[str, Any]], Path]


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """解析対象のテスト用プロジェクトディレクトリ。"""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def patterns_dir(tmp_path: Path) -> Path:
    """テスト用の一時パターン定義ディレクトリ（カテゴリ別サブディレクトリは必要に応じて作成）。"""
    path = tmp_path / "patterns"
    path.mkdir()
    return path


@pytest.fixture
def write_file(project_dir: Path) -> WriteFile:
    """プロジェクト内にソースファイルを作成する関数。"""

    def _write(relative_path: str, content: str) -> Path:
        path = project_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_pattern(patterns_dir: Path) -> WritePattern:
    """カテゴリディレクトリにJSONのパターン定義ファイルを作成する関数。"""

    def _write(category: str, file_name: str, document: dict[str, Any]) -> Path:
        directory = patterns_dir / category
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_service(patterns_dir: Path) -> Callable[..., AnalysisService]:
    """patterns_dirのパターンを読み込んだAnalysisServiceを作成する関数。"""

    def _make(max_workers: int | None = 4, resolver: FileSetResolver | None = None) -> AnalysisService:
        catalog = PatternCatalog.load(patterns_dir)
        return AnalysisService(catalog=catalog, resolver=resolver, max_workers=max_workers)

    return _make


@pytest.fixture
def server_config(patterns_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(patterns_dir=patterns_dir, max_workers=2)
