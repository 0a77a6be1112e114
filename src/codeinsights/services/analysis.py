"""プロジェクト解析のオーケストレーションを行うサービス。"""

import asyncio
import logging
import os
from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from codeinsights.engine.aggregator import IssueAggregator, ProgressCallback, ProgressTracker
from codeinsights.files.resolver import FileSetResolver
from codeinsights.models.analysis import AnalysisOptions, AnalysisResult, FilteredResults, IssueRecord
from codeinsights.models.errors import AnalysisNotFoundError, InvalidProjectPathError
from codeinsights.models.issues import CodeIssue, DocumentationIssue, Issue, IssueSeverity, LogicIssue
from codeinsights.patterns.repository import PatternCatalog
from codeinsights.rules.builtin import FileRule, LongMethodRule, NamingConventionRule, PatternRules, XmlCommentRule
from codeinsights.rules.dispatcher import RuleDispatcher
from codeinsights.rules.target import FolderProbe, SourceFile

logger = logging.getLogger(__name__)

_SEVERITY_RANK: dict[IssueSeverity, int] = {
    IssueSeverity.INFO: 0,
    IssueSeverity.WARNING: 1,
    IssueSeverity.ERROR: 2,
}

# 結果取得時のカテゴリ表示名
CATEGORY_LABELS: dict[str, str] = {
    "code": "コード",
    "documentation": "ドキュメント",
    "logic": "ロジック/パフォーマンス",
}


@dataclass(frozen=True)
class AnalysisPhase:
    """解析フェーズ（コードパターン・ドキュメント・ロジック）ごとのルール構成。"""

    name: str
    issue_type: type[Issue]
    rules: tuple[FileRule, ...]


def top_issues(issues: Iterable[Issue], limit: int = 5) -> list[Issue]:
    """重大度の高い順に上位の問題を返す。"""
    return sorted(issues, key=lambda issue: _SEVERITY_RANK[issue.severity], reverse=True)[:limit]


def _notify(callback: ProgressCallback | None, message: str, percent: int) -> None:
    if callback is not None:
        callback(message, percent)


class AnalysisService:
    """パターン定義に基づくプロジェクト解析を行う。

    ファイル一覧の解決、フェーズごとの並列スイープ、統計・サマリーの作成を行い、
    直近の解析結果を保持する。
    """

    def __init__(
        self,
        catalog: PatternCatalog,
        resolver: FileSetResolver | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver or FileSetResolver()
        self._max_workers = max_workers or os.cpu_count() or 1
        self._phases = self._build_phases(catalog)
        self._last_result: AnalysisResult | None = None

    @staticmethod
    def _build_phases(catalog: PatternCatalog) -> dict[str, AnalysisPhase]:
        return {
            "code": AnalysisPhase(
                name="code",
                issue_type=CodeIssue,
                rules=(
                    NamingConventionRule(),
                    PatternRules(catalog.architecture, RuleDispatcher.for_category("architecture", CodeIssue)),
                    PatternRules(catalog.structure, RuleDispatcher.for_category("structure", CodeIssue)),
                ),
            ),
            "documentation": AnalysisPhase(
                name="documentation",
                issue_type=DocumentationIssue,
                rules=(XmlCommentRule(),),
            ),
            "logic": AnalysisPhase(
                name="logic",
                issue_type=LogicIssue,
                rules=(
                    LongMethodRule(),
                    PatternRules(catalog.performance, RuleDispatcher.for_category("performance", LogicIssue)),
                ),
            ),
        }

    @property
    def catalog(self) -> PatternCatalog:
        return self._catalog

    @property
    def last_result(self) -> AnalysisResult | None:
        """直近の解析結果。未実行の場合はNone。"""
        return self._last_result

    def reload_patterns(self) -> PatternCatalog:
        """パターン定義をディレクトリから読み込み直す。"""
        self._catalog = self._catalog.reload()
        self._phases = self._build_phases(self._catalog)
        return self._catalog

    async def analyze(
        self,
        project_path: str | Path,
        options: AnalysisOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """プロジェクトを解析する。

        有効なフェーズをコードパターン → ドキュメント → ロジックの順に実行する。各フェーズでは
        全ファイルをワーカープールで並列に処理する。解析中の例外は呼び出し元に送出せず、
        結果のerror_messageに記録する。

        Args:
            project_path: 解析対象のプロジェクトディレクトリ。
            options: 解析オプション。Noneの場合は全フェーズを実行する。
            progress_callback: 進捗通知 (メッセージ, 割合) を受け取るコールバック。

        Returns:
            解析結果。

        Raises:
            InvalidProjectPathError: project_pathが空の場合。
        """
        if project_path is None or not str(project_path).strip():
            raise InvalidProjectPathError(None if project_path is None else str(project_path))

        options = options or AnalysisOptions()
        logger.info("Starting analysis of project: %s", project_path)
        result = AnalysisResult(project_path=str(project_path))

        try:
            root = Path(project_path).resolve()
            if not root.is_dir():
                raise FileNotFoundError(f"Project directory not found: {root}")

            files = self._resolver.resolve(root, options.exclusion_patterns)
            folders = FolderProbe(root)

            if options.analyze_code:
                _notify(progress_callback, "コードパターンの解析を開始しています...", 0)
                issues = await self._sweep(self._phases["code"], files, root, folders, progress_callback, 0, 33)
                result.code_issues.extend(issues)  # type: ignore[arg-type]
                _notify(progress_callback, "コードパターンの解析が完了しました", 33)

            if options.analyze_documentation:
                _notify(progress_callback, "ドキュメントの解析を開始しています...", 33)
                issues = await self._sweep(self._phases["documentation"], files, root, folders, progress_callback, 33, 66)
                result.documentation_issues.extend(issues)  # type: ignore[arg-type]
                _notify(progress_callback, "ドキュメントの解析が完了しました", 66)

            if options.analyze_logic:
                _notify(progress_callback, "ロジック・パフォーマンスの解析を開始しています...", 66)
                issues = await self._sweep(self._phases["logic"], files, root, folders, progress_callback, 66, 100)
                result.logic_issues.extend(issues)  # type: ignore[arg-type]

            await self._calculate_statistics(files, result)
            result.summary = build_summary(result)
            _notify(progress_callback, "全ての解析が完了しました", 100)
            logger.info("Analysis completed with %d issues", result.total_issue_count)
        except Exception as e:
            logger.exception("Error analyzing project %s", project_path)
            result.error_message = str(e)

        self._last_result = result
        return result

    async def _sweep(
        self,
        phase: AnalysisPhase,
        files: Sequence[str],
        root: Path,
        folders: FolderProbe,
        progress_callback: ProgressCallback | None,
        start: int,
        end: int,
    ) -> list[Issue]:
        """1フェーズ分の並列スイープ。1ファイルの全ルール適用を1単位としてワーカーに割り当てる。

        待機中のタスクがキャンセルされた場合、未着手のファイルは処理せず、処理中のファイルは完了まで実行する。
        """
        logger.debug("Running %s analysis on %d files", phase.name, len(files))
        aggregator = IssueAggregator()
        tracker = ProgressTracker(len(files), progress_callback, label=phase.name, start=start, end=end)
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix=f"codeinsights-{phase.name}")
        try:
            await asyncio.gather(
                *(
                    loop.run_in_executor(executor, self._process_file, phase, path, str(root), folders, aggregator, tracker)
                    for path in files
                )
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.debug("%s analysis severity counts: %s", phase.name, aggregator.severity_counts)
        return aggregator.drain()

    @staticmethod
    def _process_file(
        phase: AnalysisPhase,
        path: str,
        root: str,
        folders: FolderProbe,
        aggregator: IssueAggregator,
        tracker: ProgressTracker,
    ) -> None:
        try:
            content = Path(path).read_text(encoding="utf-8-sig", errors="replace")
            source = SourceFile(path=path, content=content, project_root=root, folders=folders)
            for rule in phase.rules:
                try:
                    aggregator.extend(rule.analyze(source))
                except Exception as e:
                    logger.error("Error applying %s rule %s to %s", phase.name, rule.name, path, exc_info=True)
                    aggregator.add(
                        phase.issue_type(
                            file_path=path,
                            line_number=1,
                            severity=IssueSeverity.ERROR,
                            message=f"ルール {rule.name} での解析中にエラーが発生しました: {e}",
                            suggestion="ファイルを手動で確認するか、エラーを修正して解析できるようにしてください",
                        )
                    )
        except Exception as e:
            logger.error("Error processing file %s for %s analysis", path, phase.name, exc_info=True)
            aggregator.add(
                phase.issue_type(
                    file_path=path,
                    line_number=1,
                    severity=IssueSeverity.ERROR,
                    message=f"ファイルの処理中にエラーが発生しました: {e}",
                    suggestion="ファイルが開けること、正しい形式であることを確認してください",
                )
            )
        finally:
            tracker.advance()

    async def _calculate_statistics(self, files: Sequence[str], result: AnalysisResult) -> None:
        result.total_files_analyzed = len(files)
        result.total_lines_of_code = await asyncio.to_thread(_count_lines, files)

        stats = {severity.value: 0 for severity in (IssueSeverity.ERROR, IssueSeverity.WARNING, IssueSeverity.INFO)}
        counts = Counter(
            issue.severity.value
            for issues in (result.code_issues, result.documentation_issues, result.logic_issues)
            for issue in issues
        )
        stats.update(counts)
        result.severity_stats = stats

    def get_results(self, severity: str | None = "all", max_results: int = 100) -> FilteredResults:
        """直近の解析結果を重大度で絞り込み、件数を制限して返す。

        Args:
            severity: "info" / "warning" / "error" / "all"。それ以外の値は絞り込みなしとして扱う。
            max_results: 返す問題の最大件数。

        Raises:
            AnalysisNotFoundError: まだ解析が実行されていない場合。
        """
        result = self._last_result
        if result is None:
            raise AnalysisNotFoundError()

        severity_filter = {
            "info": IssueSeverity.INFO,
            "warning": IssueSeverity.WARNING,
            "error": IssueSeverity.ERROR,
        }.get((severity or "all").lower())

        categorized: list[tuple[str, Sequence[Issue]]] = [
            ("code", result.code_issues),
            ("documentation", result.documentation_issues),
            ("logic", result.logic_issues),
        ]
        records = [
            IssueRecord(
                category=CATEGORY_LABELS[category],
                file_path=issue.file_path,
                line_number=issue.line_number,
                message=issue.message,
                suggestion=issue.suggestion,
                severity=issue.severity.value,
            )
            for category, issues in categorized
            for issue in issues
            if severity_filter is None or issue.severity == severity_filter
        ]
        return FilteredResults(
            summary=result.summary,
            project_path=result.project_path,
            timestamp=result.timestamp,
            total_issues=result.total_issue_count,
            results=records[: max(max_results, 0)],
        )


def count_lines(content: str) -> int:
    """改行（\\n）のみを行区切りとして行数を数える。末尾の改行の後は行に数えない。

    read_textで読み込んだ内容は \\r\\n・\\r が \\n に変換済みである。
    """
    if not content:
        return 0
    return content.count("\n") + (0 if content.endswith("\n") else 1)


def _count_lines(files: Iterable[str]) -> int:
    total = 0
    for path in files:
        try:
            total += count_lines(Path(path).read_text(encoding="utf-8-sig", errors="replace"))
        except OSError:
            logger.warning("Error counting lines in file: %s", path, exc_info=True)
    return total


def build_summary(result: AnalysisResult) -> str:
    """解析結果の人間向けサマリーを作成する。"""
    stats = result.severity_stats
    return (
        f"解析完了: {result.total_files_analyzed}ファイル（{result.total_lines_of_code}行）で"
        f"{result.total_issue_count}件の問題が見つかりました:\n"
        f"- コードパターンの問題: {len(result.code_issues)}件\n"
        f"- ドキュメントの問題: {len(result.documentation_issues)}件\n"
        f"- ロジック/パフォーマンスの問題: {len(result.logic_issues)}件\n"
        "\n重大度別:\n"
        f"- エラー: {stats.get('Error', 0)}\n"
        f"- 警告: {stats.get('Warning', 0)}\n"
        f"- 情報: {stats.get('Info', 0)}"
    )
