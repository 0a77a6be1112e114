"""コード解析のMCPツール定義。"""

import asyncio
import logging
from typing import Any

from fastmcp import Context, FastMCP

from codeinsights.engine.aggregator import ProgressCallback
from codeinsights.models.analysis import AnalysisOptions, AnalysisResult
from codeinsights.models.errors import CodeInsightsError
from codeinsights.models.issues import Issue
from codeinsights.services.analysis import AnalysisService, top_issues

logger = logging.getLogger(__name__)

_TOP_ISSUE_LIMIT = 5


def _progress_reporter(ctx: Context) -> ProgressCallback:
    """解析の進捗をMCPの進捗通知として送るコールバックを作る。

    コールバックはワーカースレッドからも呼ばれるため、イベントループに通知をスケジュールする。
    """
    loop = asyncio.get_running_loop()

    async def send(percent: int) -> None:
        try:
            await ctx.report_progress(percent, 100)
        except Exception:
            logger.debug("Failed to send progress notification", exc_info=True)

    def report(message: str, percent: int) -> None:
        logger.debug("%s (%d%%)", message, percent)
        asyncio.run_coroutine_threadsafe(send(percent), loop)

    return report


def _issue_summary(issue: Issue) -> dict[str, Any]:
    return {
        "file_path": issue.file_path,
        "line_number": issue.line_number,
        "message": issue.message,
        "suggestion": issue.suggestion,
        "severity": issue.severity.value,
    }


def _category_response(result: AnalysisResult, issues: list[Any], label: str) -> dict[str, Any]:
    response: dict[str, Any] = {
        "summary": f"解析完了: {label}の問題が{len(issues)}件見つかりました。",
        "project_path": result.project_path,
        "issue_count": len(issues),
        "top_issues": [_issue_summary(issue) for issue in top_issues(issues, _TOP_ISSUE_LIMIT)],
    }
    if result.error_message:
        response["error_message"] = result.error_message
    return response


def register_analysis_tools(mcp: FastMCP, analysis_service: AnalysisService) -> None:
    """コード解析関連のMCPツールを登録する。"""

    @mcp.tool()
    async def analyze_code_patterns(
        ctx: Context,
        project_path: str,
        exclusion_patterns: list[str] | None = None,
    ) -> dict[str, Any]:
        """ソースコードを社内のコードパターン（アーキテクチャ・プロジェクト構造・命名）に照らして解析する。

        重大度の高い上位5件の問題を返します。全件は get_analysis_results で取得してください。

        Args:
            project_path: 解析対象のソースコードを含むプロジェクトディレクトリのパス。
            exclusion_patterns: 解析から除外するパスの部分文字列（任意）。
        """
        options = AnalysisOptions(
            analyze_code=True,
            analyze_documentation=False,
            analyze_logic=False,
            exclusion_patterns=exclusion_patterns or [],
        )
        try:
            result = await analysis_service.analyze(project_path, options, _progress_reporter(ctx))
            return _category_response(result, result.code_issues, "コードパターン")
        except CodeInsightsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def analyze_documentation(
        ctx: Context,
        project_path: str,
        exclusion_patterns: list[str] | None = None,
    ) -> dict[str, Any]:
        """ソースコードのドキュメント（XMLドキュメントコメント）の不足を解析する。

        Args:
            project_path: 解析対象のソースコードを含むプロジェクトディレクトリのパス。
            exclusion_patterns: 解析から除外するパスの部分文字列（任意）。
        """
        options = AnalysisOptions(
            analyze_code=False,
            analyze_documentation=True,
            analyze_logic=False,
            exclusion_patterns=exclusion_patterns or [],
        )
        try:
            result = await analysis_service.analyze(project_path, options, _progress_reporter(ctx))
            return _category_response(result, result.documentation_issues, "ドキュメント")
        except CodeInsightsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def analyze_logic(
        ctx: Context,
        project_path: str,
        exclusion_patterns: list[str] | None = None,
    ) -> dict[str, Any]:
        """ソースコードのロジックをパフォーマンス・複雑さの観点で解析する。

        Args:
            project_path: 解析対象のソースコードを含むプロジェクトディレクトリのパス。
            exclusion_patterns: 解析から除外するパスの部分文字列（任意）。
        """
        options = AnalysisOptions(
            analyze_code=False,
            analyze_documentation=False,
            analyze_logic=True,
            exclusion_patterns=exclusion_patterns or [],
        )
        try:
            result = await analysis_service.analyze(project_path, options, _progress_reporter(ctx))
            return _category_response(result, result.logic_issues, "ロジック/パフォーマンス")
        except CodeInsightsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_analysis_results(filter_by_severity: str = "all", max_results: int = 100) -> dict[str, Any]:
        """直近に実行したコード解析の詳細な結果を取得する。

        Args:
            filter_by_severity: 重大度による絞り込み（info, warning, error, all）。
            max_results: 返す結果の最大件数。
        """
        try:
            results = analysis_service.get_results(filter_by_severity, max_results)
            return {
                "summary": results.summary,
                "project_path": results.project_path,
                "timestamp": results.timestamp.isoformat(),
                "total_issues": results.total_issues,
                "filtered_results": [r.model_dump() for r in results.results],
                "filtered_count": results.filtered_count,
            }
        except CodeInsightsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def reload_patterns() -> dict[str, Any]:
        """パターン定義ファイルをディレクトリから読み込み直す。

        パターン定義ファイルを追加・変更した後に呼び出してください。
        """
        catalog = analysis_service.reload_patterns()
        return {
            "architecture": len(catalog.architecture),
            "structure": len(catalog.structure),
            "performance": len(catalog.performance),
        }
