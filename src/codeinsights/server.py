"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from codeinsights.config import ServerConfig
from codeinsights.files.resolver import FileSetResolver
from codeinsights.patterns.repository import PatternCatalog
from codeinsights.resources.patterns import register_pattern_resources
from codeinsights.services.analysis import AnalysisService
from codeinsights.tools.analysis import register_analysis_tools


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """codeinsights MCPサーバーを作成し、ツール・リソースを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("codeinsights")

    # パターン定義（カテゴリごとに一度だけ読み込む）
    catalog = PatternCatalog.load(config.patterns_dir)

    # サービス層
    resolver = FileSetResolver(extension=config.source_extension)
    analysis_service = AnalysisService(catalog=catalog, resolver=resolver, max_workers=config.max_workers)

    # MCPインターフェース登録
    register_analysis_tools(mcp, analysis_service)
    register_pattern_resources(mcp, analysis_service)

    # ヘルスチェックエンドポイント（HTTPトランスポート時のみ有効）
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
