"""codeinsightsサーバーの設定管理。"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "CODEINSIGHTS_"}

    # パターン定義ディレクトリ（architecture/ structure/ performance/ を含む）
    patterns_dir: Path = _REPO_ROOT / "config" / "patterns"

    # 解析対象
    source_extension: str = ".cs"
    max_workers: int | None = None

    # MCPトランスポート
    transport: Literal["stdio", "http", "streamable-http", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000

    log_level: str = "INFO"
