"""パターン定義のMCPリソース定義。"""

import yaml
from fastmcp import FastMCP

from codeinsights.services.analysis import AnalysisService


def register_pattern_resources(mcp: FastMCP, analysis_service: AnalysisService) -> None:
    """パターン定義関連のMCPリソースを登録する。"""

    @mcp.resource("codeinsights://patterns/{category}")
    async def loaded_patterns(category: str) -> str:
        """読み込み済みのパターン定義の一覧を取得する。

        category には architecture / structure / performance のいずれかを指定します。
        各パターンの名前、説明、重大度、含まれるルール種別を返します。
        """
        pattern_set = analysis_service.catalog.get(category)
        data = {
            "category": pattern_set.category,
            "patterns": [
                {
                    "pattern_name": pattern.pattern_name,
                    "description": pattern.description,
                    "severity": pattern.issue_severity.value,
                    "rule_types": [rule.type for rule in pattern.rules],
                }
                for pattern in pattern_set.patterns
            ],
        }
        return yaml.dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)
