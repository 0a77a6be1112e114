"""解析オプション・解析結果のデータモデル。"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from codeinsights.models.issues import CodeIssue, DocumentationIssue, LogicIssue


class AnalysisOptions(BaseModel):
    """解析オプション。"""

    analyze_code: bool = True
    analyze_documentation: bool = True
    analyze_logic: bool = True
    exclusion_patterns: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """プロジェクト解析の結果。"""

    project_path: str
    code_issues: list[CodeIssue] = Field(default_factory=list)
    documentation_issues: list[DocumentationIssue] = Field(default_factory=list)
    logic_issues: list[LogicIssue] = Field(default_factory=list)
    total_files_analyzed: int = 0
    total_lines_of_code: int = 0
    severity_stats: dict[str, int] = Field(default_factory=dict)
    summary: str = ""
    error_message: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_issue_count(self) -> int:
        """全カテゴリの問題数の合計。"""
        return len(self.code_issues) + len(self.documentation_issues) + len(self.logic_issues)


class IssueRecord(BaseModel):
    """カテゴリ付きの問題（結果取得用）。"""

    category: str
    file_path: str
    line_number: int
    message: str
    suggestion: str
    severity: str


class FilteredResults(BaseModel):
    """重大度で絞り込み、件数を制限した直近の解析結果。"""

    summary: str
    project_path: str
    timestamp: datetime
    total_issues: int
    results: list[IssueRecord]

    @property
    def filtered_count(self) -> int:
        return len(self.results)
