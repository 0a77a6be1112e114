"""解析結果として報告される問題（Issue）のデータモデル。"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class IssueSeverity(str, Enum):
    """問題の重大度。"""

    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


_SEVERITY_BY_NAME: dict[str, IssueSeverity] = {
    "info": IssueSeverity.INFO,
    "warning": IssueSeverity.WARNING,
    "error": IssueSeverity.ERROR,
}


def parse_severity(value: Any) -> IssueSeverity:
    """パターン定義の重大度文字列を変換する。

    大文字小文字は区別しない。未指定や未知の値（文字列以外を含む）はWarningとして扱う。
    """
    if not isinstance(value, str) or not value:
        return IssueSeverity.WARNING
    return _SEVERITY_BY_NAME.get(value.strip().lower(), IssueSeverity.WARNING)


class Issue(BaseModel):
    """検出された個別の問題。生成後は変更しない。"""

    model_config = ConfigDict(frozen=True)

    file_path: str
    line_number: int = 1
    severity: IssueSeverity = IssueSeverity.WARNING
    message: str
    suggestion: str = ""


class CodeIssue(Issue):
    """コードパターン（アーキテクチャ・プロジェクト構造・命名）の問題。"""


class DocumentationIssue(Issue):
    """ドキュメントの問題。"""


class LogicIssue(Issue):
    """ロジック・パフォーマンスの問題。"""

    issue_type: str = ""
    code_snippet: str = ""
    pattern_name: str = ""
    complexity: str | None = None
