"""codeinsightsのカスタム例外クラス。"""


class CodeInsightsError(Exception):
    """codeinsightsの基底例外クラス。"""


class InvalidProjectPathError(CodeInsightsError, ValueError):
    """解析対象のプロジェクトパスが不正な場合の例外。"""

    def __init__(self, project_path: str | None) -> None:
        super().__init__(f"Project path must not be empty: {project_path!r}")
        self.project_path = project_path


class AnalysisNotFoundError(CodeInsightsError):
    """解析がまだ一度も実行されていない場合の例外。"""

    def __init__(self) -> None:
        super().__init__("No analysis has been performed yet. Run an analysis first.")


class PatternLoadError(CodeInsightsError):
    """パターン定義ファイルの読み込みに失敗した場合の例外。"""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load pattern document {path}: {reason}")
        self.path = path
        self.reason = reason


class UnknownCategoryError(CodeInsightsError):
    """存在しないパターンカテゴリが指定された場合の例外。"""

    def __init__(self, category: str) -> None:
        super().__init__(f"Unknown pattern category: {category}")
        self.category = category
