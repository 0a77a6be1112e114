"""パターン定義に依らない組み込みルールと、PatternSetをファイル単位ルールとして扱うアダプター。"""

import re
from typing import Protocol

from codeinsights.models.issues import CodeIssue, DocumentationIssue, Issue, IssueSeverity, LogicIssue
from codeinsights.models.patterns import PatternSet
from codeinsights.rules.dispatcher import RuleDispatcher
from codeinsights.rules.target import SourceFile, line_number_at


class FileRule(Protocol):
    """ファイル単位で適用されるルール。"""

    @property
    def name(self) -> str: ...

    def analyze(self, source: SourceFile) -> list[Issue]: ...


class PatternRules:
    """PatternSetの全ルールを1つのファイル単位ルールとして適用する。"""

    def __init__(self, pattern_set: PatternSet, dispatcher: RuleDispatcher) -> None:
        self._pattern_set = pattern_set
        self._dispatcher = dispatcher

    @property
    def name(self) -> str:
        return f"{self._pattern_set.category}-patterns"

    def analyze(self, source: SourceFile) -> list[Issue]:
        return self._dispatcher.evaluate(self._pattern_set, source)


class NamingConventionRule:
    """クラス名がPascalCaseで始まっているかを検証する。"""

    _CLASS_DECLARATION = re.compile(r"class\s+([a-z][A-Za-z0-9]*)")

    name = "NamingConvention"

    def analyze(self, source: SourceFile) -> list[Issue]:
        issues: list[Issue] = []
        for match in self._CLASS_DECLARATION.finditer(source.content):
            class_name = match.group(1)
            issues.append(
                CodeIssue(
                    file_path=source.path,
                    line_number=line_number_at(source.content, match.start()),
                    severity=IssueSeverity.WARNING,
                    message=f"クラス '{class_name}' がPascalCaseの命名規則に従っていません",
                    suggestion=f"'{class_name[0].upper()}{class_name[1:]}' に名前を変更してください",
                )
            )
        return issues


class XmlCommentRule:
    """publicクラスにXMLドキュメントコメント（/// <summary>）があるかを検証する。"""

    _PUBLIC_CLASS = re.compile(r"public\s+class\s+(\w+)")
    _LOOKBEHIND_CHARS = 500

    name = "XmlComment"

    def analyze(self, source: SourceFile) -> list[Issue]:
        issues: list[Issue] = []
        for match in self._PUBLIC_CLASS.finditer(source.content):
            preceding = source.content[max(0, match.start() - self._LOOKBEHIND_CHARS) : match.start()]
            if "/// <summary>" in preceding:
                continue
            issues.append(
                DocumentationIssue(
                    file_path=source.path,
                    line_number=line_number_at(source.content, match.start()),
                    severity=IssueSeverity.WARNING,
                    message=f"クラス '{match.group(1)}' に完全なXMLドキュメントコメントがありません",
                    suggestion="<summary> タグ（必要に応じて <remarks>）を含むXMLコメント（///）を追加してください",
                )
            )
        return issues


class LongMethodRule:
    """長すぎるメソッドを検出する。"""

    _METHOD_DECLARATION = re.compile(r"(public|private|protected|internal)\s+\w+\s+\w+\s*\([^)]*\)\s*{")

    name = "LongMethod"

    def __init__(self, max_lines: int = 30) -> None:
        self._max_lines = max_lines

    def analyze(self, source: SourceFile) -> list[Issue]:
        issues: list[Issue] = []
        content = source.content
        for match in self._METHOD_DECLARATION.finditer(content):
            body_start = match.end()
            body_end = _matching_close_brace(content, body_start)
            if body_end <= body_start:
                continue
            line_count = content.count("\n", body_start, body_end)
            if line_count <= self._max_lines:
                continue
            issues.append(
                LogicIssue(
                    file_path=source.path,
                    line_number=line_number_at(content, match.start()),
                    severity=IssueSeverity.WARNING,
                    message=f"メソッドが長すぎます（{line_count}行）",
                    suggestion="このメソッドをより小さく目的の明確なメソッドに分割することを検討してください",
                    issue_type="CodeSmell",
                )
            )
        return issues


def _matching_close_brace(content: str, start: int) -> int:
    """開き波括弧の直後のstartから、対応する閉じ波括弧の位置を返す。見つからなければ-1。"""
    depth = 1
    for index in range(start, len(content)):
        char = content[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1
