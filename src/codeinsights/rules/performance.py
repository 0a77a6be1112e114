"""パフォーマンスパターンルール（アルゴリズム・リソース使用・データ構造）の評価。"""

import re

from codeinsights.models.issues import Issue, LogicIssue
from codeinsights.models.patterns import AlgorithmRule, DataStructureRule, ResourceUsageRule
from codeinsights.rules.target import RuleTarget, line_number_at, line_text

PERFORMANCE_ISSUE_TYPE = "Performance"


def _logic_issue(
    target: RuleTarget,
    rule: AlgorithmRule | ResourceUsageRule | DataStructureRule,
    match: re.Match[str],
    suggestion: str | None = None,
) -> LogicIssue:
    return LogicIssue(
        file_path=target.file_path,
        line_number=line_number_at(target.content, match.start()),
        severity=target.severity,
        message=rule.message,
        suggestion=suggestion if suggestion is not None else rule.suggestion or "",
        issue_type=PERFORMANCE_ISSUE_TYPE,
        code_snippet=line_text(target.content, match.start(), match.end()),
        pattern_name=rule.name or target.pattern.pattern_name,
        complexity=rule.complexity,
    )


def _evaluate_regex(rule: AlgorithmRule | ResourceUsageRule, target: RuleTarget) -> list[Issue]:
    if not rule.pattern:
        return []
    regex = re.compile(rule.pattern, re.MULTILINE)
    return [_logic_issue(target, rule, match) for match in regex.finditer(target.content)]


def evaluate_algorithm(rule: AlgorithmRule, target: RuleTarget) -> list[Issue]:
    """非効率なアルゴリズムのパターンに一致する箇所を1件ずつ報告する。"""
    return _evaluate_regex(rule, target)


def evaluate_resource_usage(rule: ResourceUsageRule, target: RuleTarget) -> list[Issue]:
    """リソースの不適切な使い方のパターンに一致する箇所を1件ずつ報告する。"""
    return _evaluate_regex(rule, target)


def evaluate_data_structure(rule: DataStructureRule, target: RuleTarget) -> list[Issue]:
    """アンチパターンとなる型の生成（``new <型名>``）を大文字小文字を区別せずに検出する。"""
    issues: list[Issue] = []
    recommended = ", ".join(rule.recommended_structures or [])
    suggestion = f"次の利用を検討してください: {recommended}" if recommended else rule.suggestion or ""
    for type_name in rule.anti_patterns:
        regex = re.compile(rf"new\s+{re.escape(type_name)}", re.IGNORECASE)
        for match in regex.finditer(target.content):
            issues.append(_logic_issue(target, rule, match, suggestion))
    return issues
