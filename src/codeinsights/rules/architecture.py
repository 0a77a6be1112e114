"""アーキテクチャパターンルールの評価。

Structure / Naming / Dependency / Responsibility はファイル名・テキストの部分一致による
簡易ヒューリスティックであり、意味解析は行わない。ファイル名（拡張子なし）にキーワードを
含むファイルをそのコンポーネント種別とみなす。責務の記述は「should not」で始まるものだけを
検査し、それ以外の記述が満たされていないことは報告しない。
"""

import re

from codeinsights.models.issues import CodeIssue, Issue
from codeinsights.models.patterns import (
    DependencyRule,
    Layer,
    LayerDependencyRule,
    NamingRule,
    ResponsibilityRule,
    StructureRule,
)
from codeinsights.rules.structure import USING_DIRECTIVE
from codeinsights.rules.target import RuleTarget, line_number_at

_SHOULD_NOT = "should not"


def _prohibited_action(phrase: str) -> str | None:
    """「should not ...」の禁止対象部分を返す。「should not」で始まらない記述はNone。"""
    stripped = phrase.strip()
    if not stripped.lower().startswith(_SHOULD_NOT):
        return None
    action = stripped[len(_SHOULD_NOT) :].strip()
    return action or None


def _is_component(target: RuleTarget, component_type: str) -> bool:
    return component_type.lower() in target.source.stem.lower()


def _violated_phrases(target: RuleTarget, phrases: list[str]) -> list[str]:
    content = target.content.lower()
    violated = []
    for phrase in phrases:
        action = _prohibited_action(phrase)
        if action is not None and action.lower() in content:
            violated.append(phrase)
    return violated


def evaluate_structure(rule: StructureRule, target: RuleTarget) -> list[Issue]:
    """コンポーネント構造を検証する。

    identifiers はクラス名との照合のみ行い、問題は報告しない。
    componentType の責務は Responsibility と同じ「should not」検査を行う。
    """
    issues: list[Issue] = []
    class_name = target.source.stem
    for identifier in (rule.identifiers or {}).values():
        re.compile(identifier).search(class_name)

    for component_type, responsibilities in (rule.component_responsibilities or {}).items():
        if not _is_component(target, component_type):
            continue
        for phrase in _violated_phrases(target, responsibilities):
            issues.append(
                CodeIssue(
                    file_path=target.file_path,
                    line_number=1,
                    severity=target.severity,
                    message=f"{rule.message} - {component_type} {phrase}",
                    suggestion=rule.suggestion or "",
                )
            )
    return issues


def evaluate_naming(rule: NamingRule, target: RuleTarget) -> list[Issue]:
    """コンポーネント種別キーワードを含むクラス名が命名パターンに従っているかを検証する。"""
    issues: list[Issue] = []
    class_name = target.source.stem
    for component_type, name_pattern in rule.per_role_patterns.items():
        if _is_component(target, component_type) and not re.search(name_pattern, class_name):
            issues.append(
                CodeIssue(
                    file_path=target.file_path,
                    line_number=1,
                    severity=target.severity,
                    message=f"{rule.message} - {class_name} はパターン {name_pattern} に一致する必要があります",
                    suggestion=rule.suggestion or "",
                )
            )
    return issues


def evaluate_dependency(rule: DependencyRule, target: RuleTarget) -> list[Issue]:
    """コンポーネント種別ごとの「should not」依存制約を検証する。"""
    issues: list[Issue] = []
    for component_type, restrictions in rule.restrictions.items():
        if not _is_component(target, component_type):
            continue
        for restriction in _violated_phrases(target, restrictions):
            issues.append(
                CodeIssue(
                    file_path=target.file_path,
                    line_number=1,
                    severity=target.severity,
                    message=f"{rule.message} - {restriction}",
                    suggestion=rule.suggestion or "",
                )
            )
    return issues


def evaluate_responsibility(rule: ResponsibilityRule, target: RuleTarget) -> list[Issue]:
    """コンポーネントが禁止された責務（「should not ...」）を持っていないかを検証する。"""
    issues: list[Issue] = []
    for component_type, responsibilities in rule.responsibilities.items():
        if not _is_component(target, component_type):
            continue
        for phrase in _violated_phrases(target, responsibilities):
            issues.append(
                CodeIssue(
                    file_path=target.file_path,
                    line_number=1,
                    severity=target.severity,
                    message=f"{rule.message} - {component_type} {phrase}",
                    suggestion=rule.suggestion or "",
                )
            )
    return issues


def _find_layer(layers: list[Layer], *texts: str) -> Layer | None:
    """identifiersのいずれかがtextsのいずれかに一致する最初のレイヤーを返す（宣言順）。"""
    for layer in layers:
        for identifier in layer.identifiers:
            if any(re.search(identifier, text) for text in texts):
                return layer
    return None


def evaluate_layer_dependency(rule: LayerDependencyRule, target: RuleTarget) -> list[Issue]:
    """レイヤー間の依存方向を検証する。

    所属レイヤーを判定できない依存は報告しない。
    """
    issues: list[Issue] = []
    if not rule.layers:
        return issues

    current = _find_layer(rule.layers, target.source.relative_path, target.content)
    if current is None:
        return issues

    for match in USING_DIRECTIVE.finditer(target.content):
        dependency = match.group(1).strip()
        dependency_layer = _find_layer(rule.layers, dependency)
        if dependency_layer is None or dependency_layer.name in current.allowed_dependencies:
            continue
        issues.append(
            CodeIssue(
                file_path=target.file_path,
                line_number=line_number_at(target.content, match.start()),
                severity=target.severity,
                message=f"{rule.message} - {current.name} レイヤーは {dependency_layer.name} に依存すべきではありません",
                suggestion=rule.suggestion or "",
            )
        )
    return issues
