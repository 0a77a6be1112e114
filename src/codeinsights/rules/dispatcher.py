"""パターン定義のルールを種別ごとの評価関数に振り分ける。"""

import logging
from collections.abc import Callable
from typing import Any

from codeinsights.models.issues import CodeIssue, Issue, IssueSeverity
from codeinsights.models.patterns import (
    AlgorithmRule,
    DataStructureRule,
    DependencyRule,
    DomainIntegrityRule,
    FileLocationRule,
    FileNamingRule,
    FolderStructureRule,
    LayerDependencyRule,
    NamespaceRule,
    NamingRule,
    PatternSet,
    ResourceUsageRule,
    ResponsibilityRule,
    StructureRule,
)
from codeinsights.rules.architecture import (
    evaluate_dependency,
    evaluate_layer_dependency,
    evaluate_naming,
    evaluate_responsibility,
    evaluate_structure,
)
from codeinsights.rules.performance import evaluate_algorithm, evaluate_data_structure, evaluate_resource_usage
from codeinsights.rules.structure import (
    evaluate_domain_integrity,
    evaluate_file_location,
    evaluate_file_naming,
    evaluate_folder_structure,
    evaluate_namespace,
)
from codeinsights.rules.target import RuleTarget, SourceFile, is_detected, is_exempt

logger = logging.getLogger(__name__)

Evaluator = Callable[[Any, RuleTarget], list[Issue]]
IssueFactory = Callable[..., Issue]

STRUCTURE_EVALUATORS: dict[type, Evaluator] = {
    FolderStructureRule: evaluate_folder_structure,
    FileLocationRule: evaluate_file_location,
    NamespaceRule: evaluate_namespace,
    FileNamingRule: evaluate_file_naming,
    DomainIntegrityRule: evaluate_domain_integrity,
}

ARCHITECTURE_EVALUATORS: dict[type, Evaluator] = {
    StructureRule: evaluate_structure,
    NamingRule: evaluate_naming,
    DependencyRule: evaluate_dependency,
    LayerDependencyRule: evaluate_layer_dependency,
    ResponsibilityRule: evaluate_responsibility,
}

PERFORMANCE_EVALUATORS: dict[type, Evaluator] = {
    AlgorithmRule: evaluate_algorithm,
    ResourceUsageRule: evaluate_resource_usage,
    DataStructureRule: evaluate_data_structure,
}

# カテゴリ → そのカテゴリで評価するルール種別。他カテゴリの種別は未知の種別と同様に無視する。
CATEGORY_EVALUATORS: dict[str, dict[type, Evaluator]] = {
    "architecture": ARCHITECTURE_EVALUATORS,
    "structure": STRUCTURE_EVALUATORS,
    "performance": PERFORMANCE_EVALUATORS,
}

EVALUATORS: dict[type, Evaluator] = {
    **STRUCTURE_EVALUATORS,
    **ARCHITECTURE_EVALUATORS,
    **PERFORMANCE_EVALUATORS,
}


class RuleDispatcher:
    """PatternSetの各パターン・各ルールを評価関数に振り分けて実行する。

    ルール単位で例外を捕捉し、Error重大度の問題に変換して残りのルールの評価を継続する。
    """

    def __init__(
        self,
        issue_factory: IssueFactory = CodeIssue,
        evaluators: dict[type, Evaluator] | None = None,
    ) -> None:
        self._issue_factory = issue_factory
        self._evaluators = dict(EVALUATORS if evaluators is None else evaluators)

    @classmethod
    def for_category(cls, category: str, issue_factory: IssueFactory = CodeIssue) -> "RuleDispatcher":
        """カテゴリに属するルール種別だけを評価するディスパッチャーを作成する。"""
        return cls(issue_factory=issue_factory, evaluators=CATEGORY_EVALUATORS[category])

    def evaluate(self, pattern_set: PatternSet, source: SourceFile) -> list[Issue]:
        """ファイルにPatternSetの全パターンを読み込み順に適用する。"""
        issues: list[Issue] = []
        for pattern in pattern_set.patterns:
            target = RuleTarget(source=source, pattern=pattern)
            if is_exempt(target) or not is_detected(target):
                continue
            for rule in pattern.rules:
                issues.extend(self._apply(rule, target))
        return issues

    def _apply(self, rule: Any, target: RuleTarget) -> list[Issue]:
        evaluator = self._evaluators.get(type(rule))
        if evaluator is None:
            return []
        try:
            return evaluator(rule, target)
        except Exception as e:
            rule_type = getattr(rule, "type", type(rule).__name__)
            logger.error(
                "Error applying rule %s of pattern %s to %s",
                rule_type,
                target.pattern.pattern_name,
                target.file_path,
                exc_info=True,
            )
            return [
                self._issue_factory(
                    file_path=target.file_path,
                    line_number=1,
                    severity=IssueSeverity.ERROR,
                    message=f"ルール {rule_type} での解析中にエラーが発生しました: {e}",
                    suggestion="ファイルを手動で確認するか、パターン定義のエラーを修正してください",
                )
            ]
