"""RuleDispatcher のユニットテスト。"""

from pathlib import Path
from typing import Any

from codeinsights.models.issues import CodeIssue, Issue, IssueSeverity, LogicIssue
from codeinsights.models.patterns import (
    RULE_CLASSES,
    AlgorithmRule,
    FolderStructureRule,
    PatternDefinition,
    PatternSet,
)
from codeinsights.rules.dispatcher import CATEGORY_EVALUATORS, EVALUATORS, RuleDispatcher
from codeinsights.rules.target import FolderProbe, RuleTarget, SourceFile


def _source(root: Path, relative: str, content: str = "") -> SourceFile:
    return SourceFile(path=str(root / relative), content=content, project_root=str(root), folders=FolderProbe(root))


def _pattern_set(*patterns: dict[str, Any]) -> PatternSet:
    return PatternSet(
        category="structure",
        patterns=tuple(PatternDefinition.model_validate(pattern) for pattern in patterns),
    )


class TestRuleDispatcher:
    def test_every_rule_variant_has_an_evaluator(self) -> None:
        assert set(EVALUATORS) == set(RULE_CLASSES)

    def test_invalid_regex_yields_single_error_and_other_rules_still_run(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "Mixed",
                "severity": "Info",
                "rules": [
                    {"type": "FileLocation", "filePatterns": {"([unclosed": "Somewhere/"}, "message": "broken"},
                    {"type": "FileLocation", "filePatterns": {"Controller\\.cs$": "Controllers/"}, "message": "loc"},
                ],
            }
        )

        issues = RuleDispatcher().evaluate(pattern_set, _source(tmp_path, "Api/HomeController.cs"))

        assert len(issues) == 2
        error, location = issues
        assert error.severity == IssueSeverity.ERROR
        assert error.line_number == 1
        assert error.message.startswith("ルール FileLocation での解析中にエラーが発生しました")
        assert location.severity == IssueSeverity.INFO
        assert location.message.startswith("loc - ")

    def test_patterns_and_rules_are_applied_in_load_order(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {"patternName": "First", "rules": [{"type": "FolderStructure", "expectedFolders": ["a", "b"], "message": "1"}]},
            {"patternName": "Second", "rules": [{"type": "FolderStructure", "expectedFolders": ["c"], "message": "2"}]},
        )

        issues = RuleDispatcher().evaluate(pattern_set, _source(tmp_path, "Program.cs"))

        assert [issue.message for issue in issues] == [
            '1 - フォルダ "a" が見つかりません',
            '1 - フォルダ "b" が見つかりません',
            '2 - フォルダ "c" が見つかりません',
        ]

    def test_exempt_files_are_skipped(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "Location",
                "exemptionPatterns": ["^Generated/", "(invalid"],
                "rules": [{"type": "FileLocation", "filePatterns": {"Controller\\.cs$": "Controllers/"}}],
            }
        )
        dispatcher = RuleDispatcher()

        assert dispatcher.evaluate(pattern_set, _source(tmp_path, "Generated/HomeController.cs")) == []
        assert len(dispatcher.evaluate(pattern_set, _source(tmp_path, "Api/HomeController.cs"))) == 1

    def test_detection_indicators_gate_pattern(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "MVC",
                "patternDetection": {"mvc": ["ControllerBase"]},
                "rules": [{"type": "FileLocation", "filePatterns": {"Controller\\.cs$": "Controllers/"}}],
            }
        )
        dispatcher = RuleDispatcher()

        plain = _source(tmp_path, "Api/HomeController.cs", "public class HomeController {}")
        detected = _source(tmp_path, "Api/HomeController.cs", "public class HomeController : ControllerBase {}")

        assert dispatcher.evaluate(pattern_set, plain) == []
        assert len(dispatcher.evaluate(pattern_set, detected)) == 1

    def test_detection_without_indicators_applies_to_no_file(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "MVC",
                "patternDetection": {"mvc": []},
                "rules": [{"type": "FileLocation", "filePatterns": {"Controller\\.cs$": "Controllers/"}}],
            }
        )

        source = _source(tmp_path, "Api/HomeController.cs", "public class HomeController : ControllerBase {}")

        assert RuleDispatcher().evaluate(pattern_set, source) == []

    def test_category_dispatcher_ignores_other_category_rules(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "Mixed",
                "rules": [
                    {"type": "Algorithm", "pattern": "Count\\(\\)"},
                    {"type": "FolderStructure", "expectedFolders": ["missing"]},
                ],
            }
        )
        source = _source(tmp_path, "A.cs", "var n = items.Count();")

        structure = RuleDispatcher.for_category("structure").evaluate(pattern_set, source)
        performance = RuleDispatcher.for_category("performance", LogicIssue).evaluate(pattern_set, source)

        assert len(structure) == 1
        assert isinstance(structure[0], CodeIssue)
        assert '"missing"' in structure[0].message
        assert len(performance) == 1
        assert isinstance(performance[0], LogicIssue)
        assert performance[0].issue_type == "Performance"

    def test_category_evaluators_partition_all_rule_types(self) -> None:
        categories = list(CATEGORY_EVALUATORS.values())

        assert sum(len(evaluators) for evaluators in categories) == len(RULE_CLASSES)
        assert set().union(*categories) == set(RULE_CLASSES)

    def test_issue_factory_is_used_for_error_issues(self, tmp_path: Path) -> None:
        def explode(rule: Any, target: RuleTarget) -> list[Issue]:
            raise RuntimeError("boom")

        pattern_set = _pattern_set({"patternName": "Perf", "rules": [{"type": "Algorithm", "pattern": "x"}]})
        dispatcher = RuleDispatcher(issue_factory=LogicIssue, evaluators={AlgorithmRule: explode})

        issues = dispatcher.evaluate(pattern_set, _source(tmp_path, "A.cs", "x"))

        assert len(issues) == 1
        assert isinstance(issues[0], LogicIssue)
        assert "boom" in issues[0].message

    def test_rules_without_evaluator_are_skipped(self, tmp_path: Path) -> None:
        pattern_set = _pattern_set(
            {
                "patternName": "P",
                "rules": [
                    {"type": "FolderStructure", "expectedFolders": ["missing"]},
                    {"type": "FileLocation", "filePatterns": {"A\\.cs$": "Elsewhere/"}},
                ],
            }
        )
        dispatcher = RuleDispatcher(evaluators={FolderStructureRule: EVALUATORS[FolderStructureRule]})

        issues = dispatcher.evaluate(pattern_set, _source(tmp_path, "A.cs"))

        assert len(issues) == 1
        assert isinstance(issues[0], CodeIssue)
        assert '"missing"' in issues[0].message
