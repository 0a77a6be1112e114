"""アーキテクチャパターンルールの評価関数のユニットテスト。"""

import re
from pathlib import Path

import pytest

from codeinsights.models.patterns import (
    DependencyRule,
    LayerDependencyRule,
    NamingRule,
    PatternDefinition,
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
from codeinsights.rules.target import FolderProbe, RuleTarget, SourceFile


def _target(root: Path, relative: str, content: str = "") -> RuleTarget:
    source = SourceFile(path=str(root / relative), content=content, project_root=str(root), folders=FolderProbe(root))
    return RuleTarget(source=source, pattern=PatternDefinition(pattern_name="Architecture", severity="Warning"))


class TestResponsibility:
    _RULE = ResponsibilityRule(
        responsibilities={"Controller": ["should not DbContext", "should handle HTTP requests"]},
        message="責務違反",
    )

    def test_prohibited_action_in_component_is_reported(self, tmp_path: Path) -> None:
        content = "public class OrderController { private readonly AppDbContext _db; }"

        issues = evaluate_responsibility(self._RULE, _target(tmp_path, "Controllers/OrderController.cs", content))

        assert len(issues) == 1
        assert issues[0].message == "責務違反 - Controller should not DbContext"

    def test_positive_responsibility_is_never_asserted(self, tmp_path: Path) -> None:
        content = "public class OrderController { }"

        assert evaluate_responsibility(self._RULE, _target(tmp_path, "Controllers/OrderController.cs", content)) == []

    def test_other_components_are_ignored(self, tmp_path: Path) -> None:
        content = "public class OrderRepository { private readonly AppDbContext _db; }"

        assert evaluate_responsibility(self._RULE, _target(tmp_path, "Data/OrderRepository.cs", content)) == []


class TestStructure:
    def test_identifiers_only_match_and_component_responsibilities_are_checked(self, tmp_path: Path) -> None:
        rule = StructureRule(
            identifiers={"controller": "Controller$", "model": "Model$"},
            component_responsibilities={"Controller": ["Should Not SqlConnection"]},
            message="構造違反",
        )
        content = "var conn = new SqlConnection(cs);"

        issues = evaluate_structure(rule, _target(tmp_path, "HomeController.cs", content))

        assert [issue.message for issue in issues] == ["構造違反 - Controller Should Not SqlConnection"]

    def test_identifiers_alone_emit_nothing(self, tmp_path: Path) -> None:
        rule = StructureRule(identifiers={"controller": "Controller$"}, message="m")

        assert evaluate_structure(rule, _target(tmp_path, "Anything.cs", "class Anything {}")) == []

    def test_invalid_identifier_raises(self, tmp_path: Path) -> None:
        rule = StructureRule(identifiers={"broken": "(unclosed"}, message="m")

        with pytest.raises(re.error):
            evaluate_structure(rule, _target(tmp_path, "A.cs"))


class TestNaming:
    def test_component_class_not_matching_pattern_is_reported(self, tmp_path: Path) -> None:
        rule = NamingRule(per_role_patterns={"Controller": "^[A-Z]\\w*Controller$"}, message="命名違反")

        issues = evaluate_naming(rule, _target(tmp_path, "ControllerBaseHelper.cs"))

        assert len(issues) == 1
        assert "ControllerBaseHelper" in issues[0].message

    def test_matching_class_is_accepted(self, tmp_path: Path) -> None:
        rule = NamingRule(per_role_patterns={"Controller": "^[A-Z]\\w*Controller$"}, message="m")

        assert evaluate_naming(rule, _target(tmp_path, "HomeController.cs")) == []


class TestDependency:
    def test_should_not_restriction_is_checked(self, tmp_path: Path) -> None:
        rule = DependencyRule(
            restrictions={"Controller": ["should not new SqlConnection", "should use services"]},
            message="依存違反",
        )
        content = "var c = new SqlConnection(cs);"

        issues = evaluate_dependency(rule, _target(tmp_path, "HomeController.cs", content))

        assert [issue.message for issue in issues] == ["依存違反 - should not new SqlConnection"]


class TestLayerDependency:
    _RULE = LayerDependencyRule.model_validate(
        {
            "message": "レイヤー違反",
            "layers": [
                {"name": "Domain", "identifiers": ["Domain"], "allowedDependencies": ["Domain"]},
                {"name": "Application", "identifiers": ["Application"], "allowedDependencies": ["Domain", "Application"]},
                {"name": "Infrastructure", "identifiers": ["Infrastructure"], "allowedDependencies": ["Domain", "Application", "Infrastructure"]},
            ],
        }
    )

    def test_disallowed_layer_dependency_is_reported(self, tmp_path: Path) -> None:
        content = (
            "using System;\n"
            "using MyApp.Domain.Entities;\n"
            "using MyApp.Infrastructure.Persistence;\n"
            "using Newtonsoft.Json;\n"
        )

        issues = evaluate_layer_dependency(self._RULE, _target(tmp_path, "Domain/Order.cs", content))

        assert len(issues) == 1
        assert issues[0].line_number == 3
        assert issues[0].message == "レイヤー違反 - Domain レイヤーは Infrastructure に依存すべきではありません"

    def test_allowed_dependencies_are_accepted(self, tmp_path: Path) -> None:
        content = "using System.Linq;\nusing MyApp.Domain.ValueObjects;\n"

        assert evaluate_layer_dependency(self._RULE, _target(tmp_path, "Domain/Order.cs", content)) == []

    def test_layer_is_identified_in_declared_order(self, tmp_path: Path) -> None:
        # パスはInfrastructureだが、内容がDomainに一致するため先に宣言されたDomainと判定される
        content = "using MyApp.Domain.Entities;\nusing MyApp.Application.Ports;\n"

        issues = evaluate_layer_dependency(self._RULE, _target(tmp_path, "Infrastructure/OrderRepository.cs", content))

        assert [issue.line_number for issue in issues] == [2]
        assert "Domain レイヤーは Application" in issues[0].message

    def test_unclassified_file_is_ignored(self, tmp_path: Path) -> None:
        content = "using Newtonsoft.Json;\n"

        assert evaluate_layer_dependency(self._RULE, _target(tmp_path, "Tools/Script.cs", content)) == []
