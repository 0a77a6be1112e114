"""組み込みルールのユニットテスト。"""

from pathlib import Path

from codeinsights.models.issues import CodeIssue, DocumentationIssue, LogicIssue
from codeinsights.models.patterns import PatternDefinition, PatternSet
from codeinsights.rules.builtin import LongMethodRule, NamingConventionRule, PatternRules, XmlCommentRule
from codeinsights.rules.dispatcher import RuleDispatcher
from codeinsights.rules.target import FolderProbe, SourceFile


def _source(root: Path, content: str, relative: str = "Sample.cs") -> SourceFile:
    return SourceFile(path=str(root / relative), content=content, project_root=str(root), folders=FolderProbe(root))


class TestNamingConventionRule:
    def test_lowercase_class_is_reported(self, tmp_path: Path) -> None:
        content = "namespace App\n{\n    public class orderService {}\n    public class Good {}\n}\n"

        issues = NamingConventionRule().analyze(_source(tmp_path, content))

        assert len(issues) == 1
        assert isinstance(issues[0], CodeIssue)
        assert issues[0].line_number == 3
        assert "'OrderService'" in issues[0].suggestion


class TestXmlCommentRule:
    def test_summary_within_lookbehind_covers_following_classes(self, tmp_path: Path) -> None:
        content = (
            "/// <summary>\n"
            "/// 注文\n"
            "/// </summary>\n"
            "public class Order {}\n"
            "\n"
            "public class Customer {}\n"
        )

        issues = XmlCommentRule().analyze(_source(tmp_path, content))

        # 直前500文字以内にsummaryがあればコメント済みとみなす
        assert issues == []

    def test_summary_outside_lookbehind_is_not_counted(self, tmp_path: Path) -> None:
        content = "/// <summary>\n/// 注文\n/// </summary>\n" + "// filler\n" * 100 + "public class Customer {}\n"

        issues = XmlCommentRule().analyze(_source(tmp_path, content))

        assert len(issues) == 1
        assert isinstance(issues[0], DocumentationIssue)
        assert issues[0].line_number == 104
        assert "'Customer'" in issues[0].message


class TestLongMethodRule:
    def test_long_method_is_reported(self, tmp_path: Path) -> None:
        body = "".join(f"        var v{i} = {i};\n" for i in range(35))
        content = f"public class A\n{{\n    public void Run()\n    {{\n{body}    }}\n\n    public int Short() {{ return 1; }}\n}}\n"

        issues = LongMethodRule().analyze(_source(tmp_path, content))

        assert len(issues) == 1
        assert isinstance(issues[0], LogicIssue)
        assert issues[0].issue_type == "CodeSmell"
        assert issues[0].line_number == 3

    def test_threshold_is_configurable(self, tmp_path: Path) -> None:
        content = "public class A\n{\n    public void Run()\n    {\n        a();\n        b();\n    }\n}\n"

        assert LongMethodRule().analyze(_source(tmp_path, content)) == []
        assert len(LongMethodRule(max_lines=2).analyze(_source(tmp_path, content))) == 1


class TestPatternRules:
    def test_applies_pattern_set_through_dispatcher(self, tmp_path: Path) -> None:
        pattern_set = PatternSet(
            category="structure",
            patterns=(
                PatternDefinition.model_validate(
                    {"patternName": "P", "rules": [{"type": "FolderStructure", "expectedFolders": ["src"]}]}
                ),
            ),
        )
        rule = PatternRules(pattern_set, RuleDispatcher())

        issues = rule.analyze(_source(tmp_path, "class A {}"))

        assert rule.name == "structure-patterns"
        assert len(issues) == 1
