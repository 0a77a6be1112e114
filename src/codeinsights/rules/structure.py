"""プロジェクト構造ルール（フォルダ構成・ファイル配置・namespace・ファイル名・ドメイン整合性）の評価。"""

import re

from codeinsights.models.issues import CodeIssue, Issue
from codeinsights.models.patterns import (
    DomainIntegrityRule,
    FileLocationRule,
    FileNamingRule,
    FolderStructureRule,
    NamespaceRule,
)
from codeinsights.rules.target import RuleTarget, line_number_at, parent_directory

NAMESPACE_DECLARATION = re.compile(r"namespace\s+([^{;]+)")
USING_DIRECTIVE = re.compile(r"using\s+([^;]+);", re.MULTILINE)

# 許可リストに関わらず常に許可する標準ライブラリのnamespace接頭辞
STANDARD_NAMESPACE_PREFIXES: tuple[str, ...] = ("System", "Microsoft")


def evaluate_folder_structure(rule: FolderStructureRule, target: RuleTarget) -> list[Issue]:
    """期待されるフォルダがプロジェクトルートに存在するかを検証する。

    フォルダの欠落は (パターン, ルール, フォルダ) ごとに1回の解析につき1件だけ報告する。
    """
    issues: list[Issue] = []
    for folder in rule.expected_folders:
        if target.source.folders.exists(folder):
            continue
        if not target.source.folders.claim(target.pattern.pattern_name, rule, folder):
            continue
        issues.append(
            CodeIssue(
                file_path=target.file_path,
                line_number=1,
                severity=target.severity,
                message=f'{rule.message} - フォルダ "{folder}" が見つかりません',
                suggestion=rule.suggestion or f'プロジェクトのルートにフォルダ "{folder}" を作成してください',
            )
        )
    return issues


def evaluate_file_location(rule: FileLocationRule, target: RuleTarget) -> list[Issue]:
    """ファイル名パターンに一致するファイルが所定のディレクトリに配置されているかを検証する。"""
    issues: list[Issue] = []
    file_name = target.source.file_name
    relative = target.source.relative_path
    for name_pattern, expected_location in rule.file_patterns.items():
        if not re.search(name_pattern, file_name):
            continue
        if relative.lower().startswith(expected_location.lower()):
            continue
        issues.append(
            CodeIssue(
                file_path=target.file_path,
                line_number=1,
                severity=target.severity,
                message=f'{rule.message} - ファイル "{file_name}" はフォルダ "{expected_location}" に配置する必要があります',
                suggestion=rule.suggestion or f'ファイルをフォルダ "{expected_location}" に移動してください',
            )
        )
    return issues


def _longest_matching_directory(parent_dir: str, directory_patterns: dict[str, str]) -> str | None:
    parent = parent_dir.lower()
    matches = [key for key in directory_patterns if parent.startswith(key.replace("\\", "/").lower())]
    return max(matches, key=len) if matches else None


def evaluate_namespace(rule: NamespaceRule, target: RuleTarget) -> list[Issue]:
    """最初のnamespace宣言を抽出し、全体パターンとディレクトリ別パターンで検証する。"""
    issues: list[Issue] = []
    match = NAMESPACE_DECLARATION.search(target.content)
    if match is None:
        return issues

    namespace = match.group(1).strip()
    line_number = line_number_at(target.content, match.start())

    if rule.namespace_pattern and not re.search(rule.namespace_pattern, namespace):
        issues.append(
            CodeIssue(
                file_path=target.file_path,
                line_number=line_number,
                severity=target.severity,
                message=f'{rule.message} - namespace "{namespace}" が期待されるパターンに従っていません',
                suggestion=rule.suggestion or "",
            )
        )

    if rule.namespace_patterns:
        parent_dir = parent_directory(target.source.relative_path)
        directory = _longest_matching_directory(parent_dir, rule.namespace_patterns) if parent_dir else None
        if directory is not None and not re.search(rule.namespace_patterns[directory], namespace):
            issues.append(
                CodeIssue(
                    file_path=target.file_path,
                    line_number=line_number,
                    severity=target.severity,
                    message=(
                        f'{rule.message} - フォルダ "{directory}" 内のファイルは'
                        "パターンに一致するnamespaceを使用する必要があります"
                    ),
                    suggestion=rule.suggestion or "",
                )
            )
    return issues


def evaluate_file_naming(rule: FileNamingRule, target: RuleTarget) -> list[Issue]:
    """コンポーネント種別キーワードを含むファイル名が命名パターンに従っているかを検証する。"""
    issues: list[Issue] = []
    file_name = target.source.file_name
    kind = "クラス" if file_name.lower().endswith(".cs") else "ファイル"
    for component_type, expected_pattern in rule.file_patterns.items():
        if component_type.lower() not in file_name.lower():
            continue
        if re.search(expected_pattern, file_name):
            continue
        issues.append(
            CodeIssue(
                file_path=target.file_path,
                line_number=1,
                severity=target.severity,
                message=(
                    f'{rule.message} - 種別 "{component_type}" の{kind}名は'
                    f'パターン "{expected_pattern}" に従う必要があります'
                ),
                suggestion=rule.suggestion or "",
            )
        )
    return issues


def evaluate_domain_integrity(rule: DomainIntegrityRule, target: RuleTarget) -> list[Issue]:
    """パスで選択したファイルのusing依存を禁止リスト・許可リストで検証する。"""
    issues: list[Issue] = []
    relative = target.source.relative_path
    for entry in rule.rules:
        if not re.search(entry.source_pattern, relative):
            continue
        message = entry.message or rule.message

        for match in USING_DIRECTIVE.finditer(target.content):
            dependency = match.group(1).strip()
            lowered = dependency.lower()
            line_number = line_number_at(target.content, match.start())

            for forbidden in entry.forbidden_dependencies or []:
                if forbidden.lower() in lowered:
                    issues.append(
                        CodeIssue(
                            file_path=target.file_path,
                            line_number=line_number,
                            severity=target.severity,
                            message=f'{message} - 禁止された依存: "{dependency}"',
                            suggestion="この依存を削除するか、アーキテクチャの原則に従うようリファクタリングしてください",
                        )
                    )

            if entry.allowed_dependencies:
                allowed = any(candidate.lower() in lowered for candidate in entry.allowed_dependencies)
                if not allowed and not dependency.startswith(STANDARD_NAMESPACE_PREFIXES):
                    issues.append(
                        CodeIssue(
                            file_path=target.file_path,
                            line_number=line_number,
                            severity=target.severity,
                            message=f'{message} - 許可されていない依存: "{dependency}"',
                            suggestion="許可された依存に置き換えるか、コードをリファクタリングしてください",
                        )
                    )
    return issues
