"""パターン定義関連のデータモデル（JSON/YAMLのパターン定義ファイルから読み込み）。

パターン定義ファイルのキーは大文字小文字を区別せずに照合する（camelCase・PascalCaseの両方を許容）。
未知のキーは無視する。ルールは ``type`` をタグとする閉じた直和型として表現する。
"""

import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from codeinsights.models.issues import IssueSeverity, parse_severity

logger = logging.getLogger(__name__)

# 旧フォーマットのルール種別名 → 現行の種別名
_RULE_TYPE_ALIASES: dict[str, str] = {"Algoritmo": "Algorithm"}


class _DocumentModel(BaseModel):
    """パターン定義ファイル由来のモデルの共通設定。"""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            known[name.lower()] = name
            if field.alias:
                known[field.alias.lower()] = field.alias
        return {known.get(str(key).lower(), key): value for key, value in data.items()}


class _RuleBase(_DocumentModel):
    """全ルール共通のフィールド。"""

    message: str = ""
    suggestion: str | None = None


class FolderStructureRule(_RuleBase):
    """プロジェクトルート直下に期待されるフォルダの存在チェック。"""

    type: Literal["FolderStructure"] = "FolderStructure"
    expected_folders: list[str] = Field(default_factory=list, alias="expectedFolders")


class FileLocationRule(_RuleBase):
    """ファイル名の正規表現 → 配置されるべきディレクトリ接頭辞。"""

    type: Literal["FileLocation"] = "FileLocation"
    file_patterns: dict[str, str] = Field(default_factory=dict, alias="filePatterns")


class NamespaceRule(_RuleBase):
    """namespace宣言の命名チェック。"""

    type: Literal["Namespace"] = "Namespace"
    namespace_pattern: str | None = Field(default=None, alias="namespacePattern")
    namespace_patterns: dict[str, str] | None = Field(default=None, alias="namespacePatterns")


class FileNamingRule(_RuleBase):
    """コンポーネント種別キーワード → 期待されるファイル名の正規表現。"""

    type: Literal["FileNaming"] = "FileNaming"
    file_patterns: dict[str, str] = Field(default_factory=dict, alias="filePatterns")


class DomainIntegrityEntry(_DocumentModel):
    """DomainIntegrityルールの個別エントリ。"""

    source_pattern: str = Field(alias="sourcePattern")
    forbidden_dependencies: list[str] | None = Field(default=None, alias="forbiddenDependencies")
    allowed_dependencies: list[str] | None = Field(default=None, alias="allowedDependencies")
    message: str = ""


class DomainIntegrityRule(_RuleBase):
    """パスで選択したファイルのusing依存を禁止リスト・許可リストで検証する。"""

    type: Literal["DomainIntegrity"] = "DomainIntegrity"
    rules: list[DomainIntegrityEntry] = Field(default_factory=list)


class StructureRule(_RuleBase):
    """コンポーネント構造のヒューリスティックチェック。"""

    type: Literal["Structure"] = "Structure"
    identifiers: dict[str, str] | None = None
    component_responsibilities: dict[str, list[str]] | None = Field(default=None, alias="componentType")


class NamingRule(_RuleBase):
    """コンポーネント種別キーワード → クラス名の正規表現。"""

    type: Literal["Naming"] = "Naming"
    per_role_patterns: dict[str, str] = Field(default_factory=dict, alias="pattern")


class DependencyRule(_RuleBase):
    """コンポーネント種別ごとの「should not」依存制約。"""

    type: Literal["Dependency"] = "Dependency"
    restrictions: dict[str, list[str]] = Field(default_factory=dict, alias="rules")


class Layer(_DocumentModel):
    """アーキテクチャレイヤー定義。"""

    name: str
    identifiers: list[str] = Field(default_factory=list)
    allowed_dependencies: list[str] = Field(default_factory=list, alias="allowedDependencies")


class LayerDependencyRule(_RuleBase):
    """レイヤー間の依存方向チェック。"""

    type: Literal["LayerDependency"] = "LayerDependency"
    layers: list[Layer] = Field(default_factory=list)


class ResponsibilityRule(_RuleBase):
    """コンポーネント種別ごとの責務（「should not」のみ検査）。"""

    type: Literal["Responsibility"] = "Responsibility"
    responsibilities: dict[str, list[str]] = Field(default_factory=dict, alias="rules")


class _RegexRule(_RuleBase):
    name: str | None = None
    pattern: str = ""
    complexity: str | None = None


class AlgorithmRule(_RegexRule):
    """非効率なアルゴリズムを正規表現で検出する。"""

    type: Literal["Algorithm"] = "Algorithm"


class ResourceUsageRule(_RegexRule):
    """リソースの不適切な使い方を正規表現で検出する。"""

    type: Literal["ResourceUsage"] = "ResourceUsage"


class DataStructureRule(_RuleBase):
    """不適切なデータ構造の生成（``new <型名>``）を検出する。"""

    type: Literal["DataStructure"] = "DataStructure"
    name: str | None = None
    complexity: str | None = None
    anti_patterns: list[str] = Field(default_factory=list, alias="antiPatterns")
    recommended_structures: list[str] | None = Field(default=None, alias="recommendedStructures")


RULE_CLASSES: tuple[type[_RuleBase], ...] = (
    FolderStructureRule,
    FileLocationRule,
    NamespaceRule,
    FileNamingRule,
    DomainIntegrityRule,
    StructureRule,
    NamingRule,
    DependencyRule,
    LayerDependencyRule,
    ResponsibilityRule,
    AlgorithmRule,
    ResourceUsageRule,
    DataStructureRule,
)

RULE_TYPES: frozenset[str] = frozenset(cls.model_fields["type"].default for cls in RULE_CLASSES)

RuleSpec = Annotated[
    FolderStructureRule
    | FileLocationRule
    | NamespaceRule
    | FileNamingRule
    | DomainIntegrityRule
    | StructureRule
    | NamingRule
    | DependencyRule
    | LayerDependencyRule
    | ResponsibilityRule
    | AlgorithmRule
    | ResourceUsageRule
    | DataStructureRule,
    Field(discriminator="type"),
]


def _normalize_rule_entry(entry: Any) -> Any | None:
    """ルールエントリの種別タグを正規化する。未知の種別はNoneを返す。"""
    if not isinstance(entry, dict):
        return entry
    tag_key = next((key for key in entry if str(key).lower() == "type"), None)
    tag = entry.get(tag_key) if tag_key is not None else None
    tag = _RULE_TYPE_ALIASES.get(tag, tag) if isinstance(tag, str) else tag
    if tag not in RULE_TYPES:
        logger.debug("Ignoring rule with unknown type: %r", tag)
        return None
    normalized = {key: value for key, value in entry.items() if key != tag_key}
    normalized["type"] = tag
    return normalized


class PatternDefinition(_DocumentModel):
    """パターン定義（1ファイル = 1パターン）。"""

    pattern_name: str = Field(default="", alias="patternName")
    description: str = ""
    severity: Any = None
    rules: list[RuleSpec] = Field(default_factory=list)
    exemption_patterns: list[str] = Field(default_factory=list, alias="exemptionPatterns")
    pattern_detection: dict[str, list[str]] | None = Field(default=None, alias="patternDetection")

    @field_validator("rules", mode="before")
    @classmethod
    def _drop_unknown_rule_types(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        entries = (_normalize_rule_entry(entry) for entry in value)
        return [entry for entry in entries if entry is not None]

    @field_validator("exemption_patterns", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def issue_severity(self) -> IssueSeverity:
        """パターンの重大度をIssueSeverityとして返す。"""
        return parse_severity(self.severity)

    @property
    def detection_indicators(self) -> list[str]:
        """patternDetectionに定義された全インジケーター。"""
        if not self.pattern_detection:
            return []
        return [indicator for indicators in self.pattern_detection.values() for indicator in indicators or []]


class PatternSet(BaseModel):
    """1カテゴリ分の読み込み済みパターン定義。読み込み順を保持する。"""

    model_config = ConfigDict(frozen=True)

    category: str
    patterns: tuple[PatternDefinition, ...] = ()

    def __len__(self) -> int:
        return len(self.patterns)
