"""AliasRegistry -- 语义 alias 注册表

管理语义 alias -> category -> runtime_group 双层映射。
每类内容生成使用独立的语义 alias，Proxy 侧再映射到具体模型。
"""

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

# 已知运行时 group 名称
KNOWN_RUNTIME_GROUPS = {"cheap", "main", "fallback"}


class AliasConfig(BaseModel):
    """单个语义 alias 的配置

    - category: 成本归因维度（cheap/main/fallback）
    - runtime_group: Proxy model_name 维度（cheap/main/fallback）
    """

    name: str = Field(description="语义 alias 名称（如 planner, solver）")
    description: str = Field(default="", description="alias 用途描述")
    category: str = Field(default="main", description="成本归因分类")
    runtime_group: str = Field(default="main", description="运行时 group")


def _get_default_aliases() -> list[AliasConfig]:
    """默认 alias 配置：结构化 JSON 生成走 cheap，长文本与对话走 main"""
    cheap = [
        ("drafter", "任务草稿改写"),
        ("planner", "执行计划生成"),
        ("reviewer", "验收标准生成"),
        ("curator", "学习资源推荐"),
        ("extractor", "资源分析结果格式化"),
    ]
    main = [
        ("solver", "解决方案草稿（smart）"),
        ("researcher", "URL 内容调研"),
        ("guide", "任务助手对话"),
        ("insight", "周报洞察"),
    ]
    aliases = [
        AliasConfig(name=name, description=desc, category="cheap", runtime_group="cheap")
        for name, desc in cheap
    ]
    aliases += [
        AliasConfig(name=name, description=desc, category="main", runtime_group="main")
        for name, desc in main
    ]
    aliases.append(
        AliasConfig(
            name="fallback",
            category="fallback",
            runtime_group="fallback",
            description="降级备选",
        )
    )
    return aliases


class AliasRegistry:
    """Alias 注册表 -- 启动时加载，运行期间不变"""

    def __init__(self, aliases: list[AliasConfig] | None = None) -> None:
        alias_list = aliases if aliases is not None else _get_default_aliases()
        self._aliases: dict[str, AliasConfig] = {a.name: a for a in alias_list}

    def resolve(self, alias: str) -> str:
        """将语义 alias 解析为运行时 group（Proxy model_name）

        1. 注册表内的语义 alias -> 对应 runtime_group
        2. 已知运行时 group（cheap/main/fallback）-> 透传
        3. 其他 -> "main"，并记录 warning
        """
        if alias in self._aliases:
            return self._aliases[alias].runtime_group

        if alias in KNOWN_RUNTIME_GROUPS:
            return alias

        log.warning("unknown_alias_fallback_to_main", alias=alias)
        return "main"

    def get_alias(self, alias: str) -> AliasConfig | None:
        """按名称查询单个 alias 配置"""
        return self._aliases.get(alias)

    def list_all(self) -> list[AliasConfig]:
        """列出所有已注册的 alias（按 name 排序）"""
        return sorted(self._aliases.values(), key=lambda a: a.name)
