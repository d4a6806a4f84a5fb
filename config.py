"""Configuração da aplicação."""
import os
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class EngineConfig:
    """Configuração do motor de regras (compiler, renderer, parser)."""

    rule_suffix: str = "_Rule"
    result_property: str = "ratingValue"
    comment_prefix: str = "_comment"
    default_result_value: str = "5.0"
    trivial_property_limit: int = 2
    type_hints: Dict[str, str] = field(
        default_factory=lambda: {
            "review": "AggregateRating",
            "aggregateRating": "AggregateRating",
        }
    )

    @property
    def carrier_key(self) -> str:
        """Default rule-carrier key, e.g. ``ratingValue_Rule``."""
        return f"{self.result_property}{self.rule_suffix}"

    def is_reserved_key(self, key: str) -> bool:
        """Keys the renderer and parser give a meaning of their own (@, comments, carriers)."""
        return (
            key.startswith("@")
            or key.startswith(self.comment_prefix)
            or key.endswith(self.rule_suffix)
        )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            result_property=os.getenv("DSI_RESULT_PROPERTY", "ratingValue"),
            default_result_value=os.getenv("DSI_DEFAULT_RESULT_VALUE", "5.0"),
            trivial_property_limit=int(os.getenv("DSI_TRIVIAL_PROPERTY_LIMIT", "2")),
        )


@dataclass
class AppConfig:
    """Configuração da aplicação."""

    skeleton_path: Optional[str] = None
    output_dir: str = "./output"
    engine: Optional[EngineConfig] = None

    def __post_init__(self):
        """Inicializa valores padrão."""
        if self.engine is None:
            self.engine = EngineConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            skeleton_path=os.getenv("DSI_SKELETON_PATH") or None,
            output_dir=os.getenv("DSI_OUTPUT_DIR", "./output"),
            engine=EngineConfig.from_env(),
        )


# Instância global
app_config = AppConfig.from_env()
