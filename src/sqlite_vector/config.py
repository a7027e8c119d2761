"""Configuration management for sqlite_vector using Hydra.

Configuration is loaded from YAML files in the package's ``conf/`` directory
(or any directory passed to :func:`load_config`) and validated into typed,
frozen pydantic models.
"""

from pathlib import Path

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ConfigDict, Field

from sqlite_vector.chunking import ChunkingConfig
from sqlite_vector.embedding import EmbeddingConfig
from sqlite_vector.quantization import QuantizationRange

DEFAULT_CONFIG_DIR = Path(__file__).parent / "conf"


class VectorConfig(BaseModel):
    """Session-wide vector settings shared by every registered function.

    Built once at registration and read-only afterwards, so concurrent
    statements on the connection always observe the same snapshot.

    Attributes:
        dim: Vector dimension (>= 1)
        quant_range: Quantization range; None disables the quantized functions
    """

    model_config = ConfigDict(frozen=True)

    dim: int = Field(ge=1)
    quant_range: QuantizationRange | None = None

    @property
    def quantization_enabled(self) -> bool:
        return self.quant_range is not None


class VectorSettings(BaseModel):
    """The ``vector`` section of the YAML configuration.

    Attributes:
        dim: Vector dimension
        quantization: Optional quantization range
    """

    dim: int = Field(ge=1)
    quantization: QuantizationRange | None = None

    def to_vector_config(self) -> VectorConfig:
        return VectorConfig(dim=self.dim, quant_range=self.quantization)


class ExtensionSettings(BaseModel):
    """Top-level configuration for the extension.

    Attributes:
        vector: Dimension and quantization settings
        chunking: Chunker configuration; None leaves vector_chunk without a chunker
        embedding: Embedder configuration; None leaves vector_embed without an embedder
    """

    vector: VectorSettings
    chunking: ChunkingConfig | None = None
    embedding: EmbeddingConfig | None = None


def load_config(
    config_name: str = "default",
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> ExtensionSettings:
    """Load extension configuration from Hydra YAML files.

    Args:
        config_name: Name of config file (without .yaml extension)
        config_path: Path to config directory (defaults to the bundled conf/)
        overrides: List of config overrides (e.g., ["vector.dim=768"])

    Returns:
        Validated configuration object

    Example:
        >>> settings = load_config("default", overrides=["vector.dim=3"])
        >>> settings.vector.dim
        3
    """
    config_path = Path(config_path or DEFAULT_CONFIG_DIR).resolve()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config directory not found: {config_path}\n" f"Create it with: mkdir -p {config_path}"
        )

    with initialize_config_dir(
        config_dir=str(config_path), version_base=None, job_name="sqlite_vector"
    ):
        cfg: DictConfig = compose(config_name=config_name, overrides=overrides or [])

    config_dict = OmegaConf.to_container(cfg, resolve=True)
    return ExtensionSettings(**config_dict)  # type: ignore[arg-type]


def create_default_config() -> dict[str, dict[str, object]]:
    """Create a default configuration dictionary for bootstrapping.

    Example:
        >>> import yaml
        >>> with open("conf/default.yaml", "w") as f:
        ...     yaml.dump(create_default_config(), f)
    """
    return {
        "vector": {
            "dim": 384,
            "quantization": {"minimum": -1.0, "maximum": 1.0},
        },
        "chunking": {
            "chunk_size": 400,
            "overlap": 50,
            "tokenizer": "cl100k_base",
            "preserve_boundaries": True,
        },
        "embedding": {
            "model": "openai/text-embedding-3-small",
            "version": "v1",
            "dimensions": 384,
            "max_retries": 3,
            "timeout_seconds": 30.0,
            "api_key": "${oc.env:OPENAI_API_KEY,null}",
        },
    }
