"""Runtime configuration for indexing and query entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Mapping

from tripledex.index.generator import GeneratorConfig
from tripledex.index.transform import TRANSFORMS, resolve_transform


DEFAULT_INDEX_PATH = ".tripledex-index"
DEFAULT_THREADS = 4
DEFAULT_TRANSFORM = "none"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(*, name: str, raw_value: str, default: bool) -> bool:
    value = raw_value.strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off)")


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class IndexSettings:
    """Validated defaults for the indexing and search CLIs."""

    index_path: Path = Path(DEFAULT_INDEX_PATH)
    threads: int = DEFAULT_THREADS
    store_raw: bool = False
    store_transformed: bool = False
    store_vectors: bool = False
    store_positions: bool = False
    transform: str = DEFAULT_TRANSFORM
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "IndexSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        index_path_raw = source.get("TRIPLEDEX_INDEX_PATH", DEFAULT_INDEX_PATH).strip()
        if not index_path_raw:
            raise ValueError("TRIPLEDEX_INDEX_PATH cannot be empty")

        threads = _parse_positive_int(
            name="TRIPLEDEX_THREADS",
            raw_value=source.get("TRIPLEDEX_THREADS", str(DEFAULT_THREADS)).strip(),
        )

        transform = source.get("TRIPLEDEX_TRANSFORM", DEFAULT_TRANSFORM).strip().lower() or DEFAULT_TRANSFORM
        if transform not in TRANSFORMS:
            raise ValueError(f"TRIPLEDEX_TRANSFORM must be one of: {', '.join(sorted(TRANSFORMS))}")

        log_level = source.get("TRIPLEDEX_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"TRIPLEDEX_LOG_LEVEL is not a logging level: {log_level}")

        flags = {
            attr: _parse_bool(name=env_name, raw_value=source.get(env_name, ""), default=False)
            for attr, env_name in (
                ("store_raw", "TRIPLEDEX_STORE_RAW"),
                ("store_transformed", "TRIPLEDEX_STORE_TRANSFORMED"),
                ("store_vectors", "TRIPLEDEX_STORE_VECTORS"),
                ("store_positions", "TRIPLEDEX_STORE_POSITIONS"),
            )
        }

        return cls(
            index_path=Path(index_path_raw),
            threads=threads,
            transform=transform,
            log_level=log_level,
            **flags,
        )

    def generator_config(self) -> GeneratorConfig:
        return GeneratorConfig(
            store_raw=self.store_raw,
            store_transformed=self.store_transformed,
            store_vectors=self.store_vectors,
            store_positions=self.store_positions,
            transform=resolve_transform(self.transform),
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(format=LOG_FORMAT, level=level)
