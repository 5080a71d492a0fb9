"""
Configuration model for image-pair registration runs.

A run picks two dynamics (time frames) of a raw image series, adjusts their
grey levels, estimates the flow between them and stores the result.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from hsreg.core.OF_options import OFOptions


class RegistrationConfig(BaseModel):
    """Configuration of one registration run."""

    # Core paths
    input_file: Path
    root: Optional[Path] = None
    output_file: Optional[Path] = Field(default=Path("registration.h5"))
    figure_file: Optional[Path] = None

    # Frame selection (0-based)
    reference_dynamic: int = 3
    current_dynamic: int = 6
    slice_index: int = 0

    # Grey-level adjustment
    normalize: bool = True

    # Flow options: inline mapping or path to a saved options file
    flow_options: Optional[Union[Dict[str, Any], Path]] = None

    @field_validator("input_file", "root", "output_file", "figure_file", mode="before")
    @classmethod
    def _to_path(cls, v):
        if v is None or isinstance(v, Path):
            return v
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("flow_options", mode="before")
    @classmethod
    def _normalize_flow_options(cls, v):
        if v is None:
            return None
        if isinstance(v, dict):
            return v
        if isinstance(v, Path):
            return v
        if isinstance(v, str):
            stripped = v.strip()
            return Path(stripped) if stripped else None
        raise TypeError("flow_options must be a mapping or path")

    @field_validator("reference_dynamic", "current_dynamic", "slice_index")
    @classmethod
    def _validate_index(cls, v: int):
        if v < 0:
            raise ValueError("Index must be >= 0")
        return v

    def _resolve_from_root(self, path: Path) -> Path:
        p = path.expanduser()
        if p.is_absolute() or self.root is None:
            return p
        return self.root / p

    def resolve_input_file(self) -> Path:
        return self._resolve_from_root(self.input_file)

    def resolve_output_file(self) -> Optional[Path]:
        if self.output_file is None:
            return None
        return self._resolve_from_root(self.output_file)

    def resolve_figure_file(self) -> Optional[Path]:
        if self.figure_file is None:
            return None
        return self._resolve_from_root(self.figure_file)

    def get_flow_options(self, overrides: Optional[Dict[str, Any]] = None) -> OFOptions:
        """
        Build the OFOptions of the run.

        Inline mappings and saved options files are both accepted; runtime
        ``overrides`` take precedence.
        """
        values: Dict[str, Any] = {}
        if isinstance(self.flow_options, dict):
            values.update(self.flow_options)
        elif isinstance(self.flow_options, Path):
            options_path = self._resolve_from_root(self.flow_options)
            if not options_path.exists():
                raise ValueError(f"Flow options file not found: {options_path}")
            values.update(OFOptions.load_options(options_path).model_dump())
        if overrides:
            values.update(overrides)
        return OFOptions(**values)

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "RegistrationConfig":
        import sys

        p = Path(path)
        if sys.version_info >= (3, 11):
            import tomllib

            with open(p, "rb") as f:
                data = tomllib.load(f)
        else:
            try:
                import tomli
            except ImportError as exc:
                raise ImportError(
                    "TOML support requires 'tomli' for Python < 3.11."
                ) from exc
            with open(p, "rb") as f:
                data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "RegistrationConfig":
        try:
            import yaml
        except ImportError as exc:
            raise ImportError(
                "YAML support requires 'pyyaml'. Install with: pip install pyyaml"
            ) from exc

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RegistrationConfig":
        p = Path(path)
        suffix = p.suffix.lower()
        if suffix == ".toml":
            return cls.from_toml(p)
        if suffix in {".yaml", ".yml"}:
            return cls.from_yaml(p)
        raise ValueError(
            f"Unsupported config file format: {suffix}. Use .toml, .yaml, or .yml."
        )
