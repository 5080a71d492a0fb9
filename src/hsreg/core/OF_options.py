"""
Optical Flow Options Configuration Module
-----------------------------------------

Pydantic v2 models holding the parameters of the Horn-Schunck registration:
regularization weight, pyramid depth, the fixed-point convergence policy and
the warping/back-end choices. Options can be stored as a headered JSON file
(one description line, a blank line, then the JSON payload).
"""
from __future__ import annotations

import json
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# -----------------------
# Enums (keep values stable)
# -----------------------
class InterpolationMethod(str, Enum):
    LINEAR = "linear"
    CUBIC = "cubic"


class SolverBackend(str, Enum):
    NUMPY = "numpy"
    NUMBA = "numba"


# -----------------------------------
# Convergence strategy of the fixed-point scheme
# -----------------------------------
class FixedPointCriteria(BaseModel):
    """Stopping rule: at most ``max_iterations`` steps, or earlier once the
    mean per-cell step norm drops below ``tolerance``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_iterations: StrictInt = Field(1000, ge=1, description="Iteration cap of the fixed-point loop")
    tolerance: float = Field(1e-4, gt=0, description="Residual threshold for early exit")


# -----------------------------------
# OFOptions model (Pydantic v2)
# -----------------------------------
class OFOptions(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # Flow params
    alpha: float = Field(0.1, gt=0, description="Weight of the smoothness term")
    levels: StrictInt = Field(3, ge=1, description="# pyramid levels (scale factors 2**k)")

    # Fixed-point scheme
    max_iterations: StrictInt = Field(1000, ge=1, description="Iteration cap per level")
    tolerance: float = Field(1e-4, gt=0, description="Mean step norm below which a level has converged")

    # Misc processing options
    interpolation_method: InterpolationMethod = Field(InterpolationMethod.CUBIC, description="Warp interpolation")
    backend: SolverBackend = Field(SolverBackend.NUMPY, description="Implementation of the fixed-point loop")
    verbose: bool = Field(False, description="Verbose logging")

    # -----------------------
    # Derived properties
    # -----------------------
    @property
    def criteria(self) -> FixedPointCriteria:
        return FixedPointCriteria(max_iterations=self.max_iterations, tolerance=self.tolerance)

    # -----------------------
    # Save/load with header line
    # -----------------------
    def save_options(self, filepath: Union[str, Path]) -> None:
        """Save options to JSON preceded by a dated header line."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json")
        with path.open("w", encoding="utf-8") as f:
            f.write(f"Registration options {date.today().isoformat()}\n\n")
            json.dump(data, f, indent=2)
        if self.verbose:
            print(f"Options saved to {path}")

    @classmethod
    def load_options(cls, filepath: Union[str, Path]) -> "OFOptions":
        """Load options written by ``save_options`` (the header is skipped)."""
        p = Path(filepath)
        with p.open("r", encoding="utf-8") as f:
            lines = f.readlines()
        # Find first line that starts with '{'
        json_start = 0
        for i, line in enumerate(lines):
            if line.strip().startswith("{"):
                json_start = i
                break
        payload = "".join(lines[json_start:])
        return cls(**json.loads(payload))

    def to_dict(self) -> dict:
        """Keyword arguments for ``estimate``."""
        return {"alpha": float(self.alpha), "levels": int(self.levels), "options": self}

    def __repr__(self) -> str:  # pragma: no cover
        return (f"OFOptions(alpha={self.alpha}, levels={self.levels}, "
                f"max_iterations={self.max_iterations}, tolerance={self.tolerance}, "
                f"backend={self.backend.value})")
