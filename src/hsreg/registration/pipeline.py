"""
Registration of two dynamics of an image series.

1) Load the series and pick the reference and current images.
2) Adjust grey levels (reference to [0,1], current to the reference mean).
3) Estimate the flow and register the current image.
4) Store images, flow, validity mask and options; optionally render a figure.
"""

from __future__ import annotations

import json
from pathlib import Path
from time import time
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from hsreg.core.OF_options import OFOptions
from hsreg.core.optical_flow import LevelFlow, estimate_levels
from hsreg.core.warping import backward_valid_mask, imregister_wrapper
from hsreg.registration.config import RegistrationConfig
from hsreg.util.image_processing import prepare_pair
from hsreg.util.io.factory import get_result_writer, get_series_reader


class RegistrationResult(NamedTuple):
    reference: np.ndarray
    current: np.ndarray
    registered: np.ndarray
    u: np.ndarray
    v: np.ndarray
    levels: List[LevelFlow]


def load_pair(config: RegistrationConfig) -> Tuple[np.ndarray, np.ndarray]:
    """Read the reference and current images selected by ``config``."""
    input_file = config.resolve_input_file()
    if not input_file.exists():
        raise FileNotFoundError(f"input_file not found: {input_file}")

    with get_series_reader(str(input_file)) as reader:
        reference = reader.get_image(config.reference_dynamic, config.slice_index)
        current = reader.get_image(config.current_dynamic, config.slice_index)

    if config.normalize:
        return prepare_pair(reference, current)
    return reference, current


def register_pair(Iref: np.ndarray, Icur: np.ndarray, options: OFOptions) -> RegistrationResult:
    """Estimate the flow between an image pair and register the current image."""
    history = estimate_levels(Iref, Icur, **options.to_dict(), stacklevel=3)
    final = history[-1]
    Ireg = imregister_wrapper(Icur, final.u, final.v,
                              interpolation_method=options.interpolation_method.value)
    return RegistrationResult(np.asarray(Iref, dtype=np.float64), np.asarray(Icur, dtype=np.float64),
                              Ireg, final.u, final.v, history)


def summarize(result: RegistrationResult) -> Dict[str, Any]:
    """Scalar diagnostics of a registration run."""
    return {
        "mad_before": float(np.mean(np.abs(result.current - result.reference))),
        "mad_after": float(np.mean(np.abs(result.registered - result.reference))),
        "iterations": [lf.solution.iterations for lf in result.levels],
        "residuals": [lf.solution.residual for lf in result.levels],
        "converged": [lf.solution.converged for lf in result.levels],
    }


def write_result(path: Path, result: RegistrationResult, options: OFOptions) -> None:
    """Persist images, flow and validity mask; options go into the attributes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    grids = {
        "reference": result.reference,
        "current": result.current,
        "registered": result.registered,
        "u": result.u,
        "v": result.v,
        "valid": backward_valid_mask(result.u, result.v).astype(np.uint8),
    }
    attrs = {
        "options": json.dumps(options.model_dump(mode="json")),
        "summary": json.dumps(summarize(result)),
    }
    with get_result_writer(str(path)) as writer:
        writer.write_result(grids, attrs)


def run_registration(config: RegistrationConfig,
                     overrides: Optional[Dict[str, Any]] = None) -> RegistrationResult:
    """Run the whole workflow described by ``config``."""
    options = config.get_flow_options(overrides)

    start = time()
    Iref, Icur = load_pair(config)
    print(f"Loaded dynamics {config.reference_dynamic} (reference) and "
          f"{config.current_dynamic} (current), image size {Iref.shape}")

    print(f"Estimating motion with alpha={options.alpha}, levels={options.levels}...")
    result = register_pair(Iref, Icur, options)
    summary = summarize(result)
    print(f"Mean absolute difference: {summary['mad_before']:.5f} before, "
          f"{summary['mad_after']:.5f} after registration")

    output_file = config.resolve_output_file()
    if output_file is not None:
        write_result(output_file, result, options)
        print(f"Saved registration result to {output_file}")

    figure_file = config.resolve_figure_file()
    if figure_file is not None:
        from hsreg.util.visualization import display_result

        display_result(result.reference, result.current, result.registered, result.u, result.v,
                       output_file=str(figure_file), show=False)
        print(f"Saved figure to {figure_file}")

    elapsed = time() - start
    print(f"Registration complete in {elapsed:.2f}s")
    return result
