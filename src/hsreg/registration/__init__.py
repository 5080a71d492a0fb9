"""
Registration workflow for raw image series.

The ``registration`` module wraps the core estimator into a run that mirrors
the usual tutorial flow:

1. Load a series and pick a reference and a current dynamic
2. Adjust grey levels and estimate the flow between them
3. Store the registered image and flow, optionally render a figure
"""

from hsreg.registration.config import RegistrationConfig
from hsreg.registration.pipeline import (
    RegistrationResult,
    load_pair,
    register_pair,
    run_registration,
    write_result,
)

__all__ = [
    "RegistrationConfig",
    "RegistrationResult",
    "load_pair",
    "register_pair",
    "run_registration",
    "write_result",
]
