from .max_min import MaxMin, max_min, scan_slots, well_max_min, wells_max_min
from .misfit import (
    MisfitReport,
    ObservationPoint,
    ObservationVector,
    WellMisfit,
    eval_misfit,
    eval_well_misfit,
)

__all__ = [
    "MaxMin",
    "max_min",
    "scan_slots",
    "well_max_min",
    "wells_max_min",
    "MisfitReport",
    "ObservationPoint",
    "ObservationVector",
    "WellMisfit",
    "eval_misfit",
    "eval_well_misfit",
]
