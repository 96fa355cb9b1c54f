"""
survboard - Patient survival dashboard core.

Upload a patient table, score it, read survival curves, export results.
"""

from survboard.curves import QueryMode, SurvivalCurve, get_survival_at_time
from survboard.parsing import read_upload
from survboard.risk import classify_risk
from survboard.session import Session

__version__ = "0.1.0"
__all__ = [
    "QueryMode",
    "Session",
    "SurvivalCurve",
    "__version__",
    "classify_risk",
    "get_survival_at_time",
    "read_upload",
]
