"""
vptsviz Reports Package (Imperative Shell)

Orchestrates data loading, MTR integration, plot generation, and HTML
output.  No analysis logic lives here; this package calls the functional
core (src/vptsviz/analysis/) and plotting (src/vptsviz/plotting/) via the
data loader (src/vptsviz/data/loader.py).

Modules:
    generators: ReportGenerator class and generate_report() convenience
                function for producing the report files of one VPTS source.
"""

from .generators import (
    ReportGenerator,
    generate_report,
)

__all__ = [
    'ReportGenerator',
    'generate_report',
]
