"""
Warp Output
============

Presentation of Warp run results:

- ``console``  -- Rich panels and tables
- ``report``   -- Standalone HTML and JSON reports
"""

from warp.output.console import WarpConsoleOutput
from warp.output.report import WarpReportGenerator

__all__ = [
    "WarpConsoleOutput",
    "WarpReportGenerator",
]
