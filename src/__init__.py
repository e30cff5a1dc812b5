"""
SONAR - Sensor-Oriented Navigation And Radar
Package initialization

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Modules import each other by their top-level names.  Importing the
package (as the ``sonar`` console script does) puts this directory on
``sys.path`` so those imports resolve.
"""

import sys
from pathlib import Path

__version__ = "0.1.0"
__author__ = "SONAR Development Team"
__description__ = "Orientation-tracking radar dial with sweep detection"

_SRC_DIR = str(Path(__file__).resolve().parent)
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)
