"""
================================================================================
ANIMAL IMPACT PACKAGE - Personal Impact Tracker
================================================================================

Top-level package containing all application modules organized by function.

Package Structure:
    animal_impact/core/   - Storage backends, authentication, aggregation
    animal_impact/utils/  - Shared utilities (logging, config, constants)
    animal_impact/web/    - Flask REST API and single-page client

Data Flow:
    client -> web.server -> core.auth (token check)
           -> core.dashboard / storage backend -> JSON response

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

__version__ = "1.0.0"
__author__ = "Animal Impact Team"
