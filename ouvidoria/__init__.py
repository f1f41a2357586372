# SPDX-License-Identifier: Apache-2.0

"""
Ouvidoria API: citizen manifestation intake, protocol tracking and staff triage.
"""

__version__ = "1.0.0"
