"""
ortb-validator

OpenRTB 2.6 bid request validation, compliance scoring and reporting.
"""

__version__ = "1.0.0"
