"""REST API for the OpenRTB validator."""
