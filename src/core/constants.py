"""
Shared constants for content validation.

This module consolidates constants used across the codebase to ensure
consistency and make it easier to modify common values.
"""

# Languages
DEFAULT_LANGUAGE_ID = "00000000-0000-0000-0000-000000000000"

# Results
NO_COLLECTION_NAME = "No Collection"
UNKNOWN_CONTENT_TYPE_NAME = "Unknown"
VALIDATION_ERROR_CODE = "VALIDATION_ERROR"
DEFAULT_PAGE_SIZE = 20

# Run phases (coarse steps reported alongside the detailed progress)
TOTAL_VALIDATION_STEPS = 3
STEP_INITIALIZING = "Initializing validation"
STEP_POLLING = "Polling validation task"
STEP_FETCHING_RESULTS = "Fetching validation results"

# Status filter values
STATUS_FILTERS = ("all", "valid", "invalid", "warning")

# Warning categories
WARNING_CONTENT_QUALITY = "content_quality"
WARNING_CONTENT_STATUS = "content_status"

# HTTP defaults
DEFAULT_HTTP_TIMEOUT = 60.0
DEFAULT_KEEPALIVE_CONNECTIONS = 10
DEFAULT_MAX_CONNECTIONS = 20
