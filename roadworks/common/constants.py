"""Application constants."""

USER_AGENT = "montreal-roadworks/0.3 (+proximity alerts; contact: configured-email)"
COMMANDS = (
    "near-route",
    "sweep",
    "schedule",
    "add-location",
    "list-locations",
    "rename-location",
    "remove-location",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
SOURCE_OBSTRUCTIONS = "obstructions"
SOURCE_IMPACTS = "impacts"
SOURCE_DIRECTIONS = "directions"
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "location_id",
    "error_code",
    "message",
)
