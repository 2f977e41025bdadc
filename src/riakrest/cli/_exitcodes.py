"""Exit codes for the riakrest CLI."""

OK = 0
REMOTE_FAILURE = 1
USAGE_ERROR = 2
NOT_FOUND = 3
