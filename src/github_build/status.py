# status.py
# Process exit codes.

SUCCESS_EXIT_CODE = 0
ERROR_EXIT_CODE = 1
# the repository does not match the generated build (remote settings)
FAILURE_EXIT_CODE = 2
