"""Global input validation flag. If True, malformed shapes, buffers and tolerances are rejected before comparing.
If False, they are passed through and the outcome is undefined.
"""

VALIDATE_INPUTS: bool = True
