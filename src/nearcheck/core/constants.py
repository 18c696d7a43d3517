"""sqrt(0.5), used to split a magnitude bound across the two components of a complex value"""

SQRT_HALF: float = 0.7071067811865475244

"""Maximum number of mismatches spelled out in a failure message. The report itself always keeps all of them."""

MAX_REPORTED_MISMATCHES: int = 20
