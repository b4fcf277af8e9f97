"""
Admission domain for the gate.

Each stage returns a GateResult instead of raising, so the admission logic
can be exercised without an HTTP harness. The HTTP layer in app.main is the
only place a GateFailure becomes a status code.
"""
