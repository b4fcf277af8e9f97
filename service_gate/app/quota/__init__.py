"""
Quota package for the gate.

Holds the fixed-window daily usage tracker and the store it writes usage
records to.
"""
