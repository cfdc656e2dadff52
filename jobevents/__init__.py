"""
jobevents - buffered persistence of test and framework events.
"""
