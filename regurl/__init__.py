"""
regurl - registration URL builder for programs, courses and course sessions.
"""
