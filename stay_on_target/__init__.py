"""Stay on Target - burnup forecasts for JIRA work.

This package turns the issues matched by a JQL query into a day-by-day
burnup of scope and resolved work, projects both forward at their average
rate, and estimates when the work will be done.
"""
