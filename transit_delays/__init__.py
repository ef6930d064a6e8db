"""
Transit delay tracker.

REST API for reporting public-transit delays, listing them by status and
aggregating active delays per neighborhood, plus a Streamlit dashboard.
"""

__version__ = "1.0.0"
