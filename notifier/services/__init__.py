"""Scheduling services.

Services:
- scheduler.py: Validation, quiet hours and backend selection
- settings_store.py: Per-user notification preferences
- stats.py: Daily notification counters
- permission.py: Capability and permission probe
- quiet_hours.py: Quiet hours window arithmetic
- templates.py: Builders for common notification kinds
- subscriptions.py: Registry of vendor push devices
"""
