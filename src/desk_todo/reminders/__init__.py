"""
Reminders.

- notification_center.py: in-process pending notifications + delivery loop
- reminder_scheduler.py: one reminder per task, keyed by task id
"""
