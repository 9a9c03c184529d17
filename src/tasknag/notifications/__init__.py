"""
Notification engine.

Components:
- models.py: notification configuration, Task snapshot, FiredNotification
- evaluator.py: pure fire/no-fire decision per task
- dispatcher.py: alert + escalation side effects
- scheduler.py: wall-clock aligned sweep loop and manual check
"""
