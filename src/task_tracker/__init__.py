"""
Task Tracker package.

FastAPI service for personal task tracking. The app instance lives in
`task_tracker.main`; the task lifecycle and statistics live in
`task_tracker.service` and can be used without the web layer.
"""
