"""
Project Workflow: approval pipeline engine for the task-tracking application.
"""
