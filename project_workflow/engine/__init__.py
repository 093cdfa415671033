"""
Project Workflow Engine — workflow definitions, self-healing store and
transition resolver.

This package is the engine core. It owns no project records: the Project
Lifecycle Manager persists projects and asks the engine what comes next.
Persistence is injected (see persistence.py), so the engine never assumes a
particular backing store.
"""
