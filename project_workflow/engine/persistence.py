#!/usr/bin/env python3
"""
Workflow Persistence Collaborators

The store talks to its backing storage only through this contract:

    read()  -> list[Workflow]   never raises for a missing, empty or corrupt
                                store; returns [] so the store's repair pass
                                can reinstall the default workflow
    write(workflows) -> None    raises WorkflowSaveError on failure; not
                                retried here

Adapters:
- InMemoryPersistence  — test fake and embedded use
- JsonFilePersistence  — the workflows.json flat file
- SqlitePersistence    — lives in schema.py next to the DDL it depends on
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from .errors import WorkflowSaveError
from .models import Workflow

logger = logging.getLogger(__name__)


class WorkflowPersistence(Protocol):
    def read(self) -> list[Workflow]:
        ...

    def write(self, workflows: list[Workflow]) -> None:
        ...


def parse_workflow_documents(docs: Any, source: str) -> list[Workflow]:
    """
    Convert a decoded JSON array into Workflow objects.

    Entries that are not valid workflow records are skipped with a warning;
    a top-level value that is not a list yields [].
    """
    if not isinstance(docs, list):
        logger.error("Workflow data in %s is not a list; treating store as empty.", source)
        return []
    workflows: list[Workflow] = []
    for index, doc in enumerate(docs):
        try:
            workflows.append(Workflow.from_dict(doc))
        except (KeyError, TypeError, AttributeError) as exc:
            logger.warning("Skipping malformed workflow #%d in %s: %s", index, source, exc)
    return workflows


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryPersistence:
    """Holds workflows in memory. Copies on read and write, like a real store."""

    def __init__(self, workflows: list[Workflow] | None = None):
        self._workflows: list[Workflow] = copy.deepcopy(workflows or [])
        self.write_count = 0

    def read(self) -> list[Workflow]:
        return copy.deepcopy(self._workflows)

    def write(self, workflows: list[Workflow]) -> None:
        self._workflows = copy.deepcopy(workflows)
        self.write_count += 1


# ---------------------------------------------------------------------------
# JSON flat file
# ---------------------------------------------------------------------------


class JsonFilePersistence:
    """
    workflows.json flat-file store.

    The file holds a JSON array of workflow documents, pretty-printed with a
    2-space indent. Writes go to a temp file in the same directory and are
    moved into place with os.replace, so readers never see a half-written file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> list[Workflow]:
        try:
            data = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("%s not found; starting with an empty workflow store.", self.path)
            return []
        except OSError as exc:
            logger.error("Error reading %s; treating store as empty: %s", self.path, exc)
            return []

        if not data.strip():
            logger.info("%s is empty; starting with an empty workflow store.", self.path)
            return []

        try:
            docs = json.loads(data)
        except json.JSONDecodeError as exc:
            logger.error("Error parsing %s, file might be corrupted; treating store as empty: %s",
                         self.path, exc)
            return []

        workflows = parse_workflow_documents(docs, str(self.path))
        logger.debug("Read %d workflows from %s", len(workflows), self.path)
        return workflows

    def write(self, workflows: list[Workflow]) -> None:
        payload = json.dumps([wf.to_dict() for wf in workflows], indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            logger.error("Error writing workflow store %s: %s", self.path, exc)
            raise WorkflowSaveError() from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Wrote %d workflows to %s", len(workflows), self.path)
