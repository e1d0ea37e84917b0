"""Waiting on vSphere tasks.

``WaitForTask`` blocks on the server's property-collector updates until
the task is terminal. There is no local timeout and no cancellation: a
task that never finishes keeps the caller blocked.
"""
from __future__ import annotations

import logging

from pyVim.task import WaitForTask

logger = logging.getLogger("compute_providers.contrib.vsphere.tasks")


def wait_for_task(task, description: str = "task"):
    """
    Block until ``task`` succeeds or fails.

    Returns the terminal task state. A failed task raises its vSphere
    fault unchanged.
    """
    logger.info("Waiting for %s to complete", description)
    state = WaitForTask(task, raiseOnError=True)
    logger.info("%s finished: %s", description.capitalize(), state)
    return state
