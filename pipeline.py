"""
Pipeline entry point.
Builds one time stack per requested index and dispatches its export.
"""

import ee
from dataclasses import dataclass
from typing import Dict, List, Optional

from export import export_stack, stack_file_name
from retrieval import create_region_of_interest
from settings import StackConfig
from stacking import StackError, build_stack


class PipelineError(Exception):
    """A stack could not be built or submitted. The cause is chained."""

    def __init__(self, index: str, message: str):
        self.index = index
        super().__init__(f"{index}: {message}")


@dataclass
class StackJob:
    index: str
    description: str
    band_names: List[str]
    task: Optional[ee.batch.Task]

    @property
    def acquisition_count(self) -> int:
        return len(self.band_names)

    @property
    def task_id(self) -> Optional[str]:
        return getattr(self.task, "id", None) if self.task is not None else None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "description": self.description,
            "acquisitions": self.acquisition_count,
            "band_names": self.band_names,
            "task_id": self.task_id,
        }


def run_stack_pipeline(
    settings: StackConfig = None,
    start_tasks: bool = True
) -> Dict[str, StackJob]:
    """
    Run the stacking pipeline for every index in settings.

    Each index is built and submitted independently, in the requested order.
    The first failure stops the run; tasks already started keep running on
    the platform.

    Args:
        settings: Validated StackConfig. Defaults to the config.py values.
        start_tasks: If False, export tasks are created but not started.

    Returns:
        dict: Index name to StackJob.

    Raises:
        PipelineError: If a stack is empty or the platform rejects a request.
    """
    settings = settings or StackConfig()

    roi = create_region_of_interest(
        settings.latitude,
        settings.longitude,
        settings.buffer_m
    )

    jobs = {}

    for step, index in enumerate(settings.indices, start=1):
        print(f"\n[{step}/{len(settings.indices)}] Stacking {index.value}...")
        print("-" * 40)

        try:
            stacked = build_stack(index, roi, settings)
            task = export_stack(stacked, roi, settings, start_task=start_tasks)
        except StackError as e:
            raise PipelineError(index.value, str(e)) from e
        except ee.EEException as e:
            raise PipelineError(index.value, f"Earth Engine error: {e}") from e

        jobs[index.value] = StackJob(
            index=index.value,
            description=stack_file_name(
                index.value,
                settings.start_date,
                settings.end_date,
                settings.file_prefix
            ),
            band_names=stacked.band_names,
            task=task
        )

    return jobs
