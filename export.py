"""
Export module.
Submits stacked index images to Google Drive, Cloud Storage or GEE assets
and monitors the resulting tasks.
"""

import ee
from dataclasses import dataclass
from typing import Dict, Optional
import time

import config


FINISHED_STATES = ("COMPLETED", "FAILED", "CANCELLED")


@dataclass
class TaskOutcome:
    """Final (or last seen) state of an export task."""

    state: str
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == "COMPLETED"


def stack_file_name(
    index: str,
    start_date: str,
    end_date: str,
    prefix: str = None
) -> str:
    """
    Build task description and file name, e.g. S2H_NDVI_stack_2022-01-01_2024-12-31.
    """
    prefix = prefix or config.FILE_PREFIX
    return f"{prefix}_{index}_stack_{start_date}_{end_date}"


def create_export_task(
    image: ee.Image,
    roi: ee.Geometry,
    description: str,
    settings
) -> ee.batch.Task:
    """
    Create the export task for the configured destination.

    Args:
        image: Image to export.
        roi: Export region.
        description: Task description, also the output file name.
        settings: StackConfig with destination, folder, scale and max pixels.

    Returns:
        ee.batch.Task: The export task (not started).
    """
    destination = settings.export_destination

    if destination == "drive":
        return ee.batch.Export.image.toDrive(
            image=image,
            description=description,
            folder=settings.output_folder,
            fileNamePrefix=description,
            region=roi,
            scale=settings.export_scale,
            maxPixels=settings.max_pixels,
            fileFormat="GeoTIFF"
        )

    if destination == "cloud":
        return ee.batch.Export.image.toCloudStorage(
            image=image,
            description=description,
            bucket=settings.bucket,
            fileNamePrefix=f"{settings.output_folder}/{description}",
            region=roi,
            scale=settings.export_scale,
            maxPixels=settings.max_pixels,
            fileFormat="GeoTIFF"
        )

    if destination == "asset":
        return ee.batch.Export.image.toAsset(
            image=image,
            description=description,
            assetId=f"{settings.asset_root.rstrip('/')}/{description}",
            region=roi,
            scale=settings.export_scale,
            maxPixels=settings.max_pixels
        )

    raise ValueError(f"Unknown export destination: {destination}")


def describe_destination(settings, description: str) -> str:
    if settings.export_destination == "cloud":
        return f"gs://{settings.bucket}/{settings.output_folder}/{description}"
    if settings.export_destination == "asset":
        return f"{settings.asset_root.rstrip('/')}/{description}"
    return f"Google Drive/{settings.output_folder}/{description}"


def export_stack(
    stacked,
    roi: ee.Geometry,
    settings,
    start_task: bool = True
) -> ee.batch.Task:
    """
    Export one stacked index image.

    The task aborts on the platform if the export exceeds settings.max_pixels;
    failures are reported through the task status, nothing is retried here.

    Args:
        stacked: StackedRaster to export.
        roi: Export region (the area of interest).
        settings: StackConfig.
        start_task: If True, starts the export task immediately.

    Returns:
        ee.batch.Task: The export task object.
    """
    description = stack_file_name(
        stacked.index.value,
        settings.start_date,
        settings.end_date,
        settings.file_prefix
    )

    task = create_export_task(stacked.image, roi, description, settings)

    if start_task:
        task.start()
        print(f"✓ Started export task: {description}")
        print(f"  Destination: {describe_destination(settings, description)}")
        print(f"  Bands: {stacked.count}, Scale: {settings.export_scale}m, "
              f"Max pixels: {settings.max_pixels:.0e}")
    else:
        print(f"✓ Created export task: {description} (not started)")

    return task


def check_task_status(task: ee.batch.Task) -> dict:
    """
    Check status of an export task.

    Args:
        task: Export task to check.

    Returns:
        dict: Status information.
    """
    status = task.status()
    return {
        "id": status.get("id"),
        "state": status["state"],
        "description": status.get("description"),
        "error_message": status.get("error_message"),
    }


def wait_for_all_tasks(
    tasks: Dict[str, ee.batch.Task],
    timeout_minutes: int = 60,
    poll_interval: int = 30
) -> Dict[str, TaskOutcome]:
    """
    Wait for multiple export tasks to finish.

    Tasks still running at the timeout are reported with their last state.

    Args:
        tasks: Dictionary of task name to task object.
        timeout_minutes: Maximum total wait time.
        poll_interval: Seconds between status checks.

    Returns:
        dict: Task name to TaskOutcome.
    """
    print(f"\nMonitoring {len(tasks)} export tasks...")

    results = {}
    last_state = {name: "UNSUBMITTED" for name in tasks}
    start_time = time.time()
    timeout_seconds = timeout_minutes * 60

    pending = list(tasks.keys())

    while pending:
        for name in list(pending):
            status = check_task_status(tasks[name])
            state = status["state"]
            last_state[name] = state

            if state == "COMPLETED":
                print(f"  ✓ {name}: completed")
            elif state == "FAILED":
                print(f"  ✗ {name}: failed - {status['error_message'] or 'Unknown error'}")
            elif state == "CANCELLED":
                print(f"  ✗ {name}: cancelled")

            if state in FINISHED_STATES:
                results[name] = TaskOutcome(state, status["error_message"])
                pending.remove(name)

        if not pending:
            break

        elapsed = time.time() - start_time
        if elapsed > timeout_seconds:
            print(f"\n✗ Timeout after {timeout_minutes} minutes")
            for name in pending:
                results[name] = TaskOutcome(last_state[name], "Timed out waiting for task")
            break

        remaining = (timeout_seconds - elapsed) / 60
        print(f"  {len(pending)} tasks pending... ({remaining:.0f} min remaining)")
        time.sleep(poll_interval)

    completed = sum(1 for outcome in results.values() if outcome.succeeded)
    print(f"\n✓ Completed: {completed}/{len(tasks)} tasks")

    return results
