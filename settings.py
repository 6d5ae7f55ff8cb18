"""
Run configuration module.
Bundles the config.py defaults into one immutable, validated object that is
handed to the pipeline entry point.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple

import config
from indices import UnknownIndexError, VegetationIndex, parse_index


EXPORT_DESTINATIONS = ("drive", "cloud", "asset")

DATE_FORMAT = "%Y-%m-%d"


class ConfigError(ValueError):
    """Raised when a StackConfig fails validation. All problems are in errors."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


def _parse_date(value, label: str, errors: List[str]) -> Optional[datetime]:
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except (TypeError, ValueError):
        errors.append(f"{label} must be a date in YYYY-MM-DD format, got {value!r}")
        return None


@dataclass(frozen=True)
class StackConfig:
    """
    Parameters of one stacking run.

    indices may be given as names; they are resolved to VegetationIndex
    members on construction and unknown names fail validation.
    """

    latitude: float = config.LATITUDE
    longitude: float = config.LONGITUDE
    buffer_m: float = config.BUFFER_RADIUS_M
    start_date: str = config.START_DATE
    end_date: str = config.END_DATE
    indices: Tuple[VegetationIndex, ...] = field(
        default_factory=lambda: tuple(config.VI_LIST)
    )
    max_scene_cloud_percent: float = config.MAX_SCENE_CLOUD_PERCENT
    keep_classes: Tuple[int, ...] = config.SCL_KEEP_CLASSES
    export_destination: str = config.EXPORT_DESTINATION
    output_folder: str = config.OUTPUT_FOLDER
    bucket: Optional[str] = config.GCS_BUCKET
    asset_root: Optional[str] = config.ASSET_ROOT
    file_prefix: str = config.FILE_PREFIX
    export_scale: float = config.EXPORT_SCALE
    max_pixels: float = config.MAX_PIXELS

    def __post_init__(self):
        errors = []

        names = self.indices
        if isinstance(names, str):
            names = [names]

        resolved = []
        for name in names:
            try:
                index = parse_index(name)
            except UnknownIndexError as e:
                errors.append(str(e))
                continue
            if index not in resolved:
                resolved.append(index)
        object.__setattr__(self, "indices", tuple(resolved))
        object.__setattr__(self, "keep_classes", tuple(self.keep_classes))

        if not names:
            errors.append("At least one index must be requested")

        errors.extend(self._check_location())
        errors.extend(self._check_dates())
        errors.extend(self._check_export())

        if not self.keep_classes:
            errors.append("keep_classes must contain at least one SCL class")
        unknown_classes = [c for c in self.keep_classes if c not in config.SCL_CLASSES]
        if unknown_classes:
            errors.append(f"Unknown SCL classes: {unknown_classes}")

        if not 0 <= self.max_scene_cloud_percent <= 100:
            errors.append("max_scene_cloud_percent must be between 0 and 100")

        if errors:
            raise ConfigError(errors)

    def _check_location(self) -> List[str]:
        errors = []
        if not -90 <= self.latitude <= 90:
            errors.append(f"latitude must be between -90 and 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            errors.append(f"longitude must be between -180 and 180, got {self.longitude}")
        if not math.isfinite(self.buffer_m) or self.buffer_m <= 0:
            errors.append(f"buffer_m must be a positive finite number, got {self.buffer_m}")
        return errors

    def _check_dates(self) -> List[str]:
        errors = []
        start = _parse_date(self.start_date, "start_date", errors)
        end = _parse_date(self.end_date, "end_date", errors)
        if start and end and start >= end:
            errors.append(
                f"start_date ({self.start_date}) must be before end_date ({self.end_date})"
            )
        return errors

    def _check_export(self) -> List[str]:
        errors = []
        if self.export_destination not in EXPORT_DESTINATIONS:
            errors.append(
                f"export_destination must be one of {', '.join(EXPORT_DESTINATIONS)}, "
                f"got {self.export_destination!r}"
            )
        elif self.export_destination == "cloud" and not self.bucket:
            errors.append("bucket is required when exporting to Cloud Storage")
        elif self.export_destination == "asset" and not self.asset_root:
            errors.append("asset_root is required when exporting as assets")

        if not self.output_folder:
            errors.append("output_folder must not be empty")
        if not math.isfinite(self.export_scale) or self.export_scale <= 0:
            errors.append(f"export_scale must be a positive finite number, got {self.export_scale}")
        if not math.isfinite(self.max_pixels) or self.max_pixels <= 0:
            errors.append(f"max_pixels must be a positive finite number, got {self.max_pixels}")
        return errors

    def with_overrides(self, **overrides) -> "StackConfig":
        """Return a validated copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "coordinates": {"lat": self.latitude, "lon": self.longitude},
            "buffer_m": self.buffer_m,
            "date_range": {"start": self.start_date, "end": self.end_date},
            "indices": [index.value for index in self.indices],
            "max_scene_cloud_percent": self.max_scene_cloud_percent,
            "destination": self.export_destination,
            "folder": self.output_folder,
            "scale": self.export_scale,
            "max_pixels": self.max_pixels,
        }
