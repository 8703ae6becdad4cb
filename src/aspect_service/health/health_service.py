"""Aggregate health report for the service and its collaborators."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from io import BytesIO
from pathlib import Path
from typing import Any, Callable

import PIL
import psutil
from PIL import Image

from ..exceptions import AppError

logger = logging.getLogger(__name__)

SERVICE_NAME = "aspect-ratio-service"
SERVICE_VERSION = "1.0.0"
MEMORY_WARNING_MB = 900


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    WARNING = "warning"
    UNHEALTHY = "unhealthy"


@dataclass(slots=True)
class CheckResult:
    status: HealthStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message, **self.details}


def overall_status(checks: dict[str, CheckResult]) -> HealthStatus:
    """Unhealthy beats warning, warning beats healthy."""
    statuses = {check.status for check in checks.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.WARNING in statuses:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def _rss_megabytes() -> int:
    """Current resident set size of this process, not its peak."""
    return int(psutil.Process().memory_info().rss / (1024 * 1024))


@dataclass(slots=True)
class HealthService:
    """Run the sub-checks reported by ``GET /api/health``."""

    required_settings: dict[str, str]
    database_ping: Callable[[], None]
    media_root: Path
    environment: str = "development"
    memory_probe: Callable[[], int] = _rss_megabytes
    log: logging.Logger = field(default_factory=lambda: logger)

    def check_environment(self) -> CheckResult:
        missing = [name for name, value in self.required_settings.items() if not value]
        if missing:
            return CheckResult(
                HealthStatus.UNHEALTHY,
                f"Missing environment variables: {', '.join(missing)}",
                {"requiredVars": list(self.required_settings), "missingVars": missing},
            )
        return CheckResult(
            HealthStatus.HEALTHY,
            "All required environment variables are set",
            {"requiredVars": list(self.required_settings), "missingVars": []},
        )

    def check_database(self) -> CheckResult:
        try:
            self.database_ping()
        except AppError as exc:
            self.log.error("health.database.failed", extra={"error": exc.message})
            return CheckResult(HealthStatus.UNHEALTHY, f"Database connection failed: {exc.message}")
        return CheckResult(HealthStatus.HEALTHY, "Database connection successful")

    def check_storage(self) -> CheckResult:
        root = self.media_root
        if root.is_dir() and os.access(root, os.W_OK):
            return CheckResult(HealthStatus.HEALTHY, "Media root is writable", {"root": str(root)})
        return CheckResult(
            HealthStatus.WARNING,
            "Media root is missing or not writable",
            {"root": str(root)},
        )

    def check_imaging(self) -> CheckResult:
        try:
            buffer = BytesIO()
            Image.new("RGB", (100, 100), (0, 0, 0)).save(buffer, format="JPEG")
        except (OSError, ValueError) as exc:
            self.log.error("health.imaging.failed", extra={"error": str(exc)})
            return CheckResult(
                HealthStatus.UNHEALTHY,
                f"Image processing library error: {exc}",
                {"version": PIL.__version__},
            )
        return CheckResult(
            HealthStatus.HEALTHY,
            "Image processing library working correctly",
            {"version": PIL.__version__},
        )

    def check_memory(self) -> CheckResult:
        used = self.memory_probe()
        state = HealthStatus.HEALTHY if used < MEMORY_WARNING_MB else HealthStatus.WARNING
        return CheckResult(state, f"Memory usage: {used}MB", {"rssMb": used})

    def report(self) -> dict[str, Any]:
        checks = {
            "environment": self.check_environment(),
            "database": self.check_database(),
            "storage": self.check_storage(),
            "imaging": self.check_imaging(),
            "memory": self.check_memory(),
        }
        status = overall_status(checks)
        self.log.info("health.check.completed", extra={"status": status.value})
        return {
            "service": SERVICE_NAME,
            "status": status.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": SERVICE_VERSION,
            "environment": self.environment,
            "checks": {name: check.as_dict() for name, check in checks.items()},
        }
