"""Component identity for the Name Registry Service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_name_registry"
