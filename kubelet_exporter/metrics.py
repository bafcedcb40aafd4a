from __future__ import annotations
from dataclasses import dataclass

from prometheus_client.core import GaugeMetricFamily

LABEL_NAMES = ["namespace", "persistentvolumeclaim"]


@dataclass(frozen=True)
class VolumeMetric:
    name: str
    documentation: str
    # FilesystemStats attribute the value is read from
    field: str

    def family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation, labels=LABEL_NAMES)


volume_stats_capacity_bytes = VolumeMetric(
    name="kubelet_volume_stats_capacity_bytes",
    documentation="Capacity in bytes of the volume",
    field="capacity_bytes",
)
volume_stats_available_bytes = VolumeMetric(
    name="kubelet_volume_stats_available_bytes",
    documentation="Number of available bytes in the volume",
    field="available_bytes",
)
volume_stats_used_bytes = VolumeMetric(
    name="kubelet_volume_stats_used_bytes",
    documentation="Number of used bytes in the volume",
    field="used_bytes",
)
volume_stats_inodes = VolumeMetric(
    name="kubelet_volume_stats_inodes",
    documentation="Maximum number of inodes in the volume",
    field="inodes",
)
volume_stats_inodes_free = VolumeMetric(
    name="kubelet_volume_stats_inodes_free",
    documentation="Number of free inodes in the volume",
    field="inodes_free",
)
volume_stats_inodes_used = VolumeMetric(
    name="kubelet_volume_stats_inodes_used",
    documentation="Number of used inodes in the volume",
    field="inodes_used",
)

# Emission order for every claim
VOLUME_METRICS = (
    volume_stats_capacity_bytes,
    volume_stats_available_bytes,
    volume_stats_used_bytes,
    volume_stats_inodes,
    volume_stats_inodes_free,
    volume_stats_inodes_used,
)
