from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterator

from kubelet_exporter.errors import VolumeStatsIntegrityError
from kubelet_exporter.metrics import VOLUME_METRICS, VolumeMetric
from kubelet_exporter.summary import SummaryDocument, VolumeRecord, parse_summary

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaugeRecord:
    metric: VolumeMetric
    namespace: str
    persistentvolumeclaim: str
    value: float

    @property
    def label_values(self) -> list[str]:
        return [self.namespace, self.persistentvolumeclaim]


def claim_records(volume: VolumeRecord) -> list[GaugeRecord]:
    """
    Build the six gauge records of the claim referenced by the volume.
    Raises VolumeStatsIntegrityError if any of the values is absent.
    """
    pvc_ref = volume.pvc_ref
    missing = [m.field for m in VOLUME_METRICS if getattr(volume, m.field) is None]
    if missing:
        raise VolumeStatsIntegrityError(pvc_ref.namespace, pvc_ref.name, missing)

    return [
        GaugeRecord(
            metric=metric,
            namespace=pvc_ref.namespace,
            persistentvolumeclaim=pvc_ref.name,
            value=float(getattr(volume, metric.field)),
        )
        for metric in VOLUME_METRICS
    ]


def iter_gauge_records(summary: SummaryDocument) -> Iterator[GaugeRecord]:
    seen: set[tuple[str, str]] = set()
    for pod in summary.pods:
        for volume in pod.volumes:
            if volume.pvc_ref is None:
                # ignore if no PVC reference
                continue
            identity = volume.pvc_ref.identity
            if identity in seen:
                # first volume referencing the claim wins
                continue
            seen.add(identity)
            try:
                records = claim_records(volume)
            except VolumeStatsIntegrityError as e:
                _logger.error(f"Skipping pvc in pod {pod.pod_ref.namespace}/{pod.pod_ref.name}: {e}")
                continue
            yield from records


def translate(raw: bytes) -> list[GaugeRecord]:
    """
    Turn a raw stats/summary body into gauge records, one set of six per
    unique persistent volume claim.

    Parsing happens before anything is yielded, so a malformed body raises
    ParseError without producing any record.
    """
    summary = parse_summary(raw)
    return list(iter_gauge_records(summary))
