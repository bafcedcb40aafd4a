from __future__ import annotations
import logging
from typing import Iterator

from prometheus_client.core import GaugeMetricFamily

from kubelet_exporter.errors import FetchError, ParseError
from kubelet_exporter.fetcher import SummaryFetcher
from kubelet_exporter.metrics import VOLUME_METRICS
from kubelet_exporter import translator

_logger = logging.getLogger(__name__)


class VolumeStatsCollector:
    """
    Custom prometheus_client collector exporting kubelet volume stats of
    persistent volume claims. Every collect() fetches a fresh summary.
    """

    fetcher: SummaryFetcher

    def __init__(self, fetcher: SummaryFetcher):
        self.fetcher = fetcher

    def describe(self) -> list[GaugeMetricFamily]:
        return [metric.family() for metric in VOLUME_METRICS]

    def collect(self) -> Iterator[GaugeMetricFamily]:
        url = self.fetcher.url
        try:
            raw = self.fetcher.fetch()
        except FetchError as e:
            _logger.error(f"failed to get stats from {url}: {e.cause}")
            return

        try:
            records = translator.translate(raw)
        except ParseError as e:
            _logger.error(f"failed to parse stats summary from {url}: {e}")
            return

        families = {metric.name: metric.family() for metric in VOLUME_METRICS}
        for record in records:
            families[record.metric.name].add_metric(record.label_values, record.value)
        _logger.debug(f"Collected {len(records)} volume stats samples from {url}")
        yield from families.values()
