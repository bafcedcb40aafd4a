import argparse
import os
import sys

from prometheus_client import CollectorRegistry

from kubelet_exporter import k8s, utils
from kubelet_exporter.collectors import VolumeStatsCollector
from kubelet_exporter.fetcher import SummaryFetcher
from kubelet_exporter.server import serve

DEFAULT_PORT = 9859
DEFAULT_KUBELET_ADDRESS = "http://localhost:10255"


def parse_args(argv=None) -> argparse.Namespace:
    # Every flag falls back to an environment variable
    parser = argparse.ArgumentParser(
        prog="kubelet-volume-exporter",
        description="Export kubelet volume stats of persistent volume claims to Prometheus.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("METRICS_PORT", DEFAULT_PORT)),
        help="port to expose metrics on (env METRICS_PORT)",
    )
    parser.add_argument(
        "--kubelet-address",
        default=os.environ.get("KUBELET_ADDRESS", DEFAULT_KUBELET_ADDRESS),
        help="address of kubelet (env KUBELET_ADDRESS)",
    )
    parser.add_argument(
        "--in-cluster-auth",
        action=argparse.BooleanOptionalAction,
        default=utils.convert_str_to_bool(os.environ.get("KUBELET_IN_CLUSTER_AUTH", "")),
        help="authenticate to the kubelet with the pod service account token (env KUBELET_IN_CLUSTER_AUTH)",
    )
    parser.add_argument(
        "--insecure-skip-tls-verify",
        action=argparse.BooleanOptionalAction,
        default=utils.convert_str_to_bool(os.environ.get("KUBELET_INSECURE_SKIP_TLS_VERIFY", "")),
        help="do not verify the kubelet serving certificate (env KUBELET_INSECURE_SKIP_TLS_VERIFY)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    _logger = utils.createLogger("kubelet_exporter")

    try:
        args = parse_args(argv)
        summary_url = utils.build_summary_url(args.kubelet_address)
    except ValueError as e:
        _logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    headers = {}
    if args.in_cluster_auth:
        try:
            headers = k8s.load_incluster_auth_headers()
        except Exception as e:
            _logger.error(f"Failed to load service account credentials: {e}")
            sys.exit(1)

    _logger.info(f"Metrics port: {args.port}")
    _logger.info(f"Kubelet stats summary url: {summary_url}")
    if args.insecure_skip_tls_verify:
        _logger.warning("TLS verification of the kubelet certificate is disabled")

    fetcher = SummaryFetcher(
        summary_url,
        headers=headers,
        verify=not args.insecure_skip_tls_verify,
    )
    registry = CollectorRegistry()
    registry.register(VolumeStatsCollector(fetcher))

    try:
        serve(registry, args.port)
    except Exception as e:
        _logger.error(f"Caught exception in main: {e}")
        raise


if __name__ == "__main__":
    main()
