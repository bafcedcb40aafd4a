from __future__ import annotations


class KubeletExporterError(Exception):
    pass


class FetchError(KubeletExporterError):
    """The stats summary could not be fetched from the kubelet."""

    def __init__(self, url: str, cause: object):
        self.url = url
        self.cause = cause
        super().__init__(f"{url}: {cause}")


class FetchTimeoutError(FetchError):
    pass


class FetchTransportError(FetchError):
    pass


class FetchBodyReadError(FetchError):
    pass


class ParseError(KubeletExporterError):
    pass


class MalformedSummaryError(ParseError):
    def __init__(self, cause: object):
        self.cause = cause
        super().__init__(str(cause))


class VolumeStatsIntegrityError(KubeletExporterError):
    """A volume referencing a claim lacks one of the required filesystem stats."""

    def __init__(self, namespace: str, name: str, missing_fields: list[str]):
        self.namespace = namespace
        self.name = name
        self.missing_fields = missing_fields
        super().__init__(
            f"volume stats for pvc {namespace}/{name} are missing {', '.join(missing_fields)}"
        )
