"""
Data model for the kubelet stats/summary payload.

Only the parts of the summary needed for volume stats are modelled. Field names
follow the kubelet stats API (v1alpha1), converted to snake_case; the JSON keys
are kept as aliases. Unknown keys are ignored.
"""
from __future__ import annotations
from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from kubelet_exporter.errors import MalformedSummaryError

UINT64_MAX = 2**64 - 1

# Strict: booleans, floats and numeric strings are rejected
Uint64 = Annotated[int, Field(ge=0, le=UINT64_MAX, strict=True)]

_MODEL_CONFIG = {"frozen": True, "populate_by_name": True}


def _null_as_empty_string(value: Any) -> Any:
    return "" if value is None else value


def _null_as_empty_tuple(value: Any) -> Any:
    return () if value is None else value


class FilesystemStats(BaseModel):
    model_config = _MODEL_CONFIG

    # None means the kubelet could not measure the value
    available_bytes: Optional[Uint64] = Field(None, alias="availableBytes")
    capacity_bytes: Optional[Uint64] = Field(None, alias="capacityBytes")
    used_bytes: Optional[Uint64] = Field(None, alias="usedBytes")
    inodes_free: Optional[Uint64] = Field(None, alias="inodesFree")
    inodes: Optional[Uint64] = None
    inodes_used: Optional[Uint64] = Field(None, alias="inodesUsed")


class ClaimReference(BaseModel):
    model_config = _MODEL_CONFIG

    name: str = ""
    namespace: str = ""

    empty_strings = field_validator("name", "namespace", mode="before")(_null_as_empty_string)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.namespace, self.name)


class VolumeRecord(FilesystemStats):
    name: str = ""
    pvc_ref: Optional[ClaimReference] = Field(None, alias="pvcRef")

    empty_strings = field_validator("name", mode="before")(_null_as_empty_string)


class PodReference(BaseModel):
    model_config = _MODEL_CONFIG

    name: str = ""
    namespace: str = ""
    uid: str = ""

    empty_strings = field_validator("name", "namespace", "uid", mode="before")(_null_as_empty_string)


class PodRecord(BaseModel):
    model_config = _MODEL_CONFIG

    pod_ref: PodReference = Field(default_factory=PodReference, alias="podRef")
    volumes: tuple[VolumeRecord, ...] = Field((), alias="volume")

    empty_volumes = field_validator("volumes", mode="before")(_null_as_empty_tuple)

    @field_validator("pod_ref", mode="before")
    @classmethod
    def null_pod_ref(cls, value: Any) -> Any:
        return PodReference() if value is None else value


class SummaryDocument(BaseModel):
    model_config = _MODEL_CONFIG

    pods: tuple[PodRecord, ...] = ()

    empty_pods = field_validator("pods", mode="before")(_null_as_empty_tuple)


_summary_adapter = TypeAdapter(Optional[SummaryDocument])


def parse_summary(raw: bytes) -> SummaryDocument:
    """
    Deserialize a kubelet stats/summary body.

    Raises MalformedSummaryError if the body is not JSON or does not match the
    expected shape. A JSON null body is an empty summary.
    """
    try:
        summary = _summary_adapter.validate_json(raw)
    except (ValidationError, RecursionError) as e:
        raise MalformedSummaryError(e) from e
    return summary if summary is not None else SummaryDocument()
