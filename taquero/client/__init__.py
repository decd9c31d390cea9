"""Client cache stores mirroring the module sheets."""

from taquero.client.proving_store import ProvingStore
from taquero.client.staff_training_store import StaffTrainingStore
from taquero.client.storage import (
    BucketStorage,
    FileBucketStorage,
    MemoryBucketStorage,
    RedisBucketStorage,
    get_bucket_storage,
)
from taquero.client.store import RecordStore, StaffSicknessStore
from taquero.client.transport import (
    HttpxSheetTransport,
    SheetTransport,
    SheetTransportError,
    WriteResult,
    WriteStatus,
)

__all__ = [
    "BucketStorage",
    "FileBucketStorage",
    "HttpxSheetTransport",
    "MemoryBucketStorage",
    "ProvingStore",
    "RecordStore",
    "RedisBucketStorage",
    "SheetTransport",
    "SheetTransportError",
    "StaffSicknessStore",
    "StaffTrainingStore",
    "WriteResult",
    "WriteStatus",
    "get_bucket_storage",
]
