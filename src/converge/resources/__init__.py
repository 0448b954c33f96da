"""Built-in resource kinds."""

from ..lifecycle.registry import register_adapter
from .connector_profile import CONNECTOR_PROFILE_SCHEMA, ConnectorProfileAdapter
from .directory_bucket import DIRECTORY_BUCKET_SCHEMA, DirectoryBucketAdapter

register_adapter(DirectoryBucketAdapter())
register_adapter(ConnectorProfileAdapter())

__all__ = [
    "CONNECTOR_PROFILE_SCHEMA",
    "ConnectorProfileAdapter",
    "DIRECTORY_BUCKET_SCHEMA",
    "DirectoryBucketAdapter",
]
