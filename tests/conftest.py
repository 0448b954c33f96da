"""Shared fixtures: in-memory control plane clients and provider contexts."""

import copy
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
import pytest
from converge.lifecycle.client import ControlPlaneClient, DrainableClient
from converge.lifecycle.context import ProviderContext
from converge.resources.connector_profile import TYPE_NAME as PROFILE_TYPE
from converge.resources.directory_bucket import TYPE_NAME as BUCKET_TYPE
from converge.utils.errors import ConflictError, FatalRemoteError, NotFoundError

ACCOUNT_ID = "123456789012"
REGION = "us-west-2"
BUCKET_NAME = "example--usw2-az2--x-s3"


class FakeClientBase:
    """Records calls and lets tests inject failures, delays and hooks per operation."""

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self.failures: Dict[str, Exception] = {}
        self.hooks: Dict[str, Callable[[], None]] = {}
        self.delay = 0.0

    def fail_next(self, operation: str, error: Exception) -> None:
        self.failures[operation] = error

    def count(self, operation: str) -> int:
        return len([c for c in self.calls if c[0] == operation])

    def _enter(self, operation: str, identity: Any) -> None:
        self.calls.append((operation, identity))
        hook = self.hooks.get(operation)
        if hook is not None:
            hook()
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error
        if self.delay:
            time.sleep(self.delay)


class FakeDirectoryBucketClient(FakeClientBase, DrainableClient):
    """In-memory stand-in for the S3 Express control plane."""

    def __init__(self):
        super().__init__()
        self.buckets: Dict[str, Dict[str, Any]] = {}
        self.contents: Dict[str, List[str]] = {}

    def create(self, request: Dict[str, Any]) -> str:
        name = request["Bucket"]
        self._enter("create", name)
        if name in self.buckets:
            raise ConflictError(f"bucket {name} already exists", code="already_exists")
        self.buckets[name] = copy.deepcopy(request["CreateBucketConfiguration"])
        self.contents[name] = []
        return name

    def read(self, identity: str) -> Dict[str, Any]:
        self._enter("read", identity)
        if identity not in self.buckets:
            raise NotFoundError(f"bucket {identity} not found")
        configuration = self.buckets[identity]
        return {
            "BucketLocationName": configuration["Location"]["Name"],
            "BucketLocationType": configuration["Location"]["Type"],
            "DataRedundancy": configuration["Bucket"]["DataRedundancy"],
        }

    def update(self, identity: str, changes: Dict[str, Any]) -> None:
        self._enter("update", identity)
        raise FatalRemoteError("directory buckets cannot be updated")

    def delete(self, identity: str) -> None:
        self._enter("delete", identity)
        if identity not in self.buckets:
            raise NotFoundError(f"bucket {identity} not found")
        if self.contents.get(identity):
            raise ConflictError("The bucket you tried to delete is not empty", code=ConflictError.NOT_EMPTY)
        del self.buckets[identity]
        self.contents.pop(identity, None)

    def drain(self, identity: str) -> int:
        self._enter("drain", identity)
        removed = len(self.contents.get(identity, []))
        self.contents[identity] = []
        return removed


class FakeConnectorProfileClient(FakeClientBase, ControlPlaneClient):
    """In-memory stand-in for the AppFlow control plane.

    Like the real service it never returns credentials and reports
    Snowflake stages with a leading "@".
    """

    DEFAULT_KMS_ARN = f"arn:aws:kms:{REGION}:{ACCOUNT_ID}:key/aws-managed"

    def __init__(self):
        super().__init__()
        self.profiles: Dict[str, Dict[str, Any]] = {}

    def create(self, request: Dict[str, Any]) -> str:
        name = request["ConnectorProfileName"]
        self._enter("create", name)
        if name in self.profiles:
            raise ConflictError(f"connector profile {name} already exists", code="already_exists")
        self.profiles[name] = copy.deepcopy(request)
        return name

    def read(self, identity: str) -> Dict[str, Any]:
        self._enter("read", identity)
        if identity not in self.profiles:
            raise NotFoundError(f"connector profile {identity} not found")
        profile = self.profiles[identity]
        properties = copy.deepcopy(profile["ConnectorProfileConfig"].get("ConnectorProfileProperties") or {})
        snowflake = properties.get("Snowflake")
        if snowflake and not snowflake["Stage"].startswith("@"):
            snowflake["Stage"] = "@" + snowflake["Stage"]
        return {
            "ConnectorProfileArn": f"arn:aws:appflow:{REGION}:{ACCOUNT_ID}:connectorprofile/{identity}",
            "ConnectorProfileName": identity,
            "ConnectionMode": profile["ConnectionMode"],
            "ConnectorLabel": profile.get("ConnectorLabel"),
            "ConnectorType": profile["ConnectorType"],
            "CredentialsArn": f"arn:aws:secretsmanager:{REGION}:{ACCOUNT_ID}:secret:appflow!{identity}",
            "KmsArn": profile.get("KmsArn", self.DEFAULT_KMS_ARN),
            "ConnectorProfileProperties": properties,
        }

    def update(self, identity: str, changes: Dict[str, Any]) -> None:
        self._enter("update", identity)
        if identity not in self.profiles:
            raise NotFoundError(f"connector profile {identity} not found")
        profile = self.profiles[identity]
        profile["ConnectionMode"] = changes["ConnectionMode"]
        profile["ConnectorProfileConfig"] = copy.deepcopy(changes["ConnectorProfileConfig"])

    def delete(self, identity: str) -> None:
        self._enter("delete", identity)
        if identity not in self.profiles:
            raise NotFoundError(f"connector profile {identity} not found")
        del self.profiles[identity]


@pytest.fixture
def bucket_client():
    """Fake directory bucket control plane."""
    return FakeDirectoryBucketClient()


@pytest.fixture
def profile_client():
    """Fake connector profile control plane."""
    return FakeConnectorProfileClient()


@pytest.fixture
def context(bucket_client, profile_client):
    """Provider context wired to both fake clients."""
    return ProviderContext(
        clients={BUCKET_TYPE: bucket_client, PROFILE_TYPE: profile_client},
        timeout=5.0,
        region=REGION,
        account_id=ACCOUNT_ID
    )


@pytest.fixture
def bucket_config():
    """Minimal directory bucket configuration."""
    return {
        "bucket": BUCKET_NAME,
        "location": [{"name": "usw2-az2"}],
    }


@pytest.fixture
def slack_profile_config():
    """Slack connector profile configuration."""
    return {
        "name": "slack-events",
        "connection_mode": "Public",
        "connector_type": "Slack",
        "connector_profile_config": [
            {
                "connector_profile_credentials": {
                    "kind": "slack",
                    "client_id": "client-123",
                    "client_secret": "secret-456",
                    "access_token": "xoxb-token",
                },
                "connector_profile_properties": {
                    "kind": "slack",
                    "instance_url": "https://example.slack.com",
                },
            }
        ],
    }


def bucket_attributes(name: str = BUCKET_NAME, force_destroy: bool = False) -> Dict[str, Any]:
    """Recorded attributes of an existing directory bucket."""
    return {
        "arn": f"arn:aws:s3express:{REGION}:{ACCOUNT_ID}:bucket/{name}",
        "bucket": name,
        "data_redundancy": "SingleAvailabilityZone",
        "force_destroy": force_destroy,
        "id": name,
        "type": "Directory",
        "location": [{"name": "usw2-az2", "type": "AvailabilityZone"}],
    }


@pytest.fixture
def existing_bucket(bucket_client):
    """A bucket present remotely, returned with its recorded attributes."""
    def make(name: str = BUCKET_NAME, force_destroy: bool = False, contents: Optional[List[str]] = None):
        bucket_client.buckets[name] = {
            "Bucket": {"DataRedundancy": "SingleAvailabilityZone", "Type": "Directory"},
            "Location": {"Name": "usw2-az2", "Type": "AvailabilityZone"},
        }
        bucket_client.contents[name] = list(contents or [])
        return bucket_attributes(name, force_destroy)

    return make


@pytest.fixture
def recorded_bucket():
    """Factory for recorded bucket attributes (no remote object)."""
    return bucket_attributes
