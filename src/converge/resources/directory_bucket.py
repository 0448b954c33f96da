"""S3 directory bucket resource kind (aws_s3_directory_bucket)."""

import copy
from typing import Any, Dict, Optional
from ..diff.models import ChangeSet
from ..lifecycle.adapter import ResourceAdapter
from ..lifecycle.context import ProviderContext
from ..schema.models import AttributeSchema, AttributeType, BlockSchema, ResourceSchema
from ..schema.modifiers import DefaultFromSibling
from ..schema.validators import one_of, regex_matches
from ..utils.logging import get_logger

logger = get_logger("resources.directory_bucket")

TYPE_NAME = "aws_s3_directory_bucket"

# e.g. example--usw2-az2--x-s3
DIRECTORY_BUCKET_NAME_PATTERN = r"^(?:[0-9a-z.-]+)--(?:[0-9a-za-z]+(?:-[0-9a-za-z]+)+)--x-s3$"

BUCKET_TYPE_DIRECTORY = "Directory"
LOCATION_TYPE_AVAILABILITY_ZONE = "AvailabilityZone"
LOCATION_TYPE_LOCAL_ZONE = "LocalZone"
DATA_REDUNDANCY_SINGLE_AVAILABILITY_ZONE = "SingleAvailabilityZone"
DATA_REDUNDANCY_SINGLE_LOCAL_ZONE = "SingleLocalZone"


def default_data_redundancy(location_type: Optional[str]) -> str:
    """Data redundancy implied by the bucket's location type."""
    if location_type == LOCATION_TYPE_LOCAL_ZONE:
        return DATA_REDUNDANCY_SINGLE_LOCAL_ZONE
    return DATA_REDUNDANCY_SINGLE_AVAILABILITY_ZONE


DIRECTORY_BUCKET_SCHEMA = ResourceSchema(
    type_name=TYPE_NAME,
    identity_attribute="id",
    force_destroy_attribute="force_destroy",
    attributes=[
        AttributeSchema(name="arn", type=AttributeType.STRING, computed=True),
        AttributeSchema(
            name="bucket",
            type=AttributeType.STRING,
            required=True,
            replace_on_change=True,
            validators=[
                regex_matches(
                    DIRECTORY_BUCKET_NAME_PATTERN,
                    "must be in the format [bucket_name]--[azid]--x-s3. "
                    "Use the aws_s3_bucket resource to manage general purpose buckets"
                )
            ],
            description="Bucket name"
        ),
        AttributeSchema(
            name="data_redundancy",
            type=AttributeType.STRING,
            optional=True,
            computed=True,
            replace_on_change=True,
            validators=[one_of(DATA_REDUNDANCY_SINGLE_AVAILABILITY_ZONE, DATA_REDUNDANCY_SINGLE_LOCAL_ZONE)],
            plan_modifier=DefaultFromSibling(
                "location[0].type",
                default_data_redundancy,
                description="Sets default value for data_redundancy based on location type value"
            ),
            description="Data redundancy"
        ),
        AttributeSchema(
            name="force_destroy",
            type=AttributeType.BOOL,
            optional=True,
            computed=True,
            default=False,
            description="Delete all objects when the bucket is destroyed"
        ),
        AttributeSchema(name="id", type=AttributeType.STRING, computed=True),
        AttributeSchema(
            name="type",
            type=AttributeType.STRING,
            optional=True,
            computed=True,
            default=BUCKET_TYPE_DIRECTORY,
            replace_on_change=True,
            validators=[one_of(BUCKET_TYPE_DIRECTORY)],
            description="Bucket type"
        ),
    ],
    blocks=[
        BlockSchema(
            name="location",
            min_items=1,
            max_items=1,
            attributes=[
                AttributeSchema(name="name", type=AttributeType.STRING, required=True, replace_on_change=True),
                AttributeSchema(
                    name="type",
                    type=AttributeType.STRING,
                    optional=True,
                    computed=True,
                    default=LOCATION_TYPE_AVAILABILITY_ZONE,
                    replace_on_change=True,
                    validators=[one_of(LOCATION_TYPE_AVAILABILITY_ZONE, LOCATION_TYPE_LOCAL_ZONE)]
                ),
            ],
            description="Bucket location"
        )
    ]
)


class DirectoryBucketAdapter(ResourceAdapter):
    """
    Adapter for S3 directory buckets.

    Create returns nothing beyond success, so server-assigned values (arn, id)
    are filled locally and no read-back is issued. Reads report only the
    location; everything else is derived.
    """

    schema = DIRECTORY_BUCKET_SCHEMA
    read_after_write = False

    def arn(self, bucket: str, context: ProviderContext) -> str:
        return context.arn("s3express", f"bucket/{bucket}")

    def expand_create(self, planned: Dict[str, Any], context: ProviderContext) -> Dict[str, Any]:
        location = planned["location"][0]
        return {
            "Bucket": planned["bucket"],
            "CreateBucketConfiguration": {
                "Bucket": {
                    "DataRedundancy": planned.get("data_redundancy"),
                    "Type": planned.get("type") or BUCKET_TYPE_DIRECTORY,
                },
                "Location": {
                    "Name": location["name"],
                    "Type": location.get("type") or LOCATION_TYPE_AVAILABILITY_ZONE,
                },
            },
        }

    def expand_update(self, change_set: ChangeSet, context: ProviderContext) -> Optional[Dict[str, Any]]:
        # Everything except force_destroy forces replacement
        return None

    def post_create(self, planned: Dict[str, Any], identity: str, context: ProviderContext) -> Dict[str, Any]:
        attributes = copy.deepcopy(planned)
        attributes["arn"] = self.arn(planned["bucket"], context)
        attributes["id"] = identity
        return attributes

    def flatten(
        self,
        identity: str,
        response: Dict[str, Any],
        prior: Dict[str, Any],
        context: ProviderContext
    ) -> Dict[str, Any]:
        location_type = response.get("BucketLocationType")
        force_destroy = prior.get("force_destroy")
        return {
            "arn": self.arn(identity, context),
            "bucket": identity,
            "data_redundancy": default_data_redundancy(location_type),
            "force_destroy": False if force_destroy is None else force_destroy,
            "id": identity,
            "type": BUCKET_TYPE_DIRECTORY,
            "location": [
                {
                    "name": response.get("BucketLocationName"),
                    "type": location_type,
                }
            ],
        }
