"""AppFlow connector profile resource kind (aws_appflow_connector_profile)."""

import copy
from typing import Any, Dict, Optional
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from ..diff.models import ChangeSet
from ..diff.validation import as_block_items
from ..lifecycle.adapter import ResourceAdapter
from ..lifecycle.context import ProviderContext
from ..schema.models import AttributeSchema, AttributeType, BlockSchema, ResourceSchema
from ..schema.validators import all_of, length_between, one_of, regex_matches, valid_arn, variant_of
from ..schema.values import is_unknown
from ..utils.logging import get_logger
from .connector_variants import (
    CONNECTOR_TYPE_BY_KIND,
    CREDENTIALS_ADAPTER,
    PROPERTIES_ADAPTER,
    ConnectorCredentials,
    ConnectorProperties,
    kind_of,
    properties_from_api,
    variant_to_api,
)

logger = get_logger("resources.connector_profile")

TYPE_NAME = "aws_appflow_connector_profile"

CONNECTION_MODES = ("Public", "Private")

# Only connectors with a credentials and properties model can be configured
CONNECTOR_TYPES = tuple(sorted(set(CONNECTOR_TYPE_BY_KIND.values())))

CONFIG_BLOCK = "connector_profile_config"
CREDENTIALS = "connector_profile_credentials"
PROPERTIES = "connector_profile_properties"


def connector_kinds_agree(desired: Dict[str, Any]) -> Optional[str]:
    """Credential kind, property kind and connector_type must name the same connector."""
    items = as_block_items(desired.get(CONFIG_BLOCK))
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return None

    credentials_kind = kind_of(items[0].get(CREDENTIALS))
    properties_kind = kind_of(items[0].get(PROPERTIES))
    if credentials_kind and properties_kind and credentials_kind != properties_kind:
        return (
            f"{CREDENTIALS} kind '{credentials_kind}' does not match "
            f"{PROPERTIES} kind '{properties_kind}'"
        )

    kind = properties_kind or credentials_kind
    connector_type = desired.get("connector_type")
    if kind and isinstance(connector_type, str):
        expected = CONNECTOR_TYPE_BY_KIND.get(kind)
        if expected and expected != connector_type:
            return f"connector_type '{connector_type}' does not match connector kind '{kind}' (expected '{expected}')"
    return None


CONNECTOR_PROFILE_SCHEMA = ResourceSchema(
    type_name=TYPE_NAME,
    identity_attribute="name",
    attributes=[
        AttributeSchema(name="arn", type=AttributeType.STRING, computed=True),
        AttributeSchema(
            name="connection_mode",
            type=AttributeType.STRING,
            required=True,
            validators=[one_of(*CONNECTION_MODES)],
            description="Whether the connector profile is accessible publicly or through PrivateLink"
        ),
        AttributeSchema(
            name="connector_label",
            type=AttributeType.STRING,
            optional=True,
            replace_on_change=True,
            validators=[
                all_of(
                    regex_matches(
                        r"[0-9A-Za-z][\w!@#.-]+",
                        "must contain only alphanumeric, exclamation point (!), at sign (@), "
                        "number sign (#), period (.), and hyphen (-) characters"
                    ),
                    length_between(1, 256),
                )
            ]
        ),
        AttributeSchema(
            name="connector_type",
            type=AttributeType.STRING,
            required=True,
            replace_on_change=True,
            validators=[one_of(*CONNECTOR_TYPES)]
        ),
        AttributeSchema(name="credentials_arn", type=AttributeType.STRING, computed=True),
        AttributeSchema(
            name="kms_arn",
            type=AttributeType.STRING,
            optional=True,
            computed=True,
            replace_on_change=True,
            validators=[valid_arn()],
            description="KMS key used to encrypt the connector profile credentials"
        ),
        AttributeSchema(
            name="name",
            type=AttributeType.STRING,
            required=True,
            replace_on_change=True,
            validators=[
                all_of(
                    length_between(1, 256),
                    regex_matches(r"[\w/!@#+=.-]+", "must match [\\w/!@#+=.-]+"),
                )
            ]
        ),
    ],
    blocks=[
        BlockSchema(
            name=CONFIG_BLOCK,
            min_items=1,
            max_items=1,
            attributes=[
                AttributeSchema(
                    name=CREDENTIALS,
                    type=AttributeType.OBJECT,
                    required=True,
                    sensitive=True,
                    validators=[variant_of(ConnectorCredentials)],
                    description="Connector-specific credentials, tagged by kind"
                ),
                AttributeSchema(
                    name=PROPERTIES,
                    type=AttributeType.OBJECT,
                    required=True,
                    validators=[variant_of(ConnectorProperties)],
                    description="Connector-specific properties, tagged by kind"
                ),
            ]
        )
    ],
    config_validators=[connector_kinds_agree]
)


class ConnectorProfileAdapter(ResourceAdapter):
    """
    Adapter for AppFlow connector profiles.

    Credentials are write-only: no read returns them, so they are carried
    forward from the previous attributes. Connector properties read back in
    wire form are kept in their configured spelling when they are
    semantically equal.
    """

    schema = CONNECTOR_PROFILE_SCHEMA

    def expand_create(self, planned: Dict[str, Any], context: ProviderContext) -> Dict[str, Any]:
        request = {
            "ConnectionMode": planned["connection_mode"],
            "ConnectorProfileName": planned["name"],
            "ConnectorType": planned["connector_type"],
            "ConnectorProfileConfig": self._expand_config(planned),
        }
        if planned.get("connector_label"):
            request["ConnectorLabel"] = planned["connector_label"]
        kms_arn = planned.get("kms_arn")
        if kms_arn and not is_unknown(kms_arn):
            request["KmsArn"] = kms_arn
        return request

    def expand_update(self, change_set: ChangeSet, context: ProviderContext) -> Optional[Dict[str, Any]]:
        if not change_set.changed:
            return None
        planned = change_set.planned
        return {
            "ConnectionMode": planned["connection_mode"],
            "ConnectorProfileName": planned["name"],
            "ConnectorProfileConfig": self._expand_config(planned),
        }

    def flatten(
        self,
        identity: str,
        response: Dict[str, Any],
        prior: Dict[str, Any],
        context: ProviderContext
    ) -> Dict[str, Any]:
        prior_items = as_block_items(prior.get(CONFIG_BLOCK))
        prior_block = prior_items[0] if isinstance(prior_items, list) and prior_items else {}

        return {
            "arn": response.get("ConnectorProfileArn"),
            "connection_mode": response.get("ConnectionMode"),
            "connector_label": response.get("ConnectorLabel"),
            "connector_type": response.get("ConnectorType"),
            "credentials_arn": response.get("CredentialsArn"),
            "kms_arn": response.get("KmsArn") or prior.get("kms_arn"),
            "name": response.get("ConnectorProfileName") or identity,
            CONFIG_BLOCK: [
                {
                    CREDENTIALS: copy.deepcopy(prior_block.get(CREDENTIALS)),
                    PROPERTIES: self._flatten_properties(
                        response.get("ConnectorProfileProperties"),
                        prior_block.get(PROPERTIES)
                    ),
                }
            ],
        }

    def _expand_config(self, planned: Dict[str, Any]) -> Dict[str, Any]:
        block = planned[CONFIG_BLOCK][0]
        config: Dict[str, Any] = {}
        if block.get(CREDENTIALS) is not None:
            config["ConnectorProfileCredentials"] = variant_to_api(CREDENTIALS_ADAPTER, block[CREDENTIALS])
        if block.get(PROPERTIES) is not None:
            config["ConnectorProfileProperties"] = variant_to_api(PROPERTIES_ADAPTER, block[PROPERTIES])
        return config

    def _flatten_properties(self, payload: Optional[Dict[str, Any]], prior: Any) -> Optional[Dict[str, Any]]:
        current = properties_from_api(payload)
        if current is None:
            logger.warning("Connector profile read returned no recognised connector properties")
            return None
        if _parses_to(PROPERTIES_ADAPTER, prior, current):
            return copy.deepcopy(prior)
        return current.model_dump(exclude_none=True)


def _parses_to(adapter: TypeAdapter, value: Any, expected: Any) -> bool:
    if not isinstance(value, dict):
        return False
    try:
        return adapter.validate_python(value) == expected
    except PydanticValidationError:
        return False
