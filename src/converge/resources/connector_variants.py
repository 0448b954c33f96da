"""Pydantic models for connector-specific credentials and properties.

Each third-party integration is one variant of a tagged union keyed by
``kind``. Field names are snake_case in configuration and PascalCase on the
wire (``api_key`` <-> ``ApiKey``).
"""

import re
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Type, Union
from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_pascal
from ..schema.validators import ARN_PATTERN

NO_WHITESPACE = r"^\S+$"
HTTPS_URL = r"^https?://\S+$"
VPC_ENDPOINT = r"^$|com\.amazonaws\.vpce\.[\w/!:@#.\-]+"
WORD_KEY = re.compile(r"^\w+$")

_ALIAS_OVERRIDES = {
    "kind": "kind",
    "oauth_credentials": "OAuthCredentials",
    "oauth_properties": "OAuthProperties",
    "oauth_request": "OAuthRequest",
    "oauth_scopes": "OAuthScopes",
    "oauth2_grant_type": "OAuth2GrantType",
    "oauth2_properties": "OAuth2Properties",
    "use_privatelink_for_metadata_and_authorization": "UsePrivateLinkForMetadataAndAuthorization",
}


def api_alias(name: str) -> str:
    """Wire name for a configuration field."""
    return _ALIAS_OVERRIDES.get(name) or to_pascal(name)


def _word_keys(value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    # Map keys may hold only alphanumerics and underscores; values must not hold whitespace
    for key, item in (value or {}).items():
        if not WORD_KEY.match(key):
            raise ValueError(f"key '{key}' must contain only alphanumeric and underscore (_) characters")
        if not item or any(c.isspace() for c in item):
            raise ValueError(f"value for '{key}' must not be empty or contain whitespace")
    return value


class ApiModel(BaseModel):
    """Base for models that round-trip between configuration and API payloads."""

    class Config:
        alias_generator = api_alias
        populate_by_name = True
        extra = "forbid"
        loc_by_alias = False

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"kind"}, exclude_none=True)


class ConnectorVariant(ApiModel):
    """One connector's payload; ``api_key_name`` is the key used in API requests."""

    api_key_name: ClassVar[str] = ""
    connector_type: ClassVar[str] = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "ConnectorVariant":
        """Decode an API payload, ignoring fields this model does not declare."""
        known = {field.alias or name for name, field in cls.model_fields.items()}
        body = {key: value for key, value in (payload or {}).items() if key in known and value is not None}
        body["kind"] = cls.model_fields["kind"].default
        return cls.model_validate(body)


class OAuthRequest(ApiModel):
    auth_code: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    redirect_uri: Optional[str] = Field(default=None, min_length=1, max_length=512, pattern=NO_WHITESPACE)


# Credentials

class AmplitudeCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Amplitude"
    connector_type: ClassVar[str] = "Amplitude"
    kind: Literal["amplitude"] = "amplitude"
    api_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)
    secret_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)


class ApiKeyCredentials(ApiModel):
    api_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)
    api_secret_key: Optional[str] = Field(default=None, min_length=1, max_length=256, pattern=NO_WHITESPACE)


class BasicAuthCredentials(ApiModel):
    password: str = Field(..., max_length=512)
    username: str = Field(..., max_length=512)


class CustomAuthCredentials(ApiModel):
    credentials_map: Optional[Dict[str, str]] = None
    custom_authentication_type: str = Field(..., pattern=NO_WHITESPACE)

    @field_validator("credentials_map")
    @classmethod
    def _check_map_keys(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        return _word_keys(value)


class OAuth2Credentials(ApiModel):
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=4096, pattern=NO_WHITESPACE)
    client_id: Optional[str] = Field(default=None, min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: Optional[str] = Field(default=None, min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None
    refresh_token: Optional[str] = Field(default=None, min_length=1, max_length=4096, pattern=NO_WHITESPACE)


class CustomConnectorCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "CustomConnector"
    connector_type: ClassVar[str] = "CustomConnector"
    kind: Literal["custom_connector"] = "custom_connector"
    api_key: Optional[ApiKeyCredentials] = None
    authentication_type: Literal["OAUTH2", "APIKEY", "BASIC", "CUSTOM"]
    basic: Optional[BasicAuthCredentials] = None
    custom: Optional[CustomAuthCredentials] = None
    oauth2: Optional[OAuth2Credentials] = None


class DatadogCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Datadog"
    connector_type: ClassVar[str] = "Datadog"
    kind: Literal["datadog"] = "datadog"
    api_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)
    application_key: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class DynatraceCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Dynatrace"
    connector_type: ClassVar[str] = "Dynatrace"
    kind: Literal["dynatrace"] = "dynatrace"
    api_token: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)


class GoogleAnalyticsCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "GoogleAnalytics"
    connector_type: ClassVar[str] = "Googleanalytics"
    kind: Literal["google_analytics"] = "google_analytics"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None
    refresh_token: Optional[str] = Field(default=None, min_length=1, max_length=1024, pattern=NO_WHITESPACE)


class HoneycodeCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Honeycode"
    connector_type: ClassVar[str] = "Honeycode"
    kind: Literal["honeycode"] = "honeycode"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None
    refresh_token: Optional[str] = Field(default=None, min_length=1, max_length=1024, pattern=NO_WHITESPACE)


class InforNexusCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "InforNexus"
    connector_type: ClassVar[str] = "Infornexus"
    kind: Literal["infor_nexus"] = "infor_nexus"
    access_key_id: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)
    datakey: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    secret_access_key: str = Field(..., max_length=512)
    user_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class MarketoCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Marketo"
    connector_type: ClassVar[str] = "Marketo"
    kind: Literal["marketo"] = "marketo"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None


class RedshiftCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Redshift"
    connector_type: ClassVar[str] = "Redshift"
    kind: Literal["redshift"] = "redshift"
    password: str = Field(..., max_length=512)
    username: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class SalesforceCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Salesforce"
    connector_type: ClassVar[str] = "Salesforce"
    kind: Literal["salesforce"] = "salesforce"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_credentials_arn: Optional[str] = Field(default=None, pattern=ARN_PATTERN.pattern)
    jwt_token: Optional[str] = Field(default=None, min_length=1, max_length=8000)
    oauth2_grant_type: Optional[Literal["CLIENT_CREDENTIALS", "AUTHORIZATION_CODE", "JWT_BEARER"]] = None
    oauth_request: Optional[OAuthRequest] = None
    refresh_token: Optional[str] = Field(default=None, min_length=1, max_length=1024, pattern=NO_WHITESPACE)


class SAPODataOAuthCredentials(ApiModel):
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None
    refresh_token: Optional[str] = Field(default=None, min_length=1, max_length=1024, pattern=NO_WHITESPACE)


class SAPODataCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "SAPOData"
    connector_type: ClassVar[str] = "SAPOData"
    kind: Literal["sapo_data"] = "sapo_data"
    basic_auth_credentials: Optional[BasicAuthCredentials] = None
    oauth_credentials: Optional[SAPODataOAuthCredentials] = None


class ServiceNowCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "ServiceNow"
    connector_type: ClassVar[str] = "Servicenow"
    kind: Literal["service_now"] = "service_now"
    password: str = Field(..., max_length=512)
    username: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class SingularCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Singular"
    connector_type: ClassVar[str] = "Singular"
    kind: Literal["singular"] = "singular"
    api_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)


class SlackCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Slack"
    connector_type: ClassVar[str] = "Slack"
    kind: Literal["slack"] = "slack"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None


class SnowflakeCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Snowflake"
    connector_type: ClassVar[str] = "Snowflake"
    kind: Literal["snowflake"] = "snowflake"
    password: str = Field(..., max_length=512)
    username: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class TrendmicroCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Trendmicro"
    connector_type: ClassVar[str] = "Trendmicro"
    kind: Literal["trendmicro"] = "trendmicro"
    api_secret_key: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)


class VeevaCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Veeva"
    connector_type: ClassVar[str] = "Veeva"
    kind: Literal["veeva"] = "veeva"
    password: str = Field(..., max_length=512)
    username: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)


class ZendeskCredentials(ConnectorVariant):
    api_key_name: ClassVar[str] = "Zendesk"
    connector_type: ClassVar[str] = "Zendesk"
    kind: Literal["zendesk"] = "zendesk"
    access_token: Optional[str] = Field(default=None, min_length=1, max_length=2048, pattern=NO_WHITESPACE)
    client_id: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_secret: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    oauth_request: Optional[OAuthRequest] = None


# Properties

class AmplitudeProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Amplitude"
    connector_type: ClassVar[str] = "Amplitude"
    kind: Literal["amplitude"] = "amplitude"


class InstanceUrlProperties(ConnectorVariant):
    instance_url: str = Field(..., min_length=1, max_length=256, pattern=NO_WHITESPACE)


class OAuth2Properties(ApiModel):
    oauth2_grant_type: Literal["CLIENT_CREDENTIALS", "AUTHORIZATION_CODE", "JWT_BEARER"]
    token_url: str = Field(..., min_length=1, max_length=256, pattern=HTTPS_URL)
    token_url_custom_properties: Optional[Dict[str, str]] = None

    @field_validator("token_url_custom_properties")
    @classmethod
    def _check_map_keys(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        return _word_keys(value)


class CustomConnectorProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "CustomConnector"
    connector_type: ClassVar[str] = "CustomConnector"
    kind: Literal["custom_connector"] = "custom_connector"
    oauth2_properties: Optional[OAuth2Properties] = None
    profile_properties: Optional[Dict[str, str]] = None

    @field_validator("profile_properties")
    @classmethod
    def _check_map_keys(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        return _word_keys(value)


class DatadogProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Datadog"
    connector_type: ClassVar[str] = "Datadog"
    kind: Literal["datadog"] = "datadog"


class DynatraceProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Dynatrace"
    connector_type: ClassVar[str] = "Dynatrace"
    kind: Literal["dynatrace"] = "dynatrace"


class GoogleAnalyticsProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "GoogleAnalytics"
    connector_type: ClassVar[str] = "Googleanalytics"
    kind: Literal["google_analytics"] = "google_analytics"


class HoneycodeProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Honeycode"
    connector_type: ClassVar[str] = "Honeycode"
    kind: Literal["honeycode"] = "honeycode"


class InforNexusProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "InforNexus"
    connector_type: ClassVar[str] = "Infornexus"
    kind: Literal["infor_nexus"] = "infor_nexus"


class MarketoProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Marketo"
    connector_type: ClassVar[str] = "Marketo"
    kind: Literal["marketo"] = "marketo"


class RedshiftProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Redshift"
    connector_type: ClassVar[str] = "Redshift"
    kind: Literal["redshift"] = "redshift"
    bucket_name: str = Field(..., min_length=3, max_length=63, pattern=NO_WHITESPACE)
    bucket_prefix: Optional[str] = Field(default=None, max_length=512)
    cluster_identifier: Optional[str] = None
    data_api_role_arn: Optional[str] = Field(default=None, pattern=ARN_PATTERN.pattern)
    database_name: Optional[str] = None
    database_url: Optional[str] = Field(default=None, max_length=512)
    role_arn: str = Field(..., pattern=ARN_PATTERN.pattern)


class SalesforceProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Salesforce"
    connector_type: ClassVar[str] = "Salesforce"
    kind: Literal["salesforce"] = "salesforce"
    instance_url: Optional[str] = Field(default=None, min_length=1, max_length=256, pattern=NO_WHITESPACE)
    is_sandbox_environment: bool = False
    use_privatelink_for_metadata_and_authorization: bool = False


class SAPODataOAuthProperties(ApiModel):
    auth_code_url: str = Field(..., min_length=1, max_length=256, pattern=HTTPS_URL)
    oauth_scopes: List[str] = Field(..., min_length=1)
    token_url: str = Field(..., min_length=1, max_length=256, pattern=HTTPS_URL)


class SAPODataProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "SAPOData"
    connector_type: ClassVar[str] = "SAPOData"
    kind: Literal["sapo_data"] = "sapo_data"
    application_host_url: str = Field(..., min_length=1, max_length=256, pattern=HTTPS_URL)
    application_service_path: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    client_number: str = Field(..., pattern=r"^\d{3}$")
    logon_language: Optional[str] = Field(default=None, max_length=2, pattern=r"^[0-9A-Za-z_]*$")
    oauth_properties: Optional[SAPODataOAuthProperties] = None
    port_number: int = Field(..., ge=1, le=65535)
    private_link_service_name: Optional[str] = Field(default=None, max_length=512, pattern=VPC_ENDPOINT)


class ServiceNowProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "ServiceNow"
    connector_type: ClassVar[str] = "Servicenow"
    kind: Literal["service_now"] = "service_now"


class SingularProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Singular"
    connector_type: ClassVar[str] = "Singular"
    kind: Literal["singular"] = "singular"


class SlackProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Slack"
    connector_type: ClassVar[str] = "Slack"
    kind: Literal["slack"] = "slack"


class SnowflakeProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Snowflake"
    connector_type: ClassVar[str] = "Snowflake"
    kind: Literal["snowflake"] = "snowflake"
    account_name: Optional[str] = Field(default=None, min_length=1, max_length=512, pattern=NO_WHITESPACE)
    bucket_name: str = Field(..., min_length=3, max_length=63, pattern=NO_WHITESPACE)
    bucket_prefix: Optional[str] = Field(default=None, max_length=512)
    private_link_service_name: Optional[str] = Field(default=None, max_length=512, pattern=VPC_ENDPOINT)
    region: Optional[str] = Field(default=None, min_length=1, max_length=64, pattern=NO_WHITESPACE)
    stage: str = Field(..., min_length=1, max_length=512, pattern=NO_WHITESPACE)
    warehouse: str = Field(..., max_length=512, pattern=r"^[\s\w/!@#+=.-]*$")

    @field_validator("stage")
    @classmethod
    def _strip_stage_marker(cls, value: str) -> str:
        # The service reports stages as "@stage"; both spellings name the same stage
        return value[1:] if value.startswith("@") and len(value) > 1 else value


class TrendmicroProperties(ConnectorVariant):
    api_key_name: ClassVar[str] = "Trendmicro"
    connector_type: ClassVar[str] = "Trendmicro"
    kind: Literal["trendmicro"] = "trendmicro"


class VeevaProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Veeva"
    connector_type: ClassVar[str] = "Veeva"
    kind: Literal["veeva"] = "veeva"


class ZendeskProperties(InstanceUrlProperties):
    api_key_name: ClassVar[str] = "Zendesk"
    connector_type: ClassVar[str] = "Zendesk"
    kind: Literal["zendesk"] = "zendesk"


CREDENTIAL_VARIANTS: List[Type[ConnectorVariant]] = [
    AmplitudeCredentials,
    CustomConnectorCredentials,
    DatadogCredentials,
    DynatraceCredentials,
    GoogleAnalyticsCredentials,
    HoneycodeCredentials,
    InforNexusCredentials,
    MarketoCredentials,
    RedshiftCredentials,
    SalesforceCredentials,
    SAPODataCredentials,
    ServiceNowCredentials,
    SingularCredentials,
    SlackCredentials,
    SnowflakeCredentials,
    TrendmicroCredentials,
    VeevaCredentials,
    ZendeskCredentials,
]

PROPERTY_VARIANTS: List[Type[ConnectorVariant]] = [
    AmplitudeProperties,
    CustomConnectorProperties,
    DatadogProperties,
    DynatraceProperties,
    GoogleAnalyticsProperties,
    HoneycodeProperties,
    InforNexusProperties,
    MarketoProperties,
    RedshiftProperties,
    SalesforceProperties,
    SAPODataProperties,
    ServiceNowProperties,
    SingularProperties,
    SlackProperties,
    SnowflakeProperties,
    TrendmicroProperties,
    VeevaProperties,
    ZendeskProperties,
]

ConnectorCredentials = Annotated[
    Union[tuple(CREDENTIAL_VARIANTS)],
    Field(discriminator="kind"),
]

ConnectorProperties = Annotated[
    Union[tuple(PROPERTY_VARIANTS)],
    Field(discriminator="kind"),
]

CREDENTIALS_ADAPTER = TypeAdapter(ConnectorCredentials)
PROPERTIES_ADAPTER = TypeAdapter(ConnectorProperties)

CONNECTOR_KINDS = [variant.model_fields["kind"].default for variant in PROPERTY_VARIANTS]
CONNECTOR_TYPE_BY_KIND = {
    variant.model_fields["kind"].default: variant.connector_type for variant in PROPERTY_VARIANTS
}
PROPERTY_VARIANT_BY_API_KEY = {variant.api_key_name: variant for variant in PROPERTY_VARIANTS}


def kind_of(value: Any) -> Optional[str]:
    """Variant kind of a configured value, if any."""
    if isinstance(value, dict):
        kind = value.get("kind")
        return kind if isinstance(kind, str) else None
    return None


def variant_to_api(adapter: TypeAdapter, value: Dict[str, Any]) -> Dict[str, Any]:
    """Expand a configured variant into ``{ApiKeyName: {...}}``."""
    model = adapter.validate_python(value)
    return {model.api_key_name: model.to_api()}


def properties_from_api(payload: Dict[str, Any]) -> Optional[ConnectorVariant]:
    """Decode ``{ApiKeyName: {...}}`` connector properties from a read response."""
    for key, body in (payload or {}).items():
        variant = PROPERTY_VARIANT_BY_API_KEY.get(key)
        if variant is not None and body is not None:
            return variant.from_api(body)
    return None
