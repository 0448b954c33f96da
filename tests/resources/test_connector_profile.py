"""Tests for the AppFlow connector profile resource kind."""

import pytest
from pydantic import ValidationError as PydanticValidationError
from converge.diff.engine import compute_change_set
from converge.diff.validation import validate_config
from converge.resources.connector_profile import CONNECTOR_PROFILE_SCHEMA, ConnectorProfileAdapter
from converge.resources.connector_variants import (
    CREDENTIALS_ADAPTER,
    PROPERTIES_ADAPTER,
    SnowflakeProperties,
    properties_from_api,
    variant_to_api,
)
from converge.state.models import ResourceState


@pytest.fixture
def adapter():
    return ConnectorProfileAdapter()


@pytest.fixture
def snowflake_profile_config():
    """Snowflake connector profile configuration."""
    return {
        "name": "warehouse",
        "connection_mode": "Public",
        "connector_type": "Snowflake",
        "connector_profile_config": [
            {
                "connector_profile_credentials": {
                    "kind": "snowflake",
                    "username": "loader",
                    "password": "hunter2",
                },
                "connector_profile_properties": {
                    "kind": "snowflake",
                    "bucket_name": "staging-bucket",
                    "stage": "@LOAD_STAGE",
                    "warehouse": "COMPUTE_WH",
                    "account_name": "acme",
                },
            }
        ],
    }


@pytest.fixture
def marketo_profile_config():
    """Marketo connector profile configuration."""
    return {
        "name": "marketing",
        "connection_mode": "Public",
        "connector_type": "Marketo",
        "connector_profile_config": [
            {
                "connector_profile_credentials": {
                    "kind": "marketo",
                    "client_id": "marketo-client",
                    "client_secret": "marketo-secret",
                },
                "connector_profile_properties": {
                    "kind": "marketo",
                    "instance_url": "https://123-abc-456.mktorest.com",
                },
            }
        ],
    }


@pytest.fixture
def sapo_data_profile_config():
    """SAP OData connector profile configuration."""
    return {
        "name": "erp",
        "connection_mode": "Public",
        "connector_type": "SAPOData",
        "connector_profile_config": [
            {
                "connector_profile_credentials": {
                    "kind": "sapo_data",
                    "basic_auth_credentials": {"username": "sap", "password": "sap-pass"},
                },
                "connector_profile_properties": {
                    "kind": "sapo_data",
                    "application_host_url": "https://sap.example.com",
                    "application_service_path": "/sap/opu/odata",
                    "client_number": "100",
                    "port_number": 443,
                },
            }
        ],
    }


class TestValidation:
    """Test connector profile validation."""

    def test_valid(self, slack_profile_config):
        """Test that a complete Slack profile validates."""
        assert validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA) == []

    def test_kind_mismatch(self, slack_profile_config):
        """Test that credentials and properties must name the same connector."""
        slack_profile_config["connector_profile_config"][0]["connector_profile_properties"] = {
            "kind": "zendesk",
            "instance_url": "https://example.zendesk.com",
        }
        diagnostics = validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert len(diagnostics) == 1
        assert "does not match" in diagnostics[0].summary

    def test_connector_type_mismatch(self, slack_profile_config):
        """Test that connector_type must match the variant kind."""
        slack_profile_config["connector_type"] = "Zendesk"
        diagnostics = validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert "expected 'Slack'" in diagnostics[0].summary

    def test_invalid_variant_field(self, slack_profile_config):
        """Test that variant fields are validated."""
        credentials = slack_profile_config["connector_profile_config"][0]["connector_profile_credentials"]
        del credentials["client_id"]
        diagnostics = validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert diagnostics[0].path == "connector_profile_config[0].connector_profile_credentials"
        assert "client_id" in diagnostics[0].summary
        assert "ClientId" not in diagnostics[0].summary

    def test_unknown_kind(self, slack_profile_config):
        """Test that an unsupported connector kind is rejected."""
        slack_profile_config["connector_profile_config"][0]["connector_profile_properties"] = {"kind": "pardot"}
        assert validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA) != []

    def test_unsupported_connector_type(self, slack_profile_config):
        """Test that a connector type with no configurable variant is rejected."""
        slack_profile_config["connector_type"] = "S3"
        diagnostics = validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert "connector_type" in [d.path for d in diagnostics]

    def test_marketo_profile(self, marketo_profile_config):
        """Test that a Marketo profile validates."""
        assert validate_config(marketo_profile_config, CONNECTOR_PROFILE_SCHEMA) == []

    def test_sapo_data_client_number(self, sapo_data_profile_config):
        """Test that the SAP client number must be three digits."""
        assert validate_config(sapo_data_profile_config, CONNECTOR_PROFILE_SCHEMA) == []
        properties = sapo_data_profile_config["connector_profile_config"][0]["connector_profile_properties"]
        properties["client_number"] = "01"
        diagnostics = validate_config(sapo_data_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert diagnostics[0].path == "connector_profile_config[0].connector_profile_properties"
        assert "client_number" in diagnostics[0].summary

    def test_connection_mode(self, slack_profile_config):
        """Test the connection mode enumeration."""
        slack_profile_config["connection_mode"] = "Internal"
        diagnostics = validate_config(slack_profile_config, CONNECTOR_PROFILE_SCHEMA)
        assert diagnostics[0].path == "connection_mode"

    def test_credentials_are_sensitive(self, slack_profile_config):
        """Test that credential changes are masked in change sets."""
        change_set = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA)
        change = change_set.changes["connector_profile_config[0].connector_profile_credentials"]
        assert change.sensitive


class TestVariants:
    """Test connector variant wire translation."""

    def test_credentials_to_api(self, slack_profile_config):
        """Test snake_case config to PascalCase request."""
        credentials = slack_profile_config["connector_profile_config"][0]["connector_profile_credentials"]
        assert variant_to_api(CREDENTIALS_ADAPTER, credentials) == {
            "Slack": {"AccessToken": "xoxb-token", "ClientId": "client-123", "ClientSecret": "secret-456"}
        }

    def test_salesforce_aliases(self):
        """Test irregular wire names."""
        payload = variant_to_api(CREDENTIALS_ADAPTER, {
            "kind": "salesforce",
            "oauth2_grant_type": "JWT_BEARER",
            "jwt_token": "token",
            "oauth_request": {"auth_code": "code", "redirect_uri": "https://example.com/cb"},
        })
        body = payload["Salesforce"]
        assert body["OAuth2GrantType"] == "JWT_BEARER"
        assert body["OAuthRequest"] == {"AuthCode": "code", "RedirectUri": "https://example.com/cb"}

        properties = variant_to_api(PROPERTIES_ADAPTER, {
            "kind": "salesforce",
            "use_privatelink_for_metadata_and_authorization": True,
        })
        assert properties["Salesforce"]["UsePrivateLinkForMetadataAndAuthorization"] is True
        assert properties["Salesforce"]["IsSandboxEnvironment"] is False

    def test_properties_from_api(self):
        """Test decoding properties and ignoring undeclared wire fields."""
        model = properties_from_api({"Zendesk": {"InstanceUrl": "https://x.zendesk.com", "Extra": 1}})
        assert model.kind == "zendesk"
        assert model.instance_url == "https://x.zendesk.com"
        assert properties_from_api({"Unsupported": {}}) is None

    def test_snowflake_stage_marker(self):
        """Test that "@stage" and "stage" name the same stage."""
        assert SnowflakeProperties(bucket_name="bkt", stage="@S", warehouse="W") == SnowflakeProperties(
            bucket_name="bkt", stage="S", warehouse="W"
        )

    def test_marketo_to_api(self, marketo_profile_config):
        """Test Marketo credentials and properties in wire form."""
        block = marketo_profile_config["connector_profile_config"][0]
        assert variant_to_api(CREDENTIALS_ADAPTER, block["connector_profile_credentials"]) == {
            "Marketo": {"ClientId": "marketo-client", "ClientSecret": "marketo-secret"}
        }
        assert variant_to_api(PROPERTIES_ADAPTER, block["connector_profile_properties"]) == {
            "Marketo": {"InstanceUrl": "https://123-abc-456.mktorest.com"}
        }

    def test_custom_connector_aliases(self):
        """Test nested wire names of custom connector payloads."""
        credentials = variant_to_api(CREDENTIALS_ADAPTER, {
            "kind": "custom_connector",
            "authentication_type": "OAUTH2",
            "oauth2": {"client_id": "id", "client_secret": "secret"},
        })
        assert credentials == {
            "CustomConnector": {"AuthenticationType": "OAUTH2", "Oauth2": {"ClientId": "id", "ClientSecret": "secret"}}
        }

        properties = variant_to_api(PROPERTIES_ADAPTER, {
            "kind": "custom_connector",
            "oauth2_properties": {"oauth2_grant_type": "CLIENT_CREDENTIALS", "token_url": "https://auth.example.com/token"},
            "profile_properties": {"tenant_id": "acme"},
        })
        body = properties["CustomConnector"]
        assert body["OAuth2Properties"]["OAuth2GrantType"] == "CLIENT_CREDENTIALS"
        assert body["ProfileProperties"] == {"tenant_id": "acme"}

    def test_custom_connector_map_keys(self):
        """Test that custom property keys are restricted to word characters."""
        with pytest.raises(PydanticValidationError):
            PROPERTIES_ADAPTER.validate_python({
                "kind": "custom_connector",
                "profile_properties": {"tenant-id": "acme"},
            })

    def test_sapo_data_from_api(self):
        """Test decoding SAPOData properties with OAuth settings."""
        model = properties_from_api({"SAPOData": {
            "ApplicationHostUrl": "https://sap.example.com",
            "ApplicationServicePath": "/sap/opu/odata",
            "ClientNumber": "100",
            "PortNumber": 443,
            "OAuthProperties": {
                "AuthCodeUrl": "https://sap.example.com/auth",
                "OAuthScopes": ["read"],
                "TokenUrl": "https://sap.example.com/token",
            },
        }})
        assert model.kind == "sapo_data"
        assert model.oauth_properties.oauth_scopes == ["read"]
        assert model.port_number == 443


class TestAdapter:
    """Test request and response translation."""

    def test_expand_create(self, adapter, context, slack_profile_config):
        """Test the create request shape."""
        planned = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA).planned
        request = adapter.expand_create(planned, context)
        assert request == {
            "ConnectionMode": "Public",
            "ConnectorProfileName": "slack-events",
            "ConnectorType": "Slack",
            "ConnectorProfileConfig": {
                "ConnectorProfileCredentials": {
                    "Slack": {"AccessToken": "xoxb-token", "ClientId": "client-123", "ClientSecret": "secret-456"}
                },
                "ConnectorProfileProperties": {"Slack": {"InstanceUrl": "https://example.slack.com"}},
            },
        }

    def test_expand_create_with_label_and_key(self, adapter, context, slack_profile_config):
        """Test optional request fields."""
        slack_profile_config["connector_label"] = "events"
        slack_profile_config["kms_arn"] = "arn:aws:kms:us-west-2:123456789012:key/abc"
        planned = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA).planned
        request = adapter.expand_create(planned, context)
        assert request["ConnectorLabel"] == "events"
        assert request["KmsArn"] == "arn:aws:kms:us-west-2:123456789012:key/abc"

    def test_credentials_preserved_on_read(self, adapter, context, profile_client, slack_profile_config):
        """Test that write-only credentials survive a read."""
        planned = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA).planned
        profile_client.create(adapter.expand_create(planned, context))
        response = profile_client.read("slack-events")

        attributes = adapter.flatten("slack-events", response, planned, context)

        block = attributes["connector_profile_config"][0]
        assert block["connector_profile_credentials"] == (
            slack_profile_config["connector_profile_config"][0]["connector_profile_credentials"]
        )
        assert block["connector_profile_properties"] == {"kind": "slack", "instance_url": "https://example.slack.com"}

    def test_snowflake_round_trip_is_stable(self, adapter, context, profile_client, snowflake_profile_config):
        """Test that the service's "@stage" spelling does not show up as drift."""
        from converge.lifecycle.executor import LifecycleExecutor
        executor = LifecycleExecutor(adapter, context, name="warehouse")
        created = executor.create(compute_change_set(snowflake_profile_config, None, CONNECTOR_PROFILE_SCHEMA))

        properties = created.state.attributes["connector_profile_config"][0]["connector_profile_properties"]
        assert properties["stage"] == "@LOAD_STAGE"
        assert executor.read().drift == []
        again = compute_change_set(snowflake_profile_config, executor.state, CONNECTOR_PROFILE_SCHEMA)
        assert again.action.value == "no-op"

    def test_properties_changed_remotely(self, adapter, context, slack_profile_config):
        """Test that a real property change is reported in wire-decoded form."""
        prior = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA).planned
        response = {
            "ConnectorProfileName": "slack-events",
            "ConnectionMode": "Public",
            "ConnectorType": "Slack",
            "ConnectorProfileProperties": {"Slack": {"InstanceUrl": "https://other.slack.com"}},
        }
        attributes = adapter.flatten("slack-events", response, prior, context)
        properties = attributes["connector_profile_config"][0]["connector_profile_properties"]
        assert properties == {"kind": "slack", "instance_url": "https://other.slack.com"}

    def test_update_without_changes_is_none(self, adapter, context, slack_profile_config, profile_client):
        """Test that an unchanged profile builds no update request."""
        from converge.lifecycle.executor import LifecycleExecutor
        executor = LifecycleExecutor(adapter, context, name="slack")
        created = executor.create(compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA))
        change_set = compute_change_set(slack_profile_config, created.state, CONNECTOR_PROFILE_SCHEMA)
        assert adapter.expand_update(change_set, context) is None

    def test_identity_is_name(self, slack_profile_config):
        """Test that the profile name is the planned identity."""
        change_set = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA)
        assert change_set.identity == "slack-events"

    def test_name_change_replaces(self, slack_profile_config, adapter, context, profile_client):
        """Test that renaming a profile replaces it."""
        planned = compute_change_set(slack_profile_config, None, CONNECTOR_PROFILE_SCHEMA).planned
        prior = ResourceState.absent("aws_appflow_connector_profile", "slack").populated(
            "slack-events", {**planned, "arn": "arn:aws:appflow:us-west-2:123456789012:connectorprofile/slack-events",
                             "credentials_arn": "arn:aws:secretsmanager:us-west-2:123456789012:secret:x",
                             "kms_arn": "arn:aws:kms:us-west-2:123456789012:key/aws-managed"}
        )
        slack_profile_config["name"] = "slack-events-v2"
        change_set = compute_change_set(slack_profile_config, prior, CONNECTOR_PROFILE_SCHEMA)
        assert change_set.action.value == "replace"
