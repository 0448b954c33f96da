"""Tests for configuration document loading."""

import json
import tempfile
from pathlib import Path
import pytest
from converge.ingest.config_loader import load_config_document, parse_config_document
from converge.ingest.config_validator import get_document_summary, validate_resource_entry
from converge.utils.errors import ConfigLoadError

YAML_DOCUMENT = """
resources:
  - type: aws_s3_directory_bucket
    name: data
    attributes:
      bucket: example--usw2-az2--x-s3
      location:
        - name: usw2-az2
  - type: aws_appflow_connector_profile
    name: slack
    depends_on: [aws_s3_directory_bucket.data]
    attributes:
      name: slack-events
"""


def _write(content: str, suffix: str) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
        f.write(content)
        return f.name


class TestConfigLoader:
    """Test configuration document loading."""

    def test_load_yaml(self):
        """Test loading a YAML document."""
        temp_path = _write(YAML_DOCUMENT, ".yaml")
        try:
            document = load_config_document(temp_path)
            assert document.addresses == [
                "aws_s3_directory_bucket.data",
                "aws_appflow_connector_profile.slack",
            ]
            assert document.source == str(Path(temp_path))
            slack = document.get("aws_appflow_connector_profile.slack")
            assert slack.depends_on == ["aws_s3_directory_bucket.data"]
            assert document.get("aws_s3_directory_bucket.data").attributes["location"] == [{"name": "usw2-az2"}]
        finally:
            Path(temp_path).unlink()

    def test_load_json(self):
        """Test loading a JSON document."""
        data = {"resources": [{"type": "aws_s3_directory_bucket", "name": "data", "attributes": {}}]}
        temp_path = _write(json.dumps(data), ".json")
        try:
            document = load_config_document(temp_path)
            assert document.addresses == ["aws_s3_directory_bucket.data"]
        finally:
            Path(temp_path).unlink()

    def test_load_missing_file(self):
        """Test loading non-existent file raises error."""
        with pytest.raises(ConfigLoadError, match="Configuration file not found"):
            load_config_document("nonexistent.yaml")

    def test_load_invalid_json(self):
        """Test loading invalid JSON raises error."""
        temp_path = _write("invalid json {", ".json")
        try:
            with pytest.raises(ConfigLoadError, match="Invalid JSON"):
                load_config_document(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_invalid_yaml(self):
        """Test loading invalid YAML raises error."""
        temp_path = _write("resources: [unclosed", ".yaml")
        try:
            with pytest.raises(ConfigLoadError, match="Invalid YAML"):
                load_config_document(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_empty_file(self):
        """Test that an empty document has no resources."""
        temp_path = _write("", ".yaml")
        try:
            assert load_config_document(temp_path).resources == []
        finally:
            Path(temp_path).unlink()


class TestDocumentStructure:
    """Test structural validation."""

    def test_duplicate_address(self):
        """Test that addresses are unique."""
        data = {"resources": [
            {"type": "aws_s3_directory_bucket", "name": "data"},
            {"type": "aws_s3_directory_bucket", "name": "data"},
        ]}
        with pytest.raises(ConfigLoadError, match="duplicate address"):
            parse_config_document(data)

    def test_resources_must_be_list(self):
        """Test the resources key type."""
        with pytest.raises(ConfigLoadError):
            parse_config_document({"resources": {"a": 1}})

    def test_not_a_mapping(self):
        """Test that the document must be a mapping."""
        with pytest.raises(ConfigLoadError):
            parse_config_document(["resources"])

    def test_entry_problems(self):
        """Test single entry validation."""
        assert validate_resource_entry({"type": "aws_s3_directory_bucket", "name": "data"}) == []
        assert validate_resource_entry({"name": "data"}) != []
        assert validate_resource_entry({"type": "t", "name": "bad name"}) != []
        assert validate_resource_entry("not a mapping") != []

    def test_summary(self):
        """Test document summary."""
        summary = get_document_summary({"resources": [
            {"type": "aws_s3_directory_bucket", "name": "a"},
            {"type": "aws_s3_directory_bucket", "name": "b"},
        ]})
        assert summary["resource_count"] == 2
