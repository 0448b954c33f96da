"""Tests for CLI commands."""

import json
from pathlib import Path
import pytest
import yaml
from click.testing import CliRunner
from converge import __version__
from converge.cli.main import cli
from converge.state.models import ResourceState
from converge.state.store import StateStore

BUCKET_NAME = "example--usw2-az2--x-s3"


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Empty working directory with no user config."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config_file(workspace, bucket_config):
    """Configuration document with one directory bucket."""
    path = workspace / "resources.yaml"
    path.write_text(yaml.safe_dump({
        "resources": [
            {"type": "aws_s3_directory_bucket", "name": "data", "attributes": bucket_config}
        ]
    }), encoding="utf-8")
    return path


@pytest.fixture
def state_file(workspace, recorded_bucket, slack_profile_config):
    """State file holding a bucket and a Slack connector profile."""
    path = workspace / "state.json"
    store = StateStore(path)
    store.put(ResourceState.absent("aws_s3_directory_bucket", "data").populated(BUCKET_NAME, recorded_bucket()))
    profile = dict(slack_profile_config, arn="arn:aws:appflow:us-west-2:123456789012:connectorprofile/slack-events")
    store.put(ResourceState.absent("aws_appflow_connector_profile", "slack").populated("slack-events", profile))
    store.save()
    return path


class TestBasicCommands:
    """Test version and schema commands."""

    def test_version(self):
        """Test version command."""
        runner = CliRunner()
        result = runner.invoke(cli, ['version'])
        assert result.exit_code == 0
        assert f"converge version {__version__}" in result.output

    def test_schema_list(self):
        """Test listing supported resource types."""
        runner = CliRunner()
        result = runner.invoke(cli, ['schema'])
        assert result.exit_code == 0
        assert "aws_s3_directory_bucket" in result.output
        assert "aws_appflow_connector_profile" in result.output

    def test_schema_type(self):
        """Test describing one resource type."""
        runner = CliRunner()
        result = runner.invoke(cli, ['schema', 'aws_s3_directory_bucket'])
        assert result.exit_code == 0
        assert "identity: id" in result.output
        assert "bucket (string; required, forces replacement)" in result.output
        assert "location block [1..1]" in result.output

    def test_schema_json(self):
        """Test schema JSON output."""
        runner = CliRunner()
        result = runner.invoke(cli, ['schema', 'aws_appflow_connector_profile', '--json'])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["identity_attribute"] == "name"
        credentials = data["blocks"][0]["attributes"][0]
        assert credentials["sensitive"] is True

    def test_schema_unknown_type(self):
        """Test that unknown types fail with a tip."""
        runner = CliRunner()
        result = runner.invoke(cli, ['schema', 'aws_nothing'])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Tip:" in result.output


class TestValidateCommand:
    """Test validate command."""

    def test_valid(self, config_file):
        """Test that a valid document passes."""
        runner = CliRunner()
        result = runner.invoke(cli, ['validate', str(config_file)])
        assert result.exit_code == 0
        assert "Success!" in result.output

    def test_problems(self, workspace):
        """Test that problems are reported and the exit code is 1."""
        path = workspace / "bad.yaml"
        path.write_text(yaml.safe_dump({"resources": [{
            "type": "aws_s3_directory_bucket",
            "name": "data",
            "attributes": {"bucket": "general-purpose", "location": [{"name": "usw2-az2"}]},
        }]}), encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cli, ['validate', str(path)])
        assert result.exit_code == 1
        assert "aws_s3_directory_bucket.data:" in result.output
        assert "1 problem in 1 resource." in result.output

    def test_missing_file(self, workspace):
        """Test that a missing document is an error."""
        runner = CliRunner()
        result = runner.invoke(cli, ['validate', 'nope.yaml'])
        assert result.exit_code == 1
        assert "Error: File not found" in result.output


class TestPlanCommand:
    """Test plan command."""

    def test_plan_create(self, config_file):
        """Test planning against empty state."""
        runner = CliRunner()
        result = runner.invoke(cli, ['plan', str(config_file), '--state', 'state.json', '--ascii', '--quiet'])
        assert result.exit_code == 0
        assert "+ aws_s3_directory_bucket.data" in result.output
        assert "(known after apply)" in result.output
        assert "Plan: 1 to add, 0 to change, 0 to destroy." in result.output
        assert not Path("state.json").exists()

    def test_plan_json(self, config_file, state_file):
        """Test JSON plan output, including the orphaned profile."""
        runner = CliRunner()
        result = runner.invoke(cli, ['plan', str(config_file), '--state', str(state_file), '--json', '--quiet'])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["summary"] == {"add": 0, "change": 0, "destroy": 1}
        actions = {r["address"]: r["action"] for r in data["resources"]}
        assert actions == {
            "aws_s3_directory_bucket.data": "no-op",
            "aws_appflow_connector_profile.slack": "delete",
        }
        assert "secret-456" not in result.output

    def test_plan_output_file(self, config_file, workspace):
        """Test saving plan output to a file."""
        runner = CliRunner()
        result = runner.invoke(cli, ['plan', str(config_file), '--state', 'state.json', '-o', 'out/plan.txt'])
        assert result.exit_code == 0
        assert "Plan: 1 to add" in (workspace / "out" / "plan.txt").read_text(encoding="utf-8")

    def test_invalid_engine_config(self, config_file, workspace):
        """Test that a bad engine config is reported."""
        (workspace / "engine.yaml").write_text("engine:\n  max_workers: 0\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ['plan', str(config_file), '--config', 'engine.yaml'])
        assert result.exit_code == 1
        assert "max_workers" in result.output


class TestStateCommands:
    """Test state list/show/rm."""

    def test_list(self, state_file):
        """Test listing managed objects."""
        runner = CliRunner()
        result = runner.invoke(cli, ['state', 'list', '--state', str(state_file)])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("aws_appflow_connector_profile.slack  present  slack-events")
        assert lines[1].startswith(f"aws_s3_directory_bucket.data  present  {BUCKET_NAME}")

    def test_list_empty(self, workspace):
        """Test listing with no state file."""
        runner = CliRunner()
        result = runner.invoke(cli, ['state', 'list', '--state', 'missing.json'])
        assert result.exit_code == 0
        assert "No managed objects." in result.output

    def test_show_masks_credentials(self, state_file):
        """Test that credentials are never printed."""
        runner = CliRunner()
        result = runner.invoke(cli, ['state', 'show', 'aws_appflow_connector_profile.slack', '--state', str(state_file)])
        assert result.exit_code == 0
        assert "identity = \"slack-events\"" in result.output
        assert "(sensitive value)" in result.output
        assert "secret-456" not in result.output

    def test_show_json(self, state_file):
        """Test state record JSON output."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ['state', 'show', 'aws_appflow_connector_profile.slack', '--state', str(state_file), '--json']
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        block = data["attributes"]["connector_profile_config"][0]
        assert block["connector_profile_credentials"] == "(sensitive value)"
        assert block["connector_profile_properties"]["instance_url"] == "https://example.slack.com"

    def test_show_missing(self, state_file):
        """Test showing an address that is not managed."""
        runner = CliRunner()
        result = runner.invoke(cli, ['state', 'show', 'aws_s3_directory_bucket.other', '--state', str(state_file)])
        assert result.exit_code == 1
        assert "converge state list" in result.output

    def test_rm(self, state_file):
        """Test removing an object from state."""
        runner = CliRunner()
        result = runner.invoke(cli, ['state', 'rm', 'aws_s3_directory_bucket.data', '--state', str(state_file)])
        assert result.exit_code == 0
        assert "Removed aws_s3_directory_bucket.data" in result.output
        assert StateStore.open(state_file).get("aws_s3_directory_bucket.data") is None

        result = runner.invoke(cli, ['state', 'rm', 'aws_s3_directory_bucket.data', '--state', str(state_file)])
        assert result.exit_code == 1
