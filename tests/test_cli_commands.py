import json

import pytest
from click.testing import CliRunner

from ccenv.cli import cli


BASE_URL = "https://api.anthropic.com"


def _settings_file(home):
    return home / ".claude" / "settings.json"


def _cache_file(home):
    return home / ".claude-code-env-manager.json"


def _add_default_environment(runner: CliRunner, name: str = "prod", token: str = "sk-ant-1234567890") -> None:
    result = runner.invoke(
        cli,
        [
            "add",
            name,
            "ANTHROPIC_BASE_URL",
            BASE_URL,
            "ANTHROPIC_AUTH_TOKEN",
            token,
        ],
    )
    assert result.exit_code == 0, result.output


def test_add_requires_pairs(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["add", "broken", "ANTHROPIC_BASE_URL", BASE_URL, "ORPHAN"])
    assert result.exit_code != 0
    assert "must come in pairs" in result.output


def test_add_persists_and_masks_secrets(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["add", "prod", "ANTHROPIC_BASE_URL", BASE_URL, "ANTHROPIC_AUTH_TOKEN", "sk-ant-1234567890"])

    assert result.exit_code == 0, result.output
    assert "Environment 'prod' added" in result.output
    assert f"ANTHROPIC_BASE_URL: {BASE_URL}" in result.output
    assert "sk-ant-1234567890" not in result.output

    cache = json.loads(_cache_file(temp_config_dir).read_text(encoding="utf-8"))
    assert cache["version"] == "1.0.0"
    assert [env["name"] for env in cache["environments"]] == ["prod"]
    assert cache["environments"][0]["env"][1] == {"key": "ANTHROPIC_AUTH_TOKEN", "value": "sk-ant-1234567890"}


def test_add_rejects_duplicate_keys(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["add", "dup", "A", "1", " A", "2"])

    assert result.exit_code == 1
    assert "Duplicate environment variable names exist" in result.output
    assert not _cache_file(temp_config_dir).exists()


def test_add_rejects_blank_name(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["add", "  ", "A", "1"])

    assert result.exit_code == 1
    assert "Environment name cannot be empty" in result.output


def test_add_rejects_existing_name(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["add", "prod", "A", "1"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_add_warns_about_suspicious_url(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["add", "odd", "ANTHROPIC_BASE_URL", "not a url"])

    assert result.exit_code == 0, result.output
    assert "does not look like a valid URL" in result.output


def test_list_empty(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "No environments found" in result.output


def test_list_marks_applied_environment(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner, "prod")
    _add_default_environment(runner, "staging", token="sk-ant-staging-000")

    assert runner.invoke(cli, ["apply", "staging"]).exit_code == 0

    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    staging_line = next(line for line in lines if "staging" in line)
    prod_line = next(line for line in lines if "prod" in line)
    assert staging_line.startswith("*")
    assert not prod_line.startswith("*")


def test_list_verbose_shows_timestamps(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["list", "--verbose"])

    assert result.exit_code == 0, result.output
    assert "Created:" in result.output
    assert "Updated:" in result.output


def test_apply_writes_settings_and_keeps_other_fields(temp_config_dir):
    settings_file = _settings_file(temp_config_dir)
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({"foo": 1, "env": {"OLD": "x"}}), encoding="utf-8")

    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["apply", "prod"])

    assert result.exit_code == 0, result.output
    assert "Applied environment 'prod'" in result.output
    assert json.loads(settings_file.read_text(encoding="utf-8")) == {
        "foo": 1,
        "env": {"ANTHROPIC_BASE_URL": BASE_URL, "ANTHROPIC_AUTH_TOKEN": "sk-ant-1234567890"},
    }


def test_apply_by_id(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)
    env_id = json.loads(_cache_file(temp_config_dir).read_text(encoding="utf-8"))["environments"][0]["id"]

    result = runner.invoke(cli, ["apply", env_id])

    assert result.exit_code == 0, result.output
    assert json.loads(_settings_file(temp_config_dir).read_text(encoding="utf-8"))["env"]["ANTHROPIC_BASE_URL"] == BASE_URL


def test_apply_coerces_numeric_key(temp_config_dir):
    runner = CliRunner()
    assert runner.invoke(cli, ["add", "quiet", "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC", "1"]).exit_code == 0

    assert runner.invoke(cli, ["apply", "quiet"]).exit_code == 0

    env = json.loads(_settings_file(temp_config_dir).read_text(encoding="utf-8"))["env"]
    assert env == {"CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC": 1}


def test_apply_unknown_environment(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["apply", "ghost"])
    assert result.exit_code == 1
    assert "Environment 'ghost' not found" in result.output


def test_apply_with_corrupt_settings_fails(temp_config_dir):
    settings_file = _settings_file(temp_config_dir)
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text("{broken", encoding="utf-8")

    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["apply", "prod"])

    assert result.exit_code == 1
    assert "Failed to apply environment (parse)" in result.output
    assert settings_file.read_text(encoding="utf-8") == "{broken"


def test_clear_removes_env_only(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)
    assert runner.invoke(cli, ["apply", "prod"]).exit_code == 0

    settings_file = _settings_file(temp_config_dir)
    document = json.loads(settings_file.read_text(encoding="utf-8"))
    document["model"] = "opus"
    settings_file.write_text(json.dumps(document), encoding="utf-8")

    result = runner.invoke(cli, ["clear"])

    assert result.exit_code == 0, result.output
    assert json.loads(settings_file.read_text(encoding="utf-8")) == {"model": "opus"}


def test_clear_without_settings_creates_empty_document(temp_config_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["clear"])

    assert result.exit_code == 0, result.output
    assert json.loads(_settings_file(temp_config_dir).read_text(encoding="utf-8")) == {}


def test_current_shows_applied_environment(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["current"])
    assert result.exit_code == 0
    assert "No env configured" in result.output

    assert runner.invoke(cli, ["apply", "prod"]).exit_code == 0

    result = runner.invoke(cli, ["current", "--verbose"])
    assert result.exit_code == 0, result.output
    assert "Current environment: prod" in result.output
    assert "Settings file:" in result.output
    assert "sk-ant-1234567890" not in result.output


def test_current_reports_foreign_env(temp_config_dir):
    settings_file = _settings_file(temp_config_dir)
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({"env": {"SOMETHING": "else"}}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["current"])

    assert result.exit_code == 0, result.output
    assert "not managed by ccenv" in result.output
    assert "SOMETHING: else" in result.output


def test_update_replaces_variables_and_name(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["update", "prod", "ANTHROPIC_MODEL", "claude-opus", "--name", "production"])

    assert result.exit_code == 0, result.output
    cache = json.loads(_cache_file(temp_config_dir).read_text(encoding="utf-8"))
    environment = cache["environments"][0]
    assert environment["name"] == "production"
    assert environment["env"] == [{"key": "ANTHROPIC_MODEL", "value": "claude-opus"}]


def test_update_hints_reapply_for_active_environment(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)
    assert runner.invoke(cli, ["apply", "prod"]).exit_code == 0

    result = runner.invoke(cli, ["update", "prod", "--name", "prod2"])

    assert result.exit_code == 0, result.output
    assert "ccenv apply prod2" in result.output


def test_update_requires_changes(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["update", "prod"])

    assert result.exit_code == 1
    assert "Nothing to update" in result.output


def test_update_unknown_environment(temp_config_dir):
    result = CliRunner().invoke(cli, ["update", "ghost", "A", "1"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_remove_multiple(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner, "a")
    _add_default_environment(runner, "b")
    _add_default_environment(runner, "c")

    result = runner.invoke(cli, ["remove", "a", "c", "missing"])

    assert result.exit_code == 0, result.output
    assert "Removed 2 environment(s): a, c" in result.output
    assert "Not found: missing" in result.output
    cache = json.loads(_cache_file(temp_config_dir).read_text(encoding="utf-8"))
    assert [env["name"] for env in cache["environments"]] == ["b"]


def test_remove_nothing_found_exits_nonzero(temp_config_dir):
    result = CliRunner().invoke(cli, ["remove", "missing"])
    assert result.exit_code == 1


def test_show_environment(temp_config_dir):
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["show", "prod"])

    assert result.exit_code == 0, result.output
    assert "Name:    prod" in result.output
    assert f"ANTHROPIC_BASE_URL: {BASE_URL}" in result.output


def test_corrupt_cache_warns_and_starts_empty(temp_config_dir):
    _cache_file(temp_config_dir).write_text("{broken", encoding="utf-8")

    result = CliRunner().invoke(cli, ["list"])

    assert result.exit_code == 0, result.output
    assert "parse error" in result.output
    assert "No environments found" in result.output


def test_unmasked_output_when_configured(temp_config_dir):
    from ccenv.config import ConfigManager, ManagerConfig

    ConfigManager().save_config(ManagerConfig(mask_secrets=False))
    runner = CliRunner()
    _add_default_environment(runner)

    result = runner.invoke(cli, ["show", "prod"])

    assert "sk-ant-1234567890" in result.output


@pytest.mark.parametrize("command", ["add", "update", "remove", "list", "show", "apply", "clear", "current"])
def test_commands_have_help(temp_config_dir, command):
    result = CliRunner().invoke(cli, [command, "--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
