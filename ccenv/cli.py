import click
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigManager, EnvironmentFormData, EnvVar, ManagerConfig
from .errors import EnvManagerError
from .file_ops import FileOperations
from .logger import setup_logger
from .store import EnvironmentStore
from .utils import display_value, format_table, success_message, truncate_string, warning_message
from .validation import format_date, is_valid_number, is_valid_url, validate_environment_form


# Windows GBK终端兼容性：安全输出Unicode字符
def safe_echo(message, **kwargs):
    """在Windows GBK终端下安全输出Unicode字符"""
    try:
        click.echo(message, **kwargs)
    except UnicodeEncodeError:
        safe_message = message.replace('✓', '[OK]').replace('⚠', '[WARN]').replace('→', '->')
        click.echo(safe_message, **kwargs)


def _build_store(config: ManagerConfig) -> EnvironmentStore:
    """组装存储对象并加载环境列表"""
    store = EnvironmentStore(FileOperations(numeric_keys=config.numeric_keys))
    store.load_environments()
    if store.error:
        safe_echo(warning_message(f"{store.error} ({store.error.kind.value} error), starting with an empty list"), err=True)
        store.clear_error()
    return store


def _parse_env_pairs(env_pairs: tuple) -> List[EnvVar]:
    if len(env_pairs) % 2 != 0:
        raise ValueError("Environment variable arguments must come in pairs (name value)")

    return [EnvVar(key=env_pairs[i], value=env_pairs[i + 1]) for i in range(0, len(env_pairs), 2)]


def _check_form(form: EnvironmentFormData, config: ManagerConfig):
    """校验表单，失败时输出全部错误并退出；可疑的值只给出警告"""
    errors = validate_environment_form(form)
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    for env_var in form.env:
        key = env_var.key.strip()
        if key.endswith("_URL") and not is_valid_url(env_var.value):
            safe_echo(warning_message(f"{key} does not look like a valid URL: {env_var.value}"), err=True)
        if key in config.numeric_keys and not is_valid_number(env_var.value, float("-inf"), float("inf")):
            safe_echo(warning_message(f"{key} is expected to be numeric, it will be written as a string"), err=True)


def _echo_variables(variables, config: ManagerConfig, indent: str = "  "):
    for key, value in variables:
        safe_echo(f"{indent}{key}: {display_value(key, value, config.mask_secrets)}")


def _require_environment(store: EnvironmentStore, ref: str):
    environment = store.find_environment(ref)
    if environment is None:
        raise ValueError(f"Environment '{ref}' not found. Use 'ccenv list' to see available environments.")
    return environment


@click.group()
@click.version_option(version=__version__, prog_name="ccenv")
@click.option('--debug', is_flag=True, help='输出调试日志')
@click.pass_context
def cli(ctx, debug: bool):
    """ccenv - Claude Code 环境配置切换工具

    工作流: add → apply → clear

    环境保存在 ~/.claude-code-env-manager.json，
    apply 会把环境变量写入 ~/.claude/settings.json 的 env 字段，
    其余字段保持不变。
    """
    config = ConfigManager().get_config()
    setup_logger("DEBUG" if debug else config.log_level)
    ctx.obj = config


@cli.command()
@click.argument('name')
@click.argument('env_pairs', nargs=-1, required=True)
@click.pass_obj
def add(config: ManagerConfig, name: str, env_pairs: tuple):
    """添加新的环境

    使用方式: ccenv add <name> <env_name> <env_value> [<env_name2> <env_value2> ...]

    示例: ccenv add prod ANTHROPIC_BASE_URL https://api.anthropic.com ANTHROPIC_AUTH_TOKEN sk-xxx
    """
    try:
        form = EnvironmentFormData(name=name, env=_parse_env_pairs(env_pairs))
        _check_form(form, config)

        store = _build_store(config)
        if store.find_environment(name.strip()) is not None:
            raise ValueError(f"Environment '{name}' already exists")

        environment = store.add_environment(form)

        safe_echo(success_message(f"Environment '{environment.name}' added (id {environment.id})"))
        safe_echo("  Environment variables:")
        _echo_variables(environment.to_mapping().items(), config, indent="    ")

    except (ValueError, EnvManagerError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('ref')
@click.argument('env_pairs', nargs=-1)
@click.option('--name', 'new_name', help='新的环境名称')
@click.pass_obj
def update(config: ManagerConfig, ref: str, env_pairs: tuple, new_name: Optional[str]):
    """更新环境（按id或名称），给出的变量会整体替换原有变量

    使用方式: ccenv update <id|name> [<env_name> <env_value> ...] [--name <new-name>]
    """
    try:
        if not env_pairs and new_name is None:
            raise ValueError("Nothing to update: pass environment variable pairs and/or --name")

        store = _build_store(config)
        environment = _require_environment(store, ref)
        store.load_current_settings()
        was_active = store.active_environment() is environment

        form = EnvironmentFormData(
            name=new_name if new_name is not None else environment.name,
            env=_parse_env_pairs(env_pairs) if env_pairs else environment.env,
        )
        _check_form(form, config)

        if new_name is not None:
            clash = store.find_environment(new_name.strip())
            if clash is not None and clash.id != environment.id:
                raise ValueError(f"Environment '{new_name}' already exists")

        updated = store.update_environment(environment.id, form)
        if updated is None:
            raise ValueError(f"Environment '{ref}' not found")

        safe_echo(success_message(f"Environment '{updated.name}' updated"))
        _echo_variables(updated.to_mapping().items(), config)
        if was_active:
            safe_echo(f"\n  This environment is currently applied. Run 'ccenv apply {updated.name}' to refresh settings.")

    except (ValueError, EnvManagerError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('refs', nargs=-1, required=True)
@click.pass_obj
def remove(config: ManagerConfig, refs: tuple):
    """删除一个或多个环境（按id或名称）

    使用方式:
      ccenv remove <env1>              # 删除单个环境
      ccenv remove <env1> <env2> ...   # 删除多个环境
    """
    try:
        store = _build_store(config)

        removed = []
        not_found = []

        for ref in refs:
            environment = store.find_environment(ref)
            if environment is not None and store.delete_environment(environment.id):
                removed.append(environment.name)
            else:
                not_found.append(ref)

        if removed:
            safe_echo(success_message(f"Removed {len(removed)} environment(s): {', '.join(removed)}"))

        if not_found:
            safe_echo(warning_message(f"Not found: {', '.join(not_found)}"), err=True)

        # 什么都没删除时退出码为 1
        if not removed:
            sys.exit(1)

    except EnvManagerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command(name="list")
@click.option('--verbose', is_flag=True, help='显示详细信息')
@click.pass_obj
def list_cmd(config: ManagerConfig, verbose: bool):
    """列出所有环境，* 标记当前已应用的环境"""
    try:
        store = _build_store(config)

        if not store.environments:
            click.echo("No environments found. Use 'ccenv add' to create one.")
            return

        store.load_current_settings()
        active = store.active_environment()

        rows = []
        for environment in store.environments:
            marker = "*" if active is not None and environment.id == active.id else ""
            keys = ", ".join(var.key for var in environment.env)
            rows.append([marker, environment.id, environment.name, truncate_string(keys, 48)])

        click.echo(format_table(["", "ID", "NAME", "VARIABLES"], rows, min_width=1))

        if verbose:
            for environment in store.environments:
                click.echo()
                click.echo(f"{environment.name} ({environment.id})")
                click.echo(f"  Created: {format_date(environment.created_at)}")
                click.echo(f"  Updated: {format_date(environment.updated_at)}")
                _echo_variables(environment.to_mapping().items(), config)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('ref')
@click.pass_obj
def show(config: ManagerConfig, ref: str):
    """显示单个环境的详细信息"""
    try:
        store = _build_store(config)
        environment = _require_environment(store, ref)

        click.echo(f"Name:    {environment.name}")
        click.echo(f"ID:      {environment.id}")
        click.echo(f"Created: {format_date(environment.created_at)}")
        click.echo(f"Updated: {format_date(environment.updated_at)}")
        click.echo("Environment variables:")
        _echo_variables(((var.key, var.value) for var in environment.env), config)

    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('ref')
@click.pass_obj
def apply(config: ManagerConfig, ref: str):
    """把指定环境写入 Claude Code 的 settings.json（核心命令）"""
    try:
        store = _build_store(config)
        environment = _require_environment(store, ref)

        store.apply_environment(environment)

        safe_echo(success_message(f"Applied environment '{environment.name}' to {store.file_ops.settings_path}"))
        if store.error:
            safe_echo(warning_message(f"Settings written but could not be read back: {store.error}"), err=True)
        _echo_variables((store.current_settings or {}).items(), config)

    except EnvManagerError as e:
        click.echo(f"Error: Failed to apply environment ({e.kind.value}): {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_obj
def clear(config: ManagerConfig):
    """从 settings.json 中移除 env 字段，保留其他配置"""
    try:
        store = EnvironmentStore(FileOperations(numeric_keys=config.numeric_keys))
        store.clear_current_settings()

        safe_echo(success_message(f"Cleared env from {store.file_ops.settings_path}"))

    except EnvManagerError as e:
        click.echo(f"Error: Failed to clear configuration ({e.kind.value}): {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--verbose', is_flag=True, help='显示设置文件路径等详细信息')
@click.pass_obj
def current(config: ManagerConfig, verbose: bool):
    """显示 settings.json 中当前生效的环境变量"""
    try:
        store = _build_store(config)
        store.load_current_settings()

        if store.error:
            raise store.error

        if verbose:
            click.echo(f"Settings file: {store.file_ops.settings_path}")

        if not store.current_settings:
            click.echo("No env configured in settings. Use 'ccenv apply <name>' to set one.")
            return

        active = store.active_environment()
        if active is not None:
            click.echo(f"Current environment: {active.name}")
        else:
            click.echo("Current environment: (not managed by ccenv)")

        _echo_variables(store.current_settings.items(), config)

    except EnvManagerError as e:
        click.echo(f"Error: {e} ({e.kind.value} error)", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


def main():
    """主入口点"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
