import click
import os
import toml
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..exceptions import ConfigurationError

MISSING_CONFIG = "No rustdroid.toml found. Please create one with a [cargo] table first."

def _parse_value(value):
    """Interpret a command-line value as TOML (numbers, booleans, arrays), else keep the string."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except toml.TomlDecodeError:
        return value

def _flatten(table, prefix=""):
    """Yield ``(dotted.key, value)`` for every leaf of a nested table."""
    for key, value in table.items():
        if isinstance(value, dict) and value:
            yield from _flatten(value, f"{prefix}{key}.")
        else:
            yield f"{prefix}{key}", value

def _format_value(value):
    if isinstance(value, dict):
        return "{}"
    return toml.dumps({"v": value})[len("v = "):].strip()

def _load(path):
    conf = config_module.load_config(path=path)
    if not conf:
        raise ConfigurationError(MISSING_CONFIG)
    return conf

def _parent_table(conf, key, create=False):
    """Return the table holding the last segment of ``key`` and that segment."""
    *parents, leaf = key.split(".")
    table = conf
    for name in parents:
        if create:
            table = table.setdefault(name, {})
        else:
            table = table.get(name) if isinstance(table, dict) else None
        if not isinstance(table, dict):
            raise ConfigurationError(f"Key '{key}' not found in rustdroid.toml")
    return table, leaf

def _check(conf, path):
    """Raise ConfigurationError if ``conf`` would not load as a build configuration."""
    config_module.BuildConfig.from_mapping(
        conf,
        project_dir=path,
        local_properties=config_module.load_local_properties(path),
        project_name=conf.get("project", {}).get("name"),
    )

def _save(conf, path, force):
    if not force:
        _check(conf, path)
    if not config_module.save_config(conf, path=path):
        raise ConfigurationError(f"Could not write {config_module.CONFIG_FILE}")

@click.group()
@click.pass_context
def config(ctx):
    """View or edit the rustdroid.toml configuration file."""
    pass

@config.command()
@click.pass_context
@handle_exceptions
def view(ctx):
    """Print rustdroid.toml as written."""
    _load(ctx.obj["path"])
    with open(os.path.join(ctx.obj["path"], config_module.CONFIG_FILE), "r") as f:
        click.echo(f.read())

@config.command()
@click.option("--force", is_flag=True, help="Save even if the result is not a valid build configuration.")
@click.pass_context
@handle_exceptions
def edit(ctx, force):
    """Edit rustdroid.toml in your editor. Invalid edits are not saved."""
    path = ctx.obj["path"]
    _load(path)
    config_file_path = os.path.join(path, config_module.CONFIG_FILE)
    with open(config_file_path, "r") as f:
        original = f.read()
    edited = click.edit(text=original, extension=".toml")
    if edited is None or edited == original:
        logger.info("rustdroid.toml left unchanged.")
        return
    try:
        conf = toml.loads(edited)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"Edited rustdroid.toml is not valid TOML: {e}") from e
    _save(conf, path, force)
    logger.success("rustdroid.toml updated.")

@config.command(name="list")
@click.pass_context
@handle_exceptions
def list_config(ctx):
    """List every key as ``dotted.key = value``."""
    for key, value in _flatten(_load(ctx.obj["path"])):
        click.echo(f"{key} = {_format_value(value)}")

@config.command()
@click.argument('key')
@click.pass_context
@handle_exceptions
def get(ctx, key):
    """Print one value, e.g. `cargo.libname`."""
    table, leaf = _parent_table(_load(ctx.obj["path"]), key)
    if leaf not in table:
        raise ConfigurationError(f"Key '{key}' not found in rustdroid.toml")
    value = table[leaf]
    if isinstance(value, dict):
        for sub_key, sub_value in _flatten(value, f"{key}."):
            click.echo(f"{sub_key} = {_format_value(sub_value)}")
    else:
        click.echo(value)

@config.command(name="set")
@click.argument('key')
@click.argument('value')
@click.option("--force", is_flag=True, help="Save even if the result is not a valid build configuration.")
@click.pass_context
@handle_exceptions
def set_value(ctx, key, value, force):
    """Set a value. Values are read as TOML when possible, e.g. '["arm64", "x86"]'."""
    path = ctx.obj["path"]
    conf = _load(path)
    table, leaf = _parent_table(conf, key, create=True)
    table[leaf] = _parse_value(value)
    _save(conf, path, force)
    logger.info(f"Set '{key}' to {_format_value(table[leaf])}")

@config.command()
@click.argument('key')
@click.option("--force", is_flag=True, help="Save even if the result is not a valid build configuration.")
@click.pass_context
@handle_exceptions
def unset(ctx, key, force):
    """Remove a key."""
    path = ctx.obj["path"]
    conf = _load(path)
    table, leaf = _parent_table(conf, key)
    if leaf not in table:
        raise ConfigurationError(f"Key '{key}' not found in rustdroid.toml")
    del table[leaf]
    _save(conf, path, force)
    logger.info(f"Unset '{key}'")
