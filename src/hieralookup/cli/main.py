"""
Main CLI entry point for hieralookup.

Provides the command-line interface using Click:

    hieralookup lookup NAME [NAME...] [options]
    hieralookup config show|path|validate
"""

import json as _json
import logging as _logging
import typing as _typing

import click as _click
import pydantic as _pydantic
import rich.console as _rich_console
import rich.text as _rich_text
import rich.tree as _rich_tree
import yaml as _yaml

import hieralookup
import hieralookup.config as config
import hieralookup.config.sources as config_sources
import hieralookup.core as core
import hieralookup.core.explain as core_explain

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    """Route hieralookup log records to stderr at the given level."""
    _logging.basicConfig(format=_LOG_FORMAT)
    _logging.getLogger("hieralookup").setLevel(level.upper())


def _get_settings(ctx: _click.Context) -> config.Settings:
    """Load settings on first use, turning config errors into CLI errors."""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        try:
            settings = config.Settings()
        except config.ConfigFileError as e:
            raise _click.ClickException(str(e)) from None
        except _pydantic.ValidationError as e:
            raise _click.ClickException(f"Invalid configuration:\n{e}") from None
        _configure_logging("debug" if obj.get("verbose") else settings.logging.level)
        obj["settings"] = settings
    settings_obj: config.Settings = obj["settings"]
    return settings_obj


def _parse_assignments(items: _typing.Sequence[str], option: str) -> dict[str, _typing.Any]:
    """Parse repeated KEY=VALUE options; values are read as YAML."""
    result: dict[str, _typing.Any] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise _click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint=option)
        try:
            result[key] = _yaml.safe_load(raw) if raw else ""
        except _yaml.YAMLError as e:
            raise _click.BadParameter(f"invalid value for '{key}': {e}", param_hint=option) from e
    return result


def _format_value(value: _typing.Any, as_json: bool) -> str:
    """Render a lookup result as JSON or YAML."""
    if as_json:
        # YAML dates and timestamps are written in ISO format
        return _json.dumps(value, indent=2, default=str)
    text = _yaml.safe_dump(value, default_flow_style=False, sort_keys=False)
    # Scalars are dumped as a document with an explicit end marker
    if text.endswith("\n...\n"):
        text = text[: -len("...\n")]
    return text.rstrip("\n")


def _merge_spec(
    merge: str | None,
    configured: str | dict[str, _typing.Any] | None,
    knockout_prefix: str | None,
    merge_hash_arrays: bool,
) -> _typing.Any:
    """
    Combine the command line merge options with the configured default.

    Deep merge options extend the configured strategy hash, or `deep` when
    nothing is configured. --merge replaces the configured strategy name.
    """
    if knockout_prefix is None and not merge_hash_arrays:
        return merge if merge is not None else configured

    spec: dict[str, _typing.Any]
    if isinstance(configured, dict):
        spec = dict(configured)
    else:
        spec = {"strategy": configured or "deep"}
    if merge is not None:
        spec["strategy"] = merge
    if knockout_prefix is not None:
        spec["knockout_prefix"] = knockout_prefix
    if merge_hash_arrays:
        spec["merge_hash_arrays"] = True
    return spec


def _explain_tree(explainer: core_explain.Explainer) -> _rich_tree.Tree:
    """Build a rich tree from the recorded explanation."""
    tree = _rich_tree.Tree(_rich_text.Text("Lookup", style="bold"))

    def add(parent: _rich_tree.Tree, node: core_explain.ExplainNode) -> None:
        branch = parent.add(_rich_text.Text(node.label))
        for child in node.children:
            add(branch, child)

    for root in explainer.roots:
        add(tree, root)
    return tree


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(hieralookup.__version__, "-v", "--version", prog_name="hieralookup")
@_click.option("--verbose", is_flag=True, help="Enable debug logging")
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool) -> None:
    """
    hieralookup - hierarchical key/value lookup.

    \b
    Examples:
        hieralookup lookup ntp::servers
        hieralookup lookup users --merge deep --type 'Hash[String, Hash]'
        hieralookup lookup port --default 8080 --explain
    """
    ctx.ensure_object(dict)["verbose"] = verbose


@cli.command(name="lookup")
@_click.argument("names", nargs=-1, required=True)
@_click.option("--type", "value_type", default=None, help="Expected type, e.g. 'Array[String]'")
@_click.option(
    "--merge",
    type=_click.Choice(["first", "unique", "hash", "deep"]),
    default=None,
    help="Merge strategy (default: from config, else first found)",
)
@_click.option("--knockout-prefix", default=None, help="Deep merge knockout prefix")
@_click.option("--merge-hash-arrays", is_flag=True, help="Deep merge arrays of hashes")
@_click.option("--default", "default_yaml", default=None, help="Default value (YAML)")
@_click.option("--override", multiple=True, metavar="KEY=VALUE", help="Override a key (YAML value)")
@_click.option(
    "--default-values",
    multiple=True,
    metavar="KEY=VALUE",
    help="Fallback value for a key (YAML value)",
)
@_click.option("--var", "variables", multiple=True, metavar="NAME=VALUE", help="Scope variable")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--explain", is_flag=True, help="Show how the value was resolved")
@_click.pass_context
def lookup_cmd(
    ctx: _click.Context,
    names: tuple[str, ...],
    value_type: str | None,
    merge: str | None,
    knockout_prefix: str | None,
    merge_hash_arrays: bool,
    default_yaml: str | None,
    override: tuple[str, ...],
    default_values: tuple[str, ...],
    variables: tuple[str, ...],
    as_json: bool,
    explain: bool,
) -> None:
    """Look up NAMES (tried in order) in the configured hierarchy."""
    settings = _get_settings(ctx)

    merge_spec = _merge_spec(merge, settings.lookup.merge, knockout_prefix, merge_hash_arrays)

    default_value: _typing.Any = core.ABSENT
    if default_yaml is not None:
        try:
            default_value = _yaml.safe_load(default_yaml)
        except _yaml.YAMLError as e:
            raise _click.BadParameter(str(e), param_hint="--default") from e

    explainer = core.Explainer() if explain else None
    try:
        resolver = settings.create_resolver(_parse_assignments(variables, "--var"))
        value = resolver.lookup(
            list(names),
            value_type if value_type is not None else settings.lookup.value_type,
            merge_spec,
            default_value,
            override=_parse_assignments(override, "--override"),
            default_values_hash=_parse_assignments(default_values, "--default-values"),
            explainer=explainer,
        )
    except (core.LookupEngineError, config.BackendLoadError) as e:
        raise _click.ClickException(str(e)) from None
    finally:
        if explainer is not None:
            _rich_console.Console(stderr=True).print(_explain_tree(explainer))

    _click.echo(_format_value(value, as_json))


@cli.group(name="config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--section", type=str, default=None, help="Show specific section only")
@_click.pass_context
def config_show(ctx: _click.Context, as_json: bool, section: str | None) -> None:
    """Show effective configuration from all sources."""
    settings = _get_settings(ctx)
    full_config = settings.model_dump(mode="json")

    if section:
        if section not in full_config:
            raise _click.ClickException(f"Unknown section: {section}")
        full_config = {section: full_config[section]}

    if as_json:
        _click.echo(_json.dumps(full_config, indent=2))
    else:
        _click.echo(_yaml.safe_dump(full_config, default_flow_style=False, sort_keys=False))


@config_cmd.command(name="path")
@_click.option("--all", "show_all", is_flag=True, help="Show all paths even if not found")
def config_path(show_all: bool) -> None:
    """Show configuration file paths and their status."""
    paths = [
        ("Built-in defaults", config_sources.get_builtin_defaults_path()),
        ("User config", config_sources.get_user_config_path()),
        ("Project config", config_sources.get_project_config_path(config.find_project_root())),
    ]

    for name, path in paths:
        exists = path.exists()
        if exists or show_all:
            status = "✓" if exists else "✗"
            _click.echo(f"{status} {name}: {path}")


@config_cmd.command(name="validate")
@_click.pass_context
def config_validate(ctx: _click.Context) -> None:
    """Report unknown configuration keys (likely typos)."""
    settings = _get_settings(ctx)
    unknown = settings.get_unknown_fields()
    if not unknown:
        _click.echo("Configuration OK")
        return
    for path, value in sorted(unknown.items()):
        _click.echo(f"Unknown key: {path} = {value!r}", err=True)
    raise SystemExit(1)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="hieralookup")


if __name__ == "__main__":
    main()
