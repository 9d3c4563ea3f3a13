import click
import sys
from pathlib import Path

from jinja2 import TemplateSyntaxError, UndefinedError

from . import __version__
from .bindings import BindingEnvironment
from .config_manager import ConfigManager, build_environment, build_expander, build_validator
from .exceptions import (
    BindingsFileError,
    ConfigManagerError,
    TemplateNotFoundError,
    VariableMissingError,
)
from .expander import read_template
from .extractor import VariableExtractor, unique_roots
from .utils import format_missing, format_references, setup_logging


def load_config(ctx):
    """Load the config once per invocation, honoring --config."""
    if 'config' not in ctx.obj:
        manager = ConfigManager(config_path=ctx.obj.get('config_path'))
        ctx.obj['manager'] = manager
        ctx.obj['config'] = manager.get_config()
    return ctx.obj['config']


def build_bindings(var, vars_file, use_env, env_prefix):
    """
    Merge binding sources. Precedence: --var, then --vars-file, then --env.
    """
    layers = [BindingEnvironment.from_pairs(var)]
    if vars_file:
        layers.append(BindingEnvironment.from_yaml(vars_file))
    if use_env or env_prefix:
        layers.append(BindingEnvironment.from_environ(prefix=env_prefix or ""))
    return BindingEnvironment(*layers)


def syntax_error_exit(e):
    """Report a template syntax error and exit with status 2."""
    location = f" (line {e.lineno})" if e.lineno else ""
    click.echo(f"Error: Template syntax error{location}: {e.message}", err=True)
    sys.exit(2)


def bindings_options(f):
    """Options shared by commands that take variable bindings."""
    f = click.option('--env-prefix', default=None,
                     help='Bind environment variables with this prefix (prefix is stripped)')(f)
    f = click.option('--env', 'use_env', is_flag=True,
                     help='Bind all environment variables')(f)
    f = click.option('--vars-file', type=click.Path(), default=None,
                     help='YAML file mapping variable names to values')(f)
    f = click.option('--var', multiple=True,
                     help='Variable binding (key=value), can be repeated')(f)
    return f


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Config file (default: $TEMPLATEV_CONFIG or ~/.templatev/config.yaml)')
@click.pass_context
def cli(ctx, verbose, config_path):
    """
    templatev - validate and expand ${...} templates.

    Templates are text with ${name}, ${obj.field} or ${items[0]} references
    and optional {% ... %} blocks.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    try:
        level = load_config(ctx).logging.level
    except ConfigManagerError as e:
        # A broken config file can still be reset
        if ctx.invoked_subcommand != 'config':
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        level = "WARNING"
    setup_logging("DEBUG" if verbose else level)


@cli.command(name='vars')
@click.argument('template')
@click.option('--unique', is_flag=True, help='Print each root name once')
@click.pass_context
def vars_command(ctx, template, unique):
    """
    List variable references in a template.

    Examples:
        templatev vars app.conf.tmpl
        templatev vars app.conf.tmpl --unique
    """
    try:
        config = load_config(ctx)
        text = read_template(template, encoding=config.expansion.encoding)
        references = VariableExtractor(build_environment(config)).extract(text)

        if not references:
            click.echo(f"No variables found in '{template}'")
            return

        if unique:
            for name in unique_roots(references):
                click.echo(name)
            return

        format_references(references, title=f"Variables in {Path(template).name}")
        click.echo(f"\nTotal: {len(references)} reference(s)")
    except TemplateSyntaxError as e:
        syntax_error_exit(e)
    except TemplateNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('template')
@bindings_options
@click.option('--quiet', '-q', is_flag=True, help='Print nothing; exit status 0 if valid, 1 otherwise')
@click.option('--as-exception', is_flag=True, help='Fail with an error naming all missing variables')
@click.pass_context
def validate(ctx, template, var, vars_file, use_env, env_prefix, quiet, as_exception):
    """
    Check that every variable in a template is bound.

    Examples:
        templatev validate app.conf.tmpl --var name=web --var port=8080
        templatev validate app.conf.tmpl --vars-file prod.yaml
        templatev validate app.conf.tmpl --env-prefix APP_ --quiet
    """
    try:
        config = load_config(ctx)
        text = read_template(template, encoding=config.expansion.encoding)
        bindings = build_bindings(var, vars_file, use_env, env_prefix)
        result = build_validator(config).validate(
            text, bindings, quiet=quiet, as_exception=as_exception
        )

        if quiet:
            sys.exit(0 if result else 1)
        if as_exception:
            click.echo(f"✓ All variables in '{template}' are bound")
            return
        if result:
            format_missing(result)
            sys.exit(1)
        click.echo(f"✓ All variables in '{template}' are bound")
    except TemplateSyntaxError as e:
        syntax_error_exit(e)
    except VariableMissingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except (TemplateNotFoundError, BindingsFileError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--var')


@cli.command()
@click.argument('template')
@bindings_options
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Write the result to this file (default: stdout)')
@click.option('--check', is_flag=True, help='Refuse to expand if any variable is unbound')
@click.pass_context
def expand(ctx, template, var, vars_file, use_env, env_prefix, output, check):
    """
    Expand a template with variable bindings.

    Examples:
        templatev expand app.conf.tmpl --var name=web -o app.conf
        templatev expand app.conf.tmpl --vars-file prod.yaml --check
    """
    try:
        config = load_config(ctx)
        bindings = build_bindings(var, vars_file, use_env, env_prefix)
        expanded = build_expander(config).expand_file(
            template, destination=output, bindings=bindings, validate=check
        )

        if output:
            click.echo(f"✓ Expanded '{template}' to '{output}'")
        else:
            click.echo(expanded, nl=False)
    except TemplateSyntaxError as e:
        syntax_error_exit(e)
    except (VariableMissingError, UndefinedError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except (TemplateNotFoundError, BindingsFileError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--var')


@cli.group()
def config():
    """Show and change templatev configuration."""
    pass


@config.command('show')
@click.pass_context
def config_show(ctx):
    """Print the active configuration."""
    try:
        cfg = load_config(ctx)
    except ConfigManagerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"# {ctx.obj['manager'].config_path}")
    for section, values in cfg.model_dump().items():
        click.echo(f"{section}:")
        for key, value in values.items():
            click.echo(f"  {key}: {value}")


@config.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key, value):
    """
    Set a configuration value.

    Examples:
        templatev config set expansion.undefined strict
        templatev config set syntax.variable_start '{{'
    """
    try:
        ConfigManager(config_path=ctx.obj.get('config_path')).set_value(key, value)
        click.echo(f"✓ Set {key} = {value}")
    except ConfigManagerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@config.command('reset')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def config_reset(ctx, yes):
    """Restore the default configuration."""
    if not yes:
        click.confirm("Reset configuration to defaults?", abort=True)
    ConfigManager(config_path=ctx.obj.get('config_path')).reset_to_defaults()
    click.echo("✓ Configuration reset to defaults")


if __name__ == '__main__':
    cli()
