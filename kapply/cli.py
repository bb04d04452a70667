import asyncio
import copy
import dataclasses
import functools
from typing import Any, Callable, Iterable, List, Optional

import click
import yaml

from kapply._cogs.clients import errors as api_errors
from kapply._cogs.configs import configuration
from kapply._cogs.helpers import loaders
from kapply._cogs.structs import bodies, references
from kapply._core.actions import loggers
from kapply._core.intents import errors, registries
from kapply._kits import operations


@dataclasses.dataclass()
class CLIControls:
    """ The controls, which are impossible to pass via CLI (used in tests & embedding). """
    registry: Optional[registries.HandlerRegistry] = None
    settings: Optional[configuration.ClientSettings] = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class PropagationPolicyParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.value for v in references.DeletionPropagation],
                         case_sensitive=False)

    def convert(self, value: Any, param: Any, ctx: Any) -> references.DeletionPropagation:
        name: str = super().convert(value, param, ctx)
        return references.DeletionPropagation(name)


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def source_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to load the handlers & the manifests in all commands the same way."""
    @click.option('-m', '--module', 'modules', multiple=True)
    @click.option('-f', '--filename', 'filenames', multiple=True, required=True)
    @click.option('-n', '--namespace', type=str)
    @click.option('--default-namespace', type=str)
    @click.argument('paths', nargs=-1)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(paths: List[str], modules: List[str], filenames: List[str],
                namespace: Optional[str], default_namespace: Optional[str],
                *args: Any, **kwargs: Any) -> Any:
        controls = click.get_current_context().ensure_object(CLIControls)
        if controls.registry is not None:
            registries.set_default_registry(controls.registry)
        loaders.preload(
            paths=paths,
            modules=modules,
        )
        settings = copy.deepcopy(controls.settings or configuration.ClientSettings())
        if default_namespace:
            settings.namespacing.default = references.NamespaceName(default_namespace)
        operation = operations.resource_list(
            loaders.read_manifests(filenames),
            namespace=namespace,
            settings=settings,
        )
        return fn(operation, *args, **kwargs)

    return wrapper


def deletion_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure the deletions the same way in all the commands."""
    @click.option('--cascade/--no-cascade', 'cascading', default=None)
    @click.option('--propagation-policy', type=PropagationPolicyParamType())
    @click.option('--grace-period', type=float)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(operation: operations.ResourceListOperation,
                cascading: Optional[bool],
                propagation_policy: Optional[references.DeletionPropagation],
                grace_period: Optional[float],
                *args: Any, **kwargs: Any) -> Any:
        if cascading is not None:
            operation = operation.cascading(cascading)
        if propagation_policy is not None:
            operation = operation.with_propagation_policy(propagation_policy)
        if grace_period is not None:
            operation = operation.with_grace_period(grace_period)
        return fn(operation, *args, **kwargs)

    return wrapper


def _execute(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except (errors.HandlerNotFoundError, errors.WaitTimeoutError, errors.DeletionFailedError) as e:
        raise click.ClickException(str(e))
    except api_errors.APIError as e:
        raise click.ClickException(f"The API has failed with the status {e.status}: {e.message or e}")


def _echo(objs: Iterable[bodies.Body]) -> None:
    raws = [bodies.thaw(body) for body in objs]
    if raws:
        click.echo(yaml.safe_dump_all(raws, sort_keys=False, explicit_start=True), nl=False)


@click.version_option(prog_name='kapply')
@click.group(name='kapply', context_settings=dict(
    auto_envvar_prefix='KAPPLY',
))
def main() -> None:
    pass


@main.command()
@logging_options
@source_options
@deletion_options
@click.option('--force', 'deleting_existing', is_flag=True,
              help="Delete & re-create the existing resources instead of replacing them.")
def apply(
        operation: operations.ResourceListOperation,
        deleting_existing: bool,
) -> None:
    """ Create the resources, or replace the existing ones. """
    results = _execute(operation.deleting_existing(deleting_existing).apply())
    _echo(results)


@main.command()
@logging_options
@source_options
@deletion_options
def delete(
        operation: operations.ResourceListOperation,
) -> None:
    """ Delete the resources, but only if all of them can be deleted. """
    deleted = _execute(operation.delete())
    if not deleted:
        raise click.ClickException("Some resources were not deleted; see the logs.")


@main.command()
@logging_options
@source_options
@click.option('--from-server', is_flag=True,
              help="Get the resources as they exist in the cluster, not as in the manifests.")
def get(
        operation: operations.ResourceListOperation,
        from_server: bool,
) -> None:
    """ Show the resources: as configured locally, or as existing remotely. """
    results = _execute(operation.from_server(from_server).get())
    _echo(results)


@main.command()
@logging_options
@source_options
@click.option('-t', '--timeout', type=float, default=60.0, show_default=True,
              help="How long to wait (in seconds) for all the resources together.")
def wait(
        operation: operations.ResourceListOperation,
        timeout: float,
) -> None:
    """ Wait until the resources are ready (if their kinds support readiness). """
    results = _execute(operation.wait_until_ready(timeout))
    _echo(results)
