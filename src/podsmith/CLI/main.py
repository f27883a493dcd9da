# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command Line Interface for podsmith.
"""
import logging
import os
import sys

import click

from ..BUILDERS.aci import Aci
from ..BUILDERS.home import BuildArgs, Home
from ..BUILDERS.pod import Pod
from ..MODELS.runtime_config import PullPolicy
from ..PARSERS.manifest_parser import POD_MANIFEST, load_home_config
from ..errors import PodsmithError


def _flag(value):
    """Only flags given on the command line override the configuration file."""
    return True if value else None


@click.group()
@click.option('--config', '-c', 'config_path', envvar='PODSMITH_CONFIG',
              help='Configuration file (default ~/.config/podsmith/config.yml)')
@click.option('--log-level', '-L', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Log level')
@click.option('--rkt-path', help='Path of the rkt binary')
@click.option('--insecure-options', help='Comma separated rkt insecure options')
@click.option('--pull-policy', type=click.Choice([p.value for p in PullPolicy]),
              help='rkt fetch pull policy')
@click.option('--trust-keys-from-https', is_flag=True, help='Trust keys fetched over https')
@click.option('--no-store', is_flag=True, help='Always fetch from remote')
@click.option('--store-only', is_flag=True, help='Only use the local rkt store')
@click.option('--target-work-dir', help='Put all build outputs under this directory')
@click.option('--assets-dir', envvar='PODSMITH_ASSETS_DIR',
              help='Directory holding the internal builder and tester images')
@click.pass_context
def cli(ctx, config_path, log_level, rkt_path, insecure_options, pull_policy,
        trust_keys_from_https, no_store, store_only, target_work_dir, assets_dir):
    """
    podsmith - build and test ACIs and pods with rkt.

    PATH is an ACI directory (with aci-manifest.yml) or a pod directory
    (with pod-manifest.yml).
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['assets_dir'] = assets_dir
    ctx.obj['overrides'] = {
        'path': rkt_path,
        'insecure_options': insecure_options,
        'pull_policy': pull_policy,
        'trust_keys_from_https': _flag(trust_keys_from_https),
        'no_store': _flag(no_store),
        'store_only': _flag(store_only),
        'target_work_dir': target_work_dir,
    }


def _home(ctx) -> Home:
    config = load_home_config(ctx.obj['config_path'], dict(ctx.obj['overrides']))
    return Home.create(config, ctx.obj['assets_dir'])


def _project(path: str, home: Home, args: BuildArgs):
    if os.path.exists(os.path.join(path, POD_MANIFEST)):
        return Pod(path, home, args)
    return Aci(path, home, args)


def _run(ctx, path: str, action: str, args: BuildArgs = None):
    try:
        project = _project(path, _home(ctx), args or BuildArgs())
        getattr(project, action)()
    except PodsmithError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('path', default='.', type=click.Path(exists=True, file_okay=False))
@click.option('--keep-builder', '-k', is_flag=True, help='Keep builder containers after the build')
@click.option('--test', '-t', is_flag=True, help='Run tests after the build')
@click.pass_context
def build(ctx, path, keep_builder, test):
    """Build the ACI or pod in PATH."""
    _run(ctx, path, 'build', BuildArgs(keep_builder=keep_builder, test=test))
    click.echo("Build done.")


@cli.command()
@click.argument('path', default='.', type=click.Path(exists=True, file_okay=False))
@click.pass_context
def clean(ctx, path):
    """Remove the build outputs of the ACI or pod in PATH."""
    _run(ctx, path, 'clean')
    click.echo("Clean done.")


@cli.command()
@click.argument('path', default='.', type=click.Path(exists=True, file_okay=False))
@click.option('--keep-builder', '-k', is_flag=True, help='Keep tester containers after the run')
@click.pass_context
def test(ctx, path, keep_builder):
    """Test the ACI or pod in PATH."""
    _run(ctx, path, 'test', BuildArgs(keep_builder=keep_builder))
    click.echo("Tests passed.")


@cli.command('rkt-version')
@click.pass_context
def rkt_version(ctx):
    """Print the version of rkt in use."""
    try:
        home = _home(ctx)
    except PodsmithError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"rkt {home.rkt.version} ({home.rkt.get_path()})")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
