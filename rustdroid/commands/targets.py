import click
from ..toolchains import TOOLCHAINS, ToolchainKind

@click.command()
@click.option("--kind", type=click.Choice([k.value for k in ToolchainKind]), default=None,
              help="Only list toolchains of this kind.")
def targets(kind):
    """List the supported target ids with their Rust triple and output folder."""
    for toolchain in TOOLCHAINS:
        if kind and toolchain.kind.value != kind:
            continue
        click.echo(f"{toolchain.platform:<20} {toolchain.kind.value:<18} {toolchain.target:<26} {toolchain.folder}")
