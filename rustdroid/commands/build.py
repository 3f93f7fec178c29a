import click
from .. import config as config_module
from .. import builder
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@click.option("--target", "-t", "selected_targets", multiple=True,
              help="Only build this declared target (repeatable). Defaults to all declared targets.")
@click.option("--profile", default=None, help="Cargo profile (e.g., debug, release). Overrides rustdroid.toml.")
@click.option("--verbose/--no-verbose", default=None, help="Pass --verbose to cargo.")
@handle_exceptions
def build(ctx, selected_targets, profile, verbose):
    """Build the Rust library for the declared targets and copy it into the build directory."""
    conf = config_module.load_build_config(
        path=ctx.obj["path"],
        cargo_overrides={"profile": profile, "verbose": verbose},
    )
    logger.step_info(f"Building {conf.libname} ({conf.profile}) for {', '.join(selected_targets or conf.targets)}...")

    artifacts = builder.build(conf, only=list(selected_targets) or None)

    for platform_id, copied in artifacts.items():
        for path in copied:
            logger.step_info(f"{platform_id}: {path}", indent=2)
    logger.success(f"Build of {conf.libname} completed successfully.")
