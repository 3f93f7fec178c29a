import click
from .. import config as config_module
from .. import builder
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..linker_wrapper import generate_linker_wrapper as write_linker_wrapper
from ..standalone import generate_toolchains as write_standalone_toolchains

@click.command(name="generate-toolchains")
@click.pass_context
@handle_exceptions
def generate_toolchains(ctx):
    """Regenerate NDK standalone toolchains for targets that need them (NDK older than r19)."""
    conf = config_module.load_build_config(path=ctx.obj["path"])
    ndk = builder.locate_ndk(conf)
    toolchains = builder.resolve_toolchains(conf, builder.use_prebuilt_toolchains(conf, ndk))
    generated = write_standalone_toolchains(toolchains, ndk, conf)
    if not generated:
        logger.success("No standalone toolchains needed: the NDK's prebuilt toolchain is used.")
        return
    for path in generated:
        logger.step_info(path, indent=2)
    logger.success(f"Generated {len(generated)} standalone toolchain(s).")

@click.command(name="generate-linker-wrapper")
@click.pass_context
@handle_exceptions
def generate_linker_wrapper(ctx):
    """Write the linker wrapper scripts into the build directory."""
    conf = config_module.load_build_config(path=ctx.obj["path"])
    for path in write_linker_wrapper(conf.build_directory):
        logger.step_info(path, indent=2)
    logger.success("Linker wrapper generated.")
