import os

from .cli_logger import logger
from .exceptions import ConfigurationError, ExternalProcessFailure
from .toolchains import ToolchainKind
from .utils.command_executor import run_shell_command

MAKE_STANDALONE_TOOLCHAIN = os.path.join("build", "tools", "make_standalone_toolchain.py")

def generated_toolchains(toolchains):
    return [t for t in toolchains if t.kind == ToolchainKind.ANDROID_GENERATED]

def check_api_levels(toolchains, config):
    """64-bit Android starts at API 21."""
    for toolchain in generated_toolchains(toolchains):
        api_level = config.api_level(toolchain.platform)
        if toolchain.platform.endswith("64") and api_level < 21:
            raise ConfigurationError(
                f"Can't target 64-bit {toolchain.platform} with API level < 21 ({api_level})"
            )

def standalone_toolchain_dir(config, toolchain):
    return os.path.join(config.toolchain_directory, f"{toolchain.platform}-{config.api_level(toolchain.platform)}")

def generate_toolchains(toolchains, ndk, config):
    """Run make_standalone_toolchain.py for every generated-kind toolchain.

    The toolchain is always recreated (``--force``): it is quick, and a
    half-deleted previous one would otherwise break the build.
    """
    toolchains = generated_toolchains(toolchains)
    check_api_levels(toolchains, config)
    if not toolchains:
        return []
    if ndk is None:
        raise ConfigurationError("Generating standalone toolchains needs an Android NDK, but none was found")

    script = os.path.join(ndk.path, MAKE_STANDALONE_TOOLCHAIN)
    generated = []
    for toolchain in toolchains:
        install_dir = standalone_toolchain_dir(config, toolchain)
        logger.info(f"  - Generating standalone toolchain for {toolchain.platform} in {install_dir}...")
        command = [
            config.python_command,
            script,
            f"--arch={toolchain.platform}",
            f"--api={config.api_level(toolchain.platform)}",
            f"--install-dir={install_dir}",
            "--force",
        ]
        stdout, stderr, returncode = run_shell_command(command)
        if stdout:
            logger.info(stdout)
        if returncode != 0:
            if stderr:
                logger.error(f"Stderr:\n{stderr}")
            raise ExternalProcessFailure(command, returncode, stdout, stderr)
        generated.append(install_dir)
    return generated
