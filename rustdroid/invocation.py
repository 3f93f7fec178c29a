"""Command line and environment for one ``cargo build`` of one target."""
import os
import types
from dataclasses import dataclass, field

from .cli_logger import logger
from .config import FeatureKind, PASSTHROUGH_PREFIX
from .exceptions import ConfigurationError, ExternalProcessFailure
from .linker_wrapper import linker_wrapper_driver_path, linker_wrapper_path
from .toolchains import ToolchainKind, host_tag, normalize_triple
from .utils.command_executor import run_shell_command


@dataclass(frozen=True)
class Invocation:
    """Immutable builder: every ``with_*`` returns a new invocation."""
    args: tuple = ()
    env: types.MappingProxyType = field(default_factory=lambda: types.MappingProxyType({}))
    cwd: str = None

    def with_args(self, *args):
        return Invocation(self.args + tuple(str(a) for a in args), self.env, self.cwd)

    def with_env(self, key, value):
        env = dict(self.env)
        env[key] = str(value)
        return Invocation(self.args, types.MappingProxyType(env), self.cwd)

    def with_cwd(self, cwd):
        return Invocation(self.args, self.env, cwd)


def resolve_working_directory(config):
    module = os.path.expanduser(config.module)
    if not os.path.isabs(module):
        module = os.path.join(config.project_dir, module)
    module = os.path.realpath(module)
    if not os.path.isdir(module):
        raise ConfigurationError(f"Cargo module directory {module} does not exist")
    return module


def passthrough_environment(toolchain, passthrough):
    """``RUST_ANDROID_GRADLE_TARGET_<TRIPLE>_KEY=VALUE`` becomes ``KEY=VALUE`` for that triple only."""
    prefix = f"{PASSTHROUGH_PREFIX}{normalize_triple(toolchain.target)}_"
    logger.info(f"Passing through properties and environment variables with prefix '{prefix}'")
    env = {}
    for key, value in passthrough.items():
        if key.startswith(prefix) and len(key) > len(prefix):
            real_key = key[len(prefix):]
            logger.debug(f"Passing through '{key}' as '{real_key}={value}'")
            env[real_key] = value
    return env


def toolchain_directory(toolchain, ndk, config, system=None, machine=None):
    if toolchain.kind == ToolchainKind.ANDROID_PREBUILT:
        return os.path.join(ndk.path, "toolchains", "llvm", "prebuilt", host_tag(system, machine))
    if toolchain.kind == ToolchainKind.ANDROID_GENERATED:
        return config.toolchain_directory
    raise ConfigurationError(f"Desktop toolchain '{toolchain.platform}' has no NDK toolchain directory")


def build_invocation(toolchain, ndk, config, default_triple, system=None, machine=None):
    """Everything needed to run ``cargo build`` for ``toolchain``.

    Later environment writes win: target passthrough first, then the Android
    cross-compilation block, then the ``exec`` hook.
    """
    api_level = config.api_level(toolchain.platform)
    invocation = Invocation(cwd=resolve_working_directory(config))

    invocation = invocation.with_args(config.cargo_command)
    if config.rustup_channel:
        channel = config.rustup_channel
        invocation = invocation.with_args(channel if channel.startswith("+") else f"+{channel}")

    invocation = invocation.with_args("build")

    # An explicit `verbose` wins; otherwise follow --info/--debug.
    verbose = config.verbose if config.verbose is not None else logger.is_info_enabled()
    if verbose:
        invocation = invocation.with_args("--verbose")

    features = config.features
    if features.kind == FeatureKind.ALL:
        invocation = invocation.with_args("--all-features")
    elif features.kind == FeatureKind.DEFAULT_AND:
        if features.features:
            invocation = invocation.with_args("--features", " ".join(features.features))
    elif features.kind == FeatureKind.NO_DEFAULT_BUT:
        invocation = invocation.with_args("--no-default-features")
        if features.features:
            invocation = invocation.with_args("--features", " ".join(features.features))

    # cargo builds "debug" when given no profile flag.
    if config.profile != "debug":
        invocation = invocation.with_args(f"--{config.profile}")

    # Leaving out --target for the host triple lets desktop builds share the
    # cache with plain `cargo build` / `cargo test`.
    if toolchain.target != default_triple:
        invocation = invocation.with_args(f"--target={toolchain.target}")

    for key, value in passthrough_environment(toolchain, config.passthrough).items():
        invocation = invocation.with_env(key, value)

    if toolchain.kind != ToolchainKind.DESKTOP:
        if ndk is None:
            raise ConfigurationError(f"Target {toolchain.platform} needs an Android NDK, but none was found")
        windows = system == "Windows" if system is not None else None
        ndk_major = ndk.version_major
        if toolchain.kind == ToolchainKind.ANDROID_PREBUILT:
            invocation = invocation.with_env("CARGO_NDK_MAJOR_VERSION", ndk_major)
        directory = toolchain_directory(toolchain, ndk, config, system, machine)

        cc = os.path.join(directory, toolchain.cc(api_level, windows))
        cxx = os.path.join(directory, toolchain.cxx(api_level, windows))
        ar = os.path.join(directory, toolchain.ar(api_level, ndk_major))

        # For build.rs scripts using the `cc` crate, e.g. CC_i686-linux-android.
        invocation = invocation.with_env(f"CC_{toolchain.target}", cc)
        invocation = invocation.with_env(f"CXX_{toolchain.target}", cxx)
        invocation = invocation.with_env(f"AR_{toolchain.target}", ar)

        invocation = invocation.with_env(
            f"CARGO_TARGET_{normalize_triple(toolchain.target)}_LINKER",
            linker_wrapper_path(config.build_directory, windows),
        )

        # clang-sys (bindgen) must find the NDK clang, not the host one.
        if config.auto_configure_clang_sys is not False:
            invocation = invocation.with_env("CLANG_PATH", cc)

        invocation = invocation.with_env("RUST_ANDROID_GRADLE_PYTHON_COMMAND", config.python_command)
        invocation = invocation.with_env(
            "RUST_ANDROID_GRADLE_LINKER_WRAPPER_PY", linker_wrapper_driver_path(config.build_directory)
        )
        invocation = invocation.with_env("RUST_ANDROID_GRADLE_CC", cc)
        if config.generate_build_id:
            link_arg = f"-Wl,--build-id,-soname,lib{config.libname}.so"
        else:
            link_arg = f"-Wl,-soname,lib{config.libname}.so"
        invocation = invocation.with_env("RUST_ANDROID_GRADLE_CC_LINK_ARG", link_arg)

    invocation = invocation.with_args(*config.extra_cargo_build_arguments)

    if config.exec_hook is not None:
        customized = config.exec_hook(invocation, toolchain)
        if customized is not None:
            if not isinstance(customized, Invocation):
                raise ConfigurationError(
                    f"`exec` hook must return an Invocation, got {type(customized).__name__}"
                )
            invocation = customized

    return invocation


def run_invocation(invocation):
    """Run to completion. Output is logged at info level; a non-zero exit is fatal."""
    logger.info(f"Running '{' '.join(invocation.args)}' in {invocation.cwd}")
    stdout, stderr, returncode = run_shell_command(
        list(invocation.args), cwd=invocation.cwd, extra_env=dict(invocation.env)
    )
    if stdout:
        logger.info(stdout)
    if returncode != 0:
        if stderr:
            logger.error(f"Stderr:\n{stderr}")
        raise ExternalProcessFailure(invocation.args, returncode, stdout, stderr)
    if stderr:
        # cargo reports progress on stderr.
        logger.info(stderr)
    return stdout
