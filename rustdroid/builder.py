import os

from .cli_logger import logger
from .exceptions import ConfigurationError
from .host_triple import get_default_target_triple
from .invocation import build_invocation, run_invocation
from .linker_wrapper import generate_linker_wrapper
from .standalone import check_api_levels, generate_toolchains
from .toolchains import ToolchainKind, detect_ndk, find_toolchain
from .utils.file_manager import copy_matching

JNI_LIBS_DIR = "rustJniLibs"


def needs_ndk(config):
    return any(find_toolchain(t).kind != ToolchainKind.DESKTOP for t in config.targets)


def locate_ndk(config, required=None):
    """Detect the NDK, or return None when no declared target needs one."""
    if required is None:
        required = needs_ndk(config)
    if not config.ndk_path:
        if required:
            raise ConfigurationError(
                "No Android NDK found. Set [android] ndk_path, ndk.dir in local.properties or ANDROID_NDK_HOME."
            )
        return None
    if not os.path.isdir(config.ndk_path):
        if required:
            raise ConfigurationError(f"Android NDK directory {config.ndk_path} does not exist")
        return None
    ndk = detect_ndk(config.ndk_path)
    logger.info(f"Using Android NDK {ndk.version} at {ndk.path}")
    return ndk


def use_prebuilt_toolchains(config, ndk):
    """NDK r19 and later ship a prebuilt LLVM toolchain; older ones need generated toolchains."""
    if config.prebuilt_toolchains is not None:
        return config.prebuilt_toolchains
    if ndk is None:
        return True
    return ndk.version_major >= 19


def resolve_toolchains(config, use_prebuilt=True, only=None):
    targets = list(config.targets)
    if only:
        unknown = sorted(set(only) - set(targets))
        if unknown:
            raise ConfigurationError(f"Targets {unknown} are not declared (declared targets: {targets})")
        targets = [t for t in targets if t in only]
    toolchains = []
    for target in targets:
        toolchain = find_toolchain(target, use_prebuilt)
        config.api_level(toolchain.platform)
        toolchains.append(toolchain)
    return toolchains


def cargo_output_dir(config, toolchain, default_triple):
    """Where cargo leaves the libraries for ``toolchain``.

    A shared CARGO_TARGET_DIR wins over the configured ``target_directory``,
    which wins over ``<module>/target``.
    """
    target_dir = config.cargo_target_dir or config.target_directory or f"{config.module}/target"
    if toolchain.target == default_triple:
        output_dir = os.path.join(target_dir, config.profile)
    else:
        output_dir = os.path.join(target_dir, toolchain.target, config.profile)
    if not os.path.isabs(output_dir):
        output_dir = os.path.join(config.project_dir, output_dir)
    return os.path.realpath(output_dir)


def artifact_patterns(config):
    if config.target_includes is not None:
        return list(config.target_includes)
    return [f"lib{config.libname}.so", f"lib{config.libname}.dylib", f"{config.libname}.dll"]


def jni_libs_dir(config, toolchain):
    return os.path.join(config.build_directory, JNI_LIBS_DIR, *toolchain.folder.split("/"))


def copy_artifacts(config, toolchain, default_triple):
    output_dir = cargo_output_dir(config, toolchain, default_triple)
    into_dir = jni_libs_dir(config, toolchain)
    logger.info(f"  - Copying artifacts from {output_dir} to {into_dir}...")
    return copy_matching(output_dir, into_dir, artifact_patterns(config))


def build_target(toolchain, ndk, config):
    """Build one target with cargo and copy its libraries. Returns the copied paths."""
    logger.step_info(f"> cargo build ({toolchain.platform})")
    default_triple = get_default_target_triple(config.rustc_command)
    invocation = build_invocation(toolchain, ndk, config, default_triple)
    run_invocation(invocation)
    return copy_artifacts(config, toolchain, default_triple)


def build(config, only=None):
    """Build every declared target (or those in ``only``) in order. The first failure aborts."""
    ndk = locate_ndk(config)
    toolchains = resolve_toolchains(config, use_prebuilt_toolchains(config, ndk), only)
    check_api_levels(toolchains, config)

    if any(t.kind != ToolchainKind.DESKTOP for t in toolchains):
        generate_linker_wrapper(config.build_directory)
    generate_toolchains(toolchains, ndk, config)

    artifacts = {}
    for toolchain in toolchains:
        copied = build_target(toolchain, ndk, config)
        if not copied:
            logger.warning(f"No artifacts matching {artifact_patterns(config)} were produced for {toolchain.platform}")
        artifacts[toolchain.platform] = copied
        logger.success(f"Built {toolchain.platform} ({toolchain.target})")
    return artifacts
