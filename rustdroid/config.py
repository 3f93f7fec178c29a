import enum
import importlib
import os
import tempfile
import types
from dataclasses import dataclass, field

import toml

from .cli_logger import logger
from .exceptions import ConfigurationError
from .toolchains import find_toolchain, read_properties

CONFIG_FILE = "rustdroid.toml"
LOCAL_PROPERTIES_FILE = "local.properties"

PASSTHROUGH_PREFIX = "RUST_ANDROID_GRADLE_TARGET_"

def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False

def load_local_properties(path="."):
    """Machine-local overrides, never checked in."""
    return read_properties(os.path.join(path, LOCAL_PROPERTIES_FILE))


class FeatureKind(enum.Enum):
    UNSPECIFIED = "unspecified"
    ALL = "all"
    DEFAULT_AND = "default_and"
    NO_DEFAULT_BUT = "no_default_but"


@dataclass(frozen=True)
class FeatureSpec:
    """Cargo feature selection. Exactly one kind is active."""
    kind: FeatureKind = FeatureKind.UNSPECIFIED
    features: tuple = ()

    @classmethod
    def all(cls):
        return cls(FeatureKind.ALL)

    @classmethod
    def default_and(cls, features):
        return cls(FeatureKind.DEFAULT_AND, tuple(features))

    @classmethod
    def no_default_but(cls, features):
        return cls(FeatureKind.NO_DEFAULT_BUT, tuple(features))

    @classmethod
    def from_mapping(cls, spec):
        if not spec:
            return cls()
        if isinstance(spec, str):
            if spec == "all":
                return cls.all()
            raise ConfigurationError(f"Unknown feature selection '{spec}'")
        keys = set(spec) & {"all", "default_and", "no_default_but"}
        if len(keys) != 1 or set(spec) - keys:
            raise ConfigurationError(
                "`features` must set exactly one of `all`, `default_and` or `no_default_but`"
            )
        if "all" in spec:
            return cls.all() if spec["all"] else cls()
        key = keys.pop()
        # A single feature may be written as a bare string.
        features = _as_list(spec[key]) or []
        if not all(isinstance(f, str) for f in features):
            raise ConfigurationError(f"`features.{key}` must be a list of feature names, got {spec[key]!r}")
        if key == "default_and":
            return cls.default_and(features)
        return cls.no_default_but(features)


def _flag(value, default):
    if value is None:
        return default
    value = str(value).strip().lower()
    if value in ("1", "true"):
        return True
    if value in ("0", "false"):
        return False
    return default


def _as_list(value):
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


def _resolve_hook(spec):
    """Import ``package.module:function``."""
    if spec is None or callable(spec):
        return spec
    module_name, _, attribute = str(spec).partition(":")
    if not attribute:
        raise ConfigurationError(f"`exec` must look like 'package.module:function', got '{spec}'")
    try:
        hook = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load `exec` hook '{spec}': {e}") from e
    if not callable(hook):
        raise ConfigurationError(f"`exec` hook '{spec}' is not callable")
    return hook


@dataclass(frozen=True)
class BuildConfig:
    project_dir: str
    module: str
    libname: str
    targets: tuple
    api_levels: types.MappingProxyType
    build_directory: str
    profile: str = "debug"
    features: FeatureSpec = field(default_factory=FeatureSpec)
    extra_cargo_build_arguments: tuple = ()
    verbose: object = None
    exec_hook: object = None
    generate_build_id: bool = False
    target_directory: object = None
    target_includes: object = None
    cargo_command: str = "cargo"
    rustc_command: str = "rustc"
    python_command: str = "python3"
    rustup_channel: str = ""
    toolchain_directory: str = ""
    auto_configure_clang_sys: object = None
    cargo_target_dir: object = None
    prebuilt_toolchains: object = None
    ndk_path: object = None
    passthrough: types.MappingProxyType = field(default_factory=lambda: types.MappingProxyType({}))

    @classmethod
    def from_mapping(cls, conf, project_dir=".", local_properties=None, environ=None,
                     project_name=None, exec_hook=None):
        """Build the one immutable configuration for this run, validating it as a whole."""
        local_properties = dict(local_properties or {})
        environ = os.environ if environ is None else environ
        project_dir = os.path.abspath(project_dir)
        project_name = project_name or os.path.basename(project_dir)

        cargo = dict(conf.get("cargo", {}))
        android = dict(conf.get("android", {}))

        def prop(name, env_name, default=None):
            value = local_properties.get(name)
            if value is None:
                value = environ.get(env_name)
            return default if value is None else value

        module = cargo.get("module")
        if not module:
            raise ConfigurationError("module cannot be null")
        libname = cargo.get("libname")
        if not libname:
            raise ConfigurationError("libname cannot be null")

        # Targets may be set per machine (and per project) in local.properties.
        local_targets = local_properties.get(f"rust.targets.{project_name}", local_properties.get("rust.targets"))
        if local_targets is not None:
            targets = [t.strip() for t in local_targets.split(",") if t.strip()]
        else:
            targets = _as_list(cargo.get("targets"))
        if not targets:
            raise ConfigurationError("targets cannot be null")
        for target in targets:
            find_toolchain(target)

        api_level = cargo.get("api_level")
        api_levels = dict(cargo.get("api_levels") or {})
        if api_levels:
            if api_level is not None:
                raise ConfigurationError("Cannot set both `api_level` and `api_levels`")
        else:
            default = api_level if api_level is not None else android.get("min_sdk")
            if default is not None:
                api_levels = {target: default for target in targets}
        missing = sorted(set(targets) - set(api_levels))
        if missing:
            raise ConfigurationError(f"`api_levels` missing entries for: {missing}")
        try:
            api_levels = {target: int(level) for target, level in api_levels.items()}
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"API levels must be integers: {e}") from e

        passthrough = {k: v for k, v in environ.items() if k.startswith(PASSTHROUGH_PREFIX)}
        passthrough.update({k: v for k, v in local_properties.items() if k.startswith(PASSTHROUGH_PREFIX)})

        def project_path(path):
            if path is None:
                return None
            path = os.path.expanduser(str(path))
            return path if os.path.isabs(path) else os.path.join(project_dir, path)

        includes = _as_list(cargo.get("target_includes"))

        prebuilt = cargo.get("prebuilt_toolchains")
        return cls(
            project_dir=project_dir,
            module=str(module),
            libname=str(libname),
            targets=tuple(targets),
            api_levels=types.MappingProxyType(api_levels),
            build_directory=project_path(android.get("build_directory", "build")),
            profile=str(cargo.get("profile", "debug")),
            features=FeatureSpec.from_mapping(cargo.get("features")),
            extra_cargo_build_arguments=tuple(_as_list(cargo.get("extra_cargo_build_arguments")) or ()),
            verbose=cargo.get("verbose"),
            exec_hook=exec_hook or _resolve_hook(cargo.get("exec")),
            generate_build_id=bool(cargo.get("generate_build_id", False)),
            target_directory=cargo.get("target_directory"),
            target_includes=tuple(includes) if includes is not None else None,
            cargo_command=cargo.get("cargo_command") or prop("rust.cargoCommand", "RUST_ANDROID_GRADLE_CARGO_COMMAND", "cargo"),
            rustc_command=cargo.get("rustc_command") or prop("rust.rustcCommand", "RUST_ANDROID_GRADLE_RUSTC_COMMAND", "rustc"),
            python_command=cargo.get("python_command") or prop("rust.pythonCommand", "RUST_ANDROID_GRADLE_PYTHON_COMMAND", "python3"),
            rustup_channel=cargo.get("rustup_channel") or prop("rust.rustupChannel", "RUST_ANDROID_GRADLE_RUSTUP_CHANNEL", ""),
            toolchain_directory=project_path(
                cargo.get("toolchain_directory")
                or prop("rust.androidNdkToolchainDir", "ANDROID_NDK_TOOLCHAIN_DIR",
                        os.path.join(tempfile.gettempdir(), "rust-android-ndk-toolchains"))
            ),
            auto_configure_clang_sys=_flag(
                prop("rust.autoConfigureClangSys", "RUST_ANDROID_GRADLE_AUTO_CONFIGURE_CLANG_SYS"), None
            ),
            cargo_target_dir=prop("rust.cargoTargetDir", "CARGO_TARGET_DIR"),
            prebuilt_toolchains=None if prebuilt is None else bool(prebuilt),
            ndk_path=project_path(_find_ndk_path(android, local_properties, environ)),
            passthrough=types.MappingProxyType(passthrough),
        )

    def api_level(self, platform_id):
        try:
            return self.api_levels[platform_id]
        except KeyError:
            raise ConfigurationError(f"No API level known for target {platform_id}") from None


def _find_ndk_path(android, local_properties, environ):
    for candidate in (
        android.get("ndk_path"),
        local_properties.get("ndk.dir"),
        environ.get("ANDROID_NDK_HOME"),
        environ.get("ANDROID_NDK_ROOT"),
    ):
        if candidate:
            return candidate
    sdk = local_properties.get("sdk.dir") or environ.get("ANDROID_HOME") or environ.get("ANDROID_SDK_ROOT")
    ndk_version = android.get("ndk_version")
    if sdk and ndk_version:
        return os.path.join(sdk, "ndk", str(ndk_version))
    return None


def load_build_config(path=".", cargo_overrides=None, environ=None):
    """Read rustdroid.toml and local.properties from ``path`` into a BuildConfig.

    ``cargo_overrides`` (e.g. from command-line options) replace keys of the
    ``[cargo]`` table; ``None`` values are ignored.
    """
    conf = load_config(path=path)
    if not conf:
        raise ConfigurationError(
            f"No {CONFIG_FILE} found in {os.path.abspath(path)}. Please create one with a [cargo] table."
        )
    for key, value in (cargo_overrides or {}).items():
        if value is not None:
            conf.setdefault("cargo", {})[key] = value
    return BuildConfig.from_mapping(
        conf,
        project_dir=path,
        local_properties=load_local_properties(path),
        environ=environ,
        project_name=conf.get("project", {}).get("name"),
    )
