"""Supported platforms and the NDK-dependent naming of their tools.

See https://doc.rust-lang.org/nightly/rustc/platform-support.html for the
target triples.
"""
import enum
import os
import platform
from dataclasses import dataclass

from .exceptions import ConfigurationError


class ToolchainKind(enum.Enum):
    DESKTOP = "desktop"
    ANDROID_PREBUILT = "android-prebuilt"
    ANDROID_GENERATED = "android-generated"


def is_windows(system=None):
    return (system or platform.system()) == "Windows"


def host_tag(system=None, machine=None):
    """Directory name of the host's prebuilt LLVM toolchain inside the NDK."""
    system = system or platform.system()
    machine = (machine or platform.machine()).lower()
    if system == "Windows":
        if machine in ("x86_64", "amd64"):
            return "windows-x86_64"
        return "windows"
    if system == "Darwin":
        # Apple silicon hosts run the x86_64 NDK binaries under Rosetta.
        return "darwin-x86_64"
    return "linux-x86_64"


def normalize_triple(triple):
    """``aarch64-linux-android`` -> ``AARCH64_LINUX_ANDROID``."""
    return triple.upper().replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class Ndk:
    path: str
    version: str

    @property
    def version_major(self):
        return int(self.version.split(".")[0])


@dataclass(frozen=True)
class Toolchain:
    platform: str
    kind: ToolchainKind
    target: str
    compiler_triple: str
    binutils_triple: str
    folder: str

    def _generated_bin(self, api_level):
        return os.path.join(f"{self.platform}-{api_level}", "bin")

    def _clang(self, suffix, api_level, windows):
        if windows is None:
            windows = is_windows()
        ext = ".cmd" if windows else ""
        if self.kind == ToolchainKind.ANDROID_PREBUILT:
            return os.path.join("bin", f"{self.compiler_triple}{api_level}-{suffix}{ext}")
        if self.kind == ToolchainKind.ANDROID_GENERATED:
            return os.path.join(self._generated_bin(api_level), f"{self.compiler_triple}-{suffix}{ext}")
        raise ConfigurationError(f"Desktop toolchain '{self.platform}' has no NDK compiler")

    def cc(self, api_level, windows=None):
        """C compiler, relative to the toolchain directory."""
        return self._clang("clang", api_level, windows)

    def cxx(self, api_level, windows=None):
        """C++ compiler, relative to the toolchain directory."""
        return self._clang("clang++", api_level, windows)

    def ar(self, api_level, ndk_version_major):
        """Archiver, relative to the toolchain directory.

        NDK r23 removed the GNU binutils, so from then on only llvm-ar exists.
        """
        if ndk_version_major >= 23:
            return os.path.join("bin", "llvm-ar")
        if self.kind == ToolchainKind.ANDROID_PREBUILT:
            return os.path.join("bin", f"{self.binutils_triple}-ar")
        if self.kind == ToolchainKind.ANDROID_GENERATED:
            return os.path.join(self._generated_bin(api_level), f"{self.binutils_triple}-ar")
        raise ConfigurationError(f"Desktop toolchain '{self.platform}' has no NDK archiver")


_DESKTOP = ToolchainKind.DESKTOP
_PREBUILT = ToolchainKind.ANDROID_PREBUILT
_GENERATED = ToolchainKind.ANDROID_GENERATED

TOOLCHAINS = [
    Toolchain("linux-x86-64", _DESKTOP, "x86_64-unknown-linux-gnu",
              "<compilerTriple>", "<binutilsTriple>", "desktop/linux-x86-64"),
    # "darwin" predates "darwin-x86-64" and is kept so existing configurations keep working.
    Toolchain("darwin", _DESKTOP, "x86_64-apple-darwin",
              "<compilerTriple>", "<binutilsTriple>", "desktop/darwin"),
    Toolchain("darwin-x86-64", _DESKTOP, "x86_64-apple-darwin",
              "<compilerTriple>", "<binutilsTriple>", "desktop/darwin-x86-64"),
    Toolchain("darwin-aarch64", _DESKTOP, "aarch64-apple-darwin",
              "<compilerTriple>", "<binutilsTriple>", "desktop/darwin-aarch64"),
    Toolchain("win32-x86-64-msvc", _DESKTOP, "x86_64-pc-windows-msvc",
              "<compilerTriple>", "<binutilsTriple>", "desktop/win32-x86-64"),
    Toolchain("win32-x86-64-gnu", _DESKTOP, "x86_64-pc-windows-gnu",
              "<compilerTriple>", "<binutilsTriple>", "desktop/win32-x86-64"),
    # For 32-bit ARM the compiler is prefixed armv7a-linux-androideabi but the
    # binutils are prefixed arm-linux-androideabi. Other architectures share one prefix.
    Toolchain("arm", _PREBUILT, "armv7-linux-androideabi",
              "armv7a-linux-androideabi", "arm-linux-androideabi", "android/armeabi-v7a"),
    Toolchain("arm64", _PREBUILT, "aarch64-linux-android",
              "aarch64-linux-android", "aarch64-linux-android", "android/arm64-v8a"),
    Toolchain("x86", _PREBUILT, "i686-linux-android",
              "i686-linux-android", "i686-linux-android", "android/x86"),
    Toolchain("x86_64", _PREBUILT, "x86_64-linux-android",
              "x86_64-linux-android", "x86_64-linux-android", "android/x86_64"),
    # Standalone toolchains produced by make_standalone_toolchain.py (NDK < r19).
    Toolchain("arm", _GENERATED, "armv7-linux-androideabi",
              "arm-linux-androideabi", "arm-linux-androideabi", "android/armeabi-v7a"),
    Toolchain("arm64", _GENERATED, "aarch64-linux-android",
              "aarch64-linux-android", "aarch64-linux-android", "android/arm64-v8a"),
    Toolchain("x86", _GENERATED, "i686-linux-android",
              "i686-linux-android", "i686-linux-android", "android/x86"),
    Toolchain("x86_64", _GENERATED, "x86_64-linux-android",
              "x86_64-linux-android", "x86_64-linux-android", "android/x86_64"),
]


def available_toolchains(use_prebuilt=True):
    """Desktop entries plus the Android entries of one kind, so platform ids are unique."""
    excluded = _GENERATED if use_prebuilt else _PREBUILT
    return [t for t in TOOLCHAINS if t.kind != excluded]


def recognized_platforms(use_prebuilt=True):
    return sorted(t.platform for t in available_toolchains(use_prebuilt))


def find_toolchain(platform_id, use_prebuilt=True):
    for toolchain in available_toolchains(use_prebuilt):
        if toolchain.platform == platform_id:
            return toolchain
    raise ConfigurationError(
        f"Target {platform_id} is not recognized "
        f"(recognized targets: {recognized_platforms(use_prebuilt)}). "
        "Check `local.properties` and `rustdroid.toml`."
    )


def read_properties(path):
    """Read a ``key=value`` properties file. Missing files yield an empty dict."""
    properties = {}
    if not os.path.exists(path):
        return properties
    with open(path, "r", encoding="utf-8") as f:
        for raw_line in f:
            line = raw_line.strip()
            if not line or line[0] in "#!":
                continue
            separators = [i for i in (line.find("="), line.find(":")) if i >= 0]
            if not separators:
                properties[line] = ""
                continue
            index = min(separators)
            properties[line[:index].strip()] = line[index + 1:].strip()
    return properties


def detect_ndk(ndk_path):
    """Describe the NDK installed at ``ndk_path`` from its source.properties."""
    source_properties = read_properties(os.path.join(ndk_path, "source.properties"))
    version = source_properties.get("Pkg.Revision", "0.0")
    if not version.split(".")[0].isdigit():
        raise ConfigurationError(
            f"Cannot read NDK version '{version}' from {os.path.join(ndk_path, 'source.properties')}"
        )
    return Ndk(path=ndk_path, version=version)
