"""Linker driver used by linker-wrapper.sh / linker-wrapper.bat.

Runs the NDK clang named by RUST_ANDROID_GRADLE_CC with the soname link
argument prepended. Must only depend on the standard library: it runs under
whatever interpreter RUST_ANDROID_GRADLE_PYTHON_COMMAND names.
"""
import os
import subprocess
import sys
import tempfile

# cmd.exe refuses command lines longer than this.
WINDOWS_COMMAND_LINE_LIMIT = 8191


def rewrite_args(args, ndk_major):
    # NDK r23 dropped libgcc; older rustc still asks for it.
    if ndk_major >= 23:
        return ["-lunwind" if arg == "-lgcc" else arg for arg in args]
    return list(args)


def main(argv):
    cc = os.environ["RUST_ANDROID_GRADLE_CC"]
    link_arg = os.environ.get("RUST_ANDROID_GRADLE_CC_LINK_ARG")
    try:
        ndk_major = int(os.environ.get("CARGO_NDK_MAJOR_VERSION", "0"))
    except ValueError:
        ndk_major = 0

    args = rewrite_args(argv, ndk_major)
    if link_arg:
        args.insert(0, link_arg)

    response_file = None
    command = [cc] + args
    if os.name == "nt" and len(subprocess.list2cmdline(command)) > WINDOWS_COMMAND_LINE_LIMIT:
        with tempfile.NamedTemporaryFile("w", suffix=".rsp", delete=False) as f:
            f.write("\n".join(subprocess.list2cmdline([arg]) for arg in args))
            response_file = f.name
        command = [cc, "@" + response_file]

    try:
        return subprocess.call(command)
    finally:
        if response_file:
            os.remove(response_file)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
