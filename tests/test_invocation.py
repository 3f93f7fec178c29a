import dataclasses
import os
import unittest
from unittest.mock import patch

from rustdroid.exceptions import ConfigurationError, ExternalProcessFailure
from rustdroid.invocation import Invocation, build_invocation, run_invocation
from rustdroid.toolchains import Ndk, find_toolchain
from tests.helpers import ProjectDirMixin

HOST = "x86_64-unknown-linux-gnu"


class TestBuildInvocation(ProjectDirMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.ndk = Ndk(self.ndk_dir, "25.1.0")
        self.prebuilt = os.path.join(self.ndk_dir, "toolchains", "llvm", "prebuilt", "linux-x86_64")

    def invoke(self, platform_id="arm64", default_triple=HOST, ndk=None, use_prebuilt=True, **cargo):
        cargo.setdefault("verbose", False)
        local_properties = cargo.pop("local_properties", None)
        environ = cargo.pop("environ", None)
        conf = self.make_config(local_properties=local_properties, environ=environ, targets=[platform_id], **cargo)
        return build_invocation(
            find_toolchain(platform_id, use_prebuilt), ndk or self.ndk, conf, default_triple,
            system="Linux", machine="x86_64",
        ), conf

    def test_release_arm64_with_ndk_25(self):
        invocation, conf = self.invoke(profile="release")
        self.assertEqual(invocation.args, ("cargo", "build", "--release", "--target=aarch64-linux-android"))
        self.assertEqual(invocation.cwd, os.path.realpath(self.module_dir))
        env = invocation.env
        self.assertEqual(env["AR_aarch64-linux-android"], os.path.join(self.prebuilt, "bin", "llvm-ar"))
        self.assertEqual(env["CC_aarch64-linux-android"], os.path.join(self.prebuilt, "bin", "aarch64-linux-android21-clang"))
        self.assertEqual(env["CXX_aarch64-linux-android"], os.path.join(self.prebuilt, "bin", "aarch64-linux-android21-clang++"))
        self.assertEqual(env["CARGO_NDK_MAJOR_VERSION"], "25")
        self.assertEqual(
            env["CARGO_TARGET_AARCH64_LINUX_ANDROID_LINKER"],
            os.path.join(conf.build_directory, "linker-wrapper", "linker-wrapper.sh"),
        )
        self.assertEqual(env["CLANG_PATH"], env["CC_aarch64-linux-android"])
        self.assertEqual(env["RUST_ANDROID_GRADLE_CC"], env["CC_aarch64-linux-android"])
        self.assertEqual(env["RUST_ANDROID_GRADLE_PYTHON_COMMAND"], "python3")
        self.assertEqual(
            env["RUST_ANDROID_GRADLE_LINKER_WRAPPER_PY"],
            os.path.join(conf.build_directory, "linker-wrapper", "linker-wrapper.py"),
        )
        self.assertEqual(env["RUST_ANDROID_GRADLE_CC_LINK_ARG"], "-Wl,-soname,libexample.so")

    def test_desktop_host_build_has_no_target_and_no_cross_environment(self):
        invocation, _ = self.invoke("linux-x86-64", profile="debug")
        self.assertEqual(invocation.args, ("cargo", "build"))
        self.assertEqual(dict(invocation.env), {})

    def test_target_flag_when_host_triple_unknown(self):
        invocation, _ = self.invoke("linux-x86-64", default_triple=None)
        self.assertIn("--target=x86_64-unknown-linux-gnu", invocation.args)

    def test_windows_host_uses_batch_wrapper_and_cmd_compilers(self):
        conf = self.make_config(targets=["x86"], verbose=False)
        invocation = build_invocation(find_toolchain("x86"), self.ndk, conf, HOST, system="Windows", machine="AMD64")
        prebuilt = os.path.join(self.ndk_dir, "toolchains", "llvm", "prebuilt", "windows-x86_64")
        self.assertEqual(invocation.env["CC_i686-linux-android"], os.path.join(prebuilt, "bin", "i686-linux-android21-clang.cmd"))
        self.assertTrue(invocation.env["CARGO_TARGET_I686_LINUX_ANDROID_LINKER"].endswith("linker-wrapper.bat"))

    def test_ndk_19_uses_binutils_archiver(self):
        invocation, _ = self.invoke("arm", ndk=Ndk(self.ndk_dir, "19.2.5345600"))
        self.assertEqual(
            invocation.env["AR_armv7-linux-androideabi"],
            os.path.join(self.prebuilt, "bin", "arm-linux-androideabi-ar"),
        )
        self.assertEqual(
            invocation.env["CC_armv7-linux-androideabi"],
            os.path.join(self.prebuilt, "bin", "armv7a-linux-androideabi21-clang"),
        )

    def test_generated_toolchain_paths(self):
        invocation, conf = self.invoke("x86_64", ndk=Ndk(self.ndk_dir, "17.2.4988734"), use_prebuilt=False,
                                       toolchain_directory="toolchains")
        root = os.path.join(self.project_dir, "toolchains")
        self.assertEqual(conf.toolchain_directory, root)
        self.assertEqual(invocation.env["CC_x86_64-linux-android"], os.path.join(root, "x86_64-21", "bin", "x86_64-linux-android-clang"))
        self.assertEqual(invocation.env["AR_x86_64-linux-android"], os.path.join(root, "x86_64-21", "bin", "x86_64-linux-android-ar"))
        self.assertNotIn("CARGO_NDK_MAJOR_VERSION", invocation.env)

    def test_feature_flags(self):
        cases = [
            (None, ()),
            ({"all": True}, ("--all-features",)),
            ({"default_and": []}, ()),
            ({"default_and": ["a", "b"]}, ("--features", "a b")),
            ({"default_and": "serde"}, ("--features", "serde")),
            ({"no_default_but": []}, ("--no-default-features",)),
            ({"no_default_but": ["a"]}, ("--no-default-features", "--features", "a")),
        ]
        for features, expected in cases:
            with self.subTest(features=features):
                invocation, _ = self.invoke("linux-x86-64", features=features)
                self.assertEqual(invocation.args, ("cargo", "build") + expected)

    def test_custom_profile_is_passed_verbatim(self):
        invocation, _ = self.invoke("linux-x86-64", profile="bench")
        self.assertEqual(invocation.args, ("cargo", "build", "--bench"))

    def test_rustup_channel(self):
        invocation, _ = self.invoke("linux-x86-64", rustup_channel="nightly")
        self.assertEqual(invocation.args[:3], ("cargo", "+nightly", "build"))
        invocation, _ = self.invoke("linux-x86-64", rustup_channel="+stable")
        self.assertEqual(invocation.args[:3], ("cargo", "+stable", "build"))

    def test_verbose(self):
        invocation, _ = self.invoke("linux-x86-64", verbose=True)
        self.assertIn("--verbose", invocation.args)

    @patch('rustdroid.invocation.logger')
    def test_verbose_follows_log_level_when_unset(self, mock_logger):
        mock_logger.is_info_enabled.return_value = True
        invocation, _ = self.invoke("linux-x86-64", verbose=None)
        self.assertIn("--verbose", invocation.args)
        mock_logger.is_info_enabled.return_value = False
        invocation, _ = self.invoke("linux-x86-64", verbose=None)
        self.assertNotIn("--verbose", invocation.args)

    def test_passthrough_only_for_matching_triple(self):
        environ = {
            "RUST_ANDROID_GRADLE_TARGET_AARCH64_LINUX_ANDROID_FOO": "bar",
            "RUST_ANDROID_GRADLE_TARGET_X86_64_LINUX_ANDROID_BAZ": "qux",
        }
        invocation, _ = self.invoke("arm64", environ=environ)
        self.assertEqual(invocation.env["FOO"], "bar")
        self.assertNotIn("BAZ", invocation.env)

    def test_cross_environment_wins_over_passthrough(self):
        environ = {"RUST_ANDROID_GRADLE_TARGET_AARCH64_LINUX_ANDROID_CLANG_PATH": "/usr/bin/clang"}
        invocation, _ = self.invoke("arm64", environ=environ)
        self.assertEqual(invocation.env["CLANG_PATH"], invocation.env["CC_aarch64-linux-android"])

    def test_clang_path_can_be_disabled(self):
        invocation, _ = self.invoke("arm64", local_properties={"rust.autoConfigureClangSys": "false"})
        self.assertNotIn("CLANG_PATH", invocation.env)
        self.assertIn("RUST_ANDROID_GRADLE_CC", invocation.env)

    def test_build_id_link_arg(self):
        invocation, _ = self.invoke("arm64", generate_build_id=True)
        self.assertEqual(invocation.env["RUST_ANDROID_GRADLE_CC_LINK_ARG"], "-Wl,--build-id,-soname,libexample.so")

    def test_extra_arguments_come_last(self):
        invocation, _ = self.invoke("arm64", profile="release", extra_cargo_build_arguments=["--locked", "-Zbuild-std"])
        self.assertEqual(invocation.args[-2:], ("--locked", "-Zbuild-std"))
        self.assertEqual(invocation.args[-3], "--target=aarch64-linux-android")

    def test_exec_hook_has_the_last_word(self):
        seen = []

        def hook(invocation, toolchain):
            seen.append(toolchain.platform)
            return invocation.with_env("CLANG_PATH", "/custom/clang").with_args("--offline")

        conf = self.make_config(verbose=False)
        conf = dataclasses.replace(conf, exec_hook=hook)
        invocation = build_invocation(find_toolchain("arm64"), self.ndk, conf, HOST, system="Linux", machine="x86_64")
        self.assertEqual(seen, ["arm64"])
        self.assertEqual(invocation.env["CLANG_PATH"], "/custom/clang")
        self.assertEqual(invocation.args[-1], "--offline")

    def test_exec_hook_returning_none_keeps_invocation(self):
        conf = self.make_config(verbose=False)
        conf = dataclasses.replace(conf, exec_hook=lambda invocation, toolchain: None)
        invocation = build_invocation(find_toolchain("arm64"), self.ndk, conf, HOST, system="Linux", machine="x86_64")
        self.assertEqual(invocation.args[0], "cargo")

    def test_missing_module_directory(self):
        with self.assertRaises(ConfigurationError):
            self.invoke("arm64", module="does-not-exist")

    def test_android_target_without_ndk(self):
        conf = self.make_config(verbose=False)
        with self.assertRaises(ConfigurationError):
            build_invocation(find_toolchain("arm64"), None, conf, HOST, system="Linux", machine="x86_64")


class TestInvocationValue(unittest.TestCase):

    def test_builder_methods_return_new_values(self):
        base = Invocation()
        changed = base.with_args("cargo", 1).with_env("A", 1).with_env("A", 2).with_cwd("/tmp")
        self.assertEqual(base.args, ())
        self.assertEqual(dict(base.env), {})
        self.assertEqual(changed.args, ("cargo", "1"))
        self.assertEqual(dict(changed.env), {"A": "2"})
        self.assertEqual(changed.cwd, "/tmp")


class TestRunInvocation(unittest.TestCase):

    @patch('rustdroid.invocation.logger')
    @patch('rustdroid.invocation.run_shell_command', return_value=("Compiling example", "", 0))
    def test_success_logs_stdout(self, mock_run, mock_logger):
        invocation = Invocation(("cargo", "build"), cwd="/src").with_env("FOO", "bar")
        self.assertEqual(run_invocation(invocation), "Compiling example")
        mock_run.assert_called_once_with(["cargo", "build"], cwd="/src", extra_env={"FOO": "bar"})
        mock_logger.info.assert_any_call("Compiling example")

    @patch('rustdroid.invocation.logger')
    @patch('rustdroid.invocation.run_shell_command', return_value=("", "error[E0425]", 101))
    def test_failure_is_fatal(self, mock_run, mock_logger):
        with self.assertRaises(ExternalProcessFailure) as cm:
            run_invocation(Invocation(("cargo", "build"), cwd="/src"))
        self.assertEqual(cm.exception.returncode, 101)
        self.assertEqual(cm.exception.stderr, "error[E0425]")

if __name__ == "__main__":
    unittest.main()
