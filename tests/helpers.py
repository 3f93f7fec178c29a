import os
import shutil
import tempfile

from rustdroid.config import BuildConfig

class ProjectDirMixin:
    """Creates a throwaway project with a `rust/` cargo module and an NDK directory."""

    def setUp(self):
        self.project_dir = tempfile.mkdtemp(prefix="rustdroid-test-")
        self.module_dir = os.path.join(self.project_dir, "rust")
        os.makedirs(self.module_dir)
        self.ndk_dir = os.path.join(self.project_dir, "ndk")
        os.makedirs(self.ndk_dir)

    def tearDown(self):
        shutil.rmtree(self.project_dir, ignore_errors=True)

    def write_ndk_version(self, version):
        with open(os.path.join(self.ndk_dir, "source.properties"), "w") as f:
            f.write(f"Pkg.Desc = Android NDK\nPkg.Revision = {version}\n")

    def make_config(self, local_properties=None, environ=None, **cargo):
        cargo.setdefault("module", "rust")
        cargo.setdefault("libname", "example")
        cargo.setdefault("targets", ["arm64"])
        if "api_levels" not in cargo:
            cargo.setdefault("api_level", 21)
        conf = {"cargo": cargo, "android": {"ndk_path": self.ndk_dir}}
        return BuildConfig.from_mapping(
            conf,
            project_dir=self.project_dir,
            local_properties=local_properties or {},
            environ=environ if environ is not None else {},
            project_name="app",
        )
