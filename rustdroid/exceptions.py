import click


class RustDroidError(click.ClickException):
    """Base class for every fatal rustdroid failure. Aborts the whole build."""


class ConfigurationError(RustDroidError):
    """Invalid or incomplete configuration, raised before any process starts."""


class ExternalProcessFailure(RustDroidError):
    """An external tool (cargo, rustc, make_standalone_toolchain.py) exited non-zero."""

    def __init__(self, command, returncode, stdout="", stderr=""):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(
            f"Process '{' '.join(self.command)}' finished with non-zero exit value {returncode}"
        )
