import os
import subprocess
from ..cli_logger import logger

def run_shell_command(command, env=None, cwd=None, extra_env=None):
    """
    Executes a command and waits for it to finish. There is no timeout.

    Args:
        command (list): The command to execute as a list of strings.
        env (dict, optional): Full environment for the child. Defaults to the current one.
        cwd (str, optional): The working directory for the command.
        extra_env (dict, optional): Variables layered over ``env``.

    Returns:
        A tuple (stdout, stderr, return_code). A missing executable is
        reported as return code -1 with the error text as stderr.
    """
    if extra_env:
        env = dict(os.environ if env is None else env)
        env.update({key: str(value) for key, value in extra_env.items()})

    logger.debug(f"Running {' '.join(str(c) for c in command)}" + (f" in {cwd}" if cwd else ""))
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            check=False,
            cwd=cwd
        )
        return result.stdout, result.stderr, result.returncode

    except FileNotFoundError as e:
        logger.error(f"Command not found: {e.filename}")
        return "", str(e), -1
    except PermissionError as e:
        logger.error(f"Command is not executable: {e.filename}")
        return "", str(e), -1
