"""General utility functions"""
import os
import sys
import time
import subprocess


def safe_print(msg):
    """Print with handling for surrogate characters that can't be encoded"""
    try:
        print(msg)
    except UnicodeEncodeError:
        # Replace problematic characters with safe representation
        safe_msg = msg.encode('utf-8', errors='replace').decode('utf-8')
        print(safe_msg)
    sys.stdout.flush()


def create_logger(logfile=None):
    """
    Build the log function shared by every stage of a run.

    Each message is timestamped, printed to stdout and appended to the run
    log file when one is given.

    Args:
        logfile: Optional path of the run log file

    Returns:
        Function taking a single message string
    """
    def log(msg):
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        formatted_msg = f"[{timestamp}] {msg}"
        safe_print(formatted_msg)
        if logfile:
            with open(logfile, "a", encoding="utf-8", errors="replace") as f:
                f.write(formatted_msg + "\n")
                f.flush()

    return log


def run_command(cmd, logfile=None, env=None):
    """
    Execute a command and log its output to a file.

    Args:
        cmd: Command and arguments as a list
        logfile: Path to log file for output (output is discarded when None)
        env: Optional environment variables dict

    Returns:
        Exit code of the command, 127 when the program is not installed
    """
    if logfile is None:
        try:
            result = subprocess.run(cmd, stdout=subprocess.DEVNULL,
                                    stderr=subprocess.DEVNULL, check=False, env=env)
        except FileNotFoundError:
            return 127
        return result.returncode

    with open(logfile, "a", encoding="utf-8", errors="replace") as f:
        # Handle potential encoding issues in command strings
        try:
            cmd_str = ' '.join(str(c) for c in cmd)
        except UnicodeEncodeError:
            # If there are encoding issues, use repr() to show the command safely
            cmd_str = ' '.join(repr(c) for c in cmd)

        f.write(f"\n$ {cmd_str}\n")
        f.flush()
        try:
            result = subprocess.run(cmd, stdout=f, stderr=f, check=False, env=env)
        except FileNotFoundError:
            f.write(f"Command not found: {cmd[0]}\n[Exit code: 127]\n")
            f.flush()
            return 127
        f.write(f"[Exit code: {result.returncode}]\n")
        f.flush()
        return result.returncode


def capture_command(cmd, logfile=None, merge_stderr=False):
    """
    Execute a command and return its decoded stdout.

    Args:
        cmd: Command and arguments as a list
        logfile: Optional log file receiving the command line and exit code
        merge_stderr: If True, stderr is folded into the returned text

    Returns:
        Tuple of (exit_code, output_text)
    """
    stderr = subprocess.STDOUT if merge_stderr else subprocess.DEVNULL
    try:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=stderr, check=False)
    except FileNotFoundError:
        return 127, ""
    output = result.stdout.decode('utf-8', errors='replace')
    if logfile:
        with open(logfile, "a", encoding="utf-8", errors="replace") as f:
            f.write(f"\n$ {' '.join(str(c) for c in cmd)}\n")
            f.write(f"[Exit code: {result.returncode}]\n")
    return result.returncode, output


def utf8_environment():
    """Copy of the current environment with a UTF-8 locale for tools that print titles"""
    env = os.environ.copy()
    env['LC_ALL'] = 'C.UTF-8'
    env['LANG'] = 'C.UTF-8'
    return env
