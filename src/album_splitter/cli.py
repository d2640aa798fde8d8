"""Command line entry point"""
import os
import sys
import time
import argparse

from .core.job_orchestrator import split_directory
from .core.tools import check_dependencies, default_toolchain
from .utils.helpers import create_logger, safe_print

DEFAULT_LOG_DIR = "/tmp/cue_split_logs"


def _env_flag(name):
    return os.environ.get(name, "false").lower() in ("true", "1", "yes")


def parse_arguments(argv=None):
    """Parse command line arguments and environment variables"""
    # Read defaults from environment variables
    env_log_dir = os.environ.get("LOG_DIR", DEFAULT_LOG_DIR)
    env_frame_accurate = _env_flag("FRAME_ACCURATE")
    env_skip_check = _env_flag("SKIP_DEPENDENCY_CHECK")

    parser = argparse.ArgumentParser(
        description="Split FLAC/APE/WavPack album images into tracks using CUE sheets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Music/Albums
  %(prog)s --frame-accurate --log-dir ./logs .

Environment Variables:
  LOG_DIR                - Directory for run log files
  FRAME_ACCURATE         - Keep CUE frames in the ffmpeg fallback (true/false)
  SKIP_DEPENDENCY_CHECK  - Do not check for external tools (true/false)
"""
    )

    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Root directory to scan (default: current directory)"
    )
    parser.add_argument(
        "--log-dir",
        default=env_log_dir,
        help=f"Directory for run log files (default: {env_log_dir}, env: LOG_DIR)"
    )
    parser.add_argument(
        "--frame-accurate",
        action="store_true",
        default=env_frame_accurate,
        help=f"Cut fallback tracks on CUE frames instead of whole seconds "
             f"(default: {env_frame_accurate}, env: FRAME_ACCURATE)"
    )
    parser.add_argument(
        "--skip-dependency-check",
        action="store_true",
        default=env_skip_check,
        help="Do not check that the external tools are installed (env: SKIP_DEPENDENCY_CHECK)"
    )

    return parser.parse_args(argv)


def print_banner(args, logfile):
    """Print startup banner with configuration"""
    safe_print("=" * 60)
    safe_print("🎵 CUE Sheet Audio Splitter")
    safe_print("=" * 60)
    safe_print("📋 Configuration:")
    safe_print(f"   Directory: {os.path.abspath(args.directory)}")
    safe_print(f"   Frame accurate fallback: {args.frame_accurate}")
    safe_print(f"   Log file: {logfile}")
    safe_print("=" * 60)


def main(argv=None, toolchain=None):
    """
    Main entry point.

    Returns:
        Process exit code: 1 if the directory is missing or tools are not
        installed, 0 otherwise (even when some pairs failed)
    """
    args = parse_arguments(argv)

    os.makedirs(args.log_dir, exist_ok=True)
    run_id = f"{time.strftime('%Y%m%d-%H%M%S')}-{os.getpid()}"
    logfile = os.path.join(args.log_dir, f"{run_id}.log")
    log = create_logger(logfile)

    print_banner(args, logfile)

    if not os.path.isdir(args.directory):
        log(f"❌ Directory not found: {args.directory}")
        return 1

    if toolchain is None:
        if not args.skip_dependency_check and check_dependencies(log):
            return 1
        toolchain = default_toolchain(logfile)

    split_directory(args.directory, toolchain, log, frame_accurate=args.frame_accurate)
    log("✅ Processing complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
