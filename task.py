#!/usr/bin/env python3
"""
Python task runner for Stay on Target
"""

import shutil
import subprocess
import sys
from pathlib import Path

# Colors for output
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
NC = "\033[0m"  # No Color

# Project paths
VENV = Path(".venv")
VENV_BIN = VENV / "bin"
PYTHON = VENV_BIN / "python"
PIP = VENV_BIN / "pip"
PYTEST = VENV_BIN / "pytest"


def run_command(cmd, check=True):
    """Run a command and return the result."""
    print(f"{GREEN}Running: {cmd}{NC}")
    return subprocess.run(cmd, shell=True, check=check)


def check_venv():
    """Check if virtual environment exists."""
    if not VENV.exists():
        print(f"{YELLOW}Virtual environment not found. Creating...{NC}")
        subprocess.run([sys.executable, "-m", "venv", ".venv"], check=True)
        print(f"{GREEN}Virtual environment created{NC}")


def task_help():
    """Show help information."""
    print(f"""{GREEN}Available tasks:{NC}

{YELLOW}Development:{NC}
  python task.py dev                 # Install the package with test dependencies

{YELLOW}Testing:{NC}
  python task.py test                # Run tests
  python task.py test-verbose        # Run tests with verbose output

{YELLOW}Application:{NC}
  python task.py run                 # Forecast with config.yml
  python task.py webapp              # Start web application

{YELLOW}Cleanup:{NC}
  python task.py clean               # Remove build artifacts
""")


def task_dev():
    """Install the package in editable mode with test dependencies."""
    print(f"{GREEN}Setting up development environment...{NC}")
    check_venv()
    run_command(f"{PIP} install --upgrade pip")
    run_command(f"{PIP} install -e \".[test]\"")
    print(f"\n{GREEN}Development environment ready!{NC}")


def task_clean():
    """Remove build artifacts."""
    print(f"{YELLOW}Cleaning build artifacts...{NC}")
    for pattern in ["__pycache__", ".pytest_cache", "*.egg-info", "build", "dist"]:
        for path in Path(".").rglob(pattern):
            if VENV in path.parents:
                continue
            if path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
    print(f"{GREEN}Clean complete{NC}")


def task_test():
    """Run tests."""
    print(f"{GREEN}Running tests...{NC}")
    run_command(f"{PYTEST} stay_on_target")


def task_test_verbose():
    """Run tests with verbose output."""
    print(f"{GREEN}Running tests with verbose output...{NC}")
    run_command(f"{PYTEST} -vv stay_on_target")


def task_run():
    """Forecast the target in config.yml."""
    if not Path("config.yml").exists():
        print(f"{RED}Error: config.yml not found{NC}")
        sys.exit(1)
    print(f"{GREEN}Running stay-on-target...{NC}")
    run_command(f"{PYTHON} -m stay_on_target.cli -v config.yml")


def task_webapp():
    """Start the web application."""
    print(f"{GREEN}Starting web application...{NC}")
    run_command(f"{PYTHON} -m stay_on_target.cli --server 127.0.0.1:5000")


def main():
    """Main task dispatcher."""
    if len(sys.argv) < 2:
        task_help()
        return

    task_name = sys.argv[1].replace("-", "_")

    tasks = {
        "help": task_help,
        "dev": task_dev,
        "clean": task_clean,
        "test": task_test,
        "test_verbose": task_test_verbose,
        "run": task_run,
        "webapp": task_webapp,
    }

    if task_name in tasks:
        try:
            tasks[task_name]()
        except subprocess.CalledProcessError as e:
            print(f"{RED}Task failed with exit code {e.returncode}{NC}")
            sys.exit(1)
    else:
        print(f"{RED}Unknown task: {sys.argv[1]}{NC}")
        task_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
