#!/usr/bin/env python3
"""
Python task runner for Portfolio Metrics
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
BLACK = VENV_BIN / "black"
RUFF = VENV_BIN / "ruff"


def run_command(cmd, check=True):
    """Run a command and return the result."""
    print(f"{GREEN}Running: {cmd}{NC}")
    return subprocess.run(cmd, shell=True, check=check)


def check_venv():
    """Create the virtual environment if it does not exist."""
    if not VENV.exists():
        print(f"{YELLOW}Virtual environment not found. Creating...{NC}")
        subprocess.run([sys.executable, "-m", "venv", ".venv"], check=True)


def task_help():
    """Show help information."""
    print(f"""{GREEN}Available tasks:{NC}

{YELLOW}Development:{NC}
  python task.py dev                 # Install package and dev dependencies
  python task.py install             # Install production dependencies

{YELLOW}Testing:{NC}
  python task.py test                # Run tests
  python task.py test-coverage       # Run tests with coverage

{YELLOW}Code Quality:{NC}
  python task.py lint                # Run ruff
  python task.py format              # Format code with black

{YELLOW}Application:{NC}
  python task.py run                 # Run the CLI against config.yml

{YELLOW}Cleanup:{NC}
  python task.py clean               # Remove build artifacts
""")


def task_install():
    """Install production dependencies."""
    check_venv()
    run_command(f"{PIP} install --upgrade pip")
    run_command(f"{PIP} install -r requirements.txt")


def task_dev():
    """Install the package in editable mode with dev dependencies."""
    task_install()
    run_command(f"{PIP} install -r requirements-dev.txt")
    run_command(f"{PIP} install -e .[test]")
    print(f"\n{GREEN}Development environment ready!{NC}")


def task_clean():
    """Remove build artifacts."""
    print(f"{YELLOW}Cleaning build artifacts...{NC}")
    for pattern in ["__pycache__", ".pytest_cache", "*.egg-info", "build", "dist"]:
        for path in Path(".").rglob(pattern):
            if path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)


def task_test():
    """Run tests."""
    run_command(f"{PYTEST} -v")


def task_test_coverage():
    """Run tests with coverage."""
    run_command(f"{PYTEST} --cov=portfolio_metrics --cov-report=term")


def task_lint():
    """Run linters."""
    run_command(f"{RUFF} check .")


def task_format():
    """Format code."""
    run_command(f"{BLACK} .")


def task_run():
    """Run the CLI."""
    if not Path("config.yml").exists():
        print(f"{RED}Error: config.yml not found{NC}")
        sys.exit(1)
    run_command(f"{PYTHON} -m portfolio_metrics.cli -vv config.yml")


def main():
    """Main task dispatcher."""
    if len(sys.argv) < 2:
        task_help()
        return

    task_name = sys.argv[1].replace("-", "_")

    tasks = {
        "help": task_help,
        "dev": task_dev,
        "install": task_install,
        "clean": task_clean,
        "test": task_test,
        "test_coverage": task_test_coverage,
        "lint": task_lint,
        "format": task_format,
        "run": task_run,
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
