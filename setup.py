"""Package configuration for portfolio-metrics.

This file defines installation metadata and console entry points.
"""

import os

import setuptools

TEST_REQUIRES = ["pytest", "pytest-mock"]


def main():
    """Entrypoint for invoking setuptools.setup with package metadata."""

    here = os.path.abspath(os.path.dirname(__file__))

    try:
        with open(os.path.join(here, "README.md"), encoding="utf-8") as f:
            long_description = f.read()
    except OSError:
        long_description = ""

    # Production dependencies only; requirements.txt may pull in others with -r
    try:
        with open(os.path.join(here, "requirements-prod.txt"), encoding="utf-8") as f:
            install_requires = [
                line.strip()
                for line in f.read().splitlines()
                if line.strip()
                and not line.strip().startswith("#")
                and not line.strip().startswith("-r ")
            ]
    except OSError:
        install_requires = []

    setuptools.setup(
        name="portfolio-metrics",
        version="0.1",
        description="Cost, duration and value estimates for a portfolio of epics",
        long_description=long_description,
        long_description_content_type="text/markdown",
        license="MIT",
        keywords="portfolio planning epics cost of delay cd3",
        packages=setuptools.find_packages(exclude=["contrib", "docs", "tests*"]),
        install_requires=install_requires,
        extras_require={"test": TEST_REQUIRES},
        python_requires=">=3.8",
        include_package_data=True,
        package_data={
            "portfolio_metrics": ["data/*.json"],
        },
        entry_points={
            "console_scripts": [
                "portfolio-metrics=portfolio_metrics.cli:main",
            ],
        },
    )


if __name__ == "__main__":
    main()
