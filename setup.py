"""Package configuration for stay-on-target.

This file defines installation metadata and console entry points.
"""

import os

import setuptools


def read_requirements(here, filename):
    """Read requirement specifiers from `filename`, skipping comments and
    `-r` includes."""
    try:
        with open(os.path.join(here, filename), encoding="utf-8") as f:
            return [
                line.strip()
                for line in f.read().splitlines()
                if line.strip()
                and not line.strip().startswith("#")
                and not line.strip().startswith("-r ")
            ]
    except OSError:
        return []


def main():
    """Entrypoint for invoking setuptools.setup with package metadata."""

    here = os.path.abspath(os.path.dirname(__file__))

    # Safely read long description
    try:
        with open(os.path.join(here, "README.md"), encoding="utf-8") as f:
            long_description = f.read()
    except OSError:
        long_description = ""

    setuptools.setup(
        name="stay-on-target",
        version="0.1",
        description="Linear burnup forecasts for JIRA work",
        long_description=long_description,
        long_description_content_type="text/markdown",
        license="MIT",
        keywords="agile jira burnup forecast",
        packages=setuptools.find_packages(exclude=["contrib", "docs", "tests*"]),
        install_requires=read_requirements(here, "requirements-prod.txt"),
        extras_require={"test": read_requirements(here, "requirements-dev.txt")},
        python_requires=">=3.8",
        include_package_data=True,
        package_data={
            "stay_on_target.webapp": ["templates/*.*"],
        },
        entry_points={
            "console_scripts": [
                "stay-on-target=stay_on_target.cli:main",
            ],
        },
    )


if __name__ == "__main__":
    main()
