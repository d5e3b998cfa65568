"""Setup configuration for nb-test-runner."""

from setuptools import setup, find_packages

setup(
    name="nb-test-runner",
    version="0.1.0",
    description="Run a pytest test module from a notebook cell and block until it finishes",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pytest>=7.4",
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "nb-test=nb_test_runner.cli:main",
        ],
    },
)
