#!/usr/bin/env python3
"""
Setup script for the statmerge statistics merge tool

This script installs the merge tool and its dependencies.

Usage:
    pip install .
    pip install -e ".[dev]"  # For development mode
"""

from pathlib import Path

from setuptools import find_packages, setup

# Read README if it exists
readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text()

setup(
    name="statmerge",
    version="1.0.0",
    description="Merge two versions of a Home Assistant style statistics database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Statmerge Team",
    author_email="statmerge@example.com",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pyodbc>=4.0.39",
        "psycopg2-binary>=2.9.9",
        "PyMySQL>=1.1.0",
        "prometheus-client>=0.19.0",
        "opentelemetry-api>=1.21.0",
        "opentelemetry-sdk>=1.21.0",
        "opentelemetry-exporter-otlp-proto-grpc>=1.21.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.92.0",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.92.0",
            "black>=23.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",
        ],
    },
    entry_points={
        "console_scripts": [
            "statmerge=statmerge.cli:main",
        ],
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
)
