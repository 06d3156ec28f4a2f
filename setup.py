#!/usr/bin/env python3
"""
Setup script for depinject.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="depinject",
    version="1.0.0",
    description="Dependency-injection container with named singleton services",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="depinject Contributors",
    packages=find_packages(include=["depinject", "depinject.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=requirements + [
        "python-dotenv>=1.0.0",
        "jinja2>=3.1.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "depinject=depinject.cli.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
    keywords="dependency injection container ioc services",
)
