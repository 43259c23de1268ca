"""
DeedReg setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="deedreg",
    version="1.0.0",
    description="DeedReg — Permissioned property-document registry",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "deedreg=deedreg.cli:main",
        ],
    },
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
