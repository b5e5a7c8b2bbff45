# File: rasqualtools/setup.py
# Location: rasqualtools/setup.py
"""
Setup script for rasqualtools.

This file configures how the package is built, installed, and what
dependencies are required.
"""

import os
from setuptools import setup, find_packages

# Load version from version.py without importing the module
version = {}
with open(os.path.join("rasqualtools", "version.py")) as f:
    exec(f.read(), version)

# Read the README for the long description
this_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_dir, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="rasqualtools",
    version=version["__version__"],
    description="Helpers for importing RASQUAL results and preparing RASQUAL input files.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "numpy",
        "scipy>=1.10",
        "pysam",
    ],
    extras_require={
        "plot": ["matplotlib"],
        "test": ["pytest", "matplotlib"],
    },
    entry_points={"console_scripts": ["rasqualtools=rasqualtools.cli:main"]},
    include_package_data=True,
    package_data={"rasqualtools": ["config.json"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
)
